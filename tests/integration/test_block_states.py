"""Integration tests for per-team block state, the validation dispatcher and the block service."""

from __future__ import annotations

import asyncio

import pytest

from trailkit.errors import (
    BlockNotFound,
    ConcurrentSubmission,
    InvalidInput,
    LimitReached,
    NotAuthorized,
)
from trailkit.kinds.base import BlockState, Context


async def add(block_repo, block_type, data=None, points=0, owner="location-1", context=Context.LOCATION_CONTENT):
    draft = block_repo.registry.new_block(block_type, owner, context, points=points)
    if data is not None:
        draft = draft.with_config(block_repo.registry.get(block_type).parse_config(data))
    return await block_repo.create(draft, owner, context)


@pytest.mark.asyncio
class TestStateRepository:

    async def test_create_get_update(self, state_repo):
        assert await state_repo.get("b1", "team-a") is None

        created = await state_repo.create(BlockState(block_id="b1", team_id="team-a", player_data={"n": 1}))
        assert created.version == 1
        assert created.created_at is not None

        loaded = await state_repo.get("b1", "team-a")
        assert loaded.player_data == {"n": 1}
        assert loaded.version == 1

        updated = await state_repo.update(loaded.advance(is_complete=True, points_awarded=7))
        assert updated.version == 2
        again = await state_repo.get("b1", "team-a")
        assert (again.is_complete, again.points_awarded, again.version) == (True, 7, 2)

    async def test_stale_update_is_rejected(self, state_repo):
        await state_repo.create(BlockState(block_id="b1", team_id="team-a"))
        first = await state_repo.get("b1", "team-a")
        second = await state_repo.get("b1", "team-a")

        await state_repo.update(first.advance(points_awarded=5))
        with pytest.raises(ConcurrentSubmission):
            await state_repo.update(second.advance(points_awarded=9))
        assert (await state_repo.get("b1", "team-a")).points_awarded == 5

    async def test_duplicate_create(self, state_repo):
        await state_repo.create(BlockState(block_id="b1", team_id="team-a"))
        with pytest.raises(ConcurrentSubmission):
            await state_repo.create(BlockState(block_id="b1", team_id="team-a"))

    async def test_empty_team_rejected(self, state_repo):
        with pytest.raises(ValueError):
            state_repo.new_state("b1", "")
        with pytest.raises(ValueError):
            await state_repo.get("b1", "")

    async def test_delete(self, state_repo):
        await state_repo.create(BlockState(block_id="b1", team_id="team-a"))
        await state_repo.delete("b1", "team-a")
        assert await state_repo.get("b1", "team-a") is None

    async def test_reset_teams(self, state_repo, session_factory):
        for block_id in ("b1", "b2"):
            for team in ("team-a", "team-b", "team-c"):
                await state_repo.create(BlockState(block_id=block_id, team_id=team))

        async with session_factory() as session, session.begin():
            removed = await state_repo.delete_by_team_codes(session, ["team-a", "team-b"])
        assert removed == 4
        assert await state_repo.get("b1", "team-a") is None
        assert await state_repo.get("b2", "team-c") is not None

        async with session_factory() as session, session.begin():
            assert await state_repo.delete_by_team_codes(session, []) == 0

    async def test_blocks_and_states_for_team(self, state_repo, block_repo):
        shown = await add(block_repo, "markdown")
        played = await add(block_repo, "answer", {"prompt": "Q", "answer": "A"}, points=5)
        await add(block_repo, "markdown", owner="location-2")
        await state_repo.create(BlockState(block_id=played.id, team_id="team-a", is_complete=True, points_awarded=5))
        await state_repo.create(BlockState(block_id=played.id, team_id="team-b"))

        blocks, states = await state_repo.find_blocks_and_states_by_owner_and_team("location-1", "team-a")
        assert [block.id for block in blocks] == [shown.id, played.id]
        assert set(states) == {played.id}
        assert states[played.id].is_complete

        clues, _ = await state_repo.find_blocks_and_states_by_owner_and_team(
            "location-1", "team-a", Context.LOCATION_CLUES
        )
        assert clues == []


@pytest.mark.asyncio
class TestDispatcher:

    async def test_first_submission_creates_state(self, dispatcher, block_repo, state_repo):
        block = await add(block_repo, "pincode", {"prompt": "Code", "pincode": "12345"}, points=50)
        result = await dispatcher.submit(block.id, "team-a", {"pincode": list("12345")})

        assert result.written
        assert (result.is_complete, result.points_awarded, result.delta_points) == (True, 50, 50)
        stored = await state_repo.get(block.id, "team-a")
        assert stored.version == 1
        assert stored.player_data["attempts"] == 1

    async def test_wrong_then_right(self, dispatcher, block_repo, state_repo):
        block = await add(block_repo, "answer", {"prompt": "Q", "answer": "Paris"}, points=20)
        wrong = await dispatcher.submit(block.id, "team-a", {"answer": ["Lyon"]})
        assert not wrong.is_complete
        right = await dispatcher.submit(block.id, "team-a", {"answer": ["Paris"]})
        assert right.is_complete
        assert right.delta_points == 20
        assert (await state_repo.get(block.id, "team-a")).version == 2

    async def test_rejected_input_writes_nothing(self, dispatcher, block_repo, state_repo):
        block = await add(block_repo, "pincode", {"prompt": "Code", "pincode": "12345"}, points=50)
        with pytest.raises(InvalidInput, match="length mismatch"):
            await dispatcher.submit(block.id, "team-a", {"pincode": ["1", "2", "3"]})
        assert await state_repo.get(block.id, "team-a") is None

    async def test_unchanged_state_is_not_written(self, dispatcher, block_repo, state_repo):
        block = await add(block_repo, "pincode", {"prompt": "Code", "pincode": "1"}, points=5)
        await dispatcher.submit(block.id, "team-a", {"pincode": ["1"]})
        repeat = await dispatcher.submit(block.id, "team-a", {"pincode": ["2"]})
        assert not repeat.written
        assert repeat.delta_points == 0
        assert (await state_repo.get(block.id, "team-a")).version == 1

    async def test_limit_reached(self, dispatcher, block_repo):
        block = await add(block_repo, "photo", {"prompt": "Selfie", "max_images": 1}, points=10)
        await dispatcher.submit(block.id, "team-a", {"url": ["/uploads/a.jpg"]})
        with pytest.raises(LimitReached):
            await dispatcher.submit(block.id, "team-a", {"url": ["/uploads/b.jpg"]})

    async def test_photo_delete_returns_points(self, dispatcher, block_repo):
        block = await add(block_repo, "photo", {"prompt": "Selfie", "max_images": 1}, points=10)
        await dispatcher.submit(block.id, "team-a", {"url": ["/uploads/a.jpg"]})
        result = await dispatcher.submit(block.id, "team-a", {"delete": ["/uploads/a.jpg"]})
        assert result.delta_points == -10
        assert not result.is_complete

    async def test_teams_are_independent(self, dispatcher, block_repo):
        block = await add(block_repo, "answer", {"prompt": "Q", "answer": "A"}, points=3)
        await dispatcher.submit(block.id, "team-a", {"answer": ["A"]})
        other = await dispatcher.submit(block.id, "team-b", {"answer": ["B"]})
        assert not other.is_complete

    async def test_unknown_block(self, dispatcher):
        with pytest.raises(BlockNotFound):
            await dispatcher.submit("missing", "team-a", {})

    async def test_team_required(self, dispatcher, block_repo):
        block = await add(block_repo, "markdown")
        with pytest.raises(InvalidInput, match="team is required"):
            await dispatcher.submit(block.id, "", {})

    async def test_concurrent_first_submissions(self, dispatcher, block_repo, state_repo):
        """Two racing first submissions: at most one state row, the loser sees a conflict."""
        block = await add(block_repo, "answer", {"prompt": "Q", "answer": "A"}, points=3)
        results = await asyncio.gather(
            dispatcher.submit(block.id, "team-a", {"answer": ["A"]}),
            dispatcher.submit(block.id, "team-a", {"answer": ["A"]}),
            return_exceptions=True,
        )
        assert any(not isinstance(result, Exception) for result in results)
        assert all(
            isinstance(result, ConcurrentSubmission) for result in results if isinstance(result, Exception)
        )
        stored = await state_repo.get(block.id, "team-a")
        assert stored.is_complete
        assert stored.points_awarded == 3


@pytest.mark.asyncio
class TestBlockService:

    async def test_new_block_and_form_update(self, block_service):
        block = await block_service.new_block("location-1", Context.LOCATION_CONTENT, "answer")
        updated = await block_service.update_from_form(
            block.id, {"prompt": ["Q"], "answer": ["A"], "points": ["10"]}
        )
        assert updated.points == 10
        form = await block_service.config_form(block.id)
        assert form["answer"] == ["A"]

    async def test_delete_block_removes_states(self, block_service, block_repo, dispatcher, state_repo):
        block = await add(block_repo, "markdown")
        await dispatcher.submit(block.id, "team-a", {})
        await dispatcher.submit(block.id, "team-b", {})

        await block_service.delete_block(block.id)
        with pytest.raises(BlockNotFound):
            await block_repo.get_by_id(block.id)
        assert await state_repo.get(block.id, "team-a") is None
        assert await state_repo.get(block.id, "team-b") is None

    async def test_delete_owner_blocks(self, block_service, block_repo, dispatcher, state_repo):
        block = await add(block_repo, "markdown")
        await add(block_repo, "divider")
        await dispatcher.submit(block.id, "team-a", {})
        assert await block_service.delete_owner_blocks("location-1") == 2
        assert await state_repo.get(block.id, "team-a") is None

    async def test_duplicate_does_not_copy_state(self, block_service, block_repo, dispatcher):
        block = await add(block_repo, "markdown")
        await dispatcher.submit(block.id, "team-a", {})
        copies = await block_service.duplicate("location-1", "location-2")
        pairs = await block_service.find_with_states("location-2", "team-a")
        assert [b.id for b, _ in pairs] == [copies[0].id]
        assert not pairs[0][1].is_complete
        assert not pairs[0][1].is_persisted

    async def test_validation_outstanding(self, block_service, block_repo, dispatcher):
        await add(block_repo, "markdown")
        gate = await add(block_repo, "answer", {"prompt": "Q", "answer": "A"}, points=1)
        assert await block_service.validation_outstanding("location-1", "team-a")
        await dispatcher.submit(gate.id, "team-a", {"answer": ["A"]})
        assert not await block_service.validation_outstanding("location-1", "team-a")

    async def test_reset_teams(self, block_service, block_repo, dispatcher, state_repo):
        block = await add(block_repo, "markdown")
        await dispatcher.submit(block.id, "team-a", {})
        await dispatcher.submit(block.id, "team-b", {})
        assert await block_service.reset_teams(["team-a"]) == 1
        assert await state_repo.get(block.id, "team-b") is not None

    async def test_authorization(self, block_service, block_repo, owners):
        mine = await add(block_repo, "markdown", owner=owners["location"])
        await block_service.authorize_owner("admin-1", owners["instance"])
        await block_service.authorize_block("admin-1", mine.id)
        with pytest.raises(NotAuthorized):
            await block_service.authorize_owner("admin-2", owners["location"])
        with pytest.raises(NotAuthorized):
            await block_service.authorize_block("admin-2", mine.id)
