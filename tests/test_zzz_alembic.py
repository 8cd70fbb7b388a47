"""Alembic migration tests.

File named test_zzz_alembic.py to sort LAST in pytest collection order.
Runs against a scratch SQLite file so no server is needed.
"""

import os
import subprocess
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def alembic_env(tmp_path: Path) -> dict[str, str]:
    env = dict(os.environ)
    env["TRAILKIT_DATABASE_URL"] = f"sqlite+aiosqlite:///{tmp_path / 'migrations.db'}"
    return env


def run_alembic(env: dict[str, str], *args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(["alembic", *args], capture_output=True, text=True, cwd=ROOT, env=env)


def test_alembic_upgrade_head(alembic_env: dict[str, str]) -> None:
    """alembic upgrade head succeeds without errors."""
    result = run_alembic(alembic_env, "upgrade", "head")
    assert result.returncode == 0, f"alembic upgrade failed: {result.stderr}"


def test_alembic_current_shows_head(alembic_env: dict[str, str]) -> None:
    """alembic current shows the latest revision."""
    assert run_alembic(alembic_env, "upgrade", "head").returncode == 0
    result = run_alembic(alembic_env, "current")
    assert result.returncode == 0
    assert "001_block_engine" in result.stdout


def test_alembic_downgrade_base(alembic_env: dict[str, str]) -> None:
    """The baseline revision can be rolled back."""
    assert run_alembic(alembic_env, "upgrade", "head").returncode == 0
    result = run_alembic(alembic_env, "downgrade", "base")
    assert result.returncode == 0, f"alembic downgrade failed: {result.stderr}"
