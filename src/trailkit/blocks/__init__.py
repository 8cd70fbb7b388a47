"""Block persistence, the validation dispatcher and the block service."""
