"""Bloodmoon: a vampire social deduction game with LLM-driven NPC players."""

__version__ = "0.1.0"
