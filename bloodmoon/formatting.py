"""Formatting utilities for console output."""

from .types import GamePhase


def separator(width: int = 60) -> str:
    """Create a visual separator line."""
    return f"{'=' * width}"


def night_header(night_num: int) -> str:
    """Format a night phase header."""
    return f"{separator()}\n🌙 Night {night_num}\n{separator()}"


def day_header(day_num: int) -> str:
    """Format a day discussion header."""
    return f"{separator()}\n☀️  Day {day_num}\n{separator()}"


def vote_header(day_num: int) -> str:
    """Format a day vote header."""
    return f"{separator()}\n🗳️  Day {day_num} - Vote\n{separator()}"


def phase_header(phase: GamePhase, round_number: int) -> str | None:
    """Header for entering a phase, or None for phases without one."""
    if phase == GamePhase.NIGHT:
        return night_header(round_number)
    if phase == GamePhase.DAY_DISCUSS:
        return day_header(round_number)
    if phase == GamePhase.DAY_VOTE:
        return vote_header(round_number)
    return None
