"""Win-condition evaluation."""

from enum import Enum

from ..models import Notice, NoticeCategory
from .roster_service import RosterManager


class Winner(str, Enum):
    """Who won a finished game."""

    GOOD = "GOOD"
    EVIL = "EVIL"
    JESTER = "Jester"
    HOST_ENDED = "Host Ended"


WIN_MESSAGES = {
    Winner.GOOD: "The vampires have been eliminated! Good wins!",
    Winner.EVIL: "The vampires have taken over! Evil wins!",
    Winner.JESTER: "The Jester was lynched! Jester Wins!",
    Winner.HOST_ENDED: "The host has ended the game.",
}


def evaluate_winner(roster: RosterManager) -> Winner | None:
    """Check the faction counts among living players.

    Good wins when no evil player is alive. Evil wins once evil players make
    up at least half of the living (compared as real numbers, so 2 of 4 is
    enough). Otherwise the game goes on.
    """
    living = roster.alive()
    evil = [p for p in living if p.is_evil()]
    if not evil:
        return Winner.GOOD
    if len(evil) >= len(living) / 2:
        return Winner.EVIL
    return None


def win_notice(winner: Winner, round_number: int = 0) -> Notice:
    return Notice.public(WIN_MESSAGES[winner], NoticeCategory.GAME_STATE, round_number)
