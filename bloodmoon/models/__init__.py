"""Data models for structured game state and information flow."""

from .actions import BiteOutcome, LynchResult, NightAction, NightResult
from .information import Notice, NoticeCategory, NoticeLog, Visibility
from .jail import JailChatMessage, JailState
from .ledger import NightActionLedger
from .voting import Vote, VoteMap, VotingHistory

__all__ = [
    "NightAction",
    "NightActionLedger",
    "NightResult",
    "BiteOutcome",
    "LynchResult",
    "JailState",
    "JailChatMessage",
    "Notice",
    "NoticeCategory",
    "NoticeLog",
    "Visibility",
    "Vote",
    "VoteMap",
    "VotingHistory",
]
