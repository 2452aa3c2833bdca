"""Type definitions for phases and transport payloads."""

from enum import Enum
from typing import NamedTuple, NotRequired, TypedDict


class GamePhase(str, Enum):
    """States of the phase machine."""

    LOBBY = "LOBBY"
    NIGHT = "NIGHT"
    DAY_DISCUSS = "DAY_DISCUSS"
    DAY_VOTE = "DAY_VOTE"
    GAME_OVER = "GAME_OVER"


class PhaseStamp(NamedTuple):
    """The phase and round a deferred callback was scheduled in."""

    state: GamePhase
    round: int


class NightActionPayload(TypedDict, total=False):
    """A night action as sent by a client."""

    type: str
    targetId: NotRequired[str | None]
    cancel: NotRequired[bool]


class RoleConfigPayload(TypedDict, total=False):
    """Role counts sent by the host. Keys other than ``useDefault`` are role names."""

    useDefault: NotRequired[bool]


class SettingsPayload(TypedDict, total=False):
    """Game settings sent by the host on create or start."""

    nightTime: NotRequired[int]
    discussionTime: NotRequired[int]
    voteTime: NotRequired[int]
    revealRole: NotRequired[bool]
    nationality: NotRequired[str]
    roleConfig: NotRequired[RoleConfigPayload]
    npcDisallowedRoles: NotRequired[list[str]]
