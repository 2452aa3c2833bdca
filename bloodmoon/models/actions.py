"""Night action and phase result models."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..roles import ActionType

if TYPE_CHECKING:
    from .information import Notice


@dataclass(frozen=True)
class NightAction:
    """A single submitted night action."""

    actor_id: str
    type: ActionType
    target_id: str | None = None

    def __repr__(self) -> str:
        return f"NightAction({self.actor_id} {self.type.value} → {self.target_id})"


@dataclass
class BiteOutcome:
    """How the vampire vote resolved on an eligible night."""

    tally: dict[str, int] = field(default_factory=dict)
    target_id: str | None = None
    tied: bool = False
    turned: bool = False
    blocked_by: str | None = None  # "heal", "jail" or "evil"


@dataclass
class NightResult:
    """Results of resolving one night."""

    round: int
    visits: dict[str, list[str]] = field(default_factory=dict)
    heals_spent: dict[str, int] = field(default_factory=dict)
    bite: BiteOutcome | None = None
    turned_id: str | None = None
    framed: set[str] = field(default_factory=set)
    investigations: dict[str, str] = field(default_factory=dict)
    lookouts: dict[str, str] = field(default_factory=dict)
    executed_id: str | None = None
    released_id: str | None = None
    deaths: list[str] = field(default_factory=list)
    notices: list["Notice"] = field(default_factory=list)


@dataclass
class LynchResult:
    """Result of resolving a day vote."""

    round: int
    tally: dict[str, int] = field(default_factory=dict)
    living_count: int = 0
    lynched_id: str | None = None
    qualifying: list[str] = field(default_factory=list)
    jester_win: bool = False
    notices: list["Notice"] = field(default_factory=list)

    @property
    def tied(self) -> bool:
        return len(self.qualifying) > 1
