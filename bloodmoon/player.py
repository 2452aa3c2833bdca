"""Player class representing a seat in the game."""

from dataclasses import dataclass, field
from typing import Any

from .config import DOCTOR_HEALS
from .roles import Alignment, Role, alignment_for


@dataclass
class ActionRecord:
    """A resolved night action remembered by an NPC."""

    round: int
    action: str
    target_name: str
    result: str | None = None


@dataclass
class Player:
    """Represents a player (human or NPC) in a session."""

    id: str
    name: str
    is_npc: bool = False
    connection: Any = None
    connected: bool = True
    role: Role | None = None
    alignment: Alignment | None = None
    alive: bool = True
    is_turned: bool = False
    heals_remaining: int | None = None

    # NPC flavour, only read by the dialogue oracle and the transcript
    fake_role: Role | None = None
    personality: str = ""
    talking_style: str = ""
    background: str = ""
    gender: str = ""
    action_history: list[ActionRecord] = field(default_factory=list)

    def assign_role(self, role: Role, alignment: Alignment | None = None) -> None:
        """Give this player a role, re-deriving alignment and Doctor heals."""
        self.role = role
        self.alignment = alignment or alignment_for(role)
        if role == Role.DOCTOR:
            self.heals_remaining = DOCTOR_HEALS
        else:
            self.heals_remaining = None

    def turn(self) -> None:
        """Convert this player into a Vampire."""
        self.assign_role(Role.VAMPIRE)
        self.is_turned = True

    def is_evil(self) -> bool:
        """Check if player is on the evil team."""
        return self.alignment == Alignment.EVIL

    def is_good(self) -> bool:
        """Check if player is on the good team."""
        return self.alignment == Alignment.GOOD

    def can_bite(self) -> bool:
        return self.alive and self.role in (Role.VAMPIRE, Role.VAMPIRE_FRAMER)

    def __str__(self) -> str:
        status = "alive" if self.alive else "dead"
        role = self.role.value if self.role else "unassigned"
        return f"{self.name} ({role}, {status})"
