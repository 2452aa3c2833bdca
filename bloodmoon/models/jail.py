"""Jail state scoped to a single night."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from ..config import JAIL_CHAT_LIMIT


@dataclass
class JailChatMessage:
    """A line in the private jail channel."""

    sender: Literal["Jailor", "Prisoner"]
    message: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class JailState:
    """Who is jailed tonight, by whom, and what they said."""

    jailed_player_id: str | None = None
    jailor_id: str | None = None
    chat: list[JailChatMessage] = field(default_factory=list)
    pending_guilt_death: bool = False

    @property
    def active(self) -> bool:
        return self.jailed_player_id is not None and self.jailor_id is not None

    def lock_up(self, jailor_id: str, prisoner_id: str) -> None:
        self.jailor_id = jailor_id
        self.jailed_player_id = prisoner_id
        self.chat = []

    def involves(self, player_id: str) -> bool:
        return self.active and player_id in (self.jailor_id, self.jailed_player_id)

    def post(self, player_id: str, message: str) -> JailChatMessage:
        """Append a chat line from one of the two parties."""
        sender = "Jailor" if player_id == self.jailor_id else "Prisoner"
        entry = JailChatMessage(sender=sender, message=message[:JAIL_CHAT_LIMIT])
        self.chat.append(entry)
        return entry

    def reset(self) -> None:
        """Clear the jail for a new phase. The guilt flag is cleared separately."""
        self.jailed_player_id = None
        self.jailor_id = None
        self.chat = []
