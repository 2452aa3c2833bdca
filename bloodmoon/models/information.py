"""Notices and visibility models for tracking who was told what."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal
from uuid import uuid4


class NoticeCategory(Enum):
    """Categories of notices in the game."""

    DEATH = "death"
    ROLE = "role"
    VOTE = "vote"
    ACTION = "action"
    NIGHT_RESULT = "night_result"
    TEAM_INFO = "team_info"
    JAIL = "jail"
    GAME_STATE = "game_state"
    REJECTION = "rejection"


@dataclass
class Visibility:
    """Defines who can see a notice."""

    scope: Literal["public", "private"]
    targets: list[str] = field(default_factory=list)  # Player ids for private, empty for public

    def is_visible_to(self, player_id: str) -> bool:
        if self.scope == "public":
            return True
        return player_id in self.targets


@dataclass
class Notice:
    """A message produced by the core, either a public log line or a private notice."""

    id: str
    content: str
    timestamp: datetime
    visibility: Visibility
    category: NoticeCategory
    round: int = 0
    metadata: dict = field(default_factory=dict)

    @property
    def is_public(self) -> bool:
        return self.visibility.scope == "public"

    @classmethod
    def public(cls, content: str, category: NoticeCategory, round: int = 0, **metadata) -> "Notice":
        """Create a public log line."""
        return cls.create(content, Visibility("public", []), category, round, **metadata)

    @classmethod
    def private(
        cls,
        recipients: str | list[str],
        content: str,
        category: NoticeCategory,
        round: int = 0,
        **metadata,
    ) -> "Notice":
        """Create a notice for one or more specific players."""
        if isinstance(recipients, str):
            recipients = [recipients]
        return cls.create(content, Visibility("private", list(recipients)), category, round, **metadata)

    @classmethod
    def create(
        cls,
        content: str,
        visibility: Visibility,
        category: NoticeCategory,
        round: int = 0,
        **metadata,
    ) -> "Notice":
        """Factory method to create a Notice with auto-generated ID."""
        return cls(
            id=str(uuid4()),
            content=content,
            timestamp=datetime.now(),
            visibility=visibility,
            category=category,
            round=round,
            metadata=metadata,
        )


class NoticeLog:
    """Append-only store of every notice a session has produced."""

    def __init__(self) -> None:
        self._notices: list[Notice] = []

    def add(self, notice: Notice) -> Notice:
        self._notices.append(notice)
        return notice

    def public_lines(self) -> list[str]:
        """The public game log, in order."""
        return [n.content for n in self._notices if n.is_public]

    def visible_to(self, player_id: str, category: NoticeCategory | None = None) -> list[Notice]:
        """All notices a player has been shown."""
        return [
            n
            for n in self._notices
            if n.visibility.is_visible_to(player_id) and (category is None or n.category == category)
        ]

    def build_context_for(self, player_id: str, limit: int = 10) -> str:
        """Recent private notices for a player, formatted for an LLM prompt."""
        private = [n for n in self.visible_to(player_id) if not n.is_public]
        return "\n".join(f"- Night {n.round}: {n.content}" for n in private[-limit:])

    def __len__(self) -> int:
        return len(self._notices)
