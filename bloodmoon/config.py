"""Session and environment configuration.

Per-session settings come from the host when a game is created. Environment
settings (API keys, model choice, log directory) are process-wide and read
from the environment or a ``.env`` file.
"""

import os
from dataclasses import dataclass, field
from typing import Any

from dotenv import load_dotenv

from .roles import Role
from .types import RoleConfigPayload, SettingsPayload

DOCTOR_HEALS = 3
JAIL_CHAT_LIMIT = 200
JAILOR_MIN_PLAYERS = 6
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"


@dataclass
class RoleConfig:
    """Explicit role counts chosen by the host."""

    use_default: bool = True
    counts: dict[Role, int] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: RoleConfigPayload | dict[str, Any] | None) -> "RoleConfig":
        """Build from a transport payload like ``{"useDefault": False, "Vampire": 2}``."""
        if not data:
            return cls()
        counts = {}
        for role in Role:
            value = data.get(role.value, data.get(role.name))
            if value:
                counts[role] = int(value)
        use_default = bool(data.get("useDefault", data.get("use_default", not counts)))
        return cls(use_default=use_default, counts=counts)


@dataclass
class GameSettings:
    """Settings for a single game session."""

    night_time: int = 60
    discussion_time: int = 120
    vote_time: int = 15
    reveal_role: bool = True
    role_config: RoleConfig = field(default_factory=RoleConfig)
    npc_disallowed_roles: frozenset[Role] = frozenset()
    nationality: str = "english"
    npc_jitter: tuple[float, float] = (1.0, 4.0)
    oracle_timeout: float = 20.0

    @classmethod
    def from_dict(cls, data: SettingsPayload | dict[str, Any] | None) -> "GameSettings":
        """Build settings from the host's create/start payload."""
        data = data or {}
        settings = cls()
        if "nightTime" in data or "night_time" in data:
            settings.night_time = int(data.get("nightTime", data.get("night_time")))
        if "discussionTime" in data or "discussion_time" in data:
            settings.discussion_time = int(
                data.get("discussionTime", data.get("discussion_time"))
            )
        if "voteTime" in data or "vote_time" in data:
            settings.vote_time = int(data.get("voteTime", data.get("vote_time")))
        if "revealRole" in data or "reveal_role" in data:
            settings.reveal_role = bool(data.get("revealRole", data.get("reveal_role")))
        if "nationality" in data:
            settings.nationality = str(data["nationality"])
        settings.role_config = RoleConfig.from_dict(
            data.get("roleConfig", data.get("role_config"))
        )
        disallowed = data.get("npcDisallowedRoles", data.get("npc_disallowed_roles")) or []
        settings.npc_disallowed_roles = frozenset(Role(r) for r in disallowed)
        return settings


@dataclass
class EnvironmentSettings:
    """Environment / deployment settings."""

    anthropic_api_key: str | None = None
    model: str = DEFAULT_MODEL
    log_dir: str = "logs"

    @classmethod
    def from_env(cls) -> "EnvironmentSettings":
        """Build settings from environment variables."""
        load_dotenv()
        return cls(
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
            model=os.getenv("BLOODMOON_MODEL", DEFAULT_MODEL),
            log_dir=os.getenv("BLOODMOON_LOG_DIR", "logs"),
        )
