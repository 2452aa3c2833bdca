"""Session registry keyed by room code.

The only process-wide state. Each session it holds is otherwise isolated.
"""

import logging
import secrets
import string
from collections.abc import Callable
from typing import Any

from .config import EnvironmentSettings, GameSettings
from .errors import SessionNotFound, ValidationRejection
from .game import GameSession
from .player import Player
from .protocols import Broadcaster
from .types import GamePhase, SettingsPayload

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 5


def generate_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


class SessionRegistry:
    """Creates, finds and drops game sessions."""

    def __init__(
        self,
        broadcaster: Broadcaster,
        env: EnvironmentSettings | None = None,
        on_create: Callable[[GameSession], None] | None = None,
    ) -> None:
        self.broadcaster = broadcaster
        self.env = env or EnvironmentSettings()
        self.on_create = on_create
        self.sessions: dict[str, GameSession] = {}

    def create(
        self,
        host_name: str,
        settings: SettingsPayload | GameSettings | None = None,
        connection: Any = None,
    ) -> tuple[GameSession, Player]:
        """Open a new room with its creator as host."""
        if not isinstance(settings, GameSettings):
            settings = GameSettings.from_dict(settings)
        code = generate_code()
        while code in self.sessions:
            code = generate_code()

        session = GameSession(code, self.broadcaster, settings, log_dir=self.env.log_dir)
        if self.on_create is not None:
            self.on_create(session)
        host = session.add_player(host_name, connection)
        self.sessions[code] = session
        logger.info("[Game] Created game %s for %s", code, host.name)
        return session, host

    def get(self, code: str) -> GameSession:
        try:
            return self.sessions[code]
        except KeyError:
            raise SessionNotFound(code) from None

    def join(self, code: str, name: str, connection: Any = None) -> tuple[GameSession, Player]:
        session = self.get(code)
        if session.state != GamePhase.LOBBY:
            raise ValidationRejection("Game not found or started")
        return session, session.add_player(name, connection)

    def rejoin(self, code: str, player_id: str, connection: Any = None) -> tuple[GameSession, Player]:
        session = self.get(code)
        player = session.rejoin(player_id, connection)
        if player is None:
            raise ValidationRejection("Player not found in this game.")
        return session, player

    def remove(self, code: str) -> GameSession:
        """Drop a session, stopping its timer and NPC tasks."""
        session = self.sessions.pop(code, None)
        if session is None:
            raise SessionNotFound(code)
        session.timer.cancel()
        if session.transcript is not None:
            session.transcript.stop()
        if session.npc_driver is not None:
            session.npc_driver.cancel_all()
        logger.info("[Game] Removed game %s", code)
        return session

    def __len__(self) -> int:
        return len(self.sessions)

    def __contains__(self, code: str) -> bool:
        return code in self.sessions
