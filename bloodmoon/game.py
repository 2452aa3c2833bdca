"""Game session: the aggregate that owns one room's state.

Every mutation goes through a method here. Methods that take player input
return ``True`` on success; an illegal request is answered with a private
notice to the requester and ``False``, leaving state untouched.
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Optional

from .config import GameSettings, RoleConfig
from .errors import ValidationRejection
from .models import JailState, NightActionLedger, Notice, NoticeCategory, NoticeLog, VoteMap
from .phases import PhaseMachine, PhaseTimer
from .player import Player
from .protocols import Broadcaster
from .roles import ActionType, Role
from .services import (
    LynchResolver,
    NightActionService,
    RosterManager,
    TranscriptWriter,
    VisibilityProjector,
    Winner,
    current_session,
)
from .services.visibility_service import PlayerRoleInfo
from .types import GamePhase, NightActionPayload, PhaseStamp, RoleConfigPayload

if TYPE_CHECKING:
    from .npc import NPCDriver

logger = logging.getLogger(__name__)

CHAT_HISTORY_LIMIT = 50


class GameSession:
    """One game room: roster, night ledger, jail, votes, timer and logs."""

    def __init__(
        self,
        code: str,
        broadcaster: Broadcaster,
        settings: GameSettings | None = None,
        log_dir: str | None = None,
    ) -> None:
        self.code = code
        self.broadcaster = broadcaster
        self.settings = settings or GameSettings()
        self.host_id: str | None = None

        self.state = GamePhase.LOBBY
        self.round = 0
        self.winner: Winner | None = None
        self.logs: list[str] = []
        self.chat: list[str] = []
        self.notices = NoticeLog()

        self.roster = RosterManager()
        self.ledger = NightActionLedger()
        self.jail = JailState()
        self.votes = VoteMap()
        self.actions = NightActionService(self.roster, self.ledger, self.jail)
        self.lynch = LynchResolver(self.roster, self.votes)
        self.projector = VisibilityProjector()
        self.timer = PhaseTimer(on_tick=self._on_tick)
        self.machine = PhaseMachine(self)

        self.npc_driver: Optional["NPCDriver"] = None
        self.transcript = TranscriptWriter(code, log_dir) if log_dir else None
        self.transcript_path = None

    # ----- lifecycle -----

    def add_player(self, name: str, connection: Any = None, player_id: str | None = None) -> Player:
        """Seat a human player. The first one becomes host."""
        if self.state != GamePhase.LOBBY:
            raise ValidationRejection("Game not found or started")
        player = self.roster.add_player(name, connection, player_id)
        if self.host_id is None:
            self.host_id = player.id
        logger.info("[Game] %s joined %s", player.name, self.code)
        self.broadcast()
        return player

    def rejoin(self, player_id: str, connection: Any = None) -> Player | None:
        """Re-bind a returning player's connection."""
        player = self.roster.get(player_id)
        if player is None:
            return None
        player.connection = connection
        player.connected = True
        if self.state != GamePhase.LOBBY and player.role is not None:
            self.broadcaster.send_role(player.id, player.role, player.alignment)
        self.broadcast()
        return player

    def disconnect(self, player_id: str) -> None:
        player = self.roster.get(player_id)
        if player is not None:
            player.connected = False
            player.connection = None

    def add_npc(self, requester_id: str, name: str | None = None) -> bool:
        def _add() -> None:
            self._require_host(requester_id)
            if self.state != GamePhase.LOBBY:
                raise ValidationRejection("NPCs can only be added in the lobby.")
            if name is None and self.npc_driver is not None:
                npc = self.npc_driver.create_npc()
            else:
                npc = self.roster.add_npc(name)
            logger.info("[Game] Added NPC %s", npc.name)
            self.broadcast()

        return self._attempt(requester_id, _add)

    def kick(self, requester_id: str, target_id: str) -> bool:
        def _kick() -> None:
            self._require_host(requester_id)
            if target_id == requester_id:
                raise ValidationRejection("You cannot kick yourself.")
            if self.roster.get(target_id) is None:
                raise ValidationRejection("Invalid target.")
            self.broadcaster.send_kicked(target_id)
            self._remove(target_id)

        return self._attempt(requester_id, _kick)

    def leave(self, player_id: str) -> None:
        """A player leaves for good. Mid-game this counts as a death."""
        if self.roster.get(player_id) is not None:
            self._remove(player_id)

    def start(self, requester_id: str, role_config: RoleConfigPayload | None = None) -> bool:
        def _start() -> None:
            self._require_host(requester_id)
            if role_config is not None:
                self.settings.role_config = RoleConfig.from_dict(role_config)
            if self.transcript is not None:
                self.transcript.start()
            self.machine.start_game()

        return self._attempt(requester_id, _start)

    def end_game(self, requester_id: str) -> bool:
        def _end() -> None:
            self._require_host(requester_id)
            self.machine.finish(Winner.HOST_ENDED)

        return self._attempt(requester_id, _end)

    def skip_timer(self, requester_id: str) -> bool:
        def _skip() -> None:
            self._require_host(requester_id)
            self.machine.skip()

        return self._attempt(requester_id, _skip)

    # ----- per-round actions -----

    def submit_night_action(
        self,
        player_id: str,
        action_type: ActionType | str,
        target_id: str | None = None,
        cancel: bool = False,
    ) -> bool:
        def _submit() -> None:
            if self.state != GamePhase.NIGHT:
                raise ValidationRejection("Night actions can only be taken at night.")
            try:
                kind = ActionType(action_type)
            except ValueError:
                raise ValidationRejection(f"Unknown action {action_type}.") from None
            notices = self.actions.submit(player_id, kind, target_id, self.round, cancel)
            self.deliver(notices)
            self.broadcast()
            if kind == ActionType.JAIL and self.jail.active and self.npc_driver is not None:
                self.npc_driver.on_jailed()

        return self._attempt(player_id, _submit)

    def handle_night_action(self, player_id: str, payload: NightActionPayload) -> bool:
        """Unpack a client's night action message."""
        return self.submit_night_action(
            player_id,
            payload.get("type", ""),
            payload.get("targetId"),
            bool(payload.get("cancel", False)),
        )

    def cast_vote(self, player_id: str, target_id: str | None) -> bool:
        def _vote() -> None:
            if self.state != GamePhase.DAY_VOTE:
                raise ValidationRejection("Voting is not open.")
            self.lynch.cast(player_id, target_id)
            self.broadcast()

        return self._attempt(player_id, _vote)

    def send_jail_message(self, player_id: str, message: str) -> bool:
        def _post() -> None:
            if self.state != GamePhase.NIGHT or not self.jail.involves(player_id):
                raise ValidationRejection("You are not in the jail.")
            if not message.strip():
                raise ValidationRejection("Empty message.")
            self.jail.post(player_id, message)
            self.broadcast()
            if self.npc_driver is not None:
                self.npc_driver.on_jail_message(player_id)

        return self._attempt(player_id, _post)

    def post_chat(self, player_id: str, message: str) -> bool:
        """Day discussion chat, used by NPCs as conversation context."""

        def _chat() -> None:
            player = self.roster.get(player_id)
            if player is None or not player.alive:
                raise ValidationRejection("Dead players cannot talk.")
            if self.state not in (GamePhase.DAY_DISCUSS, GamePhase.DAY_VOTE):
                raise ValidationRejection("Chat is only open during the day.")
            if not message.strip():
                raise ValidationRejection("Empty message.")
            self.chat.append(f"{player.name}: {message.strip()}")
            del self.chat[:-CHAT_HISTORY_LIMIT]
            self.broadcast()
            if self.npc_driver is not None:
                self.npc_driver.on_chat(player_id, message)

        return self._attempt(player_id, _chat)

    # ----- host tools -----

    def get_player_role(self, requester_id: str, target_id: str) -> PlayerRoleInfo | None:
        try:
            self._require_host(requester_id)
        except ValidationRejection as e:
            self.send_private(requester_id, e.reason)
            return None
        target = self.roster.get(target_id)
        if target is None:
            return None
        return PlayerRoleInfo.from_player(target)

    def change_player_role(self, requester_id: str, target_id: str, role: Role | str) -> bool:
        def _change() -> None:
            self._require_host(requester_id)
            try:
                new_role = Role(role)
            except ValueError:
                raise ValidationRejection(f"Unknown role {role}.") from None
            target = self.roster.override_role(target_id, new_role)
            if target is None:
                raise ValidationRejection("Invalid target.")
            logger.info("[Game] Host changed %s's role to %s", target.name, new_role.value)
            self.broadcaster.send_role(target.id, target.role, target.alignment)
            self.send_private(target.id, f"🎭 Your role has been changed to {new_role.value}!")
            self.broadcast()

        return self._attempt(requester_id, _change)

    def set_player_alive(self, requester_id: str, target_id: str, alive: bool) -> bool:
        def _set() -> None:
            self._require_host(requester_id)
            target = self.roster.get(target_id)
            if target is None:
                raise ValidationRejection("Invalid target.")
            target.alive = alive
            if alive:
                self.send_private(target.id, "😇 You have been revived by the host!")
                line = f"The host revived {target.name}."
            else:
                self.send_private(target.id, "💀 You have been killed by the host!")
                line = f"The host struck down {target.name}."
            self.deliver([Notice.public(line, NoticeCategory.DEATH, self.round)])
            if not alive and self.state not in (GamePhase.LOBBY, GamePhase.GAME_OVER):
                if self.machine.check_winner():
                    return
            self.broadcast()

        return self._attempt(requester_id, _set)

    # ----- output -----

    def deliver(self, notices: list[Notice]) -> None:
        """Record notices and push them to their audience."""
        for notice in notices:
            self.notices.add(notice)
            if notice.is_public:
                self.logs.append(notice.content)
                self.broadcaster.send_log(self.code, notice.content)
                continue
            for player_id in notice.visibility.targets:
                player = self.roster.get(player_id)
                if player is not None and not player.is_npc:
                    self.broadcaster.send_private(player_id, notice.content)

    def send_private(self, player_id: str, text: str) -> None:
        self.deliver([Notice.private(player_id, text, NoticeCategory.REJECTION, self.round)])

    def broadcast(self) -> None:
        """Send every connected human their own redacted snapshot."""
        for player in self.roster.players:
            if player.is_npc or not player.connected:
                continue
            self.broadcaster.send_state(player.id, self.projector.project(self, player))

    def view_for(self, player_id: str):
        player = self.roster.get(player_id)
        if player is None:
            return None
        return self.projector.project(self, player)

    # ----- phase hooks -----

    def current_stamp(self) -> PhaseStamp:
        return PhaseStamp(self.state, self.round)

    def is_current(self, stamp: PhaseStamp) -> bool:
        return stamp == self.current_stamp()

    def notify_phase(self) -> None:
        if self.npc_driver is not None:
            self.npc_driver.on_phase(self.current_stamp())

    def on_game_over(self) -> None:
        if self.npc_driver is not None:
            self.npc_driver.cancel_all()
        if self.transcript is not None and self.transcript_path is None:
            self.transcript_path = self.transcript.save(self.roster.players)

    # ----- internals -----

    def _attempt(self, player_id: str, operation: Callable[[], None]) -> bool:
        token = current_session.set(self.code)
        try:
            operation()
        except ValidationRejection as e:
            logger.debug("[Game] Rejected request from %s: %s", player_id, e.reason)
            self.send_private(player_id, e.reason)
            return False
        finally:
            current_session.reset(token)
        return True

    def _require_host(self, player_id: str) -> None:
        if player_id != self.host_id:
            raise ValidationRejection("Only the host can do that.")

    def _remove(self, player_id: str) -> None:
        """Take a player out and drop everything that still refers to them.

        In the lobby the seat is deleted. Once roles are dealt the seat is
        kept and the player is marked dead, so the win condition can be
        re-checked against the remaining alignments.
        """
        self.ledger.purge(player_id)
        self.ledger.drop_targeting(player_id)
        self.votes.retract(player_id)
        for voter in [p.id for p in self.roster.players if self.votes.target_of(p.id) == player_id]:
            self.votes.retract(voter)
        if self.jail.involves(player_id):
            if self.jail.jailor_id is not None:
                self.ledger.remove(self.jail.jailor_id)
            self.jail.reset()

        player = self.roster.get(player_id)
        in_game = self.state not in (GamePhase.LOBBY, GamePhase.GAME_OVER)
        was_alive = player.alive
        if self.state == GamePhase.LOBBY:
            self.roster.remove(player_id)
        else:
            player.alive = False
            player.connected = False
            player.connection = None
        logger.info("[Game] %s left %s", player.name, self.code)

        if player_id == self.host_id:
            humans = [p for p in self.roster.players if not p.is_npc and p.id != player_id]
            self.host_id = humans[0].id if humans else None
        if in_game and was_alive:
            line = f"{player.name} left the game."
            self.deliver([Notice.public(line, NoticeCategory.DEATH, self.round)])
            if self.machine.check_winner():
                return
        self.broadcast()

    def _on_tick(self, seconds: int) -> None:
        self.broadcaster.send_timer(self.code, seconds)
