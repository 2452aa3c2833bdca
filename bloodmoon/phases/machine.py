"""The phase state machine: the only thing that moves a session between phases.

LOBBY -> NIGHT -> DAY_DISCUSS -> DAY_VOTE -> NIGHT ... until GAME_OVER.
Each timed phase hands its expiry callback to the session's ``PhaseTimer``;
a host skip fires that same callback, so both paths resolve identically.
"""

import logging
from typing import TYPE_CHECKING

from ..errors import InvariantViolation, ValidationRejection
from ..models import Notice, NoticeCategory
from ..services import NightResolver, Winner, evaluate_winner, win_notice
from ..types import GamePhase

if TYPE_CHECKING:
    from ..game import GameSession

logger = logging.getLogger(__name__)


class PhaseMachine:
    """Sequences roster, ledger, resolvers and timer for one session."""

    def __init__(self, session: "GameSession") -> None:
        self.session = session
        self.night_resolver = NightResolver()

    def start_game(self) -> None:
        s = self.session
        if s.state != GamePhase.LOBBY:
            raise ValidationRejection("The game has already started.")
        if not s.roster.players:
            raise ValidationRejection("Cannot start a game with no players.")

        s.roster.assign_roles(s.settings.role_config)
        s.roster.apply_npc_restrictions(s.settings.npc_disallowed_roles)
        s.roster.assign_fake_roles()
        for player in s.roster.players:
            s.broadcaster.send_role(player.id, player.role, player.alignment)
        logger.info("[Game] Game %s started with %s players", s.code, len(s.roster.players))
        self.start_night()

    def start_night(self) -> None:
        s = self.session
        s.state = GamePhase.NIGHT
        s.round += 1
        s.ledger.clear()
        s.votes.clear()
        s.jail.reset()
        logger.info("[Game] Night %s begins", s.round)
        self._enter(s.settings.night_time, self.resolve_night)

    def resolve_night(self) -> None:
        s = self.session
        if s.state != GamePhase.NIGHT:
            raise InvariantViolation(f"Night resolution requested during {s.state.value}")
        result = self.night_resolver.resolve(s.roster, s.ledger, s.jail, s.round)
        if result is None:
            return
        s.deliver(result.notices)
        if result.turned_id is not None:
            turned = s.roster.get(result.turned_id)
            s.broadcaster.send_role(turned.id, turned.role, turned.alignment)

        if self.check_winner():
            return
        self.start_day_discuss()

    def start_day_discuss(self) -> None:
        s = self.session
        s.state = GamePhase.DAY_DISCUSS
        if s.jail.pending_guilt_death:
            jailor = s.roster.get(s.jail.jailor_id)
            if jailor is not None and jailor.alive:
                jailor.alive = False
                logger.info("[Game] %s died of guilt", jailor.name)
                s.deliver(
                    [
                        Notice.public(
                            f"{jailor.name} was consumed by guilt and died!",
                            NoticeCategory.DEATH,
                            s.round,
                        )
                    ]
                )
            s.jail.pending_guilt_death = False
        s.jail.reset()
        s.ledger.clear()

        if self.check_winner():
            return
        self._enter(s.settings.discussion_time, self.start_day_vote)

    def start_day_vote(self) -> None:
        s = self.session
        s.state = GamePhase.DAY_VOTE
        s.votes.clear()
        self._enter(s.settings.vote_time, self.resolve_voting)

    def resolve_voting(self) -> None:
        s = self.session
        if s.state != GamePhase.DAY_VOTE:
            raise InvariantViolation(f"Vote resolution requested during {s.state.value}")
        result = s.lynch.resolve(s.round, reveal_role=s.settings.reveal_role)
        s.deliver(result.notices)
        if result.jester_win:
            self.finish(Winner.JESTER)
            return
        if self.check_winner():
            return
        self.start_night()

    def check_winner(self) -> bool:
        """Finish the game if a faction has won. Returns True if it ended."""
        winner = evaluate_winner(self.session.roster)
        if winner is None:
            return False
        self.finish(winner)
        return True

    def finish(self, winner: Winner) -> None:
        s = self.session
        if s.state == GamePhase.GAME_OVER:
            return
        s.timer.cancel()
        s.state = GamePhase.GAME_OVER
        s.winner = winner
        logger.info("[Game] Game %s over: %s", s.code, winner.value)
        s.deliver([win_notice(winner, s.round)])
        s.broadcast()
        s.notify_phase()
        s.on_game_over()

    def skip(self) -> bool:
        s = self.session
        if s.state in (GamePhase.LOBBY, GamePhase.GAME_OVER):
            raise ValidationRejection("There is no timer to skip.")
        return s.timer.skip()

    def _enter(self, seconds: int, on_expire) -> None:
        s = self.session
        s.timer.start(seconds, on_expire)
        s.broadcast()
        s.notify_phase()
