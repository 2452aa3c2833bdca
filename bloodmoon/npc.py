"""NPC driver: turns oracle suggestions into ordinary player requests.

Every suggestion is fetched in a background task after a jittered delay, so
NPCs act on a human-like schedule and never block the event loop. A task
remembers the phase and round it was started in and drops its result if
the session has moved on by the time the oracle answers. Whatever survives
goes through the same session methods, and so the same validation, as a
human's request.
"""

import asyncio
import logging
import random
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any, Optional

from .errors import CollaboratorFailure
from .player import Player
from .protocols import DecisionOracle
from .roles import ActionType
from .services import NPC_PREFIX, ContextBuilder, current_session
from .types import GamePhase, PhaseStamp
from .voice import SpeechSynthesizer, UnavailableVoice, speak

if TYPE_CHECKING:
    from .game import GameSession

logger = logging.getLogger(__name__)

# Messages after which an NPC jailor and an NPC prisoner stop answering each other
JAIL_EXCHANGE_LIMIT = 6


class NPCDriver:
    """Schedules and applies oracle suggestions for every NPC in a session."""

    def __init__(
        self,
        session: "GameSession",
        oracle: DecisionOracle,
        voice: SpeechSynthesizer | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.session = session
        self.oracle = oracle
        self.voice = voice or UnavailableVoice()
        self.rng = rng or random.Random()
        self.context = ContextBuilder(session)
        self.tasks: set[asyncio.Task] = set()
        session.npc_driver = self

    # ----- hooks called by the session -----

    def create_npc(self) -> Player:
        """Seat an NPC now and fill in a generated profile later."""
        npc = self.session.roster.add_npc()
        self._spawn(self._fill_profile(npc), f"profile:{npc.id}")
        return npc

    def on_phase(self, stamp: PhaseStamp) -> None:
        if stamp.state == GamePhase.GAME_OVER:
            self.cancel_all()
            return
        for npc in self._living_npcs():
            if stamp.state == GamePhase.NIGHT:
                self._spawn(self._night_action(npc, stamp), f"night:{npc.name}")
            elif stamp.state == GamePhase.DAY_DISCUSS:
                self._spawn(self._chat(npc, stamp, addressed=False), f"chat:{npc.name}")
            elif stamp.state == GamePhase.DAY_VOTE:
                self._spawn(self._vote(npc, stamp), f"vote:{npc.name}")

    def on_jailed(self) -> None:
        jail = self.session.jail
        jailor = self.session.roster.get(jail.jailor_id)
        if jailor is not None and jailor.is_npc:
            stamp = self.session.current_stamp()
            self._spawn(self._interrogate(jailor, stamp), f"jail:{jailor.name}")

    def on_jail_message(self, sender_id: str) -> None:
        jail = self.session.jail
        sender = self.session.roster.get(sender_id)
        other_id = jail.jailed_player_id if sender_id == jail.jailor_id else jail.jailor_id
        other = self.session.roster.get(other_id)
        if other is None or not other.is_npc:
            return
        if sender is not None and sender.is_npc and len(jail.chat) >= JAIL_EXCHANGE_LIMIT:
            return
        stamp = self.session.current_stamp()
        self._spawn(self._jail_reply(other, stamp), f"jail:{other.name}")

    def on_chat(self, sender_id: str, message: str) -> None:
        """Let NPCs answer humans who mention them by name."""
        sender = self.session.roster.get(sender_id)
        if sender is None or sender.is_npc:
            return
        stamp = self.session.current_stamp()
        lowered = message.lower()
        for npc in self._living_npcs():
            short_name = npc.name.removeprefix(NPC_PREFIX).lower()
            if short_name and short_name in lowered:
                self._spawn(self._chat(npc, stamp, addressed=True), f"reply:{npc.name}")

    def cancel_all(self) -> None:
        for task in list(self.tasks):
            task.cancel()
        self.tasks.clear()

    # ----- tasks -----

    async def _fill_profile(self, npc: Player) -> None:
        current_session.set(self.session.code)
        profile = await self._call(
            self.oracle.generate_profile,
            sorted(self._taken_names(npc)),
            self.session.settings.nationality,
        )
        if profile is None or self.session.roster.get(npc.id) is None:
            return
        if self.session.state != GamePhase.LOBBY:
            return
        # Other profiles may have claimed the name while this one was generated
        if profile.name.lower() in {n.lower() for n in self._taken_names(npc)}:
            logger.info("[AI] Dropping profile %s, name already taken", profile.name)
            return
        npc.name = f"{NPC_PREFIX}{profile.name}"
        npc.personality = profile.personality
        npc.talking_style = profile.talking_style
        npc.background = profile.background
        npc.gender = profile.gender
        self.session.broadcast()

    async def _night_action(self, npc: Player, stamp: PhaseStamp) -> None:
        decision = await self._consult(npc, stamp, self.oracle.suggest_night_action)
        if decision is None:
            return
        action = decision.action_type()
        if action is None or action in (ActionType.EXECUTE, ActionType.CANCEL_EXECUTE):
            return
        target = self._find(decision.target)
        if target is None:
            logger.debug("[AI] %s named no valid target (%s)", npc.name, decision.target)
            return
        self.session.submit_night_action(npc.id, action, target.id)

    async def _vote(self, npc: Player, stamp: PhaseStamp) -> None:
        decision = await self._consult(npc, stamp, self.oracle.suggest_vote)
        if decision is None:
            return
        target = self._find(decision.target)
        if target is not None:
            self.session.cast_vote(npc.id, target.id)

    async def _chat(self, npc: Player, stamp: PhaseStamp, addressed: bool) -> None:
        line = await self._consult(npc, stamp, self.oracle.suggest_chat, addressed)
        if line is None or line.silent:
            return
        if self.session.post_chat(npc.id, line.message):
            await speak(self.session, self.voice, npc.id, line.message)

    async def _interrogate(self, jailor: Player, stamp: PhaseStamp) -> None:
        await self._jail_reply(jailor, stamp)
        decision = await self._consult(jailor, stamp, self.oracle.suggest_execute)
        if decision is not None and decision.execute:
            self.session.submit_night_action(jailor.id, ActionType.EXECUTE)

    async def _jail_reply(self, npc: Player, stamp: PhaseStamp) -> None:
        line = await self._consult(npc, stamp, self.oracle.suggest_jail_message)
        if line is None or line.silent or not self.session.jail.involves(npc.id):
            return
        self.session.send_jail_message(npc.id, line.message)

    # ----- plumbing -----

    async def _consult(
        self, npc: Player, stamp: PhaseStamp, suggest: Callable[..., Any], *args: Any
    ) -> Optional[Any]:
        """Wait a human-ish delay, ask the oracle, and re-check the phase.

        Returns None if the NPC or the phase is no longer current, or if the
        oracle failed.
        """
        current_session.set(self.session.code)
        low, high = self.session.settings.npc_jitter
        await asyncio.sleep(self.rng.uniform(low, high))
        if not self._still_current(npc, stamp):
            return None
        context = self.context.build(npc)
        result = await self._call(suggest, npc, context, *args)
        if not self._still_current(npc, stamp):
            logger.debug("[AI] Dropping stale suggestion for %s from %s", npc.name, stamp)
            return None
        return result

    async def _call(self, fn: Callable[..., Any], *args: Any) -> Optional[Any]:
        """Run a blocking oracle call off the loop, with a timeout."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn, *args), timeout=self.session.settings.oracle_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("[AI] %s timed out", getattr(fn, "__name__", fn))
        except CollaboratorFailure as e:
            logger.warning("[AI] %s", e)
        except Exception as e:
            logger.warning("[AI] %s failed: %s", getattr(fn, "__name__", fn), e)
        return None

    def _still_current(self, npc: Player, stamp: PhaseStamp) -> bool:
        return (
            self.session.is_current(stamp)
            and self.session.roster.get(npc.id) is npc
            and npc.alive
        )

    def _find(self, name: str | None) -> Player | None:
        if not name:
            return None
        player = self.session.roster.get_by_name(name)
        if player is None:
            player = self.session.roster.get_by_name(f"{NPC_PREFIX}{name}")
        return player

    def _taken_names(self, npc: Player) -> set[str]:
        """Display names of everyone else, without the NPC prefix."""
        return {
            p.name.removeprefix(NPC_PREFIX) for p in self.session.roster.players if p is not npc
        }

    def _living_npcs(self) -> list[Player]:
        return [p for p in self.session.roster.npcs() if p.alive]

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("[AI] No running loop, skipping %s", name)
            coro.close()
            return
        task = loop.create_task(coro, name=name)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
