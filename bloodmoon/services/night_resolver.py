"""Night resolution: turns a round's ledger into outcomes.

Steps run in a fixed order because later steps read what earlier ones
derived:

1. visits (used by Lookouts)
2. heal consumption
3. vampire turn (even rounds only)
4. framing
5. investigations
6. lookouts
7. jail execution or release

The win check and the move to day are the phase machine's job.
"""

import logging
import random

from ..errors import InvariantViolation
from ..models import (
    BiteOutcome,
    JailState,
    NightAction,
    NightActionLedger,
    NightResult,
    Notice,
    NoticeCategory,
)
from ..player import ActionRecord, Player
from ..roles import ActionType, Role
from .roster_service import RosterManager

logger = logging.getLogger(__name__)

# Ledger entries paired with their living actors
LiveActions = list[tuple[Player, NightAction]]


def is_bite_night(round_number: int) -> bool:
    """Vampires may only turn someone on even rounds."""
    return round_number % 2 == 0


class NightResolver:
    """Resolves one night exactly once per round."""

    def __init__(self) -> None:
        self.last_resolved_round: int | None = None

    def resolve(
        self,
        roster: RosterManager,
        ledger: NightActionLedger,
        jail: JailState,
        round_number: int,
    ) -> NightResult | None:
        """Apply every action in the ledger.

        Returns ``None`` if this round was already resolved, so a skip racing a
        natural expiry cannot apply heals, bites or executions twice.
        """
        if self.last_resolved_round == round_number:
            logger.warning("[Game] Night %s already resolved, ignoring", round_number)
            return None
        self.last_resolved_round = round_number

        result = NightResult(round=round_number)
        actions = self._live_actions(roster, ledger, jail)

        self._compute_visits(actions, result)
        healed = self._consume_heals(actions, result)
        if is_bite_night(round_number):
            self._resolve_bite(roster, actions, jail, healed, result)
        self._apply_frames(roster, actions, result)
        self._investigate(roster, actions, result)
        self._lookout(actions, result)
        self._resolve_jail(roster, ledger, jail, result)
        self._record_npc_history(roster, actions, result)
        return result

    def _live_actions(
        self, roster: RosterManager, ledger: NightActionLedger, jail: JailState
    ) -> LiveActions:
        """Pair ledger entries with their actors, dropping actors who died tonight."""
        paired = []
        for action in ledger.entries():
            actor = roster.get(action.actor_id)
            if actor is None:
                raise InvariantViolation(f"Ledger entry for unknown player {action.actor_id}")
            if action.actor_id == jail.jailed_player_id:
                raise InvariantViolation(f"Jailed player {actor.name} still holds {action.type.value}")
            if not actor.alive:
                logger.debug("[Game] Dropping %s from dead actor %s", action.type.value, actor.name)
                continue
            paired.append((actor, action))
        return paired

    def _compute_visits(self, actions: LiveActions, result: NightResult) -> None:
        for actor, action in actions:
            if action.target_id is None:
                continue
            result.visits.setdefault(action.target_id, []).append(actor.name)

    def _consume_heals(self, actions: LiveActions, result: NightResult) -> set[str]:
        """Every heal attempt costs a charge, whether or not it saves anyone."""
        healed = set()
        for actor, action in actions:
            if action.type != ActionType.HEAL:
                continue
            if actor.role != Role.DOCTOR or not actor.heals_remaining:
                continue
            actor.heals_remaining -= 1
            result.heals_spent[actor.id] = result.heals_spent.get(actor.id, 0) + 1
            healed.add(action.target_id)
        return healed

    def _resolve_bite(
        self,
        roster: RosterManager,
        actions: LiveActions,
        jail: JailState,
        healed: set[str],
        result: NightResult,
    ) -> None:
        bites = [a for actor, a in actions if a.type == ActionType.BITE and actor.can_bite()]
        if not bites:
            return

        tally: dict[str, int] = {}
        for bite in bites:
            tally[bite.target_id] = tally.get(bite.target_id, 0) + 1
        max_votes = max(tally.values())
        top_targets = [target for target, count in tally.items() if count == max_votes]

        outcome = BiteOutcome(tally=tally, tied=len(top_targets) > 1)
        outcome.target_id = random.choice(top_targets)
        result.bite = outcome

        team = [v.id for v in roster.alive_evil()]
        if outcome.tied:
            result.notices.append(
                Notice.private(
                    team,
                    "🧛 The vampire vote was tied! A target was picked randomly among the top votes.",
                    NoticeCategory.TEAM_INFO,
                    result.round,
                )
            )

        target = roster.get(outcome.target_id)
        if target is None or not target.alive:
            return
        if target.is_evil():
            outcome.blocked_by = "evil"
            return
        if target.id == jail.jailed_player_id:
            outcome.blocked_by = "jail"
            result.notices.append(
                Notice.private(
                    team,
                    "🧛 Your target could not be found tonight.",
                    NoticeCategory.TEAM_INFO,
                    result.round,
                )
            )
            return
        if target.id in healed:
            outcome.blocked_by = "heal"
            result.notices.append(
                Notice.public(
                    "The vampires tried to attack, but their target was saved by a doctor!",
                    NoticeCategory.NIGHT_RESULT,
                    result.round,
                )
            )
            result.notices.append(
                Notice.private(
                    team, "🧛 Your target was saved by a Doctor!", NoticeCategory.TEAM_INFO, result.round
                )
            )
            saviours = [
                actor.id
                for actor, a in actions
                if a.type == ActionType.HEAL and a.target_id == target.id and actor.id in result.heals_spent
            ]
            result.notices.append(
                Notice.private(
                    saviours,
                    "💉 You successfully saved your target from a vampire attack!",
                    NoticeCategory.NIGHT_RESULT,
                    result.round,
                )
            )
            return

        target.turn()
        outcome.turned = True
        result.turned_id = target.id
        logger.info("[Game] %s was turned into a Vampire", target.name)
        result.notices.append(
            Notice.public(
                "A dark ritual took place... someone's nature has changed.",
                NoticeCategory.NIGHT_RESULT,
                result.round,
            )
        )
        result.notices.append(
            Notice.private(
                target.id,
                "🧛 You have been turned into a Vampire! You are now part of the vampire faction.",
                NoticeCategory.ROLE,
                result.round,
            )
        )
        fellows = [v.name for v in roster.alive_evil() if v.id != target.id]
        if fellows:
            result.notices.append(
                Notice.private(
                    target.id,
                    f"🧛 Your fellow vampires are: {', '.join(fellows)}",
                    NoticeCategory.TEAM_INFO,
                    result.round,
                )
            )

    def _apply_frames(
        self, roster: RosterManager, actions: LiveActions, result: NightResult
    ) -> None:
        for actor, action in actions:
            if action.type != ActionType.FRAME or actor.role != Role.VAMPIRE_FRAMER:
                continue
            target = roster.get(action.target_id)
            if target is None:
                continue
            result.framed.add(target.id)
            result.notices.append(
                Notice.private(
                    actor.id,
                    f"🎭 {target.name} will appear as a Vampire to investigators tonight.",
                    NoticeCategory.ACTION,
                    result.round,
                )
            )

    def _investigate(
        self, roster: RosterManager, actions: LiveActions, result: NightResult
    ) -> None:
        for actor, action in actions:
            if action.type != ActionType.INVESTIGATE:
                continue
            target = roster.get(action.target_id)
            if target is None:
                report = "Unknown"
            elif target.id in result.framed:
                report = f"Target is a {Role.VAMPIRE.value}"
            else:
                report = f"Target is a {target.role.value}"
            result.investigations[actor.id] = report
            result.notices.append(
                Notice.private(actor.id, report, NoticeCategory.NIGHT_RESULT, result.round)
            )

    def _lookout(self, actions: LiveActions, result: NightResult) -> None:
        for actor, action in actions:
            if action.type != ActionType.LOOKOUT:
                continue
            visitors = [
                name for name in result.visits.get(action.target_id, []) if name != actor.name
            ]
            report = f"Visited by: {', '.join(visitors)}" if visitors else "No one visited."
            result.lookouts[actor.id] = report
            result.notices.append(
                Notice.private(actor.id, report, NoticeCategory.NIGHT_RESULT, result.round)
            )

    def _resolve_jail(
        self, roster: RosterManager, ledger: NightActionLedger, jail: JailState, result: NightResult
    ) -> None:
        if not jail.active:
            return
        jailor = roster.get(jail.jailor_id)
        prisoner = roster.get(jail.jailed_player_id)
        if prisoner is None:
            raise InvariantViolation("Jail references a player who is not in the roster")

        decision = ledger.get(jail.jailor_id)
        wants_execute = (
            decision is not None
            and decision.type == ActionType.EXECUTE
            and jailor is not None
            and jailor.alive
        )
        if wants_execute and prisoner.alive:
            prisoner.alive = False
            result.executed_id = prisoner.id
            result.deaths.append(prisoner.id)
            logger.info("[Game] %s executed %s", jailor.name, prisoner.name)
            result.notices.append(
                Notice.public(
                    f"{prisoner.name} was executed by the Jailor.", NoticeCategory.DEATH, result.round
                )
            )
            if prisoner.is_good():
                jail.pending_guilt_death = True
                result.notices.append(
                    Notice.private(
                        jailor.id,
                        "⚠️ You executed an innocent person! Guilt consumes you...",
                        NoticeCategory.JAIL,
                        result.round,
                    )
                )
            else:
                result.notices.append(
                    Notice.private(
                        jailor.id,
                        "🔒 Justice served. The prisoner was guilty.",
                        NoticeCategory.JAIL,
                        result.round,
                    )
                )
            return

        result.released_id = prisoner.id
        result.notices.append(
            Notice.private(
                prisoner.id,
                "🔓 Dawn breaks. The Jailor releases you from jail.",
                NoticeCategory.JAIL,
                result.round,
            )
        )

    def _record_npc_history(
        self, roster: RosterManager, actions: LiveActions, result: NightResult
    ) -> None:
        """Remember what each NPC did tonight so the oracle cannot invent it."""
        for actor, action in actions:
            if not actor.is_npc or action.target_id is None:
                continue
            target = roster.get(action.target_id)
            report = result.investigations.get(actor.id) or result.lookouts.get(actor.id)
            if action.type == ActionType.FRAME:
                report = None
            actor.action_history.append(
                ActionRecord(
                    round=result.round,
                    action=action.type.value,
                    target_name=target.name if target else "unknown",
                    result=report,
                )
            )
