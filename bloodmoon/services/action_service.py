"""Validation and intake of night action submissions."""

import logging

from ..errors import ValidationRejection
from ..models import JailState, NightAction, NightActionLedger, Notice, NoticeCategory
from ..player import Player
from ..roles import ActionType, can_perform
from .roster_service import RosterManager

logger = logging.getLogger(__name__)


class NightActionService:
    """Validates night submissions and applies them to the ledger.

    Every method either returns the notices produced by a successful
    submission or raises ``ValidationRejection`` without touching state.
    """

    def __init__(self, roster: RosterManager, ledger: NightActionLedger, jail: JailState) -> None:
        self.roster = roster
        self.ledger = ledger
        self.jail = jail

    def submit(
        self,
        actor_id: str,
        action_type: ActionType,
        target_id: str | None = None,
        round_number: int = 0,
        cancel: bool = False,
    ) -> list[Notice]:
        """Validate and record a night action for ``round_number``."""
        actor = self.roster.get(actor_id)
        if actor is None:
            raise ValidationRejection("You are not part of this game.")
        if not actor.alive:
            raise ValidationRejection("Dead players cannot act.")
        if not can_perform(actor.role, action_type):
            raise ValidationRejection(f"Your role cannot {action_type.value.lower()}.")

        if action_type == ActionType.CANCEL_EXECUTE:
            return self._cancel_execute(actor, round_number)
        if action_type == ActionType.EXECUTE:
            return self._execute(actor, round_number)

        if self.jail.jailed_player_id == actor.id:
            raise ValidationRejection("🔒 You are in jail and cannot perform your night action.")

        if cancel or target_id is None:
            return self._cancel(actor, action_type, round_number)

        target = self.roster.get(target_id)
        if target is None or not target.alive:
            raise ValidationRejection("Invalid target.")

        if action_type == ActionType.JAIL:
            return self._jail(actor, target, round_number)

        self._check_preconditions(actor, action_type, target, round_number)
        self.ledger.put(NightAction(actor_id=actor.id, type=action_type, target_id=target.id))
        logger.debug("[Game] %s submitted %s on %s", actor.name, action_type.value, target.name)

        notices = []
        if action_type == ActionType.BITE:
            notices += self._tell_other_biters(
                actor, f"🧛 {actor.name} voted to turn {target.name}", round_number
            )
        return notices

    def _check_preconditions(
        self, actor: Player, action_type: ActionType, target: Player, round_number: int
    ) -> None:
        if action_type == ActionType.HEAL and (actor.heals_remaining or 0) <= 0:
            raise ValidationRejection("You have no heals remaining!")
        if action_type == ActionType.BITE:
            if round_number % 2 != 0:
                raise ValidationRejection("Vampires can only turn someone on even nights.")
            if target.is_evil():
                raise ValidationRejection("Cannot turn a fellow vampire!")
        if action_type == ActionType.FRAME and target.is_evil():
            raise ValidationRejection("Cannot frame a fellow vampire!")

    def _cancel(self, actor: Player, action_type: ActionType, round_number: int) -> list[Notice]:
        if action_type == ActionType.FRAME:
            self.ledger.remove(actor.id, frame=True)
            return []
        removed = self.ledger.remove(actor.id)
        if removed is not None and removed.type == ActionType.BITE:
            return self._tell_other_biters(
                actor, f"🧛 {actor.name} cancelled their vote", round_number
            )
        return []

    def _jail(self, jailor: Player, target: Player, round_number: int) -> list[Notice]:
        if target.id == jailor.id:
            raise ValidationRejection("You cannot jail yourself!")

        # A new prisoner voids any execution decided for the previous one
        previous = self.ledger.get(jailor.id)
        if previous is not None and previous.type == ActionType.EXECUTE:
            self.ledger.remove(jailor.id)
        self.jail.lock_up(jailor.id, target.id)

        notices = []
        for purged in self.ledger.purge(target.id):
            if purged.type == ActionType.BITE:
                notices += self._tell_other_biters(
                    target, f"🧛 {target.name}'s vote was cancelled (jailed)", round_number
                )
        logger.info("[Game] %s jailed %s", jailor.name, target.name)

        notices.append(
            Notice.private(
                jailor.id,
                f"🔒 You have jailed {target.name}. You may now interrogate them.",
                NoticeCategory.JAIL,
                round_number,
            )
        )
        notices.append(
            Notice.private(
                target.id,
                "🔒 You have been jailed! The Jailor wishes to speak with you. "
                "Your night action has been cancelled.",
                NoticeCategory.JAIL,
                round_number,
            )
        )
        return notices

    def _execute(self, jailor: Player, round_number: int) -> list[Notice]:
        if self.jail.jailor_id != jailor.id or self.jail.jailed_player_id is None:
            raise ValidationRejection("You have no prisoner to execute.")
        prisoner = self.roster.get(self.jail.jailed_player_id)
        self.ledger.put(
            NightAction(actor_id=jailor.id, type=ActionType.EXECUTE, target_id=prisoner.id)
        )
        return [
            Notice.private(
                jailor.id,
                f"☠️ You have decided to execute {prisoner.name}.",
                NoticeCategory.JAIL,
                round_number,
            ),
            Notice.private(
                prisoner.id,
                "☠️ The Jailor has decided to execute you!",
                NoticeCategory.JAIL,
                round_number,
            ),
        ]

    def _cancel_execute(self, jailor: Player, round_number: int) -> list[Notice]:
        if self.jail.jailor_id != jailor.id:
            raise ValidationRejection("You have no prisoner.")
        current = self.ledger.get(jailor.id)
        if current is None or current.type != ActionType.EXECUTE:
            return []
        self.ledger.remove(jailor.id)
        prisoner = self.roster.get(self.jail.jailed_player_id)
        return [
            Notice.private(
                jailor.id,
                f"❌ Execution cancelled. {prisoner.name} will be released at dawn.",
                NoticeCategory.JAIL,
                round_number,
            ),
            Notice.private(
                prisoner.id,
                "😌 The Jailor has decided to spare you.",
                NoticeCategory.JAIL,
                round_number,
            ),
        ]

    def _tell_other_biters(self, actor: Player, content: str, round_number: int) -> list[Notice]:
        """Tell the rest of the vampire team about a vote change."""
        others = [v.id for v in self.roster.alive_biters() if v.id != actor.id]
        if not others:
            return []
        return [Notice.private(others, content, NoticeCategory.TEAM_INFO, round_number)]
