"""Day voting and lynch resolution."""

import logging
import random

from ..errors import ValidationRejection
from ..models import LynchResult, Notice, NoticeCategory, VoteMap, VotingHistory
from ..roles import Role
from .roster_service import RosterManager

logger = logging.getLogger(__name__)


def meets_threshold(count: int, living_count: int) -> bool:
    """A lynch needs at least half of the living, exact half included."""
    return count >= living_count / 2


class LynchResolver:
    """Records day votes and resolves them at the end of DAY_VOTE."""

    def __init__(self, roster: RosterManager, votes: VoteMap) -> None:
        self.roster = roster
        self.votes = votes
        self.history = VotingHistory()

    def cast(self, voter_id: str, target_id: str | None) -> None:
        """Cast, change or (with ``None``) retract a day vote."""
        voter = self.roster.get(voter_id)
        if voter is None or not voter.alive:
            raise ValidationRejection("Dead players cannot vote.")
        if target_id is None:
            self.votes.retract(voter_id)
            return
        target = self.roster.get(target_id)
        if target is None or not target.alive:
            raise ValidationRejection("Invalid vote target.")
        self.votes.cast(voter_id, target_id)
        logger.debug("[Game] %s votes for %s", voter.name, target.name)

    def vote_counts(self) -> dict[str, int]:
        """Current votes per target from living voters."""
        return dict(self.votes.tally(self._living_ids()))

    def resolve(self, round_number: int, reveal_role: bool = True) -> LynchResult:
        """Tally the votes and lynch whoever reached the threshold.

        When several targets qualify at once the one with the most votes is
        chosen, with remaining ties broken uniformly at random.
        """
        living_ids = self._living_ids()
        tally = dict(self.votes.tally(living_ids))
        result = LynchResult(round=round_number, tally=tally, living_count=len(living_ids))
        self.history.add(round_number, self.votes.votes(round_number))

        result.qualifying = [
            target for target, count in tally.items() if meets_threshold(count, result.living_count)
        ]
        if not result.qualifying:
            result.notices.append(
                Notice.public("No one received enough votes.", NoticeCategory.VOTE, round_number)
            )
            return result

        top = max(tally[t] for t in result.qualifying)
        leaders = [t for t in result.qualifying if tally[t] == top]
        result.lynched_id = random.choice(leaders)

        victim = self.roster.get(result.lynched_id)
        victim.alive = False
        logger.info("[Game] %s lynched with %s votes", victim.name, top)
        result.notices.append(
            Notice.public(f"{victim.name} was lynched!", NoticeCategory.DEATH, round_number)
        )

        if victim.role == Role.JESTER:
            result.jester_win = True
            return result

        if reveal_role:
            result.notices.append(
                Notice.public(
                    f"{victim.name} was a {victim.role.value}", NoticeCategory.ROLE, round_number
                )
            )
        return result

    def _living_ids(self) -> set[str]:
        return {p.id for p in self.roster.alive()}
