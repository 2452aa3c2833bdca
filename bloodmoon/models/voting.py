"""Day vote tracking."""

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass
class Vote:
    """A single day vote cast by a player."""

    voter: str
    target: str
    round_number: int

    def __repr__(self) -> str:
        return f"Vote({self.voter} → {self.target})"


class VoteMap:
    """Current day votes, voter id → target id.

    Retracting a vote removes the entry rather than storing an empty target.
    """

    def __init__(self) -> None:
        self._votes: dict[str, str] = {}

    def cast(self, voter_id: str, target_id: str) -> None:
        self._votes[voter_id] = target_id

    def retract(self, voter_id: str) -> bool:
        """Remove a voter's vote. Returns True if there was one."""
        return self._votes.pop(voter_id, None) is not None

    def target_of(self, voter_id: str) -> str | None:
        return self._votes.get(voter_id)

    def count_for(self, target_id: str) -> int:
        return sum(1 for t in self._votes.values() if t == target_id)

    def tally(self, eligible_voters: set[str] | None = None) -> Counter:
        """Count votes per target, optionally only from eligible voters."""
        return Counter(
            target
            for voter, target in self._votes.items()
            if eligible_voters is None or voter in eligible_voters
        )

    def votes(self, round_number: int) -> list[Vote]:
        return [Vote(voter=v, target=t, round_number=round_number) for v, t in self._votes.items()]

    def clear(self) -> None:
        self._votes.clear()

    def __len__(self) -> int:
        return len(self._votes)

    def __contains__(self, voter_id: str) -> bool:
        return voter_id in self._votes


@dataclass
class VotingHistory:
    """Votes from every finished day, used as NPC context."""

    rounds: dict[int, list[Vote]] = field(default_factory=dict)

    def add(self, round_number: int, votes: list[Vote]) -> None:
        self.rounds[round_number] = votes

    def describe(self, name_of: Callable[[str], str]) -> list[str]:
        """One line per finished day, e.g. ``Day 1: Ivy → Vlad, Doc → Vlad``."""
        lines = []
        for round_number in sorted(self.rounds):
            cast = [f"{name_of(v.voter)} → {name_of(v.target)}" for v in self.rounds[round_number]]
            lines.append(f"Day {round_number}: {', '.join(cast) or 'no votes'}")
        return lines
