"""Per-round store of submitted night actions."""

from collections import Counter

from ..roles import ActionType
from .actions import NightAction


class NightActionLedger:
    """Night actions awaiting resolution, keyed by actor.

    FRAME entries live under their own key so a Vampire Framer can hold a
    FRAME and a BITE in the same round. Every other action type shares the
    actor's single slot.
    """

    def __init__(self) -> None:
        self._actions: dict[str, NightAction] = {}
        self._frames: dict[str, NightAction] = {}

    def put(self, action: NightAction) -> NightAction | None:
        """Insert or overwrite an actor's entry, returning the replaced one."""
        slot = self._frames if action.type == ActionType.FRAME else self._actions
        previous = slot.get(action.actor_id)
        slot[action.actor_id] = action
        return previous

    def get(self, actor_id: str) -> NightAction | None:
        """Get an actor's non-FRAME entry."""
        return self._actions.get(actor_id)

    def get_frame(self, actor_id: str) -> NightAction | None:
        return self._frames.get(actor_id)

    def remove(self, actor_id: str, frame: bool = False) -> NightAction | None:
        """Remove an actor's entry (or their FRAME entry)."""
        slot = self._frames if frame else self._actions
        return slot.pop(actor_id, None)

    def purge(self, actor_id: str) -> list[NightAction]:
        """Remove every entry an actor holds, returning what was removed."""
        removed = []
        for slot in (self._actions, self._frames):
            action = slot.pop(actor_id, None)
            if action is not None:
                removed.append(action)
        return removed

    def drop_targeting(self, target_id: str) -> list[NightAction]:
        """Remove every entry aimed at ``target_id``."""
        removed = []
        for slot in (self._actions, self._frames):
            for actor_id in [a for a, action in slot.items() if action.target_id == target_id]:
                removed.append(slot.pop(actor_id))
        return removed

    def entries(self) -> list[NightAction]:
        """All entries in submission order, FRAME entries last."""
        return list(self._actions.values()) + list(self._frames.values())

    def bite_votes(self) -> Counter:
        """Count BITE entries per target."""
        return Counter(a.target_id for a in self._actions.values() if a.type == ActionType.BITE)

    def clear(self) -> None:
        self._actions.clear()
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._actions) + len(self._frames)

    def __contains__(self, actor_id: str) -> bool:
        return actor_id in self._actions or actor_id in self._frames
