"""Roster management: seats, role pools and role assignment."""

import logging
import random
import secrets

from ..config import JAILOR_MIN_PLAYERS, RoleConfig
from ..player import Player
from ..roles import FAKE_ROLE_CHOICES, Alignment, Role, alignment_for

logger = logging.getLogger(__name__)

# Order in which roles are dropped when an explicit pool is too large
EVIL_TRIM_ORDER = (Role.VAMPIRE_FRAMER, Role.VAMPIRE)
NEUTRAL_TRIM_ORDER = (Role.JESTER,)
GOOD_TRIM_ORDER = (Role.CITIZEN, Role.LOOKOUT, Role.INVESTIGATOR, Role.JAILOR, Role.DOCTOR)

NPC_PREFIX = "[NPC] "

NPC_ADJECTIVES = [
    "Shadow", "Dark", "Blood", "Night", "Crimson", "Silent", "Mystic", "Ancient",
    "Pale", "Eternal", "Grim", "Hollow", "Frost", "Ember", "Storm",
]
NPC_NOUNS = [
    "Hunter", "Walker", "Stalker", "Slayer", "Seeker", "Watcher", "Phantom", "Specter",
    "Raven", "Wolf", "Crow", "Shade", "Wraith", "Spirit", "Ghost",
]


def generate_npc_name() -> str:
    """Random placeholder name like ``[NPC] CrimsonRaven42``."""
    adjective = random.choice(NPC_ADJECTIVES)
    noun = random.choice(NPC_NOUNS)
    return f"{NPC_PREFIX}{adjective}{noun}{random.randrange(100)}"


def default_pool(total: int) -> list[Role]:
    """Percentage-based pool before trimming or padding."""
    pool = []
    pool += [Role.INVESTIGATOR] * max(1, int(total * 0.1))
    pool += [Role.LOOKOUT] * max(1, int(total * 0.1))
    pool += [Role.DOCTOR] * max(1, int(total * 0.1))
    if total >= JAILOR_MIN_PLAYERS:
        pool.append(Role.JAILOR)
    pool += [Role.VAMPIRE] * max(1, int(total * 0.15))
    pool.append(Role.JESTER)
    return pool


def explicit_pool(config: RoleConfig) -> list[Role]:
    pool = []
    for role, count in config.counts.items():
        pool += [role] * max(0, count)
    return pool


def _remove_down_to(pool: list[Role], order: tuple[Role, ...], floor: int, excess: int) -> int:
    """Drop roles from ``order`` while the group stays above ``floor``.

    Returns how many roles are still in excess afterwards.
    """
    group_size = sum(1 for role in pool if role in order)
    for role in order:
        while excess > 0 and group_size > floor and role in pool:
            # Remove the last occurrence so earlier requested roles survive
            index = len(pool) - 1 - pool[::-1].index(role)
            del pool[index]
            group_size -= 1
            excess -= 1
    return excess


def trim_pool(pool: list[Role], total: int) -> list[Role]:
    """Shrink an over-provisioned pool to ``total`` while keeping the game balanced.

    Evil roles go first (down to one), then neutral roles, then good roles
    (down to a good majority of ``total // 2 + 1``). Anything still in excess
    is removed at random.
    """
    pool = list(pool)
    excess = len(pool) - total
    if excess <= 0:
        return pool

    excess = _remove_down_to(pool, EVIL_TRIM_ORDER, 1, excess)
    excess = _remove_down_to(pool, NEUTRAL_TRIM_ORDER, 0, excess)
    excess = _remove_down_to(pool, GOOD_TRIM_ORDER, total // 2 + 1, excess)
    while excess > 0:
        pool.pop(random.randrange(len(pool)))
        excess -= 1
    logger.debug("[Game] Trimmed role pool to %s", [r.value for r in pool])
    return pool


def build_pool(total: int, config: RoleConfig | None = None) -> list[Role]:
    """Build a role pool of exactly ``total`` roles."""
    if config is None or config.use_default:
        pool = default_pool(total)
    else:
        pool = explicit_pool(config)

    pool = trim_pool(pool, total)
    while len(pool) < total:
        pool.append(Role.CITIZEN)
    return pool


class RosterManager:
    """Tracks the players in a session and hands out roles."""

    def __init__(self) -> None:
        self.players: list[Player] = []

    def add_player(self, name: str, connection=None, player_id: str | None = None) -> Player:
        player = Player(id=player_id or secrets.token_hex(5), name=name, connection=connection)
        self.players.append(player)
        return player

    def add_npc(self, name: str | None = None) -> Player:
        if name is None:
            name = generate_npc_name()
            while self.get_by_name(name) is not None:
                name = generate_npc_name()
        player = Player(
            id=f"npc_{secrets.token_hex(5)}",
            name=name,
            is_npc=True,
        )
        self.players.append(player)
        return player

    def remove(self, player_id: str) -> Player | None:
        player = self.get(player_id)
        if player is not None:
            self.players.remove(player)
        return player

    def get(self, player_id: str | None) -> Player | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def get_by_name(self, name: str) -> Player | None:
        """Find a player by name, ignoring case."""
        for player in self.players:
            if player.name.lower() == name.lower():
                return player
        return None

    def alive(self) -> list[Player]:
        return [p for p in self.players if p.alive]

    def alive_evil(self) -> list[Player]:
        return [p for p in self.players if p.alive and p.alignment == Alignment.EVIL]

    def alive_biters(self) -> list[Player]:
        """Living players who take part in the vampire vote."""
        return [p for p in self.players if p.can_bite()]

    def npcs(self) -> list[Player]:
        return [p for p in self.players if p.is_npc]

    def assign_roles(self, config: RoleConfig | None = None) -> None:
        """Assign every player exactly one role from a shuffled pool."""
        pool = build_pool(len(self.players), config)
        random.shuffle(pool)
        for player, role in zip(self.players, pool, strict=True):
            player.assign_role(role)
            player.is_turned = False
        logger.info("[Game] Roles assigned: %s", {p.name: p.role.value for p in self.players})

    def apply_npc_restrictions(self, disallowed: frozenset[Role]) -> None:
        """Move disallowed roles off NPCs, swapping with a human where possible."""
        if not disallowed:
            return
        for npc in self.npcs():
            if npc.role not in disallowed:
                continue
            candidates = [
                p for p in self.players if not p.is_npc and p.role not in disallowed
            ]
            if candidates:
                human = random.choice(candidates)
                npc_role, human_role = npc.role, human.role
                npc.assign_role(human_role)
                human.assign_role(npc_role)
                logger.info("[Game] Swapped %s role with %s", npc.name, human.name)
            else:
                npc.assign_role(Role.CITIZEN)
                logger.info("[Game] Demoted %s to Citizen", npc.name)

    def assign_fake_roles(self) -> None:
        """Give evil and neutral NPCs a good role to claim."""
        for npc in self.npcs():
            if npc.alignment in (Alignment.EVIL, Alignment.NEUTRAL):
                npc.fake_role = random.choice(FAKE_ROLE_CHOICES)
            else:
                npc.fake_role = None

    def override_role(self, player_id: str, role: Role) -> Player | None:
        """Host override: change a player's role and re-derive alignment."""
        player = self.get(player_id)
        if player is None:
            return None
        player.assign_role(role, alignment_for(role))
        return player
