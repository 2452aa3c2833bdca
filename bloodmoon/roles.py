"""Game roles, alignments and the night actions each role can take."""

from enum import Enum
from typing import TypedDict


class Alignment(str, Enum):
    """Faction a role belongs to."""

    GOOD = "good"
    EVIL = "evil"
    NEUTRAL = "neutral"


class Role(str, Enum):
    """Available roles in the game."""

    INVESTIGATOR = "Investigator"
    LOOKOUT = "Lookout"
    DOCTOR = "Doctor"
    JAILOR = "Jailor"
    CITIZEN = "Citizen"
    VAMPIRE = "Vampire"
    VAMPIRE_FRAMER = "Vampire Framer"
    JESTER = "Jester"

    def display_name(self) -> str:
        """Get the singular display name for this role."""
        if self.value[0] in "AEIOU":
            return f"an {self.value}"
        return f"a {self.value}"


class ActionType(str, Enum):
    """Night action types a player can submit."""

    INVESTIGATE = "INVESTIGATE"
    LOOKOUT = "LOOKOUT"
    HEAL = "HEAL"
    BITE = "BITE"
    FRAME = "FRAME"
    JAIL = "JAIL"
    EXECUTE = "EXECUTE"
    CANCEL_EXECUTE = "CANCEL_EXECUTE"


class RoleInfo(TypedDict):
    """Catalog entry for a role."""

    alignment: Alignment
    ability: str
    tip: str
    goal: str
    actions: frozenset[ActionType]


ROLE_CATALOG: dict[Role, RoleInfo] = {
    Role.INVESTIGATOR: {
        "alignment": Alignment.GOOD,
        "ability": "Investigate one player each night to discover their role",
        "tip": "Results can be wrong if target was framed by a Vampire Framer",
        "goal": "Find the vampires by investigating players.",
        "actions": frozenset({ActionType.INVESTIGATE}),
    },
    Role.LOOKOUT: {
        "alignment": Alignment.GOOD,
        "ability": "Watch one player to see who visits them at night",
        "tip": "Can catch vampires or other roles visiting their target",
        "goal": "Watch for suspicious visits and identify threats.",
        "actions": frozenset({ActionType.LOOKOUT}),
    },
    Role.DOCTOR: {
        "alignment": Alignment.GOOD,
        "ability": "Heal one player each night to protect from vampire bites (3 heals total)",
        "tip": "Every heal attempt uses 1 heal, saved or not",
        "goal": "Save innocents from vampire attacks.",
        "actions": frozenset({ActionType.HEAL}),
    },
    Role.JAILOR: {
        "alignment": Alignment.GOOD,
        "ability": "Jail one player each night for interrogation, can execute",
        "tip": "Jailed players are protected from vampires. Executing an innocent kills you!",
        "goal": "Jail suspicious players, interrogate them, execute the guilty.",
        "actions": frozenset({ActionType.JAIL, ActionType.EXECUTE, ActionType.CANCEL_EXECUTE}),
    },
    Role.CITIZEN: {
        "alignment": Alignment.GOOD,
        "ability": "No special night ability",
        "tip": "Use deduction and discussion to find evil players",
        "goal": "Find and vote out the vampires through deduction.",
        "actions": frozenset(),
    },
    Role.VAMPIRE: {
        "alignment": Alignment.EVIL,
        "ability": "Turn one non-vampire into a vampire (ONLY on even nights: Night 2, 4, 6...)",
        "tip": "Cannot bite on odd nights. Must coordinate with other vampires.",
        "goal": "Turn or eliminate all non-vampires. Coordinate with fellow vampires.",
        "actions": frozenset({ActionType.BITE}),
    },
    Role.VAMPIRE_FRAMER: {
        "alignment": Alignment.EVIL,
        "ability": "Frame one player per night to appear as Vampire to investigators",
        "tip": "Also participates in vampire bite coordination on even nights",
        "goal": "Frame innocents to mislead investigators. Help vampires win.",
        "actions": frozenset({ActionType.FRAME, ActionType.BITE}),
    },
    Role.JESTER: {
        "alignment": Alignment.NEUTRAL,
        "ability": "No night ability - win by getting yourself lynched",
        "tip": "Act suspicious but not too obvious to get voted out",
        "goal": "Get yourself lynched by the town vote to win.",
        "actions": frozenset(),
    },
}

GOOD_ROLES: tuple[Role, ...] = tuple(
    role for role, info in ROLE_CATALOG.items() if info["alignment"] == Alignment.GOOD
)

# Roles an evil or neutral NPC may pretend to be
FAKE_ROLE_CHOICES: tuple[Role, ...] = (
    Role.INVESTIGATOR,
    Role.LOOKOUT,
    Role.DOCTOR,
    Role.CITIZEN,
)


def get_role_info(role: Role) -> RoleInfo:
    """Get information about a role."""
    return ROLE_CATALOG[role]


def alignment_for(role: Role) -> Alignment:
    """Get the alignment a role belongs to."""
    return ROLE_CATALOG[role]["alignment"]


def can_perform(role: Role | None, action: ActionType) -> bool:
    """Check whether a role is capable of a night action."""
    if role is None:
        return False
    return action in ROLE_CATALOG[role]["actions"]
