"""Tests for roles and players."""

from bloodmoon.config import DOCTOR_HEALS
from bloodmoon.player import Player
from bloodmoon.roles import (
    GOOD_ROLES,
    ActionType,
    Alignment,
    Role,
    alignment_for,
    can_perform,
    get_role_info,
)


class TestRoleCatalog:
    """Test the role catalog lookups."""

    def test_display_name(self):
        assert Role.INVESTIGATOR.display_name() == "an Investigator"
        assert Role.VAMPIRE.display_name() == "a Vampire"

    def test_alignments(self):
        assert alignment_for(Role.VAMPIRE) == Alignment.EVIL
        assert alignment_for(Role.VAMPIRE_FRAMER) == Alignment.EVIL
        assert alignment_for(Role.JESTER) == Alignment.NEUTRAL
        assert alignment_for(Role.JAILOR) == Alignment.GOOD

    def test_good_roles(self):
        assert set(GOOD_ROLES) == {
            Role.INVESTIGATOR,
            Role.LOOKOUT,
            Role.DOCTOR,
            Role.JAILOR,
            Role.CITIZEN,
        }

    def test_every_role_has_catalog_entry(self):
        for role in Role:
            info = get_role_info(role)
            assert info["ability"]
            assert info["goal"]

    def test_can_perform(self):
        assert can_perform(Role.VAMPIRE_FRAMER, ActionType.BITE)
        assert can_perform(Role.VAMPIRE_FRAMER, ActionType.FRAME)
        assert can_perform(Role.JAILOR, ActionType.EXECUTE)
        assert not can_perform(Role.CITIZEN, ActionType.INVESTIGATE)
        assert not can_perform(Role.VAMPIRE, ActionType.FRAME)
        assert not can_perform(None, ActionType.HEAL)


class TestPlayer:
    """Test Player role handling."""

    def test_doctor_gets_heals(self):
        player = Player(id="p1", name="Doc")
        player.assign_role(Role.DOCTOR)
        assert player.heals_remaining == DOCTOR_HEALS
        assert player.is_good()

    def test_reassign_clears_heals(self):
        player = Player(id="p1", name="Doc")
        player.assign_role(Role.DOCTOR)
        player.assign_role(Role.CITIZEN)
        assert player.heals_remaining is None

    def test_turn(self):
        player = Player(id="p1", name="Doc")
        player.assign_role(Role.DOCTOR)
        player.turn()

        assert player.role == Role.VAMPIRE
        assert player.alignment == Alignment.EVIL
        assert player.is_turned
        assert player.heals_remaining is None

    def test_can_bite(self):
        vampire = Player(id="v", name="Vlad")
        vampire.assign_role(Role.VAMPIRE)
        assert vampire.can_bite()

        vampire.alive = False
        assert not vampire.can_bite()

        citizen = Player(id="c", name="Cid")
        citizen.assign_role(Role.CITIZEN)
        assert not citizen.can_bite()

    def test_str(self):
        player = Player(id="p1", name="Alice")
        assert str(player) == "Alice (unassigned, alive)"
        player.assign_role(Role.LOOKOUT)
        player.alive = False
        assert str(player) == "Alice (Lookout, dead)"
