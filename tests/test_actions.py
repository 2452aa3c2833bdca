"""Tests for the night action ledger and submission validation."""

import pytest
from bloodmoon.errors import ValidationRejection
from bloodmoon.models import NightAction, NightActionLedger
from bloodmoon.roles import ActionType


class TestNightActionLedger:
    """Test NightActionLedger."""

    def test_put_overwrites_and_returns_previous(self):
        ledger = NightActionLedger()
        first = NightAction("doc", ActionType.HEAL, "ivy")
        assert ledger.put(first) is None

        replaced = ledger.put(NightAction("doc", ActionType.HEAL, "luke"))
        assert replaced == first
        assert ledger.get("doc").target_id == "luke"
        assert len(ledger) == 1

    def test_frame_and_bite_coexist(self):
        ledger = NightActionLedger()
        ledger.put(NightAction("fiona", ActionType.BITE, "cid"))
        ledger.put(NightAction("fiona", ActionType.FRAME, "ivy"))

        assert ledger.get("fiona").type == ActionType.BITE
        assert ledger.get_frame("fiona").type == ActionType.FRAME
        assert len(ledger.purge("fiona")) == 2
        assert "fiona" not in ledger

    def test_bite_votes(self):
        ledger = NightActionLedger()
        ledger.put(NightAction("vlad", ActionType.BITE, "cid"))
        ledger.put(NightAction("fiona", ActionType.BITE, "cid"))
        assert ledger.bite_votes()["cid"] == 2


class TestNightActionService:
    """Test NightActionService validation."""

    def test_dead_player_rejected(self, action_service, roster, ledger):
        roster.get("ivy").alive = False
        with pytest.raises(ValidationRejection, match="Dead players cannot act"):
            action_service.submit("ivy", ActionType.INVESTIGATE, "cid", round_number=1)
        assert len(ledger) == 0

    def test_wrong_role_rejected(self, action_service):
        with pytest.raises(ValidationRejection):
            action_service.submit("cid", ActionType.INVESTIGATE, "ivy", round_number=1)

    def test_dead_target_rejected(self, action_service, roster):
        roster.get("cid").alive = False
        with pytest.raises(ValidationRejection, match="Invalid target"):
            action_service.submit("ivy", ActionType.INVESTIGATE, "cid", round_number=1)

    def test_bite_rejected_on_odd_night(self, action_service, ledger):
        with pytest.raises(ValidationRejection, match="even nights"):
            action_service.submit("vlad", ActionType.BITE, "cid", round_number=1)
        assert len(ledger) == 0

    def test_bite_tells_other_vampires(self, action_service, ledger):
        notices = action_service.submit("vlad", ActionType.BITE, "cid", round_number=2)

        assert ledger.get("vlad").target_id == "cid"
        assert len(notices) == 1
        assert notices[0].visibility.targets == ["fiona"]
        assert "Vlad voted to turn Cid" in notices[0].content

    def test_cannot_bite_or_frame_evil(self, action_service):
        with pytest.raises(ValidationRejection, match="fellow vampire"):
            action_service.submit("vlad", ActionType.BITE, "fiona", round_number=2)
        with pytest.raises(ValidationRejection, match="fellow vampire"):
            action_service.submit("fiona", ActionType.FRAME, "vlad", round_number=1)

    def test_heal_needs_heals(self, action_service, roster):
        roster.get("doc").heals_remaining = 0
        with pytest.raises(ValidationRejection, match="no heals"):
            action_service.submit("doc", ActionType.HEAL, "ivy", round_number=1)

    def test_cancel_removes_entry(self, action_service, ledger):
        action_service.submit("ivy", ActionType.INVESTIGATE, "cid", round_number=1)
        action_service.submit("ivy", ActionType.INVESTIGATE, None, round_number=1, cancel=True)
        assert "ivy" not in ledger

    def test_cancel_bite_tells_team(self, action_service):
        action_service.submit("vlad", ActionType.BITE, "cid", round_number=2)
        notices = action_service.submit("vlad", ActionType.BITE, cancel=True, round_number=2)
        assert "cancelled their vote" in notices[0].content


class TestJailSubmissions:
    """Test JAIL, EXECUTE and CANCEL_EXECUTE."""

    def test_jail_purges_prisoner_actions(self, action_service, ledger, jail):
        action_service.submit("vlad", ActionType.BITE, "cid", round_number=2)
        notices = action_service.submit("jay", ActionType.JAIL, "vlad", round_number=2)

        assert "vlad" not in ledger
        assert jail.jailed_player_id == "vlad"
        assert jail.jailor_id == "jay"
        contents = [n.content for n in notices]
        assert any("vote was cancelled (jailed)" in c for c in contents)
        assert any("You have been jailed" in c for c in contents)

    def test_jailed_player_cannot_act(self, action_service):
        action_service.submit("jay", ActionType.JAIL, "ivy", round_number=1)
        with pytest.raises(ValidationRejection, match="in jail"):
            action_service.submit("ivy", ActionType.INVESTIGATE, "cid", round_number=1)

    def test_cannot_jail_self(self, action_service):
        with pytest.raises(ValidationRejection, match="jail yourself"):
            action_service.submit("jay", ActionType.JAIL, "jay", round_number=1)

    def test_execute_needs_prisoner(self, action_service):
        with pytest.raises(ValidationRejection, match="no prisoner"):
            action_service.submit("jay", ActionType.EXECUTE, round_number=1)

    def test_execute_and_cancel(self, action_service, ledger):
        action_service.submit("jay", ActionType.JAIL, "vlad", round_number=1)
        action_service.submit("jay", ActionType.EXECUTE, round_number=1)
        assert ledger.get("jay").type == ActionType.EXECUTE

        notices = action_service.submit("jay", ActionType.CANCEL_EXECUTE, round_number=1)
        assert "jay" not in ledger
        assert any("spare you" in n.content for n in notices)

    def test_new_prisoner_voids_execute(self, action_service, ledger):
        action_service.submit("jay", ActionType.JAIL, "vlad", round_number=1)
        action_service.submit("jay", ActionType.EXECUTE, round_number=1)
        action_service.submit("jay", ActionType.JAIL, "cid", round_number=1)
        assert "jay" not in ledger
