"""Tests for notices, votes and jail models."""

from bloodmoon.config import JAIL_CHAT_LIMIT, GameSettings
from bloodmoon.models import JailState, Notice, NoticeCategory, NoticeLog, VoteMap
from bloodmoon.roles import Role


class TestNoticeLog:
    """Test NoticeLog."""

    def test_public_and_private(self):
        log = NoticeLog()
        log.add(Notice.public("Cid was lynched!", NoticeCategory.DEATH, round=1))
        log.add(Notice.private("ivy", "Target is a Doctor", NoticeCategory.NIGHT_RESULT, round=1))

        assert log.public_lines() == ["Cid was lynched!"]
        assert len(log.visible_to("ivy")) == 2
        assert len(log.visible_to("luke")) == 1
        assert len(log.visible_to("ivy", NoticeCategory.NIGHT_RESULT)) == 1

    def test_context_only_private(self):
        log = NoticeLog()
        log.add(Notice.public("Day breaks", NoticeCategory.GAME_STATE, round=1))
        log.add(Notice.private(["ivy"], "Target is a Doctor", NoticeCategory.NIGHT_RESULT, round=1))
        assert log.build_context_for("ivy") == "- Night 1: Target is a Doctor"


class TestVoteMap:
    """Test VoteMap."""

    def test_tally_eligible_only(self):
        votes = VoteMap()
        votes.cast("a", "c")
        votes.cast("b", "c")
        assert votes.tally({"a"})["c"] == 1
        assert votes.count_for("c") == 2
        assert votes.retract("a")
        assert not votes.retract("a")


class TestJailState:
    """Test JailState."""

    def test_lock_up_and_reset(self):
        jail = JailState()
        assert not jail.active
        jail.lock_up("jay", "cid")
        assert jail.involves("cid")
        assert not jail.involves("ivy")

        jail.post("cid", "x" * (JAIL_CHAT_LIMIT + 10))
        assert len(jail.chat[0].message) == JAIL_CHAT_LIMIT
        assert jail.chat[0].sender == "Prisoner"

        jail.pending_guilt_death = True
        jail.reset()
        assert not jail.active
        assert jail.pending_guilt_death


class TestGameSettings:
    """Test building settings from a host payload."""

    def test_from_dict(self):
        settings = GameSettings.from_dict(
            {
                "nightTime": 45,
                "discussionTime": 90,
                "voteTime": 10,
                "revealRole": False,
                "nationality": "lithuanian",
                "roleConfig": {"useDefault": False, "Vampire": 2},
                "npcDisallowedRoles": ["Jailor"],
            }
        )
        assert settings.night_time == 45
        assert settings.discussion_time == 90
        assert settings.vote_time == 10
        assert not settings.reveal_role
        assert settings.nationality == "lithuanian"
        assert settings.role_config.counts == {Role.VAMPIRE: 2}
        assert settings.npc_disallowed_roles == frozenset({Role.JAILOR})

    def test_defaults(self):
        settings = GameSettings.from_dict(None)
        assert settings.night_time == 60
        assert settings.role_config.use_default
