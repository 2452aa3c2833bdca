"""Tests for the NPC driver, oracle context and offline oracle."""

import asyncio
import logging
import random
import time

from bloodmoon.config import GameSettings
from bloodmoon.errors import CollaboratorFailure
from bloodmoon.game import GameSession
from bloodmoon.llm import (
    ChatLine,
    ExecuteDecision,
    NightActionDecision,
    NPCProfile,
    RandomOracle,
    VoteDecision,
)
from bloodmoon.npc import JAIL_EXCHANGE_LIMIT, NPCDriver
from bloodmoon.roles import ActionType, Role
from bloodmoon.services import ContextBuilder
from bloodmoon.types import GamePhase
from conftest import DEFAULT_SEATS, advance_to_round, seat


class FakeOracle:
    """Oracle with canned answers and an optional hook run before answering."""

    def __init__(self, night=None, vote=None, chat=None, jail=None, execute=False, hook=None):
        self.night = night or NightActionDecision()
        self.vote = vote or VoteDecision()
        self.chat = chat or ChatLine()
        self.jail = jail or ChatLine()
        self.execute = execute
        self.hook = hook
        self.calls = []

    def _called(self, name, *args):
        self.calls.append((name, *args))
        if self.hook is not None:
            self.hook()

    def suggest_night_action(self, player, context):
        self._called("night", context.actions)
        return self.night

    def suggest_vote(self, player, context):
        self._called("vote")
        return self.vote

    def suggest_chat(self, player, context, addressed=False):
        self._called("chat", addressed)
        return self.chat

    def suggest_jail_message(self, player, context):
        self._called("jail", context.is_jailor)
        return self.jail

    def suggest_execute(self, player, context):
        self._called("execute")
        return ExecuteDecision(execute=self.execute)

    def generate_profile(self, existing_names, nationality="english"):
        self._called("profile", sorted(existing_names))
        return NPCProfile(name="Marta", personality="Calm and sharp", talking_style="Short")


class FakeVoice:
    available = True

    def synthesize(self, text, speaker_id, language="english"):
        return text.encode()


def npc_game(broadcaster, oracle, role=Role.INVESTIGATOR, voice=None, timeout=1.0):
    settings = GameSettings(npc_jitter=(0.0, 0.0), oracle_timeout=timeout)
    game = GameSession("NPCGM", broadcaster, settings)
    seat(game.roster, DEFAULT_SEATS)
    bot = game.roster.add_npc("[NPC] Nova")
    bot.assign_role(role)
    game.host_id = "vlad"
    driver = NPCDriver(game, oracle, voice=voice, rng=random.Random(1))
    return game, driver, bot


async def settle(driver):
    while driver.tasks:
        await asyncio.gather(*list(driver.tasks), return_exceptions=True)


def run_phase(game, driver, enter):
    async def run():
        enter()
        await settle(driver)
        game.timer.cancel()

    asyncio.run(run())


class TestNPCDriver:
    """Test NPC suggestions flowing through the session."""

    def test_night_action_submitted(self, broadcaster):
        oracle = FakeOracle(night=NightActionDecision(action="INVESTIGATE", target="Cid"))
        game, driver, bot = npc_game(broadcaster, oracle)
        run_phase(game, driver, game.machine.start_night)

        assert game.ledger.get(bot.id).target_id == "cid"
        assert oracle.calls[0] == ("night", [ActionType.INVESTIGATE])

    def test_stale_suggestion_dropped(self, broadcaster):
        def move_on():
            game.state = GamePhase.DAY_DISCUSS

        oracle = FakeOracle(
            night=NightActionDecision(action="INVESTIGATE", target="Cid"), hook=move_on
        )
        game, driver, bot = npc_game(broadcaster, oracle)
        run_phase(game, driver, game.machine.start_night)

        assert bot.id not in game.ledger

    def test_unknown_target_ignored(self, broadcaster):
        oracle = FakeOracle(night=NightActionDecision(action="INVESTIGATE", target="Nobody"))
        game, driver, bot = npc_game(broadcaster, oracle)
        run_phase(game, driver, game.machine.start_night)

        assert bot.id not in game.ledger

    def test_illegal_suggestion_rejected_by_session(self, broadcaster):
        oracle = FakeOracle(night=NightActionDecision(action="BITE", target="Cid"))
        game, driver, bot = npc_game(broadcaster, oracle)
        run_phase(game, driver, game.machine.start_night)

        assert len(game.ledger) == 0
        assert game.state == GamePhase.NIGHT

    def test_failing_oracle_is_no_suggestion(self, broadcaster):
        def fail():
            raise CollaboratorFailure("boom")

        oracle = FakeOracle(
            night=NightActionDecision(action="INVESTIGATE", target="Cid"), hook=fail
        )
        game, driver, bot = npc_game(broadcaster, oracle)
        run_phase(game, driver, game.machine.start_night)

        assert len(game.ledger) == 0

    def test_unexpected_oracle_error_is_no_suggestion(self, broadcaster, caplog):
        def fail():
            raise RuntimeError("socket closed")

        oracle = FakeOracle(
            night=NightActionDecision(action="INVESTIGATE", target="Cid"), hook=fail
        )
        game, driver, bot = npc_game(broadcaster, oracle)
        with caplog.at_level(logging.WARNING, logger="bloodmoon"):
            run_phase(game, driver, game.machine.start_night)

        assert len(game.ledger) == 0
        assert any("socket closed" in r.getMessage() for r in caplog.records)

    def test_slow_oracle_times_out(self, broadcaster):
        oracle = FakeOracle(
            night=NightActionDecision(action="INVESTIGATE", target="Cid"),
            hook=lambda: time.sleep(0.3),
        )
        game, driver, bot = npc_game(broadcaster, oracle, timeout=0.05)
        run_phase(game, driver, game.machine.start_night)

        assert bot.id not in game.ledger

    def test_day_chat_and_voice(self, broadcaster):
        oracle = FakeOracle(chat=ChatLine(message="Vlad is too quiet."))
        game, driver, bot = npc_game(broadcaster, oracle, voice=FakeVoice())
        game.round = 1
        run_phase(game, driver, game.machine.start_day_discuss)

        assert game.chat == ["[NPC] Nova: Vlad is too quiet."]
        assert broadcaster.audio == [(bot.id, b"Vlad is too quiet.")]

    def test_silence_posts_nothing(self, broadcaster):
        oracle = FakeOracle(chat=ChatLine(message="SILENCE"))
        game, driver, bot = npc_game(broadcaster, oracle)
        game.round = 1
        run_phase(game, driver, game.machine.start_day_discuss)

        assert game.chat == []

    def test_vote_cast(self, broadcaster):
        oracle = FakeOracle(vote=VoteDecision(target="Vlad"))
        game, driver, bot = npc_game(broadcaster, oracle)
        game.round = 1
        run_phase(game, driver, game.machine.start_day_vote)

        assert game.votes.target_of(bot.id) == "vlad"

    def test_reply_when_addressed(self, broadcaster):
        oracle = FakeOracle(chat=ChatLine(message="Not me!"))
        game, driver, bot = npc_game(broadcaster, oracle)
        game.round = 1
        game.state = GamePhase.DAY_DISCUSS

        async def run():
            game.post_chat("ivy", "Nova, where were you last night?")
            await settle(driver)

        asyncio.run(run())

        assert ("chat", True) in oracle.calls
        assert game.chat[-1] == "[NPC] Nova: Not me!"

    def test_prisoner_answers_jailor(self, broadcaster):
        oracle = FakeOracle(jail=ChatLine(message="I am a simple citizen."))
        game, driver, bot = npc_game(broadcaster, oracle)
        game.round = 1
        game.state = GamePhase.NIGHT

        async def run():
            game.submit_night_action("jay", ActionType.JAIL, bot.id)
            game.send_jail_message("jay", "Explain yourself.")
            await settle(driver)

        asyncio.run(run())

        assert [m.message for m in game.jail.chat] == [
            "Explain yourself.",
            "I am a simple citizen.",
        ]

    def test_prisoner_keeps_answering_human_jailor(self, broadcaster):
        oracle = FakeOracle(jail=ChatLine(message="Still innocent."))
        game, driver, bot = npc_game(broadcaster, oracle)
        game.round = 1
        game.state = GamePhase.NIGHT

        async def run():
            game.submit_night_action("jay", ActionType.JAIL, bot.id)
            for _ in range(JAIL_EXCHANGE_LIMIT):
                game.jail.post("jay", "Talk.")
            game.send_jail_message("jay", "Last chance.")
            await settle(driver)

        asyncio.run(run())

        assert game.jail.chat[-2].message == "Last chance."
        assert game.jail.chat[-1].message == "Still innocent."

    def test_npc_jailor_interrogates_and_executes(self, broadcaster):
        oracle = FakeOracle(
            night=NightActionDecision(action="JAIL", target="Vlad"),
            jail=ChatLine(message="What did you do?"),
            execute=True,
        )
        game, driver, bot = npc_game(broadcaster, oracle, role=Role.JAILOR)
        game.roster.get("jay").assign_role(Role.CITIZEN)
        run_phase(game, driver, game.machine.start_night)

        assert game.jail.jailed_player_id == "vlad"
        assert game.ledger.get(bot.id).type == ActionType.EXECUTE
        assert game.jail.chat[0].sender == "Jailor"

    def test_profile_filled_in_lobby(self, broadcaster):
        oracle = FakeOracle()
        game = GameSession("LOBBY", broadcaster, GameSettings(npc_jitter=(0.0, 0.0)))
        game.add_player("Host", player_id="host")
        driver = NPCDriver(game, oracle)

        async def run():
            game.add_npc("host")
            await settle(driver)

        asyncio.run(run())

        npc = game.roster.npcs()[0]
        assert npc.name == "[NPC] Marta"
        assert npc.personality == "Calm and sharp"

    def test_profile_names_checked_without_prefix(self, broadcaster):
        oracle = FakeOracle()
        game = GameSession("LOBBY", broadcaster, GameSettings(npc_jitter=(0.0, 0.0)))
        game.add_player("Host", player_id="host")
        game.roster.add_npc("[NPC] Marta")
        driver = NPCDriver(game, oracle)

        async def run():
            game.add_npc("host")
            await settle(driver)

        asyncio.run(run())

        assert "Marta" in oracle.calls[0][1]
        names = [p.name for p in game.roster.npcs()]
        assert names.count("[NPC] Marta") == 1

    def test_concurrent_profiles_keep_names_unique(self, broadcaster):
        oracle = FakeOracle()
        game = GameSession("LOBBY", broadcaster, GameSettings(npc_jitter=(0.0, 0.0)))
        game.add_player("Host", player_id="host")
        driver = NPCDriver(game, oracle)

        async def run():
            game.add_npc("host")
            game.add_npc("host")
            await settle(driver)

        asyncio.run(run())

        names = [p.name for p in game.roster.npcs()]
        assert names.count("[NPC] Marta") == 1
        assert len(set(names)) == 2

    def test_offline_profiles_never_repeat(self, broadcaster):
        for seed in range(10):
            game = GameSession("LOBBY", broadcaster, GameSettings(npc_jitter=(0.0, 0.0)))
            game.add_player("Host", player_id="host")
            driver = NPCDriver(game, RandomOracle(random.Random(seed)))

            async def run():
                for _ in range(8):
                    game.add_npc("host")
                await settle(driver)

            asyncio.run(run())

            names = [p.name.lower() for p in game.roster.players]
            assert len(names) == len(set(names))

    def test_no_loop_skips_tasks(self, broadcaster):
        oracle = FakeOracle(night=NightActionDecision(action="INVESTIGATE", target="Cid"))
        game, driver, bot = npc_game(broadcaster, oracle)
        game.machine.start_night()

        assert not driver.tasks
        assert oracle.calls == []


class TestContextBuilder:
    """Test the context handed to the oracle."""

    def test_available_actions(self, night_session):
        builder = ContextBuilder(night_session)
        roster = night_session.roster

        assert builder.available_actions(roster.get("vlad")) == []
        assert builder.available_actions(roster.get("fiona")) == [ActionType.FRAME]
        assert builder.available_actions(roster.get("jay")) == [ActionType.JAIL]
        assert builder.available_actions(roster.get("cid")) == []

        roster.get("doc").heals_remaining = 0
        assert builder.available_actions(roster.get("doc")) == []

    def test_bite_offered_on_even_nights(self, night_session):
        game = advance_to_round(night_session, 2)
        builder = ContextBuilder(game)
        assert builder.available_actions(game.roster.get("vlad")) == [ActionType.BITE]

    def test_jailor_may_execute_after_jailing(self, night_session):
        night_session.submit_night_action("jay", ActionType.JAIL, "cid")
        builder = ContextBuilder(night_session)

        assert builder.available_actions(night_session.roster.get("jay")) == [
            ActionType.EXECUTE,
            ActionType.JAIL,
        ]
        assert builder.available_actions(night_session.roster.get("cid")) == []

    def test_context_redaction(self, night_session):
        builder = ContextBuilder(night_session)
        good = builder.build(night_session.roster.get("cid"))
        evil = builder.build(night_session.roster.get("vlad"))

        assert good.fellow_vampires == []
        assert evil.fellow_vampires == ["Fiona"]
        assert "Cid" not in good.targets
        assert "Your role is Citizen" in good.system_prompt
        assert "Your fellow vampires" not in good.system_prompt
        assert "Your fellow vampires: Fiona" in evil.system_prompt

    def test_past_votes_in_prompt(self, night_session):
        night_session.skip_timer("vlad")
        night_session.skip_timer("vlad")
        night_session.cast_vote("ivy", "cid")
        night_session.skip_timer("vlad")

        context = ContextBuilder(night_session).build(night_session.roster.get("doc"))
        assert night_session.state == GamePhase.NIGHT
        assert "Day 1: Ivy → Cid" in context.system_prompt

    def test_jail_context(self, night_session):
        night_session.submit_night_action("jay", ActionType.JAIL, "cid")
        night_session.send_jail_message("jay", "Talk.")
        context = ContextBuilder(night_session).build(night_session.roster.get("cid"))

        assert not context.is_jailor
        assert context.jail_partner == "Jay"
        assert context.jail_transcript() == "Jailor: Talk."


class TestRandomOracle:
    """Test the offline oracle."""

    def test_picks_a_legal_action(self, night_session):
        oracle = RandomOracle(random.Random(3))
        builder = ContextBuilder(night_session)
        doc = night_session.roster.get("doc")
        decision = oracle.suggest_night_action(doc, builder.build(doc))

        assert decision.action_type() == ActionType.HEAL
        assert decision.target in builder.build(doc).targets

    def test_no_actions_means_none(self, night_session):
        oracle = RandomOracle(random.Random(3))
        cid = night_session.roster.get("cid")
        decision = oracle.suggest_night_action(cid, ContextBuilder(night_session).build(cid))
        assert decision.action_type() is None

    def test_profiles_avoid_existing_names(self):
        oracle = RandomOracle(random.Random(3))
        profile = oracle.generate_profile(["James", "Sarah"])
        assert profile.name not in {"James", "Sarah"}
