"""Pytest configuration and fixtures."""

import pytest
from bloodmoon.config import EnvironmentSettings
from bloodmoon.game import GameSession
from bloodmoon.models import JailState, NightActionLedger
from bloodmoon.registry import SessionRegistry
from bloodmoon.roles import Role
from bloodmoon.services import NightActionService, RosterManager


class RecordingBroadcaster:
    """Broadcaster that remembers everything it was asked to send."""

    def __init__(self):
        self.states = []
        self.privates = []
        self.roles = []
        self.timers = []
        self.logs = []
        self.kicked = []
        self.audio = []

    def send_state(self, player_id, view):
        self.states.append((player_id, view))

    def send_private(self, player_id, text):
        self.privates.append((player_id, text))

    def send_role(self, player_id, role, alignment):
        self.roles.append((player_id, role, alignment))

    def send_timer(self, code, seconds):
        self.timers.append(seconds)

    def send_log(self, code, line):
        self.logs.append(line)

    def send_kicked(self, player_id):
        self.kicked.append(player_id)

    def send_audio(self, code, speaker_id, audio):
        self.audio.append((speaker_id, audio))

    def private_to(self, player_id):
        return [text for pid, text in self.privates if pid == player_id]

    def last_view(self, player_id):
        for pid, view in reversed(self.states):
            if pid == player_id:
                return view
        return None


# Ids are the lowercased names so tests can refer to players directly
DEFAULT_SEATS = [
    ("Vlad", Role.VAMPIRE),
    ("Fiona", Role.VAMPIRE_FRAMER),
    ("Doc", Role.DOCTOR),
    ("Ivy", Role.INVESTIGATOR),
    ("Luke", Role.LOOKOUT),
    ("Jay", Role.JAILOR),
    ("Cid", Role.CITIZEN),
    ("Jest", Role.JESTER),
]


def seat(roster, seats):
    """Add players with fixed ids and roles to a roster."""
    for name, role in seats:
        player = roster.add_player(name, player_id=name.lower())
        player.assign_role(role)
    return roster


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def roster():
    """A roster with one player of every role."""
    return seat(RosterManager(), DEFAULT_SEATS)


@pytest.fixture
def ledger():
    return NightActionLedger()


@pytest.fixture
def jail():
    return JailState()


@pytest.fixture
def action_service(roster, ledger, jail):
    return NightActionService(roster, ledger, jail)


@pytest.fixture
def session(broadcaster):
    """A lobby with a human host."""
    game = GameSession("ABCDE", broadcaster)
    game.add_player("Host", player_id="host")
    return game


@pytest.fixture
def night_session(broadcaster):
    """A game already in Night 1 with one player of every role.

    No event loop is running, so the timer never fires on its own and NPC
    tasks are skipped.
    """
    game = GameSession("NIGHT", broadcaster)
    seat(game.roster, DEFAULT_SEATS)
    game.host_id = "vlad"
    game.machine.start_night()
    return game


def advance_to_round(game, round_number):
    """Move a session straight into the night of ``round_number``."""
    game.round = round_number - 1
    game.machine.start_night()
    return game


@pytest.fixture
def registry(broadcaster, tmp_path):
    return SessionRegistry(broadcaster, env=EnvironmentSettings(log_dir=str(tmp_path)))
