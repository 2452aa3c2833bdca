"""Tests for speech adapters."""

import asyncio

from bloodmoon.errors import CollaboratorFailure
from bloodmoon.types import GamePhase
from bloodmoon.voice import UnavailableVoice, speak, transcribe_chat


class FakeRecognizer:
    available = True

    def __init__(self, text=None, error=None, hook=None):
        self.text = text
        self.error = error
        self.hook = hook

    def transcribe(self, audio, language="english"):
        if self.hook is not None:
            self.hook()
        if self.error is not None:
            raise self.error
        return self.text


class FakeSynthesizer:
    available = True

    def __init__(self, error):
        self.error = error

    def synthesize(self, text, speaker_id, language="english"):
        raise self.error


class TestTranscribeChat:
    """Test speech-to-text chat."""

    def test_transcript_posted_as_chat(self, night_session):
        night_session.skip_timer("vlad")
        ok = asyncio.run(
            transcribe_chat(night_session, FakeRecognizer("It was Vlad"), "ivy", b"...")
        )
        assert ok
        assert night_session.chat == ["Ivy: It was Vlad"]

    def test_unavailable_engine(self, broadcaster, night_session):
        night_session.skip_timer("vlad")
        ok = asyncio.run(transcribe_chat(night_session, UnavailableVoice(), "ivy", b"..."))
        assert not ok
        assert "Voice chat is not available." in broadcaster.private_to("ivy")

    def test_stale_transcript_dropped(self, night_session):
        night_session.skip_timer("vlad")

        def move_on():
            night_session.state = GamePhase.DAY_VOTE

        recognizer = FakeRecognizer("Too late", hook=move_on)
        ok = asyncio.run(transcribe_chat(night_session, recognizer, "ivy", b"..."))
        assert not ok
        assert night_session.chat == []

    def test_failure_is_no_transcript(self, night_session):
        night_session.skip_timer("vlad")
        recognizer = FakeRecognizer(error=CollaboratorFailure("bad audio"))
        assert not asyncio.run(transcribe_chat(night_session, recognizer, "ivy", b"..."))

    def test_unexpected_engine_error_is_no_transcript(self, night_session):
        night_session.skip_timer("vlad")
        recognizer = FakeRecognizer(error=RuntimeError("decoder crashed"))
        assert not asyncio.run(transcribe_chat(night_session, recognizer, "ivy", b"..."))
        assert night_session.chat == []


class TestSpeak:
    """Test text-to-speech for NPC lines."""

    def test_unavailable_is_silent(self, broadcaster, night_session):
        assert not asyncio.run(speak(night_session, UnavailableVoice(), "ivy", "Hello"))
        assert broadcaster.audio == []

    def test_engine_failure_is_silent(self, broadcaster, night_session):
        synthesizer = FakeSynthesizer(CollaboratorFailure("engine down"))
        assert not asyncio.run(speak(night_session, synthesizer, "ivy", "Hello"))
        assert broadcaster.audio == []

    def test_unexpected_engine_error_is_silent(self, broadcaster, night_session):
        synthesizer = FakeSynthesizer(OSError("device busy"))
        assert not asyncio.run(speak(night_session, synthesizer, "ivy", "Hello"))
        assert broadcaster.audio == []
