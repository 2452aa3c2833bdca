"""Speech adapters: text-to-speech for NPC lines, speech-to-text for players.

Real engines live outside this package. Either side may be unavailable, in
which case the game carries on as text only.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from .game import GameSession

logger = logging.getLogger(__name__)


class SpeechSynthesizer(Protocol):
    """Turns a line of text into audio bytes."""

    available: bool

    def synthesize(self, text: str, speaker_id: str, language: str = "english") -> Optional[bytes]:
        ...


class SpeechRecognizer(Protocol):
    """Turns recorded audio into text."""

    available: bool

    def transcribe(self, audio: bytes, language: str = "english") -> Optional[str]:
        ...


class UnavailableVoice:
    """Adapter used when no speech engine is configured."""

    available = False

    def synthesize(self, text: str, speaker_id: str, language: str = "english") -> Optional[bytes]:
        return None

    def transcribe(self, audio: bytes, language: str = "english") -> Optional[str]:
        return None


async def speak(
    session: "GameSession", synthesizer: SpeechSynthesizer, speaker_id: str, text: str
) -> bool:
    """Synthesize an NPC line and hand the audio to the broadcaster."""
    if not synthesizer.available or not text.strip():
        return False
    try:
        audio = await asyncio.to_thread(
            synthesizer.synthesize, text, speaker_id, session.settings.nationality
        )
    except Exception as e:
        logger.warning("[AI] Speech synthesis failed for %s: %s", speaker_id, e)
        return False
    if not audio:
        return False
    session.broadcaster.send_audio(session.code, speaker_id, audio)
    return True


async def transcribe_chat(
    session: "GameSession", recognizer: SpeechRecognizer, player_id: str, audio: bytes
) -> bool:
    """Turn a player's recorded message into a day chat line.

    The phase may move on while transcription runs; a stale result is dropped.
    """
    if not recognizer.available:
        session.send_private(player_id, "Voice chat is not available.")
        return False
    stamp = session.current_stamp()
    try:
        text = await asyncio.to_thread(recognizer.transcribe, audio, session.settings.nationality)
    except Exception as e:
        logger.warning("[Game] Transcription failed for %s: %s", player_id, e)
        return False
    if not text or not session.is_current(stamp):
        return False
    return session.post_chat(player_id, text)
