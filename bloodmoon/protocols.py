"""Protocol definitions for the collaborators a session talks to."""

from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from .llm import ChatLine, ExecuteDecision, NightActionDecision, NPCProfile, VoteDecision
    from .player import Player
    from .roles import Alignment, Role
    from .services.context_service import OracleContext
    from .services.visibility_service import StateView


class Broadcaster(Protocol):
    """Delivers session output to connected clients."""

    def send_state(self, player_id: str, view: "StateView") -> None:
        """Send a player their redacted state snapshot."""
        ...

    def send_private(self, player_id: str, text: str) -> None:
        """Send a notice to a single player."""
        ...

    def send_role(self, player_id: str, role: "Role", alignment: "Alignment") -> None:
        """Tell a player their (possibly new) role."""
        ...

    def send_timer(self, code: str, seconds: int) -> None:
        """Countdown tick for everyone in the session."""
        ...

    def send_log(self, code: str, line: str) -> None:
        """A new public log line."""
        ...

    def send_kicked(self, player_id: str) -> None:
        """Tell a player they were removed by the host."""
        ...

    def send_audio(self, code: str, speaker_id: str, audio: bytes) -> None:
        """Play a synthesized NPC line to everyone in the session."""
        ...


class DecisionOracle(Protocol):
    """Suggests what an NPC should do.

    Implementations may be slow and may fail. Every method returns a safe
    default (no action, abstain, silence) rather than raising on a bad
    response, and callers still validate whatever comes back.
    """

    def suggest_night_action(
        self, player: "Player", context: "OracleContext"
    ) -> "NightActionDecision":
        """Pick a night action and a target name."""
        ...

    def suggest_vote(self, player: "Player", context: "OracleContext") -> "VoteDecision":
        """Pick a lynch target name, or abstain."""
        ...

    def suggest_chat(
        self, player: "Player", context: "OracleContext", addressed: bool = False
    ) -> "ChatLine":
        """Say something in the day discussion, or stay silent."""
        ...

    def suggest_jail_message(self, player: "Player", context: "OracleContext") -> "ChatLine":
        """Say something in the jail channel."""
        ...

    def suggest_execute(self, player: "Player", context: "OracleContext") -> "ExecuteDecision":
        """As Jailor, decide whether to execute the prisoner."""
        ...

    def generate_profile(
        self, existing_names: list[str], nationality: str = "english"
    ) -> Optional["NPCProfile"]:
        """Invent a name and personality for a new NPC."""
        ...
