"""Per-session transcript: captured traces and NPC memory dumps.

Written once when a session ends and never read back.
"""

import logging
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path

from ..player import Player

logger = logging.getLogger(__name__)

# Code of the session whose handler or task is currently running
current_session: ContextVar[str | None] = ContextVar("current_session", default=None)

TRACE_PREFIXES = ("[Game]", "[AI]")
RULE = "=" * 40


class TranscriptHandler(logging.Handler):
    """Collects ``[Game]`` and ``[AI]`` records that belong to one session."""

    def __init__(self, code: str) -> None:
        super().__init__(level=logging.DEBUG)
        self.code = code
        self.lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        session = current_session.get()
        if session is not None and session != self.code:
            return
        message = record.getMessage()
        if not message.startswith(TRACE_PREFIXES):
            return
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        self.lines.append(f"[{timestamp}] {message}")


def format_npc_context(npc: Player) -> str:
    """Render one NPC's role, profile and action history."""
    lines = ["", RULE, f"NPC: {npc.name}", RULE]
    role = npc.role.value if npc.role else "Unassigned"
    alignment = npc.alignment.value if npc.alignment else "unknown"
    lines.append(f"Role: {role} ({alignment})")
    status = "Alive" if npc.alive else "Dead"
    if npc.is_turned:
        status += " (Turned to Vampire)"
    lines.append(f"Status: {status}")

    for label, value in (
        ("Personality", npc.personality),
        ("Talking Style", npc.talking_style),
        ("Background", npc.background),
        ("Gender", npc.gender),
    ):
        if value:
            lines.append(f"{label}: {value}")
    if npc.fake_role:
        lines.append(f"Fake Role (claimed): {npc.fake_role.value}")

    if npc.action_history:
        lines.append("")
        lines.append("ACTION HISTORY:")
        for record in npc.action_history:
            line = f"- Night {record.round}: {record.action} on {record.target_name}"
            if record.result:
                line += f" → RESULT: {record.result}"
            lines.append(line)
    else:
        lines.append("")
        lines.append("ACTION HISTORY: (No actions recorded)")
    return "\n".join(lines) + "\n"


class TranscriptWriter:
    """Captures a session's traces and writes them out when it ends."""

    def __init__(self, code: str, log_dir: str | Path = "logs") -> None:
        self.code = code
        self.log_dir = Path(log_dir)
        self.start_time = datetime.now()
        self.handler = TranscriptHandler(code)
        self._capturing = False

    @property
    def folder(self) -> Path:
        stamp = self.start_time.isoformat().replace(":", "-").replace(".", "-")
        return self.log_dir / f"game_{self.code}_{stamp}"

    def start(self) -> None:
        if self._capturing:
            return
        package_logger = logging.getLogger("bloodmoon")
        # Traces are logged at INFO and must reach the handler
        if package_logger.getEffectiveLevel() > logging.INFO:
            package_logger.setLevel(logging.INFO)
        package_logger.addHandler(self.handler)
        self._capturing = True

    def stop(self) -> None:
        if not self._capturing:
            return
        logging.getLogger("bloodmoon").removeHandler(self.handler)
        self._capturing = False

    def render_console(self) -> str:
        if not self.handler.lines:
            return "(No console output captured)"
        return "\n".join(self.handler.lines)

    def render_npc_context(self, players: list[Player]) -> str:
        npcs = [p for p in players if p.is_npc]
        parts = [
            "=== GAME NPC CONTEXT MEMORY REPORT ===",
            f"Game Code: {self.code}",
            f"Start Time: {self.start_time.isoformat()}",
            f"End Time: {datetime.now().isoformat()}",
            f"Total NPCs: {len(npcs)}",
        ]
        body = "\n".join(parts) + "\n"
        if not npcs:
            body += "\n(No NPCs in this game)\n"
        for npc in npcs:
            body += format_npc_context(npc)
        body += f"\n{RULE}\nEND OF REPORT\n{RULE}\n"
        return body

    def save(self, players: list[Player]) -> Path | None:
        """Stop capturing and write both files. Returns the folder, or None on failure."""
        self.stop()
        try:
            folder = self.folder
            folder.mkdir(parents=True, exist_ok=True)
            (folder / "server-console.log").write_text(self.render_console(), encoding="utf-8")
            (folder / "npc-context.log").write_text(
                self.render_npc_context(players), encoding="utf-8"
            )
        except OSError as e:
            logger.error("Failed to save transcript for %s: %s", self.code, e)
            return None
        logger.info("Transcript saved to %s", folder)
        return folder
