"""CLI that runs a local, NPC-only game for spectating."""

import argparse
import asyncio
import logging
import random

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import EnvironmentSettings, GameSettings
from .formatting import phase_header, separator
from .game import GameSession
from .llm import LLMAgent, RandomOracle
from .npc import NPCDriver
from .registry import generate_code
from .roles import Alignment, Role
from .services import StateView, Winner
from .types import GamePhase

console = Console()
logger = logging.getLogger(__name__)

SPECTATOR_ID = "spectator"


class ConsoleBroadcaster:
    """Prints public session output. Spectators see no private notices."""

    def send_state(self, player_id: str, view: StateView) -> None:
        pass

    def send_private(self, player_id: str, text: str) -> None:
        logger.debug("[Game] (to %s) %s", player_id, text)

    def send_role(self, player_id: str, role: Role, alignment: Alignment) -> None:
        pass

    def send_timer(self, code: str, seconds: int) -> None:
        pass

    def send_log(self, code: str, line: str) -> None:
        console.print(f"[bold yellow]📜 {line}[/bold yellow]")

    def send_kicked(self, player_id: str) -> None:
        pass

    def send_audio(self, code: str, speaker_id: str, audio: bytes) -> None:
        pass


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    logging.getLogger("bloodmoon").setLevel(logging.DEBUG if verbose else logging.INFO)


def display_game_end(session: GameSession) -> None:
    """Display the winner and every role."""
    console.print("\n" + separator())
    console.print("[bold green]🎉 GAME OVER 🎉[/bold green]")
    console.print(separator() + "\n")

    if session.winner == Winner.GOOD:
        console.print("[bold green]The town has won![/bold green]")
    elif session.winner == Winner.EVIL:
        console.print("[bold red]The vampires have won![/bold red]")
    elif session.winner == Winner.JESTER:
        console.print("[bold magenta]The Jester has won![/bold magenta]")
    else:
        console.print("[yellow]The game was ended early.[/yellow]")

    table = Table(title="Final Roles")
    table.add_column("Name", style="cyan")
    table.add_column("Role", style="magenta")
    table.add_column("Status")
    for player in session.roster.players:
        role = player.role.value if player.role else "-"
        if player.is_turned:
            role += " (turned)"
        table.add_row(player.name, role, "✓ alive" if player.alive else "✗ dead")
    console.print(table)

    if session.transcript_path:
        console.print(f"\n[dim]Transcript saved to {session.transcript_path}[/dim]")


async def run_game(session: GameSession, max_rounds: int) -> None:
    """Start the game and narrate it until it ends."""
    if not session.start(SPECTATOR_ID):
        return
    seen_phase = None
    seen_chat = 0
    while session.state != GamePhase.GAME_OVER:
        stamp = session.current_stamp()
        if stamp != seen_phase:
            seen_phase = stamp
            header = phase_header(stamp.state, stamp.round)
            if header:
                console.print(f"\n[bold cyan]{header}[/bold cyan]")
        for line in session.chat[seen_chat:]:
            console.print(f"  💬 {line}")
        seen_chat = len(session.chat)
        if session.round > max_rounds:
            session.end_game(SPECTATOR_ID)
            break
        await asyncio.sleep(0.25)


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Bloodmoon - vampire social deduction with LLM players",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Watch eight Claude-driven NPCs play:
    python -m bloodmoon.main --players 8

  Play offline with random NPCs and short phases:
    python -m bloodmoon.main --offline --fast
""",
    )
    parser.add_argument(
        "--players",
        type=int,
        default=8,
        choices=range(4, 21),
        metavar="[4-20]",
        help="Number of NPC players (default: 8)",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use random NPCs instead of the Anthropic API",
    )
    parser.add_argument(
        "--fast",
        action="store_true",
        help="Shorten every phase to a few seconds",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for offline NPCs",
    )
    parser.add_argument(
        "--max-rounds",
        type=int,
        default=20,
        help="End the game after this many rounds (default: 20)",
    )
    parser.add_argument(
        "--nationality",
        choices=["english", "lithuanian"],
        default="english",
        help="Language for NPC names and chat",
    )
    parser.add_argument("--verbose", action="store_true", help="Show debug logging")

    args = parser.parse_args()
    setup_logging(args.verbose)
    env = EnvironmentSettings.from_env()

    settings = GameSettings(nationality=args.nationality)
    if args.fast:
        settings.night_time, settings.discussion_time, settings.vote_time = 8, 12, 6
        settings.npc_jitter = (0.2, 1.0)

    try:
        if args.offline:
            oracle = RandomOracle(random.Random(args.seed))
        else:
            console.print("[yellow]Initializing LLM agent...[/yellow]")
            oracle = LLMAgent(api_key=env.anthropic_api_key, model=env.model)

        session = GameSession(generate_code(), ConsoleBroadcaster(), settings, log_dir=env.log_dir)
        session.host_id = SPECTATOR_ID
        NPCDriver(session, oracle)

        async def _play() -> None:
            for _ in range(args.players):
                session.add_npc(SPECTATOR_ID)
            # Give generated profiles a moment to arrive before roles are dealt
            await asyncio.sleep(settings.npc_jitter[1] if args.offline else 5)
            await run_game(session, args.max_rounds)

        console.print(f"\n[bold cyan]🧛 BLOODMOON - game {session.code} 🧛[/bold cyan]\n")
        asyncio.run(_play())
        display_game_end(session)

    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("[yellow]Set ANTHROPIC_API_KEY in your .env file, or pass --offline[/yellow]")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Game interrupted by user[/yellow]")
        return 0

    return 0


if __name__ == "__main__":
    exit(main())
