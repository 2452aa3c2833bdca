"""Builds the redacted context an NPC's oracle sees."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .. import prompt_templates as templates
from ..player import Player
from ..roles import ROLE_CATALOG, ActionType, get_role_info
from ..types import GamePhase
from .night_resolver import is_bite_night

if TYPE_CHECKING:
    from ..game import GameSession

RECENT_LOG_LIMIT = 10
RECENT_CHAT_LIMIT = 10


@dataclass
class OracleContext:
    """Everything one NPC may know at one moment, nothing more."""

    player_id: str
    phase: GamePhase
    round: int
    targets: list[str]
    actions: list[ActionType] = field(default_factory=list)
    fellow_vampires: list[str] = field(default_factory=list)
    chat: list[str] = field(default_factory=list)
    vote_summary: dict[str, int] = field(default_factory=dict)
    jail_partner: str | None = None
    is_jailor: bool = False
    jail_chat: list[str] = field(default_factory=list)
    nationality: str = "english"
    system_prompt: str = ""

    def jail_transcript(self) -> str:
        return "\n".join(self.jail_chat) or "(No messages yet)"


def format_role_catalog() -> str:
    lines = ["ROLES IN THIS GAME:"]
    for role, info in ROLE_CATALOG.items():
        lines.append(f"- {role.value} ({info['alignment'].value}): {info['ability']}")
    return "\n".join(lines)


class ContextBuilder:
    """Builds ``OracleContext`` objects from a live session."""

    def __init__(self, session: "GameSession") -> None:
        self.session = session

    def build(self, player: Player) -> OracleContext:
        s = self.session
        living = s.roster.alive()
        targets = [p.name for p in living if p.id != player.id]
        fellow_vampires = []
        if player.is_evil():
            fellow_vampires = [p.name for p in s.roster.alive_evil() if p.id != player.id]

        context = OracleContext(
            player_id=player.id,
            phase=s.state,
            round=s.round,
            targets=targets,
            actions=self.available_actions(player),
            fellow_vampires=fellow_vampires,
            chat=s.chat[-RECENT_CHAT_LIMIT:],
            nationality=s.settings.nationality,
        )
        if s.state == GamePhase.DAY_VOTE:
            context.vote_summary = {
                s.roster.get(pid).name: count for pid, count in s.lynch.vote_counts().items()
            }
        if s.jail.involves(player.id):
            context.is_jailor = player.id == s.jail.jailor_id
            other_id = s.jail.jailed_player_id if context.is_jailor else s.jail.jailor_id
            other = s.roster.get(other_id)
            context.jail_partner = other.name if other else None
            context.jail_chat = [f"{m.sender}: {m.message}" for m in s.jail.chat]
        context.system_prompt = self.system_prompt(player)
        return context

    def available_actions(self, player: Player) -> list[ActionType]:
        """Night actions this player could usefully submit right now."""
        if not player.alive or player.role is None or self.session.state != GamePhase.NIGHT:
            return []
        if self.session.jail.jailed_player_id == player.id:
            return []
        actions = []
        for action in sorted(get_role_info(player.role)["actions"], key=lambda a: a.value):
            if action == ActionType.CANCEL_EXECUTE:
                continue
            if action == ActionType.BITE and not is_bite_night(self.session.round):
                continue
            if action == ActionType.HEAL and not player.heals_remaining:
                continue
            if action == ActionType.EXECUTE and self.session.jail.jailor_id != player.id:
                continue
            actions.append(action)
        return actions

    def system_prompt(self, player: Player) -> str:
        s = self.session
        info = get_role_info(player.role) if player.role else None
        role_instruction = f"Your role is {player.role.value}. Your alignment is {player.alignment.value}."
        if player.fake_role:
            role_instruction += "\n" + templates.FAKE_ROLE_INSTRUCTION.format(
                fake_role=player.fake_role.value
            )

        personality = ""
        if player.personality and player.talking_style:
            personality = templates.PERSONALITY_BLOCK.format(
                personality=player.personality, talking_style=player.talking_style
            )

        history = ""
        if player.action_history:
            lines = [
                f"- Night {r.round}: You performed {r.action} on {r.target_name}"
                + (f" (result: {r.result})" if r.result else "")
                for r in player.action_history
            ]
            history = "\nYOUR PAST ACTIONS:\n" + "\n".join(lines) + "\n"

        dead = [p for p in s.roster.players if not p.alive]
        dead_line = ""
        if dead:
            names = [
                f"{p.name} ({p.role.value})" if s.settings.reveal_role and p.role else p.name
                for p in dead
            ]
            dead_line = f"- Dead players: {', '.join(names)}\n"

        voting_record = ""
        past_votes = s.lynch.history.describe(self._name_of)
        if past_votes:
            indented = "\n".join(f"  {line}" for line in past_votes)
            voting_record = f"- Past day votes:\n{indented}\n"

        private_notes = s.notices.build_context_for(player.id)
        if private_notes:
            private_notes = f"\nWhat you privately know:\n{private_notes}\n"

        if player.is_evil():
            fellows = [p.name for p in s.roster.alive_evil() if p.id != player.id]
            if fellows:
                private_notes += f"\nYour fellow vampires: {', '.join(fellows)}\n"

        living = s.roster.alive()
        return templates.SYSTEM_PROMPT.format(
            player_name=player.name,
            role_instruction=role_instruction,
            goal=info["goal"] if info else "Survive and help your faction win.",
            tip=info["tip"] if info else "",
            personality=personality,
            action_history=history,
            role_catalog=format_role_catalog(),
            mechanics=templates.GAME_MECHANICS,
            round=s.round,
            phase=s.state.value,
            bite_status=(
                "Vampires CAN bite tonight (even night)"
                if is_bite_night(s.round)
                else "Vampires cannot bite tonight (odd night)"
            ),
            living_count=len(living),
            living=", ".join(p.name for p in living),
            dead=dead_line,
            voting_record=voting_record,
            private_notes=private_notes,
            recent_logs="\n".join(s.logs[-RECENT_LOG_LIMIT:]) or "(No events yet)",
            share_rule=(
                "You may keep night results to yourself on Day 1."
                if s.round <= 1
                else "If you have night results, share them in the day discussion."
            ),
        )

    def _name_of(self, player_id: str) -> str:
        player = self.session.roster.get(player_id)
        return player.name if player else player_id
