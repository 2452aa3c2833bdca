"""LLM integration for NPC decision-making."""

import json
import logging
import random
from typing import Any, Optional, TypeVar

from anthropic import Anthropic, APIError
from pydantic import BaseModel, Field, ValidationError, field_validator

from . import prompt_templates as templates
from .config import DEFAULT_MODEL, EnvironmentSettings
from .errors import CollaboratorFailure
from .player import Player
from .roles import ActionType
from .services.context_service import OracleContext

logger = logging.getLogger(__name__)

SILENT_WORDS = {"", "silence", "none", "null", "no one", "nobody", "abstain", "skip"}

DecisionT = TypeVar("DecisionT", bound=BaseModel)


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in SILENT_WORDS:
        return None
    return text


class NightActionDecision(BaseModel):
    """Schema for a night action with reasoning."""

    reasoning: str = Field("", description="1-2 sentence explanation of the reasoning")
    action: str = Field("NONE", description="One of the listed actions, or NONE")
    target: Optional[str] = Field(None, description="Exact name of the target player")

    @field_validator("target", mode="before")
    @classmethod
    def _clean_target(cls, value: Any) -> Optional[str]:
        return _blank_to_none(value)

    def action_type(self) -> ActionType | None:
        """The chosen action, or None for NONE and anything unrecognised."""
        try:
            return ActionType(self.action.strip().upper())
        except ValueError:
            return None


class VoteDecision(BaseModel):
    """Schema for a lynch vote with reasoning."""

    reasoning: str = Field("", description="1-2 sentence explanation of the reasoning")
    target: Optional[str] = Field(None, description="Exact name of the player to lynch, or null")

    @field_validator("target", mode="before")
    @classmethod
    def _clean_target(cls, value: Any) -> Optional[str]:
        return _blank_to_none(value)


class ChatLine(BaseModel):
    """Schema for something said aloud, with private thinking."""

    thinking: str = Field("", description="Internal deliberation, never shown to players")
    message: Optional[str] = Field(None, description="What you say out loud, or SILENCE")

    @field_validator("message", mode="before")
    @classmethod
    def _clean_message(cls, value: Any) -> Optional[str]:
        return _blank_to_none(value)

    @property
    def silent(self) -> bool:
        return self.message is None


class ExecuteDecision(BaseModel):
    """Schema for the Jailor's execute decision."""

    reasoning: str = Field("", description="1-2 sentence explanation of the reasoning")
    execute: bool = Field(False, description="True to execute the prisoner")


class NPCProfile(BaseModel):
    """Schema for a generated NPC identity."""

    name: str = Field(description="A unique realistic first name")
    gender: str = Field("", description="male or female, matching the name")
    personality: str = Field(description="15-25 words combining 2-3 balanced traits")
    talking_style: str = Field(description="10-20 words on how they talk")
    background: str = Field("", description="One sentence background")


def parse_json(text: str) -> dict:
    """Parse a JSON object from model text, tolerating markdown fences."""
    cleaned = text.replace("```json", "").replace("```", "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("[AI] Failed to parse JSON: %s", text)
        return {}
    return data if isinstance(data, dict) else {}


def coerce(model: type[DecisionT], data: dict) -> DecisionT:
    """Validate a decision, falling back to the schema's defaults on junk."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning("[AI] Malformed %s: %s", model.__name__, e.error_count())
        return model()


class LLMAgent:
    """Handles LLM API calls for NPC decisions."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize the LLM agent."""
        env = EnvironmentSettings.from_env()
        self.api_key = api_key or env.anthropic_api_key
        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY not found in environment variables")

        self.client = Anthropic(api_key=self.api_key)
        self.model = model or env.model or DEFAULT_MODEL

    def suggest_night_action(self, player: Player, context: OracleContext) -> NightActionDecision:
        if not context.actions:
            return NightActionDecision()
        team_info = ""
        if context.fellow_vampires:
            team_info = f"Your fellow vampires: {', '.join(context.fellow_vampires)}"
        prompt = templates.NIGHT_ACTION_PROMPT.format(
            round=context.round,
            actions=", ".join(a.value for a in context.actions),
            targets=", ".join(context.targets),
            team_info=team_info,
        )
        decision = self._ask(
            context.system_prompt, prompt, NightActionDecision, "choose_night_action", 200
        )
        logger.info("[AI] Night action for %s: %s %s", player.name, decision.action, decision.target)
        return decision

    def suggest_vote(self, player: Player, context: OracleContext) -> VoteDecision:
        summary = ", ".join(f"{name}: {count}" for name, count in context.vote_summary.items())
        prompt = templates.DAY_VOTE_PROMPT.format(
            targets=", ".join(context.targets), vote_summary=summary or "(no votes yet)"
        )
        decision = self._ask(context.system_prompt, prompt, VoteDecision, "cast_vote", 200)
        logger.info("[AI] Vote for %s: %s", player.name, decision.target)
        return decision

    def suggest_chat(
        self, player: Player, context: OracleContext, addressed: bool = False
    ) -> ChatLine:
        prompt = templates.DAY_CHAT_PROMPT.format(
            chat="\n".join(context.chat) or "(No chat history yet)",
            addressed=templates.ADDRESSED if addressed else templates.NOT_ADDRESSED,
            language=templates.LANGUAGE_INSTRUCTIONS.get(
                context.nationality, templates.LANGUAGE_INSTRUCTIONS["english"]
            ),
        )
        line = self._ask(context.system_prompt, prompt, ChatLine, "speak", 250)
        logger.info("[AI] Chat from %s: %s", player.name, line.message)
        return line

    def suggest_jail_message(self, player: Player, context: OracleContext) -> ChatLine:
        if context.is_jailor:
            prompt = templates.JAILOR_PROMPT.format(
                round=context.round,
                partner=context.jail_partner,
                jail_chat=context.jail_transcript(),
            )
        else:
            stance = templates.INNOCENT_STANCE if player.is_good() else templates.GUILTY_STANCE
            prompt = templates.PRISONER_PROMPT.format(
                round=context.round,
                partner=context.jail_partner,
                stance=stance,
                jail_chat=context.jail_transcript(),
            )
        line = self._ask(context.system_prompt, prompt, ChatLine, "speak", 200)
        logger.info("[AI] Jail message from %s: %s", player.name, line.message)
        return line

    def suggest_execute(self, player: Player, context: OracleContext) -> ExecuteDecision:
        prompt = templates.EXECUTE_PROMPT.format(
            partner=context.jail_partner, jail_chat=context.jail_transcript()
        )
        decision = self._ask(context.system_prompt, prompt, ExecuteDecision, "decide_execution", 150)
        logger.info("[AI] Execute decision for %s: %s", player.name, decision.execute)
        return decision

    def generate_profile(
        self, existing_names: list[str], nationality: str = "english"
    ) -> Optional[NPCProfile]:
        prompt = templates.PROFILE_PROMPT.format(
            forbidden=", ".join(n.strip() for n in existing_names) or "(none)",
            name_instruction=templates.NAME_INSTRUCTIONS.get(
                nationality, templates.NAME_INSTRUCTIONS["english"]
            ),
        )
        data = self._call_tool("", prompt, NPCProfile, "create_profile", 300)
        try:
            profile = NPCProfile.model_validate(data)
        except ValidationError:
            logger.warning("[AI] Invalid profile format: %s", data)
            return None
        if profile.name in existing_names:
            return None
        logger.info("[AI] Generated profile %s", profile.name)
        return profile

    def _ask(
        self, system: str, prompt: str, model: type[DecisionT], tool_name: str, max_tokens: int
    ) -> DecisionT:
        return coerce(model, self._call_tool(system, prompt, model, tool_name, max_tokens))

    def _call_tool(
        self, system: str, prompt: str, model: type[BaseModel], tool_name: str, max_tokens: int
    ) -> dict:
        """Ask for structured output through a forced tool call.

        Raises ``CollaboratorFailure`` if the API call itself fails. A reply
        without the tool call is parsed as JSON text, or yields ``{}``.
        """
        tool_schema = {
            "name": tool_name,
            "description": model.__doc__ or tool_name,
            "input_schema": model.model_json_schema(),
        }
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=0.8,
                system=system,
                tools=[tool_schema],
                tool_choice={"type": "tool", "name": tool_name},
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            raise CollaboratorFailure(f"{tool_name} failed: {e}") from e

        for block in response.content:
            if block.type == "tool_use" and block.name == tool_name:
                return dict(block.input)
        for block in response.content:
            if block.type == "text":
                return parse_json(block.text)
        return {}


OFFLINE_NAMES = [
    "James", "Sarah", "Michael", "Emily", "David", "Jessica", "Daniel", "Laura",
    "Thomas", "Hannah", "Peter", "Grace", "Oliver", "Megan", "Samuel", "Chloe",
]
OFFLINE_PERSONALITIES = [
    ("Logical thinker who stays calm under pressure, moderately talkative",
     "Straightforward and factual, uses short sentences"),
    ("Friendly and trusting but defensive when accused, somewhat quiet",
     "Polite and measured, asks clarifying questions"),
    ("Skeptical and observant, prefers to listen before speaking",
     "Deliberate word choice, formal but not stiff"),
]
OFFLINE_CHAT = [
    "Anyone have results from last night?",
    "I'm not sure yet, let's hear from the quiet ones.",
    "That claim doesn't add up to me.",
    "I trust the investigators on this one.",
]


class RandomOracle:
    """Offline oracle that plays uniformly at random.

    Used when no API key is configured, and handy for reproducible runs
    when given a seeded ``random.Random``.
    """

    def __init__(self, rng: random.Random | None = None, chattiness: float = 0.3) -> None:
        self.rng = rng or random.Random()
        self.chattiness = chattiness

    def suggest_night_action(self, player: Player, context: OracleContext) -> NightActionDecision:
        actions = [a for a in context.actions if a != ActionType.EXECUTE]
        if not actions or not context.targets:
            return NightActionDecision()
        action = self.rng.choice(actions)
        return NightActionDecision(action=action.value, target=self.rng.choice(context.targets))

    def suggest_vote(self, player: Player, context: OracleContext) -> VoteDecision:
        if not context.targets or self.rng.random() < 0.2:
            return VoteDecision()
        return VoteDecision(target=self.rng.choice(context.targets))

    def suggest_chat(
        self, player: Player, context: OracleContext, addressed: bool = False
    ) -> ChatLine:
        if not addressed and self.rng.random() > self.chattiness:
            return ChatLine()
        return ChatLine(message=self.rng.choice(OFFLINE_CHAT))

    def suggest_jail_message(self, player: Player, context: OracleContext) -> ChatLine:
        if context.is_jailor:
            return ChatLine(message="What is your role, and what did you do last night?")
        claim = player.fake_role or player.role
        return ChatLine(message=f"I'm {claim.display_name()}, I swear.")

    def suggest_execute(self, player: Player, context: OracleContext) -> ExecuteDecision:
        return ExecuteDecision(execute=self.rng.random() < 0.25)

    def generate_profile(
        self, existing_names: list[str], nationality: str = "english"
    ) -> Optional[NPCProfile]:
        free = [n for n in OFFLINE_NAMES if n not in existing_names]
        if not free:
            return None
        personality, style = self.rng.choice(OFFLINE_PERSONALITIES)
        return NPCProfile(name=self.rng.choice(free), personality=personality, talking_style=style)
