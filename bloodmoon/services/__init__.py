"""Service layer for game logic and state management."""

from .action_service import NightActionService
from .context_service import ContextBuilder, OracleContext
from .night_resolver import NightResolver, is_bite_night
from .roster_service import NPC_PREFIX, RosterManager, build_pool, generate_npc_name
from .transcript_service import TranscriptWriter, current_session
from .visibility_service import StateView, VisibilityProjector
from .vote_service import LynchResolver, meets_threshold
from .win_service import Winner, evaluate_winner, win_notice

__all__ = [
    "NPC_PREFIX",
    "RosterManager",
    "build_pool",
    "generate_npc_name",
    "NightActionService",
    "ContextBuilder",
    "OracleContext",
    "NightResolver",
    "is_bite_night",
    "LynchResolver",
    "meets_threshold",
    "Winner",
    "evaluate_winner",
    "win_notice",
    "VisibilityProjector",
    "StateView",
    "TranscriptWriter",
    "current_session",
]
