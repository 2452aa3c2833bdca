"""Phase management: the countdown timer and the state machine that owns it."""

from .machine import PhaseMachine
from .timer import PhaseTimer

__all__ = ["PhaseMachine", "PhaseTimer"]
