"""Turn engine: the per-action orchestrator and the session boundary around it.

  orchestrator — take_turn(): prompt → narrator → validate → (auto-check) → apply
  session      — AdventureSession: owns GameState, lifecycle flags, in-flight
                 guard, error folding, scene illustration follow-up
"""

from .orchestrator import (  # noqa: F401
    TerminalStateError,
    TurnInFlightError,
    TurnRejected,
    TurnResult,
    take_turn,
)
from .session import NARRATION_FAILED, AdventureSession, TurnReport  # noqa: F401
