"""chatsim core package."""

from chatsim.core.state import (
    Persona,
    ThreadPlacement,
    TurnDecision,
    TurnRecord,
    TurnState,
    apply_update,
    create_initial_state,
)
from chatsim.core.collaborators import SimulationCallbacks, PersonaStore, StreamService
from chatsim.core.errors import ChatSimError, SimulationConfigError, DecisionParseError
from chatsim.core.parsing import strip_markdown_fences, parse_structured

__all__ = [
    "Persona",
    "ThreadPlacement",
    "TurnDecision",
    "TurnRecord",
    "TurnState",
    "apply_update",
    "create_initial_state",
    "SimulationCallbacks",
    "PersonaStore",
    "StreamService",
    "ChatSimError",
    "SimulationConfigError",
    "DecisionParseError",
    "strip_markdown_fences",
    "parse_structured",
]
