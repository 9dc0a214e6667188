"""chatsim agents package."""

from chatsim.agents.simulation import SimulationAgent, SimulationRequest, SimulationResult

__all__ = [
    "SimulationAgent",
    "SimulationRequest",
    "SimulationResult",
]
