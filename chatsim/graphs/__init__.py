"""chatsim graphs package."""

from chatsim.graphs.simulation import (
    SimulationNodes,
    build_simulation_graph,
    should_continue,
)

__all__ = [
    "SimulationNodes",
    "build_simulation_graph",
    "should_continue",
]
