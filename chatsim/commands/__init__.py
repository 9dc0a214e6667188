"""chatsim commands package."""

from chatsim.commands.simulate import SimulateCommand, CommandContext, CommandResult, SimulationParams

__all__ = [
    "SimulateCommand",
    "CommandContext",
    "CommandResult",
    "SimulationParams",
]
