"""Application-level exception types for chatsim."""

from __future__ import annotations


class ChatSimError(Exception):
    """Base exception for chatsim."""


class SimulationConfigError(ChatSimError):
    """Raised when a simulation is set up with missing or invalid configuration."""


class DecisionParseError(ChatSimError, ValueError):
    """Raised when model output cannot be parsed into the expected schema."""
