"""chatsim — turn-based multi-persona conversation simulator."""

__version__ = "0.1.0"
