"""chatsim config package."""

from chatsim.config.settings import get_settings, Settings
from chatsim.config.models import get_llm

__all__ = ["get_settings", "get_llm", "Settings"]
