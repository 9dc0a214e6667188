"""
Collaborators injected into a simulation run.

The graph never looks these up globally; whoever starts a run passes them in.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Protocol

from langchain_core.language_models import BaseChatModel

from chatsim.core.errors import SimulationConfigError
from chatsim.core.state import Persona


class CreateThread(Protocol):
    def __call__(
        self,
        *,
        workspace_id: str,
        parent_stream_id: str,
        parent_message_id: str,
        created_by: str,
    ) -> Awaitable[Mapping[str, Any]]: ...


class CreateMessage(Protocol):
    def __call__(
        self,
        *,
        workspace_id: str,
        stream_id: str,
        author_id: str,
        author_type: str,
        content: str,
    ) -> Awaitable[Mapping[str, Any]]: ...


class PersonaStore(Protocol):
    async def find_by_slug(self, slug: str, workspace_id: str) -> Persona | None: ...

    async def list_for_workspace(self, workspace_id: str) -> list[Persona]: ...


class StreamService(Protocol):
    async def create_thread(
        self,
        *,
        workspace_id: str,
        parent_stream_id: str,
        parent_message_id: str,
        created_by: str,
    ) -> Mapping[str, Any]: ...


@dataclass(frozen=True)
class SimulationCallbacks:
    """Capabilities the simulation graph needs from its host application."""

    get_orchestrator_model: Callable[[], BaseChatModel]
    get_persona_model: Callable[[Persona], BaseChatModel]
    create_thread: CreateThread
    create_message: CreateMessage

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("get_orchestrator_model", "get_persona_model", "create_thread", "create_message")
            if not callable(getattr(self, name))
        ]
        if missing:
            raise SimulationConfigError(f"Simulation callbacks missing: {', '.join(missing)}")
