"""
Simulation Agent — runs one multi-persona conversation end to end.

Loads the requested personas, wires the host's collaborators into the
simulation graph and reports how the run went.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Literal

from langgraph.checkpoint.base import BaseCheckpointSaver
from pydantic import BaseModel, Field

from chatsim.config.models import get_llm
from chatsim.config.settings import Settings, get_settings
from chatsim.core.collaborators import CreateMessage, PersonaStore, SimulationCallbacks, StreamService
from chatsim.core.state import Persona, create_initial_state
from chatsim.graphs.simulation import build_simulation_graph, recursion_limit_for

logger = logging.getLogger("simulation")


class SimulationRequest(BaseModel):
    stream_id: str
    workspace_id: str
    user_id: str
    personas: list[str] = Field(default_factory=list)  # Persona slugs
    topic: str = ""
    turns: int = 5


class SimulationResult(BaseModel):
    status: Literal["completed", "failed"]
    messages_sent: int = 0
    error: str | None = None


class SimulationAgent:
    """
    Orchestrates dynamic multi-persona conversations.

    1. An orchestrator model decides who speaks and where (channel vs thread)
    2. Message ids are tracked so later turns can thread off earlier ones
    3. Threads are created on first use
    4. Each persona speaks with its own model and settings
    """

    def __init__(
        self,
        persona_store: PersonaStore,
        stream_service: StreamService,
        create_message: CreateMessage,
        *,
        model_factory: Callable[..., Any] = get_llm,
        orchestrator_model: str | None = None,
        checkpointer: BaseCheckpointSaver | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.persona_store = persona_store
        self.stream_service = stream_service
        self.create_message = create_message
        self.model_factory = model_factory
        self.settings = settings or get_settings()
        self.orchestrator_model = orchestrator_model or self.settings.orchestrator_model
        self.checkpointer = checkpointer

    async def run(self, request: SimulationRequest) -> SimulationResult:
        logger.info(
            f"Starting simulation in {request.stream_id}: personas={request.personas}, "
            f"topic={request.topic!r}, turns={request.turns}"
        )

        personas = await self._load_personas(request.personas, request.workspace_id)
        if not personas:
            return SimulationResult(status="failed", messages_sent=0, error="No valid personas found")

        graph = build_simulation_graph(self._callbacks(), self.settings)
        compiled = graph.compile(checkpointer=self.checkpointer)

        initial_state = create_initial_state(
            stream_id=request.stream_id,
            workspace_id=request.workspace_id,
            user_id=request.user_id,
            personas=personas,
            topic=request.topic,
            total_turns=request.turns,
        )

        # Unique per run, used as the checkpoint thread
        run_id = f"simulation_{request.stream_id}_{int(time.time() * 1000)}"

        try:
            final_state = await compiled.ainvoke(
                initial_state,
                config={
                    "configurable": {"thread_id": run_id},
                    "recursion_limit": recursion_limit_for(request.turns),
                },
            )
        except Exception as e:
            logger.exception(f"Simulation {run_id} failed: {e}")
            return SimulationResult(status="failed", messages_sent=0, error=str(e))

        messages_sent = final_state.get("messages_sent", 0)
        if final_state.get("status") == "failed":
            error = final_state.get("error") or "Unknown error"
            logger.error(f"Simulation {run_id} failed: {error}")
            return SimulationResult(status="failed", messages_sent=messages_sent, error=error)

        logger.info(f"Simulation {run_id} completed: {messages_sent} messages sent")
        return SimulationResult(status="completed", messages_sent=messages_sent)

    async def _load_personas(self, slugs: list[str], workspace_id: str) -> list[Persona]:
        loaded: list[Persona] = []
        seen: set[str] = set()
        for slug in slugs:
            key = slug.lower()
            if key in seen:
                continue
            seen.add(key)
            persona = await self.persona_store.find_by_slug(key, workspace_id)
            if persona is not None:
                loaded.append(persona)
            else:
                logger.warning(f"Persona {slug!r} not found in workspace {workspace_id}")
        return loaded

    def _callbacks(self) -> SimulationCallbacks:
        async def create_thread(**params: Any):
            thread = await self.stream_service.create_thread(**params)
            logger.debug(f"Created thread {thread['id']} for simulation message {params['parent_message_id']}")
            return thread

        return SimulationCallbacks(
            get_orchestrator_model=lambda: self.model_factory(self.orchestrator_model),
            get_persona_model=lambda persona: self.model_factory(persona.model or self.settings.persona_model),
            create_thread=create_thread,
            create_message=self.create_message,
        )
