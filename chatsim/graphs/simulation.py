"""
Simulation Graph — dynamic multi-persona conversation with threading.

Each turn runs four nodes:
- orchestrate: a cheap decision model picks the next speaker and where they post
- resolve_placement: "channel" or "thread of turn N" → a concrete stream,
  creating the thread on first use and caching it per parent message
- generate: the chosen persona's own model writes the message
- send: persist the message, record it, advance the turn counter

Flow: [orchestrate → resolve_placement → generate → send] × total_turns → END

A run is strictly sequential. Thread creation relies on that: the cache is
checked, the thread created and the cache entry recorded before any other
node runs, so no lock is needed.
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from langgraph.graph import END, StateGraph

from chatsim.config.settings import Settings, get_settings
from chatsim.core.collaborators import SimulationCallbacks
from chatsim.core.errors import SimulationConfigError
from chatsim.core.parsing import message_text, parse_structured
from chatsim.core.prompts import build_orchestrator_prompt, build_persona_prompt
from chatsim.core.state import (
    ThreadPlacement,
    TurnDecision,
    TurnRecord,
    TurnState,
    cleared_turn_fields,
)

logger = logging.getLogger("simulation")

ORCHESTRATOR_SYSTEM = "You decide the flow of a simulated team conversation. Reply with JSON only."


def _failed(state: TurnState) -> bool:
    return state.get("status") == "failed"


class SimulationNodes:
    """The four node functions of the simulation graph, bound to one set of collaborators."""

    def __init__(self, callbacks: SimulationCallbacks, settings: Settings | None = None) -> None:
        if callbacks is None:
            raise SimulationConfigError("SimulationCallbacks must be provided")
        self.callbacks = callbacks
        self.settings = settings or get_settings()

    # ─── Node Functions ───

    async def orchestrate(self, state: TurnState) -> dict[str, Any]:
        """Ask the decision model who speaks next and where."""
        if _failed(state):
            return {}

        model = self.callbacks.get_orchestrator_model()
        prompt = build_orchestrator_prompt(state, self.settings.history_preview_chars)

        response = await model.bind(temperature=self.settings.orchestrator_temperature).ainvoke([
            SystemMessage(content=ORCHESTRATOR_SYSTEM),
            HumanMessage(content=prompt),
        ])
        decision = parse_structured(message_text(response), TurnDecision)

        persona = state["persona_by_slug"].get(decision.next_speaker.lower())
        if persona is None:
            # Unknown slug: keep the simulation moving with the first persona
            persona = state["personas"][0]
            logger.warning(
                f"Turn {state['current_turn']}: unknown speaker {decision.next_speaker!r}, "
                f"falling back to {persona.slug}"
            )
            decision = decision.model_copy(update={"next_speaker": persona.slug})

        where = "channel" if decision.thread_of is None else f"thread of turn {decision.thread_of}"
        logger.info(f"Turn {state['current_turn']}: {persona.slug} → {where} ({decision.reasoning})")

        return {
            "current_decision": decision,
            "current_speaker": persona,
        }

    async def resolve_placement(self, state: TurnState) -> dict[str, Any]:
        """Turn the decision's placement into a target stream, creating a thread if needed."""
        if _failed(state):
            return {}

        decision = state.get("current_decision")
        if decision is None:
            return {"status": "failed", "error": "No decision available"}

        if not isinstance(decision.placement, ThreadPlacement):
            return {"target_stream_id": state["stream_id"], "is_thread_reply": False}

        parent_turn = decision.placement.thread_of
        parent = next(
            (record for record in state.get("history", []) if record.turn_number == parent_turn),
            None,
        )
        if parent is None:
            logger.warning(
                f"Turn {state['current_turn']}: no message for turn {parent_turn}, posting in channel"
            )
            return {"target_stream_id": state["stream_id"], "is_thread_reply": False}

        thread_id = state.get("thread_cache", {}).get(parent.message_id)
        if thread_id is not None:
            return {"target_stream_id": thread_id, "is_thread_reply": True}

        thread = await self.callbacks.create_thread(
            workspace_id=state["workspace_id"],
            parent_stream_id=parent.stream_id,
            parent_message_id=parent.message_id,
            created_by=state["user_id"],
        )
        thread_id = thread["id"]
        logger.debug(f"Created thread {thread_id} for message {parent.message_id}")

        return {
            "target_stream_id": thread_id,
            "is_thread_reply": True,
            "thread_cache": {parent.message_id: thread_id},
        }

    async def generate(self, state: TurnState) -> dict[str, Any]:
        """Let the chosen persona write its message."""
        if _failed(state):
            return {}

        persona = state.get("current_speaker")
        if persona is None:
            return {"status": "failed", "error": "No persona selected"}

        messages = []
        if persona.system_prompt:
            messages.append(SystemMessage(content=persona.system_prompt))
        messages.append(HumanMessage(content=build_persona_prompt(state, persona, self.settings.context_window)))

        temperature = persona.temperature if persona.temperature is not None else self.settings.persona_temperature
        max_tokens = persona.max_tokens if persona.max_tokens is not None else self.settings.persona_max_tokens

        model = self.callbacks.get_persona_model(persona)
        response = await model.bind(temperature=temperature, max_tokens=max_tokens).ainvoke(messages)

        content = message_text(response).strip()
        return {"current_content": content or None}

    async def send(self, state: TurnState) -> dict[str, Any]:
        """Persist the message and advance the turn. Turns without content are skipped."""
        if _failed(state):
            return {}

        content = state.get("current_content")
        persona = state.get("current_speaker")
        target_stream_id = state.get("target_stream_id")
        turn = state["current_turn"]

        if not content or persona is None or not target_stream_id:
            logger.info(f"Turn {turn}: nothing to send, skipping")
            return {"current_turn": turn + 1, **cleared_turn_fields()}

        is_thread = state.get("is_thread_reply", False)
        message = await self.callbacks.create_message(
            workspace_id=state["workspace_id"],
            stream_id=target_stream_id,
            author_id=persona.id,
            author_type="persona",
            content=content,
        )

        record = TurnRecord(
            turn_number=turn,
            persona_slug=persona.slug,
            persona_name=persona.name,
            message_id=message["id"],
            stream_id=target_stream_id,
            content=content,
            is_thread=is_thread,
        )

        return {
            "history": [record],
            "messages_sent": 1,
            "current_turn": turn + 1,
            **cleared_turn_fields(),
        }


# ─── Routing ───

def should_continue(state: TurnState) -> str:
    """Run another turn, or stop once the turn budget is spent or the run failed."""
    if _failed(state):
        return "end"
    if state.get("current_turn", 0) >= state["total_turns"]:
        return "end"
    return "orchestrate"


# ─── Graph Build ───

def build_simulation_graph(
    callbacks: SimulationCallbacks | None,
    settings: Settings | None = None,
) -> StateGraph:
    """
    Build the simulation graph.

    Flow: (budget left?) → orchestrate → resolve_placement → generate → send → (budget left?)
    """
    nodes = SimulationNodes(callbacks, settings)

    graph = StateGraph(TurnState)

    # Nodes
    graph.add_node("orchestrate", nodes.orchestrate)
    graph.add_node("resolve_placement", nodes.resolve_placement)
    graph.add_node("generate", nodes.generate)
    graph.add_node("send", nodes.send)

    # Entry: a zero-turn run goes straight to END
    graph.set_conditional_entry_point(
        should_continue,
        {
            "orchestrate": "orchestrate",
            "end": END,
        },
    )

    graph.add_edge("orchestrate", "resolve_placement")
    graph.add_edge("resolve_placement", "generate")
    graph.add_edge("generate", "send")

    graph.add_conditional_edges(
        "send",
        should_continue,
        {
            "orchestrate": "orchestrate",
            "end": END,
        },
    )

    return graph


def recursion_limit_for(total_turns: int) -> int:
    """LangGraph step budget for a run of ``total_turns`` turns."""
    return 4 * total_turns + 5
