"""
Simulation Turn State.

This is the single record threaded through every node of the simulation graph.
Every LangGraph node reads from it and returns a partial update, which is merged
back field by field using the reducers declared here.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, TypedDict, Union

from pydantic import BaseModel, ConfigDict, Field

from chatsim.core.errors import SimulationConfigError


# ─── Participants & Decisions ───

class Persona(BaseModel):
    """A configured AI participant that can speak in a simulation."""

    id: str
    slug: str                          # Unique within one simulation (case-insensitive)
    name: str                          # Display name, e.g. "Ariadne"
    system_prompt: str | None = None
    model: str | None = None           # Model reference handed to the model factory
    temperature: float | None = None
    max_tokens: int | None = None


class ThreadPlacement(BaseModel):
    """Placement that replies in the thread rooted at an earlier turn's message."""

    model_config = ConfigDict(populate_by_name=True)

    thread_of: int = Field(alias="threadOf")


Placement = Union[Literal["channel"], ThreadPlacement]


class TurnDecision(BaseModel):
    """The orchestrator's output for one turn: who speaks next and where."""

    model_config = ConfigDict(populate_by_name=True)

    next_speaker: str = Field(alias="nextSpeaker")
    placement: Placement
    reasoning: str

    @property
    def thread_of(self) -> int | None:
        if isinstance(self.placement, ThreadPlacement):
            return self.placement.thread_of
        return None


class TurnRecord(BaseModel):
    """A message that was actually sent. Immutable once appended to history."""

    model_config = ConfigDict(frozen=True)

    turn_number: int
    persona_slug: str
    persona_name: str
    message_id: str
    stream_id: str
    content: str
    is_thread: bool = False


# ─── Reducers ───

def append_history(existing: list[TurnRecord], updates: list[TurnRecord]) -> list[TurnRecord]:
    """History is append-only. Entries are never reordered or replaced."""
    return list(existing) + list(updates)


def merge_thread_cache(existing: dict[str, str], updates: dict[str, str]) -> dict[str, str]:
    """
    Merge thread cache entries. The first thread recorded for a parent
    message is kept; later writes for the same parent are ignored.
    """
    merged = dict(existing)
    for parent_message_id, thread_id in updates.items():
        merged.setdefault(parent_message_id, thread_id)
    return merged


def add_count(existing: int, delta: int) -> int:
    return existing + delta


# ─── State ───

class TurnState(TypedDict, total=False):
    # Configuration (set once in create_initial_state)
    stream_id: str
    workspace_id: str
    user_id: str
    personas: list[Persona]
    persona_by_slug: dict[str, Persona]  # lower-cased slug → Persona
    topic: str
    total_turns: int

    # Accumulators
    current_turn: int
    history: Annotated[list[TurnRecord], append_history]
    thread_cache: Annotated[dict[str, str], merge_thread_cache]  # parent message id → thread stream id
    messages_sent: Annotated[int, add_count]

    # Per-turn scratch (cleared by send)
    current_decision: TurnDecision | None
    current_speaker: Persona | None
    current_content: str | None
    target_stream_id: str | None
    is_thread_reply: bool

    # Terminal
    status: Literal["running", "completed", "failed"]
    error: str | None


CONFIG_FIELDS = frozenset({
    "stream_id",
    "workspace_id",
    "user_id",
    "personas",
    "persona_by_slug",
    "topic",
    "total_turns",
})

REDUCERS = {
    "history": append_history,
    "thread_cache": merge_thread_cache,
    "messages_sent": add_count,
}


def cleared_turn_fields() -> dict[str, Any]:
    """The per-turn scratch fields in their reset form."""
    return {
        "current_decision": None,
        "current_speaker": None,
        "current_content": None,
        "target_stream_id": None,
        "is_thread_reply": False,
    }


def create_initial_state(
    stream_id: str,
    workspace_id: str,
    user_id: str,
    personas: list[Persona],
    topic: str,
    total_turns: int,
) -> TurnState:
    """Build the state for a new simulation run."""
    if not personas:
        raise SimulationConfigError("A simulation needs at least one persona")
    if total_turns < 0:
        raise SimulationConfigError(f"total_turns must be >= 0, got {total_turns}")

    persona_by_slug: dict[str, Persona] = {}
    for persona in personas:
        key = persona.slug.lower()
        if key in persona_by_slug:
            raise SimulationConfigError(f"Duplicate persona slug: {persona.slug}")
        persona_by_slug[key] = persona

    return TurnState(
        stream_id=stream_id,
        workspace_id=workspace_id,
        user_id=user_id,
        personas=list(personas),
        persona_by_slug=persona_by_slug,
        topic=topic,
        total_turns=total_turns,
        current_turn=0,
        history=[],
        thread_cache={},
        messages_sent=0,
        status="running",
        error=None,
        **cleared_turn_fields(),
    )


def apply_update(state: TurnState, update: dict[str, Any]) -> TurnState:
    """
    Merge a node's partial update into a copy of ``state``.

    Uses the same per-field rules the graph declares: ``history`` appends,
    ``thread_cache`` merges, ``messages_sent`` adds, everything else replaces.
    """
    touched = CONFIG_FIELDS.intersection(update)
    if touched:
        raise SimulationConfigError(f"Configuration fields are read-only: {sorted(touched)}")

    merged: dict[str, Any] = dict(state)
    for key, value in update.items():
        reducer = REDUCERS.get(key)
        if reducer is not None:
            merged[key] = reducer(merged.get(key, type(value)()), value)
        else:
            merged[key] = value
    return TurnState(**merged)
