from __future__ import annotations

from chatsim.core import Persona, TurnRecord, apply_update, create_initial_state
from chatsim.core.prompts import build_orchestrator_prompt, build_persona_prompt, preview


def _record(turn: int, persona: Persona, content: str, is_thread: bool = False) -> TurnRecord:
    return TurnRecord(
        turn_number=turn,
        persona_slug=persona.slug,
        persona_name=persona.name,
        message_id=f"m{turn}",
        stream_id="thread_1" if is_thread else "stream_main",
        content=content,
        is_thread=is_thread,
    )


def test_preview_truncates_with_ellipsis() -> None:
    assert preview("x" * 150) == "x" * 150
    assert preview("x" * 151) == "x" * 150 + "..."


def test_orchestrator_prompt_on_first_turn(personas: list[Persona]) -> None:
    state = create_initial_state("stream_main", "ws_1", "user_1", personas, "API design", 4)

    prompt = build_orchestrator_prompt(state)

    assert "SCENARIO: API design" in prompt
    assert "- ariadne: Ariadne" in prompt
    assert "- bob: Bob" in prompt
    assert "This is turn 0 of 4" in prompt
    assert "No messages yet" in prompt
    assert "Conversation so far" not in prompt


def test_orchestrator_prompt_renders_history_previews(personas: list[Persona]) -> None:
    ariadne, bob = personas
    state = create_initial_state("stream_main", "ws_1", "user_1", personas, "API design", 4)
    state = apply_update(state, {
        "history": [
            _record(0, ariadne, "a" * 200),
            _record(1, bob, "Short reply", is_thread=True),
        ],
        "messages_sent": 2,
        "current_turn": 2,
    })

    prompt = build_orchestrator_prompt(state)

    assert "2 messages have been sent" in prompt
    assert f'Turn 0: Ariadne (in channel): "{"a" * 150}..."' in prompt
    assert 'Turn 1: Bob (in thread): "Short reply"' in prompt
    assert "This is turn 2 of 4" in prompt


def test_persona_prompt_labels_own_turns_as_you(personas: list[Persona]) -> None:
    ariadne, bob = personas
    state = create_initial_state("stream_main", "ws_1", "user_1", personas, "API design", 4)
    state = apply_update(state, {
        "history": [
            _record(0, ariadne, "REST or GraphQL?"),
            _record(1, bob, "GraphQL.", is_thread=True),
        ],
        "current_turn": 2,
    })

    prompt = build_persona_prompt(state, ariadne)

    assert prompt.startswith("You are Ariadne.")
    assert "You: REST or GraphQL?" in prompt
    assert "Bob (in thread): GraphQL." in prompt
    assert "You're posting in the main channel." in prompt
    assert "Continue the conversation naturally" in prompt


def test_persona_prompt_first_turn_and_thread_hint(personas: list[Persona]) -> None:
    state = create_initial_state("stream_main", "ws_1", "user_1", personas, "API design", 4)
    state = apply_update(state, {"is_thread_reply": True})

    prompt = build_persona_prompt(state, personas[1])

    assert "Start the conversation based on the scenario." in prompt
    assert "You're replying in a thread" in prompt
    assert "Recent conversation" not in prompt


def test_persona_prompt_only_includes_recent_window(personas: list[Persona]) -> None:
    ariadne, bob = personas
    state = create_initial_state("stream_main", "ws_1", "user_1", personas, "API design", 20)
    state = apply_update(state, {
        "history": [_record(i, bob, f"message number {i}") for i in range(12)],
        "current_turn": 12,
    })

    prompt = build_persona_prompt(state, ariadne, window=10)

    assert "message number 1\n" not in prompt
    assert "message number 2" in prompt
    assert "message number 11" in prompt
