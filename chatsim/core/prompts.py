"""
Prompt builders for the simulation graph.

The orchestrator sees the whole conversation (previews only); a speaking
persona sees the recent window in full, with its own turns labelled "You".
"""

from __future__ import annotations

from chatsim.core.state import Persona, TurnRecord, TurnState

HISTORY_PREVIEW_CHARS = 150
CONTEXT_WINDOW = 10


def preview(content: str, limit: int = HISTORY_PREVIEW_CHARS) -> str:
    """Truncate ``content`` to ``limit`` characters, marking the cut with an ellipsis."""
    if len(content) <= limit:
        return content
    return content[:limit] + "..."


def render_history_line(record: TurnRecord, limit: int = HISTORY_PREVIEW_CHARS) -> str:
    location = "(in thread)" if record.is_thread else "(in channel)"
    return f'Turn {record.turn_number}: {record.persona_name} {location}: "{preview(record.content, limit)}"'


def build_orchestrator_prompt(state: TurnState, preview_chars: int = HISTORY_PREVIEW_CHARS) -> str:
    """Prompt for the decision model: who speaks next and where."""
    history = state.get("history", [])
    persona_list = "\n".join(f"- {p.slug}: {p.name}" for p in state["personas"])

    history_text = ""
    if history:
        history_text = "\nConversation so far:\n" + "\n".join(
            render_history_line(record, preview_chars) for record in history
        )

    progress = (
        "No messages yet - someone needs to start!"
        if not history
        else f"{len(history)} messages have been sent"
    )

    return (
        f"You are orchestrating a simulated conversation.\n\n"
        f"SCENARIO: {state['topic']}\n\n"
        f"PERSONAS:\n{persona_list}\n\n"
        f"CURRENT STATE:\n"
        f"- This is turn {state.get('current_turn', 0)} of {state['total_turns']}\n"
        f"- {progress}\n"
        f"{history_text}\n\n"
        f"Decide who speaks next and where they should post their message.\n\n"
        f"REQUIRED OUTPUT FORMAT (use these exact field names):\n"
        f'{{"nextSpeaker": "<persona_slug>", "placement": "channel", "reasoning": "<why>"}}\n'
        f"or for threading:\n"
        f'{{"nextSpeaker": "<persona_slug>", "placement": {{"threadOf": <turn_number>}}, "reasoning": "<why>"}}\n\n'
        f"PLACEMENT OPTIONS:\n"
        f'- "channel": Post in the main conversation\n'
        f'- {{"threadOf": N}}: Create/reply in a thread attached to turn N\'s message\n\n'
        f"Consider the scenario description - if it mentions threading or replying to specific messages, honor that.\n"
        f'If the scenario describes a flow (e.g., "A asks, B responds, A replies in thread"), follow it.\n'
        f"Otherwise, use your judgment to create natural conversation flow.\n\n"
        f'Output JSON only. Use "nextSpeaker" not "speaker".'
    )


def build_persona_prompt(state: TurnState, persona: Persona, window: int = CONTEXT_WINDOW) -> str:
    """Prompt for the speaking persona, voiced from its own point of view."""
    history = state.get("history", [])

    context_text = ""
    if history:
        lines = []
        for record in history[-window:]:
            speaker = "You" if record.persona_slug == persona.slug else record.persona_name
            location = " (in thread)" if record.is_thread else ""
            lines.append(f"{speaker}{location}: {record.content}")
        context_text = "\nRecent conversation:\n" + "\n".join(lines)

    if state.get("is_thread_reply"):
        location_hint = "You're replying in a thread - keep it focused and relevant to the parent message."
    else:
        location_hint = "You're posting in the main channel."

    if state.get("current_turn", 0) == 0:
        instruction = "Start the conversation based on the scenario."
    else:
        instruction = "Continue the conversation naturally based on what's been said and the scenario."

    return (
        f"You are {persona.name}.\n\n"
        f"SCENARIO: {state['topic']}\n\n"
        f"{context_text}\n\n"
        f"{location_hint}\n\n"
        f"{instruction}\n\n"
        f"Respond in character. Be natural and engaging. Keep your response concise but meaningful."
    )
