"""
/simulate command — start a simulated conversation between AI personas.

Usage: /simulate ariadne and bob discussing API design for 10 turns
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from pydantic import BaseModel, Field

from chatsim.agents.simulation import SimulationAgent, SimulationRequest
from chatsim.config.models import get_llm
from chatsim.config.settings import Settings, get_settings
from chatsim.core.collaborators import PersonaStore
from chatsim.core.parsing import message_text, parse_structured

logger = logging.getLogger("simulate_command")

USAGE = "Usage: /simulate <personas> discussing <topic> [for N turns]"
PARSE_HINT = "Could not understand command. Try: /simulate ariadne and bob discussing API design for 10 turns"


class SimulationParams(BaseModel):
    personas: list[str] = Field(min_length=1, max_length=5)
    topic: str
    turns: int = Field(ge=1, le=50)
    thread: bool


class CommandContext(BaseModel):
    command_id: str
    args: str
    stream_id: str
    workspace_id: str
    member_id: str


class CommandResult(BaseModel):
    success: bool
    error: str | None = None
    result: dict[str, Any] | None = None


def build_parsing_prompt(available_personas: list[str]) -> str:
    persona_list = ", ".join(available_personas) if available_personas else "(none available)"

    return f"""Parse the command and extract: personas (array), topic (string), turns (number, default 5), thread (boolean, default false).

AVAILABLE PERSONAS: {persona_list}
Match persona names from the command to the available personas above. Use exact slugs from the list.

IMPORTANT: Personas are simple identifiers (one or two words like "ariadne", "bob", "the_critic").
Role descriptions like "as a reporter" or "pretending to be X" are part of the TOPIC, not the persona name.

THREAD: Set thread=true if the user says "in a thread", "as a thread", or similar.

Output raw JSON only. No markdown, no code blocks, no explanation.

Examples:
Input: "ariadne and bob discussing API design for 10 turns"
Output: {{"personas":["ariadne","bob"],"topic":"API design","turns":10,"thread":false}}

Input: "just ariadne thinking out loud, 3 turns"
Output: {{"personas":["ariadne"],"topic":"thinking out loud","turns":3,"thread":false}}

Input: "ariadne should interview herself as if she's a reporter, 4 turns"
Output: {{"personas":["ariadne"],"topic":"interview herself as if she's a reporter","turns":4,"thread":false}}

Input: "bob and alice discuss the weather in a thread"
Output: {{"personas":["bob","alice"],"topic":"the weather","turns":5,"thread":true}}

Input: "ariadne explores ideas, 6 turns, in a thread"
Output: {{"personas":["ariadne"],"topic":"explores ideas","turns":6,"thread":true}}

Input:"""


class SimulateCommand:
    name = "simulate"
    description = "Simulate a conversation between AI personas"

    def __init__(
        self,
        persona_store: PersonaStore,
        simulation_agent: SimulationAgent,
        parsing_model: BaseChatModel | None = None,
        *,
        model_factory: Callable[..., Any] = get_llm,
        settings: Settings | None = None,
    ) -> None:
        self.persona_store = persona_store
        self.simulation_agent = simulation_agent
        self.settings = settings or get_settings()
        self.parsing_model = parsing_model or model_factory(self.settings.parsing_model, temperature=0)

    async def execute(self, ctx: CommandContext) -> CommandResult:
        if not ctx.args.strip():
            return CommandResult(success=False, error=USAGE)

        available = await self._available_persona_slugs(ctx.workspace_id)

        try:
            params = await self._parse_args(ctx.args, available)
        except Exception as e:
            logger.warning(f"Failed to parse simulation args {ctx.args!r}: {e}")
            return CommandResult(success=False, error=PARSE_HINT)

        missing = await self._missing_personas(params.personas, ctx.workspace_id)
        if missing:
            label = "personas" if len(missing) > 1 else "persona"
            return CommandResult(success=False, error=f"Unknown {label}: {', '.join(missing)}")

        # TODO: run inside a freshly created thread once the host can create one for commands
        if params.thread:
            return CommandResult(
                success=False,
                error="Threading is not yet supported for /simulate. Run without 'in a thread'.",
            )

        logger.info(
            f"Running simulation for command {ctx.command_id}: personas={params.personas}, "
            f"topic={params.topic!r}, turns={params.turns}"
        )

        outcome = await self.simulation_agent.run(SimulationRequest(
            stream_id=ctx.stream_id,
            workspace_id=ctx.workspace_id,
            user_id=ctx.member_id,
            personas=params.personas,
            topic=params.topic,
            turns=params.turns,
        ))

        if outcome.status == "failed":
            return CommandResult(success=False, error=outcome.error or "Simulation failed")

        return CommandResult(
            success=True,
            result={
                "personas": params.personas,
                "topic": params.topic,
                "turns": params.turns,
                "messages_sent": outcome.messages_sent,
            },
        )

    async def _parse_args(self, args: str, available: list[str]) -> SimulationParams:
        prompt = f"{build_parsing_prompt(available)} {args}"
        response = await self.parsing_model.bind(temperature=0).ainvoke([HumanMessage(content=prompt)])
        return parse_structured(message_text(response), SimulationParams)

    async def _available_persona_slugs(self, workspace_id: str) -> list[str]:
        personas = await self.persona_store.list_for_workspace(workspace_id)
        return [p.slug for p in personas]

    async def _missing_personas(self, slugs: list[str], workspace_id: str) -> list[str]:
        missing = []
        for slug in slugs:
            if await self.persona_store.find_by_slug(slug.lower(), workspace_id) is None:
                missing.append(slug)
        return missing
