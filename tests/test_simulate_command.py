from __future__ import annotations

import json

import pytest

from chatsim.agents import SimulationRequest, SimulationResult
from chatsim.commands import CommandContext, SimulateCommand
from chatsim.commands.simulate import PARSE_HINT, USAGE, build_parsing_prompt

from fakes import ScriptedChatModel


class RecordingAgent:
    def __init__(self, result: SimulationResult) -> None:
        self.result = result
        self.requests: list[SimulationRequest] = []

    async def run(self, request: SimulationRequest) -> SimulationResult:
        self.requests.append(request)
        return self.result


def _params(**overrides) -> str:
    params = {"personas": ["ariadne", "bob"], "topic": "API design", "turns": 10, "thread": False}
    params.update(overrides)
    return json.dumps(params)


def _ctx(args: str) -> CommandContext:
    return CommandContext(
        command_id="cmd_1",
        args=args,
        stream_id="stream_main",
        workspace_id="ws_1",
        member_id="member_1",
    )


def _command(workspace, parsing_reply: str, result: SimulationResult | None = None):
    agent = RecordingAgent(result or SimulationResult(status="completed", messages_sent=10))
    model = ScriptedChatModel(replies=[parsing_reply])
    return SimulateCommand(workspace, agent, model), agent, model


@pytest.mark.asyncio
async def test_empty_args_show_usage(workspace) -> None:
    command, agent, model = _command(workspace, _params())

    result = await command.execute(_ctx("   "))

    assert result.success is False
    assert result.error == USAGE
    assert model.calls == []


@pytest.mark.asyncio
async def test_runs_simulation_from_parsed_args(workspace) -> None:
    command, agent, model = _command(workspace, "```json\n" + _params() + "\n```")

    result = await command.execute(_ctx("ariadne and bob discussing API design for 10 turns"))

    assert result.success is True
    assert result.result == {
        "personas": ["ariadne", "bob"],
        "topic": "API design",
        "turns": 10,
        "messages_sent": 10,
    }
    assert agent.requests == [SimulationRequest(
        stream_id="stream_main",
        workspace_id="ws_1",
        user_id="member_1",
        personas=["ariadne", "bob"],
        topic="API design",
        turns=10,
    )]
    prompt = model.calls[0]["messages"][0].content
    assert "AVAILABLE PERSONAS: ariadne, bob" in prompt
    assert prompt.endswith("Input: ariadne and bob discussing API design for 10 turns")
    assert model.calls[0]["kwargs"]["temperature"] == 0


@pytest.mark.parametrize(
    "reply",
    [
        "I think they want a chat about APIs.",
        _params(turns=0),
        _params(turns=51),
        _params(personas=[]),
        _params(personas=["a", "b", "c", "d", "e", "f"]),
    ],
)
@pytest.mark.asyncio
async def test_unparseable_args_return_hint(workspace, reply: str) -> None:
    command, agent, _ = _command(workspace, reply)

    result = await command.execute(_ctx("something vague"))

    assert result.success is False
    assert result.error == PARSE_HINT
    assert agent.requests == []


@pytest.mark.asyncio
async def test_unknown_personas_are_listed(workspace) -> None:
    command, agent, _ = _command(workspace, _params(personas=["ariadne", "zed", "quinn"]))

    result = await command.execute(_ctx("ariadne, zed and quinn"))

    assert result.error == "Unknown personas: zed, quinn"
    assert agent.requests == []


@pytest.mark.asyncio
async def test_single_unknown_persona(workspace) -> None:
    command, _, _ = _command(workspace, _params(personas=["zed"]))

    result = await command.execute(_ctx("zed alone"))

    assert result.error == "Unknown persona: zed"


@pytest.mark.asyncio
async def test_thread_mode_is_rejected(workspace) -> None:
    command, agent, _ = _command(workspace, _params(thread=True))

    result = await command.execute(_ctx("ariadne and bob in a thread"))

    assert result.success is False
    assert "Threading is not yet supported" in result.error
    assert agent.requests == []


@pytest.mark.asyncio
async def test_failed_simulation_is_reported(workspace) -> None:
    failed = SimulationResult(status="failed", messages_sent=0, error="No valid personas found")
    command, _, _ = _command(workspace, _params(), result=failed)

    result = await command.execute(_ctx("ariadne and bob"))

    assert result.success is False
    assert result.error == "No valid personas found"


def test_parsing_prompt_without_personas() -> None:
    assert "AVAILABLE PERSONAS: (none available)" in build_parsing_prompt([])


@pytest.mark.asyncio
async def test_parsing_model_failure_returns_hint(workspace) -> None:
    agent = RecordingAgent(SimulationResult(status="completed", messages_sent=0))
    model = ScriptedChatModel(replies=[ConnectionError("parsing model down")])
    command = SimulateCommand(workspace, agent, model)

    result = await command.execute(_ctx("ariadne and bob discussing API design"))

    assert result.success is False
    assert result.error == PARSE_HINT
    assert agent.requests == []


def test_parsing_prompt_includes_thread_example() -> None:
    prompt = build_parsing_prompt(["ariadne"])

    assert 'Input: "ariadne explores ideas, 6 turns, in a thread"' in prompt
    assert 'Output: {"personas":["ariadne"],"topic":"explores ideas","turns":6,"thread":true}' in prompt
    assert prompt.endswith("Input:")


@pytest.mark.asyncio
async def test_parsing_model_comes_from_settings(workspace, settings) -> None:
    model = ScriptedChatModel(replies=[_params()])
    requested = []

    def factory(name: str, **kwargs) -> ScriptedChatModel:
        requested.append((name, kwargs))
        return model

    agent = RecordingAgent(SimulationResult(status="completed", messages_sent=10))
    command = SimulateCommand(workspace, agent, model_factory=factory, settings=settings)

    result = await command.execute(_ctx("ariadne and bob discussing API design for 10 turns"))

    assert result.success is True
    assert requested == [(settings.parsing_model, {"temperature": 0})]
    assert len(model.calls) == 1
