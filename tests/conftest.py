from __future__ import annotations

import pytest

from chatsim.config import Settings
from chatsim.core import Persona

from fakes import FakeWorkspace


@pytest.fixture
def ariadne() -> Persona:
    return Persona(
        id="persona_ariadne",
        slug="ariadne",
        name="Ariadne",
        system_prompt="You are Ariadne, a thoughtful assistant.",
        temperature=0.4,
        max_tokens=200,
    )


@pytest.fixture
def bob() -> Persona:
    return Persona(id="persona_bob", slug="bob", name="Bob")


@pytest.fixture
def personas(ariadne: Persona, bob: Persona) -> list[Persona]:
    return [ariadne, bob]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        orchestrator_model="openai/gpt-4o-mini",
        persona_model="anthropic/claude-sonnet-4",
        parsing_model="openai/gpt-4o-mini",
        orchestrator_temperature=0.3,
        persona_temperature=0.7,
        persona_max_tokens=500,
        history_preview_chars=150,
        context_window=10,
    )


@pytest.fixture
def workspace(personas: list[Persona]) -> FakeWorkspace:
    return FakeWorkspace(personas)


