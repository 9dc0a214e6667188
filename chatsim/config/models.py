"""
Multi-Provider LLM Factory — Google AI Studio → third-party gateway → OpenRouter.

Routing:
  1. Gemini models with GOOGLE_AI_KEY set → ChatGoogleGenerativeAI
  2. THIRDPARTY_API_KEY + THIRDPARTY_BASE_URL set → OpenAI-compatible gateway
  3. Otherwise → OpenRouter
"""

from __future__ import annotations

import os

from langchain_openai import ChatOpenAI
from langchain_google_genai import ChatGoogleGenerativeAI

from chatsim.config.settings import get_settings
from chatsim.core.errors import SimulationConfigError


def _google_model_name(model: str) -> str | None:
    """Return the bare Gemini model name, or None if ``model`` is not a Gemini model."""
    name = model.split("/", 1)[-1]
    return name if name.startswith("gemini") else None


def get_llm(model: str, temperature: float = 0.7, **kwargs):
    """
    Create a chat model for the given model reference, e.g. ``"openai/gpt-4o-mini"``.
    """
    settings = get_settings()

    # ── Route 1: Google AI Studio ──
    google_key = os.environ.get("GOOGLE_AI_KEY", "")
    gemini_model = _google_model_name(model)
    if google_key and gemini_model:
        return ChatGoogleGenerativeAI(
            model=gemini_model,
            google_api_key=google_key,
            temperature=temperature,
            **kwargs,
        )

    # ── Route 2: third-party OpenAI-compatible gateway ──
    tp_key = os.environ.get("THIRDPARTY_API_KEY", "")
    tp_base = os.environ.get("THIRDPARTY_BASE_URL", "")
    if tp_key and tp_base:
        return ChatOpenAI(
            model=model,
            openai_api_key=tp_key,
            openai_api_base=tp_base,
            temperature=temperature,
            **kwargs,
        )

    # ── Route 3: OpenRouter ──
    if not settings.openrouter_api_key:
        raise SimulationConfigError(
            f"No provider configured for model {model!r}: set OPENROUTER_API_KEY"
        )
    return ChatOpenAI(
        model=model,
        openai_api_key=settings.openrouter_api_key,
        openai_api_base=settings.openrouter_base_url,
        default_headers={
            "HTTP-Referer": f"https://{settings.openrouter_app_name}.app",
            "X-Title": settings.openrouter_app_name,
        },
        temperature=temperature,
        **kwargs,
    )
