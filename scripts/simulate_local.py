"""
chatsim local run — simulate a conversation against real models, printed to the terminal.

Run: python scripts/simulate_local.py "a design review of the new onboarding flow" ariadne bob --turns 6
"""

import argparse
import asyncio
import logging
import uuid

from dotenv import load_dotenv

from chatsim.agents import SimulationAgent, SimulationRequest
from chatsim.config import get_settings
from chatsim.core import Persona

load_dotenv()


class LocalWorkspace:
    """In-memory personas, threads and messages for a single terminal session."""

    def __init__(self, personas: list[Persona]) -> None:
        self.personas = {p.slug.lower(): p for p in personas}
        self.thread_parents: dict[str, str] = {}

    async def find_by_slug(self, slug: str, workspace_id: str) -> Persona | None:
        return self.personas.get(slug.lower())

    async def list_for_workspace(self, workspace_id: str) -> list[Persona]:
        return list(self.personas.values())

    async def create_thread(self, *, workspace_id, parent_stream_id, parent_message_id, created_by):
        thread_id = f"thread-{uuid.uuid4().hex[:8]}"
        self.thread_parents[thread_id] = parent_message_id
        print(f"   🧵 new thread {thread_id} on {parent_message_id}")
        return {"id": thread_id}

    async def create_message(self, *, workspace_id, stream_id, author_id, author_type, content):
        message_id = f"msg-{uuid.uuid4().hex[:8]}"
        indent = "      " if stream_id in self.thread_parents else ""
        print(f"{indent}[{message_id}] {author_id}: {content}\n")
        return {"id": message_id}


async def main() -> None:
    parser = argparse.ArgumentParser(description="Run a local persona simulation")
    parser.add_argument("topic")
    parser.add_argument("personas", nargs="+")
    parser.add_argument("--turns", type=int, default=5)
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    personas = [
        Persona(id=slug, slug=slug, name=slug.capitalize(), model=settings.persona_model)
        for slug in args.personas
    ]
    workspace = LocalWorkspace(personas)

    agent = SimulationAgent(workspace, workspace, workspace.create_message)
    result = await agent.run(SimulationRequest(
        stream_id="local",
        workspace_id="local",
        user_id="local-user",
        personas=args.personas,
        topic=args.topic,
        turns=args.turns,
    ))

    if result.status == "completed":
        print(f"✅ {result.messages_sent} messages sent")
    else:
        print(f"❌ {result.error}")


if __name__ == "__main__":
    asyncio.run(main())
