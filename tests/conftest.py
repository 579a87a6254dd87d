"""Shared fixtures for Reobote lead agent tests."""

import os
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

# Ensure we use test/mock settings
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.pop("DATABASE_URL", None)

from lead_scoring.models import CreditType, LeadData, Turn, TurnRole  # noqa: E402
from llm.attendance_store import InMemoryAttendanceStore  # noqa: E402
from llm.conversation_store import InMemoryConversationStateStore  # noqa: E402
from llm.orchestrator import DialogueOrchestrator  # noqa: E402


class FakeGenerator:
    """Scripted reply generator standing in for the LLM provider."""

    def __init__(self, replies: Optional[List[str]] = None, default: str = "Entendi! E qual prazo você tem em mente?"):
        self.replies = list(replies or [])
        self.default = default
        self.fail = False
        # When set, each call waits on this asyncio.Event before replying
        self.gate = None
        self.calls: List[Dict] = []

    async def agenerate_with_history(self, messages: List[Dict[str, str]], system: str) -> str:
        self.calls.append({"messages": messages, "system": system})
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise RuntimeError("provider unavailable")
        if self.replies:
            return self.replies.pop(0)
        return self.default


def lead(**overrides) -> LeadData:
    data = {
        "name": "Maria Silva",
        "email": "maria@example.com",
        "phone": "85999990000",
        "credit_type": CreditType.IMOVEL,
        "message": None,
    }
    data.update(overrides)
    return LeadData(**data)


def conversation(*texts: str) -> List[Turn]:
    """Alternating agent/lead turns, starting with the agent greeting."""
    turns = []
    for i, text in enumerate(texts):
        role = TurnRole.AGENT if i % 2 == 0 else TurnRole.LEAD
        turns.append(Turn(role=role, content=text))
    return turns


@pytest.fixture
def sample_lead():
    return lead()


@pytest.fixture
def fake_generator():
    return FakeGenerator()


@pytest.fixture
def state_store():
    return InMemoryConversationStateStore()


@pytest.fixture
def attendance_store():
    return InMemoryAttendanceStore()


@pytest.fixture
def orchestrator(fake_generator, state_store, attendance_store):
    return DialogueOrchestrator(
        generator=fake_generator,
        state_store=state_store,
        attendance_store=attendance_store,
        whatsapp_number="5585988887777",
    )


@pytest.fixture
def client(fake_generator):
    """Create a FastAPI test client wired to the fake generator."""
    from api.main import app
    from api.services import get_services

    with TestClient(app) as test_client:
        get_services().initialize(generator=fake_generator, force=True)
        yield test_client


@pytest.fixture
def make_lead():
    return lead


@pytest.fixture
def make_conversation():
    return conversation
