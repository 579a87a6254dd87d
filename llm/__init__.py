"""
LLM Orchestration Module for the Reobote lead agent.

This module handles:
- LLM provider abstraction (Groq/OpenAI-compatible, Bedrock)
- Prompt template management
- Conversation state and attendance persistence
- The per-turn dialogue pipeline
"""

from .orchestrator import DialogueOrchestrator, TurnRequest, TurnResponse
from .prompt_templates import PromptTemplates, ConversationStage
from .conversation_store import (
    ConversationState,
    ConversationStateStore,
    InMemoryConversationStateStore,
)
from .attendance_store import AttendanceRecord, AttendanceStore, InMemoryAttendanceStore
from .guardrails import ResponseVerifier, VerificationResult

__all__ = [
    "DialogueOrchestrator",
    "TurnRequest",
    "TurnResponse",
    "PromptTemplates",
    "ConversationStage",
    "ConversationState",
    "ConversationStateStore",
    "InMemoryConversationStateStore",
    "AttendanceRecord",
    "AttendanceStore",
    "InMemoryAttendanceStore",
    "ResponseVerifier",
    "VerificationResult",
]
