"""
Conversation state storage for the Reobote lead agent.

Abstracts the per-lead conversation state so the orchestrator can work
with an injectable store instead of a process-wide map. Callers serialize
turns of one lead through ``lock()``; different leads never share state.
"""

import asyncio
import copy
import logging
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Optional, Protocol, runtime_checkable

from lead_scoring.models import LeadIdentity
from lead_scoring.fact_extractor import CollectedFacts

logger = logging.getLogger(__name__)


@dataclass
class ConversationState:
    """Mutable state of one active conversation."""
    identity_key: str
    turn_count: int = 0
    collected_facts: CollectedFacts = field(default_factory=CollectedFacts)
    created_at: datetime = field(default_factory=datetime.utcnow)


@runtime_checkable
class ConversationStateStore(Protocol):
    """Protocol for conversation state storage."""

    def get(self, identity: LeadIdentity) -> Optional[ConversationState]:
        """Get the state of a conversation, if active."""
        ...

    def get_or_create(self, identity: LeadIdentity) -> ConversationState:
        """Get the state of a conversation, starting one if needed."""
        ...

    def mutate(
        self,
        identity: LeadIdentity,
        mutator: Callable[[ConversationState], None],
    ) -> ConversationState:
        """Apply ``mutator`` to the conversation state and store the result."""
        ...

    def delete(self, identity: LeadIdentity) -> bool:
        """Drop the conversation state."""
        ...

    def lock(self, identity: LeadIdentity) -> asyncio.Lock:
        """Lock serializing the turns of one lead."""
        ...


class InMemoryConversationStateStore:
    """
    Conversation state kept in process memory.

    Reads hand out copies and ``mutate`` swaps in a fully updated copy, so a
    mutator that raises leaves the stored state untouched.
    """

    def __init__(self):
        self._states: Dict[str, ConversationState] = {}
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, identity: LeadIdentity) -> Optional[ConversationState]:
        state = self._states.get(identity.key)
        return copy.deepcopy(state) if state else None

    def get_or_create(self, identity: LeadIdentity) -> ConversationState:
        if identity.key not in self._states:
            self._states[identity.key] = ConversationState(identity_key=identity.key)
            logger.info(f"Conversation started: {identity.key}")
        return copy.deepcopy(self._states[identity.key])

    def mutate(
        self,
        identity: LeadIdentity,
        mutator: Callable[[ConversationState], None],
    ) -> ConversationState:
        working = self.get_or_create(identity)
        mutator(working)
        self._states[identity.key] = working
        return copy.deepcopy(working)

    def delete(self, identity: LeadIdentity) -> bool:
        removed = self._states.pop(identity.key, None) is not None
        if removed:
            logger.info(f"Conversation state cleared: {identity.key}")
        return removed

    def lock(self, identity: LeadIdentity) -> asyncio.Lock:
        lock = self._locks.get(identity.key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[identity.key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._states)
