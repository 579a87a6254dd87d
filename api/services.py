"""
Service initialization and dependency injection for the Reobote lead agent API.

Creates and manages all service instances used by the API.
"""

import logging
from typing import Optional

from config.settings import get_settings, Settings
from lead_scoring.fact_extractor import FactExtractor
from lead_scoring.scoring_model import EngagementScorer
from lead_scoring.termination import TerminationDetector
from llm.attendance_store import AttendanceStore, InMemoryAttendanceStore
from llm.conversation_store import ConversationStateStore, InMemoryConversationStateStore
from llm.orchestrator import DialogueOrchestrator
from llm.providers import BedrockProvider, OpenAIProvider, ReplyGenerator

logger = logging.getLogger(__name__)


class Services:
    """Container for all application services."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.state_store: Optional[ConversationStateStore] = None
        self.attendance_store: Optional[AttendanceStore] = None
        self.generator: Optional[ReplyGenerator] = None
        self.orchestrator: Optional[DialogueOrchestrator] = None
        self._initialized = False

    def initialize(self, generator: Optional[ReplyGenerator] = None, force: bool = False):
        """
        Initialize all services.

        Args:
            generator: Reply generator to use instead of the configured provider
            force: Re-initialize even if already initialized
        """
        if self._initialized and not force:
            return

        self.settings = get_settings()
        logger.info(f"Initializing services with provider: {self.settings.llm_provider}")

        self.state_store = InMemoryConversationStateStore()
        self._init_attendance_store()

        if generator is not None:
            self.generator = generator
        else:
            try:
                self._init_generator()
            except Exception as e:
                logger.error(f"LLM provider initialization failed: {e}")
                self.generator = None
                logger.warning("API starting in degraded mode")

        self._init_orchestrator()
        self._initialized = True
        logger.info("All services initialized")

    def _init_generator(self):
        """Initialize the LLM reply generator."""
        s = self.settings

        if s.is_bedrock:
            self.generator = BedrockProvider(
                model_id=s.bedrock_llm_model_id,
                region=s.aws_region,
                max_tokens=s.max_tokens,
                temperature=s.temperature,
            )
        elif s.is_openai:
            self.generator = OpenAIProvider(
                api_key=s.openai_api_key,
                model_id=s.openai_llm_model,
                max_tokens=s.max_tokens,
                temperature=s.temperature,
            )
        else:
            if not s.groq_api_key:
                raise ValueError("GROQ_API_KEY not set")
            self.generator = OpenAIProvider(
                api_key=s.groq_api_key,
                model_id=s.groq_llm_model,
                base_url=s.groq_base_url,
                max_tokens=s.max_tokens,
                temperature=s.temperature,
            )
        logger.info(f"Reply generator ready: {s.llm_provider} ({s.llm_model_id})")

    def _init_attendance_store(self):
        """Use the database when configured, process memory otherwise."""
        if self.settings.database_url:
            try:
                from database.session import get_session_factory
                from llm.db_attendance_store import DbAttendanceStore
                self.attendance_store = DbAttendanceStore(get_session_factory())
                logger.info("Attendance store: database")
                return
            except Exception as e:
                logger.warning(f"Database attendance store unavailable, using memory: {e}")

        self.attendance_store = InMemoryAttendanceStore()
        logger.info("Attendance store: in-memory")

    def _init_orchestrator(self):
        """Initialize the dialogue orchestrator."""
        s = self.settings

        self.orchestrator = DialogueOrchestrator(
            generator=self.generator,
            state_store=self.state_store,
            attendance_store=self.attendance_store,
            fact_extractor=FactExtractor(),
            scorer=EngagementScorer(),
            termination_detector=TerminationDetector(),
            brand_name=s.brand_name,
            agent_name=s.agent_name,
            whatsapp_number=s.whatsapp_number,
        )
        logger.info("Dialogue orchestrator ready")

    @property
    def is_ready(self) -> bool:
        return self._initialized and self.orchestrator is not None and self.generator is not None

    def health(self) -> dict:
        """Return health status of all services."""
        return {
            "initialized": self._initialized,
            "generator": self.generator is not None,
            "attendance_store": type(self.attendance_store).__name__ if self.attendance_store else None,
            "active_conversations": len(self.state_store) if self.state_store is not None else 0,
            "orchestrator": self.orchestrator is not None,
        }


# Singleton
_services = Services()


def get_services() -> Services:
    """Get the global services instance."""
    return _services


def initialize_services():
    """Initialize all services (called at startup)."""
    _services.initialize()
