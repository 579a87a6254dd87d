"""
OpenAI-compatible LLM Provider.

Serves both OpenAI and Groq (through its OpenAI-compatible endpoint).
"""

import logging
from typing import List, Dict, Optional

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """
    OpenAI-compatible LLM provider.

    Supports GPT models on OpenAI and Llama models on Groq.
    """

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_id: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        max_tokens: int = 512,
        temperature: float = 0.7
    ):
        """
        Initialize the provider.

        Args:
            api_key: API key (falls back to OPENAI_API_KEY)
            model_id: Model ID
            base_url: Optional OpenAI-compatible endpoint (e.g. Groq)
            max_tokens: Maximum tokens
            temperature: Generation temperature
        """
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)

        self.model_id = model_id
        self.max_tokens = max_tokens
        self.temperature = temperature

        logger.info(f"OpenAI-compatible provider initialized: {model_id}")

    async def agenerate_with_history(
        self,
        messages: List[Dict[str, str]],
        system: str,
    ) -> str:
        """
        Generate response with conversation history.

        Args:
            messages: List of messages
            system: System prompt

        Returns:
            Generated response
        """
        try:
            formatted = [{"role": "system", "content": system}]
            formatted.extend(messages)

            response = await self._client.chat.completions.create(
                model=self.model_id,
                messages=formatted,
                max_tokens=self.max_tokens,
                temperature=self.temperature
            )

            return (response.choices[0].message.content or "").strip()

        except Exception as e:
            logger.error(f"OpenAI generation with history failed: {e}")
            raise
