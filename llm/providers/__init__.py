"""
LLM Provider implementations.
"""

from .base import ReplyGenerator
from .bedrock import BedrockProvider
from .openai_provider import OpenAIProvider

__all__ = ["ReplyGenerator", "BedrockProvider", "OpenAIProvider"]
