"""
AWS Bedrock LLM Provider.
"""

import asyncio
import json
import logging
from typing import List, Dict, Any

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class BedrockProvider:
    """
    AWS Bedrock LLM provider.

    Supports Claude models via Bedrock.
    """

    DEFAULT_MODEL = "us.anthropic.claude-sonnet-4-20250514-v1:0"

    def __init__(
        self,
        model_id: str = DEFAULT_MODEL,
        region: str = "us-east-1",
        max_tokens: int = 512,
        temperature: float = 0.7
    ):
        """
        Initialize Bedrock provider.

        Args:
            model_id: Bedrock model ID
            region: AWS region
            max_tokens: Maximum tokens for response
            temperature: Generation temperature
        """
        self.model_id = model_id
        self.region = region
        self.max_tokens = max_tokens
        self.temperature = temperature

        self._client = boto3.client("bedrock-runtime", region_name=region)
        logger.info(f"Bedrock provider initialized: {model_id} in {region}")

    async def agenerate_with_history(
        self,
        messages: List[Dict[str, str]],
        system: str,
    ) -> str:
        """Bedrock has no native async client; invoke in a worker thread."""
        return await asyncio.to_thread(self.generate_with_history, messages, system)

    def generate_with_history(
        self,
        messages: List[Dict[str, str]],
        system: str,
    ) -> str:
        """
        Generate response with conversation history.

        Args:
            messages: List of messages with role and content
            system: System prompt

        Returns:
            Generated response
        """
        try:
            body = self._build_body(messages, system)

            response = self._client.invoke_model(
                modelId=self.model_id,
                body=json.dumps(body),
                contentType="application/json",
                accept="application/json",
            )

            response_body = json.loads(response["body"].read())

            if "content" in response_body and response_body["content"]:
                return response_body["content"][0]["text"].strip()

            logger.warning("Empty response from Bedrock")
            return ""

        except ClientError as e:
            logger.error(f"Bedrock API error: {e}")
            raise
        except Exception as e:
            logger.error(f"Bedrock generation with history failed: {e}")
            raise

    def _build_body(self, messages: List[Dict[str, str]], system: str) -> Dict[str, Any]:
        """
        Format the history for Claude.

        Claude expects the first message from the user, so a leading agent
        greeting moves into the system prompt. Consecutive messages of the
        same role are merged.
        """
        history = list(messages)
        opening = []
        while history and history[0]["role"] == "assistant":
            opening.append(history.pop(0)["content"])
        if opening:
            system += "\n\nSua primeira mensagem na conversa foi:\n" + "\n".join(opening)

        formatted: List[Dict[str, Any]] = []
        for msg in history:
            if formatted and formatted[-1]["role"] == msg["role"]:
                formatted[-1]["content"][0]["text"] += "\n" + msg["content"]
                continue
            formatted.append({
                "role": msg["role"],
                "content": [{"type": "text", "text": msg["content"]}]
            })

        return {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": system,
            "messages": formatted,
        }
