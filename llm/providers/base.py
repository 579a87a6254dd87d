"""
Reply generator protocol shared by the LLM providers.
"""

from typing import Dict, List, Protocol, runtime_checkable


@runtime_checkable
class ReplyGenerator(Protocol):
    """Produces the agent reply from an instruction and the turn history."""

    async def agenerate_with_history(
        self,
        messages: List[Dict[str, str]],
        system: str,
    ) -> str:
        """
        Generate a reply.

        Args:
            messages: Turn history as role/content dicts (user | assistant)
            system: System instruction

        Returns:
            Reply text
        """
        ...
