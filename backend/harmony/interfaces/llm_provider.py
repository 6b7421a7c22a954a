"""
LLM provider interface.

Defines the contract for the generative AI backend.
Implementations: Gemini (google-genai).
"""

from abc import ABC, abstractmethod
from typing import Optional

from harmony.models.chat import ChatMessage


class ILLMProvider(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    def get_model_name(self) -> str:
        """
        Get the human-readable model name.

        Returns:
            Model name string for logging/display
        """
        pass

    @abstractmethod
    async def complete(
        self,
        session_key: str,
        message: str,
        prior_messages: list[ChatMessage],
        system_prompt: Optional[str] = None,
    ) -> str:
        """
        Produce a chat reply.

        Conversation continuity is keyed by session_key
        ("{user_id}-{session_id}").

        Args:
            session_key: Backend chat key
            message: Outgoing message text
            prior_messages: Context window, oldest first
            system_prompt: Style/language instruction

        Returns:
            Reply text

        Raises:
            LLMError: the backend failed or returned nothing
        """
        pass

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        temperature: float = 0.2,
        max_output_tokens: int = 100,
    ) -> Optional[str]:
        """
        One-shot text generation (titles, style classification).

        Returns:
            Generated text, or None when the call fails
        """
        pass

    def forget_session(self, session_key: str) -> None:
        """Drop any server-side chat continuity for a key."""
        return None
