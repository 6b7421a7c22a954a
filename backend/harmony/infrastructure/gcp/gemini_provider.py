"""
Gemini provider using the google-genai SDK with an API key.

Chat continuity is kept per "{user_id}-{session_id}" in a bounded cache:
entries expire after a TTL and the least recently used entry is evicted
once the cache is full. Continuity is process-local; running several
server instances needs sticky sessions or an external store.
"""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from google import genai
from google.genai.types import Content, GenerateContentConfig, Part

from harmony.core.config import Settings
from harmony.core.exceptions import LLMError
from harmony.core.logger import setup_logger
from harmony.interfaces.llm_provider import ILLMProvider
from harmony.models.chat import ChatMessage

logger = setup_logger(__name__)

PERSONA_PROMPT = (
    "You are Harmony, an AI assistant developed by Ranbir as part of Project Harmony. "
    "You are friendly, helpful, and knowledgeable. Please introduce yourself as Harmony "
    "and mention that you were created by Ranbir. Keep your responses concise but informative. "
    "Always maintain a warm and professional tone. When presenting data in tables, use proper "
    "markdown table format with | symbols. For code, use markdown code blocks. Use markdown "
    "formatting for better readability including headers, lists, bold, italic, etc."
)

PERSONA_REPLY = (
    "Hello! I'm Harmony, your AI assistant created by Ranbir as part of Project Harmony. "
    "I'm here to help you with questions, have conversations, and assist with various topics. "
    "I aim to be helpful, friendly, and provide you with accurate information using proper "
    "formatting when needed. What can I help you with today?"
)

HISTORY_LIMIT = 10


def classify_llm_error(exc: BaseException) -> str:
    """Map a backend failure to an LLMError reason."""
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return "timeout"
    text = str(exc).lower()
    if "api key" in text or "api_key" in text:
        return "api_key"
    if "quota" in text or "limit" in text or "429" in text:
        return "quota"
    if "safety" in text or "blocked" in text:
        return "safety"
    return "unknown"


def build_history(prior_messages: list[ChatMessage]) -> list[Content]:
    """Persona exchange followed by the last prior messages."""
    history = [
        Content(role="user", parts=[Part(text=PERSONA_PROMPT)]),
        Content(role="model", parts=[Part(text=PERSONA_REPLY)]),
    ]
    for message in prior_messages[-HISTORY_LIMIT:]:
        if not message.content:
            continue
        history.append(
            Content(
                role="user" if message.is_user else "model",
                parts=[Part(text=message.content)],
            )
        )
    return history


@dataclass
class _CachedChat:
    chat: Any
    system_prompt: Optional[str]
    expires_at: float


class ChatSessionCache:
    """TTL and size bounded map of backend chat sessions."""

    def __init__(self, ttl_seconds: float, max_entries: int):
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._entries: OrderedDict[str, _CachedChat] = OrderedDict()

    def get(self, key: str, system_prompt: Optional[str]) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= time.monotonic() or entry.system_prompt != system_prompt:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        entry.expires_at = time.monotonic() + self._ttl_seconds
        return entry.chat

    def put(self, key: str, chat: Any, system_prompt: Optional[str]) -> None:
        self._entries[key] = _CachedChat(
            chat=chat,
            system_prompt=system_prompt,
            expires_at=time.monotonic() + self._ttl_seconds,
        )
        self._entries.move_to_end(key)
        self._evict()

    def discard(self, key: str) -> None:
        self._entries.pop(key, None)

    def _evict(self) -> None:
        now = time.monotonic()
        for key in [k for k, e in self._entries.items() if e.expires_at <= now]:
            del self._entries[key]
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries


class GeminiProvider(ILLMProvider):
    """Gemini API provider (google-genai async client)."""

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        """
        Initialize Gemini provider.

        Args:
            settings: Application settings (GEMINI_* values)
            client: Pre-built genai client, mainly for tests
        """
        self._settings = settings
        self._model_name = settings.GEMINI_MODEL
        if client is None:
            if not settings.GEMINI_API_KEY:
                raise ValueError(
                    "GEMINI_API_KEY is required for the Gemini provider. "
                    "Get your API key from https://aistudio.google.com/apikey"
                )
            client = genai.Client(api_key=settings.GEMINI_API_KEY)
        self._client = client
        self._sessions = ChatSessionCache(
            ttl_seconds=settings.CHAT_SESSION_CACHE_TTL_SECONDS,
            max_entries=settings.CHAT_SESSION_CACHE_MAX_ENTRIES,
        )

    def get_model_name(self) -> str:
        return f"Gemini API ({self._model_name})"

    def _chat_config(self, system_prompt: Optional[str]) -> GenerateContentConfig:
        config_kwargs: dict = {
            "temperature": self._settings.GEMINI_TEMPERATURE,
            "max_output_tokens": self._settings.GEMINI_MAX_OUTPUT_TOKENS,
            "top_p": 0.95,
            "top_k": 40,
        }
        if system_prompt:
            config_kwargs["system_instruction"] = system_prompt
        return GenerateContentConfig(**config_kwargs)

    def _get_chat(
        self,
        session_key: str,
        prior_messages: list[ChatMessage],
        system_prompt: Optional[str],
    ) -> Any:
        chat = self._sessions.get(session_key, system_prompt)
        if chat is None:
            chat = self._client.aio.chats.create(
                model=self._model_name,
                config=self._chat_config(system_prompt),
                history=build_history(prior_messages),
            )
            self._sessions.put(session_key, chat, system_prompt)
        return chat

    async def complete(
        self,
        session_key: str,
        message: str,
        prior_messages: list[ChatMessage],
        system_prompt: Optional[str] = None,
    ) -> str:
        chat = self._get_chat(session_key, prior_messages, system_prompt)
        try:
            response = await chat.send_message(message)
        except asyncio.CancelledError:
            # A cancelled turn may leave the chat history half-written.
            self._sessions.discard(session_key)
            raise
        except Exception as exc:
            self._sessions.discard(session_key)
            reason = classify_llm_error(exc)
            logger.error(f"Gemini chat request failed ({reason}): {exc}")
            raise LLMError(f"Gemini request failed: {exc}", reason=reason) from exc

        text = (response.text or "").strip()
        if not text:
            raise LLMError("Gemini returned an empty response", reason="safety")
        return text

    async def generate_text(
        self,
        prompt: str,
        temperature: float = 0.2,
        max_output_tokens: int = 100,
    ) -> Optional[str]:
        if not prompt:
            return None
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model_name,
                contents=[Content(role="user", parts=[Part(text=prompt)])],
                config=GenerateContentConfig(
                    temperature=temperature,
                    max_output_tokens=max_output_tokens,
                ),
            )
        except Exception as exc:
            logger.warning(f"GenAI request failed: {exc}")
            return None
        text = (response.text or "").strip()
        return text or None

    def forget_session(self, session_key: str) -> None:
        self._sessions.discard(session_key)
