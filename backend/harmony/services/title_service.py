"""
AI-generated chat titles.
"""

import re
from typing import Optional

from harmony.interfaces.llm_provider import ILLMProvider

MAX_TITLE_LENGTH = 50

TITLE_PROMPT = """Generate a short, descriptive title (3-6 words max) for a chat conversation that starts with this message: "{message}"

Rules:
- Keep it under 50 characters
- Make it descriptive but concise
- Don't use quotes or special characters
- Focus on the main topic or intent
- Examples: "Weather in Paris", "Python Tutorial Help", "Recipe for Pasta"

Title:"""

_QUOTES = re.compile(r"^[\"']|[\"']$")
_TITLE_PREFIX = re.compile(r"^Title:\s*", re.IGNORECASE)


def clean_title(raw: str) -> str:
    title = raw.strip()
    title = _QUOTES.sub("", title)
    title = _TITLE_PREFIX.sub("", title)
    return title[:MAX_TITLE_LENGTH].strip()


async def generate_title(llm_provider: ILLMProvider, message: str) -> Optional[str]:
    """Ask the AI backend for a session title; None when it gives nothing usable."""
    if not message.strip():
        return None
    raw = await llm_provider.generate_text(
        TITLE_PROMPT.format(message=message),
        temperature=0.2,
        max_output_tokens=30,
    )
    if not raw:
        return None
    return clean_title(raw) or None
