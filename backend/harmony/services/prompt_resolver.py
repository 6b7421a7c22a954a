"""
Prompt/style resolver.

Turns the user's AI preferences into the system prompt sent with each
message. The template map is keyed by ConcreteStyle only; the auto
meta-style is resolved to a concrete style before any template lookup.
"""

import re
from dataclasses import dataclass
from typing import Optional

from harmony.core.logger import setup_logger
from harmony.interfaces.llm_provider import ILLMProvider
from harmony.models.enums import ConcreteStyle, Language, WritingStyle
from harmony.models.settings import UserSettings

logger = setup_logger(__name__)

STYLE_PROMPTS: dict[ConcreteStyle, str] = {
    ConcreteStyle.CONCISE: "Brief responses",
    ConcreteStyle.FORMAL: "Professional tone",
    ConcreteStyle.TECHNICAL: "Technical detail",
    ConcreteStyle.CREATIVE: "Creative language",
    ConcreteStyle.TABULAR: "use tables only",
    ConcreteStyle.MATHEMATICAL: (
        "Mathematical working with graphs; put chart data in ```json code blocks"
    ),
    ConcreteStyle.ALGORITHM: "Step-by-step algorithms with code",
    ConcreteStyle.MAP_SEARCHES: "Geographic context",
    ConcreteStyle.JOKING: "Humorous tone",
}

LANGUAGE_PROMPTS: dict[Language, str] = {
    Language.HINGLISH: "Hinglish mix",
    Language.ENGLISH: "English",
    Language.PUNJABI: "Punjabi",
    Language.MARATHI: "Marathi",
    Language.HINDI: "Hindi",
}

# Checked in order; the first style with a matching keyword wins.
STYLE_KEYWORDS: list[tuple[ConcreteStyle, tuple[str, ...]]] = [
    (ConcreteStyle.MATHEMATICAL, ("graph", "plot", "chart", "equation", "integral", "derivative", "calculate", "statistics")),
    (ConcreteStyle.ALGORITHM, ("algorithm", "pseudocode", "complexity", "sort", "recursion", "leetcode")),
    (ConcreteStyle.TABULAR, ("table", "compare", "comparison", "versus", " vs ", "list of")),
    (ConcreteStyle.MAP_SEARCHES, ("near me", "directions", "where is", "location", "map of", "route to")),
    (ConcreteStyle.TECHNICAL, ("code", "python", "javascript", "error", "debug", "api", "function", "install")),
    (ConcreteStyle.JOKING, ("joke", "funny", "meme", "make me laugh")),
    (ConcreteStyle.CREATIVE, ("poem", "story", "lyrics", "imagine", "creative")),
    (ConcreteStyle.FORMAL, ("email", "letter", "application", "formal", "cover letter")),
]

CLASSIFICATION_PROMPT = """Classify the best response style for this chat message.

Message: "{message}"

Reply with exactly one word from this list and nothing else:
{styles}

Style:"""

_TOKEN_PATTERN = re.compile(r"[a-z][a-z-]*")


@dataclass(frozen=True)
class ResolvedPrompt:
    """System prompt with the concrete style it was built from."""

    style: ConcreteStyle
    prompt: str
    auto: bool = False


def build_system_prompt(style: ConcreteStyle, language: Language, max_length: int) -> str:
    """
    Build the system prompt for a concrete style.

    Raises:
        TypeError: style is not a ConcreteStyle (e.g. WritingStyle.AUTO)
    """
    if not isinstance(style, ConcreteStyle):
        raise TypeError(f"System prompts need a concrete style, got {style!r}")
    language_rule = f"{LANGUAGE_PROMPTS[language]} only."
    if language != Language.ENGLISH:
        language_rule = f"{LANGUAGE_PROMPTS[language]} only no english."
    return (
        f"Harmony by Ranbir. {STYLE_PROMPTS[style]} only, nothing else. "
        f"{language_rule} Max {max_length} chars. Use markdown. "
        "Dont explain words in brackets."
    )


def detect_style_from_keywords(message: str) -> Optional[ConcreteStyle]:
    text = f" {message.lower()} "
    for style, keywords in STYLE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return style
    return None


def parse_style_token(text: Optional[str]) -> Optional[ConcreteStyle]:
    """Validate a classification reply against the concrete styles."""
    if not text:
        return None
    match = _TOKEN_PATTERN.search(text.strip().lower())
    if not match:
        return None
    try:
        return ConcreteStyle(match.group(0))
    except ValueError:
        return None


class PromptResolver:
    """Resolves user preferences (and, in auto mode, the message) to a system prompt."""

    def __init__(self, llm_provider: Optional[ILLMProvider] = None):
        self._llm = llm_provider

    async def classify(self, message: str) -> ConcreteStyle:
        """
        Pick a concrete style for a message.

        Asks the AI backend for one style token. A reply that is not a
        concrete style falls back to concise; when the backend gives no
        reply at all, local keyword matching decides.
        """
        reply: Optional[str] = None
        if self._llm is not None:
            prompt = CLASSIFICATION_PROMPT.format(
                message=message[:1000],
                styles=", ".join(style.value for style in ConcreteStyle),
            )
            reply = await self._llm.generate_text(prompt, temperature=0.0, max_output_tokens=10)

        if reply is None:
            detected = detect_style_from_keywords(message)
            logger.debug(f"Style classification unavailable, keyword match: {detected}")
            return detected or ConcreteStyle.CONCISE

        style = parse_style_token(reply)
        if style is None:
            logger.warning(f"Invalid style classification {reply!r}, defaulting to concise")
            return ConcreteStyle.CONCISE
        return style

    async def resolve(self, settings: UserSettings, message: str) -> ResolvedPrompt:
        if settings.writing_style == WritingStyle.AUTO:
            style = await self.classify(message)
            auto = True
        else:
            style = ConcreteStyle.from_writing_style(settings.writing_style)
            auto = False
        return ResolvedPrompt(
            style=style,
            prompt=build_system_prompt(style, settings.language, settings.max_length),
            auto=auto,
        )
