"""
Enum definitions for the application.

These enums are used across models and provide type-safe values for
writing styles, languages, help-center questions and subscription plans.
"""

from enum import Enum


class WritingStyle(str, Enum):
    """
    Writing style selected by the user.

    AUTO is a meta-style: it is resolved to a ConcreteStyle before any
    prompt is built.
    """

    CONCISE = "concise"
    FORMAL = "formal"
    TECHNICAL = "technical"
    CREATIVE = "creative"
    TABULAR = "tabular"
    MATHEMATICAL = "mathematical"
    ALGORITHM = "algorithm"
    MAP_SEARCHES = "map-searches"
    JOKING = "joking"
    AUTO = "auto"


class ConcreteStyle(str, Enum):
    """Writing styles that map to a prompt template."""

    CONCISE = "concise"
    FORMAL = "formal"
    TECHNICAL = "technical"
    CREATIVE = "creative"
    TABULAR = "tabular"
    MATHEMATICAL = "mathematical"
    ALGORITHM = "algorithm"
    MAP_SEARCHES = "map-searches"
    JOKING = "joking"

    @classmethod
    def from_writing_style(cls, style: WritingStyle) -> "ConcreteStyle":
        if style == WritingStyle.AUTO:
            raise ValueError("auto must be resolved before it is used as a concrete style")
        return cls(style.value)


class Language(str, Enum):
    """Response language."""

    HINGLISH = "hinglish"
    ENGLISH = "english"
    PUNJABI = "punjabi"
    MARATHI = "marathi"
    HINDI = "hindi"


class Theme(str, Enum):
    """UI theme preference."""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class QuestionStatus(str, Enum):
    """Help-center question status."""

    PENDING = "pending"
    ANSWERED = "answered"


class SubscriptionPlan(str, Enum):
    """Subscription plan."""

    FREE = "free"
    PRO = "pro"
    EDUCATION = "education"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    """Subscription status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    TRIAL = "trial"
    CANCELED = "canceled"


class BillingPeriod(str, Enum):
    """Billing period."""

    MONTHLY = "monthly"
    YEARLY = "yearly"


class DataScope(str, Enum):
    """Scope for bulk user data deletion."""

    CHATS = "chats"
    BOOKMARKS = "bookmarks"
    FAQS = "faqs"
    ALL = "all"
