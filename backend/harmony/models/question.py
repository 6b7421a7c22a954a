"""
Help-center question models (public FAQ and private questions).
"""

from typing import Optional

from pydantic import Field

from harmony.models.chat import CamelModel
from harmony.models.enums import QuestionStatus

DEFAULT_PRIVATE_ANSWER = "Yet to answer"


class QuestionCreate(CamelModel):
    """Schema for submitting a public question."""

    question: str = Field(..., min_length=1, max_length=1000)
    description: Optional[str] = Field(None, max_length=5000)
    category: str = Field(..., min_length=1, max_length=100)
    author: str = Field(..., min_length=1, max_length=200)
    author_email: Optional[str] = None
    is_anonymous: bool = False


class Question(QuestionCreate):
    """Public question."""

    id: str
    timestamp: int
    answer: Optional[str] = None
    answered_by: Optional[str] = None
    answered_at: Optional[int] = None
    status: QuestionStatus = QuestionStatus.PENDING
    votes: int = 0
    voted_by: list[str] = Field(default_factory=list)


class PrivateQuestionCreate(CamelModel):
    """Schema for submitting a private question."""

    question: str = Field(..., min_length=1, max_length=1000)
    description: Optional[str] = Field(None, max_length=5000)
    category: str = Field(..., min_length=1, max_length=100)


class PrivateQuestion(PrivateQuestionCreate):
    """Private question visible only to its author and support staff."""

    id: str
    timestamp: int
    answer: str = DEFAULT_PRIVATE_ANSWER
    answered_by: Optional[str] = None
    answered_at: Optional[int] = None
    status: QuestionStatus = QuestionStatus.PENDING


class VoteRequest(CamelModel):
    increment: bool = True


class VoteStatus(CamelModel):
    question_id: str
    has_voted: bool
