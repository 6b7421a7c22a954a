"""
Help-center question repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from harmony.models.question import PrivateQuestion, PrivateQuestionCreate, Question, QuestionCreate


class IQuestionRepository(ABC):
    """Abstract interface for public FAQ and private question persistence."""

    @abstractmethod
    async def submit_public(self, data: QuestionCreate) -> Question:
        """Submit a public question (pending, zero votes)."""
        pass

    @abstractmethod
    async def submit_private(self, user_id: str, data: PrivateQuestionCreate) -> PrivateQuestion:
        """Submit a private question with the default answer."""
        pass

    @abstractmethod
    async def list_public(self) -> list[Question]:
        """List public questions, newest first."""
        pass

    @abstractmethod
    async def list_private(self, user_id: str) -> list[PrivateQuestion]:
        """List a user's private questions, newest first."""
        pass

    @abstractmethod
    async def has_voted(self, question_id: str, user_id: str) -> bool:
        """Check whether a user has up-voted a question."""
        pass

    @abstractmethod
    async def vote(self, question_id: str, user_id: str, increment: bool = True) -> Question:
        """
        Add or withdraw a user's vote.

        Raises:
            NotFoundError: unknown question
            DuplicateError: the user already up-voted
        """
        pass

    @abstractmethod
    async def delete_private(self, user_id: str) -> bool:
        """Delete all private questions of a user."""
        pass
