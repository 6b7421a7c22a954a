"""
Help-center question repository.

Public questions live at "FAQs/{id}", private ones at "{user}/FAQ/{id}".
Questions need the realtime database: there is no local fallback.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from harmony.core.exceptions import DuplicateError, InfrastructureError, NotFoundError, StoreUnavailableError
from harmony.core.logger import setup_logger
from harmony.interfaces.question_repository import IQuestionRepository
from harmony.interfaces.realtime_database import IRealtimeDatabase
from harmony.models.enums import QuestionStatus
from harmony.models.question import (
    DEFAULT_PRIVATE_ANSWER,
    PrivateQuestion,
    PrivateQuestionCreate,
    Question,
    QuestionCreate,
)
from harmony.utils.datetime_utils import now_ms

logger = setup_logger(__name__)

PUBLIC_QUESTIONS_PATH = "FAQs"

M = TypeVar("M", bound=BaseModel)


def private_questions_path(user_id: str) -> str:
    return f"{user_id}/FAQ"


def _parse_questions(raw: Any, model: type[M]) -> list[M]:
    if not isinstance(raw, dict):
        return []
    questions = []
    for key, item in raw.items():
        if not isinstance(item, dict):
            continue
        try:
            questions.append(model.model_validate({**item, "id": key}))
        except ValidationError as exc:
            logger.warning(f"Skipping malformed question {key}: {exc}")
    return sorted(questions, key=lambda q: q.timestamp, reverse=True)


class RealtimeQuestionRepository(IQuestionRepository):
    """Question repository on the realtime database."""

    def __init__(self, database: IRealtimeDatabase):
        self._db = database

    def _require_database(self) -> None:
        if not self._db.is_available():
            raise StoreUnavailableError("Realtime database is not configured")

    async def submit_public(self, data: QuestionCreate) -> Question:
        self._require_database()
        document = {
            **data.to_document(),
            "timestamp": now_ms(),
            "status": QuestionStatus.PENDING.value,
            "votes": 0,
            "votedBy": [],
        }
        question_id = await self._db.push(PUBLIC_QUESTIONS_PATH, document)
        return Question.model_validate({**document, "id": question_id})

    async def submit_private(self, user_id: str, data: PrivateQuestionCreate) -> PrivateQuestion:
        self._require_database()
        document = {
            **data.to_document(),
            "timestamp": now_ms(),
            "status": QuestionStatus.PENDING.value,
            "answer": DEFAULT_PRIVATE_ANSWER,
        }
        question_id = await self._db.push(private_questions_path(user_id), document)
        return PrivateQuestion.model_validate({**document, "id": question_id})

    async def list_public(self) -> list[Question]:
        if not self._db.is_available():
            return []
        try:
            return _parse_questions(await self._db.get(PUBLIC_QUESTIONS_PATH), Question)
        except InfrastructureError as exc:
            logger.error(f"Error fetching public questions: {exc}")
            return []

    async def list_private(self, user_id: str) -> list[PrivateQuestion]:
        if not self._db.is_available():
            return []
        try:
            return _parse_questions(await self._db.get(private_questions_path(user_id)), PrivateQuestion)
        except InfrastructureError as exc:
            logger.error(f"Error fetching private questions: {exc}")
            return []

    async def has_voted(self, question_id: str, user_id: str) -> bool:
        if not self._db.is_available():
            return False
        try:
            voted_by = await self._db.get(f"{PUBLIC_QUESTIONS_PATH}/{question_id}/votedBy")
        except InfrastructureError as exc:
            logger.error(f"Error checking vote status: {exc}")
            return False
        return user_id in _as_list(voted_by)

    async def vote(self, question_id: str, user_id: str, increment: bool = True) -> Question:
        self._require_database()
        path = f"{PUBLIC_QUESTIONS_PATH}/{question_id}"
        raw = await self._db.get(path)
        if not isinstance(raw, dict):
            raise NotFoundError(f"Question {question_id} not found")

        votes = int(raw.get("votes") or 0)
        voted_by = _as_list(raw.get("votedBy"))

        if increment:
            if user_id in voted_by:
                raise DuplicateError("User has already voted on this question")
            votes += 1
            voted_by.append(user_id)
        else:
            votes = max(0, votes - 1)
            voted_by = [uid for uid in voted_by if uid != user_id]

        await self._db.update(path, {"votes": votes, "votedBy": voted_by})
        return Question.model_validate({**raw, "id": question_id, "votes": votes, "votedBy": voted_by})

    async def delete_private(self, user_id: str) -> bool:
        self._require_database()
        await self._db.remove(private_questions_path(user_id))
        return True


def _as_list(value: Any) -> list[str]:
    # Firebase returns arrays as index-keyed objects once entries are removed.
    if isinstance(value, dict):
        return [v for v in value.values() if isinstance(v, str)]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str)]
    return []
