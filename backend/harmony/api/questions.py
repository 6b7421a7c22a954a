"""
Help-center API endpoints (public FAQ and private questions).
"""

from fastapi import APIRouter, status

from harmony.api.deps import CurrentUser, QuestionRepo
from harmony.models.question import (
    PrivateQuestion,
    PrivateQuestionCreate,
    Question,
    QuestionCreate,
    VoteRequest,
    VoteStatus,
)

router = APIRouter()


@router.get("/public", response_model=list[Question])
async def list_public_questions(repo: QuestionRepo):
    """List public questions, newest first."""
    return await repo.list_public()


@router.post("/public", response_model=Question, status_code=status.HTTP_201_CREATED)
async def submit_public_question(question: QuestionCreate, repo: QuestionRepo):
    """Submit a public question."""
    return await repo.submit_public(question)


@router.get("/public/{question_id}/vote", response_model=VoteStatus)
async def get_vote_status(question_id: str, user: CurrentUser, repo: QuestionRepo):
    return VoteStatus(question_id=question_id, has_voted=await repo.has_voted(question_id, user.id))


@router.post("/public/{question_id}/vote", response_model=Question)
async def vote_on_question(
    question_id: str,
    request: VoteRequest,
    user: CurrentUser,
    repo: QuestionRepo,
):
    """Up-vote (or withdraw a vote on) a public question."""
    return await repo.vote(question_id, user.id, increment=request.increment)


@router.get("/private", response_model=list[PrivateQuestion])
async def list_private_questions(user: CurrentUser, repo: QuestionRepo):
    """List the current user's private questions."""
    return await repo.list_private(user.id)


@router.post("/private", response_model=PrivateQuestion, status_code=status.HTTP_201_CREATED)
async def submit_private_question(
    question: PrivateQuestionCreate,
    user: CurrentUser,
    repo: QuestionRepo,
):
    """Submit a private question."""
    return await repo.submit_private(user.id, question)
