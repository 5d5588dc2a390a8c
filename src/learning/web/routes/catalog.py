"""Catalog endpoints: dashboard, topic tree and quiz list."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from learning.core.catalog import (
    QUIZ_STATUSES,
    availability,
    build_topic_tree,
    filter_quizzes,
    filter_topics,
)
from learning.core.clock import now_local
from learning.core.dashboard import load_dashboard
from learning.web.schemas import (
    DashboardResponse,
    QuizListItem,
    QuizListResponse,
    TopicNodeResponse,
    TopicTreeResponse,
)
from learning.web.sessions import BrowserSession, current_session

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(session: BrowserSession = Depends(current_session)) -> DashboardResponse:
    """Stats, quizzes worth showing, new topics and recent results."""
    user = session.auth.require_route("/dashboard")
    data = load_dashboard(session.api, user)
    return DashboardResponse(**data.to_dict())


@router.get("/topics", response_model=TopicTreeResponse)
def topics(
    search: str = Query(default=""),
    session: BrowserSession = Depends(current_session),
) -> TopicTreeResponse:
    """Active topics as a tree, optionally filtered by title/description."""
    session.auth.require_route("/topics")
    items = filter_topics(session.api.topics.get_all(active_only=True), search)
    tree = [TopicNodeResponse(**node.to_dict()) for node in build_topic_tree(items)]
    return TopicTreeResponse(topics=tree, count=len(items))


@router.get("/quizzes", response_model=QuizListResponse)
def quizzes(
    search: str = Query(default=""),
    quiz_status: str | None = Query(default=None, alias="status"),
    session: BrowserSession = Depends(current_session),
) -> QuizListResponse:
    """Active quizzes with their current availability."""
    session.auth.require_route("/quizzes")
    if quiz_status is not None and quiz_status not in QUIZ_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown status: {quiz_status}",
        )

    now = now_local()
    items = filter_quizzes(
        session.api.quizzes.get_all(active_only=True),
        search,
        quiz_status,  # type: ignore[arg-type]
        now=now,
    )

    result = []
    for quiz in items:
        info = availability(quiz, now)
        result.append(
            QuizListItem(
                id=quiz.id,
                title=quiz.title,
                description=quiz.description,
                topic_id=quiz.topic_id,
                topic_title=quiz.topic_title,
                duration_minutes=quiz.duration_minutes or 0,
                passing_score=quiz.passing_score or 0,
                start_time=quiz.start_time,
                end_time=quiz.end_time,
                status=info.status,
                label=info.label,
                can_start=info.can_start,
            )
        )
    return QuizListResponse(quizzes=result, count=len(result))
