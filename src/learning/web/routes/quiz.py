"""Quiz-taking endpoints.

The QuizSession lives in the browser session. Every request checks the
countdown first, so a quiz whose time ran out is submitted on the next
access and the response already shows the completed state.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from learning.core.quiz_taking import QuizSession
from learning.web.schemas import AnswerRequest, NavigateRequest, QuizSessionResponse
from learning.web.sessions import BrowserSession, current_session

router = APIRouter(prefix="/api/quiz", tags=["quiz"])


def _snapshot(quiz_session: QuizSession) -> QuizSessionResponse:
    data = quiz_session.snapshot()
    data["notices"] = [n.to_dict() for n in quiz_session.drain_notices()]
    return QuizSessionResponse(**data)


def _active_quiz(session: BrowserSession, quiz_id: int) -> QuizSession:
    session.auth.require_route("/quiz")
    quiz_session = session.quiz(quiz_id)
    if quiz_session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Quiz {quiz_id} is not open in this session",
        )
    quiz_session.check_timer()
    return quiz_session


@router.post("/{quiz_id}", response_model=QuizSessionResponse)
def open_quiz(
    quiz_id: int, session: BrowserSession = Depends(current_session)
) -> QuizSessionResponse:
    """Load a quiz: resumes an in-progress attempt or shows the preview."""
    session.auth.require_route("/quiz")
    quiz_session = session.open_quiz(quiz_id)
    quiz_session.load()
    quiz_session.check_timer()
    return _snapshot(quiz_session)


@router.get("/{quiz_id}", response_model=QuizSessionResponse)
def get_quiz(
    quiz_id: int, session: BrowserSession = Depends(current_session)
) -> QuizSessionResponse:
    """Current state, remaining time and pending notices."""
    return _snapshot(_active_quiz(session, quiz_id))


@router.post("/{quiz_id}/start", response_model=QuizSessionResponse)
def start_quiz(
    quiz_id: int, session: BrowserSession = Depends(current_session)
) -> QuizSessionResponse:
    """Start a new attempt once the quiz is startable."""
    quiz_session = _active_quiz(session, quiz_id)
    quiz_session.start()
    return _snapshot(quiz_session)


@router.post("/{quiz_id}/answers", response_model=QuizSessionResponse)
def answer(
    quiz_id: int,
    request: AnswerRequest,
    session: BrowserSession = Depends(current_session),
) -> QuizSessionResponse:
    """Select an answer. A failed save rolls back and adds an error notice."""
    quiz_session = _active_quiz(session, quiz_id)
    quiz_session.select_answer(request.question_id, request.answer_id)
    return _snapshot(quiz_session)


@router.post("/{quiz_id}/navigate", response_model=QuizSessionResponse)
def navigate(
    quiz_id: int,
    request: NavigateRequest,
    session: BrowserSession = Depends(current_session),
) -> QuizSessionResponse:
    """Jump to a question."""
    quiz_session = _active_quiz(session, quiz_id)
    if not quiz_session.jump_to(request.index):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Question index out of range: {request.index}",
        )
    return _snapshot(quiz_session)


@router.post("/{quiz_id}/submit", response_model=QuizSessionResponse)
def submit(
    quiz_id: int, session: BrowserSession = Depends(current_session)
) -> QuizSessionResponse:
    """Submit the attempt. On failure the state stays taking with a notice."""
    quiz_session = _active_quiz(session, quiz_id)
    quiz_session.submit()
    return _snapshot(quiz_session)
