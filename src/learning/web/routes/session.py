"""Login, logout and the current user."""

from fastapi import APIRouter, Depends, HTTPException, status

from learning.api.client import ApiError
from learning.core.auth import describe_guest_login_error, describe_login_error
from learning.models import User
from learning.web.schemas import LoginRequest, SessionResponse, UserResponse
from learning.web.sessions import BrowserSession, current_session, get_session_manager

router = APIRouter(prefix="/api/session", tags=["session"])


def _user_response(user: User, role: str | None) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        role=role or "",
    )


@router.post("/login", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def login(request: LoginRequest) -> SessionResponse:
    """Log in and open a browser session.

    The returned session_id goes in the X-Session-Id header of later calls.
    """
    manager = get_session_manager()
    session = manager.create_session()

    try:
        if request.guest:
            user = session.auth.login_as_guest()
        else:
            user = session.auth.login(request.username, request.password)
    except ApiError as e:
        manager.end_session(session.session_id)
        describe = describe_guest_login_error if request.guest else describe_login_error
        raise HTTPException(
            status_code=e.status_code or status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=describe(e),
        )

    return SessionResponse(
        session_id=session.session_id,
        user=_user_response(user, session.auth.role),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(session: BrowserSession = Depends(current_session)) -> None:
    """Log out and drop the browser session."""
    get_session_manager().end_session(session.session_id)


@router.get("/me", response_model=SessionResponse)
def me(session: BrowserSession = Depends(current_session)) -> SessionResponse:
    """The user behind the session."""
    user = session.auth.require()
    return SessionResponse(
        session_id=session.session_id,
        user=_user_response(user, session.auth.role),
    )
