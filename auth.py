from fastapi import Depends, HTTPException, Request, Response, status

from dependencies import get_session_manager
from errors import AuthError
from services.session_service import SessionArtifact, SessionManager


async def require_session(
    request: Request,
    sessions: SessionManager = Depends(get_session_manager),
) -> str:
    """
    Dependency that requires a valid session cookie.

    Args:
        request: The incoming request carrying the cookie
        sessions: The session manager that validates the token

    Returns:
        The account id from the token

    Raises:
        HTTPException: If the cookie is missing, expired or forged
    """
    token = request.cookies.get(sessions.cookie_name)
    try:
        return sessions.authenticate(token)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
        )


def set_session_cookie(
    response: Response, sessions: SessionManager, session: SessionArtifact
) -> None:
    response.set_cookie(
        key=sessions.cookie_name,
        value=session.token,
        max_age=session.max_age,
        **sessions.cookie_attributes(),
    )


def clear_session_cookie(response: Response, instruction: dict) -> None:
    response.delete_cookie(**instruction)
