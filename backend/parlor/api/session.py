from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from parlor.api.deps import get_session_token
from parlor.config import settings
from parlor.core.errors import Unauthenticated
from parlor.schemas.session import LoginRequest, LoginResponse, SessionResponse
from parlor.services import auth_service

router = APIRouter(tags=["session"])


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    response: Response,
    token: str | None = Depends(get_session_token),
):
    try:
        new_token, session = await auth_service.login(credentials.passcode, credentials.username, token)
    except Unauthenticated:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"ok": False})

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=new_token,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
    )
    return LoginResponse(ok=True, user_id=session.user_id, username=session.username, token=new_token)


@router.get("/api/session", response_model=SessionResponse)
async def get_session(token: str | None = Depends(get_session_token)) -> SessionResponse:
    session = await auth_service.resolve_session(token)
    if session is None or not session.authenticated:
        return SessionResponse(authenticated=False)
    return SessionResponse(authenticated=True, user_id=session.user_id, username=session.username)
