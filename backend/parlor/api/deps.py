from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from parlor.config import settings
from parlor.core.errors import Unauthenticated
from parlor.schemas.session import Identity
from parlor.services import auth_service

security = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """The session cookie, or a bearer token for non-browser clients."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    return credentials.credentials if credentials else None


async def get_current_identity(token: str | None = Depends(get_session_token)) -> Identity:
    try:
        return auth_service.bind_identity(await auth_service.resolve_session(token))
    except Unauthenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="not_authenticated",
        ) from None
