"""
Centralized auth service. All session and identity decisions flow through here.

No JWT decoding should happen outside this module.

Two roles live side by side:

* the login collaborator, which trades the shared passcode for a session
  record and a signed token naming it;
* the identity binder, which turns a stored session into the immutable
  Identity a connection keeps for its whole life.  A later rename (see
  ``rename_session``) changes the stored record only; connections that are
  already bound keep the old snapshot until they reconnect.
"""

import logging
import secrets
import string
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from parlor.config import settings
from parlor.core.errors import InvalidInput, Unauthenticated
from parlor.redis import sessions
from parlor.schemas.session import Identity, SessionData

logger = logging.getLogger(__name__)

MAX_USERNAME_LENGTH = 32

_USER_ID_ALPHABET = string.ascii_lowercase + string.digits


# ── Token ─────────────────────────────────────────────────────────────────────


def create_session_token(session_id: str, expires_delta: timedelta | None = None) -> str:
    """Sign a token whose 'sid' claim names a record in the session store."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(seconds=settings.SESSION_MAX_AGE_SECONDS))
    payload = {"sid": session_id, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_session_token(token: str) -> dict | None:
    """Decode and validate a token. Returns payload dict or None on failure."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def session_id_from_token(token: str | None) -> str | None:
    if not token:
        return None
    payload = decode_session_token(token)
    if payload is None:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) and sid else None


# ── Login ─────────────────────────────────────────────────────────────────────


def passcode_matches(passcode: str) -> bool:
    return secrets.compare_digest(passcode.encode(), settings.PASSCODE.encode())


def _new_user_id() -> str:
    return "u_" + "".join(secrets.choice(_USER_ID_ALPHABET) for _ in range(8))


def _default_username() -> str:
    return f"User{secrets.randbelow(9000) + 1000}"


def _clean_username(username: str | None) -> str:
    """Trim a requested name; empty comes back as "", too long is refused."""
    name = (username or "").strip()
    if len(name) > MAX_USERNAME_LENGTH:
        raise InvalidInput(f"username is longer than {MAX_USERNAME_LENGTH} characters")
    return name


async def login(passcode: str, username: str | None, existing_token: str | None = None) -> tuple[str, SessionData]:
    """
    Exchange the passcode for a session.

    A caller that still holds a valid session keeps its user id (and its
    session id); only the username is replaced.  Returns the freshly signed
    token and the stored record.
    """
    if not passcode or not passcode_matches(passcode):
        raise Unauthenticated("Invalid passcode")

    session_id = session_id_from_token(existing_token)
    previous = await sessions.load_session(session_id) if session_id else None
    if previous is None:
        session_id = secrets.token_urlsafe(24)

    name = _clean_username(username) or _default_username()
    data = SessionData(
        user_id=previous.user_id if previous else _new_user_id(),
        username=name,
        authenticated=True,
    )
    await sessions.save_session(session_id, data)
    logger.info("Session started for %s (%s)", data.user_id, data.username)
    return create_session_token(session_id), data


# ── Session lookup ────────────────────────────────────────────────────────────


async def resolve_session(token: str | None) -> SessionData | None:
    """Resolve a token to its stored session record, or None."""
    session_id = session_id_from_token(token)
    if session_id is None:
        return None
    return await sessions.load_session(session_id)


def bind_identity(session: SessionData | None) -> Identity:
    """Snapshot an authenticated session into a connection identity."""
    if session is None or not session.authenticated:
        raise Unauthenticated("not_authenticated")
    return Identity(user_id=session.user_id, username=session.username)


async def rename_session(token: str | None, username: str) -> SessionData | None:
    """Change the username stored in the caller's session."""
    name = _clean_username(username)
    if not name:
        raise InvalidInput("username is required")
    session_id = session_id_from_token(token)
    if session_id is None:
        return None
    return await sessions.update_username(session_id, name)
