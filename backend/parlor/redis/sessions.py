"""
Session store for the login collaborator.

Key scheme:
  <SERVER_DOMAIN>:session:{sid}  →  JSON-encoded SessionData
  TTL = SESSION_MAX_AGE_SECONDS.

Without Redis the records live in a module-level dict with their own expiry
times; expired records are swept out whenever a session is saved.  A Redis
error on read is logged and treated as "no such session".  A failed write
raises StoreFailure, since a token naming an unsaved session is useless.
"""

import logging
import time

from pydantic import ValidationError
from redis.exceptions import RedisError

from parlor.config import settings
from parlor.core.errors import StoreFailure
from parlor.redis.client import get_redis
from parlor.redis.keys import session_key
from parlor.schemas.session import SessionData

logger = logging.getLogger(__name__)

# sid -> (expires_at monotonic seconds, record)
_local: dict[str, tuple[float, SessionData]] = {}


async def save_session(session_id: str, data: SessionData) -> None:
    """Create or overwrite a session record and restart its TTL."""
    ttl = settings.SESSION_MAX_AGE_SECONDS
    r = get_redis()
    if r is None:
        now = time.monotonic()
        _purge_expired(now)
        _local[session_id] = (now + ttl, data)
        return
    try:
        await r.setex(session_key(session_id), ttl, data.model_dump_json())
    except (RedisError, OSError) as exc:
        logger.error("sessions.save_session failed: %s", exc)
        raise StoreFailure(f"could not save session: {exc}") from exc


def _purge_expired(now: float) -> None:
    for sid in [sid for sid, (expires_at, _) in _local.items() if expires_at <= now]:
        del _local[sid]


async def load_session(session_id: str) -> SessionData | None:
    """Return the stored record, or None if missing, expired or unreadable."""
    r = get_redis()
    if r is None:
        entry = _local.get(session_id)
        if entry is None:
            return None
        expires_at, data = entry
        if expires_at <= time.monotonic():
            _local.pop(session_id, None)
            return None
        return data
    try:
        raw = await r.get(session_key(session_id))
    except Exception as exc:
        logger.warning("sessions.load_session failed: %s", exc)
        return None
    if not raw:
        return None
    try:
        return SessionData.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning("sessions.load_session: unreadable record for %s: %s", session_id, exc)
        return None


async def update_username(session_id: str, username: str) -> SessionData | None:
    """Rename the user in an existing session, keeping everything else."""
    data = await load_session(session_id)
    if data is None:
        return None
    updated = data.model_copy(update={"username": username})
    await save_session(session_id, updated)
    return updated


def clear_local_sessions() -> None:
    _local.clear()
