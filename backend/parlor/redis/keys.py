"""
Namespaced Redis key helpers.

Keys are prefixed with SERVER_DOMAIN to avoid collisions when multiple
deployments share a Redis instance.
"""

from parlor.config import settings


def session_key(session_id: str) -> str:
    return f"{settings.SERVER_DOMAIN}:session:{session_id}"
