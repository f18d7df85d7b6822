import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from parlor.database import get_db
from parlor.redis.client import redis_status
from parlor.websocket.manager import broadcaster

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: Session = Depends(get_db)) -> dict:
    body = {
        "connections": len(broadcaster.connection_ids()),
        "sessions": await redis_status(),
    }
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Health check could not reach the database: %s", exc)
        return {"status": "unhealthy", "database": "disconnected", "error": str(exc), **body}
    return {"status": "healthy", "database": "connected", **body}
