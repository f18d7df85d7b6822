"""Channel registry: the persisted half.

Which connection listens to which channel is in-memory state and lives with
the broadcaster (parlor.websocket.manager).
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from parlor.config import settings
from parlor.core.errors import DuplicateChannelName, InvalidInput
from parlor.database import atomic
from parlor.models.channel import Channel
from parlor.schemas.channel import ChannelResponse

logger = logging.getLogger(__name__)


def create_channel(db: Session, name: str | None) -> ChannelResponse:
    name = (name or "").strip()
    if not name:
        raise InvalidInput("missing_name")

    with atomic(db):
        if settings.UNIQUE_CHANNEL_NAMES:
            taken = db.execute(select(Channel.id).where(Channel.name == name).limit(1)).first()
            if taken is not None:
                raise DuplicateChannelName(name)
        channel = Channel(name=name)
        db.add(channel)
        db.flush()
        created = ChannelResponse.model_validate(channel)

    logger.info("Channel %s created (%r)", created.id, created.name)
    return created


def list_channels(db: Session) -> list[ChannelResponse]:
    """All channels, ordered by name for a stable sidebar."""
    rows = db.execute(select(Channel).order_by(Channel.name.asc(), Channel.id.asc())).scalars().all()
    return [ChannelResponse.model_validate(c) for c in rows]


def channel_exists(db: Session, channel_id: int) -> bool:
    return db.execute(select(Channel.id).where(Channel.id == channel_id)).first() is not None
