"""
Message store: ordered, per-channel history with author-only mutation.

The authorization rule (acting user == stored author) is not a separate
check that runs before the write: it is part of the WHERE clause of the
UPDATE or DELETE itself, so there is no window between "is this yours?" and
"change it".  A miss, whether the message is gone or belongs to someone
else, is reported as None and the caller stays silent about it.
"""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from parlor.config import settings
from parlor.core.errors import InvalidInput
from parlor.database import atomic, utcnow
from parlor.models.message import Message
from parlor.schemas.message import MessageResponse
from parlor.schemas.session import Identity
from parlor.services import channel_service, reaction_service

logger = logging.getLogger(__name__)


def _authored_by(message_id: int, identity: Identity):
    return (Message.id == message_id) & (Message.user_id == identity.user_id)


def _check_text(text: str | None, field: str) -> str:
    if not isinstance(text, str) or not text.strip():
        raise InvalidInput(f"{field} is required")
    if len(text) > settings.MAX_MESSAGE_LENGTH:
        raise InvalidInput(f"{field} is longer than {settings.MAX_MESSAGE_LENGTH} characters")
    return text


def append(db: Session, channel_id: int | None, identity: Identity, text: str | None) -> MessageResponse:
    if not channel_id:
        raise InvalidInput("channelId is required")
    text = _check_text(text, "text")

    with atomic(db):
        if not channel_service.channel_exists(db, channel_id):
            raise InvalidInput(f"channel {channel_id} does not exist", code="unknown_channel")
        message = Message(
            channel_id=channel_id,
            user_id=identity.user_id,
            username=identity.username,
            text=text,
        )
        db.add(message)
        db.flush()
        created = MessageResponse.model_validate(message)

    return created


def get(db: Session, message_id: int) -> MessageResponse | None:
    """One message with its reactions, read fresh from the store."""
    message = db.execute(
        select(Message).where(Message.id == message_id).execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if message is None:
        return None
    response = MessageResponse.model_validate(message)
    response.reactions = reaction_service.list_for_messages(db, [message_id]).get(message_id, [])
    return response


def list_by_channel(db: Session, channel_id: int) -> list[MessageResponse]:
    """Channel history oldest first, each message with its reactions oldest first."""
    rows = (
        db.execute(
            select(Message)
            .where(Message.channel_id == channel_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
            .execution_options(populate_existing=True)
        )
        .scalars()
        .all()
    )
    reactions = reaction_service.list_for_messages(db, [m.id for m in rows])

    results = []
    for m in rows:
        resp = MessageResponse.model_validate(m)
        resp.reactions = reactions.get(m.id, [])
        results.append(resp)
    return results


def edit(db: Session, message_id: int | None, identity: Identity, new_text: str | None) -> MessageResponse | None:
    if not message_id:
        raise InvalidInput("messageId is required")
    new_text = _check_text(new_text, "newText")

    # The response is read inside the transaction so the session holds no
    # connection once the commit is done.
    with atomic(db):
        changed = db.execute(
            update(Message)
            .where(_authored_by(message_id, identity))
            .values(text=new_text, edited_at=utcnow())
            .execution_options(synchronize_session=False)
        ).rowcount
        edited = get(db, message_id) if changed else None

    if edited is None:
        logger.debug("Edit of message %s by %s ignored", message_id, identity.user_id)
    return edited


def delete_message(db: Session, message_id: int | None, identity: Identity) -> int | None:
    """Delete a message and its reactions in one transaction.

    Returns the channel id the message belonged to, or None on a miss.
    """
    if not message_id:
        raise InvalidInput("messageId is required")

    with atomic(db):
        channel_id = db.execute(
            select(Message.channel_id).where(_authored_by(message_id, identity))
        ).scalar_one_or_none()
        if channel_id is None:
            logger.debug("Delete of message %s by %s ignored", message_id, identity.user_id)
            return None
        removed = reaction_service.delete_for_message(db, message_id)
        db.execute(
            delete(Message).where(_authored_by(message_id, identity)).execution_options(synchronize_session=False)
        )

    logger.info("Message %s deleted by %s (%d reactions)", message_id, identity.user_id, removed)
    return channel_id
