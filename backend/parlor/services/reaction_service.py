"""
Reaction ledger: the (message, emoji, user) facts and their toggle.

A toggle is one transaction: try to delete the caller's row for the key and,
if nothing was there, insert it.  The unique constraint on the key turns a
concurrent insert into an IntegrityError; the losing toggle rolls back and
runs again, now seeing the row it raced with, so two toggles always net out
to "no row" just as if they had run one after the other.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from parlor.config import settings
from parlor.core.errors import InvalidInput, StoreFailure
from parlor.database import atomic
from parlor.models.message import Message
from parlor.models.reaction import Reaction
from parlor.schemas.reaction import ReactionRemoved, ReactionResponse
from parlor.schemas.session import Identity

logger = logging.getLogger(__name__)

MAX_EMOJI_LENGTH = 50


@dataclass(frozen=True)
class ToggleResult:
    channel_id: int
    added: ReactionResponse | None = None
    removed: ReactionRemoved | None = None


def toggle(db: Session, message_id: int | None, emoji: str | None, identity: Identity) -> ToggleResult | None:
    """Add the caller's reaction if absent, remove it if present.

    Returns None when the message does not exist.
    """
    if not message_id:
        raise InvalidInput("messageId is required")
    if not emoji:
        raise InvalidInput("emoji is required")
    if len(emoji) > MAX_EMOJI_LENGTH:
        raise InvalidInput(f"emoji is longer than {MAX_EMOJI_LENGTH} characters")

    for attempt in range(1, settings.TOGGLE_MAX_ATTEMPTS + 1):
        try:
            with atomic(db):
                return _toggle_once(db, message_id, emoji, identity)
        except IntegrityError:
            logger.info(
                "Reaction toggle on message %s by %s lost a race (attempt %d)",
                message_id,
                identity.user_id,
                attempt,
            )
    raise StoreFailure(f"reaction toggle on message {message_id} did not settle")


def _toggle_once(db: Session, message_id: int, emoji: str, identity: Identity) -> ToggleResult | None:
    channel_id = db.execute(select(Message.channel_id).where(Message.id == message_id)).scalar_one_or_none()
    if channel_id is None:
        return None

    removed = db.execute(
        delete(Reaction)
        .where(
            Reaction.message_id == message_id,
            Reaction.emoji == emoji,
            Reaction.user_id == identity.user_id,
        )
        .returning(Reaction.id, Reaction.username)
        .execution_options(synchronize_session=False)
    ).first()
    if removed is not None:
        return ToggleResult(
            channel_id=channel_id,
            removed=ReactionRemoved(
                id=removed.id,
                message_id=message_id,
                emoji=emoji,
                user_id=identity.user_id,
                username=removed.username,
            ),
        )

    reaction = Reaction(
        message_id=message_id,
        emoji=emoji,
        user_id=identity.user_id,
        username=identity.username,
    )
    db.add(reaction)
    db.flush()
    return ToggleResult(channel_id=channel_id, added=ReactionResponse.model_validate(reaction))


def list_for_messages(db: Session, message_ids: list[int]) -> dict[int, list[ReactionResponse]]:
    """Return {message_id: reactions oldest first} for the given messages."""
    if not message_ids:
        return {}
    rows = (
        db.execute(
            select(Reaction)
            .where(Reaction.message_id.in_(message_ids))
            .order_by(Reaction.created_at.asc(), Reaction.id.asc())
        )
        .scalars()
        .all()
    )
    grouped: dict[int, list[ReactionResponse]] = defaultdict(list)
    for r in rows:
        grouped[r.message_id].append(ReactionResponse.model_validate(r))
    return grouped


def delete_for_message(db: Session, message_id: int) -> int:
    """Remove every reaction on a message. Runs inside the caller's transaction."""
    result = db.execute(
        delete(Reaction).where(Reaction.message_id == message_id).execution_options(synchronize_session=False)
    )
    return result.rowcount or 0
