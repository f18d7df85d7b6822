from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from parlor.api.deps import get_current_identity
from parlor.database import get_db
from parlor.schemas.message import MessageList
from parlor.schemas.session import Identity
from parlor.services import message_service

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/{channel_id}", response_model=MessageList)
async def get_channel_messages(
    channel_id: int,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> MessageList:
    """Full channel history, oldest first, reactions included."""
    return MessageList(messages=message_service.list_by_channel(db, channel_id))
