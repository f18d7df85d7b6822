from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from parlor.api.deps import get_current_identity
from parlor.core import events
from parlor.core.errors import DuplicateChannelName
from parlor.database import get_db
from parlor.schemas.channel import ChannelCreate, ChannelEnvelope, ChannelList
from parlor.schemas.session import Identity
from parlor.services import channel_service
from parlor.websocket.manager import broadcaster

router = APIRouter(prefix="/channels", tags=["channels"])


@router.get("", response_model=ChannelList)
async def list_channels(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> ChannelList:
    return ChannelList(channels=channel_service.list_channels(db))


@router.post("", response_model=ChannelEnvelope)
async def create_channel(
    channel_in: ChannelCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> ChannelEnvelope:
    try:
        channel = channel_service.create_channel(db, channel_in.name)
    except DuplicateChannelName as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.detail) from None

    # The channel has no topic of its own yet, so everyone hears about it.
    await broadcaster.broadcast({"type": events.CHANNEL_CREATED, "channel": channel.model_dump(mode="json")})
    return ChannelEnvelope(channel=channel)
