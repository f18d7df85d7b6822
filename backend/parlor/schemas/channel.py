from datetime import datetime

from pydantic import BaseModel, Field


class ChannelCreate(BaseModel):
    # Emptiness is checked by the registry so HTTP and tests share one rule.
    name: str = Field("", max_length=100)


class ChannelResponse(BaseModel):
    id: int
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ChannelEnvelope(BaseModel):
    channel: ChannelResponse


class ChannelList(BaseModel):
    channels: list[ChannelResponse]
