from datetime import datetime

from pydantic import BaseModel

from parlor.schemas.reaction import ReactionResponse


class MessageResponse(BaseModel):
    id: int
    channel_id: int
    user_id: str
    username: str
    text: str
    created_at: datetime
    edited_at: datetime | None = None
    reactions: list[ReactionResponse] = []

    model_config = {"from_attributes": True}


class MessageList(BaseModel):
    messages: list[MessageResponse]
