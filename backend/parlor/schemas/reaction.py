from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ReactionResponse(BaseModel):
    id: int
    message_id: int
    emoji: str
    user_id: str
    username: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ReactionRemoved(BaseModel):
    """Key fields of a reaction row that a toggle just deleted."""

    id: int
    message_id: int = Field(serialization_alias="messageId")
    emoji: str
    user_id: str = Field(serialization_alias="userId")
    username: str

    model_config = ConfigDict(populate_by_name=True)
