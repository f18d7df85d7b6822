"""Inbound WebSocket payloads.

Clients send camelCase keys; the snake_case field names are accepted too.
These models only check presence and types. Emptiness and length rules
belong to the services.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class InboundEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class IdentifyEvent(InboundEvent):
    username: str


class JoinChannelEvent(InboundEvent):
    channel_id: int = Field(alias="channelId")


class SendMessageEvent(InboundEvent):
    channel_id: int = Field(alias="channelId")
    text: str


class ToggleReactionEvent(InboundEvent):
    message_id: int = Field(alias="messageId")
    # "reaction" is what older clients send with the "react" event.
    emoji: str = Field(validation_alias=AliasChoices("emoji", "reaction"))


class EditMessageEvent(InboundEvent):
    message_id: int = Field(alias="messageId")
    new_text: str = Field(alias="newText")


class DeleteMessageEvent(InboundEvent):
    message_id: int = Field(alias="messageId")
