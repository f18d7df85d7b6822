import json
import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from parlor.config import settings
from parlor.core import events
from parlor.core.errors import InvalidInput, Unauthenticated
from parlor.schemas.events import (
    DeleteMessageEvent,
    EditMessageEvent,
    IdentifyEvent,
    JoinChannelEvent,
    SendMessageEvent,
    ToggleReactionEvent,
)
from parlor.services import auth_service, message_service, reaction_service
from parlor.websocket.manager import ConnectionBinding, broadcaster

logger = logging.getLogger(__name__)

Handler = Callable[[ConnectionBinding, Session, Any], Awaitable[None]]


def session_token_from_websocket(websocket: WebSocket) -> str | None:
    """Cookie first (browsers), then an Authorization: Bearer header."""
    token = websocket.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    header = websocket.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


async def _authenticate(websocket: WebSocket) -> ConnectionBinding | None:
    """Bind the handshake's session to a new connection, or refuse the handshake."""
    token = session_token_from_websocket(websocket)
    try:
        identity = auth_service.bind_identity(await auth_service.resolve_session(token))
    except Unauthenticated:
        await websocket.close(code=1008)
        return None

    await websocket.accept()
    return broadcaster.connect(websocket, uuid.uuid4().hex, identity, session_token=token)


def _error(code: str, event_type: Any, detail: str) -> dict:
    return {"type": events.ERROR, "code": code, "event": event_type, "detail": detail}


# ----------------------------------------------------------------------
# Event handlers, one per inbound event type
# ----------------------------------------------------------------------


async def _on_identify(binding: ConnectionBinding, db: Session, event: IdentifyEvent) -> None:
    # Only the stored session changes; this connection keeps its snapshot.
    await auth_service.rename_session(binding.session_token, event.username)


async def _on_join_channel(binding: ConnectionBinding, db: Session, event: JoinChannelEvent) -> None:
    if not event.channel_id:
        raise InvalidInput("channelId is required")
    broadcaster.subscribe(binding.connection_id, event.channel_id)
    await broadcaster.send_personal(
        binding.connection_id,
        {"type": events.CHANNEL_JOINED, "channelId": event.channel_id},
    )


async def _on_send_message(binding: ConnectionBinding, db: Session, event: SendMessageEvent) -> None:
    message = message_service.append(db, event.channel_id, binding.identity, event.text)
    await broadcaster.publish_to_channel(
        message.channel_id,
        {"type": events.NEW_MESSAGE, "message": message.model_dump(mode="json")},
    )


async def _on_toggle_reaction(binding: ConnectionBinding, db: Session, event: ToggleReactionEvent) -> None:
    result = reaction_service.toggle(db, event.message_id, event.emoji, binding.identity)
    if result is None:
        return
    if result.added is not None:
        payload = {"type": events.REACTION_ADDED, "reaction": result.added.model_dump(mode="json")}
    else:
        payload = {"type": events.REACTION_REMOVED, **result.removed.model_dump(mode="json", by_alias=True)}
    await broadcaster.publish_mutation(result.channel_id, payload)


async def _on_edit_message(binding: ConnectionBinding, db: Session, event: EditMessageEvent) -> None:
    message = message_service.edit(db, event.message_id, binding.identity, event.new_text)
    if message is None:
        return
    await broadcaster.publish_mutation(
        message.channel_id,
        {"type": events.MESSAGE_EDITED, "message": message.model_dump(mode="json")},
    )


async def _on_delete_message(binding: ConnectionBinding, db: Session, event: DeleteMessageEvent) -> None:
    channel_id = message_service.delete_message(db, event.message_id, binding.identity)
    if channel_id is None:
        return
    await broadcaster.publish_mutation(
        channel_id,
        {"type": events.MESSAGE_DELETED, "messageId": event.message_id},
    )


_HANDLERS: dict[str, tuple[type[BaseModel], Handler]] = {
    events.IDENTIFY: (IdentifyEvent, _on_identify),
    events.JOIN_CHANNEL: (JoinChannelEvent, _on_join_channel),
    events.SEND_MESSAGE: (SendMessageEvent, _on_send_message),
    events.TOGGLE_REACTION: (ToggleReactionEvent, _on_toggle_reaction),
    events.REACT: (ToggleReactionEvent, _on_toggle_reaction),
    events.EDIT_MESSAGE: (EditMessageEvent, _on_edit_message),
    events.DELETE_MESSAGE: (DeleteMessageEvent, _on_delete_message),
}


async def dispatch(binding: ConnectionBinding, db: Session, data: dict[str, Any]) -> None:
    """Validate and run one inbound event on behalf of a bound connection.

    Malformed input is answered with an error event to this connection only.
    Anything else that goes wrong (typically a StoreFailure) is logged and
    the event is dropped; the connection stays open.
    """
    event_type = data.get("type")
    entry = _HANDLERS.get(event_type) if isinstance(event_type, str) else None
    if entry is None:
        await broadcaster.send_personal(
            binding.connection_id,
            _error("unknown_event", event_type, f"unknown event type {event_type!r}"),
        )
        return

    model, handler = entry
    try:
        event = model.model_validate(data)
        await handler(binding, db, event)
    except ValidationError as exc:
        await broadcaster.send_personal(
            binding.connection_id,
            _error("invalid_input", event_type, "; ".join(_describe(err) for err in exc.errors())),
        )
    except InvalidInput as exc:
        await broadcaster.send_personal(binding.connection_id, _error(exc.code, event_type, exc.detail))
    except Exception as exc:
        logger.error(
            "Error handling event %r from user %s: %s",
            event_type,
            binding.identity.user_id,
            exc,
            exc_info=True,
        )


def _describe(err: dict) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


async def chat_ws_handler(websocket: WebSocket, db: Session) -> None:
    """Full lifecycle handler for a chat WebSocket connection."""
    binding = await _authenticate(websocket)
    if binding is None:
        return

    await broadcaster.send_personal(
        binding.connection_id,
        {
            "type": events.CONNECTED,
            "userId": binding.identity.user_id,
            "username": binding.identity.username,
        },
    )

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                await broadcaster.send_personal(
                    binding.connection_id,
                    _error("invalid_json", None, "frame is not valid JSON"),
                )
                continue
            if not isinstance(data, dict):
                await broadcaster.send_personal(
                    binding.connection_id,
                    _error("invalid_input", None, "frame must be a JSON object"),
                )
                continue

            await dispatch(binding, db, data)

    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(binding.connection_id)
