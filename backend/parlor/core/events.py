# WebSocket event type definitions

# Inbound (client -> server)
IDENTIFY = "identify"
JOIN_CHANNEL = "join_channel"
SEND_MESSAGE = "send_message"
TOGGLE_REACTION = "toggle_reaction"
REACT = "react"  # older clients
EDIT_MESSAGE = "edit_message"
DELETE_MESSAGE = "delete_message"

# Outbound (server -> clients)
NEW_MESSAGE = "new_message"
MESSAGE_EDITED = "message_edited"
MESSAGE_DELETED = "message_deleted"

REACTION_ADDED = "reaction_added"
REACTION_REMOVED = "reaction_removed"

CHANNEL_CREATED = "channel_created"

# Outbound, sent only to the acting connection
CONNECTED = "connected"
CHANNEL_JOINED = "channel_joined"
ERROR = "error"

# Topics
GLOBAL_TOPIC = "global"


def channel_topic(channel_id: int) -> str:
    return f"channel:{channel_id}"
