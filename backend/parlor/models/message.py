from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text

from parlor.database import Base, UTCDateTime, utcnow


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    channel_id = Column(Integer, ForeignKey("channels.id"), nullable=False)
    # Author snapshot taken from the sender's bound identity; never updated.
    user_id = Column(String(64), nullable=False)
    username = Column(String(64), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column("timestamp", UTCDateTime, default=utcnow, nullable=False)
    edited_at = Column(UTCDateTime, nullable=True)

    __table_args__ = (Index("ix_messages_channel_timestamp", channel_id, created_at),)
