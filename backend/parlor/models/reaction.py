from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint

from parlor.database import Base, UTCDateTime, utcnow


class Reaction(Base):
    __tablename__ = "reactions"

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(Integer, ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True)
    # Unicode emoji or :name: format
    emoji = Column(String(50), nullable=False)
    user_id = Column(String(64), nullable=False)
    username = Column(String(64), nullable=False)
    created_at = Column("timestamp", UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (
        # One user can only react with the same emoji once per message
        UniqueConstraint("message_id", "emoji", "user_id", name="unique_user_emoji_per_message"),
    )
