from sqlalchemy import Column, Integer, String

from parlor.database import Base, UTCDateTime, utcnow


class Channel(Base):
    __tablename__ = "channels"

    id = Column(Integer, primary_key=True, index=True)
    # Names are not unique unless UNIQUE_CHANNEL_NAMES is enabled; the check
    # lives in the registry so the schema stays the same either way.
    name = Column(String(100), nullable=False, index=True)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
