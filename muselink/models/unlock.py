from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, UniqueConstraint

from muselink.db.base import Base


class Unlock(Base):
    """Grant: artist paid one credit for the contact of a request. Append-only."""

    __tablename__ = "unlocks"
    __table_args__ = (UniqueConstraint("artist_id", "request_id", name="uq_unlocks_artist_request"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    artist_id = Column(String, nullable=False, index=True)
    request_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
