"""
PerformanceRequest: a client's request for a musical performance.
Artists unlock it (one credit each) to see the client's contact; at most `quota` unlocks.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text

from muselink.db.base import Base


STATE_OPEN = "open"
STATE_CLOSED = "closed"


class PerformanceRequest(Base):
    __tablename__ = "requests"
    __table_args__ = (CheckConstraint("quota > 0", name="ck_requests_quota_positive"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    client_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    event_date = Column(DateTime(timezone=True), nullable=True)
    budget = Column(Integer, nullable=True)  # CLP
    quota = Column(Integer, nullable=False)
    state = Column(String, nullable=False, default=STATE_OPEN, index=True)  # open -> closed, terminal
    closed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_closed(self) -> bool:
        return self.state == STATE_CLOSED
