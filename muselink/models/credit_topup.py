"""
CreditTopUp: one row per completed payment; payment_id makes top-ups idempotent.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Integer, String

from muselink.db.base import Base


class CreditTopUp(Base):
    __tablename__ = "credit_topups"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, nullable=False, index=True)
    payment_id = Column(String, unique=True, nullable=False)  # processor payment id
    credits = Column(Integer, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
