from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String

from muselink.db.base import Base


ROLE_ARTIST = "artist"
ROLE_CLIENT = "client"
ROLE_ADMIN = "admin"
ROLES = (ROLE_ARTIST, ROLE_CLIENT, ROLE_ADMIN)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("credits >= 0", name="ck_users_credits_non_negative"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    email = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    role = Column(String, nullable=False, default=ROLE_CLIENT)  # artist | client | admin
    # Written only by CreditLedger (unlock debit, payment top-up).
    credits = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_artist(self) -> bool:
        return self.role == ROLE_ARTIST

    @property
    def is_client(self) -> bool:
        return self.role == ROLE_CLIENT
