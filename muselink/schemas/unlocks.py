from datetime import datetime

from pydantic import BaseModel


class ContactOut(BaseModel):
    """Contact of the client that owns a request; revealed only after unlock."""

    client_id: str
    display_name: str
    email: str
    phone: str | None = None


class UnlockResult(BaseModel):
    request_id: str
    new_balance: int
    request_closed: bool
    contact: ContactOut | None = None

    model_config = {"frozen": True}


class UnlockedRequestOut(BaseModel):
    request_id: str
    title: str
    unlocked_at: datetime
    contact: ContactOut | None = None
