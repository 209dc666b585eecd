from datetime import datetime

from pydantic import BaseModel, Field


class RequestIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    location: str | None = None
    event_date: datetime | None = None
    budget: int | None = Field(default=None, ge=0)
    quota: int | None = Field(default=None, ge=1)  # None = settings.default_request_quota


class RequestOut(BaseModel):
    id: str
    client_id: str
    title: str
    description: str | None = None
    location: str | None = None
    event_date: datetime | None = None
    budget: int | None = None
    quota: int
    unlocks: int
    state: str
    created_at: datetime
    closed_at: datetime | None = None
