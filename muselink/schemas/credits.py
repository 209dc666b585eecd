from pydantic import BaseModel, Field


class BalanceOut(BaseModel):
    user_id: str
    credits: int


class TopUpIn(BaseModel):
    """Payment completion event from the payment processor hook."""

    user_id: str
    payment_id: str = Field(..., min_length=1)
    credits: int = Field(..., ge=1)
