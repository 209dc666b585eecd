import hmac

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from muselink.core.config import settings
from muselink.core.errors import Unauthorized
from muselink.db.session import get_db
from muselink.models.user import User
from muselink.schemas.credits import BalanceOut, TopUpIn
from muselink.services.auth.jwt import get_current_user
from muselink.services.credits.service import CreditLedger


router = APIRouter(prefix="/credits", tags=["credits"])


def require_webhook_secret(x_webhook_secret: str | None = Header(default=None)) -> None:
    expected = settings.payments_webhook_secret
    if not expected or not x_webhook_secret or not hmac.compare_digest(x_webhook_secret.encode(), expected.encode()):
        raise Unauthorized("Invalid webhook secret")


@router.get("/balance", response_model=BalanceOut)
def get_balance(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> BalanceOut:
    return BalanceOut(user_id=user.id, credits=CreditLedger(db).get_balance(user.id))


@router.post("/topups", response_model=BalanceOut, dependencies=[Depends(require_webhook_secret)])
def apply_topup(body: TopUpIn, db: Session = Depends(get_db)) -> BalanceOut:
    """Payment completed: credit the purchased pack. Safe to deliver more than once."""
    new_balance = CreditLedger(db).top_up(body.user_id, body.credits, body.payment_id)
    return BalanceOut(user_id=body.user_id, credits=new_balance)
