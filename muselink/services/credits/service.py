"""
CreditLedger: artist credit balances.

Every balance change happens under a row lock on the user (SELECT ... FOR UPDATE).
debit_one never commits: it runs inside the caller's unlock transaction.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from muselink.core.errors import (
    ActorNotFound,
    InsufficientCredits,
    InvalidInput,
    PaymentConflict,
    TransientStoreFailure,
)
from muselink.db.session import is_transient_store_error
from muselink.models.credit_topup import CreditTopUp
from muselink.models.user import User
from muselink.utils.metrics import credit_operations_total

logger = logging.getLogger(__name__)


class CreditLedger:
    def __init__(self, db: Session):
        self.db = db

    def _lock_user(self, user_id: str) -> User:
        user = (
            self.db.query(User)
            .filter(User.id == user_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if not user:
            raise ActorNotFound(user_id=user_id)
        return user

    def get_balance(self, user_id: str) -> int:
        credits = self.db.query(User.credits).filter(User.id == user_id).scalar()
        if credits is None:
            raise ActorNotFound(user_id=user_id)
        return credits

    def debit_one(self, artist_id: str) -> int:
        """Take one credit from the artist. Returns the balance after the debit."""
        locked = self._lock_user(artist_id)
        if locked.credits <= 0:
            raise InsufficientCredits(artist_id=artist_id)
        locked.credits -= 1
        self.db.flush()
        credit_operations_total.labels(operation="DEBIT").inc()
        logger.info(
            "credits_debited",
            extra={"artist_id": artist_id, "new_balance": locked.credits},
        )
        return locked.credits

    def top_up(self, user_id: str, credits: int, payment_id: str) -> int:
        """
        Add purchased credits after payment completion and commit.
        Idempotent: a payment_id that was already applied only returns the balance.
        The same payment_id naming a different user raises PaymentConflict.
        """
        if credits <= 0:
            raise InvalidInput("credits must be positive")

        existing = (
            self.db.query(CreditTopUp)
            .filter(CreditTopUp.payment_id == payment_id)
            .one_or_none()
        )
        if existing:
            return self._already_applied(existing, user_id)

        try:
            locked = self._lock_user(user_id)
            locked.credits += credits
            self.db.add(CreditTopUp(user_id=user_id, payment_id=payment_id, credits=credits))
            self.db.flush()
            new_balance = locked.credits
            self.db.commit()
        except IntegrityError:
            # concurrent delivery of the same payment won the unique constraint
            self.db.rollback()
            winner = (
                self.db.query(CreditTopUp)
                .filter(CreditTopUp.payment_id == payment_id)
                .one()
            )
            return self._already_applied(winner, user_id)
        except Exception as exc:
            self.db.rollback()
            if is_transient_store_error(exc):
                logger.warning(
                    "store_transient_failure",
                    extra={"payment_id": payment_id, "error": type(exc).__name__},
                )
                raise TransientStoreFailure() from exc
            raise

        credit_operations_total.labels(operation="TOPUP").inc()
        logger.info(
            "credits_topped_up",
            extra={
                "user_id": user_id,
                "credits": credits,
                "payment_id": payment_id,
                "new_balance": new_balance,
            },
        )
        return new_balance

    def _already_applied(self, topup: CreditTopUp, user_id: str) -> int:
        if topup.user_id != user_id:
            logger.warning(
                "topup_payment_conflict",
                extra={"payment_id": topup.payment_id, "user_id": user_id},
            )
            raise PaymentConflict(payment_id=topup.payment_id)
        logger.info("topup_already_applied", extra={"payment_id": topup.payment_id})
        return self.get_balance(user_id)
