"""
UnlockService: an artist spends one credit to get the contact of a request's client.

The whole sequence is one transaction:
    lock request -> closed? -> already unlocked? -> quota left? -> debit (locks artist)
    -> insert unlock -> close request when quota is reached -> commit
Locks are always taken request first, then artist (CreditLedger.debit_one),
so two unlocks touching overlapping rows cannot deadlock each other.
Any failure rolls everything back: no unlock without a debit and vice versa.
"""
import logging
import time

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from muselink.core.config import settings
from muselink.core.errors import (
    AlreadyGranted,
    MuseLinkError,
    QuotaExhausted,
    ResourceClosed,
    ResourceNotFound,
    TransientStoreFailure,
)
from muselink.db.session import apply_lock_timeout, is_transient_store_error
from muselink.models.performance_request import PerformanceRequest
from muselink.models.unlock import Unlock
from muselink.models.user import User
from muselink.schemas.unlocks import ContactOut, UnlockedRequestOut, UnlockResult
from muselink.services.credits.service import CreditLedger
from muselink.services.requests.service import mark_closed
from muselink.utils.metrics import unlock_attempts_total, unlock_duration_seconds

logger = logging.getLogger(__name__)


class UnlockService:
    def __init__(self, db: Session, close_on_quota: bool | None = None):
        self.db = db
        self.ledger = CreditLedger(db)
        if close_on_quota is None:
            close_on_quota = settings.close_request_on_quota
        self.close_on_quota = close_on_quota

    def unlock(self, artist_id: str, request_id: str) -> UnlockResult:
        started = time.monotonic()
        try:
            result = self._unlock(artist_id, request_id)
            self.db.commit()
        except MuseLinkError as exc:
            self.db.rollback()
            unlock_attempts_total.labels(outcome=exc.code).inc()
            logger.info(
                "unlock_rejected",
                extra={"artist_id": artist_id, "request_id": request_id, "code": exc.code},
            )
            raise
        except Exception as exc:
            self.db.rollback()
            if is_transient_store_error(exc):
                unlock_attempts_total.labels(outcome=TransientStoreFailure.code).inc()
                logger.warning(
                    "store_transient_failure",
                    extra={
                        "artist_id": artist_id,
                        "request_id": request_id,
                        "error": type(exc).__name__,
                    },
                )
                raise TransientStoreFailure() from exc
            raise
        finally:
            unlock_duration_seconds.observe(time.monotonic() - started)

        unlock_attempts_total.labels(outcome="granted").inc()
        logger.info(
            "unlock_granted",
            extra={
                "artist_id": artist_id,
                "request_id": request_id,
                "new_balance": result.new_balance,
            },
        )
        return result

    def _unlock(self, artist_id: str, request_id: str) -> UnlockResult:
        apply_lock_timeout(self.db)

        request = (
            self.db.query(PerformanceRequest)
            .filter(PerformanceRequest.id == request_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if not request:
            raise ResourceNotFound(request_id=request_id)
        if request.is_closed:
            raise ResourceClosed(request_id=request_id)
        if self._unlock_exists(artist_id, request_id):
            raise AlreadyGranted(artist_id=artist_id, request_id=request_id)
        # state may still say open in soft-cap mode
        if self._count_unlocks(request_id) >= request.quota:
            raise QuotaExhausted(request_id=request_id)

        new_balance = self.ledger.debit_one(artist_id)

        self.db.add(Unlock(artist_id=artist_id, request_id=request_id))
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise AlreadyGranted(artist_id=artist_id, request_id=request_id) from exc

        grants = self._count_unlocks(request_id)
        closed = False
        if self.close_on_quota and grants >= request.quota:
            closed = mark_closed(request, reason="quota")
            self.db.flush()

        return UnlockResult(
            request_id=request_id,
            new_balance=new_balance,
            request_closed=closed or request.is_closed,
            contact=self._owner_contact(request.client_id),
        )

    def list_for_artist(self, artist_id: str) -> list[UnlockedRequestOut]:
        rows = (
            self.db.query(Unlock, PerformanceRequest, User)
            .join(PerformanceRequest, PerformanceRequest.id == Unlock.request_id)
            .outerjoin(User, User.id == PerformanceRequest.client_id)
            .filter(Unlock.artist_id == artist_id)
            .order_by(Unlock.created_at.desc())
            .all()
        )
        return [
            UnlockedRequestOut(
                request_id=request.id,
                title=request.title,
                unlocked_at=unlock.created_at,
                contact=_contact(owner) if owner else None,
            )
            for unlock, request, owner in rows
        ]

    def _unlock_exists(self, artist_id: str, request_id: str) -> bool:
        stmt = (
            self.db.query(Unlock.id)
            .filter(Unlock.artist_id == artist_id, Unlock.request_id == request_id)
            .exists()
        )
        return self.db.query(stmt).scalar() or False

    def _count_unlocks(self, request_id: str) -> int:
        return (
            self.db.query(func.count(Unlock.id))
            .filter(Unlock.request_id == request_id)
            .scalar()
        ) or 0

    def _owner_contact(self, client_id: str) -> ContactOut | None:
        owner = self.db.query(User).filter(User.id == client_id).one_or_none()
        return _contact(owner) if owner else None


def _contact(user: User) -> ContactOut:
    return ContactOut(
        client_id=user.id,
        display_name=user.display_name,
        email=user.email,
        phone=user.phone,
    )
