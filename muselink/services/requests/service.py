import logging
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from muselink.core.config import settings
from muselink.core.errors import Forbidden, InvalidInput, ResourceNotFound
from muselink.models.performance_request import STATE_CLOSED, STATE_OPEN, PerformanceRequest
from muselink.models.unlock import Unlock
from muselink.utils.metrics import requests_closed_total

logger = logging.getLogger(__name__)


def mark_closed(request: PerformanceRequest, reason: str) -> bool:
    """
    open -> closed. Returns False when the request was already closed (terminal state).
    Caller must hold the row lock on the request.
    """
    if request.state == STATE_CLOSED:
        return False
    request.state = STATE_CLOSED
    request.closed_at = datetime.now(timezone.utc)
    requests_closed_total.labels(reason=reason).inc()
    logger.info(
        "request_closed",
        extra={"request_id": request.id, "quota": request.quota, "reason": reason},
    )
    return True


class RequestService:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        client_id: str,
        title: str,
        quota: int | None = None,
        description: str | None = None,
        location: str | None = None,
        event_date: datetime | None = None,
        budget: int | None = None,
    ) -> PerformanceRequest:
        if quota is None:
            quota = settings.default_request_quota
        if quota < 1 or quota > settings.max_request_quota:
            raise InvalidInput(f"quota must be between 1 and {settings.max_request_quota}")
        request = PerformanceRequest(
            client_id=client_id,
            title=title,
            description=description,
            location=location,
            event_date=event_date,
            budget=budget,
            quota=quota,
            state=STATE_OPEN,
        )
        self.db.add(request)
        self.db.commit()
        self.db.refresh(request)
        logger.info(
            "request_created",
            extra={"request_id": request.id, "client_id": client_id, "quota": quota},
        )
        return request

    def get(self, request_id: str) -> PerformanceRequest:
        request = (
            self.db.query(PerformanceRequest)
            .filter(PerformanceRequest.id == request_id)
            .one_or_none()
        )
        if not request:
            raise ResourceNotFound(request_id=request_id)
        return request

    def list_open(self, limit: int = 50, offset: int = 0) -> list[PerformanceRequest]:
        return (
            self.db.query(PerformanceRequest)
            .filter(PerformanceRequest.state == STATE_OPEN)
            .order_by(PerformanceRequest.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_unlocks(self, request_ids: list[str]) -> dict[str, int]:
        if not request_ids:
            return {}
        rows = (
            self.db.query(Unlock.request_id, func.count(Unlock.id))
            .filter(Unlock.request_id.in_(request_ids))
            .group_by(Unlock.request_id)
            .all()
        )
        counts = {request_id: 0 for request_id in request_ids}
        counts.update({request_id: count for request_id, count in rows})
        return counts

    def close(self, request_id: str, client_id: str) -> PerformanceRequest:
        """Manual close by the owning client. Closing a closed request is a no-op."""
        try:
            request = (
                self.db.query(PerformanceRequest)
                .filter(PerformanceRequest.id == request_id)
                .with_for_update()
                .populate_existing()
                .one_or_none()
            )
            if not request:
                raise ResourceNotFound(request_id=request_id)
            if request.client_id != client_id:
                raise Forbidden("Only the owner can close this request")
            mark_closed(request, reason="manual")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(request)
        return request
