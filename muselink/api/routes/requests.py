from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from muselink.db.session import get_db
from muselink.models.performance_request import PerformanceRequest
from muselink.models.user import User
from muselink.schemas.requests import RequestIn, RequestOut
from muselink.schemas.unlocks import UnlockResult
from muselink.services.auth.jwt import get_current_artist, get_current_client, get_current_user
from muselink.services.requests.service import RequestService
from muselink.services.unlocks.service import UnlockService


router = APIRouter(prefix="/requests", tags=["requests"])


def _to_out(request: PerformanceRequest, unlocks: int) -> RequestOut:
    return RequestOut(
        id=request.id,
        client_id=request.client_id,
        title=request.title,
        description=request.description,
        location=request.location,
        event_date=request.event_date,
        budget=request.budget,
        quota=request.quota,
        unlocks=unlocks,
        state=request.state,
        created_at=request.created_at,
        closed_at=request.closed_at,
    )


@router.post("", response_model=RequestOut, status_code=201)
def create_request(
    body: RequestIn,
    client: User = Depends(get_current_client),
    db: Session = Depends(get_db),
) -> RequestOut:
    request = RequestService(db).create(
        client_id=client.id,
        title=body.title,
        quota=body.quota,
        description=body.description,
        location=body.location,
        event_date=body.event_date,
        budget=body.budget,
    )
    return _to_out(request, 0)


@router.get("", response_model=list[RequestOut])
def list_open_requests(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[RequestOut]:
    """Open requests, newest first. Contacts are not included."""
    service = RequestService(db)
    requests = service.list_open(limit=limit, offset=offset)
    counts = service.count_unlocks([r.id for r in requests])
    return [_to_out(r, counts[r.id]) for r in requests]


@router.get("/{request_id}", response_model=RequestOut)
def get_request(
    request_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RequestOut:
    service = RequestService(db)
    request = service.get(request_id)
    return _to_out(request, service.count_unlocks([request.id])[request.id])


@router.post("/{request_id}/close", response_model=RequestOut)
def close_request(
    request_id: str,
    client: User = Depends(get_current_client),
    db: Session = Depends(get_db),
) -> RequestOut:
    service = RequestService(db)
    request = service.close(request_id, client_id=client.id)
    return _to_out(request, service.count_unlocks([request.id])[request.id])


@router.post("/{request_id}/unlock", response_model=UnlockResult)
def unlock_request(
    request_id: str,
    artist: User = Depends(get_current_artist),
    db: Session = Depends(get_db),
) -> UnlockResult:
    """Spend one credit to reveal the client's contact."""
    return UnlockService(db).unlock(artist_id=artist.id, request_id=request_id)
