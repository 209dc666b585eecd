from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from muselink.db.session import get_db
from muselink.models.user import User
from muselink.schemas.unlocks import UnlockedRequestOut
from muselink.services.auth.jwt import get_current_artist
from muselink.services.unlocks.service import UnlockService


router = APIRouter(prefix="/unlocks", tags=["unlocks"])


@router.get("", response_model=list[UnlockedRequestOut])
def list_my_unlocks(
    artist: User = Depends(get_current_artist),
    db: Session = Depends(get_db),
) -> list[UnlockedRequestOut]:
    return UnlockService(db).list_for_artist(artist.id)
