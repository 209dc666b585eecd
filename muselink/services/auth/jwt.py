"""
Bearer-token authentication. Tokens are issued by the identity service;
here they are only verified and resolved to a User row.
"""
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from muselink.core.config import settings
from muselink.core.errors import ActorNotFound, Forbidden, Unauthorized
from muselink.db.session import get_db
from muselink.models.user import User
from muselink.services.users.service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, role: str, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_ttl_minutes)
    )
    to_encode = {"sub": user_id, "role": role, "exp": expire}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise Unauthorized()
    if not payload.get("sub"):
        raise Unauthorized()
    return payload


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise Unauthorized()
    payload = verify_token(credentials.credentials)
    try:
        return UserService(db).get(payload["sub"])
    except ActorNotFound:
        raise Unauthorized()


def get_current_artist(user: User = Depends(get_current_user)) -> User:
    if not user.is_artist:
        raise Forbidden("Only artists can do this")
    return user


def get_current_client(user: User = Depends(get_current_user)) -> User:
    if not user.is_client:
        raise Forbidden("Only clients can do this")
    return user
