from sqlalchemy.orm import Session

from muselink.core.errors import ActorNotFound, InvalidInput
from muselink.models.user import ROLES, User


class UserService:
    """Actor records. Accounts and passwords are owned by the identity service."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.id == user_id).one_or_none()
        if not user:
            raise ActorNotFound(user_id=user_id)
        return user

    def get_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email.lower()).one_or_none()

    def create(
        self,
        email: str,
        display_name: str,
        role: str,
        phone: str | None = None,
    ) -> User:
        if role not in ROLES:
            raise InvalidInput(f"Unknown role: {role}")
        user = User(
            email=email.lower(),
            display_name=display_name,
            phone=phone,
            role=role,
            credits=0,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
