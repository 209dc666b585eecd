import os

import pytest
from sqlalchemy.orm import sessionmaker

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-min-32-characters-long")
os.environ.setdefault("PAYMENTS_WEBHOOK_SECRET", "test-webhook-secret")


@pytest.fixture
def engine(tmp_path):
    import muselink.models  # noqa: F401
    from muselink.db.base import Base
    from muselink.db.session import make_engine

    engine = make_engine(f"sqlite:///{tmp_path / 'muselink.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    # no expiry on commit: setup rows stay readable without reopening a transaction,
    # which on SQLite would hold the write lock against other sessions
    session = session_factory(expire_on_commit=False)
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    from muselink.models.user import User

    counter = {"n": 0}

    def _make(role: str = "artist", credits: int = 0, **kwargs) -> User:
        counter["n"] += 1
        user = User(
            email=kwargs.get("email", f"{role}{counter['n']}@example.com"),
            display_name=kwargs.get("display_name", f"{role.title()} {counter['n']}"),
            phone=kwargs.get("phone", f"+56 9 0000 {counter['n']:04d}"),
            role=role,
            credits=credits,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_request(db, make_user):
    from muselink.models.performance_request import PerformanceRequest

    def _make(quota: int = 1, client=None, **kwargs) -> PerformanceRequest:
        client = client or make_user(role="client")
        request = PerformanceRequest(
            client_id=client.id,
            title=kwargs.get("title", "Wedding jazz trio"),
            location=kwargs.get("location", "Santiago"),
            quota=quota,
            state=kwargs.get("state", "open"),
        )
        db.add(request)
        db.commit()
        return request

    return _make


class CommittedState:
    """Reads committed state through a fresh session."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _scalar(self, query_fn):
        session = self.session_factory()
        try:
            return query_fn(session)
        finally:
            session.close()

    def balance(self, user_id: str) -> int:
        from muselink.models.user import User

        return self._scalar(
            lambda s: s.query(User.credits).filter(User.id == user_id).scalar()
        )

    def unlocks(self, request_id: str, artist_id: str | None = None) -> int:
        from muselink.models.unlock import Unlock

        def _count(s):
            query = s.query(Unlock).filter(Unlock.request_id == request_id)
            if artist_id:
                query = query.filter(Unlock.artist_id == artist_id)
            return query.count()

        return self._scalar(_count)

    def state(self, request_id: str) -> str:
        from muselink.models.performance_request import PerformanceRequest

        return self._scalar(
            lambda s: s.query(PerformanceRequest.state)
            .filter(PerformanceRequest.id == request_id)
            .scalar()
        )


@pytest.fixture
def committed(session_factory):
    return CommittedState(session_factory)
