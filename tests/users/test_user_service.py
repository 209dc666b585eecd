import pytest

from muselink.core.errors import ActorNotFound, InvalidInput
from muselink.services.users.service import UserService


def test_create_normalizes_email(db):
    user = UserService(db).create(email="Lucia@Example.com", display_name="Lucía", role="artist")
    assert user.email == "lucia@example.com"
    assert user.credits == 0
    assert user.is_artist
    assert UserService(db).get_by_email("LUCIA@example.com").id == user.id


def test_create_rejects_unknown_role(db):
    with pytest.raises(InvalidInput):
        UserService(db).create(email="x@example.com", display_name="X", role="promoter")


def test_get_missing(db):
    with pytest.raises(ActorNotFound):
        UserService(db).get("nobody")
