"""Tests for RequestService: creation bounds, listing, manual close."""
from unittest.mock import patch

import pytest

from muselink.core.errors import Forbidden, InvalidInput, ResourceNotFound
from muselink.models.unlock import Unlock
from muselink.services.requests.service import RequestService


def test_create_uses_default_quota(db, make_user):
    client = make_user(role="client")
    with patch("muselink.services.requests.service.settings") as mock_settings:
        mock_settings.default_request_quota = 3
        mock_settings.max_request_quota = 20
        request = RequestService(db).create(client_id=client.id, title="Quinceañera mariachi")

    assert request.quota == 3
    assert request.state == "open"
    assert request.closed_at is None


@pytest.mark.parametrize("quota", [0, 21])
def test_create_rejects_out_of_range_quota(db, make_user, quota):
    client = make_user(role="client")
    with patch("muselink.services.requests.service.settings") as mock_settings:
        mock_settings.default_request_quota = 3
        mock_settings.max_request_quota = 20
        with pytest.raises(InvalidInput):
            RequestService(db).create(client_id=client.id, title="Gig", quota=quota)


def test_get_missing(db):
    with pytest.raises(ResourceNotFound):
        RequestService(db).get("missing")


def test_list_open_skips_closed(db, make_request):
    open_request = make_request(quota=2, title="Open gig")
    make_request(quota=2, title="Old gig", state="closed")

    listed = RequestService(db).list_open()

    assert [r.id for r in listed] == [open_request.id]


def test_count_unlocks_includes_zero(db, make_request, make_user):
    first = make_request(quota=3)
    second = make_request(quota=3)
    db.add(Unlock(artist_id=make_user().id, request_id=first.id))
    db.commit()

    counts = RequestService(db).count_unlocks([first.id, second.id])

    assert counts == {first.id: 1, second.id: 0}


class TestManualClose:
    def test_owner_closes(self, db, make_user, make_request):
        client = make_user(role="client")
        request = make_request(quota=2, client=client)

        closed = RequestService(db).close(request.id, client_id=client.id)

        assert closed.state == "closed"
        assert closed.closed_at is not None

    def test_close_twice_keeps_first_timestamp(self, db, make_user, make_request):
        client = make_user(role="client")
        request = make_request(quota=2, client=client)
        service = RequestService(db)

        first_closed_at = service.close(request.id, client_id=client.id).closed_at
        again = service.close(request.id, client_id=client.id)

        assert again.state == "closed"
        assert again.closed_at == first_closed_at

    def test_other_client_cannot_close(self, db, make_user, make_request):
        request = make_request(quota=2)
        stranger = make_user(role="client")

        with pytest.raises(Forbidden):
            RequestService(db).close(request.id, client_id=stranger.id)
        assert RequestService(db).get(request.id).state == "open"

    def test_close_missing(self, db, make_user):
        with pytest.raises(ResourceNotFound):
            RequestService(db).close("missing", client_id=make_user(role="client").id)
