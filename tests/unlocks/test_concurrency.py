"""Concurrent unlocks: never more unlocks than quota, never a negative balance."""
import threading
from concurrent.futures import ThreadPoolExecutor

from muselink.core.errors import MuseLinkError
from muselink.services.unlocks.service import UnlockService


def _run_concurrently(session_factory, pairs: list[tuple[str, str]]) -> list:
    """Fire all unlocks at once; returns UnlockResult or the raised MuseLinkError per call."""
    barrier = threading.Barrier(len(pairs))

    def _worker(pair):
        artist_id, request_id = pair
        session = session_factory()
        try:
            barrier.wait()
            return UnlockService(session, close_on_quota=True).unlock(artist_id, request_id)
        except MuseLinkError as exc:
            return exc
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(pairs)) as pool:
        return list(pool.map(_worker, pairs))


def test_quota_plus_k_artists_race_for_one_request(session_factory, make_user, make_request, committed):
    quota, extra = 3, 4
    request = make_request(quota=quota)
    artists = [make_user(credits=2) for _ in range(quota + extra)]

    results = _run_concurrently(session_factory, [(a.id, request.id) for a in artists])

    granted = [r for r in results if not isinstance(r, MuseLinkError)]
    rejected = [r for r in results if isinstance(r, MuseLinkError)]
    assert len(granted) == quota
    assert {e.code for e in rejected} <= {"request_closed", "quota_exhausted"}
    assert committed.unlocks(request.id) == quota
    assert committed.state(request.id) == "closed"
    # losers keep their credits
    charged = sum(1 for a in artists if committed.balance(a.id) == 1)
    untouched = sum(1 for a in artists if committed.balance(a.id) == 2)
    assert charged == quota
    assert untouched == extra


def test_one_artist_races_across_more_requests_than_credits(session_factory, make_user, make_request, committed):
    credits, extra = 2, 3
    artist = make_user(credits=credits)
    client = make_user(role="client")
    requests = [make_request(quota=5, client=client) for _ in range(credits + extra)]

    results = _run_concurrently(session_factory, [(artist.id, r.id) for r in requests])

    granted = [r for r in results if not isinstance(r, MuseLinkError)]
    rejected = [r for r in results if isinstance(r, MuseLinkError)]
    assert len(granted) == credits
    assert {e.code for e in rejected} == {"insufficient_credits"}
    assert committed.balance(artist.id) == 0
    assert sum(committed.unlocks(r.id, artist.id) for r in requests) == credits
    assert sorted(r.new_balance for r in granted) == list(range(credits))


def test_same_artist_same_request_in_parallel_is_charged_once(session_factory, make_user, make_request, committed):
    request = make_request(quota=5)
    artist = make_user(credits=5)

    results = _run_concurrently(session_factory, [(artist.id, request.id)] * 4)

    granted = [r for r in results if not isinstance(r, MuseLinkError)]
    assert len(granted) == 1
    assert {e.code for e in results if isinstance(e, MuseLinkError)} == {"already_unlocked"}
    assert committed.balance(artist.id) == 4
    assert committed.unlocks(request.id, artist.id) == 1
