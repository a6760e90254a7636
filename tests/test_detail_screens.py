import asyncio

import httpx

from conftest import (
    ACCOUNT_ID,
    MEMBER_ID,
    REST,
    account_row,
    count_response,
    recording_row,
    rows_response,
    user_row,
)
from streamrokuo_admin.screens import LiveAccountDetailScreen, UserDetailScreen


def test_invalid_live_account_id_fails_fast(rest, backend):
    screen = LiveAccountDetailScreen(rest, "not-a-uuid")

    asyncio.run(screen.load())

    assert backend.requests == []
    assert screen.error == "Invalid live account ID."
    assert not screen.not_found
    assert not screen.is_loading


def test_missing_live_account_is_not_found_not_error(rest, backend):
    backend.rest("GET", "live_accounts", lambda req: rows_response([]))
    screen = LiveAccountDetailScreen(rest, ACCOUNT_ID)

    asyncio.run(screen.load())

    assert screen.not_found
    assert screen.error is None
    assert backend.calls("HEAD", f"{REST}/follows") == []


def test_live_account_detail_loads_followers_and_recordings(rest, backend):
    backend.rest("GET", "live_accounts", lambda req: rows_response([account_row()]))
    backend.rest("HEAD", "follows", lambda req: count_response(12))
    backend.rest("GET", "recordings", lambda req: rows_response([recording_row()], total=21))
    screen = LiveAccountDetailScreen(rest, ACCOUNT_ID)

    asyncio.run(screen.mount(status="ready"))
    snapshot = screen.snapshot()

    assert snapshot["entity"]["label"] == "streamer_one"
    assert snapshot["follower_count"] == 12
    assert snapshot["recordings_total"] == 21
    assert snapshot["total_pages"] == 2
    assert snapshot["has_next"] is True
    (recordings,) = backend.calls("GET", f"{REST}/recordings")
    assert recordings.url.params["status"] == "eq.ready"
    assert recordings.url.params["live_account_id"] == f"eq.{ACCOUNT_ID}"
    assert recordings.url.params["order"] == "started_at.desc"


def test_related_failure_does_not_blank_siblings(rest, backend):
    backend.rest("GET", "live_accounts", lambda req: rows_response([account_row()]))
    backend.rest("HEAD", "follows", lambda req: count_response(3))
    backend.rest("GET", "recordings", lambda req: httpx.Response(500, json={"message": "recordings offline"}))
    screen = LiveAccountDetailScreen(rest, ACCOUNT_ID)

    asyncio.run(screen.load())

    assert screen.entity.id == ACCOUNT_ID
    assert screen.follower_count == 3
    assert screen.recordings == []
    assert screen.error == "recordings offline"


def test_bad_recording_status_filter_is_rejected(rest, backend):
    screen = LiveAccountDetailScreen(rest, ACCOUNT_ID)

    asyncio.run(screen.mount(status="melted"))

    assert backend.requests == []
    assert screen.error == "Unknown recording status: melted"


def test_recording_pages_stay_in_range(rest, backend):
    backend.rest("GET", "live_accounts", lambda req: rows_response([account_row()]))
    backend.rest("HEAD", "follows", lambda req: count_response(0))
    backend.rest("GET", "recordings", lambda req: rows_response([recording_row()], total=1))
    screen = LiveAccountDetailScreen(rest, ACCOUNT_ID)
    asyncio.run(screen.load())
    before = len(backend.requests)

    assert asyncio.run(screen.goto(1)) is False
    assert len(backend.requests) == before


def test_user_detail_loads_each_relation(rest, backend):
    backend.rpc("admin_list_users", lambda req: httpx.Response(200, json=[user_row(MEMBER_ID)]))
    backend.rest(
        "GET",
        "subscriptions",
        lambda req: rows_response(
            [
                {
                    "id": "s1",
                    "user_id": MEMBER_ID,
                    "status": "active",
                    "plan": {"id": "p1", "name": "Pro", "features": {"max_accounts": 5}},
                }
            ]
        ),
    )
    backend.rest(
        "GET",
        "follows",
        lambda req: rows_response(
            [{"user_id": MEMBER_ID, "live_account_id": ACCOUNT_ID, "status": "active", "live_accounts": account_row()}]
        ),
    )
    backend.rest(
        "GET",
        "recordings",
        lambda req: rows_response([recording_row(live_accounts={"account_id": "streamer_one"})]),
    )
    screen = UserDetailScreen(rest, MEMBER_ID)

    asyncio.run(screen.load())
    snapshot = screen.snapshot()

    assert snapshot["entity"]["id"] == MEMBER_ID
    assert snapshot["subscription"]["plan"]["features"] == {"max_accounts": 5}
    assert snapshot["follows"][0]["live_account"]["account_id"] == "streamer_one"
    assert snapshot["recordings"][0]["live_account"]["account_id"] == "streamer_one"

    (recordings,) = backend.calls("GET", f"{REST}/recordings")
    assert recordings.url.params["live_account_id"] == f"in.({ACCOUNT_ID})"
    assert recordings.url.params["limit"] == "20"


def test_user_without_follows_skips_recordings(rest, backend):
    backend.rpc("admin_list_users", lambda req: httpx.Response(200, json=[user_row(MEMBER_ID)]))
    backend.rest("GET", "subscriptions", lambda req: httpx.Response(500, json={"message": "subscriptions down"}))
    backend.rest("GET", "follows", lambda req: rows_response([]))
    screen = UserDetailScreen(rest, MEMBER_ID)

    asyncio.run(screen.load())

    assert screen.entity.id == MEMBER_ID
    assert screen.subscription is None
    assert screen.error == "subscriptions down"
    assert backend.calls("GET", f"{REST}/recordings") == []


def test_unknown_user_is_not_found(rest, backend):
    backend.rpc("admin_list_users", lambda req: httpx.Response(200, json=[]))
    screen = UserDetailScreen(rest, MEMBER_ID)

    asyncio.run(screen.load())

    assert screen.not_found
    assert screen.snapshot()["entity"] is None


def test_invalid_user_id(rest, backend):
    screen = UserDetailScreen(rest, "42")

    asyncio.run(screen.load())

    assert screen.error == "Invalid user ID."
    assert backend.requests == []


def test_plan_features_are_kept_whatever_their_shape(rest, backend):
    backend.rpc("admin_list_users", lambda req: httpx.Response(200, json=[user_row(MEMBER_ID)]))
    backend.rest(
        "GET",
        "subscriptions",
        lambda req: rows_response(
            [
                {
                    "id": "s1",
                    "user_id": MEMBER_ID,
                    "status": "active",
                    "plan": {"id": "p1", "name": "Pro", "features": ["hd", "multi_account"]},
                }
            ]
        ),
    )
    backend.rest("GET", "follows", lambda req: rows_response([]))
    screen = UserDetailScreen(rest, MEMBER_ID)

    asyncio.run(screen.load())

    assert screen.error is None
    assert not screen.is_loading
    assert screen.snapshot()["subscription"]["plan"]["features"] == ["hd", "multi_account"]


def test_malformed_related_rows_become_a_screen_error(rest, backend):
    backend.rpc("admin_list_users", lambda req: httpx.Response(200, json=[user_row(MEMBER_ID)]))
    backend.rest(
        "GET",
        "subscriptions",
        lambda req: rows_response([{"id": "s1", "user_id": MEMBER_ID, "status": "active", "plan": None}]),
    )
    backend.rest("GET", "follows", lambda req: rows_response([{"live_account_id": ACCOUNT_ID}]))
    screen = UserDetailScreen(rest, MEMBER_ID)

    asyncio.run(screen.load())

    assert screen.entity.id == MEMBER_ID
    assert screen.subscription.status == "active"
    assert screen.follows == []
    assert screen.error == "Unexpected FollowRow data from backend: 1 invalid field(s)"
    assert not screen.is_loading
