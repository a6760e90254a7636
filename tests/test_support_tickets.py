import asyncio
import json

import httpx

from conftest import MEMBER_ID, REST, TICKET_ID, rows_response, ticket_row
from streamrokuo_admin.screens import SupportTicketsScreen
from streamrokuo_admin.services.support_service import search_expression

OTHER_TICKET = "77777777-7777-4777-8777-777777777777"


def _serve_tickets(backend, rows):
    backend.rest("GET", "support_tickets", lambda req: rows_response(rows, total=len(rows)))


def _loaded_screen(rest, backend, rows=None):
    _serve_tickets(backend, rows if rows is not None else [ticket_row(), ticket_row(OTHER_TICKET, status="resolved")])
    screen = SupportTicketsScreen(rest)
    asyncio.run(screen.load())
    return screen


def test_search_expression_for_identifiers():
    assert search_expression(f" {MEMBER_ID} ") == f"user_id.eq.{MEMBER_ID},id.eq.{MEMBER_ID}"


def test_search_expression_escapes_and_quotes_free_text():
    assert search_expression("upload") == "subject.ilike.%upload%,email.ilike.%upload%"
    expr = search_expression("100%_done, really")
    assert expr == (
        'subject.ilike."%100\\\\%\\\\_done, really%",'
        'email.ilike."%100\\\\%\\\\_done, really%"'
    )


def test_filters_and_search_reach_one_query(rest, backend):
    _serve_tickets(backend, [ticket_row()])
    screen = SupportTicketsScreen(rest)

    asyncio.run(screen.set_filters(status="open", category="bug", search="upload"))

    (call,) = backend.requests
    params = call.url.params
    assert params["status"] == "eq.open"
    assert params["category"] == "eq.bug"
    assert params["or"] == "(subject.ilike.%upload%,email.ilike.%upload%)"
    assert params["order"] == "created_at.desc"
    assert params["offset"] == "0" and params["limit"] == "20"
    assert call.headers["prefer"] == "count=exact"


def test_unknown_category_is_rejected_locally(rest, backend):
    screen = SupportTicketsScreen(rest)

    asyncio.run(screen.set_filters(category="complaint"))

    assert backend.requests == []
    assert screen.error == "Unknown ticket category: complaint"


def test_same_status_is_a_noop(rest, backend):
    screen = _loaded_screen(rest, backend)
    before = screen.index.get(TICKET_ID)
    calls = len(backend.requests)

    assert asyncio.run(screen.update_status(TICKET_ID, "open")) is False
    assert len(backend.requests) == calls
    assert screen.index.get(TICKET_ID) is before


def test_status_change_patches_only_status_and_updated_at(rest, backend):
    backend.rest(
        "PATCH",
        "support_tickets",
        lambda req: httpx.Response(200, json={"status": "in_progress", "updated_at": "2024-05-02T12:00:00Z"}),
    )
    screen = _loaded_screen(rest, backend)
    before = screen.index.get(TICKET_ID)
    neighbour = screen.index.get(OTHER_TICKET)

    assert asyncio.run(screen.update_status(TICKET_ID, "in_progress")) is True

    after = screen.index.get(TICKET_ID)
    assert after.status == "in_progress"
    assert after.updated_at == "2024-05-02T12:00:00Z"
    assert after.model_dump(exclude={"status", "updated_at"}) == before.model_dump(exclude={"status", "updated_at"})
    assert screen.index.get(OTHER_TICKET) is neighbour
    assert screen.index.ids() == [TICKET_ID, OTHER_TICKET]
    assert screen.updating == set()

    (patch,) = backend.calls("PATCH", f"{REST}/support_tickets")
    assert json.loads(patch.content) == {"status": "in_progress"}
    assert patch.url.params["id"] == f"eq.{TICKET_ID}"
    assert patch.url.params["select"] == "status,updated_at"


def test_null_updated_at_echo_is_merged(rest, backend):
    backend.rest(
        "PATCH",
        "support_tickets",
        lambda req: httpx.Response(200, json={"status": "resolved", "updated_at": None}),
    )
    screen = _loaded_screen(rest, backend)

    assert asyncio.run(screen.update_status(TICKET_ID, "resolved")) is True

    after = screen.index.get(TICKET_ID)
    assert after.status == "resolved"
    assert after.updated_at is None


def test_failed_update_keeps_row_and_records_error(rest, backend):
    backend.rest(
        "PATCH",
        "support_tickets",
        lambda req: httpx.Response(403, json={"message": "new row violates row-level security policy"}),
    )
    screen = _loaded_screen(rest, backend)
    before = screen.index.get(TICKET_ID)

    assert asyncio.run(screen.update_status(TICKET_ID, "closed")) is False

    assert screen.index.get(TICKET_ID) is before
    assert screen.update_error == "new row violates row-level security policy"
    assert screen.updating == set()
    assert len(screen.rows) == 2


def test_update_in_flight_blocks_a_second_update(rest, backend):
    async def scenario():
        started = asyncio.Event()
        release = asyncio.Event()

        async def patch(request):
            started.set()
            await release.wait()
            return httpx.Response(200, json={"status": "resolved", "updated_at": "2024-05-03T00:00:00Z"})

        backend.rest("GET", "support_tickets", lambda req: rows_response([ticket_row()], total=1))
        backend.rest("PATCH", "support_tickets", patch)
        screen = SupportTicketsScreen(rest)
        await screen.load()

        first = asyncio.create_task(screen.update_status(TICKET_ID, "resolved"))
        await started.wait()
        assert screen.updating == {TICKET_ID}
        second = await screen.update_status(TICKET_ID, "closed")
        release.set()
        return await first, second, screen

    first, second, screen = asyncio.run(scenario())

    assert first is True
    assert second is False
    assert len(backend.calls("PATCH", f"{REST}/support_tickets")) == 1
    assert screen.index.get(TICKET_ID).status == "resolved"


def test_invalid_target_status_is_rejected(rest, backend):
    screen = _loaded_screen(rest, backend)
    calls = len(backend.requests)

    assert asyncio.run(screen.update_status(TICKET_ID, "archived")) is False
    assert screen.update_error == "Unknown ticket status: archived"
    assert len(backend.requests) == calls


def test_selection_and_context_preview(rest, backend):
    screen = _loaded_screen(rest, backend)

    screen.select(TICKET_ID)

    assert screen.selected_ticket.id == TICKET_ID
    assert json.loads(screen.context_preview) == {"app_version": "2.3.1", "device": "roku"}
    assert screen.snapshot()["selected"]["id"] == TICKET_ID

    screen.select("missing")
    assert screen.selected_ticket is None


def test_selection_dropped_when_ticket_leaves_page(rest, backend):
    screen = _loaded_screen(rest, backend)
    screen.select(OTHER_TICKET)

    _serve_tickets(backend, [ticket_row()])
    asyncio.run(screen.load())

    assert screen.selected_id is None
    assert screen.context_preview is None
