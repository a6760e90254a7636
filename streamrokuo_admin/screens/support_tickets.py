# streamrokuo_admin/screens/support_tickets.py
import json
import logging
from typing import Any, Dict, Optional, Set

from streamrokuo_admin.errors import BackendError, InputValidationError
from streamrokuo_admin.format_utils import format_datetime, status_label
from streamrokuo_admin.schemas import ALL, TICKET_CATEGORIES, TICKET_STATUSES, SupportTicketRow
from streamrokuo_admin.screens.base import ListScreen
from streamrokuo_admin.services import support_service

log = logging.getLogger("streamrokuo_admin.screens.support_tickets")


def check_ticket_status(status: str) -> str:
    if status not in TICKET_STATUSES:
        raise InputValidationError(f"Unknown ticket status: {status}")
    return status


class SupportTicketsScreen(ListScreen):
    """
    Support tickets: filter by status/category/free text, pick a ticket for
    the detail pane, and move tickets between statuses in place.
    """

    name = "support-tickets"
    default_filters = {"status": ALL, "category": ALL, "search": ""}

    def __init__(self, client):
        self.updating: Set[str] = set()
        self.update_error: Optional[str] = None
        self.selected_id: Optional[str] = None
        super().__init__(client)

    def clean_filters(self, filters):
        return {
            "status": str(filters.get("status") or ALL).strip().lower(),
            "category": str(filters.get("category") or ALL).strip().lower(),
            "search": str(filters.get("search") or "").strip(),
        }

    def validate(self, filters):
        if filters["status"] != ALL and filters["status"] not in TICKET_STATUSES:
            raise InputValidationError(f"Unknown ticket status: {filters['status']}")
        if filters["category"] != ALL and filters["category"] not in TICKET_CATEGORIES:
            raise InputValidationError(f"Unknown ticket category: {filters['category']}")

    async def fetch(self, filters, start, end):
        return await support_service.list_tickets(
            self.client,
            start=start,
            end=end,
            status=filters["status"],
            category=filters["category"],
            search=filters["search"],
        )

    def on_load_start(self):
        self.update_error = None

    def on_rows_committed(self):
        if self.selected_id not in self.index:
            self.selected_id = None

    def present(self, row):
        data = row.model_dump()
        data["created"] = format_datetime(row.created_at)
        data["status_label"] = status_label(row.status)
        return data

    # ---- selection ----
    def select(self, ticket_id: Optional[str]) -> Optional[SupportTicketRow]:
        self.selected_id = ticket_id if ticket_id in self.index else None
        return self.selected_ticket

    @property
    def selected_ticket(self) -> Optional[SupportTicketRow]:
        return self.index.get(self.selected_id) if self.selected_id else None

    @property
    def context_preview(self) -> Optional[str]:
        ticket = self.selected_ticket
        if ticket is None or not ticket.context:
            return None
        try:
            return json.dumps(ticket.context, indent=2)
        except (TypeError, ValueError):
            return str(ticket.context)

    # ---- mutation ----
    async def update_status(self, ticket_id: str, next_status: str) -> bool:
        """
        Returns True when the backend accepted a change. Unchanged status,
        an unknown ticket or an update already in flight for the same ticket
        are no-ops without a network call.
        """
        ticket = self.index.get(ticket_id)
        if ticket is None or ticket.status == next_status or ticket_id in self.updating:
            return False
        try:
            check_ticket_status(next_status)
        except InputValidationError as exc:
            self.update_error = exc.message
            return False

        self.updating.add(ticket_id)
        self.update_error = None
        try:
            patch = await support_service.update_ticket_status(self.client, ticket_id, next_status)
        except BackendError as exc:
            log.warning("Ticket %s status update failed: %s", ticket_id, exc.message)
            self.update_error = exc.message
            return False
        finally:
            self.updating.discard(ticket_id)

        if not self.closed:
            self.index.apply_patch(ticket_id, patch)
        return True

    def extra_snapshot(self) -> Dict[str, Any]:
        selected = self.selected_ticket
        return {
            "updating": sorted(self.updating),
            "update_error": self.update_error,
            "selected": selected.model_dump() if selected else None,
            "context_preview": self.context_preview,
        }
