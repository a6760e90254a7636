# streamrokuo_admin/screens/base.py
"""
Screen view-models.

ListScreen   - filter set + page index + total count, one query per (filters, page)
DetailScreen - validated identifier, primary entity, independently loaded relations

Each load takes a new generation number. Results whose generation is no longer
current (or that arrive after close()) are dropped, so the last request wins
regardless of response arrival order.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from streamrokuo_admin.backend import PostgrestClient
from streamrokuo_admin.errors import BackendError, InputValidationError
from streamrokuo_admin.format_utils import is_uuid
from streamrokuo_admin.pagination import PAGE_SIZE, can_goto, has_next, has_prev, page_range, total_pages

log = logging.getLogger("streamrokuo_admin.screens")


class RowIndex:
    """Ordered id -> row map; rows are pydantic models with an ``id``."""

    def __init__(self, rows: Iterable[Any] = ()):
        self._rows: Dict[str, Any] = {row.id: row for row in rows}

    def __iter__(self) -> Iterator[Any]:
        return iter(self._rows.values())

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._rows

    def get(self, row_id: str) -> Optional[Any]:
        return self._rows.get(row_id)

    def ids(self) -> List[str]:
        return list(self._rows)

    def apply_patch(self, row_id: str, patch: Dict[str, Any]) -> Optional[Any]:
        """Merge only the given fields, exactly as they came back."""
        row = self._rows.get(row_id)
        if row is None:
            return None
        updated = row.model_copy(update=dict(patch))
        self._rows[row_id] = updated
        return updated


class _Generations:
    def __init__(self) -> None:
        self._generation = 0
        self.closed = False

    def next(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return not self.closed and generation == self._generation


class ListScreen:
    name = "list"
    page_size = PAGE_SIZE
    default_filters: Dict[str, Any] = {}

    def __init__(self, client: PostgrestClient):
        self.client = client
        self.filters: Dict[str, Any] = self.clean_filters(dict(self.default_filters))
        self.page = 0
        self.index = RowIndex()
        self.total = 0
        self.error: Optional[str] = None
        self.is_loading = True
        self._gen = _Generations()
        self.apply_related(self.empty_related())

    # ---- hooks ----
    def clean_filters(self, filters: Dict[str, Any]) -> Dict[str, Any]:
        return filters

    def validate(self, filters: Dict[str, Any]) -> None:
        pass

    async def fetch(self, filters: Dict[str, Any], start: int, end: int) -> Tuple[List[Any], int]:
        raise NotImplementedError

    def empty_related(self) -> Any:
        return None

    async def fetch_related(self, rows: List[Any]) -> Any:
        return self.empty_related()

    def apply_related(self, related: Any) -> None:
        pass

    def on_load_start(self) -> None:
        pass

    def on_rows_committed(self) -> None:
        pass

    def present(self, row: Any) -> Dict[str, Any]:
        return row.model_dump()

    def extra_snapshot(self) -> Dict[str, Any]:
        return {}

    # ---- state ----
    @property
    def rows(self) -> List[Any]:
        return list(self.index)

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.page_size)

    @property
    def has_prev(self) -> bool:
        return has_prev(self.page)

    @property
    def has_next(self) -> bool:
        return has_next(self.page, self.total, self.page_size)

    @property
    def closed(self) -> bool:
        return self._gen.closed

    def close(self) -> None:
        self._gen.closed = True

    # ---- actions ----
    async def load(self) -> None:
        generation = self._gen.next()
        filters, page = dict(self.filters), self.page
        self.is_loading = True
        self.error = None
        self.on_load_start()

        try:
            self.validate(filters)
            start, end = page_range(page, self.page_size)
            rows, total = await self.fetch(filters, start, end)
        except (InputValidationError, BackendError) as exc:
            if self._gen.is_current(generation):
                self.index = RowIndex()
                self.total = 0
                self.apply_related(self.empty_related())
                self.error = exc.message
                self.is_loading = False
            return

        if not self._gen.is_current(generation):
            log.debug("%s: dropping stale page=%s generation=%s", self.name, page, generation)
            return

        self.index = RowIndex(rows)
        self.total = total
        self.on_rows_committed()

        related = self.empty_related()
        if rows:
            try:
                related = await self.fetch_related(rows)
            except BackendError as exc:
                if self._gen.is_current(generation):
                    self.error = exc.message

        if self._gen.is_current(generation):
            self.apply_related(related)
            self.is_loading = False

    async def mount(self, page: int = 0, **filters: Any) -> None:
        """First load with filters/page taken straight from a request."""
        merged = dict(self.default_filters)
        merged.update({k: v for k, v in filters.items() if k in self.default_filters})
        self.filters = self.clean_filters(merged)
        self.page = max(page, 0)
        await self.load()

    async def set_filters(self, **changes: Any) -> None:
        merged = dict(self.filters)
        merged.update({k: v for k, v in changes.items() if k in self.default_filters})
        self.filters = self.clean_filters(merged)
        self.page = 0
        await self.load()

    async def clear_filters(self) -> None:
        self.filters = self.clean_filters(dict(self.default_filters))
        self.page = 0
        await self.load()

    async def goto(self, page: int) -> bool:
        """Out-of-range pages are a no-op and issue no query."""
        if not can_goto(page, self.total, self.page_size):
            return False
        self.page = page
        await self.load()
        return True

    async def next_page(self) -> bool:
        return await self.goto(self.page + 1)

    async def prev_page(self) -> bool:
        return await self.goto(self.page - 1)

    def snapshot(self) -> Dict[str, Any]:
        data = {
            "screen": self.name,
            "filters": dict(self.filters),
            "page": self.page,
            "page_size": self.page_size,
            "total": self.total,
            "total_pages": self.total_pages,
            "has_prev": self.has_prev,
            "has_next": self.has_next,
            "rows": [self.present(row) for row in self.index],
            "error": self.error,
            "is_loading": self.is_loading,
        }
        data.update(self.extra_snapshot())
        return data


class DetailScreen:
    name = "detail"
    invalid_id_message = "Invalid ID."

    def __init__(self, client: PostgrestClient, entity_id: str):
        self.client = client
        self.entity_id = (entity_id or "").strip()
        self.entity: Optional[Any] = None
        self.not_found = False
        self.error: Optional[str] = None
        self.is_loading = True
        self._gen = _Generations()

    async def fetch_entity(self, entity_id: str) -> Optional[Any]:
        raise NotImplementedError

    async def load_related(self, generation: int) -> None:
        pass

    def close(self) -> None:
        self._gen.closed = True

    @property
    def closed(self) -> bool:
        return self._gen.closed

    def is_current(self, generation: int) -> bool:
        return self._gen.is_current(generation)

    async def load(self) -> None:
        generation = self._gen.next()
        if not is_uuid(self.entity_id):
            # fail fast: no round trip for a malformed identifier
            self.error = self.invalid_id_message
            self.is_loading = False
            return

        self.is_loading = True
        self.error = None
        try:
            entity = await self.fetch_entity(self.entity_id)
        except BackendError as exc:
            if self.is_current(generation):
                self.error = exc.message
                self.is_loading = False
            return

        if not self.is_current(generation):
            return

        self.entity = entity
        self.not_found = entity is None
        if entity is not None:
            await self.load_related(generation)

        if self.is_current(generation):
            self.is_loading = False

    async def related(
        self,
        generation: int,
        fetch: Awaitable[Any],
        apply: Callable[[Any], None],
    ) -> bool:
        """Load one related collection; its failure never blanks siblings."""
        try:
            value = await fetch
        except BackendError as exc:
            if self.is_current(generation):
                self.error = exc.message
            return False
        if not self.is_current(generation):
            return False
        apply(value)
        return True

    def extra_snapshot(self) -> Dict[str, Any]:
        return {}

    def snapshot(self) -> Dict[str, Any]:
        data = {
            "screen": self.name,
            "id": self.entity_id,
            "entity": self.entity.model_dump() if self.entity is not None else None,
            "not_found": self.not_found,
            "error": self.error,
            "is_loading": self.is_loading,
        }
        data.update(self.extra_snapshot())
        return data
