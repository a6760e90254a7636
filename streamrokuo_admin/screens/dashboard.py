# streamrokuo_admin/screens/dashboard.py
from typing import Any, Dict, Optional

from streamrokuo_admin.backend import PostgrestClient
from streamrokuo_admin.errors import BackendError
from streamrokuo_admin.schemas import AdminStats
from streamrokuo_admin.services.stats_service import load_stats


class DashboardScreen:
    name = "dashboard"

    def __init__(self, client: PostgrestClient):
        self.client = client
        self.stats: Optional[AdminStats] = None
        self.error: Optional[str] = None
        self.is_loading = True

    async def load(self) -> None:
        self.is_loading = True
        self.error = None
        try:
            self.stats = await load_stats(self.client)
        except BackendError as exc:
            self.error = exc.message or "Failed to load stats"
        finally:
            self.is_loading = False

    def snapshot(self) -> Dict[str, Any]:
        return {
            "screen": self.name,
            "stats": self.stats.model_dump() if self.stats else None,
            "error": self.error,
            "is_loading": self.is_loading,
        }
