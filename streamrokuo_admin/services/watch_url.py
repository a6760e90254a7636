# streamrokuo_admin/services/watch_url.py
"""
Bespoke recording service: short-lived, signed playback URLs.

GET {BACKEND_BASE_URL}/api/v1/admin/recordings/{id}/watch-url
    Authorization: Bearer <access token>
 -> {recording_id, url, expires_at}

Non-2xx bodies (plain text or empty) become the error message verbatim.
Grants are never persisted.
"""

import logging

import httpx

from streamrokuo_admin.errors import WatchUrlError
from streamrokuo_admin.schemas import WatchUrlGrant

log = logging.getLogger("streamrokuo_admin.watch_url")

GENERIC_ERROR = "Failed to load watch URL"


class WatchUrlClient:
    def __init__(self, http: httpx.AsyncClient, base_url: str):
        self._http = http
        self._base_url = base_url.rstrip("/")

    def endpoint(self, recording_id: str) -> str:
        return f"{self._base_url}/api/v1/admin/recordings/{recording_id}/watch-url"

    async def fetch(self, recording_id: str, access_token: str) -> WatchUrlGrant:
        try:
            resp = await self._http.get(
                self.endpoint(recording_id),
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.RequestError as exc:
            log.error("Watch URL request error recording=%s: %s", recording_id, exc)
            raise WatchUrlError(GENERIC_ERROR) from exc

        if not resp.is_success:
            log.warning("Watch URL non-2xx recording=%s status=%s", recording_id, resp.status_code)
            raise WatchUrlError(resp.text or GENERIC_ERROR)

        try:
            return WatchUrlGrant.model_validate(resp.json())
        except ValueError as exc:
            log.error("Invalid watch URL response recording=%s", recording_id)
            raise WatchUrlError(GENERIC_ERROR) from exc
