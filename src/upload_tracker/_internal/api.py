"""HTTP wrapper for the upload server endpoints."""

from __future__ import annotations

from typing import Any

import httpx

from upload_tracker.exceptions import RequestFailedError

DEFAULT_TIMEOUT = 10.0


class UploadServerAPI:
    """Thin async client for /files, /upload and /delete.

    Every failure (transport error, non-2xx status, non-JSON body) is raised
    as RequestFailedError. Callers decide what a failure means.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this wrapper created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, endpoint: str, params: dict[str, str] | None = None) -> Any:
        """Issue a GET and decode the JSON body."""
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RequestFailedError(
                f"{endpoint} returned {e.response.status_code}: {_error_detail(e.response)}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise RequestFailedError(f"{endpoint} request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise RequestFailedError(
                f"{endpoint} returned a non-JSON body", status_code=response.status_code
            ) from e

    async def list_files(self) -> Any:
        """GET /files."""
        return await self._get_json("/files")

    async def start_upload(self, path: str) -> Any:
        """GET /upload?path=<path>."""
        return await self._get_json("/upload", {"path": path})

    async def delete_upload(self, upload_id: str) -> Any:
        """GET /delete?upload_id=<upload_id>."""
        return await self._get_json("/delete", {"upload_id": upload_id})


def _error_detail(response: httpx.Response) -> str:
    """Extract the server's {"error": ...} message, falling back to the body text."""
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return response.text
