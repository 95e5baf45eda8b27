"""HTTP client wrapper for interacting with the Docmost API."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from docmost_sync.errors import RetrievalError

from .models import Space

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0
SPACE_LIST_LIMIT = 100


class DocmostClient:
    """Thin wrapper above the Docmost REST API.

    Authentication is cookie based: :meth:`login` posts the credentials and
    the session cookie returned by the server is kept by the underlying
    :class:`httpx.Client` for all later requests.
    """

    def __init__(
        self,
        *,
        base_url: str,
        email: str,
        password: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._email = email
        self._password = password
        self._logged_in = False
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "DocmostClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Low-level helpers
    # ------------------------------------------------------------------
    def _post(self, endpoint: str, payload: dict[str, Any], *, what: str) -> httpx.Response:
        if not self._logged_in:
            self.login()
        try:
            response = self._client.post(endpoint, json=payload)
        except httpx.HTTPError as exc:
            raise RetrievalError(f"{what} request failed: {exc}") from exc
        if response.status_code != httpx.codes.OK:
            raise RetrievalError(
                f"{what} failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    def _items(self, endpoint: str, payload: dict[str, Any], *, what: str) -> list[dict]:
        response = self._post(endpoint, payload, what=what)
        try:
            body = response.json()
        except ValueError as exc:
            raise RetrievalError(f"failed to decode {what} response: {exc}") from exc
        data = body.get("data") if isinstance(body, dict) else None
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise RetrievalError(f"unexpected {what} response shape")
        return items

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def login(self) -> None:
        try:
            response = self._client.post(
                "/api/auth/login",
                json={"email": self._email, "password": self._password},
            )
        except httpx.HTTPError as exc:
            raise RetrievalError(f"login request failed: {exc}") from exc
        if response.status_code not in (httpx.codes.OK, httpx.codes.CREATED):
            raise RetrievalError(
                f"login failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        self._logged_in = True
        logger.debug("Logged in to %s as %s", self._client.base_url, self._email)

    def list_spaces(self) -> list[Space]:
        items = self._items(
            "/api/spaces/",
            {"limit": SPACE_LIST_LIMIT, "offset": 0},
            what="list spaces",
        )
        return [Space.from_api(item) for item in items]

    def list_sidebar_pages(self, space_id: str) -> list[dict]:
        """Return the raw root page records of a space."""

        return self._items("/api/pages/sidebar-pages", {"spaceId": space_id}, what="list pages")

    def list_child_pages(self, page_id: str) -> list[dict]:
        return self._items(
            "/api/pages/sidebar-pages", {"pageId": page_id}, what="list child pages"
        )

    def export_space_zip(self, space_id: str) -> bytes:
        """Export a whole space as a Markdown ZIP archive, attachments included."""

        payload = {"spaceId": space_id, "format": "markdown", "includeAttachments": True}
        return self._post("/api/spaces/export", payload, what="export space").content
