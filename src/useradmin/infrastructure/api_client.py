"""Thin async client for the user/store administration REST API.

Every request carries the bearer credential.  HTTP 401 (or a missing
credential) raises ``SessionExpiredError``; any other failure raises
``TransportError`` with the server's ``message`` when one is returned.
All HTTP calls use httpx.AsyncClient so they do not block the event loop.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from useradmin.config import DEFAULT_API_BASE_URL, DEFAULT_API_TIMEOUT_SECONDS, STORE_FETCH_LIMIT
from useradmin.domain.models import FilterCriteria, PageInfo, Store, User, UserStats
from useradmin.errors import SessionExpiredError, TransportError

LOGGER = logging.getLogger(__name__)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {resp.status_code}: {resp.reason_phrase or 'request failed'}"


def _data(body: Any) -> Any:
    """Unwrap the ``{success, data}`` envelope, tolerating bare payloads."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class AdminApiClient:
    """Authenticated access to ``/users`` and ``/stores``.

    Typical usage::

        async with AdminApiClient(base_url, token) as client:
            users, page = await client.list_users(page=1, limit=25)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        token: Optional[str] = None,
        *,
        timeout: float = DEFAULT_API_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._token = token
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "AdminApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def base_url(self) -> str:
        return str(self._http.base_url)

    # -- users -------------------------------------------------------------

    async def list_users(
        self,
        page: int = 1,
        limit: int = 25,
        criteria: Optional[FilterCriteria] = None,
    ) -> Tuple[List[User], PageInfo]:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if criteria is not None:
            params.update(criteria.to_query())
        body = await self._json("GET", "/users", params=params)
        raw = _data(body)
        users = [User.from_api(item) for item in raw if item] if isinstance(raw, list) else []
        if not isinstance(raw, list):
            LOGGER.warning("Unexpected users response format: %r", type(raw).__name__)
        pagination = body.get("pagination") if isinstance(body, dict) else None
        return users, PageInfo.from_api(pagination, fallback_count=len(users))

    async def get_user_stats(self) -> UserStats:
        body = await self._json("GET", "/users/stats")
        return UserStats.from_api(_data(body) or {})

    async def get_user(self, user_id: str) -> User:
        body = await self._json("GET", f"/users/{user_id}")
        raw = _data(body)
        if isinstance(raw, dict) and "user" in raw and "_id" not in raw:
            raw = raw["user"]
        if not isinstance(raw, dict) or not raw.get("_id", raw.get("id")):
            raise TransportError("Invalid user data received")
        return User.from_api(raw)

    async def create_user(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._json("POST", "/users", json=payload)

    async def update_user(self, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._json("PUT", f"/users/{user_id}", json=payload)

    async def set_user_active(self, user_id: str, active: bool) -> Dict[str, Any]:
        return await self.update_user(user_id, {"isActive": active})

    async def delete_user(self, user_id: str) -> Dict[str, Any]:
        return await self._json("DELETE", f"/users/{user_id}")

    async def bulk_delete_users(self, user_ids: Sequence[str]) -> Dict[str, Any]:
        return await self._json("DELETE", "/users/bulk", json={"ids": list(user_ids)})

    async def reset_password(self, user_id: str, new_password: str) -> Dict[str, Any]:
        return await self._json(
            "POST", f"/users/{user_id}/reset-password", json={"newPassword": new_password}
        )

    async def import_users(self, filename: str, content: bytes) -> Dict[str, Any]:
        files = {"csvFile": (filename, content)}
        return await self._json("POST", "/users/import/csv", files=files)

    async def export_users(self) -> bytes:
        resp = await self._request("GET", "/users/export/csv")
        return resp.content

    # -- stores ------------------------------------------------------------

    async def list_stores(self, limit: int = STORE_FETCH_LIMIT) -> List[Store]:
        body = await self._json("GET", "/stores", params={"limit": limit})
        raw = _data(body)
        if not isinstance(raw, list):
            LOGGER.warning("Unexpected stores response format: %r", type(raw).__name__)
            return []
        return [Store.from_api(item) for item in raw if item]

    # -- transport ---------------------------------------------------------

    async def _json(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        resp = await self._request(method, path, **kwargs)
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(f"Invalid JSON from {path}", status_code=resp.status_code) from exc

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        files: Any = None,
    ) -> httpx.Response:
        if not self._token:
            raise SessionExpiredError("No access token", status_code=401)
        headers = {"Authorization": f"Bearer {self._token}"}
        try:
            resp = await self._http.request(
                method, path, params=params, json=json, files=files, headers=headers
            )
        except httpx.HTTPError as exc:
            LOGGER.error("%s %s failed: %s", method, path, exc)
            raise TransportError(str(exc) or exc.__class__.__name__) from exc
        if resp.status_code == 401:
            raise SessionExpiredError("Session expired", status_code=401)
        if resp.status_code >= 400:
            raise TransportError(_error_message(resp), status_code=resp.status_code)
        return resp
