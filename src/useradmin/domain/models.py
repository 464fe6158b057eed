"""Entities held by the admin screen and their decoding from backend payloads.

The backend speaks in its own field names (``_id``, ``userid``, ``loginid``,
``leader``, ``isActive`` ...).  Everything above the API client works with
the attribute names defined here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Mapping, Optional

from dateutil import parser as date_parser

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"
_STATUSES = ("", STATUS_ACTIVE, STATUS_INACTIVE)


def _entity_id(payload: Any) -> Optional[str]:
    """Return the id of a raw reference: either a bare id or a populated object."""
    if payload is None:
        return None
    if isinstance(payload, Mapping):
        raw = payload.get("_id", payload.get("id"))
        return str(raw) if raw is not None else None
    return str(payload)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    try:
        return date_parser.isoparse(str(value))
    except (ValueError, OverflowError):
        return None


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class User:
    """A user account as cached for one view session.

    ``username`` is the person's display name; it is also the value other
    users reference through ``leader_name``.
    """

    id: str
    user_code: str = ""
    username: str = ""
    login_id: str = ""
    role: str = ""
    leader_name: Optional[str] = None
    active: bool = True
    last_login_at: Optional[datetime] = None
    assigned_store_ids: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def display_name(self) -> str:
        return self.username

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "User":
        stores = payload.get("assignedStores") or []
        store_ids = frozenset(
            sid for sid in (_entity_id(item) for item in stores) if sid
        )
        return cls(
            id=str(payload.get("_id", payload.get("id", ""))),
            user_code=payload.get("userid") or "",
            username=payload.get("username") or "",
            login_id=payload.get("loginid") or "",
            role=payload.get("role") or "",
            leader_name=_clean(payload.get("leader")),
            active=payload.get("isActive", True) is not False,
            last_login_at=_parse_timestamp(payload.get("lastLogin")),
            assigned_store_ids=store_ids,
        )


@dataclass(frozen=True)
class Store:
    id: str
    name: str = ""
    code: str = ""
    region: str = ""
    active: bool = True

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Store":
        return cls(
            id=str(payload.get("_id", payload.get("id", ""))),
            name=payload.get("store_name") or payload.get("name") or "",
            code=payload.get("store_id") or payload.get("code") or "",
            region=payload.get("region") or "",
            active=payload.get("isActive", True) is not False,
        )


@dataclass(frozen=True)
class FilterCriteria:
    """Filter selection for a list view; empty strings mean "no constraint"."""

    role: str = ""
    status: str = ""
    leader_name: str = ""
    search_text: str = ""

    def __post_init__(self) -> None:
        if self.status not in _STATUSES:
            raise ValueError(f"Unknown status filter: {self.status!r}")

    @property
    def is_empty(self) -> bool:
        return not (self.role or self.status or self.leader_name or self.search_text)

    def with_search(self, text: str) -> "FilterCriteria":
        return FilterCriteria(
            role=self.role,
            status=self.status,
            leader_name=self.leader_name,
            search_text=text,
        )

    def to_query(self) -> Dict[str, str]:
        """Backend query parameters for the non-empty criteria."""
        params: Dict[str, str] = {}
        if self.role:
            params["role"] = self.role
        if self.status:
            params["isActive"] = "true" if self.status == STATUS_ACTIVE else "false"
        if self.leader_name:
            params["leader"] = self.leader_name
        if self.search_text:
            params["search"] = self.search_text
        return params


@dataclass(frozen=True)
class LeaderProfile:
    """A leader candidate derived from the user collection.

    Synthesised profiles (a leader name with no matching user record) carry
    an empty ``role``.
    """

    username: str
    role: str = ""

    @property
    def synthesized(self) -> bool:
        return not self.role


@dataclass(frozen=True)
class UserStats:
    total: int = 0
    active: int = 0
    inactive: int = 0
    roles: Dict[str, int] = field(default_factory=dict)

    @property
    def role_count(self) -> int:
        return len(self.roles)

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "UserStats":
        overview = data.get("overview") or {}
        roles = {
            str(entry.get("_id")): int(entry.get("count") or 0)
            for entry in data.get("roleDistribution") or []
            if entry.get("_id") is not None
        }
        return cls(
            total=int(overview.get("totalUsers") or 0),
            active=int(overview.get("activeUsers") or 0),
            inactive=int(overview.get("inactiveUsers") or 0),
            roles=roles,
        )


@dataclass(frozen=True)
class PageInfo:
    page: int = 1
    limit: int = 0
    total: int = 0
    total_pages: int = 0

    @classmethod
    def from_api(cls, data: Optional[Mapping[str, Any]], fallback_count: int = 0) -> "PageInfo":
        """Accept both ``{page,limit,total}`` and ``{currentPage,totalCount,limit}``."""
        if not data:
            return cls(page=1, limit=0, total=fallback_count,
                       total_pages=1 if fallback_count else 0)
        page = int(data.get("page") or data.get("currentPage") or 1)
        limit = int(data.get("limit") or 0)
        total = data.get("total")
        if total is None:
            total = data.get("totalCount", fallback_count)
        total = int(total or 0)
        total_pages = data.get("totalPages")
        if total_pages is None:
            total_pages = (total + limit - 1) // limit if limit > 0 else 0
        return cls(page=page, limit=limit, total=total, total_pages=int(total_pages))
