import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from useradmin.application.services.bulk import BulkResult, run_bulk
from useradmin.config import EXPORT_FILENAME_TEMPLATE, STORE_FETCH_LIMIT, USER_DIRECTORY_LIMIT
from useradmin.domain.models import FilterCriteria, PageInfo, Store, User, UserStats
from useradmin.domain.validation import (
    UserForm,
    validate_import_file,
    validate_password,
    validate_user_form,
)
from useradmin.errors import SessionExpiredError, TransportError
from useradmin.infrastructure.api_client import AdminApiClient


@dataclass
class ListRefresh:
    """Outcome of one list refresh; each half succeeds or fails on its own."""

    users: Optional[List[User]] = None
    page_info: Optional[PageInfo] = None
    stats: Optional[UserStats] = None
    users_error: Optional[Exception] = None
    stats_error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.users_error is None and self.stats_error is None


class UserAdminService:
    """
    Application Service Facade for the user administration screen.
    Validates input locally, then delegates to the API client.
    """

    def __init__(self, client: AdminApiClient):
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def refresh(
        self,
        page: int,
        limit: int,
        criteria: Optional[FilterCriteria] = None,
    ) -> ListRefresh:
        users_outcome, stats_outcome = await asyncio.gather(
            self._client.list_users(page=page, limit=limit, criteria=criteria),
            self._client.get_user_stats(),
            return_exceptions=True,
        )
        for outcome in (users_outcome, stats_outcome):
            if isinstance(outcome, SessionExpiredError):
                raise outcome
            if isinstance(outcome, BaseException) and not isinstance(outcome, TransportError):
                raise outcome

        result = ListRefresh()
        if isinstance(users_outcome, TransportError):
            self._logger.error("Failed to load users: %s", users_outcome)
            result.users_error = users_outcome
        else:
            result.users, result.page_info = users_outcome
        if isinstance(stats_outcome, TransportError):
            self._logger.error("Failed to load stats: %s", stats_outcome)
            result.stats_error = stats_outcome
        else:
            result.stats = stats_outcome
        return result

    async def load_stats(self) -> UserStats:
        return await self._client.get_user_stats()

    async def load_all_users(self, limit: int = USER_DIRECTORY_LIMIT) -> List[User]:
        """Fetch one large page of users; leader pickers work on the whole set."""
        users, _ = await self._client.list_users(page=1, limit=limit)
        return users

    async def load_user(self, user_id: str) -> User:
        return await self._client.get_user(user_id)

    async def load_stores(self, limit: int = STORE_FETCH_LIMIT) -> List[Store]:
        return await self._client.list_stores(limit=limit)

    async def save_user(
        self,
        form: UserForm,
        editing_id: Optional[str] = None,
        assigned_store_ids: Optional[Iterable[str]] = None,
    ) -> str:
        """Create or update a user; return the server's message."""
        validate_user_form(form, is_new=editing_id is None)
        payload = form.to_payload(assigned_store_ids)
        if editing_id is None:
            body = await self._client.create_user(payload)
        else:
            body = await self._client.update_user(editing_id, payload)
        return str(body.get("message") or "Saved")

    async def reset_password(self, user_id: str, new_password: str) -> str:
        validate_password(new_password)
        body = await self._client.reset_password(user_id, new_password)
        return str(body.get("message") or "Password reset")

    async def toggle_active(self, user: User) -> str:
        body = await self._client.set_user_active(user.id, not user.active)
        return str(body.get("message") or "Status updated")

    async def delete_user(self, user_id: str) -> str:
        body = await self._client.delete_user(user_id)
        return str(body.get("message") or "Deleted")

    async def bulk_set_active(self, user_ids: Iterable[str], active: bool) -> BulkResult:
        action = "activate" if active else "deactivate"

        async def _update(user_id: str):
            return await self._client.set_user_active(user_id, active)

        return await run_bulk(list(user_ids), _update, action=action)

    async def bulk_delete(self, user_ids: Iterable[str]) -> BulkResult:
        """Delete through the batch endpoint; it succeeds or fails as a whole."""
        ids = list(dict.fromkeys(user_ids))
        result = BulkResult(action="delete")
        if not ids:
            return result
        try:
            await self._client.bulk_delete_users(ids)
        except SessionExpiredError:
            raise
        except TransportError as exc:
            self._logger.error("Bulk delete failed: %s", exc)
            result.failed = {user_id: exc for user_id in ids}
            return result
        result.succeeded = ids
        return result

    async def import_users(self, filename: str, content: bytes) -> str:
        validate_import_file(filename, len(content))
        body = await self._client.import_users(filename, content)
        return str(body.get("message") or "Import completed")

    async def export_users(self, today: Optional[date] = None) -> Tuple[str, bytes]:
        content = await self._client.export_users()
        stamp = (today or date.today()).isoformat()
        return EXPORT_FILENAME_TEMPLATE.format(date=stamp), content
