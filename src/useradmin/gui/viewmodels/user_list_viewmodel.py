"""UserListViewModel: state of the paged, filterable user table.

The view model owns the loaded page of users and derives everything the
table renders from it: the filtered view, the row selection, the page
buttons and the bulk-action state.  Filtering happens locally on the loaded
page; a page or page-size change fetches a new page from the backend.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Tuple

from useradmin.application.services.bulk import BulkResult
from useradmin.application.services.user_service import UserAdminService
from useradmin.config import DEFAULT_PAGE_SIZE, SEARCH_DEBOUNCE_MS
from useradmin.domain.filtering import user_filter
from useradmin.domain.models import FilterCriteria, PageInfo, User, UserStats
from useradmin.domain.paginator import Paginator
from useradmin.domain.selection import SelectionSet
from useradmin.errors.handler import ErrorHandler
from useradmin.events.admin_events import (
    BulkOperationCompletedEvent,
    UserSavedEvent,
    UsersDeletedEvent,
    UsersLoadedEvent,
)
from useradmin.events.bus import EventBus
from useradmin.gui.viewmodels.base import BaseViewModel
from useradmin.gui.viewmodels.signal import ObservableProperty, Signal

EMPTY_SYSTEM_MESSAGE = "No users in the system yet"
EMPTY_FILTER_MESSAGE = "No users match the current filters"


class UserListViewModel(BaseViewModel):
    """Table state for the user administration screen.

    Signals
    -------
    users_updated(list[User])
        The visible (filtered) rows changed.
    stats_updated(UserStats)
        New summary counters arrived.
    selection_changed(int)
        Row selection changed; carries the selection size.
    bulk_completed(BulkResult)
        A bulk operation settled and the list was reloaded.
    """

    def __init__(
        self,
        service: UserAdminService,
        event_bus: Optional[EventBus] = None,
        error_handler: Optional[ErrorHandler] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        search_debounce_ms: int = SEARCH_DEBOUNCE_MS,
    ) -> None:
        super().__init__(event_bus, error_handler)
        self._service = service
        self._filter = user_filter()
        self._debounce_seconds = max(0, search_debounce_ms) / 1000.0
        self._search_generation = 0
        self._in_flight = 0
        self._page_dirty = False
        self.pending_reload: Optional[asyncio.Task] = None

        self.selection = SelectionSet()
        self.paginator = Paginator(page_size=page_size, on_change=self._on_page_changed)

        self.users = ObservableProperty([])
        self.visible_users = ObservableProperty([])
        self.stats = ObservableProperty(UserStats())
        self.criteria = ObservableProperty(FilterCriteria())
        self.leader_options = ObservableProperty([])
        self.loading = ObservableProperty(False)

        self.users_updated = Signal()
        self.stats_updated = Signal()
        self.selection_changed = Signal()
        self.bulk_completed = Signal()

        if event_bus is not None:
            self.subscribe_event(event_bus, UserSavedEvent, self._on_user_saved)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> bool:
        """Fetch the current page and the summary counters concurrently.

        Each half is applied on its own: a failed stats request does not
        keep a successful user page from rendering, and vice versa.  Results
        are applied as they resolve, so the latest resolved load wins.
        """
        self._in_flight += 1
        self.loading.value = True
        try:
            ok, refresh = await self.attempt(
                self._service.refresh(self.paginator.current_page(), self.paginator.page_size())
            )
            if not ok:
                return False

            if refresh.users is not None:
                self._apply_users(refresh.users, refresh.page_info)
            else:
                self.report_error(refresh.users_error, prefix="Failed to load users: ")

            if refresh.stats is not None:
                self.stats.value = refresh.stats
                self.stats_updated.emit(refresh.stats)
            else:
                self._logger.warning("Stats unavailable: %s", refresh.stats_error)
            return refresh.users_error is None
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self.loading.value = False

    def _apply_users(self, users: List[User], page_info) -> None:
        self.users.value = list(users)
        if page_info is not None:
            self.paginator.apply_server_pagination(page_info)
        names: List[str] = []
        for user in users:
            if user.leader_name and user.leader_name not in names:
                names.append(user.leader_name)
        self.leader_options.value = names

        self.selection.clear()
        self._refresh_view()
        self.publish(UsersLoadedEvent(
            user_count=len(users),
            total_count=self.paginator.total_count,
            page=self.paginator.current_page(),
        ))

    def _refresh_view(self) -> None:
        visible = self._filter.apply(self.users.value, self.criteria.value)
        self.visible_users.value = visible
        self.selection.retain(user.id for user in visible)
        self.users_updated.emit(visible)
        self.selection_changed.emit(self.selection.size())

    def _on_user_saved(self, event: UserSavedEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.debug("User %s saved outside an event loop; reload skipped", event.user_id)
            return
        self.pending_reload = loop.create_task(self.load())

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def apply_filters(self, criteria: FilterCriteria) -> None:
        self.criteria.value = criteria
        self.selection.clear()
        self._refresh_view()

    def clear_filters(self) -> None:
        self.apply_filters(FilterCriteria())

    async def search(self, text: str) -> bool:
        """Debounced search box input.

        Returns True if this keystroke was applied, False if a later one
        superseded it within the debounce window.
        """
        self._search_generation += 1
        generation = self._search_generation
        if self._debounce_seconds:
            await asyncio.sleep(self._debounce_seconds)
        if generation != self._search_generation:
            return False
        self.apply_filters(self.criteria.value.with_search(text))
        return True

    @property
    def empty_message(self) -> Optional[str]:
        if self.visible_users.value:
            return None
        if not self.criteria.value.is_empty:
            return EMPTY_FILTER_MESSAGE
        return EMPTY_SYSTEM_MESSAGE

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _visible_ids(self) -> List[str]:
        return [user.id for user in self.visible_users.value]

    def toggle_selection(self, user_id: str) -> bool:
        """Toggle one visible row; ids outside the view are ignored."""
        if user_id not in self._visible_ids():
            return False
        selected = self.selection.toggle(user_id)
        self.selection_changed.emit(self.selection.size())
        return selected

    def toggle_select_all(self) -> None:
        if self.all_visible_selected:
            self.selection.clear()
        else:
            self.selection.select_all(self._visible_ids())
        self.selection_changed.emit(self.selection.size())

    @property
    def all_visible_selected(self) -> bool:
        ids = self._visible_ids()
        return bool(ids) and all(user_id in self.selection for user_id in ids)

    @property
    def bulk_actions_enabled(self) -> bool:
        return bool(self.selection)

    @property
    def selected_ids(self) -> List[str]:
        return list(self.selection)

    # ------------------------------------------------------------------
    # Paging
    # ------------------------------------------------------------------

    def _on_page_changed(self, page: int, page_size: int) -> None:
        self._logger.debug("Page %d (size %d) requested", page, page_size)
        self._page_dirty = True
        self.selection.clear()
        self.selection_changed.emit(0)

    async def go_to_page(self, page: int) -> bool:
        previous = self._page_state()
        self._page_dirty = False
        self.paginator.go_to(page)
        return await self._reload_if_dirty(previous)

    async def set_page_size(self, page_size: int) -> bool:
        previous = self._page_state()
        self._page_dirty = False
        self.paginator.set_page_size(page_size)
        return await self._reload_if_dirty(previous)

    def _page_state(self) -> PageInfo:
        return PageInfo(
            page=self.paginator.current_page(),
            limit=self.paginator.page_size(),
            total=self.paginator.total_count,
            total_pages=self.paginator.total_pages,
        )

    async def _reload_if_dirty(self, previous: PageInfo) -> bool:
        if not self._page_dirty:
            return False
        self._page_dirty = False
        if await self.load():
            return True
        # The rows on screen still belong to the previous page.
        self.paginator.apply_server_pagination(previous)
        return False

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    async def bulk_activate(self) -> Optional[BulkResult]:
        return await self._run_bulk(lambda ids: self._service.bulk_set_active(ids, True))

    async def bulk_deactivate(self) -> Optional[BulkResult]:
        return await self._run_bulk(lambda ids: self._service.bulk_set_active(ids, False))

    async def bulk_delete(self) -> Optional[BulkResult]:
        result = await self._run_bulk(self._service.bulk_delete)
        if result is not None and result.succeeded:
            self.publish(UsersDeletedEvent(user_ids=list(result.succeeded)))
        return result

    async def _run_bulk(self, operation) -> Optional[BulkResult]:
        ids = self.selected_ids
        if not ids:
            return None
        ok, result = await self.attempt(operation(ids))
        self.selection.clear()
        self.selection_changed.emit(0)
        if not ok:
            return None

        if result.ok:
            self.notify(result.summary(), "success")
        else:
            self.notify(result.summary(), "error")
            self.error_occurred.emit(result.summary())
        self.publish(BulkOperationCompletedEvent(
            action=result.action,
            succeeded=list(result.succeeded),
            failed=list(result.failed),
        ))
        await self.load()
        self.bulk_completed.emit(result)
        return result

    # ------------------------------------------------------------------
    # Single-user operations
    # ------------------------------------------------------------------

    def find_user(self, user_id: str) -> Optional[User]:
        for user in self.users.value:
            if user.id == user_id:
                return user
        return None

    async def toggle_user_status(self, user_id: str) -> bool:
        user = self.find_user(user_id)
        if user is None:
            self._logger.warning("Cannot toggle unknown user %s", user_id)
            return False
        verb = "deactivate" if user.active else "activate"
        ok, message = await self.attempt(self._service.toggle_active(user), prefix=f"Failed to {verb} user: ")
        if not ok:
            return False
        self.notify(message, "success")
        await self.load()
        return True

    async def delete_user(self, user_id: str) -> bool:
        ok, message = await self.attempt(self._service.delete_user(user_id), prefix="Failed to delete user: ")
        if not ok:
            return False
        self.notify(message, "success")
        self.publish(UsersDeletedEvent(user_ids=[user_id]))
        await self.load()
        return True

    async def reset_password(self, user_id: str, new_password: str) -> bool:
        ok, message = await self.attempt(self._service.reset_password(user_id, new_password))
        if ok:
            self.notify(message, "success")
        return ok

    async def import_users(self, filename: str, content: bytes) -> bool:
        ok, message = await self.attempt(
            self._service.import_users(filename, content), prefix="Import failed: "
        )
        if not ok:
            return False
        self.notify(message, "success")
        await self.load()
        return True

    async def export_users(self) -> Optional[Tuple[str, bytes]]:
        ok, exported = await self.attempt(self._service.export_users(), prefix="Export failed: ")
        if not ok:
            return None
        self.notify(f"Users exported to {exported[0]}", "success")
        return exported
