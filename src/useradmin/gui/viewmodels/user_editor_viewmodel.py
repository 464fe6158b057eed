"""UserEditorViewModel: one new-user or edit-user session.

Each session starts with :meth:`open_new` or :meth:`open_existing`, which
build a fresh store partition, and ends with :meth:`save` or :meth:`cancel`,
which discard it.  The leader picker is recomputed from the full user
directory, fetched when the session opens unless the caller supplies it.
"""

from __future__ import annotations

import asyncio
import dataclasses
from typing import List, Optional, Sequence

from useradmin.application.services.user_service import UserAdminService
from useradmin.domain.leaders import LeaderHierarchyResolver, LeaderOption
from useradmin.domain.models import FilterCriteria, Store, User
from useradmin.domain.transfer import TransferListManager, TransferSnapshot
from useradmin.domain.validation import UserForm
from useradmin.errors.handler import ErrorHandler
from useradmin.events.admin_events import UserSavedEvent
from useradmin.events.bus import EventBus
from useradmin.gui.viewmodels.base import BaseViewModel
from useradmin.gui.viewmodels.signal import ObservableProperty, Signal


class UserEditorViewModel(BaseViewModel):
    def __init__(
        self,
        service: UserAdminService,
        event_bus: Optional[EventBus] = None,
        error_handler: Optional[ErrorHandler] = None,
        transfer: Optional[TransferListManager] = None,
        resolver_factory=LeaderHierarchyResolver,
    ) -> None:
        super().__init__(event_bus, error_handler)
        self._service = service
        self._resolver_factory = resolver_factory
        self._resolver: Optional[LeaderHierarchyResolver] = None
        self._editing_username: Optional[str] = None
        self.transfer = transfer or TransferListManager()

        self.editing_user_id = ObservableProperty(None)
        self.form = ObservableProperty(UserForm())
        self.leader_options = ObservableProperty([])
        self.requires_leader = ObservableProperty(False)
        self.transfer_state = ObservableProperty(None)
        self.is_open = ObservableProperty(False)
        self.saving = ObservableProperty(False)

        self.transfer_changed = Signal()
        self.saved = Signal()
        self.closed = Signal()

    @property
    def is_new(self) -> bool:
        return self.editing_user_id.value is None

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def open_new(
        self,
        users: Optional[Sequence[User]] = None,
        stores: Optional[Sequence[Store]] = None,
    ) -> bool:
        """Start a new-user session.

        The user directory and the stores are fetched concurrently when not
        supplied.
        """
        ok, loaded = await self.attempt(
            asyncio.gather(self._directory(users), self._stores(stores)),
            prefix="Failed to open editor: ",
        )
        if not ok:
            return False
        directory, stores = loaded
        self._start(directory, stores, None)
        return True

    async def open_existing(self, user_id: str, users: Optional[Sequence[User]] = None) -> bool:
        """Start an edit session; the user record, directory and stores load concurrently."""
        ok, loaded = await self.attempt(
            asyncio.gather(
                self._service.load_user(user_id),
                self._directory(users),
                self._stores(None),
            ),
            prefix="Failed to load user: ",
        )
        if not ok:
            return False
        user, directory, stores = loaded
        self._start(directory, stores, user)
        return True

    async def _directory(self, users: Optional[Sequence[User]]) -> List[User]:
        # Leader candidates may sit outside the list's loaded page.
        if users is None:
            return await self._service.load_all_users()
        return list(users)

    async def _stores(self, stores: Optional[Sequence[Store]]) -> List[Store]:
        if stores is None:
            return await self._service.load_stores()
        return list(stores)

    def _start(self, users: Sequence[User], stores: Sequence[Store], user: Optional[User]) -> None:
        self._resolver = self._resolver_factory(list(users))
        self.editing_user_id.value = user.id if user is not None else None
        self._editing_username = user.username if user is not None else None
        self.form.value = UserForm.from_user(user) if user is not None else UserForm()
        assigned = user.assigned_store_ids if user is not None else ()
        self._apply(self.transfer.initialize(stores, assigned))
        self._refresh_leaders()
        self.is_open.value = True
        self._logger.debug(
            "Editor opened for %s with %d store(s)",
            user.id if user is not None else "new user",
            len(stores),
        )

    def cancel(self) -> None:
        """Close the session and discard the partition."""
        self.transfer.reset()
        self._resolver = None
        self._editing_username = None
        self.editing_user_id.value = None
        self.form.value = UserForm()
        self.leader_options.value = []
        self.requires_leader.value = False
        self.transfer_state.value = None
        self.is_open.value = False
        self.closed.emit()

    # ------------------------------------------------------------------
    # Form and leader picker
    # ------------------------------------------------------------------

    def update_form(self, **changes) -> UserForm:
        self.form.value = dataclasses.replace(self.form.value, **changes)
        if "role" in changes or "leader_name" in changes:
            self._refresh_leaders()
        return self.form.value

    def set_role(self, role: str) -> List[LeaderOption]:
        self.update_form(role=role)
        return self.leader_options.value

    def set_leader(self, leader_name: str) -> List[LeaderOption]:
        self.update_form(leader_name=leader_name)
        return self.leader_options.value

    def _refresh_leaders(self) -> None:
        if self._resolver is None:
            return
        form = self.form.value
        self.requires_leader.value = self._resolver.requires_leader(form.role)
        self.leader_options.value = self._resolver.picker_options(
            form.role,
            form.leader_name,
            exclude_username=self._editing_username,
        )

    # ------------------------------------------------------------------
    # Store transfer
    # ------------------------------------------------------------------

    def _apply(self, snapshot: TransferSnapshot) -> TransferSnapshot:
        self.transfer_state.value = snapshot
        self.transfer_changed.emit(snapshot)
        return snapshot

    def search_stores(self, text: str) -> TransferSnapshot:
        return self._apply(self.transfer.filter_available(FilterCriteria(search_text=text)))

    def toggle_available(self, store_id: str) -> TransferSnapshot:
        return self._apply(self.transfer.toggle_available(store_id))

    def toggle_assigned(self, store_id: str) -> TransferSnapshot:
        return self._apply(self.transfer.toggle_assigned(store_id))

    def select_all_available(self) -> TransferSnapshot:
        return self._apply(self.transfer.select_all_available())

    def select_all_assigned(self) -> TransferSnapshot:
        return self._apply(self.transfer.select_all_assigned())

    def assign_selected(self) -> TransferSnapshot:
        return self._apply(self.transfer.assign_selected())

    def assign_all_visible(self) -> TransferSnapshot:
        return self._apply(self.transfer.assign_all_visible())

    def unassign_selected(self) -> TransferSnapshot:
        return self._apply(self.transfer.unassign_selected())

    def unassign_all(self) -> TransferSnapshot:
        return self._apply(self.transfer.unassign_all())

    def remove_store(self, store_id: str) -> TransferSnapshot:
        return self._apply(self.transfer.remove_single(store_id))

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    async def save(self, form: Optional[UserForm] = None) -> bool:
        """Validate and submit the form with the assigned store ids.

        On success the session closes and ``UserSavedEvent`` is published so
        the list reloads.  On failure the session stays open untouched.
        """
        if form is not None:
            self.form.value = form
        form = self.form.value
        store_ids = self.transfer.assigned_ids()
        editing_id = self.editing_user_id.value

        self.saving.value = True
        try:
            ok, message = await self.attempt(
                self._service.save_user(form, editing_id, store_ids),
                prefix="Failed to save user: ",
            )
        finally:
            self.saving.value = False
        if not ok:
            return False

        self.notify(message, "success")
        self.publish(UserSavedEvent(
            user_id=editing_id or "",
            created=editing_id is None,
            assigned_store_ids=tuple(store_ids),
        ))
        self.saved.emit(editing_id)
        self.cancel()
        return True
