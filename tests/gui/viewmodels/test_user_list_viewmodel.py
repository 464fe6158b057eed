"""Tests for UserListViewModel: pure Python, mocked service."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from helpers import make_user
from useradmin.application.services.bulk import BulkResult
from useradmin.application.services.user_service import ListRefresh, UserAdminService
from useradmin.domain.models import FilterCriteria, PageInfo, UserStats
from useradmin.errors import SessionExpiredError, TransportError, ValidationError
from useradmin.events.admin_events import (
    BulkOperationCompletedEvent,
    UserSavedEvent,
    UsersDeletedEvent,
    UsersLoadedEvent,
)
from useradmin.events.bus import EventBus
from useradmin.gui.viewmodels.user_list_viewmodel import (
    EMPTY_FILTER_MESSAGE,
    EMPTY_SYSTEM_MESSAGE,
    UserListViewModel,
)

USERS = [
    make_user("u1", "Tina", role="TDL"),
    make_user("u2", "Sam", role="TDS", leader_name="Tina"),
    make_user("u3", "Pat", role="PRT", leader_name="Sam", active=False),
]


def _refresh(users, page=1, limit=10, total=None):
    total = len(users) if total is None else total
    return ListRefresh(
        users=list(users),
        page_info=PageInfo(page=page, limit=limit, total=total, total_pages=max(1, -(-total // limit))),
        stats=UserStats(total=total, active=sum(u.active for u in users)),
    )


def _make_vm(users=USERS, total=None, debounce=0):
    service = Mock()

    async def refresh(page, limit, criteria=None):
        return _refresh(users, page=page, limit=limit, total=total)

    service.refresh = AsyncMock(side_effect=refresh)
    bus = EventBus()
    vm = UserListViewModel(service, bus, page_size=10, search_debounce_ms=debounce)
    return vm, service, bus


class TestLoading:
    @pytest.mark.asyncio
    async def test_load_populates_state(self):
        vm, service, bus = _make_vm()
        loaded, rendered, stats = [], [], []
        bus.subscribe(UsersLoadedEvent, loaded.append)
        vm.users_updated.connect(rendered.append)
        vm.stats_updated.connect(stats.append)

        assert await vm.load() is True

        service.refresh.assert_awaited_once_with(1, 10)
        assert [u.id for u in vm.visible_users.value] == ["u1", "u2", "u3"]
        assert vm.leader_options.value == ["Tina", "Sam"]
        assert vm.stats.value.total == 3
        assert loaded[0].user_count == 3
        assert len(rendered) == 1
        assert stats[0].active == 2
        assert vm.loading.value is False

    @pytest.mark.asyncio
    async def test_loading_flag_spans_the_fetch(self):
        vm, service, _ = _make_vm()
        gate = asyncio.Event()

        async def slow(page, limit):
            await gate.wait()
            return _refresh(USERS)

        service.refresh.side_effect = slow
        task = asyncio.create_task(vm.load())
        await asyncio.sleep(0)
        assert vm.loading.value is True

        gate.set()
        await task
        assert vm.loading.value is False

    @pytest.mark.asyncio
    async def test_latest_resolved_load_wins(self):
        vm, service, _ = _make_vm()
        first_gate, second_gate = asyncio.Event(), asyncio.Event()
        calls = []

        async def refresh(page, limit):
            calls.append(page)
            if len(calls) == 1:
                await first_gate.wait()
                return _refresh([make_user("old", "Old")])
            await second_gate.wait()
            return _refresh([make_user("new", "New")])

        service.refresh.side_effect = refresh
        first = asyncio.create_task(vm.load())
        second = asyncio.create_task(vm.load())
        await asyncio.sleep(0)

        second_gate.set()
        await second
        assert [u.id for u in vm.users.value] == ["new"]
        assert vm.loading.value is True

        first_gate.set()
        await first
        assert [u.id for u in vm.users.value] == ["old"]
        assert vm.loading.value is False

    @pytest.mark.asyncio
    async def test_user_failure_keeps_previous_rows_and_applies_stats(self):
        vm, service, _ = _make_vm()
        await vm.load()
        errors = []
        vm.error_occurred.connect(errors.append)
        service.refresh.side_effect = None
        service.refresh.return_value = ListRefresh(
            users_error=TransportError("users down"), stats=UserStats(total=99)
        )

        assert await vm.load() is False

        assert [u.id for u in vm.users.value] == ["u1", "u2", "u3"]
        assert vm.stats.value.total == 99
        assert errors == ["Failed to load users: users down"]

    @pytest.mark.asyncio
    async def test_stats_failure_still_renders_users(self):
        vm, service, _ = _make_vm()
        service.refresh.side_effect = None
        service.refresh.return_value = ListRefresh(
            users=list(USERS), page_info=PageInfo(total=3), stats_error=TransportError("no stats")
        )
        errors = []
        vm.error_occurred.connect(errors.append)

        assert await vm.load() is True
        assert len(vm.visible_users.value) == 3
        assert errors == []

    @pytest.mark.asyncio
    async def test_session_expiry_emits_signal(self):
        vm, service, _ = _make_vm()
        service.refresh.side_effect = SessionExpiredError("Session expired", status_code=401)
        expired = []
        vm.session_expired.connect(expired.append)

        assert await vm.load() is False
        assert expired == ["Session expired"]
        assert vm.loading.value is False

    @pytest.mark.asyncio
    async def test_reload_clears_selection(self):
        vm, _, _ = _make_vm()
        await vm.load()
        vm.toggle_selection("u1")
        await vm.load()
        assert vm.selection.size() == 0


class TestFiltersAndSelection:
    @pytest.mark.asyncio
    async def test_apply_filters_clears_selection(self):
        vm, _, _ = _make_vm()
        await vm.load()
        vm.toggle_selection("u1")
        vm.toggle_selection("u2")

        vm.apply_filters(FilterCriteria(role="TDS"))

        assert [u.id for u in vm.visible_users.value] == ["u2"]
        assert vm.selection.size() == 0
        assert not vm.bulk_actions_enabled

    @pytest.mark.asyncio
    async def test_toggle_selection_ignores_hidden_rows(self):
        vm, _, _ = _make_vm()
        await vm.load()
        vm.apply_filters(FilterCriteria(status="active"))

        assert vm.toggle_selection("u3") is False
        assert vm.toggle_selection("u1") is True
        assert vm.selected_ids == ["u1"]

    @pytest.mark.asyncio
    async def test_toggle_select_all(self):
        vm, _, _ = _make_vm()
        await vm.load()
        sizes = []
        vm.selection_changed.connect(sizes.append)

        vm.toggle_selection("u2")
        vm.toggle_select_all()
        assert vm.all_visible_selected
        assert vm.selection.size() == 3

        vm.toggle_select_all()
        assert vm.selection.size() == 0
        assert sizes == [1, 3, 0]

    @pytest.mark.asyncio
    async def test_clear_filters(self):
        vm, _, _ = _make_vm()
        await vm.load()
        vm.apply_filters(FilterCriteria(role="PRT"))
        vm.clear_filters()
        assert len(vm.visible_users.value) == 3
        assert vm.criteria.value.is_empty

    @pytest.mark.asyncio
    async def test_search_debounce_applies_latest_keystroke(self):
        vm, _, _ = _make_vm(debounce=20)
        await vm.load()

        results = await asyncio.gather(vm.search("t"), vm.search("ti"), vm.search("tin"))

        assert results == [False, False, True]
        assert vm.criteria.value.search_text == "tin"
        assert [u.id for u in vm.visible_users.value] == ["u1"]

    @pytest.mark.asyncio
    async def test_search_keeps_other_criteria(self):
        vm, _, _ = _make_vm()
        await vm.load()
        vm.apply_filters(FilterCriteria(role="TDS"))
        await vm.search("pat")
        assert vm.criteria.value == FilterCriteria(role="TDS", search_text="pat")
        assert vm.visible_users.value == []

    @pytest.mark.asyncio
    async def test_empty_messages(self):
        vm, _, _ = _make_vm(users=[])
        await vm.load()
        assert vm.empty_message == EMPTY_SYSTEM_MESSAGE

        vm, _, _ = _make_vm()
        await vm.load()
        assert vm.empty_message is None
        vm.apply_filters(FilterCriteria(search_text="nobody"))
        assert vm.empty_message == EMPTY_FILTER_MESSAGE


class TestPaging:
    @pytest.mark.asyncio
    async def test_go_to_page_reloads_and_clears_selection(self):
        vm, service, _ = _make_vm(total=25)
        await vm.load()
        vm.toggle_selection("u1")

        assert await vm.go_to_page(2) is True

        service.refresh.assert_awaited_with(2, 10)
        assert vm.paginator.current_page() == 2
        assert vm.selection.size() == 0

    @pytest.mark.asyncio
    async def test_failed_page_fetch_keeps_previous_page(self):
        vm, service, _ = _make_vm(total=30)
        await vm.load()
        errors = []
        vm.error_occurred.connect(errors.append)
        service.refresh.side_effect = TransportError("gateway down")

        assert await vm.go_to_page(2) is False

        assert vm.paginator.current_page() == 1
        assert vm.paginator.total_count == 30
        assert [u.id for u in vm.visible_users.value] == ["u1", "u2", "u3"]
        assert errors == ["gateway down"]

    @pytest.mark.asyncio
    async def test_failed_page_size_fetch_keeps_previous_size(self):
        vm, service, _ = _make_vm(total=60)
        await vm.load()
        await vm.go_to_page(3)
        service.refresh.side_effect = TransportError("gateway down")

        assert await vm.set_page_size(25) is False

        assert vm.paginator.page_size() == 10
        assert vm.paginator.current_page() == 3

    @pytest.mark.asyncio
    async def test_same_page_does_not_reload(self):
        vm, service, _ = _make_vm(total=25)
        await vm.load()
        assert await vm.go_to_page(1) is False
        assert service.refresh.await_count == 1

    @pytest.mark.asyncio
    async def test_set_page_size_resets_to_first_page(self):
        vm, service, _ = _make_vm(total=60)
        await vm.load()
        await vm.go_to_page(3)

        await vm.set_page_size(25)

        service.refresh.assert_awaited_with(1, 25)
        assert vm.paginator.page_size() == 25


class TestBulkOperations:
    @pytest.mark.asyncio
    async def test_partial_failure_reports_and_reloads(self):
        state = {u.id: u for u in (
            make_user("u1", "A", active=False),
            make_user("u2", "B", active=False),
            make_user("u3", "C", active=False),
        )}
        client = Mock()

        async def list_users(page, limit, criteria=None):
            users = list(state.values())
            return users, PageInfo(page=1, limit=10, total=len(users), total_pages=1)

        async def set_user_active(user_id, active):
            if user_id == "u2":
                raise TransportError("u2 is locked")
            old = state[user_id]
            state[user_id] = make_user(old.id, old.username, active=active)
            return {}

        client.list_users = AsyncMock(side_effect=list_users)
        client.get_user_stats = AsyncMock(return_value=UserStats())
        client.set_user_active = AsyncMock(side_effect=set_user_active)
        bus = EventBus()
        vm = UserListViewModel(UserAdminService(client), bus, page_size=10, search_debounce_ms=0)
        await vm.load()
        completed, errors, events = [], [], []
        vm.bulk_completed.connect(completed.append)
        vm.error_occurred.connect(errors.append)
        bus.subscribe(BulkOperationCompletedEvent, events.append)

        vm.toggle_select_all()
        result = await vm.bulk_activate()

        assert not result.ok
        assert sorted(result.succeeded) == ["u1", "u3"]
        assert completed == [result]
        assert len(errors) == 1
        assert events[0].failed == ["u2"]
        assert vm.selection.size() == 0
        active = {u.id: u.active for u in vm.users.value}
        assert active == {"u1": True, "u2": False, "u3": True}

    @pytest.mark.asyncio
    async def test_success_notifies(self):
        vm, service, _ = _make_vm()
        service.bulk_set_active = AsyncMock(
            return_value=BulkResult(action="deactivate", succeeded=["u1"])
        )
        await vm.load()
        vm.toggle_selection("u1")
        notes = []
        vm.notification.connect(lambda msg, level: notes.append((msg, level)))

        await vm.bulk_deactivate()

        service.bulk_set_active.assert_awaited_once_with(["u1"], False)
        assert notes == [("deactivate: 1 user(s) updated", "success")]

    @pytest.mark.asyncio
    async def test_empty_selection_is_noop(self):
        vm, service, _ = _make_vm()
        service.bulk_set_active = AsyncMock()
        await vm.load()
        assert await vm.bulk_activate() is None
        service.bulk_set_active.assert_not_called()

    @pytest.mark.asyncio
    async def test_bulk_delete_publishes_deleted_ids(self):
        vm, service, bus = _make_vm()
        service.bulk_delete = AsyncMock(return_value=BulkResult(action="delete", succeeded=["u1", "u2"]))
        deleted = []
        bus.subscribe(UsersDeletedEvent, deleted.append)
        await vm.load()
        vm.toggle_selection("u1")
        vm.toggle_selection("u2")

        await vm.bulk_delete()

        service.bulk_delete.assert_awaited_once_with(["u1", "u2"])
        assert deleted[0].user_ids == ["u1", "u2"]


class TestSingleUserOperations:
    @pytest.mark.asyncio
    async def test_toggle_user_status(self):
        vm, service, _ = _make_vm()
        service.toggle_active = AsyncMock(return_value="User deactivated")
        await vm.load()

        assert await vm.toggle_user_status("u1") is True

        service.toggle_active.assert_awaited_once_with(USERS[0])
        assert service.refresh.await_count == 2

    @pytest.mark.asyncio
    async def test_toggle_unknown_user(self):
        vm, service, _ = _make_vm()
        service.toggle_active = AsyncMock()
        await vm.load()
        assert await vm.toggle_user_status("missing") is False
        service.toggle_active.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_failure_reports_error(self):
        vm, service, _ = _make_vm()
        service.delete_user = AsyncMock(side_effect=TransportError("forbidden", status_code=403))
        errors = []
        vm.error_occurred.connect(errors.append)
        await vm.load()

        assert await vm.delete_user("u1") is False
        assert errors == ["Failed to delete user: forbidden"]
        assert service.refresh.await_count == 1

    @pytest.mark.asyncio
    async def test_reset_password_validation(self):
        vm, service, _ = _make_vm()
        service.reset_password = AsyncMock(side_effect=ValidationError("Password must be at least 6 characters"))
        errors = []
        vm.error_occurred.connect(errors.append)

        assert await vm.reset_password("u1", "abc") is False
        assert errors == ["Password must be at least 6 characters"]

    @pytest.mark.asyncio
    async def test_import_reloads(self):
        vm, service, _ = _make_vm()
        service.import_users = AsyncMock(return_value="Imported 3 users")
        assert await vm.import_users("users.csv", b"x") is True
        assert service.refresh.await_count == 1

    @pytest.mark.asyncio
    async def test_export(self):
        vm, service, _ = _make_vm()
        service.export_users = AsyncMock(return_value=("users-export-2024-05-09.csv", b"csv"))
        assert await vm.export_users() == ("users-export-2024-05-09.csv", b"csv")


class TestEvents:
    @pytest.mark.asyncio
    async def test_user_saved_event_triggers_reload(self):
        vm, service, bus = _make_vm()
        bus.publish(UserSavedEvent(user_id="u1"))
        await vm.pending_reload
        assert service.refresh.await_count == 1

    @pytest.mark.asyncio
    async def test_dispose_stops_listening(self):
        vm, service, bus = _make_vm()
        vm.dispose()
        bus.publish(UserSavedEvent(user_id="u1"))
        assert vm.pending_reload is None
