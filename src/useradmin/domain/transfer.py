"""Two-pane store assignment state for one user edit session.

The store universe is split into an *available* side and an *assigned* side.
Every store id lives on exactly one side at all times; moves between the
sides never create, drop or duplicate an id.  Each side has its own
:class:`SelectionSet`, and after every move both selections are intersected
with their side's new membership so an id that changed sides is never left
selected on the side it left.

Only the available side is filtered (by store search); the assigned side is
always shown in full.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from useradmin.domain.filtering import FilterEngine, store_filter
from useradmin.domain.models import FilterCriteria, Store
from useradmin.domain.selection import SelectionSet
from useradmin.errors import TransferNotInitializedError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferSnapshot:
    """Render-ready view of both panes."""

    available: Tuple[Store, ...]
    assigned: Tuple[Store, ...]
    available_total: int
    available_selected: FrozenSet[str]
    assigned_selected: FrozenSet[str]
    criteria: FilterCriteria

    @property
    def available_visible_count(self) -> int:
        return len(self.available)

    @property
    def assigned_count(self) -> int:
        return len(self.assigned)

    @property
    def can_assign(self) -> bool:
        return bool(self.available_selected)

    @property
    def can_assign_all_visible(self) -> bool:
        return bool(self.available)

    @property
    def can_unassign(self) -> bool:
        return bool(self.assigned_selected)

    @property
    def can_unassign_all(self) -> bool:
        return bool(self.assigned)


class TransferListManager:
    """Owns the available/assigned partition of the store universe."""

    def __init__(self, engine: Optional[FilterEngine] = None) -> None:
        self._engine = engine or store_filter()
        self._initialized = False
        self._universe: List[Store] = []
        self._order: Dict[str, int] = {}
        self._stores: Dict[str, Store] = {}
        self._available: List[str] = []
        self._assigned: List[str] = []
        self._criteria = FilterCriteria()
        self._available_view: List[Store] = []
        self.available_selection = SelectionSet()
        self.assigned_selection = SelectionSet()

    # -- lifecycle ---------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self, universe: Sequence[Store], initially_assigned_ids: Iterable[str]) -> TransferSnapshot:
        """Start a fresh session, replacing every piece of earlier state."""
        self._universe = []
        self._order = {}
        self._stores = {}
        for store in universe:
            if store.id in self._stores:
                LOGGER.warning("Duplicate store id %s in universe; keeping the first", store.id)
                continue
            self._order[store.id] = len(self._universe)
            self._stores[store.id] = store
            self._universe.append(store)

        wanted = set(initially_assigned_ids)
        unknown = wanted - self._stores.keys()
        if unknown:
            LOGGER.debug("Ignoring %d assigned store id(s) outside the universe", len(unknown))
        self._assigned = [store.id for store in self._universe if store.id in wanted]
        self._available = [store.id for store in self._universe if store.id not in wanted]
        self._criteria = FilterCriteria()
        self.available_selection.clear()
        self.assigned_selection.clear()
        self._initialized = True
        self._refresh_view()
        return self.snapshot()

    def reset(self) -> None:
        """Discard the session; the manager must be initialised again before use."""
        self._initialized = False
        self._universe = []
        self._order = {}
        self._stores = {}
        self._available = []
        self._assigned = []
        self._available_view = []
        self._criteria = FilterCriteria()
        self.available_selection.clear()
        self.assigned_selection.clear()

    # -- queries -----------------------------------------------------------

    @property
    def universe(self) -> List[Store]:
        self._require_initialized()
        return list(self._universe)

    def available_ids(self) -> List[str]:
        self._require_initialized()
        return list(self._available)

    def assigned_ids(self) -> List[str]:
        self._require_initialized()
        return list(self._assigned)

    def available_view(self) -> List[Store]:
        """Available stores passing the last-applied criteria."""
        self._require_initialized()
        return list(self._available_view)

    def assigned_stores(self) -> List[Store]:
        self._require_initialized()
        return [self._stores[sid] for sid in self._assigned]

    def snapshot(self) -> TransferSnapshot:
        self._require_initialized()
        return TransferSnapshot(
            available=tuple(self._available_view),
            assigned=tuple(self.assigned_stores()),
            available_total=len(self._available),
            available_selected=self.available_selection.ids,
            assigned_selected=self.assigned_selection.ids,
            criteria=self._criteria,
        )

    # -- filtering and selection ------------------------------------------

    def filter_available(self, criteria: FilterCriteria) -> TransferSnapshot:
        """Apply new search criteria to the available pane.

        The available view changes shape, so its selection is cleared.
        """
        self._require_initialized()
        self._criteria = criteria
        self.available_selection.clear()
        self._refresh_view()
        return self.snapshot()

    def toggle_available(self, store_id: str) -> TransferSnapshot:
        self._require_initialized()
        if store_id in {store.id for store in self._available_view}:
            self.available_selection.toggle(store_id)
        return self.snapshot()

    def toggle_assigned(self, store_id: str) -> TransferSnapshot:
        self._require_initialized()
        if store_id in self._assigned:
            self.assigned_selection.toggle(store_id)
        return self.snapshot()

    def select_all_available(self) -> TransferSnapshot:
        self._require_initialized()
        self.available_selection.select_all(store.id for store in self._available_view)
        return self.snapshot()

    def select_all_assigned(self) -> TransferSnapshot:
        self._require_initialized()
        self.assigned_selection.select_all(self._assigned)
        return self.snapshot()

    # -- moves -------------------------------------------------------------

    def assign(self, ids: Iterable[str]) -> TransferSnapshot:
        """Move every id currently on the available side to the assigned side.

        Ids that are already assigned or unknown are ignored.
        """
        self._require_initialized()
        wanted = set(ids)
        moving = [sid for sid in self._available if sid in wanted]
        if moving:
            moved = set(moving)
            self._available = [sid for sid in self._available if sid not in moved]
            self._assigned.extend(moving)
            LOGGER.debug("Assigned %d store(s)", len(moving))
        self.available_selection.clear()
        self._after_move()
        return self.snapshot()

    def assign_selected(self) -> TransferSnapshot:
        self._require_initialized()
        return self.assign(self.available_selection.ids)

    def assign_all_visible(self, visible_ids: Optional[Sequence[str]] = None) -> TransferSnapshot:
        """Assign the stores of the filtered available view.

        With *visible_ids* omitted the manager's own current view is used.  A
        caller-supplied snapshot is intersected with the current view, so
        stores outside the filter are never assigned even if still selected.
        """
        self._require_initialized()
        current = [store.id for store in self._available_view]
        if visible_ids is None:
            return self.assign(current)
        shown = set(current)
        return self.assign(sid for sid in visible_ids if sid in shown)

    def unassign(self, ids: Iterable[str]) -> TransferSnapshot:
        """Move every id currently on the assigned side back to available."""
        self._require_initialized()
        wanted = set(ids)
        moving = [sid for sid in self._assigned if sid in wanted]
        if moving:
            moved = set(moving)
            self._assigned = [sid for sid in self._assigned if sid not in moved]
            self._available = sorted(self._available + moving, key=self._order.__getitem__)
            LOGGER.debug("Unassigned %d store(s)", len(moving))
        self.assigned_selection.clear()
        self._after_move()
        return self.snapshot()

    def unassign_selected(self) -> TransferSnapshot:
        self._require_initialized()
        return self.unassign(self.assigned_selection.ids)

    def unassign_all(self) -> TransferSnapshot:
        self._require_initialized()
        return self.unassign(list(self._assigned))

    def remove_single(self, store_id: str) -> TransferSnapshot:
        """Remove one assigned store (the chip's close button)."""
        return self.unassign([store_id])

    # -- internal ----------------------------------------------------------

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise TransferNotInitializedError(
                "Store transfer lists used before initialize()"
            )

    def _after_move(self) -> None:
        self._refresh_view()
        self.available_selection.retain(store.id for store in self._available_view)
        self.assigned_selection.retain(self._assigned)

    def _refresh_view(self) -> None:
        available = [self._stores[sid] for sid in self._available]
        self._available_view = self._engine.apply(available, self._criteria)
