"""Mutable id set backing checkbox selection in list views.

The set knows nothing about the rows it refers to.  Whoever renders the view
must call :meth:`SelectionSet.clear` (or :meth:`SelectionSet.retain`) when the
view changes shape, otherwise ids of rows that are no longer shown stay
selected and flow into bulk actions.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, Iterator


class SelectionSet:
    def __init__(self, ids: Iterable[str] = ()) -> None:
        self._ids: set[str] = set(ids)

    def toggle(self, entity_id: str) -> bool:
        """Flip membership of *entity_id*; return whether it is now selected."""
        if entity_id in self._ids:
            self._ids.discard(entity_id)
            return False
        self._ids.add(entity_id)
        return True

    def select_all(self, ids: Iterable[str]) -> None:
        """Add *ids* on top of the current selection."""
        self._ids.update(ids)

    def discard(self, entity_id: str) -> None:
        self._ids.discard(entity_id)

    def clear(self) -> None:
        self._ids.clear()

    def retain(self, ids: Iterable[str]) -> None:
        """Drop every selected id that is not in *ids*."""
        self._ids.intersection_update(ids)

    def contains(self, entity_id: str) -> bool:
        return entity_id in self._ids

    def size(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> FrozenSet[str]:
        return frozenset(self._ids)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._ids))

    def __bool__(self) -> bool:
        return bool(self._ids)

    def __repr__(self) -> str:
        return f"SelectionSet({sorted(self._ids)!r})"
