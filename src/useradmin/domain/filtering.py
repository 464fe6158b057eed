"""Filter engine for in-memory user and store views.

Criteria are evaluated against the cached collection on every call; no
result is memoised, so a changed collection or changed criteria always yield
a fresh view.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar

from .models import STATUS_ACTIVE, FilterCriteria, Store, User

T = TypeVar("T")

# A matcher receives the entity and the non-empty criterion value.
Matcher = Callable[[Any, str], bool]

CRITERIA_FIELDS = ("role", "status", "leader_name", "search_text")


def normalise_search(text: Optional[str]) -> str:
    """Return *text* trimmed and case-folded for substring comparison."""
    return text.strip().casefold() if isinstance(text, str) else ""


def text_matcher(*getters: Callable[[Any], Optional[str]]) -> Matcher:
    """Build a case-insensitive substring matcher over several text fields.

    Args:
        getters: Callables extracting the candidate text fields from an entity.

    Returns:
        A matcher that succeeds when any non-empty field contains the needle.
        Missing or ``None`` fields never match and never raise.
    """

    def _match(entity: Any, needle: str) -> bool:
        normalized = normalise_search(needle)
        if not normalized:
            return True
        for getter in getters:
            value = getter(entity)
            if isinstance(value, str) and normalized in value.casefold():
                return True
        return False

    return _match


def _status_matcher(entity: Any, status: str) -> bool:
    return bool(entity.active) == (status == STATUS_ACTIVE)


USER_MATCHERS: Dict[str, Matcher] = {
    "role": lambda user, role: user.role == role,
    "status": _status_matcher,
    "leader_name": lambda user, leader: user.leader_name == leader,
    "search_text": text_matcher(
        lambda user: user.user_code,
        lambda user: user.username,
        lambda user: user.login_id,
    ),
}

STORE_MATCHERS: Dict[str, Matcher] = {
    "status": _status_matcher,
    "search_text": text_matcher(
        lambda store: store.name,
        lambda store: store.code,
        lambda store: store.region,
    ),
}


class FilterEngine:
    """Order-preserving filter over an entity collection.

    Each non-empty field of :class:`FilterCriteria` must be accepted by the
    matcher registered for it (logical AND).  Empty fields, and fields with no
    registered matcher, accept every entity.
    """

    def __init__(self, matchers: Mapping[str, Matcher]) -> None:
        self._matchers = dict(matchers)

    @property
    def matchers(self) -> Dict[str, Matcher]:
        return dict(self._matchers)

    def matches(self, entity: Any, criteria: FilterCriteria) -> bool:
        """Check if *entity* satisfies every active criterion."""
        return self._matches(entity, self._active(criteria, self._matchers))

    def apply(
        self,
        collection: Iterable[T],
        criteria: FilterCriteria,
        matchers: Optional[Mapping[str, Matcher]] = None,
    ) -> List[T]:
        """Filter *collection* by *criteria*.

        Args:
            collection: Entities in display order.
            criteria: Active filter selection.
            matchers: Optional override of the engine's matcher table.

        Returns:
            A new list holding the matching entities in their input order.
        """
        active = self._active(criteria, self._matchers if matchers is None else matchers)
        if not active:
            return list(collection)
        return [entity for entity in collection if self._matches(entity, active)]

    @staticmethod
    def _active(criteria: FilterCriteria, matchers: Mapping[str, Matcher]) -> list:
        active = []
        for name in CRITERIA_FIELDS:
            value = getattr(criteria, name)
            matcher = matchers.get(name)
            if value and matcher is not None:
                active.append((matcher, value))
        return active

    @staticmethod
    def _matches(entity: Any, active: Sequence) -> bool:
        if entity is None:
            return False
        return all(matcher(entity, value) for matcher, value in active)


def user_filter() -> FilterEngine:
    return FilterEngine(USER_MATCHERS)


def store_filter() -> FilterEngine:
    return FilterEngine(STORE_MATCHERS)


def apply_user_filters(users: Iterable[User], criteria: FilterCriteria) -> List[User]:
    return user_filter().apply(users, criteria)


def apply_store_filters(stores: Iterable[Store], criteria: FilterCriteria) -> List[Store]:
    return store_filter().apply(stores, criteria)
