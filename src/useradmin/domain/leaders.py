"""Leader hierarchy inferred from the live user collection.

There is no static role hierarchy.  A *leader role* is any role whose active
members are currently referenced by someone's ``leader_name``; a role
*requires a leader* when its members already have one, or when it is neither
a leader role nor the admin role.  Every answer is recomputed from the
collection handed to the resolver.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from useradmin.config import (
    ADMIN_ROLE,
    BOOTSTRAP_LEADER_ROLES,
    CURRENT_LEADER_SUFFIX,
    ROLE_PRIORITY,
)
from useradmin.domain.models import LeaderProfile, User


def _distinct(values: Iterable[str]) -> List[str]:
    seen: dict[str, None] = {}
    for value in values:
        if value and value not in seen:
            seen[value] = None
    return list(seen)


@dataclass(frozen=True)
class LeaderOption:
    """One entry of the leader picker."""

    value: str
    label: str
    selected: bool = False
    is_current_extra: bool = False


class LeaderHierarchyResolver:
    def __init__(
        self,
        users: Sequence[User],
        *,
        admin_role: str = ADMIN_ROLE,
        bootstrap_roles: Sequence[str] = BOOTSTRAP_LEADER_ROLES,
        role_priority: Sequence[str] = ROLE_PRIORITY,
    ) -> None:
        self._users = [user for user in users if user is not None]
        self._admin_role = admin_role
        self._bootstrap_roles = tuple(bootstrap_roles)
        self._priority = {role: index for index, role in enumerate(role_priority)}

        self.assigned_leader_names: List[str] = _distinct(
            (user.leader_name or "").strip() for user in self._users
        )
        names = set(self.assigned_leader_names)
        self.current_leader_users: List[User] = [
            user for user in self._users if user.active and user.username in names
        ]
        self.leader_roles: List[str] = _distinct(user.role for user in self.current_leader_users)
        self._roles_with_leader = set(
            _distinct(user.role for user in self._users if user.leader_name)
        )

    # -- role questions ----------------------------------------------------

    @property
    def roles_requiring_leader(self) -> List[str]:
        """Known roles (in first-seen order) whose members need a leader."""
        return [role for role in _distinct(u.role for u in self._users) if self.requires_leader(role)]

    def requires_leader(self, role: str) -> bool:
        if not role or role == self._admin_role:
            return False
        if role in self._roles_with_leader:
            return True
        return role not in self.leader_roles

    def is_leader_role(self, role: str) -> bool:
        return role in self.leader_roles or role in self._bootstrap_roles

    # -- candidates --------------------------------------------------------

    def candidates(self, role: str = "", exclude_username: Optional[str] = None) -> List[LeaderProfile]:
        """Ranked leader candidates for a user of *role*.

        Order: observed leader roles first, then bootstrap roles, each group
        by the role priority table (unknown roles last), then by username.
        Falls back to the raw leader names when no user qualifies.
        """
        qualifying = set(self.leader_roles) | set(self._bootstrap_roles)
        pool = [
            user for user in self._users
            if user.active
            and user.role in qualifying
            and user.username
            and user.username != exclude_username
        ]
        pool.sort(key=self._rank)

        profiles: List[LeaderProfile] = []
        seen: set[str] = set()
        for user in pool:
            if user.username in seen:
                continue
            seen.add(user.username)
            profiles.append(LeaderProfile(username=user.username, role=user.role))

        if not profiles:
            profiles = [
                LeaderProfile(username=name)
                for name in sorted(self.assigned_leader_names, key=str.casefold)
                if name != exclude_username
            ]
        return profiles

    def match_leader(self, candidates: Sequence[LeaderProfile], selected: str) -> Optional[LeaderProfile]:
        """Find the candidate for a stored leader value.

        Exact name first, then containment in either direction.
        """
        needle = (selected or "").strip()
        if not needle:
            return None
        for candidate in candidates:
            if candidate.username == needle:
                return candidate
        folded = needle.casefold()
        for candidate in candidates:
            name = candidate.username.casefold()
            if folded in name or name in folded:
                return candidate
        return None

    def picker_options(
        self,
        role: str,
        selected_leader_name: Optional[str] = None,
        exclude_username: Optional[str] = None,
    ) -> List[LeaderOption]:
        candidates = self.candidates(role, exclude_username=exclude_username)
        match = self.match_leader(candidates, selected_leader_name or "")
        options = [
            LeaderOption(
                value=candidate.username,
                label=candidate.username if candidate.synthesized else f"{candidate.username} ({candidate.role})",
                selected=candidate == match,
            )
            for candidate in candidates
        ]
        current = (selected_leader_name or "").strip()
        if current and match is None:
            options.append(
                LeaderOption(
                    value=current,
                    label=f"{current} {CURRENT_LEADER_SUFFIX}",
                    selected=True,
                    is_current_extra=True,
                )
            )
        return options

    # -- internal ----------------------------------------------------------

    def _rank(self, user: User) -> tuple:
        if user.role in self.leader_roles:
            group = 0
        elif user.role in self._bootstrap_roles:
            group = 1
        else:
            group = 2
        priority = self._priority.get(user.role, len(self._priority))
        return (group, priority, user.username.casefold())
