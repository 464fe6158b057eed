"""Fan-out runner for multi-user operations.

The backend has no batch endpoint for status changes, so one request is
issued per user.  All requests run concurrently and are awaited to
completion; one failure never hides the outcome of the others.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Sequence

from useradmin.errors import SessionExpiredError

LOGGER = logging.getLogger(__name__)


@dataclass
class BulkResult:
    """Aggregate outcome of a bulk operation; no automatic rollback."""

    action: str = ""
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, Exception] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        if self.ok:
            return f"{self.action}: {len(self.succeeded)} user(s) updated"
        return (
            f"{self.action}: {len(self.succeeded)} of {self.total} succeeded, "
            f"{len(self.failed)} failed"
        )


async def run_bulk(
    ids: Sequence[str],
    operation: Callable[[str], Awaitable[object]],
    action: str = "",
) -> BulkResult:
    """Run *operation* for every id concurrently and collect the outcomes.

    A ``SessionExpiredError`` among the failures is re-raised once every
    request has settled, since the session is gone regardless of the rest.
    """
    unique = list(dict.fromkeys(ids))
    result = BulkResult(action=action)
    if not unique:
        return result

    outcomes = await asyncio.gather(
        *(operation(entity_id) for entity_id in unique),
        return_exceptions=True,
    )
    expired = None
    for entity_id, outcome in zip(unique, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            result.failed[entity_id] = outcome
            if isinstance(outcome, SessionExpiredError):
                expired = outcome
            LOGGER.warning("%s failed for %s: %s", action or "bulk operation", entity_id, outcome)
        else:
            result.succeeded.append(entity_id)
    if expired is not None:
        raise expired
    return result
