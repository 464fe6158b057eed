"""Default configuration values for the user administration screen."""

from __future__ import annotations

from typing import Final

# Page sizes offered by the pager.  The backend caps ``limit`` at 100 so the
# largest option must never exceed it.
DEFAULT_PAGE_SIZE: Final[int] = 25
PAGE_SIZE_OPTIONS: Final[tuple[int, ...]] = (10, 25, 50, 100)
MAX_VISIBLE_PAGES: Final[int] = 7

# Keystrokes in the search box are coalesced for this long before the user
# list is re-filtered.
SEARCH_DEBOUNCE_MS: Final[int] = 300

MIN_PASSWORD_LENGTH: Final[int] = 6

IMPORT_ALLOWED_EXTENSIONS: Final[tuple[str, ...]] = (".csv", ".xlsx", ".xls")
IMPORT_MAX_BYTES: Final[int] = 5 * 1024 * 1024
EXPORT_FILENAME_TEMPLATE: Final[str] = "users-export-{date}.csv"

# The store picker loads the whole store universe in a single request.
STORE_FETCH_LIMIT: Final[int] = 1000

# Leader pickers need every user, not just the current page.
USER_DIRECTORY_LIMIT: Final[int] = 1000

DEFAULT_API_BASE_URL: Final[str] = "http://localhost:3000/api"
DEFAULT_API_TIMEOUT_SECONDS: Final[float] = 30.0
API_TOKEN_ENV_VAR: Final[str] = "USERADMIN_API_TOKEN"

# ---------------------------------------------------------------------------
# Leader hierarchy
# ---------------------------------------------------------------------------

# The top of the organisation.  Members of this role never need a leader.
ADMIN_ROLE: Final[str] = "admin"

# Roles that may always lead, even before anyone in the data set references
# one of their members as a leader.  Every other leader role is inferred from
# the live user collection.
BOOTSTRAP_LEADER_ROLES: Final[tuple[str, ...]] = (ADMIN_ROLE,)

# Display order of leader candidates.  Roles missing from the table sort
# after every listed role.
ROLE_PRIORITY: Final[tuple[str, ...]] = ("admin", "TDL", "TDS", "PRT", "user")

CURRENT_LEADER_SUFFIX: Final[str] = "(current)"
