from .bulk import BulkResult, run_bulk
from .user_service import ListRefresh, UserAdminService

__all__ = ["BulkResult", "ListRefresh", "UserAdminService", "run_bulk"]
