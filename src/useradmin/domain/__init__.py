from .models import FilterCriteria, LeaderProfile, PageInfo, Store, User, UserStats
from .selection import SelectionSet
from .filtering import FilterEngine, store_filter, user_filter
from .paginator import Paginator
from .transfer import TransferListManager, TransferSnapshot
from .leaders import LeaderHierarchyResolver, LeaderOption

__all__ = [
    "FilterCriteria",
    "FilterEngine",
    "LeaderHierarchyResolver",
    "LeaderOption",
    "LeaderProfile",
    "PageInfo",
    "Paginator",
    "SelectionSet",
    "Store",
    "TransferListManager",
    "TransferSnapshot",
    "User",
    "UserStats",
    "store_filter",
    "user_filter",
]
