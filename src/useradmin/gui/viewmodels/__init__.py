from .signal import Signal, ObservableProperty
from .base import BaseViewModel
from .user_list_viewmodel import UserListViewModel
from .user_editor_viewmodel import UserEditorViewModel

__all__ = [
    "BaseViewModel",
    "ObservableProperty",
    "Signal",
    "UserEditorViewModel",
    "UserListViewModel",
]
