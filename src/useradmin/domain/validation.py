"""Local validation of user input.  A failure raises ``ValidationError`` before
any request is built."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Dict, Iterable, Optional

from useradmin.config import IMPORT_ALLOWED_EXTENSIONS, IMPORT_MAX_BYTES, MIN_PASSWORD_LENGTH
from useradmin.domain.models import User
from useradmin.errors import ValidationError

_REQUIRED_FIELDS = (
    ("user_code", "User ID"),
    ("username", "Full name"),
    ("login_id", "Login ID"),
    ("role", "Role"),
)


@dataclass
class UserForm:
    user_code: str = ""
    username: str = ""
    login_id: str = ""
    role: str = ""
    leader_name: str = ""
    active: bool = True
    password: str = ""
    assigned_store_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_user(cls, user: User) -> "UserForm":
        return cls(
            user_code=user.user_code,
            username=user.username,
            login_id=user.login_id,
            role=user.role,
            leader_name=user.leader_name or "",
            active=user.active,
            assigned_store_ids=sorted(user.assigned_store_ids),
        )

    def to_payload(self, store_ids: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """Backend body for create/update; the password only when entered."""
        payload: Dict[str, Any] = {
            "userid": self.user_code.strip(),
            "username": self.username.strip(),
            "loginid": self.login_id.strip(),
            "role": self.role,
            "leader": self.leader_name.strip() or None,
            "isActive": bool(self.active),
            "assignedStores": list(self.assigned_store_ids if store_ids is None else store_ids),
        }
        if self.password:
            payload["password"] = self.password
        return payload


def validate_password(password: str) -> None:
    if not password:
        raise ValidationError("Password is required", field="password")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field="password",
        )


def validate_user_form(form: UserForm, is_new: bool) -> None:
    for attr, label in _REQUIRED_FIELDS:
        if not str(getattr(form, attr) or "").strip():
            raise ValidationError(f"{label} is required", field=attr)
    if is_new and not form.password:
        raise ValidationError("A password is required for new users", field="password")
    if form.password:
        validate_password(form.password)


def validate_import_file(filename: str, size: int) -> None:
    suffix = PurePath(filename or "").suffix.lower()
    if suffix not in IMPORT_ALLOWED_EXTENSIONS:
        allowed = ", ".join(ext.lstrip(".").upper() for ext in IMPORT_ALLOWED_EXTENSIONS)
        raise ValidationError(f"Only {allowed} files are supported", field="file")
    if size > IMPORT_MAX_BYTES:
        limit_mb = IMPORT_MAX_BYTES // (1024 * 1024)
        raise ValidationError(f"File is too large (max {limit_mb}MB)", field="file")
    if size <= 0:
        raise ValidationError("File is empty", field="file")
