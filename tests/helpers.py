"""Builders shared by the test modules."""

from useradmin.domain.models import Store, User


def make_user(user_id, username, role="user", leader_name=None, active=True, **extra):
    return User(
        id=user_id,
        user_code=extra.pop("user_code", user_id.upper()),
        username=username,
        login_id=extra.pop("login_id", username.lower().replace(" ", ".")),
        role=role,
        leader_name=leader_name,
        active=active,
        **extra,
    )


def make_store(store_id, name="", code="", region=""):
    return Store(id=store_id, name=name or f"Store {store_id}", code=code or store_id, region=region)
