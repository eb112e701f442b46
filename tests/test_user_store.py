"""
tests/test_user_store.py -- Unit tests for auth/store.py (UserStore).

Each test gets its own SQLite file under tmp_path.
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import Identity
from auth.store import UserStore


@pytest.fixture()
def store(tmp_path) -> UserStore:
    s = UserStore(db_url=f"sqlite:///{tmp_path / 'users.db'}")
    yield s
    s.close()


def _identity(email: str, role: str = "customer") -> Identity:
    return Identity(name=email.split("@")[0], email=email, role=role, hashed_password="$2b$04$hash")


def test_create_and_fetch(store: UserStore) -> None:
    uid = store.create_user(_identity("a@x.com", "agent"))
    by_id = store.get_by_id(uid)
    by_email = store.get_by_email("a@x.com")
    assert by_id == by_email
    assert by_id.role == "agent"
    assert by_id.created_at


def test_missing_lookups_return_none(store: UserStore) -> None:
    assert store.get_by_id(999) is None
    assert store.get_by_email("nobody@x.com") is None


def test_unique_email_enforced(store: UserStore) -> None:
    store.create_user(_identity("dup@x.com"))
    with pytest.raises(IntegrityError):
        store.create_user(_identity("dup@x.com"))


def test_role_check_constraint(store: UserStore) -> None:
    with pytest.raises(IntegrityError):
        store.create_user(_identity("root@x.com", "superuser"))


def test_list_users_newest_first(store: UserStore) -> None:
    first = store.create_user(_identity("one@x.com"))
    second = store.create_user(_identity("two@x.com"))
    ids = [u.id for u in store.list_users()]
    assert ids.index(second) < ids.index(first)


def test_count_by_role_zero_filled(store: UserStore) -> None:
    store.create_user(_identity("c1@x.com"))
    store.create_user(_identity("c2@x.com"))
    store.create_user(_identity("adm@x.com", "admin"))
    assert store.count_by_role() == {"admin": 1, "agent": 0, "customer": 2}
    assert store.count_users() == 3


def test_public_projection_has_no_hash(store: UserStore) -> None:
    uid = store.create_user(_identity("p@x.com"))
    public = store.get_by_id(uid).public()
    assert set(public) == {"id", "name", "email", "role"}
