"""
tests/test_audit.py -- Unit tests for the audit package.

Covers:
  - AuditStore.append fills id/timestamp/created_at and round-trips details
  - non-JSON detail values are stringified, not rejected
  - listing is newest first and filterable by actor
  - the store exposes no update or delete operation
  - AuditRecorder swallows write failures, logs them, and returns None
  - origin falls back to 127.0.0.1
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from audit.models import AuditRecord
from audit.recorder import DEFAULT_ORIGIN, AuditRecorder, request_origin
from audit.store import AuditStore, AuditWriteFailure


@pytest.fixture()
def store(tmp_path) -> AuditStore:
    s = AuditStore(db_url=f"sqlite:///{tmp_path / 'audit.db'}")
    yield s
    s.close()


class TestAuditStore:
    def test_append_fills_generated_fields(self, store: AuditStore) -> None:
        saved = store.append(AuditRecord(action="user login", actor_id=1, details={"email": "a@x.com"}))
        assert saved.id is not None
        assert saved.timestamp
        assert saved.created_at

        loaded = store.get(saved.id)
        assert loaded == saved
        assert loaded.details == {"email": "a@x.com"}
        assert loaded.ip == "127.0.0.1"

    def test_explicit_timestamp_kept(self, store: AuditStore) -> None:
        saved = store.append(AuditRecord(action="claim status update", actor_id=2, timestamp="2024-01-01T00:00:00+00:00"))
        assert store.get(saved.id).timestamp == "2024-01-01T00:00:00+00:00"

    def test_non_json_details_stringified(self, store: AuditStore) -> None:
        when = datetime(2024, 5, 1, tzinfo=timezone.utc)
        saved = store.append(AuditRecord(action="policy purchase", actor_id=3, details={"at": when}))
        assert store.get(saved.id).details == {"at": str(when)}

    def test_list_recent_newest_first_and_limited(self, store: AuditStore) -> None:
        for i in range(5):
            store.append(AuditRecord(action=f"action {i}", actor_id=1))
        recent = store.list_recent(limit=3)
        assert [r.action for r in recent] == ["action 4", "action 3", "action 2"]
        assert store.count() == 5

    def test_list_for_actor(self, store: AuditStore) -> None:
        store.append(AuditRecord(action="user login", actor_id=1))
        store.append(AuditRecord(action="user login", actor_id=2))
        store.append(AuditRecord(action="admin action", actor_id=2))
        trail = store.list_for_actor(2)
        assert [r.action for r in trail] == ["admin action", "user login"]
        assert all(r.actor_id == 2 for r in trail)

    def test_get_missing_returns_none(self, store: AuditStore) -> None:
        assert store.get(12345) is None

    def test_append_only_interface(self) -> None:
        public = {name for name in dir(AuditStore) if not name.startswith("_")}
        assert not {n for n in public if n.startswith(("update", "delete", "remove"))}

    def test_database_error_wrapped(self, store: AuditStore) -> None:
        store.engine = MagicMock()
        store.engine.connect.side_effect = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with pytest.raises(AuditWriteFailure) as exc_info:
            store.append(AuditRecord(action="user login", actor_id=1))
        assert exc_info.value.action == "user login"
        assert isinstance(exc_info.value.cause, OperationalError)


class TestAuditRecorder:
    def test_record_persists(self, store: AuditStore) -> None:
        recorder = AuditRecorder(store)
        saved = recorder.record("payment", 7, {"amount": "120.00"}, origin="10.0.0.5")
        assert saved is not None
        assert store.get(saved.id).ip == "10.0.0.5"

    def test_origin_defaults(self, store: AuditStore) -> None:
        saved = AuditRecorder(store).record("user login", 7)
        assert saved.ip == DEFAULT_ORIGIN == "127.0.0.1"
        assert saved.details == {}

    def test_write_failure_swallowed_and_logged(self, caplog) -> None:
        failing = MagicMock(spec=AuditStore)
        failing.append.side_effect = AuditWriteFailure("user login", OperationalError("INSERT", {}, Exception("locked")))
        with caplog.at_level(logging.ERROR, logger="coverdesk.audit"):
            result = AuditRecorder(failing).record("user login", 1)
        assert result is None
        assert "user login" in caplog.text

    def test_unexpected_error_swallowed(self, caplog) -> None:
        failing = MagicMock(spec=AuditStore)
        failing.append.side_effect = RuntimeError("boom")
        with caplog.at_level(logging.ERROR, logger="coverdesk.audit"):
            assert AuditRecorder(failing).record("admin action", 1) is None
        assert "boom" in caplog.text


class TestRequestOrigin:
    def test_client_host_used(self) -> None:
        request = MagicMock()
        request.client.host = "203.0.113.9"
        assert request_origin(request) == "203.0.113.9"

    def test_missing_client_falls_back(self) -> None:
        request = MagicMock()
        request.client = None
        assert request_origin(request) == DEFAULT_ORIGIN
