
import json

from secure_wallet.core.audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    record_safely,
)


class TestAuditLogger:

    def test_creates_log_directory(self, tmp_path):
        AuditLogger(log_dir=tmp_path / "nested" / "audit")
        assert (tmp_path / "nested" / "audit").is_dir()

    def test_log_event_writes_json_line(self, tmp_path):
        audit = AuditLogger(log_dir=tmp_path / "audit")
        event_id = audit.log_event(
            EventType.CATEGORY_REGISTERED, EventSeverity.INFO, "Category registered", details={"category": "x"}
        )

        [log_file] = list((tmp_path / "audit").glob("audit_*.log"))
        lines = [json.loads(line) for line in log_file.read_text().splitlines() if line.strip()]
        assert lines[-1]["event_id"] == event_id
        assert lines[-1]["event_type"] == "category.registered"
        assert lines[-1]["details"] == {"category": "x"}

    def test_query_filters(self, tmp_path):
        audit = AuditLogger(log_dir=tmp_path / "audit")
        audit.log_item_event(EventType.ITEM_CREATED, "i1", "notes", user_scope="alice")
        audit.log_item_event(EventType.ITEM_DELETED, "i1", "notes", user_scope="alice")
        audit.log_item_event(EventType.ITEM_CREATED, "i2", "notes", user_scope="bob")

        assert len(audit.query_events()) == 3
        assert len(audit.query_events(user_scope="alice")) == 2
        created = audit.query_events(event_types=[EventType.ITEM_CREATED])
        assert {e["details"]["item_id"] for e in created} == {"i1", "i2"}

    def test_query_newest_first_and_limit(self, tmp_path):
        audit = AuditLogger(log_dir=tmp_path / "audit")
        for i in range(5):
            audit.log_item_event(EventType.ITEM_VIEWED, f"i{i}", "notes")
        events = audit.query_events(limit=2)
        assert [e["details"]["item_id"] for e in events] == ["i4", "i3"]

    def test_query_skips_garbage_lines(self, tmp_path):
        audit = AuditLogger(log_dir=tmp_path / "audit")
        audit.log_item_event(EventType.ITEM_VIEWED, "i1", "notes")
        (tmp_path / "audit" / "audit_1999-01-01.log").write_text("not json\n")
        assert len(audit.query_events()) == 1


    def test_instances_keep_their_own_directories(self, tmp_path):
        first = AuditLogger(log_dir=tmp_path / "first")
        second = AuditLogger(log_dir=tmp_path / "second")

        first.log_item_event(EventType.ITEM_CREATED, "i1", "notes")
        second.log_item_event(EventType.ITEM_DELETED, "i2", "notes")

        assert [e["details"]["item_id"] for e in first.query_events()] == ["i1"]
        assert [e["details"]["item_id"] for e in second.query_events()] == ["i2"]

    def test_same_directory_shares_one_file(self, tmp_path):
        first = AuditLogger(log_dir=tmp_path / "audit")
        second = AuditLogger(log_dir=tmp_path / "audit")
        first.log_item_event(EventType.ITEM_CREATED, "i1", "notes")
        second.log_item_event(EventType.ITEM_CREATED, "i2", "notes")
        assert len(first.query_events()) == 2


class TestRecordSafely:

    def test_none_logger(self):
        assert record_safely(None, EventType.ITEM_CREATED, item_id="x", category="notes") is None

    def test_failure_swallowed(self):
        class Broken:
            def log_item_event(self, *args, **kwargs):
                raise RuntimeError("boom")

        assert record_safely(Broken(), EventType.ITEM_CREATED, item_id="x", category="notes") is None

    def test_returns_event_id(self, tmp_path):
        audit = AuditLogger(log_dir=tmp_path / "audit")
        assert record_safely(audit, EventType.ITEM_CREATED, item_id="x", category="notes")


class TestSingleton:

    def test_isolated_in_tests(self, tmp_path):
        assert get_audit_logger().log_dir == tmp_path / "audit_logs"
