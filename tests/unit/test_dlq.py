"""
Unit tests for Dead Letter Queue (DLQ)
Tests DLQ write logic for events the broker did not accept
"""

import json
from datetime import datetime, timezone


class TestDLQ:
    """Test Dead Letter Queue functionality"""

    def test_write_failure_to_dlq(self, tmp_path):
        """Test writing a failed publish to the DLQ"""
        from cassandra_cdc.dlq.writer import DLQWriter

        dlq_dir = tmp_path / "dlq"
        writer = DLQWriter(dlq_directory=str(dlq_dir))

        writer.write_failure(
            topic="cdc-events",
            key="user1",
            body='{"key":"user1","rows":[]}',
            error_type="delivery_failed",
            error_message="Broker: Message timed out",
        )

        # Verify file was created
        dlq_files = list(dlq_dir.glob("*.jsonl"))
        assert len(dlq_files) == 1

    def test_dlq_file_format(self, tmp_path):
        """Test that DLQ file is in JSONL format"""
        from cassandra_cdc.dlq.writer import DLQWriter

        writer = DLQWriter(dlq_directory=str(tmp_path))

        writer.write_failure(
            topic="cdc-events",
            key="user1",
            body='{"key":"user1","partitionDeleted":true}',
            error_type="buffer_full",
            error_message="Local: Queue full",
        )

        dlq_file = list(tmp_path.glob("*.jsonl"))[0]
        with open(dlq_file) as f:
            data = json.loads(f.readline())

        # Should contain the event and error info
        assert data["topic"] == "cdc-events"
        assert data["key"] == "user1"
        assert data["event"] == {"key": "user1", "partitionDeleted": True}
        assert data["error_type"] == "buffer_full"
        assert data["error_message"] == "Local: Queue full"
        assert "failed_at" in data

    def test_dlq_rotation_by_date(self, tmp_path):
        """Test that DLQ files are named by topic and date"""
        from cassandra_cdc.dlq.writer import DLQWriter

        writer = DLQWriter(dlq_directory=str(tmp_path))
        writer.write_failure("cdc-events", "user1", "{}", "buffer_full", "full")

        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        assert (tmp_path / f"dlq_cdc-events_{today}.jsonl").exists()

    def test_count_dlq_events(self, tmp_path):
        """Test counting DLQ events per topic"""
        from cassandra_cdc.dlq.writer import DLQWriter

        writer = DLQWriter(dlq_directory=str(tmp_path))
        for i in range(3):
            writer.write_failure("cdc-events", f"user{i}", "{}", "buffer_full", "full")
        writer.write_failure("audit", "user9", "{}", "buffer_full", "full")

        assert writer.count_dlq_events("cdc-events") == 3
        assert writer.count_dlq_events() == 4

    def test_unparseable_body_kept_verbatim(self, tmp_path):
        """Test that a body that is not JSON is stored as a string"""
        from cassandra_cdc.dlq.writer import DLQWriter

        writer = DLQWriter(dlq_directory=str(tmp_path))
        writer.write_failure("cdc-events", "user1", "not json", "produce_error", "bad")

        data = json.loads(list(tmp_path.glob("*.jsonl"))[0].read_text())
        assert data["event"] == "not json"
