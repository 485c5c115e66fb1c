import sys
import os
import time
import unittest
from datetime import datetime, timezone

# Add project root to path
sys.path.append(os.getcwd())

from actionbot.memory.database import ExecutionRecord, generate_record_id
from tests.fakes import TempDatabaseMixin


class TestMemoryDatabaseCache(TempDatabaseMixin, unittest.TestCase):
    def test_set_get_delete(self):
        self.db.set("twitter/tweets/1", {"id": "1", "photos": ["a.jpg"]})
        self.assertEqual(self.db.get("twitter/tweets/1"), {"id": "1", "photos": ["a.jpg"]})

        self.db.set("twitter/tweets/1", {"id": "1"})
        self.assertEqual(self.db.get("twitter/tweets/1"), {"id": "1"})

        self.db.delete("twitter/tweets/1")
        self.assertIsNone(self.db.get("twitter/tweets/1"))

    def test_missing_key(self):
        self.assertIsNone(self.db.get("nope"))
        self.db.delete("nope")

    def test_expired_value(self):
        self.db.set("short", "v", expires=time.time() - 1)
        self.db.set("long", "v", expires=time.time() + 3600)

        self.assertIsNone(self.db.get("short"))
        self.assertEqual(self.db.get("long"), "v")

    def test_purge_expired(self):
        self.db.set("old/1", "v", expires=time.time() - 10)
        self.db.set("old/2", "v", expires=time.time() - 1)
        self.db.set("fresh", "v", expires=time.time() + 3600)
        self.db.set("forever", "v")

        self.assertEqual(self.db.purge_expired(), 2)
        self.assertEqual(self.db.purge_expired(), 0)
        self.assertEqual(self.db.get("fresh"), "v")
        self.assertEqual(self.db.get("forever"), "v")


class TestExecutionRecords(TempDatabaseMixin, unittest.TestCase):
    def make_record(self, candidate_id="42", actions="like"):
        return ExecutionRecord(
            id=generate_record_id(candidate_id, "agent-1"),
            agent_id="agent-1",
            candidate_id=candidate_id,
            user_id="u1",
            text="hello",
            url=f"https://x.com/alice/status/{candidate_id}",
            source="twitter",
            actions=actions,
            created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )

    def test_record_id_deterministic(self):
        self.assertEqual(generate_record_id("42", "agent-1"), generate_record_id("42", "agent-1"))
        self.assertNotEqual(generate_record_id("42", "agent-1"), generate_record_id("42", "agent-2"))
        self.assertNotEqual(generate_record_id("42", "agent-1"), generate_record_id("43", "agent-1"))

    def test_create_once(self):
        self.assertTrue(self.db.create_execution_record(self.make_record(actions="like")))
        self.assertFalse(self.db.create_execution_record(self.make_record(actions="reply")))

        stored = self.db.get_execution_record(generate_record_id("42", "agent-1"))
        self.assertEqual(stored.actions, "like")
        self.assertTrue(self.db.has_execution_record(stored.id))

    def test_missing_record(self):
        self.assertIsNone(self.db.get_execution_record("missing"))
        self.assertFalse(self.db.has_execution_record("missing"))

    def test_recent_records_per_agent(self):
        self.db.create_execution_record(self.make_record("1"))
        self.db.create_execution_record(self.make_record("2", actions=""))

        records = self.db.get_recent_execution_records("agent-1")

        self.assertEqual({r.candidate_id for r in records}, {"1", "2"})
        self.assertEqual(self.db.get_recent_execution_records("agent-2"), [])


if __name__ == '__main__':
    unittest.main()
