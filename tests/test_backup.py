import json
import unittest
from unittest.mock import patch

from sagittarius.backup import BackupRecord, BackupStore
from sagittarius.counters import CounterSnapshot, CounterStore
from sagittarius.errors import CorruptBackup

from helpers import TempDirMixin


def snapshot(**events):
    keys = sum(v for k, v in events.items() if k.startswith("KEY_"))
    clicks = sum(v for k, v in events.items() if k.startswith("CLICK_"))
    wheels = sum(v for k, v in events.items() if k.startswith("WHEEL_"))
    return CounterSnapshot(total_keys=keys, total_clicks=clicks, total_wheels=wheels, events=events)


class BackupStoreTests(TempDirMixin, unittest.TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.path = self.tmp / "stats_backup.json"
        self.backup = BackupStore(self.path, hostname="test-host")

    def test_save_then_load_round_trips(self) -> None:
        record = BackupRecord.create(snapshot(KEY_A=5, CLICK_LEFT=2), "test-host")
        self.backup.save(record)

        loaded = self.backup.load()
        self.assertEqual(loaded, record)
        self.assertEqual(loaded.snapshot.to_dict(), record.snapshot.to_dict())

    def test_file_mirrors_the_post_body(self) -> None:
        record = BackupRecord(snapshot(KEY_A=1), "test-host", "2026-01-01T00:00:00Z")
        self.backup.save(record)
        self.assertEqual(json.loads(self.path.read_text()), {
            "total_keys": 1, "total_clicks": 0, "total_wheels": 0,
            "events": {"KEY_A": 1},
            "timestamp": "2026-01-01T00:00:00Z",
            "hostname": "test-host",
        })

    def test_save_leaves_no_temp_files(self) -> None:
        self.backup.save(BackupRecord.create(snapshot(KEY_A=1), "h"))
        self.backup.save(BackupRecord.create(snapshot(KEY_A=2), "h"))
        self.assertEqual([p.name for p in self.tmp.iterdir()], ["stats_backup.json"])

    def test_failed_write_keeps_previous_backup(self) -> None:
        self.backup.save(BackupRecord.create(snapshot(KEY_A=1), "h"))
        before = self.path.read_text()

        with patch("sagittarius.backup.os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                self.backup.save(BackupRecord.create(snapshot(KEY_A=99), "h"))

        self.assertEqual(self.path.read_text(), before)
        self.assertEqual([p.name for p in self.tmp.iterdir()], ["stats_backup.json"])

    def test_load_missing_returns_none(self) -> None:
        self.assertIsNone(self.backup.load())
        self.assertFalse(self.backup.exists())

    def test_load_corrupt_raises(self) -> None:
        self.path.write_text("{not json")
        with self.assertRaises(CorruptBackup):
            self.backup.load()

        self.path.write_text('{"total_keys": "lots"}')
        with self.assertRaises(CorruptBackup):
            self.backup.load()

    def test_corrupt_backup_is_discarded(self) -> None:
        self.path.write_text("garbage")
        with self.assertLogs("sagittarius", level="WARNING"):
            self.assertIsNone(self.backup.load_or_discard())
        self.assertFalse(self.path.exists())

    def test_delete_is_idempotent(self) -> None:
        self.backup.save(BackupRecord.create(snapshot(KEY_A=1), "h"))
        self.assertTrue(self.backup.delete())
        self.assertFalse(self.backup.delete())
        self.assertFalse(self.path.exists())

    def test_merge_and_save_accumulates(self) -> None:
        self.backup.merge_and_save(snapshot(KEY_A=2, CLICK_LEFT=1))
        self.backup.merge_and_save(snapshot(KEY_A=3, WHEEL_VERTICAL=4))

        snap = self.backup.load().snapshot
        self.assertEqual(dict(snap.events), {"KEY_A": 5, "CLICK_LEFT": 1, "WHEEL_VERTICAL": 4})
        self.assertEqual((snap.total_keys, snap.total_clicks, snap.total_wheels), (5, 1, 4))

    def test_merge_and_save_replaces_corrupt_backup(self) -> None:
        self.path.write_text("[1, 2")
        with self.assertLogs("sagittarius", level="WARNING"):
            self.backup.merge_and_save(snapshot(CLICK_LEFT=1))
        self.assertEqual(dict(self.backup.load().snapshot.events), {"CLICK_LEFT": 1})

    def test_recover_into_adds_to_live_counts_and_removes_file(self) -> None:
        self.backup.save(BackupRecord.create(snapshot(KEY_A=5), "h"))
        store = CounterStore()
        store.increment("KEY_A")

        recovered = self.backup.recover_into(store)

        self.assertEqual(recovered.total_keys, 5)
        self.assertEqual(store.snapshot().events["KEY_A"], 6)
        self.assertFalse(self.path.exists())

    def test_recover_without_backup_is_a_no_op(self) -> None:
        store = CounterStore()
        self.assertIsNone(self.backup.recover_into(store))
        self.assertTrue(store.snapshot().is_empty)


if __name__ == "__main__":
    unittest.main()
