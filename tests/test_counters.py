import dataclasses
import threading
import time
import unittest

from sagittarius.counters import CounterSnapshot, CounterStore
from sagittarius.errors import CorruptBackup
from sagittarius.events import EventClass


def class_sum(snapshot, prefix):
    return sum(count for key, count in snapshot.events.items() if key.startswith(prefix))


class CounterStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = CounterStore()

    def test_increment_updates_key_and_class_total(self) -> None:
        for _ in range(5):
            self.store.increment("KEY_A", EventClass.KEY)
        self.store.increment("CLICK_LEFT", EventClass.CLICK)
        self.store.increment("CLICK_LEFT", EventClass.CLICK)
        self.store.increment("WHEEL_VERTICAL", EventClass.WHEEL, 3)

        snap = self.store.snapshot()
        self.assertEqual(snap.total_keys, 5)
        self.assertEqual(snap.total_clicks, 2)
        self.assertEqual(snap.total_wheels, 3)
        self.assertEqual(dict(snap.events), {"KEY_A": 5, "CLICK_LEFT": 2, "WHEEL_VERTICAL": 3})

    def test_class_is_derived_from_key_when_omitted(self) -> None:
        self.store.increment("KEY_B")
        self.assertEqual(self.store.snapshot().total_keys, 1)

    def test_non_positive_increment_is_ignored(self) -> None:
        self.store.increment("KEY_A", EventClass.KEY, 0)
        self.assertTrue(self.store.snapshot().is_empty)

    def test_snapshot_is_a_private_immutable_copy(self) -> None:
        self.store.increment("KEY_A", EventClass.KEY)
        snap = self.store.snapshot()
        self.store.increment("KEY_A", EventClass.KEY)

        self.assertEqual(snap.events["KEY_A"], 1)
        with self.assertRaises(TypeError):
            snap.events["KEY_A"] = 10
        with self.assertRaises(dataclasses.FrozenInstanceError):
            snap.total_keys = 10

    def test_take_returns_counts_and_resets(self) -> None:
        self.store.increment("KEY_A", EventClass.KEY)
        taken = self.store.take()
        self.assertEqual(taken.total_keys, 1)
        self.assertTrue(self.store.snapshot().is_empty)

    def test_merge_adds_instead_of_overwriting(self) -> None:
        self.store.increment("KEY_A", EventClass.KEY)
        recovered = CounterSnapshot(total_keys=5, total_clicks=1, events={"KEY_A": 5, "CLICK_LEFT": 1})
        self.store.merge_from(recovered)

        snap = self.store.snapshot()
        self.assertEqual(snap.events["KEY_A"], 6)
        self.assertEqual(snap.total_keys, 6)
        self.assertEqual(snap.total_clicks, 1)

    def test_concurrent_increments_with_take_lose_nothing(self) -> None:
        writers, per_writer = 4, 5000
        taken = []
        done = threading.Event()

        def write(i):
            key = "KEY_%d" % i
            for n in range(per_writer):
                self.store.increment(key, EventClass.KEY)
                if n % 2:
                    self.store.increment("CLICK_LEFT", EventClass.CLICK)

        def drain():
            while not done.is_set():
                taken.append(self.store.take())
                time.sleep(0.001)

        drainer = threading.Thread(target=drain)
        drainer.start()
        threads = [threading.Thread(target=write, args=(i,)) for i in range(writers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        done.set()
        drainer.join()
        taken.append(self.store.take())

        for snap in taken:
            self.assertEqual(snap.total_keys, class_sum(snap, "KEY_"))
            self.assertEqual(snap.total_clicks, class_sum(snap, "CLICK_"))
        self.assertEqual(sum(s.total_keys for s in taken), writers * per_writer)
        self.assertEqual(sum(s.total_clicks for s in taken), writers * per_writer // 2)


class CounterSnapshotTests(unittest.TestCase):
    def test_merged(self) -> None:
        a = CounterSnapshot(total_keys=2, events={"KEY_A": 2})
        b = CounterSnapshot(total_keys=1, total_wheels=4, events={"KEY_A": 1, "WHEEL_VERTICAL": 4})
        merged = a.merged(b)
        self.assertEqual(merged.to_dict(), {
            "total_keys": 3, "total_clicks": 0, "total_wheels": 4,
            "events": {"KEY_A": 3, "WHEEL_VERTICAL": 4},
        })
        self.assertIs(a.merged(None), a)

    def test_from_dict_rejects_bad_shapes(self) -> None:
        good = {"total_keys": 1, "total_clicks": 0, "total_wheels": 0, "events": {"KEY_A": 1}}
        self.assertEqual(CounterSnapshot.from_dict(good).to_dict(), good)

        for bad in (
            [],
            {**good, "total_keys": "1"},
            {**good, "total_clicks": -1},
            {**good, "total_wheels": True},
            {**good, "events": []},
            {**good, "events": {"KEY_A": 1.5}},
            {"events": {}},
        ):
            with self.subTest(bad=bad), self.assertRaises(CorruptBackup):
                CounterSnapshot.from_dict(bad)


if __name__ == "__main__":
    unittest.main()
