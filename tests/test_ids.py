"""Tests for record id generation"""
import threading

from talentbook import ids
from talentbook.ids import generate_id


class TestGenerateId:

    def test_ids_are_unique_and_increasing(self):
        generated = [generate_id() for _ in range(2000)]
        assert len(set(generated)) == len(generated)
        assert generated == sorted(generated)

    def test_ids_are_lowercase_base36(self):
        assert set(generate_id()) <= set("0123456789abcdefghijklmnopqrstuvwxyz")

    def test_frozen_clock_still_increases(self, monkeypatch):
        monkeypatch.setattr(ids.time, "time", lambda: 1_900_000_000.0)
        generated = [generate_id() for _ in range(100)]
        assert generated == sorted(generated)
        assert len(set(generated)) == 100

    def test_clock_stepping_back_does_not_reorder(self, monkeypatch):
        first = generate_id()
        monkeypatch.setattr(ids.time, "time", lambda: 1_000_000_000.0)
        second = generate_id()
        assert second > first

    def test_unique_across_threads(self):
        results = []
        lock = threading.Lock()

        def worker():
            local = [generate_id() for _ in range(200)]
            with lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(results)) == 1600
