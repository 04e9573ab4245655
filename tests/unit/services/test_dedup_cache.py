"""
Unit tests for DedupGate and call fingerprints.
"""

import threading

import pytest

from trunkbot.services.dedup_cache import DedupGate
from tests.utils import CallFactory


@pytest.mark.unit
class TestDedupGate:
    """Test check-and-mark semantics and capacity handling."""

    def test_first_sighting_is_not_duplicate(self) -> None:
        gate = DedupGate(max_size=10)

        assert gate.check_and_mark("tg.1.start.0.srcs.1") is False
        assert len(gate) == 1

    def test_second_sighting_is_duplicate(self) -> None:
        gate = DedupGate(max_size=10)
        gate.check_and_mark("key")

        assert gate.check_and_mark("key") is True
        assert len(gate) == 1

    def test_eviction_only_forgets_oldest(self) -> None:
        gate = DedupGate(max_size=2)
        gate.check_and_mark("a")
        gate.check_and_mark("b")
        gate.check_and_mark("c")

        assert "a" not in gate
        assert "b" in gate
        assert "c" in gate
        assert gate.check_and_mark("a") is False

    def test_invalid_size_rejected(self) -> None:
        with pytest.raises(ValueError):
            DedupGate(max_size=0)

    def test_concurrent_submissions_only_one_is_new(self) -> None:
        gate = DedupGate(max_size=100)
        results = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def submit():
            barrier.wait()
            outcome = gate.check_and_mark("same-call")
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=submit) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(False) == 1
        assert results.count(True) == 7


@pytest.mark.unit
class TestCallFingerprint:
    """Test the dedup key derived from call metadata."""

    def test_key_format(self) -> None:
        meta = CallFactory.create_call_metadata(talkgroup=3605, start_time=1702513859, src_ids=[11, 22])

        assert meta.dedup_key() == "tg.3605.start.1702513855.srcs.11.22"

    def test_same_bucket_is_duplicate(self) -> None:
        gate = DedupGate()
        first = CallFactory.create_call_metadata(start_time=1702513856)
        second = CallFactory.create_call_metadata(start_time=1702513859)

        assert gate.check_and_mark(first.dedup_key()) is False
        assert gate.check_and_mark(second.dedup_key()) is True

    def test_bucket_boundary_is_not_duplicate(self) -> None:
        gate = DedupGate()
        first = CallFactory.create_call_metadata(start_time=1702513859)
        second = CallFactory.create_call_metadata(start_time=1702513860)

        assert gate.check_and_mark(first.dedup_key()) is False
        assert gate.check_and_mark(second.dedup_key()) is False

    @pytest.mark.parametrize("overrides", [
        {"talkgroup": 3606},
        {"src_ids": [3113042, 3113003]},
        {"src_ids": [3113003]},
    ])
    def test_different_talkgroup_or_sources_not_duplicate(self, overrides) -> None:
        gate = DedupGate()
        base = CallFactory.create_call_metadata()
        other = CallFactory.create_call_metadata(**overrides)

        assert gate.check_and_mark(base.dedup_key()) is False
        assert gate.check_and_mark(other.dedup_key()) is False

    def test_audio_differences_do_not_matter(self) -> None:
        first = CallFactory.create_call_metadata(call_length=6)
        second = CallFactory.create_call_metadata(call_length=7, freq=1)

        assert first.dedup_key() == second.dedup_key()
