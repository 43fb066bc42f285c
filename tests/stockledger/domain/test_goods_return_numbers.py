"""Tests for Goods Return Number formatting and allocation."""

import threading
from datetime import UTC, datetime

import pytest
from stockledger.purchasing.grn import (
    GoodsReturnNumberGenerator,
    MemorySequence,
    format_goods_return_number,
    is_goods_return_number,
    open_return_batch,
    parse_goods_return_number,
)


def _clock(year):
    return lambda: datetime(year, 6, 1, tzinfo=UTC)


class TestFormat:
    def test_zero_pads_sequence(self):
        assert format_goods_return_number(2025, 7) == "GRN-25-0007"

    def test_sequence_grows_past_four_digits(self):
        assert format_goods_return_number(2025, 12345) == "GRN-25-12345"

    def test_parse_round_trip(self):
        assert parse_goods_return_number("GRN-24-0042") == (24, 42)

    @pytest.mark.parametrize("value", ["", "GRN-2024-0001", "GRN-24-12", "grn-24-0001", None])
    def test_malformed_numbers(self, value):
        assert not is_goods_return_number(value)

    def test_parse_malformed_raises(self):
        with pytest.raises(ValueError):
            parse_goods_return_number("RET-24-0001")


class TestGenerator:
    def test_numbers_increase(self):
        generator = GoodsReturnNumberGenerator(clock=_clock(2025))
        assert generator.next_number() == "GRN-25-0001"
        assert generator.next_number() == "GRN-25-0002"

    def test_year_follows_clock(self):
        generator = GoodsReturnNumberGenerator(MemorySequence(start=5), clock=_clock(2026))
        assert generator.next_number() == "GRN-26-0005"

    def test_resume_after_skips_past_stored_number(self):
        generator = GoodsReturnNumberGenerator(clock=_clock(2025))
        generator.resume_after("GRN-25-0140")
        assert generator.next_number() == "GRN-25-0141"

    def test_resume_never_moves_backwards(self):
        generator = GoodsReturnNumberGenerator(MemorySequence(start=500), clock=_clock(2025))
        generator.resume_after("GRN-25-0010")
        assert generator.peek == 500

    def test_only_handed_out_numbers_count_as_issued(self):
        generator = GoodsReturnNumberGenerator(clock=_clock(2025))
        issued = generator.next_number()

        assert generator.has_issued(issued)
        assert not generator.has_issued(format_goods_return_number(2025, generator.peek))
        assert not generator.has_issued("GRN-25-0000")
        assert not generator.has_issued("RET-1")

    def test_switching_counters_never_goes_backwards(self):
        generator = GoodsReturnNumberGenerator(clock=_clock(2025))
        generator.resume_after("GRN-25-0020")

        generator.use(MemorySequence())

        assert generator.next_number() == "GRN-25-0021"

    @pytest.mark.slow
    def test_concurrent_callers_get_distinct_numbers(self):
        generator = GoodsReturnNumberGenerator(clock=_clock(2025))
        results = []
        results_lock = threading.Lock()
        start = threading.Barrier(16)

        def allocate():
            start.wait()
            numbers = [generator.next_number() for _ in range(50)]
            with results_lock:
                results.extend(numbers)

        threads = [threading.Thread(target=allocate) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 800
        assert len(set(results)) == 800
        sequences = sorted(parse_goods_return_number(number)[1] for number in results)
        assert sequences == list(range(1, 801))

    @pytest.mark.slow
    def test_each_thread_sees_increasing_numbers(self):
        generator = GoodsReturnNumberGenerator(clock=_clock(2025))
        per_thread = {}

        def allocate(name):
            per_thread[name] = [parse_goods_return_number(generator.next_number())[1] for _ in range(100)]

        threads = [threading.Thread(target=allocate, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for sequences in per_thread.values():
            assert sequences == sorted(sequences)


class TestReturnBatch:
    def test_batch_gets_its_own_number(self):
        first = open_return_batch()
        second = open_return_batch()
        assert first.batch_id != second.batch_id
        assert is_goods_return_number(first.goods_return_number)
        assert first.goods_return_number != second.goods_return_number
