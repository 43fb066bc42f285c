"""Goods Return Numbers drawn from a counter row shared through the database."""

from datetime import UTC, datetime

import pytest
from sqlalchemy import create_engine
from stockledger.purchasing.grn import GoodsReturnNumberGenerator, SqlSequence, grn_generator
from stockledger.utils.db import default_engine


def _clock():
    return datetime(2026, 3, 1, tzinfo=UTC)


@pytest.fixture()
def database_uri(tmp_path):
    return f"sqlite:///{tmp_path / 'ledger.db'}"


def _worker(database_uri):
    """One API worker process: its own engine, the same counter row."""
    return GoodsReturnNumberGenerator(SqlSequence(create_engine(database_uri)), clock=_clock)


class TestSharedCounter:
    def test_workers_resuming_from_the_same_number_never_collide(self, database_uri):
        first = _worker(database_uri)
        second = _worker(database_uri)
        first.resume_after("GRN-26-0041")
        second.resume_after("GRN-26-0041")

        numbers = [first.next_number(), second.next_number(), first.next_number()]

        assert numbers == ["GRN-26-0042", "GRN-26-0043", "GRN-26-0044"]

    def test_numbers_issued_by_one_worker_are_known_to_the_other(self, database_uri):
        first = _worker(database_uri)
        second = _worker(database_uri)

        issued = first.next_number()

        assert second.has_issued(issued)
        assert not second.has_issued("GRN-26-0002")

    def test_counter_survives_a_restart(self, database_uri):
        _worker(database_uri).next_number()

        restarted = _worker(database_uri)

        assert restarted.next_number() == "GRN-26-0002"

    def test_resume_never_moves_the_shared_counter_back(self, database_uri):
        worker = _worker(database_uri)
        worker.resume_after("GRN-26-0100")
        worker.resume_after("GRN-26-0005")

        assert worker.peek == 101

    def test_in_memory_store_keeps_the_process_counter(self, ledger_domain):
        assert default_engine(ledger_domain) is None
        assert grn_generator.backend == "memory"
