"""Goods Return Numbers: ``GRN-YY-####`` document numbers for supplier returns.

The sequence part comes from one shared counter that only ever moves
forward; the year part follows the clock. The counter lives wherever the
ledger's data lives:

- ``MemorySequence`` for the in-memory provider, whose data never leaves the
  process anyway.
- ``SqlSequence`` for relational providers: one counter row bumped by a
  single ``UPDATE ... RETURNING`` that commits on its own connection. Every
  worker process draws from the same row, and a command that rolls back
  leaves a gap rather than a number someone else can be handed again.

Allocation never takes order or balance locks and never waits on them.
"""

import re
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

import structlog
from sqlalchemy import BigInteger, Column, MetaData, String, Table, insert, select, update
from sqlalchemy.exc import IntegrityError

logger = structlog.get_logger(__name__)

GRN_PATTERN = re.compile(r"^GRN-(\d{2})-(\d{4,})$")
SEQUENCE_NAME = "goods_return_number"

sequence_metadata = MetaData()
sequence_table = Table(
    "stockledger_sequences",
    sequence_metadata,
    Column("name", String(50), primary_key=True),
    Column("current_value", BigInteger, nullable=False),
)


def format_goods_return_number(year: int, sequence: int) -> str:
    return f"GRN-{year % 100:02d}-{sequence:04d}"


def parse_goods_return_number(value: str) -> tuple[int, int]:
    """Split a GRN into its two-digit year and its sequence number."""
    match = GRN_PATTERN.match(value or "")
    if match is None:
        raise ValueError(f"Not a goods return number: {value!r}")
    return int(match.group(1)), int(match.group(2))


def is_goods_return_number(value: str) -> bool:
    return GRN_PATTERN.match(value or "") is not None


def _utc_now():
    return datetime.now(UTC)


class MemorySequence:
    """Thread-safe counter held in process memory."""

    backend = "memory"

    def __init__(self, start: int = 1):
        self._last = start - 1
        self._lock = threading.Lock()

    def next_value(self) -> int:
        with self._lock:
            self._last += 1
            return self._last

    def advance_to(self, value: int) -> None:
        with self._lock:
            self._last = max(self._last, value)

    def last_value(self) -> int:
        with self._lock:
            return self._last


class SqlSequence:
    """Counter row in a relational store, shared by every process using that store."""

    backend = "sql"

    def __init__(self, engine, name: str = SEQUENCE_NAME):
        self._engine = engine
        self._name = name
        sequence_metadata.create_all(engine, tables=[sequence_table])
        self._seed()

    def _seed(self):
        with self._engine.begin() as conn:
            seeded = conn.execute(
                select(sequence_table.c.current_value).where(sequence_table.c.name == self._name)
            ).first()
        if seeded is not None:
            return
        try:
            with self._engine.begin() as conn:
                conn.execute(insert(sequence_table).values(name=self._name, current_value=0))
        except IntegrityError:
            # Another worker seeded the row between the select and the insert
            logger.debug("Sequence row already seeded", sequence=self._name)

    def next_value(self) -> int:
        statement = (
            update(sequence_table)
            .where(sequence_table.c.name == self._name)
            .values(current_value=sequence_table.c.current_value + 1)
            .returning(sequence_table.c.current_value)
        )
        with self._engine.begin() as conn:
            return conn.execute(statement).scalar_one()

    def advance_to(self, value: int) -> None:
        statement = (
            update(sequence_table)
            .where(sequence_table.c.name == self._name, sequence_table.c.current_value < value)
            .values(current_value=value)
        )
        with self._engine.begin() as conn:
            conn.execute(statement)

    def last_value(self) -> int:
        with self._engine.connect() as conn:
            return conn.execute(
                select(sequence_table.c.current_value).where(sequence_table.c.name == self._name)
            ).scalar_one()


class GoodsReturnNumberGenerator:
    """Strictly increasing GRN allocator over a pluggable counter."""

    def __init__(self, sequence=None, clock=_utc_now):
        self._sequence = sequence or MemorySequence()
        self._clock = clock

    @property
    def backend(self) -> str:
        return self._sequence.backend

    def use(self, sequence) -> None:
        """Draw numbers from ``sequence`` from now on, never going back below what was already handed out."""
        sequence.advance_to(self._sequence.last_value())
        self._sequence = sequence

    def next_number(self) -> str:
        return format_goods_return_number(self._clock().year, self._sequence.next_value())

    def resume_after(self, goods_return_number: str) -> None:
        """Make sure numbers handed out from now on sort after ``goods_return_number``."""
        _, sequence = parse_goods_return_number(goods_return_number)
        self._sequence.advance_to(sequence)

    def has_issued(self, goods_return_number: str) -> bool:
        """Whether ``goods_return_number`` is a number this counter has already handed out."""
        if not is_goods_return_number(goods_return_number):
            return False
        _, sequence = parse_goods_return_number(goods_return_number)
        return 0 < sequence <= self._sequence.last_value()

    @property
    def peek(self) -> int:
        return self._sequence.last_value() + 1


grn_generator = GoodsReturnNumberGenerator()


def next_goods_return_number() -> str:
    return grn_generator.next_number()


def bind_goods_return_numbers(engine=None) -> str:
    """Back the shared generator with ``engine``'s counter row; keep the memory counter without one."""
    if engine is not None:
        grn_generator.use(SqlSequence(engine))
    logger.info("Goods return numbers bound", backend=grn_generator.backend)
    return grn_generator.backend


@dataclass(frozen=True)
class ReturnBatch:
    """One return document covering several component-level returns."""

    batch_id: str
    goods_return_number: str


def open_return_batch() -> ReturnBatch:
    return ReturnBatch(batch_id=str(uuid4()), goods_return_number=next_goods_return_number())
