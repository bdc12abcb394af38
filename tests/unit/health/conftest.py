"""In-memory stand-ins for the session and the metric repository.

The fake store behaves like the health_metrics table for the operations
the core uses: the dedup upsert, half-open range reads and exact-instant
reads.  ``FakeSession.begin()`` snapshots the store and restores it when
the block raises, which is what a rolled-back transaction looks like to
the caller.
"""

import contextlib
import copy
import datetime
import itertools
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.schemas.health import HealthMetricIn

UTC = datetime.timezone.utc


class FakePgError(Exception):
    def __init__(self, pgcode: str):
        super().__init__(f"pgcode {pgcode}")
        self.pgcode = pgcode


def deadlock_error() -> OperationalError:
    return OperationalError("INSERT INTO health_metrics ...", {}, FakePgError("40P01"))


def check_violation() -> IntegrityError:
    return IntegrityError("INSERT INTO health_metrics ...", {}, FakePgError("23514"))


class FakeStore:
    """Rows keyed by (user_id, metric_type, recorded_at, source)."""

    def __init__(self):
        self.rows: dict[tuple, SimpleNamespace] = {}
        self._ids = itertools.count(1)

    def snapshot(self):
        return copy.deepcopy(self.rows)

    def restore(self, rows):
        self.rows = rows

    def add(self, user_id, metric_type, value, recorded_at, unit="steps", source="apple_health",
            metadata=None):
        """Seed a row directly (bypasses the upsert path)."""
        key = (user_id, metric_type, recorded_at, source)
        self.rows[key] = SimpleNamespace(
            id=next(self._ids), user_id=user_id, metric_type=metric_type, value=value, unit=unit,
            recorded_at=recorded_at, source=source, source_device=None, metric_metadata=metadata or {},
            created_at=recorded_at, updated_at=recorded_at,
        )
        return self.rows[key]


class FakeRepository:
    """Mirrors HealthMetricRepository on top of a FakeStore."""

    def __init__(self, store: FakeStore):
        self.store = store
        self.upserted: list[tuple] = []
        self.fail = None  # callable(call_index, metric) -> Exception | None

    def upsert(self, user_id: str, metric: HealthMetricIn):
        call_index = len(self.upserted)
        self.upserted.append(metric.sort_key)
        if self.fail is not None:
            error = self.fail(call_index, metric)
            if error is not None:
                raise error

        key = (user_id, metric.metric_type.value, metric.recorded_at, metric.source.value)
        existing = self.store.rows.get(key)
        if existing is None:
            row = self.store.add(user_id, metric.metric_type.value, metric.value, metric.recorded_at,
                                 unit=metric.unit, source=metric.source.value, metadata=dict(metric.metadata))
            row.source_device = metric.source_device
            return row, True

        existing.value = metric.value
        existing.unit = metric.unit
        existing.source_device = metric.source_device
        existing.metric_metadata = dict(metric.metadata)
        existing.updated_at = datetime.datetime.now(UTC)
        return existing, False

    def _for_user(self, user_id):
        return [row for row in self.store.rows.values() if row.user_id == user_id]

    def list_in_range(self, user_id, start, end):
        rows = [r for r in self._for_user(user_id) if start <= r.recorded_at < end]
        return sorted(rows, key=lambda r: r.recorded_at, reverse=True)

    def list_at_instants(self, user_id, metric_types, instants):
        metric_types, instants = set(metric_types), set(instants)
        rows = [r for r in self._for_user(user_id) if r.metric_type in metric_types and r.recorded_at in instants]
        return sorted(rows, key=lambda r: r.recorded_at, reverse=True)

    def query(self, user_id, filters):
        rows = self._for_user(user_id)
        if filters.metric_type:
            rows = [r for r in rows if r.metric_type == filters.metric_type.value]
        if filters.source:
            rows = [r for r in rows if r.source == filters.source.value]
        if filters.start_date:
            rows = [r for r in rows if r.recorded_at >= filters.start_date]
        if filters.end_date:
            rows = [r for r in rows if r.recorded_at <= filters.end_date]
        rows.sort(key=lambda r: r.recorded_at, reverse=True)
        return rows[filters.offset:filters.offset + filters.limit], len(rows)

    def latest_per_type(self, user_id):
        latest = {}
        for row in sorted(self._for_user(user_id), key=lambda r: r.recorded_at, reverse=True):
            latest.setdefault(row.metric_type, row)
        return [latest[t] for t in sorted(latest)]

    def exists_since(self, user_id, since):
        return any(r.recorded_at > since for r in self._for_user(user_id))


class FakeSession:
    """Just enough of ``Session.begin()`` for the ingestor."""

    def __init__(self, store: FakeStore):
        self.store = store
        self.commits = 0
        self.rollbacks = 0

    @contextlib.contextmanager
    def begin(self):
        snapshot = self.store.snapshot()
        try:
            yield self
        except Exception:
            self.store.restore(snapshot)
            self.rollbacks += 1
            raise
        self.commits += 1


def make_metric(metric_type="steps", value=100.0, recorded_at=None, source="apple_health", unit="steps",
                granularity=None, **extra) -> HealthMetricIn:
    return HealthMetricIn(
        metric_type=metric_type,
        value=value,
        unit=unit,
        recorded_at=recorded_at or datetime.datetime(2026, 2, 17, 15, 0, tzinfo=UTC),
        source=source,
        metadata={"granularity": granularity} if granularity else {},
        **extra,
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def repository(store):
    return FakeRepository(store)


@pytest.fixture
def session(store):
    return FakeSession(store)


@pytest.fixture
def sleeps():
    """Records backoff delays instead of sleeping."""
    return []


@pytest.fixture(name="make_metric")
def make_metric_fixture():
    return make_metric


@pytest.fixture(name="deadlock_error")
def deadlock_error_fixture():
    return deadlock_error


@pytest.fixture(name="check_violation")
def check_violation_fixture():
    return check_violation
