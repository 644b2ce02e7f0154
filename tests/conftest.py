"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from fleetflow.fleet.entities import Trip, TripCosts, format_timestamp
from fleetflow.fleet.fleet_factory import default_trucks
from fleetflow.storage.backends import MemoryBackend
from fleetflow.storage.local_store import LocalStore

NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_trip(trip_id: str, age: timedelta, revenue: float = 100.0,
              distance: float = 10.0, fuel_cost: float = 6.0,
              completed: bool = True, now: datetime = NOW) -> Trip:
    """A trip dated ``age`` before ``now`` (negative age dates it in the future)."""
    return Trip(
        id=trip_id,
        truck_id="1",
        driver_id="drv1",
        origin="Lyon",
        destination="Paris",
        date=format_timestamp(now - age),
        distance=distance,
        fuel_consumed=distance * 0.3,
        revenue=revenue,
        costs=TripCosts(fuel=fuel_cost, driver_pay=400.0, tolls=50.0, other=0.0),
        completed=completed,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    return LocalStore(backend)


@pytest.fixture
def fleet():
    return default_trucks()
