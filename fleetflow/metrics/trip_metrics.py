"""Time-range trip filtering and derived dashboard metrics.

Everything here is a pure function of its arguments. The only notion of
"now" is the explicit ``now`` parameter.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from fleetflow.config.constants import (
    DEMO_REVENUE_SERIES,
    HEALTH_ALERT_THRESHOLD,
    TIME_RANGE_LABELS,
    TIME_RANGE_WINDOWS_MS,
)
from fleetflow.fleet.entities import Trip, Truck, TruckStatus
from fleetflow.storage.schema_definition import TRIP_COLUMNS

logger = logging.getLogger(__name__)


class TimeRange(str, Enum):
    LAST_24_HOURS = "24h"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"

    @property
    def window(self) -> timedelta:
        return timedelta(milliseconds=TIME_RANGE_WINDOWS_MS[self.value])

    @property
    def window_millis(self) -> int:
        return TIME_RANGE_WINDOWS_MS[self.value]

    @property
    def label(self) -> str:
        return TIME_RANGE_LABELS[self.value]


@dataclass(frozen=True)
class FleetMetrics:
    """Figures shown for the selected time range."""

    revenue: float
    avg_fuel_cost_per_distance: str   # 2 decimal places
    trip_count: int

    @property
    def display_revenue(self) -> str:
        if float(self.revenue).is_integer():
            return f"{self.revenue:,.0f}"
        return f"{self.revenue:,.2f}"


@dataclass(frozen=True)
class Profitability:
    revenue: float
    costs: float
    profit: float


def _as_utc(ts: datetime) -> datetime:
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts


def filter_by_range(trips: Sequence[Trip], time_range, now: datetime) -> List[Trip]:
    """Keep trips whose date lies within the window on either side of ``now``.

    The distance is absolute, so future-dated trips inside the window are
    kept as well. Trips whose date cannot be parsed are dropped.
    """
    window = TimeRange(time_range).window
    now = _as_utc(now)

    kept = []
    for trip in trips:
        try:
            ts = trip.timestamp
        except ValueError:
            logger.debug(f"Trip {trip.id} has unparseable date {trip.date!r}")
            continue
        if abs(now - ts) <= window:
            kept.append(trip)
    return kept


def aggregate(trips: Sequence[Trip]) -> FleetMetrics:
    """Sum revenue, average fuel cost per distance unit, and count trips."""
    revenue = float(np.sum([t.revenue for t in trips])) if trips else 0.0
    distance = float(np.sum([t.distance for t in trips])) if trips else 0.0
    fuel_cost = float(np.sum([t.costs.fuel for t in trips])) if trips else 0.0

    avg_fuel = f"{fuel_cost / distance:.2f}" if distance > 0 else "0.00"

    return FleetMetrics(
        revenue=revenue,
        avg_fuel_cost_per_distance=avg_fuel,
        trip_count=len(trips),
    )


def fleet_profitability(trips: Sequence[Trip]) -> Profitability:
    """Revenue counts completed trips only; costs count every trip."""
    revenue = float(np.sum([t.revenue for t in trips if t.completed])) if trips else 0.0
    costs = float(np.sum([t.costs.operating_total for t in trips])) if trips else 0.0
    return Profitability(revenue=revenue, costs=costs, profit=revenue - costs)


def active_truck_count(trucks: Sequence[Truck]) -> int:
    return sum(1 for t in trucks if t.status == TruckStatus.ACTIVE)


def health_alert_count(trucks: Sequence[Truck], threshold: float = HEALTH_ALERT_THRESHOLD) -> int:
    """Trucks whose health score is below ``threshold``."""
    return sum(1 for t in trucks if t.health_score < threshold)


def trips_frame(trips: Sequence[Trip]) -> pd.DataFrame:
    """Flatten trips (costs expanded into columns) into a DataFrame."""
    rows = []
    for t in trips:
        rows.append({
            "id": t.id,
            "truck_id": t.truck_id,
            "driver_id": t.driver_id,
            "origin": t.origin,
            "destination": t.destination,
            "date": t.date,
            "distance": float(t.distance),
            "fuel_consumed": float(t.fuel_consumed),
            "revenue": float(t.revenue),
            "cost_fuel": float(t.costs.fuel),
            "cost_driver_pay": float(t.costs.driver_pay),
            "cost_tolls": float(t.costs.tolls),
            "cost_other": float(t.costs.other),
            "completed": bool(t.completed),
        })
    df = pd.DataFrame(rows, columns=TRIP_COLUMNS)
    df["date"] = pd.to_datetime(df["date"], utc=True, errors="coerce", format="ISO8601")
    return df


def revenue_series(trips: Sequence[Trip]) -> List[Dict]:
    """Monthly revenue, cost and profit rows for the revenue chart.

    Falls back to the built-in demo series when no trip has a usable date.
    """
    df = trips_frame(trips).dropna(subset=["date"]).copy()
    if df.empty:
        return [dict(row) for row in DEMO_REVENUE_SERIES]

    df["cost"] = df["cost_fuel"] + df["cost_driver_pay"] + df["cost_tolls"]
    df["month"] = df["date"].dt.tz_localize(None).dt.to_period("M")
    monthly = df.groupby("month")[["revenue", "cost"]].sum().sort_index()

    single_year = len({p.year for p in monthly.index}) == 1
    fmt = "%b" if single_year else "%b %Y"

    series = []
    for period, row in monthly.iterrows():
        series.append({
            "name": period.strftime(fmt),
            "revenue": float(row["revenue"]),
            "cost": float(row["cost"]),
            "profit": float(row["revenue"] - row["cost"]),
        })
    return series
