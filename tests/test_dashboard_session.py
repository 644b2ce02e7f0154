"""Tests for the dashboard session over a local store."""

import asyncio
import json
from datetime import timedelta

import pytest

from fleetflow.config.constants import FAILED_INSIGHT, STORAGE_KEYS
from fleetflow.dashboard.session import (
    CONFIRM_REMOVE_REPORT,
    CONFIRM_REMOVE_TRUCK,
    FleetDashboard,
)
from fleetflow.errors import StorageWriteError
from fleetflow.insights.insight_service import InsightService
from fleetflow.storage.backends import MemoryBackend
from fleetflow.storage.local_store import LocalStore

from conftest import make_trip


class FailingBackend(MemoryBackend):
    """Accepts reads; rejects writes once ``fail`` is switched on."""

    def __init__(self):
        super().__init__()
        self.fail = False

    def set(self, key, value):
        if self.fail:
            raise StorageWriteError(key, "quota exceeded")
        super().set(key, value)


class RecordingInsights(InsightService):
    def __init__(self):
        super().__init__(api_key=None)
        self.payloads = []

    async def get_insights(self, payload):
        self.payloads.append(payload)
        return {"summary": "ok", "warnings": [], "recommendations": []}


class RaisingInsights(InsightService):
    def __init__(self):
        super().__init__(api_key=None)

    async def get_insights(self, payload):
        raise RuntimeError("connection reset")


def _yes(message):
    return True


def _no(message):
    return False


@pytest.fixture
def dashboard(store, now):
    dash = FleetDashboard(store, insight_service=RecordingInsights(), clock=lambda: now)
    dash.load()
    return dash


class TestLoad:
    def test_load_seeds_and_reads(self, dashboard, fleet):
        assert dashboard.loaded
        assert dashboard.trucks == fleet
        assert len(dashboard.drivers) == 2
        assert len(dashboard.reports) == 1
        assert dashboard.trips == []

    def test_load_keeps_existing_data(self, store, now):
        store.trips.upsert(make_trip("t1", timedelta(hours=2)))
        dash = FleetDashboard(store, clock=lambda: now)
        dash.load()
        dash.load()
        assert [t.id for t in dash.trips] == ["t1"]
        assert len(dash.trucks) == 5


class TestMutations:
    def test_add_trip_writes_through(self, dashboard, store):
        trip = dashboard.add_trip("1", "drv1", "Lyon", "Paris", 465, 2500)
        assert dashboard.trips == [trip]
        assert store.trips.get_all() == [trip]
        assert trip.costs.fuel == pytest.approx(279)

    def test_upsert_truck_edit(self, dashboard):
        edited = dashboard.upsert_truck("TRK002", "FLT-222", "Scania R500", 2021, "Diesel",
                                        35000, "Idle", editing_id="2")
        assert len(dashboard.trucks) == 5
        assert dashboard.find_truck("2") == edited
        assert edited.health_score == 78

    def test_upsert_truck_create(self, dashboard):
        truck = dashboard.upsert_truck("TRK006", "FLT-606", "DAF XF", 2024, "Diesel", 38000, "Active")
        assert dashboard.trucks[-1] == truck

    def test_remove_truck_requires_confirmation(self, dashboard):
        asked = []

        def decline(message):
            asked.append(message)
            return False

        assert dashboard.remove_truck("1", decline) is False
        assert asked == [CONFIRM_REMOVE_TRUCK]
        assert dashboard.find_truck("1") is not None

    def test_remove_truck_no_cascade(self, dashboard, store):
        """Trips and drivers keep pointing at the removed truck."""
        dashboard.add_trip("1", "drv1", "Lyon", "Paris", 100, 900)
        assert dashboard.remove_truck("1", _yes)

        assert dashboard.find_truck("1") is None
        assert dashboard.trips[0].truck_id == "1"
        assert dashboard.drivers[0].assigned_truck_id == "1"

    def test_remove_report(self, dashboard):
        assert dashboard.remove_report("rep1", _no) is False
        assert len(dashboard.reports) == 1
        assert dashboard.remove_report("rep1", lambda m: m == CONFIRM_REMOVE_REPORT)
        assert dashboard.reports == []

    def test_upsert_report_edit(self, dashboard):
        report = dashboard.upsert_report("Fuel audit", "Financial", content="draft")
        dashboard.upsert_report("Fuel audit v2", "Financial", editing_id=report.id)
        titles = [r.title for r in dashboard.reports]
        assert titles == ["Q1 Performance Summary", "Fuel audit v2"]

    def test_add_driver_and_maintenance(self, dashboard):
        driver = dashboard.add_driver("Ann", "L-9", availability="Part-time",
                                      specializations=["Hazmat"])
        assert driver.performance_score == 100
        assert dashboard.drivers[-1] == driver

        record = dashboard.add_maintenance("3", "Brake pads", 420.0, 12050)
        assert dashboard.maintenance == [record]


class TestWriteFailures:
    def test_failed_write_surfaces_warning(self, now):
        backend = FailingBackend()
        dash = FleetDashboard(LocalStore(backend), clock=lambda: now)
        dash.load()

        backend.fail = True
        assert dash.add_trip("1", "drv1", "A", "B", 10, 100) is None
        assert dash.trips == []
        assert len(dash.warnings) == 1
        assert "quota exceeded" in dash.warnings[0]

    def test_failed_seed_still_loads(self, now):
        backend = FailingBackend()
        backend.fail = True
        dash = FleetDashboard(LocalStore(backend), clock=lambda: now)
        dash.load()
        assert dash.loaded
        assert dash.trucks == []
        assert dash.warnings


class TestMetrics:
    def test_metrics_follow_time_range(self, dashboard, backend, now):
        trips = [
            make_trip("a", timedelta(hours=1), revenue=100, distance=10, fuel_cost=6),
            make_trip("b", timedelta(days=40), revenue=500, distance=50, fuel_cost=30),
            make_trip("c", timedelta(days=3), revenue=200, distance=20, fuel_cost=10),
        ]
        backend.set(STORAGE_KEYS["trips"], json.dumps([t.to_dict() for t in trips]))
        dashboard.load()

        dashboard.set_time_range("24h")
        assert dashboard.metrics().trip_count == 1

        dashboard.set_time_range("7d")
        metrics = dashboard.metrics()
        assert metrics.revenue == 300
        assert metrics.avg_fuel_cost_per_distance == "0.53"

    def test_overview(self, dashboard):
        dashboard.add_trip("1", "drv1", "Lyon", "Paris", 100, 1500)
        overview = dashboard.overview()
        assert overview["activeTrucks"] == 3
        assert overview["totalTrucks"] == 5
        assert overview["healthAlerts"] == 1
        assert overview["revenue"] == "1,500"
        assert overview["avgFuelCostPerDistance"] == "0.60"
        assert overview["timeRangeLabel"] == "Last 30 Days"

    def test_invalid_time_range(self, dashboard):
        with pytest.raises(ValueError):
            dashboard.set_time_range("1y")


class TestInsights:
    def test_refresh_sends_current_view(self, dashboard):
        dashboard.set_time_range("7d")
        dashboard.context = "finance"
        dashboard.add_trip("1", "drv1", "Lyon", "Paris", 100, 1500)

        result = asyncio.run(dashboard.refresh_insights())

        assert result["summary"] == "ok"
        assert dashboard.insights == result
        payload = dashboard.insight_service.payloads[-1]
        assert payload["timeRange"] == "7d"
        assert payload["context"] == "finance"
        assert len(payload["filteredTrips"]) == 1
        assert payload["revenueSeries"][0]["revenue"] == 1500

    def test_no_request_without_trucks(self, now):
        insights = RecordingInsights()
        dash = FleetDashboard(LocalStore(MemoryBackend()), insight_service=insights,
                              default_trucks=[], clock=lambda: now)
        dash.load()
        assert asyncio.run(dash.refresh_insights()) is None
        assert insights.payloads == []

    def test_disabled_service_returns_placeholder(self, store, now):
        dash = FleetDashboard(store, clock=lambda: now)
        dash.load()
        result = asyncio.run(dash.refresh_insights())
        assert result["warnings"] == ["Missing API configuration"]

    def test_raising_service_falls_back(self, store, now):
        dash = FleetDashboard(store, insight_service=RaisingInsights(), clock=lambda: now)
        dash.load()

        result = asyncio.run(dash.refresh_insights())

        assert result == FAILED_INSIGHT
        assert result is not FAILED_INSIGHT
        assert dash.insights == FAILED_INSIGHT

    def test_payload_failure_falls_back(self, dashboard, monkeypatch):
        def broken_series(trips):
            raise ValueError("bad trip data")

        monkeypatch.setattr("fleetflow.dashboard.session.revenue_series", broken_series)

        assert asyncio.run(dashboard.refresh_insights()) == FAILED_INSIGHT
        assert dashboard.insight_service.payloads == []
