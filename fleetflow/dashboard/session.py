"""Dashboard session: in-memory view state over a LocalStore.

Every mutation writes through the store and then re-reads the affected
collection, so in-memory state always reflects what was persisted. A failed
write leaves the previous state in place and adds a user-visible warning.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from fleetflow.config.constants import DEFAULT_TIME_RANGE, FAILED_INSIGHT
from fleetflow.errors import StorageWriteError
from fleetflow.fleet import fleet_factory
from fleetflow.fleet.entities import Driver, MaintenanceRecord, Report, Trip, Truck
from fleetflow.insights.insight_service import InsightService, build_insight_payload
from fleetflow.metrics.trip_metrics import (
    FleetMetrics,
    TimeRange,
    active_truck_count,
    aggregate,
    filter_by_range,
    health_alert_count,
    revenue_series,
)
from fleetflow.storage.local_store import LocalStore

logger = logging.getLogger(__name__)

CONFIRM_REMOVE_TRUCK = "Are you sure you want to remove this truck?"
CONFIRM_REMOVE_REPORT = "Are you sure you want to remove this report?"

Confirm = Callable[[str], bool]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FleetDashboard:
    """Holds the collections in memory and routes form actions to the store."""

    def __init__(
        self,
        store: LocalStore,
        insight_service: Optional[InsightService] = None,
        default_trucks: Optional[Sequence[Truck]] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.insight_service = insight_service or InsightService()
        self.default_trucks = (
            list(default_trucks) if default_trucks is not None else fleet_factory.default_trucks()
        )
        self.clock = clock

        self.trucks: List[Truck] = []
        self.trips: List[Trip] = []
        self.drivers: List[Driver] = []
        self.reports: List[Report] = []
        self.maintenance: List[MaintenanceRecord] = []

        self.time_range = TimeRange(DEFAULT_TIME_RANGE)
        self.context = "overview"
        self.insights: Optional[Dict] = None
        self.warnings: List[str] = []
        self.loaded = False

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Seed empty collections, then read everything into memory."""
        try:
            self.store.seed(self.default_trucks, now=self.clock())
        except StorageWriteError as e:
            self._warn(e)
        self.trucks = self.store.trucks.get_all()
        self.trips = self.store.trips.get_all()
        self.drivers = self.store.drivers.get_all()
        self.reports = self.store.reports.get_all()
        self.maintenance = self.store.maintenance.get_all()
        self.loaded = True
        logger.info(
            f"Loaded {len(self.trucks)} trucks, {len(self.trips)} trips, "
            f"{len(self.drivers)} drivers, {len(self.reports)} reports"
        )

    def _warn(self, error: StorageWriteError) -> None:
        message = f"Changes were not saved: {error}"
        logger.error(message)
        self.warnings.append(message)

    def _persist(self, write: Callable[[], None]) -> bool:
        try:
            write()
        except StorageWriteError as e:
            self._warn(e)
            return False
        return True

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_trip(
        self,
        truck_id: str,
        driver_id: str,
        origin: str,
        destination: str,
        distance: float,
        revenue: float,
    ) -> Optional[Trip]:
        trip = fleet_factory.build_trip(
            truck_id, driver_id, origin, destination, distance, revenue, now=self.clock(),
        )
        if not self._persist(lambda: self.store.trips.upsert(trip)):
            return None
        self.trips = self.store.trips.get_all()
        return trip

    def upsert_truck(
        self,
        vin: str,
        plate: str,
        model: str,
        year: int,
        fuel_type: str,
        load_capacity: float,
        status: str,
        editing_id: Optional[str] = None,
    ) -> Optional[Truck]:
        """Create a truck, or edit the one with ``editing_id``."""
        editing = self.find_truck(editing_id) if editing_id else None
        truck = fleet_factory.build_truck(
            vin, plate, model, year, fuel_type, load_capacity, status, editing=editing,
        )
        if not self._persist(lambda: self.store.trucks.upsert(truck)):
            return None
        self.trucks = self.store.trucks.get_all()
        return truck

    def remove_truck(self, truck_id: str, confirm: Confirm) -> bool:
        """Remove a truck after confirmation. Its trips and drivers keep their references."""
        if not confirm(CONFIRM_REMOVE_TRUCK):
            return False
        if not self._persist(lambda: self.store.trucks.remove(truck_id)):
            return False
        self.trucks = self.store.trucks.get_all()
        return True

    def add_driver(
        self,
        name: str,
        license_number: str,
        assigned_truck_id: Optional[str] = None,
        license_expiry: str = "",
        years_experience: float = 0,
        specializations: Iterable[str] = (),
        availability: Optional[str] = None,
        phone_number: str = "",
        email: str = "",
    ) -> Optional[Driver]:
        driver = fleet_factory.build_driver(
            name, license_number,
            assigned_truck_id=assigned_truck_id,
            license_expiry=license_expiry,
            years_experience=years_experience,
            specializations=specializations,
            availability=availability,
            phone_number=phone_number,
            email=email,
        )
        if not self._persist(lambda: self.store.drivers.upsert(driver)):
            return None
        self.drivers = self.store.drivers.get_all()
        return driver

    def upsert_report(
        self,
        title: str,
        report_type: str,
        content: Optional[str] = None,
        editing_id: Optional[str] = None,
    ) -> Optional[Report]:
        editing = next((r for r in self.reports if r.id == editing_id), None) if editing_id else None
        report = fleet_factory.build_report(
            title, report_type, content=content, editing=editing, now=self.clock(),
        )
        if not self._persist(lambda: self.store.reports.upsert(report)):
            return None
        self.reports = self.store.reports.get_all()
        return report

    def remove_report(self, report_id: str, confirm: Confirm) -> bool:
        if not confirm(CONFIRM_REMOVE_REPORT):
            return False
        if not self._persist(lambda: self.store.reports.remove(report_id)):
            return False
        self.reports = self.store.reports.get_all()
        return True

    def add_maintenance(
        self,
        truck_id: str,
        description: str,
        cost: float,
        mileage_at_service: float,
        next_service_due: str = "",
    ) -> Optional[MaintenanceRecord]:
        record = fleet_factory.build_maintenance(
            truck_id, description, cost, mileage_at_service,
            next_service_due=next_service_due, now=self.clock(),
        )
        if not self._persist(lambda: self.store.maintenance.upsert(record)):
            return None
        self.maintenance = self.store.maintenance.get_all()
        return record

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def find_truck(self, truck_id: str) -> Optional[Truck]:
        return next((t for t in self.trucks if t.id == truck_id), None)

    def set_time_range(self, time_range: str) -> None:
        self.time_range = TimeRange(time_range)

    def filtered_trips(self, now: Optional[datetime] = None) -> List[Trip]:
        return filter_by_range(self.trips, self.time_range, now or self.clock())

    def metrics(self, now: Optional[datetime] = None) -> FleetMetrics:
        return aggregate(self.filtered_trips(now))

    def overview(self, now: Optional[datetime] = None) -> Dict:
        """Headline figures for the overview cards."""
        metrics = self.metrics(now)
        return {
            "timeRange": self.time_range.value,
            "timeRangeLabel": self.time_range.label,
            "activeTrucks": active_truck_count(self.trucks),
            "totalTrucks": len(self.trucks),
            "healthAlerts": health_alert_count(self.trucks),
            "revenue": metrics.display_revenue,
            "avgFuelCostPerDistance": metrics.avg_fuel_cost_per_distance,
            "tripCount": metrics.trip_count,
        }

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    async def refresh_insights(self, now: Optional[datetime] = None) -> Optional[Dict]:
        """Request fresh insights for the current view.

        Does nothing while there are no trucks. The result is applied to the
        session when it arrives, whatever the session state is by then.
        """
        if not self.trucks:
            return self.insights
        try:
            payload = build_insight_payload(
                trucks=self.trucks,
                drivers=self.drivers,
                revenue_series=revenue_series(self.trips),
                context=self.context,
                time_range=self.time_range.value,
                filtered_trips=self.filtered_trips(now),
            )
            self.insights = await self.insight_service.get_insights(payload)
        except Exception as e:
            logger.error(f"Insight refresh failed: {e}")
            self.insights = copy.deepcopy(FAILED_INSIGHT)
        return self.insights
