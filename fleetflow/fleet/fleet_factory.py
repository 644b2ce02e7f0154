"""Builders for new entities, with the derived fields filled in at creation."""

import secrets
import string
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from fleetflow.config.constants import (
    DEFAULT_DRIVER_PAY,
    DEFAULT_OTHER_COSTS,
    DEFAULT_TOLLS,
    DEFAULT_TRUCKS,
    FUEL_CONSUMED_PER_DISTANCE,
    FUEL_COST_PER_DISTANCE,
    ID_LENGTH,
    NEW_DRIVER_PERFORMANCE_SCORE,
    NEW_TRUCK_HEALTH_SCORE,
)
from fleetflow.fleet.entities import (
    Driver,
    MaintenanceRecord,
    Report,
    Trip,
    TripCosts,
    Truck,
    format_timestamp,
)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_id() -> str:
    """Generate an opaque client-side entity id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(ID_LENGTH))


def _now_iso(now: Optional[datetime]) -> str:
    return format_timestamp(now or datetime.now(timezone.utc))


def default_trucks() -> List[Truck]:
    """The built-in demo fleet used to seed an empty store."""
    return [Truck.from_dict(t) for t in DEFAULT_TRUCKS]


def build_trip(
    truck_id: str,
    driver_id: str,
    origin: str,
    destination: str,
    distance: float,
    revenue: float,
    now: Optional[datetime] = None,
) -> Trip:
    """Create a completed trip stamped with the creation time.

    Fuel consumed and fuel cost are derived from distance here and never
    recomputed afterwards.
    """
    return Trip(
        id=new_id(),
        truck_id=truck_id,
        driver_id=driver_id,
        origin=origin,
        destination=destination,
        date=_now_iso(now),
        distance=distance,
        fuel_consumed=distance * FUEL_CONSUMED_PER_DISTANCE,
        revenue=revenue,
        costs=TripCosts(
            fuel=distance * FUEL_COST_PER_DISTANCE,
            driver_pay=DEFAULT_DRIVER_PAY,
            tolls=DEFAULT_TOLLS,
            other=DEFAULT_OTHER_COSTS,
        ),
        completed=True,
    )


def build_truck(
    vin: str,
    plate: str,
    model: str,
    year: int,
    fuel_type: str,
    load_capacity: float,
    status: str,
    editing: Optional[Truck] = None,
) -> Truck:
    """Create a truck, or a replacement for ``editing`` that keeps its id,
    health score and mileage."""
    return Truck(
        id=editing.id if editing else new_id(),
        vin=vin,
        plate=plate,
        model=model,
        year=year,
        fuel_type=fuel_type,
        load_capacity=load_capacity,
        status=status,
        health_score=editing.health_score if editing else NEW_TRUCK_HEALTH_SCORE,
        mileage=editing.mileage if editing else 0,
    )


def build_driver(
    name: str,
    license_number: str,
    assigned_truck_id: Optional[str] = None,
    license_expiry: str = "",
    years_experience: float = 0,
    specializations: Iterable[str] = (),
    availability: Optional[str] = None,
    phone_number: str = "",
    email: str = "",
) -> Driver:
    return Driver(
        id=new_id(),
        name=name,
        license_number=license_number,
        license_expiry=license_expiry,
        years_experience=years_experience,
        specializations=list(specializations),
        availability=availability,
        assigned_truck_id=assigned_truck_id or None,
        performance_score=NEW_DRIVER_PERFORMANCE_SCORE,
        phone_number=phone_number,
        email=email,
    )


def build_report(
    title: str,
    report_type: str,
    content: Optional[str] = None,
    editing: Optional[Report] = None,
    now: Optional[datetime] = None,
) -> Report:
    # Editing re-stamps the date, as the form always has
    return Report(
        id=editing.id if editing else new_id(),
        title=title,
        type=report_type,
        date=_now_iso(now),
        content=content,
    )


def build_maintenance(
    truck_id: str,
    description: str,
    cost: float,
    mileage_at_service: float,
    next_service_due: str = "",
    now: Optional[datetime] = None,
) -> MaintenanceRecord:
    return MaintenanceRecord(
        id=new_id(),
        truck_id=truck_id,
        date=_now_iso(now),
        description=description,
        cost=cost,
        mileage_at_service=mileage_at_service,
        next_service_due=next_service_due,
    )
