"""Fleet entities and their stored (camelCase JSON) representation.

Enumerated fields are closed enums checked when an entity is built. Decoding
from storage is lenient about missing optional fields so that records written
before a field existed still load.

Foreign keys (``Trip.truck_id``, ``Trip.driver_id``, ``Driver.assigned_truck_id``,
``MaintenanceRecord.truck_id``) are plain strings. Nothing checks that the
referenced entity exists, and removing an entity never touches the records
pointing at it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from fleetflow.config.constants import SCORE_RANGE
from fleetflow.errors import InvalidEntityError


class TruckStatus(str, Enum):
    ACTIVE = "Active"
    IDLE = "Idle"
    UNDER_REPAIR = "Under Repair"
    RETIRED = "Retired"


class DriverAvailability(str, Enum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CONTRACT = "Contract"


class ReportType(str, Enum):
    FINANCIAL = "Financial"
    OPERATIONAL = "Operational"
    SAFETY = "Safety"


def _coerce_enum(enum_cls: Type[Enum], value: Any, field_name: str) -> Enum:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidEntityError(
            f"{field_name}={value!r} is not one of: {allowed}"
        ) from None


def _check_score(value: float, field_name: str) -> float:
    low, high = SCORE_RANGE
    if not low <= value <= high:
        raise InvalidEntityError(f"{field_name}={value} outside [{low}, {high}]")
    return value


def _number(data: Dict[str, Any], key: str, default: float = 0) -> Any:
    value = data.get(key)
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return value
    return float(value)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def format_timestamp(ts: datetime) -> str:
    """Format like a browser's ``Date.toISOString()`` (UTC, millisecond precision)."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


@dataclass
class Truck:
    id: str
    vin: str
    plate: str
    model: str
    year: int
    fuel_type: str
    load_capacity: float
    status: TruckStatus
    health_score: float
    mileage: float

    def __post_init__(self):
        self.status = _coerce_enum(TruckStatus, self.status, "status")
        _check_score(self.health_score, "health_score")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "vin": self.vin,
            "plate": self.plate,
            "model": self.model,
            "year": self.year,
            "fuelType": self.fuel_type,
            "loadCapacity": self.load_capacity,
            "status": self.status.value,
            "healthScore": self.health_score,
            "mileage": self.mileage,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Truck:
        return cls(
            id=str(data["id"]),
            vin=data.get("vin", ""),
            plate=data.get("plate", ""),
            model=data.get("model", ""),
            year=int(_number(data, "year")),
            fuel_type=data.get("fuelType", ""),
            load_capacity=_number(data, "loadCapacity"),
            status=data.get("status", TruckStatus.ACTIVE.value),
            health_score=_number(data, "healthScore", 100),
            mileage=_number(data, "mileage"),
        )


@dataclass
class TripCosts:
    fuel: float = 0.0
    driver_pay: float = 0.0
    tolls: float = 0.0
    other: float = 0.0

    @property
    def operating_total(self) -> float:
        """Fuel, driver pay and tolls; ``other`` is not counted as operating cost."""
        return self.fuel + self.driver_pay + self.tolls

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fuel": self.fuel,
            "driverPay": self.driver_pay,
            "tolls": self.tolls,
            "other": self.other,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> TripCosts:
        data = data or {}
        return cls(
            fuel=_number(data, "fuel"),
            driver_pay=_number(data, "driverPay"),
            tolls=_number(data, "tolls"),
            other=_number(data, "other"),
        )


@dataclass
class Trip:
    id: str
    truck_id: str
    driver_id: str
    origin: str
    destination: str
    date: str                 # creation timestamp (ISO-8601), not travel date
    distance: float
    fuel_consumed: float      # fixed at creation
    revenue: float
    costs: TripCosts = field(default_factory=TripCosts)
    completed: bool = True

    @property
    def timestamp(self) -> datetime:
        return parse_timestamp(self.date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "truckId": self.truck_id,
            "driverId": self.driver_id,
            "origin": self.origin,
            "destination": self.destination,
            "date": self.date,
            "distance": self.distance,
            "fuelConsumed": self.fuel_consumed,
            "revenue": self.revenue,
            "costs": self.costs.to_dict(),
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Trip:
        return cls(
            id=str(data["id"]),
            truck_id=data.get("truckId", ""),
            driver_id=data.get("driverId", ""),
            origin=data.get("origin", ""),
            destination=data.get("destination", ""),
            date=str(data.get("date") or ""),
            distance=_number(data, "distance"),
            fuel_consumed=_number(data, "fuelConsumed"),
            revenue=_number(data, "revenue"),
            costs=TripCosts.from_dict(data.get("costs")),
            completed=bool(data.get("completed", True)),
        )


@dataclass
class Driver:
    id: str
    name: str
    license_number: str
    license_expiry: str = ""
    years_experience: float = 0
    specializations: List[str] = field(default_factory=list)  # e.g. Hazmat, Oversize
    availability: Optional[DriverAvailability] = None
    last_background_check: Optional[str] = None
    assigned_truck_id: Optional[str] = None
    performance_score: float = 100
    phone_number: str = ""
    email: str = ""
    photo_url: Optional[str] = None

    def __post_init__(self):
        if self.availability is not None:
            self.availability = _coerce_enum(
                DriverAvailability, self.availability, "availability"
            )
        _check_score(self.performance_score, "performance_score")
        # Tags behave as a set but keep their entry order
        self.specializations = list(dict.fromkeys(self.specializations))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "photoUrl": self.photo_url,
            "licenseNumber": self.license_number,
            "licenseExpiry": self.license_expiry,
            "yearsExperience": self.years_experience,
            "specializations": list(self.specializations),
            "availability": self.availability.value if self.availability else None,
            "lastBackgroundCheck": self.last_background_check,
            "assignedTruckId": self.assigned_truck_id,
            "performanceScore": self.performance_score,
            "phoneNumber": self.phone_number,
            "email": self.email,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Driver:
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            license_number=data.get("licenseNumber", ""),
            license_expiry=data.get("licenseExpiry") or "",
            years_experience=_number(data, "yearsExperience"),
            specializations=list(data.get("specializations") or []),
            availability=data.get("availability") or None,
            last_background_check=data.get("lastBackgroundCheck"),
            assigned_truck_id=data.get("assignedTruckId") or None,
            performance_score=_number(data, "performanceScore", 100),
            phone_number=data.get("phoneNumber") or "",
            email=data.get("email") or "",
            photo_url=data.get("photoUrl"),
        )


@dataclass
class Report:
    id: str
    title: str
    type: ReportType
    date: str
    content: Optional[str] = None

    def __post_init__(self):
        self.type = _coerce_enum(ReportType, self.type, "type")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type.value,
            "date": self.date,
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Report:
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            type=data.get("type", ReportType.OPERATIONAL.value),
            date=data.get("date") or "",
            content=data.get("content"),
        )


@dataclass
class MaintenanceRecord:
    id: str
    truck_id: str
    date: str
    description: str
    cost: float
    mileage_at_service: float
    next_service_due: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "truckId": self.truck_id,
            "date": self.date,
            "description": self.description,
            "cost": self.cost,
            "mileageAtService": self.mileage_at_service,
            "nextServiceDue": self.next_service_due,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MaintenanceRecord:
        return cls(
            id=str(data["id"]),
            truck_id=data.get("truckId", ""),
            date=data.get("date") or "",
            description=data.get("description", ""),
            cost=_number(data, "cost"),
            mileage_at_service=_number(data, "mileageAtService"),
            next_service_due=data.get("nextServiceDue") or "",
        )
