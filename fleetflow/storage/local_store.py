"""Namespaced CRUD over the five entity collections.

Each collection lives under its own key as a plain JSON array of records.
Writes are whole-array read-modify-write round trips with no locking or
versioning; the store assumes a single writer.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from fleetflow.config.constants import DEFAULT_DRIVERS, DEFAULT_REPORTS, STORAGE_KEYS
from fleetflow.fleet.entities import (
    Driver,
    MaintenanceRecord,
    Report,
    Trip,
    Truck,
    format_timestamp,
)

logger = logging.getLogger(__name__)

E = TypeVar("E")


def _record_id(record: Any) -> Optional[str]:
    # Decoders stringify ids, so match on the same form
    if not isinstance(record, dict) or record.get("id") is None:
        return None
    return str(record["id"])


class Collection(Generic[E]):
    """One entity collection stored under a single key."""

    def __init__(self, backend, key: str, decode: Callable[[Dict[str, Any]], E]):
        self.backend = backend
        self.key = key
        self._decode = decode

    def _read_records(self) -> List[Dict[str, Any]]:
        """Raw stored records; missing or unparseable data reads as empty."""
        raw = self.backend.get(self.key)
        if not raw:
            return []
        try:
            records = json.loads(raw)
        except (ValueError, RecursionError) as e:
            logger.warning(f"Ignoring corrupt data under '{self.key}': {e}")
            return []
        if not isinstance(records, list):
            logger.warning(
                f"Ignoring '{self.key}': expected a JSON array, got {type(records).__name__}"
            )
            return []
        return records

    def write_records(self, records: Sequence[Dict[str, Any]]) -> None:
        self.backend.set(self.key, json.dumps(list(records)))

    def get_all(self) -> List[E]:
        """Decode every readable record, skipping ones that fail to decode."""
        entities = []
        for record in self._read_records():
            try:
                entities.append(self._decode(record))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping unreadable record in '{self.key}': {e}")
        return entities

    def is_empty(self) -> bool:
        return not self._read_records()

    def upsert(self, entity) -> None:
        """Replace the record with the same id in place, or append it."""
        records = self._read_records()
        record = entity.to_dict()
        for i, existing in enumerate(records):
            if _record_id(existing) == entity.id:
                records[i] = record
                break
        else:
            records.append(record)
        self.write_records(records)
        logger.debug(f"Upserted {entity.id} into '{self.key}' ({len(records)} records)")

    def remove(self, entity_id: str) -> None:
        records = self._read_records()
        kept = [r for r in records if _record_id(r) != entity_id]
        self.write_records(kept)
        logger.debug(f"Removed {len(records) - len(kept)} record(s) with id {entity_id} from '{self.key}'")

    def replace_all(self, entities: Sequence) -> None:
        self.write_records([e.to_dict() for e in entities])


class LocalStore:
    """Explicit store object over an injected key-value backend.

    Construct one per application instance and pass it to whatever needs it.
    """

    def __init__(self, backend, namespace: str = ""):
        self.backend = backend
        self.namespace = namespace

        self.trucks: Collection[Truck] = Collection(backend, self._key("trucks"), Truck.from_dict)
        self.trips: Collection[Trip] = Collection(backend, self._key("trips"), Trip.from_dict)
        self.drivers: Collection[Driver] = Collection(backend, self._key("drivers"), Driver.from_dict)
        self.reports: Collection[Report] = Collection(backend, self._key("reports"), Report.from_dict)
        self.maintenance: Collection[MaintenanceRecord] = Collection(
            backend, self._key("maintenance"), MaintenanceRecord.from_dict,
        )

    def _key(self, collection: str) -> str:
        key = STORAGE_KEYS[collection]
        return f"{self.namespace}.{key}" if self.namespace else key

    def seed(self, default_trucks: Sequence[Truck], now: Optional[datetime] = None) -> List[str]:
        """Fill each empty collection with its defaults.

        Trucks, drivers and reports are checked independently. Collections that
        already hold records are left untouched. Returns the names of the
        collections that were seeded.
        """
        seeded = []

        if self.trucks.is_empty():
            self.trucks.replace_all(default_trucks)
            seeded.append("trucks")

        if self.drivers.is_empty():
            self.drivers.write_records([dict(d) for d in DEFAULT_DRIVERS])
            seeded.append("drivers")

        if self.reports.is_empty():
            stamp = format_timestamp(now or datetime.now(timezone.utc))
            self.reports.write_records([{**r, "date": stamp} for r in DEFAULT_REPORTS])
            seeded.append("reports")

        if seeded:
            logger.info(f"Seeded default data: {', '.join(seeded)}")
        return seeded
