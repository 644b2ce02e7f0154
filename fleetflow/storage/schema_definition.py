"""PyArrow schema for the exported trip ledger."""

import pyarrow as pa

TRIP_COLUMNS = [
    "id", "truck_id", "driver_id", "origin", "destination", "date",
    "distance", "fuel_consumed", "revenue",
    "cost_fuel", "cost_driver_pay", "cost_tolls", "cost_other", "completed",
]


def build_trip_schema() -> pa.Schema:
    """Build the PyArrow schema for trip ledger Parquet files.

    14 columns:
    - 5 identity/route strings (id, truck_id, driver_id, origin, destination)
    - 1 UTC timestamp (date, millisecond precision)
    - 7 money/distance values (float64)
    - 1 completed flag
    """
    fields = []

    for col in ["id", "truck_id", "driver_id", "origin", "destination"]:
        fields.append(pa.field(col, pa.string()))

    fields.append(pa.field("date", pa.timestamp("ms", tz="UTC")))

    for col in ["distance", "fuel_consumed", "revenue",
                "cost_fuel", "cost_driver_pay", "cost_tolls", "cost_other"]:
        fields.append(pa.field(col, pa.float64()))

    fields.append(pa.field("completed", pa.bool_()))

    return pa.schema(fields)


TRIP_SCHEMA = build_trip_schema()
