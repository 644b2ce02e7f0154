"""Export the trip ledger to a Parquet file."""

import logging
from pathlib import Path
from typing import Sequence

import pyarrow as pa
import pyarrow.parquet as pq

from fleetflow.fleet.entities import Trip
from fleetflow.metrics.trip_metrics import trips_frame
from fleetflow.storage.schema_definition import TRIP_COLUMNS, TRIP_SCHEMA

logger = logging.getLogger(__name__)


class ParquetWriter:
    """Writes trip snapshots to Parquet files."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    def write_trips(self, trips: Sequence[Trip], filename: str = "trips.parquet") -> Path:
        """Write one Parquet file holding every given trip.

        Args:
            trips: Trips to export, in stored order.
            filename: Output file name inside ``output_dir``.

        Returns:
            Path to the written Parquet file.
        """
        df = trips_frame(trips)

        # Ensure column order matches schema
        df = df[TRIP_COLUMNS].copy()
        df["date"] = df["date"].dt.floor("ms")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / filename

        table = pa.Table.from_pandas(df, schema=TRIP_SCHEMA, preserve_index=False)
        pq.write_table(table, output_path, compression="snappy")

        logger.info(f"Exported {len(df)} trips to {output_path}")
        return output_path
