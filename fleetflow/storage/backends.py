"""Key-value backends the local store persists through.

A backend maps string keys to serialized string values. Reads of a missing
key return ``None``; writes either succeed or raise ``StorageWriteError``.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from fleetflow.errors import StorageWriteError

logger = logging.getLogger(__name__)


class MemoryBackend:
    """Process-local backend, mainly for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def keys(self):
        return sorted(self._data)


class JsonFileBackend:
    """Durable backend: one ``<key>.json`` file per key inside ``data_dir``.

    Files survive across runs and never expire. There is no locking, so two
    processes writing the same key race and the last writer wins.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {path}: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        """Write through a temp file in ``data_dir`` so a reader never sees a partial file."""
        path = self._path(key)
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.data_dir,
                prefix=f".{key}.", suffix=".tmp", delete=False,
            ) as f:
                tmp_name = f.name
                f.write(value + "\n")
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise StorageWriteError(key, str(e)) from e

    def keys(self):
        if not self.data_dir.exists():
            return []
        return sorted(p.stem for p in self.data_dir.glob("*.json"))
