"""Runtime settings, read from the environment (and a local ``.env`` file)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from fleetflow.config.constants import DEFAULT_DATA_DIR, DEFAULT_INSIGHT_MODEL


@dataclass(frozen=True)
class Settings:
    """Where data lives and how the insight model is reached."""

    data_dir: Path
    namespace: str = ""
    api_key: Optional[str] = None     # None disables AI insights
    model: str = DEFAULT_INSIGHT_MODEL

    @property
    def insights_enabled(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> Settings:
        load_dotenv(env_file)
        return cls(
            data_dir=Path(os.getenv("FLEETFLOW_DATA_DIR", DEFAULT_DATA_DIR)),
            namespace=os.getenv("FLEETFLOW_NAMESPACE", ""),
            api_key=os.getenv("GROQ_API_KEY") or None,
            model=os.getenv("FLEETFLOW_MODEL", DEFAULT_INSIGHT_MODEL),
        )
