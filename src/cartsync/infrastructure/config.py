"""Runtime settings, read from the environment (and an optional .env file)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Resolve paths relative to the project root.
# When installed in editable mode the project root is the repo root.
ROOT_DIR = Path(__file__).resolve().parents[3]


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    v = _get_env(*keys)
    return default if v is None else int(v)


def _get_float(*keys: str, default: float) -> float:
    v = _get_env(*keys)
    return default if v is None else float(v)


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    snapshot_max_age_days: int
    max_retries: int
    retry_base_delay: float
    retry_max_delay: float
    log_level: str

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / "cart.json"

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / "products.json"


def load_settings() -> Settings:
    load_dotenv(dotenv_path=ROOT_DIR / ".env")
    return Settings(
        data_dir=Path(_get_env("CARTSYNC_DATA_DIR", default=str(ROOT_DIR / "data")) or "data"),
        snapshot_max_age_days=_get_int("CARTSYNC_SNAPSHOT_MAX_AGE_DAYS", default=7),
        max_retries=_get_int("CARTSYNC_MAX_RETRIES", default=3),
        retry_base_delay=_get_float("CARTSYNC_RETRY_BASE_DELAY", default=1.0),
        retry_max_delay=_get_float("CARTSYNC_RETRY_MAX_DELAY", default=30.0),
        log_level=(_get_env("CARTSYNC_LOG_LEVEL", default="WARNING") or "WARNING").upper(),
    )
