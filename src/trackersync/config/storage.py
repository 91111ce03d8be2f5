"""Canonical store configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Literal

from trackersync.domain.record import DEFAULT_RECORD_ID

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError
from .http_resilience import NO_RETRY, ResilienceConfig

APP_DIR_NAME: Final[str] = "trackersync"
DEFAULT_DB_FILENAME: Final[str] = "trackersync.db"

SUPABASE_TIMEOUT_SECONDS: Final[float] = 30.0

StoreBackend = Literal["supabase", "sqlalchemy"]


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def database_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


@dataclass(frozen=True, slots=True)
class SupabaseConfig:
    url: str
    service_key: str
    resilience: ResilienceConfig

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1/"


@dataclass(frozen=True, slots=True)
class StoreConfig:
    """Which canonical store backend to use and under which record identity."""

    backend: StoreBackend
    record_id: str = DEFAULT_RECORD_ID
    supabase: SupabaseConfig | None = None
    database: DatabaseConfig | None = None


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("TRACKERSYNC_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        return DatabaseConfig(uri=env_uri)
    storage_config = storage or get_storage_config()
    return DatabaseConfig(uri=storage_config.database_uri())


def get_supabase_config(*, resilience: ResilienceConfig | None = None) -> SupabaseConfig:
    values = require_env_vars(("SUPABASE_URL", "SUPABASE_SERVICE_KEY"))
    url = values["SUPABASE_URL"]
    service_key = values["SUPABASE_SERVICE_KEY"]
    return SupabaseConfig(
        url=url,
        service_key=service_key,
        resilience=resilience
        or ResilienceConfig(
            name="supabase",
            base_url=f"{url.rstrip('/')}/rest/v1/",
            timeout_seconds=SUPABASE_TIMEOUT_SECONDS,
            retry=NO_RETRY,
            default_headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
            },
        ),
    )


def get_store_config() -> StoreConfig:
    """Resolve the store backend from the environment.

    ``TRACKERSYNC_STORE`` selects the backend explicitly; otherwise Supabase is
    used when ``SUPABASE_URL`` is set and a local SQLAlchemy database when not.
    """

    record_id = optional_env_var("TRACKERSYNC_RECORD_ID", DEFAULT_RECORD_ID) or DEFAULT_RECORD_ID
    backend = optional_env_var("TRACKERSYNC_STORE")
    if backend is None:
        backend = "supabase" if optional_env_var("SUPABASE_URL") else "sqlalchemy"
    if backend == "supabase":
        return StoreConfig(backend="supabase", record_id=record_id, supabase=get_supabase_config())
    if backend == "sqlalchemy":
        return StoreConfig(
            backend="sqlalchemy",
            record_id=record_id,
            database=get_database_config(),
        )
    raise ConfigurationError(f"Unsupported store backend: {backend}")
