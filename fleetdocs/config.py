"""
Configuration from environment variables.

FLEET_STORE          yaml (default) or memory
FLEET_DATA_FILE      YAML data file for the yaml store (default fleet.yaml)
FLEET_ACTOR          identity recorded on history entries (default Admin)
FLEET_LOG_LEVEL      logging level (default INFO)
FLEET_HISTORY_LIMIT  default number of history entries listed (default 200)
FLEET_PORT           port for the web app (default 5001)
SECRET_KEY           Flask secret key
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .audit import DEFAULT_ACTOR
from .loader import YamlStore
from .service import FleetService
from .store import FleetStore, MemoryStore
from .validation import DEFAULT_HISTORY_LIMIT

STORE_CHOICES = ("yaml", "memory")


@dataclass
class Settings:
    store: str = "yaml"
    data_file: Path = Path("fleet.yaml")
    actor: str = DEFAULT_ACTOR
    log_level: str = "INFO"
    history_limit: int = DEFAULT_HISTORY_LIMIT
    port: int = 5001
    secret_key: str = "dev-secret-key-change-in-prod"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from the environment (or the given mapping)."""
    env = os.environ if environ is None else environ
    store = env.get("FLEET_STORE", "yaml").strip().lower()
    if store not in STORE_CHOICES:
        raise ValueError(
            f"FLEET_STORE must be one of {', '.join(STORE_CHOICES)}, got {store!r}"
        )
    return Settings(
        store=store,
        data_file=Path(env.get("FLEET_DATA_FILE", "fleet.yaml")),
        actor=env.get("FLEET_ACTOR", DEFAULT_ACTOR),
        log_level=env.get("FLEET_LOG_LEVEL", "INFO").upper(),
        history_limit=int(env.get("FLEET_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT)),
        port=int(env.get("FLEET_PORT", 5001)),
        secret_key=env.get("SECRET_KEY", "dev-secret-key-change-in-prod"),
    )


def make_store(settings: Settings) -> FleetStore:
    """Build the configured persistence adapter."""
    if settings.store == "memory":
        return MemoryStore()
    if settings.store == "yaml":
        return YamlStore(settings.data_file)
    raise ValueError(f"Unknown store: {settings.store!r}")


def make_service(settings: Optional[Settings] = None) -> FleetService:
    settings = settings or load_settings()
    return FleetService(
        make_store(settings),
        actor=settings.actor,
        history_limit=settings.history_limit,
    )
