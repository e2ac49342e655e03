import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from redirector.adapters.clock import SystemClock
from redirector.adapters.memory_store import (
    InMemoryHostStore,
    InMemoryRuleStore,
    InMemoryVersionStore,
)
from redirector.adapters.sqlite.stores import SQLiteHostStore, SQLiteRuleStore, SQLiteVersionStore
from redirector.components.ingest import ImporterConfig
from redirector.components.redirects import ResolverConfig
from redirector.config.loader import load_config_or_default
from redirector.config.models import RedirectorConfig
from redirector.core.ports.store import HostStorePort, RuleStorePort, VersionStorePort


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.config_path = Path(os.environ.get("REDIRECTOR_CONFIG", self.base_dir / "config.yaml"))
        self.config: RedirectorConfig = load_config_or_default(self.config_path)

        data_dir = os.environ.get("REDIRECTOR_DATA_DIR")
        self.db_path = f"{data_dir}/redirector.db" if data_dir else self.config.store.db_path
        self.backend = self.config.store.backend
        self.log_level = os.environ.get("REDIRECTOR_LOG_LEVEL", self.config.logging.level)


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- In-memory backend (single process) ---
class MemoryStores:
    def __init__(self) -> None:
        self.rules = InMemoryRuleStore()
        self.hosts = InMemoryHostStore()
        self.versions = InMemoryVersionStore()


_memory_stores_instance: MemoryStores | None = None


def get_memory_stores() -> MemoryStores:
    """Get in-memory stores singleton."""
    global _memory_stores_instance
    if _memory_stores_instance is None:
        _memory_stores_instance = MemoryStores()
    return _memory_stores_instance


# --- Stores ---
def get_rule_store(settings: Settings = Depends(get_settings)) -> RuleStorePort:
    if settings.backend == "memory":
        return get_memory_stores().rules
    return SQLiteRuleStore(settings.db_path)


def get_host_store(settings: Settings = Depends(get_settings)) -> HostStorePort:
    if settings.backend == "memory":
        return get_memory_stores().hosts
    return SQLiteHostStore(settings.db_path)


def get_version_store(settings: Settings = Depends(get_settings)) -> VersionStorePort:
    if settings.backend == "memory":
        return get_memory_stores().versions
    return SQLiteVersionStore(settings.db_path)


# --- Component configuration ---
def get_resolver_config(settings: Settings = Depends(get_settings)) -> ResolverConfig:
    resolution = settings.config.resolution
    return ResolverConfig(
        default_version=resolution.default_version,
        default_host_only=resolution.default_host_only,
        last_accessed_interval_seconds=resolution.last_accessed_interval_seconds,
    )


def get_importer_config(settings: Settings = Depends(get_settings)) -> ImporterConfig:
    resolution = settings.config.resolution
    return ImporterConfig(
        default_version=resolution.default_version,
        default_status_code=resolution.default_status_code,
    )


# Time adapter for rule validity and access telemetry
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance
