from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from redirector.adapters.clock import FixedClock
from redirector.adapters.memory_store import (
    InMemoryHostStore,
    InMemoryRuleStore,
    InMemoryVersionStore,
)
from redirector.adapters.sqlite.migrator import SQLiteMigrator
from redirector.api.deps import (
    get_clock,
    get_host_store,
    get_importer_config,
    get_resolver_config,
    get_rule_store,
    get_version_store,
)
from redirector.api.main import install_error_handlers
from redirector.api.routes import admin, checkredirect, redirect
from redirector.components.ingest import ImporterConfig
from redirector.components.redirects import ResolverConfig
from redirector.core.entities import RedirectRule

NOW = 1_750_000_000
DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@pytest.fixture
def rule_store() -> InMemoryRuleStore:
    return InMemoryRuleStore()


@pytest.fixture
def host_store() -> InMemoryHostStore:
    return InMemoryHostStore()


@pytest.fixture
def version_store() -> InMemoryVersionStore:
    return InMemoryVersionStore()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def add_rule(rule_store: InMemoryRuleStore) -> Callable[..., RedirectRule]:
    """Insert a rule into the in-memory rule store and return the stored copy."""

    def _add(path: str, redirect_url: str, **fields: Any) -> RedirectRule:
        return rule_store.insert(RedirectRule(path=path, redirect_url=redirect_url, **fields))

    return _add


@pytest.fixture
def example_csv() -> str:
    return (DATA_DIR / "example.csv").read_text(encoding="utf-8")


@pytest.fixture
def example_json() -> str:
    return (DATA_DIR / "example.json").read_text(encoding="utf-8")


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Path to a freshly migrated SQLite database."""
    path = str(tmp_path / "redirector.db")
    SQLiteMigrator(path).run_migrations()
    return path


@pytest.fixture
def app(rule_store, host_store, version_store, clock) -> FastAPI:
    """API app wired to in-memory stores and a fixed clock."""
    app = FastAPI()
    app.include_router(checkredirect.router)
    app.include_router(redirect.router)
    app.include_router(admin.router)
    install_error_handlers(app)

    app.dependency_overrides[get_rule_store] = lambda: rule_store
    app.dependency_overrides[get_host_store] = lambda: host_store
    app.dependency_overrides[get_version_store] = lambda: version_store
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_resolver_config] = lambda: ResolverConfig()
    app.dependency_overrides[get_importer_config] = lambda: ImporterConfig()
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def loaded_client(client: TestClient, example_csv: str) -> TestClient:
    """Client whose store holds the example rules."""
    resp = client.post("/redirect", content=example_csv, headers={"Content-Type": "text/csv"})
    assert resp.status_code == 200
    return client
