"""
Tests for the redirect check route.

Runs against the example rule set loaded through the import route.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from redirector.adapters.memory_store import InMemoryRuleStore
from redirector.api.deps import get_rule_store
from redirector.core.ports.store import StoreError

from tests.conftest import NOW

CHECK_PATH = "/p/shoes/"
CHECK_RESULT = "/shop/shoes/v1?id=1236"


class UnavailableRuleStore(InMemoryRuleStore):
    def search(self, conditions):
        raise StoreError("database is locked")


class TestCheckRedirect:
    def test_query_parameter(self, loaded_client: TestClient) -> None:
        resp = loaded_client.get("/checkredirect", params={"path": CHECK_PATH})

        assert resp.status_code == 200
        data = resp.json()
        assert data["redirectURL"] == CHECK_RESULT
        assert data["statusCode"] == 301
        assert data["path"] == CHECK_PATH
        assert data["id"]

    def test_path_header(self, loaded_client: TestClient) -> None:
        resp = loaded_client.get("/checkredirect", headers={"Path": CHECK_PATH})

        assert resp.status_code == 200
        assert resp.json()["redirectURL"] == CHECK_RESULT

    def test_path_segment(self, loaded_client: TestClient) -> None:
        resp = loaded_client.get("/checkredirect/p/shoes/")

        assert resp.status_code == 200
        assert resp.json()["redirectURL"] == CHECK_RESULT

    def test_query_parameter_beats_header(self, loaded_client: TestClient) -> None:
        resp = loaded_client.get(
            "/checkredirect",
            params={"path": "/p/hats"},
            headers={"Path": CHECK_PATH},
        )

        assert resp.json()["redirectURL"] == "/shop/hats/v1?id=1238"

    def test_not_found_query(self, loaded_client: TestClient) -> None:
        resp = loaded_client.get("/checkredirect", params={"path": "xxx"})

        assert resp.status_code == 404
        assert resp.json() == {"detail": "Not found"}

    def test_not_found_header(self, loaded_client: TestClient) -> None:
        resp = loaded_client.get("/checkredirect", headers={"Path": "xxx"})
        assert resp.status_code == 404

    def test_missing_path(self, loaded_client: TestClient) -> None:
        assert loaded_client.get("/checkredirect").status_code == 400

    @pytest.mark.parametrize("bad_path", ["http://[::1/x", "http://example.com:abc/x"])
    def test_malformed_url(self, loaded_client: TestClient, bad_path: str) -> None:
        resp = loaded_client.get("/checkredirect", params={"path": bad_path})
        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("Path is not a valid URL")

    def test_optional_fields_omitted(self, loaded_client: TestClient) -> None:
        data = loaded_client.get("/checkredirect", params={"path": "/p/hats"}).json()
        assert "utcStartTime" not in data
        assert "operations" not in data


class TestCheckRedirectParameters:
    def test_ignore_slash(self, loaded_client: TestClient) -> None:
        assert loaded_client.get("/checkredirect", params={"path": "/p/shoes"}).status_code == 404

        resp = loaded_client.get("/checkredirect", params={"path": "/p/shoes", "si": "1"})
        assert resp.status_code == 200
        assert resp.json()["redirectURL"] == CHECK_RESULT

    def test_host_parameter(self, loaded_client: TestClient) -> None:
        bound = loaded_client.get("/checkredirect", params={"path": "/p/jackets", "h": "www.example.com"})
        agnostic = loaded_client.get("/checkredirect", params={"path": "/p/jackets"})

        assert bound.json()["redirectURL"] == "/shop/jackets/v1?id=1240"
        assert agnostic.json()["redirectURL"] == "/shop/jackets/v1?id=1241"

    def test_host_from_absolute_path(self, loaded_client: TestClient) -> None:
        resp = loaded_client.get("/checkredirect", params={"path": "https://store.example.com/p/gloves"})
        assert resp.status_code == 200
        assert resp.json()["host"] == "store.example.com"

        assert loaded_client.get("/checkredirect", params={"path": "/p/gloves"}).status_code == 404

    def test_host_only_parameter(self, loaded_client: TestClient) -> None:
        params = {"path": "/p/hats", "h": "www.example.com"}
        assert loaded_client.get("/checkredirect", params=params).status_code == 200
        assert loaded_client.get("/checkredirect", params={**params, "ho": "1"}).status_code == 404

    def test_version_parameter(self, loaded_client: TestClient) -> None:
        assert loaded_client.get("/checkredirect", params={"path": "/p/umbrellas"}).status_code == 404

        resp = loaded_client.get("/checkredirect", params={"path": "/p/umbrellas", "v": "2"})
        assert resp.status_code == 200
        assert resp.json()["version"] == 2

    def test_time_parameter(self, loaded_client: TestClient) -> None:
        params = {"path": "/p/boots"}
        assert loaded_client.get("/checkredirect", params=params).status_code == 200
        assert loaded_client.get("/checkredirect", params={**params, "t": "1600000000"}).status_code == 404
        assert loaded_client.get("/checkredirect", params={**params, "t": "1900000000"}).status_code == 200
        assert loaded_client.get("/checkredirect", params={**params, "t": "1900000001"}).status_code == 404

    def test_match_query_string(self, loaded_client: TestClient) -> None:
        params = {"path": "/p/sale?season=summer"}
        assert loaded_client.get("/checkredirect", params=params).status_code == 404

        resp = loaded_client.get("/checkredirect", params={**params, "qs": "m"})
        assert resp.status_code == 200
        assert resp.json()["redirectURL"] == "/sale/summer"

    def test_filter_operation(self, loaded_client: TestClient) -> None:
        resp = loaded_client.get(
            "/checkredirect",
            params={"path": "/p/belts?utm_source=news&color=red&utm_medium=mail"},
        )
        assert resp.json()["redirectURL"] == "/shop/belts/v1?color=red"

    def test_preserve_operation(self, loaded_client: TestClient) -> None:
        resp = loaded_client.get("/checkredirect", params={"path": "/p/scarves?size=m"})
        assert resp.json()["redirectURL"] == "/shop/scarves/v1?id=1243?size=m"

    def test_regex_rule(self, loaded_client: TestClient) -> None:
        resp = loaded_client.get("/checkredirect", params={"path": "/blog/42/hello"})
        assert resp.status_code == 200
        assert resp.json()["redirectURL"] == "/articles/42"


class TestLastAccessed:
    def test_access_recorded(self, loaded_client: TestClient) -> None:
        rule_id = loaded_client.get("/checkredirect", params={"path": CHECK_PATH}).json()["id"]

        stored = loaded_client.get(f"/rule/{rule_id}").json()

        assert stored["lastAccessed"] == NOW * 1000


class TestRuleWindowUpdates:
    def test_put_window_controls_visibility(self, loaded_client: TestClient) -> None:
        rule_id = loaded_client.get("/checkredirect", params={"path": CHECK_PATH}).json()["id"]
        hour = 3600
        body = {
            "path": CHECK_PATH,
            "redirectURL": CHECK_RESULT,
            "host": "",
            "version": 0,
            "statusCode": 301,
        }

        resp = loaded_client.put(
            f"/rule/{rule_id}",
            json={**body, "utcStartTime": NOW - hour, "utcEndTime": NOW + hour},
        )
        assert resp.status_code == 204
        assert loaded_client.get("/checkredirect", params={"path": CHECK_PATH}).status_code == 200

        resp = loaded_client.put(
            f"/rule/{rule_id}",
            json={**body, "utcStartTime": NOW + hour, "utcEndTime": NOW + 2 * hour},
        )
        assert resp.status_code == 204
        assert loaded_client.get("/checkredirect", params={"path": CHECK_PATH}).status_code == 404


class TestStoreFailure:
    def test_store_error_is_503(self, app) -> None:
        app.dependency_overrides[get_rule_store] = lambda: UnavailableRuleStore()
        client = TestClient(app, raise_server_exceptions=False)

        resp = client.get("/checkredirect", params={"path": CHECK_PATH})

        assert resp.status_code == 503
        assert resp.json() == {"detail": "Store unavailable"}
