"""
Tests for the in-memory store adapters and clocks.
"""

from __future__ import annotations

import pytest

from redirector.adapters.clock import FixedClock, SystemClock
from redirector.adapters.memory_store import condition_matches, record_matches
from redirector.core.entities import HostConfig, RedirectRule, VersionConfig
from redirector.core.ports.store import Comparator, Condition, StoreError, any_of, between, equals, greater_than


def make_rule(path: str, **fields) -> RedirectRule:
    return RedirectRule(path=path, redirect_url="/t", **fields)


class TestConditions:
    def test_equals(self) -> None:
        assert condition_matches(make_rule("/a"), equals("path", "/a"))
        assert not condition_matches(make_rule("/a"), equals("path", "/b"))

    def test_equals_none(self) -> None:
        assert condition_matches(make_rule("/a"), equals("utc_start_time", None))

    def test_greater_than_skips_missing_values(self) -> None:
        assert not condition_matches(make_rule("/a"), greater_than("utc_start_time", 0))
        assert condition_matches(make_rule("/a", utc_start_time=5), greater_than("utc_start_time", 0))

    def test_between_inclusive(self) -> None:
        rule = make_rule("/a", version=3)
        assert condition_matches(rule, between("version", 3, 4))
        assert condition_matches(rule, between("version", 1, 3))
        assert not condition_matches(rule, between("version", 4, 5))

    def test_between_requires_pair(self) -> None:
        with pytest.raises(ValueError):
            Condition("version", 3, Comparator.BETWEEN)

    def test_unknown_attribute(self) -> None:
        with pytest.raises(StoreError):
            condition_matches(make_rule("/a"), equals("nope", 1))

    def test_any_of_group(self) -> None:
        group = any_of(equals("path", "/a"), equals("path", "/a/"))
        assert record_matches(make_rule("/a/"), [group])
        assert not record_matches(make_rule("/b"), [group])
        assert not record_matches(make_rule("/a"), [group, equals("version", 9)])


class TestInMemoryRuleStore:
    def test_insert_assigns_id(self, rule_store) -> None:
        saved = rule_store.insert(make_rule("/a"))
        assert saved.id

    def test_search_returns_copies(self, rule_store) -> None:
        saved = rule_store.insert(make_rule("/a"))

        (found,) = rule_store.search([equals("id", saved.id)])
        found.redirect_url = "/mutated"

        assert rule_store.get(saved.id).redirect_url == "/t"

    def test_search_order(self, rule_store) -> None:
        for path in ["/c", "/a", "/b"]:
            rule_store.insert(make_rule(path))
        assert [r.path for r in rule_store.search([])] == ["/c", "/a", "/b"]

    def test_patch_and_update(self, rule_store) -> None:
        saved = rule_store.insert(make_rule("/a"))

        rule_store.patch(saved.id, {"last_accessed": 42})
        assert rule_store.get(saved.id).last_accessed == 42

        rule_store.update(saved.model_copy(update={"path": "/z"}))
        assert rule_store.get(saved.id).path == "/z"

    def test_missing_rule_errors(self, rule_store) -> None:
        assert rule_store.get("missing") is None
        with pytest.raises(StoreError):
            rule_store.patch("missing", {"last_accessed": 1})
        with pytest.raises(StoreError):
            rule_store.update(make_rule("/a", id="missing"))

    def test_delete_all(self, rule_store) -> None:
        rule_store.insert(make_rule("/a"))
        assert rule_store.delete_all() == 1
        assert rule_store.count() == 0


class TestInMemoryPolicyStores:
    def test_host_upsert(self, host_store) -> None:
        host_store.insert(HostConfig(host="a.example.com", host_only=True))
        host_store.insert(HostConfig(host="a.example.com"))
        assert list(host_store.search([])) == [HostConfig(host="a.example.com", host_only=False)]

    def test_versions(self, version_store) -> None:
        version_store.insert(VersionConfig(active_version=2))
        assert [v.active_version for v in version_store.search([])] == [2]
        assert version_store.delete_all() == 1


class TestClocks:
    def test_system_clock_units(self) -> None:
        clock = SystemClock()
        seconds = clock.now_epoch()
        millis = clock.now_millis()
        assert millis // 1000 >= seconds

    def test_fixed_clock(self) -> None:
        clock = FixedClock(100)
        assert clock.now_epoch() == 100
        assert clock.now_millis() == 100_000

        clock.advance(5)
        assert clock.now_epoch() == 105
        assert clock.now_utc().timestamp() == 105
