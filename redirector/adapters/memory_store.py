"""In-memory store adapters.

Implements RuleStorePort, HostStorePort and VersionStorePort with the same
condition semantics as the SQLite adapters. Records are kept in insertion
order, which is the iteration order of search().

Suitable for tests and single-process development.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Sequence
from typing import Any
from uuid import uuid4

from pydantic import BaseModel

from redirector.core.entities import HostConfig, RedirectRule, VersionConfig
from redirector.core.ports.store import AnyOf, Comparator, Condition, Criterion, StoreError


def condition_matches(record: BaseModel, condition: Condition) -> bool:
    """Evaluate a single condition against a record's attribute."""
    if not hasattr(record, condition.attribute):
        raise StoreError(f"Unknown attribute: {condition.attribute}")

    actual = getattr(record, condition.attribute)

    if condition.comparator is Comparator.EQUALS:
        return bool(actual == condition.value)
    if actual is None:
        return False
    if condition.comparator is Comparator.GREATER_THAN:
        return bool(actual > condition.value)
    if condition.comparator is Comparator.BETWEEN:
        low, high = condition.value
        return bool(low <= actual <= high)
    raise StoreError(f"Unsupported comparator: {condition.comparator}")


def record_matches(record: BaseModel, conditions: Sequence[Criterion]) -> bool:
    """All criteria must hold; an AnyOf group holds if any member does."""
    for criterion in conditions:
        if isinstance(criterion, AnyOf):
            if not any(condition_matches(record, c) for c in criterion.conditions):
                return False
        elif not condition_matches(record, criterion):
            return False
    return True


class _InMemoryTable:
    def __init__(self) -> None:
        self._records: list[Any] = []
        self._lock = threading.Lock()

    def _search(self, conditions: Sequence[Criterion]) -> Iterator[Any]:
        with self._lock:
            snapshot = list(self._records)
        return (r.model_copy() for r in snapshot if record_matches(r, conditions))

    def count(self) -> int:
        return len(self._records)

    def delete_all(self) -> int:
        with self._lock:
            removed = len(self._records)
            self._records.clear()
        return removed


class InMemoryRuleStore(_InMemoryTable):
    """In-memory redirect rule storage."""

    def search(self, conditions: Sequence[Criterion]) -> Iterator[RedirectRule]:
        return self._search(conditions)

    def insert(self, rule: RedirectRule) -> RedirectRule:
        stored = rule.model_copy(update={"id": rule.id or str(uuid4())})
        with self._lock:
            if any(r.id == stored.id for r in self._records):
                raise StoreError(f"Rule {stored.id} already exists")
            self._records.append(stored)
        return stored.model_copy()

    def get(self, rule_id: str) -> RedirectRule | None:
        for rule in self._search([Condition("id", rule_id)]):
            return rule
        return None

    def update(self, rule: RedirectRule) -> RedirectRule:
        if rule.id is None:
            raise StoreError("Cannot update a rule without an id")
        with self._lock:
            for index, existing in enumerate(self._records):
                if existing.id == rule.id:
                    self._records[index] = rule.model_copy()
                    return rule
        raise StoreError(f"Rule {rule.id} not found")

    def patch(self, rule_id: str, fields: dict[str, Any]) -> None:
        with self._lock:
            for index, existing in enumerate(self._records):
                if existing.id == rule_id:
                    self._records[index] = existing.model_copy(update=fields)
                    return
        raise StoreError(f"Rule {rule_id} not found")


class InMemoryHostStore(_InMemoryTable):
    """In-memory host policy storage. Inserting an existing host replaces it."""

    def search(self, conditions: Sequence[Criterion]) -> Iterator[HostConfig]:
        return self._search(conditions)

    def insert(self, config: HostConfig) -> HostConfig:
        with self._lock:
            self._records = [r for r in self._records if r.host != config.host]
            self._records.append(config.model_copy())
        return config


class InMemoryVersionStore(_InMemoryTable):
    """In-memory active version storage."""

    def search(self, conditions: Sequence[Criterion]) -> Iterator[VersionConfig]:
        return self._search(conditions)

    def insert(self, config: VersionConfig) -> VersionConfig:
        with self._lock:
            self._records.append(config.model_copy())
        return config
