"""
Store Adapter Interfaces.

Protocol-based, condition-driven access to rules, host policies and the
active version. The resolution engine and the ingestion pipeline only
ever talk to these protocols.

Key requirements:
- search() takes attribute/comparator/value conditions, ANDed together,
  optionally containing AnyOf groups (ORed)
- search() returns a fresh lazy iterator per call, in store order
- insert() assigns the id and may raise ConflictError / StoreError
- patch() is a best-effort partial update

Implementations:
1. InMemoryStore adapters (dev/test)
2. SQLite adapters (sqlite3, schema managed by SQLiteMigrator)

Uniqueness of (path, host, version) is NOT enforced by any adapter.
Callers perform read-then-write checks.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Union

from redirector.core.entities import HostConfig, RedirectRule, VersionConfig


class StoreError(Exception):
    """Storage failure (connection, query, constraint)."""


class ConflictError(StoreError):
    """Record conflicts with an existing one."""


class Comparator(str, Enum):
    """Supported comparison operators."""

    EQUALS = "equals"
    GREATER_THAN = "greater_than"
    BETWEEN = "between"


@dataclass(frozen=True)
class Condition:
    """
    Single attribute condition.

    For BETWEEN, value is an inclusive (low, high) pair.
    """

    attribute: str
    value: Any
    comparator: Comparator = Comparator.EQUALS

    def __post_init__(self) -> None:
        if self.comparator is Comparator.BETWEEN:
            if not isinstance(self.value, (tuple, list)) or len(self.value) != 2:
                raise ValueError("between requires a (low, high) value")


@dataclass(frozen=True)
class AnyOf:
    """OR group of conditions."""

    conditions: tuple[Condition, ...]


Criterion = Union[Condition, AnyOf]


def equals(attribute: str, value: Any) -> Condition:
    return Condition(attribute, value, Comparator.EQUALS)


def greater_than(attribute: str, value: Any) -> Condition:
    return Condition(attribute, value, Comparator.GREATER_THAN)


def between(attribute: str, low: Any, high: Any) -> Condition:
    return Condition(attribute, (low, high), Comparator.BETWEEN)


def any_of(*conditions: Condition) -> AnyOf:
    return AnyOf(tuple(conditions))


# -----------------------------------------------------------------------------
# Rule store
# -----------------------------------------------------------------------------


class RuleStorePort(Protocol):
    """Redirect rule storage."""

    def search(self, conditions: Sequence[Criterion]) -> Iterator[RedirectRule]:
        """Yield rules matching all conditions, in store order."""
        ...

    def insert(self, rule: RedirectRule) -> RedirectRule:
        """Insert a rule and return it with its assigned id."""
        ...

    def patch(self, rule_id: str, fields: dict[str, Any]) -> None:
        """Partially update a rule (attribute names as on RedirectRule)."""
        ...

    def get(self, rule_id: str) -> RedirectRule | None:
        """Get a rule by id."""
        ...

    def update(self, rule: RedirectRule) -> RedirectRule:
        """Replace a stored rule (rule.id must be set)."""
        ...

    def delete_all(self) -> int:
        """Delete every rule; return how many were removed."""
        ...

    def count(self) -> int:
        """Number of stored rules."""
        ...


# -----------------------------------------------------------------------------
# Host policy store
# -----------------------------------------------------------------------------


class HostStorePort(Protocol):
    """Per-host policy storage."""

    def search(self, conditions: Sequence[Criterion]) -> Iterator[HostConfig]:
        ...

    def insert(self, config: HostConfig) -> HostConfig:
        ...


# -----------------------------------------------------------------------------
# Version store
# -----------------------------------------------------------------------------


class VersionStorePort(Protocol):
    """Active version storage."""

    def search(self, conditions: Sequence[Criterion]) -> Iterator[VersionConfig]:
        ...

    def insert(self, config: VersionConfig) -> VersionConfig:
        ...

    def delete_all(self) -> int:
        ...
