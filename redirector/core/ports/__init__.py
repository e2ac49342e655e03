# redirector ports (Protocol interfaces)
# Abstract interfaces for adapters; no implementations here

from redirector.core.ports.store import (
    AnyOf,
    Comparator,
    Condition,
    ConflictError,
    Criterion,
    HostStorePort,
    RuleStorePort,
    StoreError,
    VersionStorePort,
    any_of,
    between,
    equals,
    greater_than,
)

__all__ = [
    "AnyOf",
    "Comparator",
    "Condition",
    "ConflictError",
    "Criterion",
    "HostStorePort",
    "RuleStorePort",
    "StoreError",
    "VersionStorePort",
    "any_of",
    "between",
    "equals",
    "greater_than",
]
