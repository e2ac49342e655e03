"""
Redirects component port definitions.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from redirector.core.ports.store import HostStorePort, RuleStorePort, VersionStorePort

__all__ = [
    "ClockPort",
    "DeferPort",
    "HostStorePort",
    "RuleStorePort",
    "VersionStorePort",
]


class ClockPort(Protocol):
    """Time provider for rule validity and access telemetry."""

    def now_epoch(self) -> int:
        """Current time in whole epoch seconds."""
        ...

    def now_millis(self) -> int:
        """Current time in epoch milliseconds."""
        ...


# Schedules a callable to run after the response is produced.
DeferPort = Callable[[Callable[[], None]], None]
