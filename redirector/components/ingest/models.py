"""
Ingest component input/output models.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

# --- Input Models ---


@dataclass(frozen=True)
class ImportRedirectsInput:
    """Input for importing a batch of parsed rows."""

    rows: Sequence[Mapping[str, Any]]


@dataclass(frozen=True)
class ImportCsvInput:
    """Input for importing CSV text (header row required)."""

    text: str


@dataclass(frozen=True)
class ImportJsonInput:
    """Input for importing a JSON array (or {"data": [...]}) of rows."""

    payload: Any


# --- Output Models ---


@dataclass(frozen=True)
class SkippedItem:
    """A skipped row and why."""

    reason: str
    item: dict[str, Any]


@dataclass(frozen=True)
class ImportOutput:
    """Output for an import batch."""

    success: int
    skipped: list[SkippedItem] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Successfully loaded {self.success} redirects."

    def to_response(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "skipped": [{"reason": s.reason, "item": s.item} for s in self.skipped],
        }
