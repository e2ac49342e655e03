"""
Domain entities for redirector.

- RedirectRule: a stored path/host/version -> target mapping
- HostConfig: per-host policy (host-only matching)
- VersionConfig: the active rule-set generation

Field aliases carry the public camelCase names used by the HTTP layer and
by bulk imports (redirectURL, statusCode, utcStartTime, ...). Python code
uses the snake_case attribute names.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "DEFAULT_STATUS_CODE",
    "HostConfig",
    "RedirectRule",
    "VersionConfig",
]

DEFAULT_STATUS_CODE = 301


class RedirectRule(BaseModel):
    """
    Redirect rule.

    Invariants:
    - At most one rule per (path, host, version); enforced by
      read-then-write checks during ingestion only.
    - An empty host means the rule is host-agnostic.
    - Time bounds are inclusive epoch seconds; None means unbounded.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    path: str
    host: str = ""
    version: int = 0
    redirect_url: str = Field(alias="redirectURL")
    status_code: int = Field(default=DEFAULT_STATUS_CODE, alias="statusCode")
    utc_start_time: int | None = Field(default=None, alias="utcStartTime")
    utc_end_time: int | None = Field(default=None, alias="utcEndTime")
    operations: str | None = None
    regex: bool = False
    last_accessed: int | None = Field(default=None, alias="lastAccessed")

    def to_public(self) -> dict[str, Any]:
        """Serialize with public field names, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class HostConfig(BaseModel):
    """Host policy. host_only disables host-agnostic rules for this host."""

    model_config = ConfigDict(populate_by_name=True)

    host: str
    host_only: bool = Field(default=False, alias="hostOnly")


class VersionConfig(BaseModel):
    """Active rule-set generation."""

    model_config = ConfigDict(populate_by_name=True)

    active_version: int = Field(alias="activeVersion")
