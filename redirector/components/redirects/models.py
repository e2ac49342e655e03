"""
Redirects component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from redirector.core.entities import RedirectRule

# --- Validation Error ---


@dataclass(frozen=True)
class RedirectValidationError:
    """Redirect request validation error."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class ResolveRedirectInput:
    """
    Input for resolving a request path.

    path may be a bare path, a schemeless URL or an absolute URL.
    Unset overrides fall back to store defaults.
    """

    path: str
    host: str | None = None
    version: int | str | None = None
    host_only: bool | None = None
    t: int | None = None
    match_query: bool = False
    ignore_slash: bool = False


# --- Output Models ---


@dataclass(frozen=True)
class ResolveOutput:
    """Output for resolve operation. rule is None when nothing matches."""

    rule: RedirectRule | None
    errors: list[RedirectValidationError] = field(default_factory=list)
    success: bool = True

    @property
    def found(self) -> bool:
        return self.rule is not None
