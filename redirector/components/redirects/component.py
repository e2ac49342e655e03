"""
Redirects component - request-time redirect resolution.

Invariants:
- Only rules of the resolved version are eligible
- Host-bound rules win over host-agnostic rules for a matching host
- Time windows are inclusive; absent bounds are unbounded
- Regex rules are consulted only when no exact candidate resolves
- Store failures propagate; "not found" is a normal result
"""

from __future__ import annotations

from ._impl import RedirectResolver, ResolverConfig, normalize_url
from .models import RedirectValidationError, ResolveOutput, ResolveRedirectInput
from .ports import ClockPort, DeferPort, HostStorePort, RuleStorePort, VersionStorePort


def _validate(inp: ResolveRedirectInput) -> list[RedirectValidationError]:
    errors: list[RedirectValidationError] = []
    if not inp.path:
        errors.append(
            RedirectValidationError(
                code="path_required",
                message="A path is required",
                field="path",
            )
        )
        return errors
    try:
        normalize_url(inp.path)
    except ValueError as e:
        errors.append(
            RedirectValidationError(
                code="path_invalid",
                message=f"Path is not a valid URL: {e}",
                field="path",
            )
        )
    return errors


def run_resolve(
    inp: ResolveRedirectInput,
    *,
    rules: RuleStorePort,
    hosts: HostStorePort,
    versions: VersionStorePort,
    clock: ClockPort | None = None,
    config: ResolverConfig | None = None,
    defer: DeferPort | None = None,
) -> ResolveOutput:
    """
    Resolve a request path to a redirect rule.

    Args:
        inp: Path plus optional host/version/host-only/time overrides.
        rules: Rule store port.
        hosts: Host policy store port.
        versions: Active version store port.
        clock: Optional clock (defaults to the system clock).
        config: Optional resolution defaults.
        defer: Optional scheduler for the lastAccessed update.

    Returns:
        ResolveOutput with the matched rule (final redirect_url applied),
        or rule=None when nothing matches.
    """
    errors = _validate(inp)
    if errors:
        return ResolveOutput(rule=None, errors=errors, success=False)

    resolver = RedirectResolver(
        rules=rules,
        hosts=hosts,
        versions=versions,
        clock=clock,
        config=config,
        defer=defer,
    )

    rule = resolver.resolve(
        inp.path,
        host=inp.host,
        version=inp.version,
        host_only=inp.host_only,
        t=inp.t,
        match_query=inp.match_query,
        ignore_slash=inp.ignore_slash,
    )

    return ResolveOutput(rule=rule, errors=[], success=True)


def run(
    inp: ResolveRedirectInput,
    *,
    rules: RuleStorePort,
    hosts: HostStorePort,
    versions: VersionStorePort,
    clock: ClockPort | None = None,
    config: ResolverConfig | None = None,
    defer: DeferPort | None = None,
) -> ResolveOutput:
    """Main entry point for the redirects component."""
    if isinstance(inp, ResolveRedirectInput):
        return run_resolve(
            inp,
            rules=rules,
            hosts=hosts,
            versions=versions,
            clock=clock,
            config=config,
            defer=defer,
        )
    raise ValueError(f"Unknown input type: {type(inp)}")
