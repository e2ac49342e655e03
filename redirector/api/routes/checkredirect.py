"""
Redirect Check Route.

Resolves a request path to its redirect rule.

Query parameters:
- path: path or URL to resolve (falls back to the Path header, then to
  the trailing path segment)
- h: host override
- v: version override
- ho: host-only override (1/0)
- t: evaluation instant override (epoch seconds)
- qs: when "m", match against path plus the request's query string
- si: ignore trailing slash when 1

Responses:
- 200: rule fields (public names) with the final redirectURL
- 400: no path given, or the path is not a valid URL
- 404: no rule matches
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Query

from redirector.adapters.clock import SystemClock
from redirector.api.deps import (
    get_clock,
    get_host_store,
    get_resolver_config,
    get_rule_store,
    get_version_store,
)
from redirector.components.redirects import (
    ResolveRedirectInput,
    ResolverConfig,
    parse_int,
    run_resolve,
)
from redirector.core.ports.store import HostStorePort, RuleStorePort, VersionStorePort

router = APIRouter()


def parse_flag(value: str | None) -> bool | None:
    """'1' -> True, anything else -> False, absent -> None."""
    if value is None:
        return None
    return value.strip() == "1"


@router.get(
    "/checkredirect",
    responses={400: {"description": "Missing or invalid path"}, 404: {"description": "No redirect"}},
)
@router.get(
    "/checkredirect/{rule_path:path}",
    responses={400: {"description": "Missing or invalid path"}, 404: {"description": "No redirect"}},
)
def check_redirect(
    background_tasks: BackgroundTasks,
    rule_path: str | None = None,
    path: str | None = Query(None, description="Path or URL to resolve"),
    path_header: str | None = Header(None, alias="path"),
    h: str | None = Query(None, description="Host override"),
    v: str | None = Query(None, description="Version override"),
    ho: str | None = Query(None, description="Host-only override (1/0)"),
    t: str | None = Query(None, description="Evaluation time (epoch seconds)"),
    qs: str = Query("", description="'m' to match with the query string"),
    si: str | None = Query(None, description="Ignore trailing slash (1/0)"),
    rules: RuleStorePort = Depends(get_rule_store),
    hosts: HostStorePort = Depends(get_host_store),
    versions: VersionStorePort = Depends(get_version_store),
    clock: SystemClock = Depends(get_clock),
    config: ResolverConfig = Depends(get_resolver_config),
) -> dict[str, Any]:
    """Resolve a path to its redirect rule."""
    target = path or path_header
    if not target and rule_path:
        target = "/" + rule_path.lstrip("/")

    if not target:
        raise HTTPException(status_code=400, detail="A path is required")

    output = run_resolve(
        ResolveRedirectInput(
            path=target,
            host=h or None,
            version=v,
            host_only=parse_flag(ho),
            t=parse_int(t),
            match_query=qs == "m",
            ignore_slash=bool(parse_flag(si)),
        ),
        rules=rules,
        hosts=hosts,
        versions=versions,
        clock=clock,
        config=config,
        defer=background_tasks.add_task,
    )

    if output.errors:
        raise HTTPException(status_code=400, detail=output.errors[0].message)

    if output.rule is None:
        raise HTTPException(status_code=404, detail="Not found")

    return output.rule.to_public()
