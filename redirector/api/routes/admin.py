"""
Admin Table Routes.

Direct access to the rule, host-policy and version tables, used by
operators and by the load/clear utilities.

- GET /rule: record count
- DELETE /rule: clear all rules
- GET/PUT /rule/{rule_id}: read or replace one rule
- GET/POST /hosts: list or upsert host policies
- GET/POST /version: read or replace the active version
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status

from redirector.api.deps import get_host_store, get_rule_store, get_version_store
from redirector.api.schemas import DeletedResponse, RecordCountResponse
from redirector.core.entities import HostConfig, RedirectRule, VersionConfig
from redirector.core.ports.store import HostStorePort, RuleStorePort, VersionStorePort

router = APIRouter()


# --- Rules ---


@router.get("/rule", response_model=RecordCountResponse)
def count_rules(rules: RuleStorePort = Depends(get_rule_store)) -> RecordCountResponse:
    """Number of stored rules."""
    return RecordCountResponse(recordCount=rules.count())


@router.delete("/rule", response_model=DeletedResponse)
def clear_rules(rules: RuleStorePort = Depends(get_rule_store)) -> DeletedResponse:
    """Delete every rule."""
    return DeletedResponse(deleted=rules.delete_all())


@router.get("/rule/{rule_id}", responses={404: {"description": "Rule not found"}})
def get_rule(rule_id: str, rules: RuleStorePort = Depends(get_rule_store)) -> dict[str, Any]:
    rule = rules.get(rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail="Rule not found")
    return rule.to_public()


@router.put(
    "/rule/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Rule not found"}},
)
def replace_rule(
    rule_id: str,
    rule: RedirectRule,
    rules: RuleStorePort = Depends(get_rule_store),
) -> Response:
    """Replace a stored rule. The body's id (if any) is ignored."""
    if rules.get(rule_id) is None:
        raise HTTPException(status_code=404, detail="Rule not found")
    rules.update(rule.model_copy(update={"id": rule_id}))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Hosts ---


@router.get("/hosts")
def list_hosts(hosts: HostStorePort = Depends(get_host_store)) -> list[dict[str, Any]]:
    return [h.model_dump(by_alias=True) for h in hosts.search([])]


@router.post("/hosts", status_code=status.HTTP_201_CREATED)
def upsert_host(config: HostConfig, hosts: HostStorePort = Depends(get_host_store)) -> dict[str, Any]:
    """Create or replace a host policy."""
    return hosts.insert(config).model_dump(by_alias=True)


# --- Version ---


@router.get("/version")
def list_versions(versions: VersionStorePort = Depends(get_version_store)) -> list[dict[str, Any]]:
    return [v.model_dump(by_alias=True) for v in versions.search([])]


@router.post("/version", status_code=status.HTTP_201_CREATED)
def set_active_version(
    config: VersionConfig,
    versions: VersionStorePort = Depends(get_version_store),
) -> dict[str, Any]:
    """Replace the active version."""
    versions.delete_all()
    return versions.insert(config).model_dump(by_alias=True)
