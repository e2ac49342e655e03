"""
Redirects component - request-time redirect resolution.
"""

from ._impl import (
    ParsedURL,
    RedirectResolver,
    ResolverConfig,
    candidate_conditions,
    convert_replacement,
    create_redirect_resolver,
    filter_candidates,
    is_rule_active,
    match_regex,
    normalize_url,
    parse_int,
    resolve_host_only,
    resolve_version,
    select_candidate,
    toggle_trailing_slash,
)
from ._operations import (
    apply_operations,
    apply_query_operation,
    parse_operations,
)
from .component import run, run_resolve
from .models import (
    RedirectValidationError,
    ResolveOutput,
    ResolveRedirectInput,
)
from .ports import ClockPort, DeferPort, HostStorePort, RuleStorePort, VersionStorePort

__all__ = [
    # Entry points
    "run",
    "run_resolve",
    # Models
    "RedirectValidationError",
    "ResolveOutput",
    "ResolveRedirectInput",
    # Ports
    "ClockPort",
    "DeferPort",
    "HostStorePort",
    "RuleStorePort",
    "VersionStorePort",
    # Engine
    "ParsedURL",
    "RedirectResolver",
    "ResolverConfig",
    "candidate_conditions",
    "convert_replacement",
    "create_redirect_resolver",
    "filter_candidates",
    "is_rule_active",
    "match_regex",
    "normalize_url",
    "parse_int",
    "resolve_host_only",
    "resolve_version",
    "select_candidate",
    "toggle_trailing_slash",
    # Operations
    "apply_operations",
    "apply_query_operation",
    "parse_operations",
]
