"""
RedirectResolver - request-time redirect resolution.

Resolves a request path (optionally qualified by host, rule-set version
and evaluation instant) to a stored rule, then rewrites the target's
query string using the rule's operations.

Pipeline:
    normalize_url -> resolve_version / resolve_host_only
    -> candidate search + filter_candidates -> select_candidate
    -> match_regex (only when no candidate resolves)
    -> apply_operations

Key behaviors:
- Exact path match, optionally tolerant of a trailing slash
- Host-specific rules take precedence over host-agnostic ones
- Time windows are inclusive on both bounds
- Regex rules are a fallback, evaluated in store order, first match wins
- Ambiguous candidate sets (0, 3+, or 2 without an exact-path member)
  defer to the regex fallback rather than reporting an error
- lastAccessed is touched at most once per interval, fire-and-forget
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin, urlsplit

from redirector.core.entities import RedirectRule
from redirector.core.ports.store import (
    Criterion,
    HostStorePort,
    RuleStorePort,
    VersionStorePort,
    any_of,
    equals,
    greater_than,
)

from ._operations import apply_operations, parse_operations
from .ports import ClockPort, DeferPort

logger = logging.getLogger(__name__)

PLACEHOLDER_BASE = "https://placeholder.invalid/"


# --- Configuration ---


@dataclass(frozen=True)
class ResolverConfig:
    """Resolution defaults."""

    default_version: int = 0
    default_host_only: bool = False
    last_accessed_interval_seconds: int = 30


DEFAULT_CONFIG = ResolverConfig()


# --- URL Normalization ---


@dataclass(frozen=True)
class ParsedURL:
    """Normalized request URL. query carries its leading '?' when non-empty."""

    host: str
    path: str
    query: str

    @property
    def path_with_query(self) -> str:
        return self.path + self.query


def normalize_url(url: str) -> ParsedURL:
    """
    Split a path, schemeless URL or absolute URL into (host, path, query).

    Accepts:
        /path/segments
        //schemeless.example.com/path/segments
        https://full.example.com/path/segments

    The host is only reported for the last two forms. Bare paths are
    resolved against a placeholder base so relative segments behave as
    they would in a browser.
    """
    if url.startswith("//"):
        url = "https:" + url

    if url.startswith(("http://", "https://")):
        parts = urlsplit(url)
        host = parts.hostname or ""
        if parts.port is not None:
            host = f"{host}:{parts.port}"
    else:
        parts = urlsplit(urljoin(PLACEHOLDER_BASE, url))
        host = ""

    query = f"?{parts.query}" if parts.query else ""
    return ParsedURL(host=host, path=parts.path or "/", query=query)


def parse_int(value: Any) -> int | None:
    """Parse an integer from an int or numeric string; None if not parseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


# --- Time Validity ---


def is_rule_active(rule: RedirectRule, now: int) -> bool:
    """True if now falls inside the rule's (inclusive) time window."""
    if rule.utc_start_time is not None and now < rule.utc_start_time:
        return False
    if rule.utc_end_time is not None and now > rule.utc_end_time:
        return False
    return True


# --- Version / Host Policy ---


def resolve_version(
    explicit: Any,
    versions: VersionStorePort,
    default: int = DEFAULT_CONFIG.default_version,
) -> int:
    """Explicit version if parseable, else the first active version > 0, else default."""
    parsed = parse_int(explicit)
    if parsed is not None:
        return parsed

    for config in versions.search([greater_than("active_version", 0)]):
        return config.active_version
    return default


def resolve_host_only(
    explicit: bool | None,
    host: str,
    hosts: HostStorePort,
    default: bool = DEFAULT_CONFIG.default_host_only,
) -> bool:
    """Explicit flag (including False) if given, else the host's stored policy."""
    if explicit is not None:
        return explicit

    for config in hosts.search([equals("host", host)]):
        return config.host_only
    return default


# --- Candidate Matching ---


def toggle_trailing_slash(path: str) -> str:
    """'/a' -> '/a/', '/a/' -> '/a'."""
    if path.endswith("/"):
        return path[:-1]
    return path + "/"


def candidate_conditions(path: str, ignore_slash: bool) -> list[Criterion]:
    """Store conditions for the exact-path candidate search.

    The slash-tolerant search is limited to non-regex rules.
    """
    if ignore_slash:
        return [
            any_of(equals("path", path), equals("path", toggle_trailing_slash(path))),
            equals("regex", False),
        ]
    return [equals("path", path)]


def filter_candidates(
    rules: Iterable[RedirectRule],
    *,
    host: str,
    version: int,
    host_only: bool,
    now: int,
) -> list[RedirectRule]:
    """
    Narrow candidate rules for a request.

    Drops rules of another version, foreign hosts under a host-only
    policy, host-bound rules when the request has no host, and rules
    outside their time window. Of the rest, if any rule is bound to the
    request host, only host-bound rules are kept; otherwise the
    host-agnostic ones remain.
    """
    eligible = [
        rule
        for rule in rules
        if rule.version == version
        and not (host_only and rule.host != host)
        and not (rule.host and not host)
        and is_rule_active(rule, now)
        and (rule.host == host or not rule.host)
    ]

    host_matched = any(rule.host == host for rule in eligible)
    if host_matched:
        return [rule for rule in eligible if rule.host == host]
    return eligible


def select_candidate(candidates: Sequence[RedirectRule], path: str) -> RedirectRule | None:
    """
    Pick the winning candidate.

    One candidate wins outright. Of two, the one stored at exactly the
    requested path wins (the other is the slash-toggled variant). Any
    other shape is unresolved.
    """
    if len(candidates) == 1:
        return candidates[0]
    if len(candidates) == 2:
        for rule in candidates:
            if rule.path == path:
                return rule
    return None


# --- Regex Fallback ---


_JS_GROUP_REF = re.compile(r"\$(\$|&|[1-9]\d?|<[A-Za-z_]\w*>)")


def convert_replacement(template: str) -> str:
    r"""
    Translate JavaScript-style group references into Python ones.

    $1 -> \g<1>, $<name> -> \g<name>, $& -> \g<0>, $$ -> $.
    Python-style references (\1, \g<name>) pass through untouched.
    """

    def _swap(match: re.Match[str]) -> str:
        ref = match.group(1)
        if ref == "$":
            return "$"
        if ref == "&":
            return r"\g<0>"
        if ref.startswith("<"):
            return rf"\g{ref}"
        return rf"\g<{ref}>"

    return _JS_GROUP_REF.sub(_swap, template)


def match_regex(rules: Iterable[RedirectRule], path: str, now: int) -> RedirectRule | None:
    """
    First regex rule (in store order) matching path and active at now.

    The returned rule is a copy whose redirect_url is path with the first
    pattern match replaced by the rule's template.
    """
    for rule in rules:
        try:
            pattern = re.compile(rule.path)
        except re.error as e:
            logger.warning("Skipping regex rule %s: invalid pattern %r (%s)", rule.id, rule.path, e)
            continue

        if pattern.search(path) is None:
            continue
        if not is_rule_active(rule, now):
            continue

        template = convert_replacement(rule.redirect_url)
        try:
            target = pattern.sub(lambda m: m.expand(template), path, count=1)
        except (re.error, IndexError) as e:
            logger.warning("Skipping regex rule %s: bad replacement %r (%s)", rule.id, rule.redirect_url, e)
            continue

        return rule.model_copy(update={"redirect_url": target})

    return None


# --- Resolver ---


def _run_inline(task: Callable[[], None]) -> None:
    task()


class RedirectResolver:
    """
    Resolves request paths to redirect rules.

    Stateless between calls; all state lives in the injected stores.
    """

    def __init__(
        self,
        rules: RuleStorePort,
        hosts: HostStorePort,
        versions: VersionStorePort,
        clock: ClockPort | None = None,
        config: ResolverConfig | None = None,
        defer: DeferPort | None = None,
    ) -> None:
        self._rules = rules
        self._hosts = hosts
        self._versions = versions
        self._clock = clock
        self._config = config or DEFAULT_CONFIG
        self._defer = defer or _run_inline

    def _clock_or_default(self) -> ClockPort:
        if self._clock is None:
            from redirector.adapters.clock import SystemClock

            self._clock = SystemClock()
        return self._clock

    def find_rule(
        self,
        path: str,
        host: str,
        version: int,
        host_only: bool,
        now: int,
        ignore_slash: bool = False,
    ) -> RedirectRule | None:
        """Exact/slash-tolerant candidate match, falling back to regex rules."""
        found = self._rules.search(candidate_conditions(path, ignore_slash))
        candidates = filter_candidates(
            found,
            host=host,
            version=version,
            host_only=host_only,
            now=now,
        )

        selected = select_candidate(candidates, path)
        if selected is not None:
            return selected

        logger.debug(
            "No exact candidate for %s (host=%r, version=%s, survivors=%d); trying regex rules",
            path,
            host,
            version,
            len(candidates),
        )
        return match_regex(self._rules.search([equals("regex", True)]), path, now)

    def resolve(
        self,
        url: str,
        *,
        host: str | None = None,
        version: Any = None,
        host_only: bool | None = None,
        t: int | None = None,
        match_query: bool = False,
        ignore_slash: bool = False,
    ) -> RedirectRule | None:
        """
        Resolve a request URL to a rule with its final redirect_url.

        Returns None when nothing matches.
        """
        parsed = normalize_url(url)
        request_host = host or parsed.host

        resolved_version = resolve_version(version, self._versions, self._config.default_version)
        resolved_host_only = resolve_host_only(
            host_only,
            request_host,
            self._hosts,
            self._config.default_host_only,
        )

        path = parsed.path_with_query if match_query else parsed.path
        now = t or self._clock_or_default().now_epoch()

        rule = self.find_rule(
            path,
            request_host,
            resolved_version,
            resolved_host_only,
            now,
            ignore_slash,
        )
        if rule is None:
            return None

        final_url = apply_operations(
            rule.redirect_url,
            parse_operations(rule.operations),
            parsed.query,
        )

        self._touch(rule)
        logger.debug("Resolved %s -> %s (rule %s)", path, final_url, rule.id)
        return rule.model_copy(update={"redirect_url": final_url})

    def _touch(self, rule: RedirectRule) -> None:
        """Schedule a lastAccessed update unless one happened recently."""
        if rule.id is None:
            return

        now_ms = self._clock_or_default().now_millis()
        interval_ms = self._config.last_accessed_interval_seconds * 1000
        if rule.last_accessed is not None and now_ms - rule.last_accessed < interval_ms:
            return

        rule_id = rule.id
        self._defer(lambda: self._record_access(rule_id, now_ms))

    def _record_access(self, rule_id: str, now_ms: int) -> None:
        try:
            self._rules.patch(rule_id, {"last_accessed": now_ms})
        except Exception:
            logger.debug("Ignoring lastAccessed update failure for rule %s", rule_id, exc_info=True)


# --- Factory ---


def create_redirect_resolver(
    rules: RuleStorePort,
    hosts: HostStorePort,
    versions: VersionStorePort,
    clock: ClockPort | None = None,
    config: ResolverConfig | None = None,
    defer: DeferPort | None = None,
) -> RedirectResolver:
    """Create a RedirectResolver."""
    return RedirectResolver(
        rules=rules,
        hosts=hosts,
        versions=versions,
        clock=clock,
        config=config,
        defer=defer,
    )
