"""
Operations string parsing and query-string rewriting.

An operations string is a '|'-delimited list of operations, each a name
optionally followed by ':' and '&'-delimited key=value pairs:

    qs:preserve=1
    qs:filter=ref&filter=utm_source|other:flag

Parsing yields {name: {key: value}}. The second occurrence of a key within
one operation promotes its value to a list, in order of appearance.

Supported operation:
- qs: rewrite the matched target's query string from the request's one
  - preserve=1: append the original query string verbatim
  - preserve=0: keep the target without a query string
  - filter=<key>[&filter=<key>...]: drop the listed keys from the original
    query string and append the remainder (if any)
"""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import parse_qsl, quote, urlencode

OperationParams = dict[str, str | list[str]]
Operations = dict[str, OperationParams]


def parse_operations(ops: str | None) -> Operations:
    """Parse an operations string into {name: {key: value | [values]}}."""
    result: Operations = {}
    if not ops:
        return result

    for op in ops.split("|"):
        name, _, data = op.partition(":")
        name = name.strip()
        if not name:
            continue

        params: OperationParams = {}
        result[name] = params

        if not data:
            continue

        for pair in data.split("&"):
            if not pair:
                continue
            key, _, value = pair.partition("=")
            existing = params.get(key)
            if existing is None:
                params[key] = value
            elif isinstance(existing, list):
                existing.append(value)
            else:
                params[key] = [existing, value]

    return result


def _as_list(value: str | list[str]) -> list[str]:
    return value if isinstance(value, list) else [value]


def apply_query_operation(
    redirect_url: str,
    params: Mapping[str, str | list[str]],
    query: str,
) -> str:
    """Apply a single qs operation. query carries its leading '?' (or is empty)."""
    preserve = params.get("preserve")
    if preserve == "1":
        return redirect_url + query
    if preserve == "0":
        return redirect_url

    filter_keys = params.get("filter")
    if filter_keys is None:
        return redirect_url

    removed = set(_as_list(filter_keys))
    pairs = parse_qsl(query.lstrip("?"), keep_blank_values=True)
    remaining = [(key, value) for key, value in pairs if key not in removed]

    encoded = urlencode(remaining, quote_via=quote)
    if encoded:
        return f"{redirect_url}?{encoded}"
    return redirect_url


def apply_operations(redirect_url: str, operations: Mapping[str, OperationParams], query: str) -> str:
    """
    Rewrite redirect_url according to parsed operations.

    Without a qs operation the target is returned unmodified, so the
    request's query string is not carried over.
    """
    qs = operations.get("qs")
    if qs is None:
        return redirect_url
    return apply_query_operation(redirect_url, qs, query)
