"""
RedirectImporter - bulk rule ingestion with duplicate detection.

Rows arrive as dicts using the public column names (path, host, version,
redirectURL, statusCode, utcStartTime, utcEndTime, operations, isRegex).

Per row, strictly in order:
1. Validate required fields and integer columns
2. Normalize the path (a host embedded in an absolute path wins over the
   host column); regex patterns are stored verbatim. A path that cannot be
   parsed as a URL is a skip
3. Default the version to the store's active version
4. Skip if a rule already exists for (path, host, version)
5. Insert; a store failure becomes a skip, never an abort

Duplicate detection is read-then-write. Rows of one batch are processed
sequentially so later rows see earlier inserts; concurrent batches are not
coordinated and may both insert the same key.

A non-integer statusCode is rejected alongside the required-field and
version checks rather than stored as-is.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from redirector.components.redirects import normalize_url, parse_int, resolve_version
from redirector.core.entities import DEFAULT_STATUS_CODE, RedirectRule
from redirector.core.ports.store import RuleStorePort, StoreError, VersionStorePort, equals

logger = logging.getLogger(__name__)

MISSING_PATH = "missing path"
MISSING_REDIRECT_URL = "missing redirectURL"
VERSION_NOT_INTEGER = "version must be an integer"
STATUS_CODE_NOT_INTEGER = "statusCode must be an integer"
DUPLICATE_RECORD = "Duplicate record"
INVALID_PATH = "invalid path"


# --- Configuration ---


@dataclass(frozen=True)
class ImporterConfig:
    """Ingestion defaults."""

    default_version: int = 0
    default_status_code: int = DEFAULT_STATUS_CODE


DEFAULT_CONFIG = ImporterConfig()


# --- Results ---


@dataclass
class SkippedRow:
    """A row that was not inserted, with the reason."""

    reason: str
    item: dict[str, Any]


@dataclass
class ImportResult:
    """Outcome of one ingestion batch."""

    success: int = 0
    skipped: list[SkippedRow] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Successfully loaded {self.success} redirects."


# --- Payload Parsing ---


def parse_csv(text: str) -> list[dict[str, Any]]:
    """Parse CSV text with a header row; blank lines are skipped."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    rows = []
    for row in reader:
        values = [v for k, v in row.items() if k is not None]
        if not any(v and v.strip() for v in values):
            continue
        rows.append({k: v for k, v in row.items() if k is not None})
    return rows


def parse_json(payload: Any) -> list[dict[str, Any]]:
    """
    Accept a JSON array of rows, or an object with a "data" array.

    Strings and bytes are decoded first.
    """
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON payload: {e}") from e

    if isinstance(payload, Mapping):
        payload = payload.get("data")

    if not isinstance(payload, list) or not all(isinstance(row, Mapping) for row in payload):
        raise ValueError("Expected a JSON array of row objects")

    return [dict(row) for row in payload]


# --- Row Helpers ---


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_row(item: Mapping[str, Any]) -> str | None:
    """Return a skip reason, or None if the row may proceed."""
    if _is_blank(item.get("path")):
        return MISSING_PATH
    if _is_blank(item.get("redirectURL")):
        return MISSING_REDIRECT_URL

    version = item.get("version")
    if not _is_blank(version) and parse_int(version) is None:
        return VERSION_NOT_INTEGER

    status_code = item.get("statusCode")
    if not _is_blank(status_code) and parse_int(status_code) is None:
        return STATUS_CODE_NOT_INTEGER

    return None


def is_regex_row(item: Mapping[str, Any]) -> bool:
    flag = item.get("isRegex")
    if isinstance(flag, bool):
        return flag
    return str(flag if flag is not None else "").strip() == "1"


def normalize_row(item: dict[str, Any], default_version: int) -> dict[str, Any]:
    """Normalize path/host/version of a validated row (returns a new dict)."""
    row = dict(item)
    row_host = "" if _is_blank(row.get("host")) else str(row["host"]).strip()

    if is_regex_row(row):
        row["path"] = str(row["path"])
        row["host"] = row_host
    else:
        parsed = normalize_url(str(row["path"]).strip())
        row["path"] = parsed.path_with_query
        row["host"] = parsed.host or row_host

    version = parse_int(row.get("version"))
    row["version"] = default_version if version is None else version
    return row


def build_rule(row: Mapping[str, Any], config: ImporterConfig = DEFAULT_CONFIG) -> RedirectRule:
    """Build the store record for a normalized row."""
    status_code = parse_int(row.get("statusCode"))
    operations = row.get("operations")

    return RedirectRule(
        path=row["path"],
        host=row["host"],
        version=row["version"],
        redirect_url=str(row["redirectURL"]).strip(),
        status_code=config.default_status_code if status_code is None else status_code,
        utc_start_time=parse_int(row.get("utcStartTime")),
        utc_end_time=parse_int(row.get("utcEndTime")),
        operations=None if _is_blank(operations) else str(operations).strip(),
        regex=is_regex_row(row),
    )


# --- Importer ---


class RedirectImporter:
    """Validates, deduplicates and inserts batches of redirect rows."""

    def __init__(
        self,
        rules: RuleStorePort,
        versions: VersionStorePort,
        config: ImporterConfig | None = None,
    ) -> None:
        self._rules = rules
        self._versions = versions
        self._config = config or DEFAULT_CONFIG

    def is_duplicate(self, row: Mapping[str, Any]) -> bool:
        conditions = [
            equals("path", row["path"]),
            equals("host", row["host"]),
            equals("version", row["version"]),
        ]
        return next(iter(self._rules.search(conditions)), None) is not None

    def import_rows(self, rows: Iterable[Mapping[str, Any]]) -> ImportResult:
        """
        Import rows in order.

        Validation failures, unparseable paths, duplicates and store insert
        failures are recorded as skips. Store failures during the duplicate check
        propagate.
        """
        result = ImportResult()
        default_version = resolve_version(None, self._versions, self._config.default_version)

        for raw in rows:
            item = dict(raw)

            reason = validate_row(item)
            if reason is not None:
                result.skipped.append(SkippedRow(reason=reason, item=item))
                continue

            try:
                row = normalize_row(item, default_version)
            except ValueError as e:
                result.skipped.append(SkippedRow(reason=f"{INVALID_PATH}: {e}", item=item))
                continue

            if self.is_duplicate(row):
                result.skipped.append(SkippedRow(reason=DUPLICATE_RECORD, item=row))
                continue

            try:
                self._rules.insert(build_rule(row, self._config))
            except StoreError as e:
                logger.info("Insert failed for %s: %s", row["path"], e)
                result.skipped.append(SkippedRow(reason=str(e), item=row))
                continue

            result.success += 1

        logger.info(
            "Imported %d redirects (%d skipped)",
            result.success,
            len(result.skipped),
        )
        return result


# --- Factory ---


def create_redirect_importer(
    rules: RuleStorePort,
    versions: VersionStorePort,
    config: ImporterConfig | None = None,
) -> RedirectImporter:
    """Create a RedirectImporter."""
    return RedirectImporter(rules=rules, versions=versions, config=config)
