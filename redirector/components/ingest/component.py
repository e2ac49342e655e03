"""
Ingest component - bulk redirect rule loading.

Invariants:
- Rows are processed in order; each sees the inserts of earlier rows
- A row is skipped, never fatal (validation, duplicate, insert failure)
- No rule is inserted for an existing (path, host, version)
"""

from __future__ import annotations

from ._impl import ImporterConfig, ImportResult, RedirectImporter, parse_csv, parse_json
from .models import (
    ImportCsvInput,
    ImportJsonInput,
    ImportOutput,
    ImportRedirectsInput,
    SkippedItem,
)
from .ports import RuleStorePort, VersionStorePort


def _convert_result(result: ImportResult) -> ImportOutput:
    return ImportOutput(
        success=result.success,
        skipped=[SkippedItem(reason=s.reason, item=s.item) for s in result.skipped],
    )


def run_import(
    inp: ImportRedirectsInput,
    *,
    rules: RuleStorePort,
    versions: VersionStorePort,
    config: ImporterConfig | None = None,
) -> ImportOutput:
    """
    Import a batch of already parsed rows.

    Args:
        inp: Input containing row mappings.
        rules: Rule store port.
        versions: Version store port (default version for rows without one).
        config: Optional ingestion defaults.

    Returns:
        ImportOutput with the insert count and ordered skips.
    """
    importer = RedirectImporter(rules=rules, versions=versions, config=config)
    return _convert_result(importer.import_rows(inp.rows))


def run_import_csv(
    inp: ImportCsvInput,
    *,
    rules: RuleStorePort,
    versions: VersionStorePort,
    config: ImporterConfig | None = None,
) -> ImportOutput:
    """Parse CSV text and import its rows."""
    rows = parse_csv(inp.text)
    return run_import(ImportRedirectsInput(rows=rows), rules=rules, versions=versions, config=config)


def run_import_json(
    inp: ImportJsonInput,
    *,
    rules: RuleStorePort,
    versions: VersionStorePort,
    config: ImporterConfig | None = None,
) -> ImportOutput:
    """Parse a JSON payload and import its rows. Malformed payloads import nothing."""
    try:
        rows = parse_json(inp.payload)
    except ValueError as e:
        return ImportOutput(success=0, skipped=[], errors=[str(e)])
    return run_import(ImportRedirectsInput(rows=rows), rules=rules, versions=versions, config=config)


def run(
    inp: ImportRedirectsInput | ImportCsvInput | ImportJsonInput,
    *,
    rules: RuleStorePort,
    versions: VersionStorePort,
    config: ImporterConfig | None = None,
) -> ImportOutput:
    """
    Main entry point for the ingest component.

    Dispatches to appropriate handler based on input type.
    """
    if isinstance(inp, ImportRedirectsInput):
        return run_import(inp, rules=rules, versions=versions, config=config)
    elif isinstance(inp, ImportCsvInput):
        return run_import_csv(inp, rules=rules, versions=versions, config=config)
    elif isinstance(inp, ImportJsonInput):
        return run_import_json(inp, rules=rules, versions=versions, config=config)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
