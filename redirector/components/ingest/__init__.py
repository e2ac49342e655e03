"""
Ingest component - bulk CSV/JSON redirect rule loading.
"""

from ._impl import (
    DUPLICATE_RECORD,
    INVALID_PATH,
    MISSING_PATH,
    MISSING_REDIRECT_URL,
    STATUS_CODE_NOT_INTEGER,
    VERSION_NOT_INTEGER,
    ImporterConfig,
    ImportResult,
    RedirectImporter,
    SkippedRow,
    build_rule,
    create_redirect_importer,
    normalize_row,
    parse_csv,
    parse_json,
    validate_row,
)
from .component import run, run_import, run_import_csv, run_import_json
from .models import (
    ImportCsvInput,
    ImportJsonInput,
    ImportOutput,
    ImportRedirectsInput,
    SkippedItem,
)
from .ports import RuleStorePort, VersionStorePort

__all__ = [
    # Entry points
    "run",
    "run_import",
    "run_import_csv",
    "run_import_json",
    # Models
    "ImportCsvInput",
    "ImportJsonInput",
    "ImportOutput",
    "ImportRedirectsInput",
    "SkippedItem",
    # Ports
    "RuleStorePort",
    "VersionStorePort",
    # _impl re-exports
    "DUPLICATE_RECORD",
    "INVALID_PATH",
    "MISSING_PATH",
    "MISSING_REDIRECT_URL",
    "STATUS_CODE_NOT_INTEGER",
    "VERSION_NOT_INTEGER",
    "ImporterConfig",
    "ImportResult",
    "RedirectImporter",
    "SkippedRow",
    "build_rule",
    "create_redirect_importer",
    "normalize_row",
    "parse_csv",
    "parse_json",
    "validate_row",
]
