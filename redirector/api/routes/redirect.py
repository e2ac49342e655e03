"""
Redirect Import Route.

Bulk-loads redirect rules.

Payloads:
- text/csv: header row, blank lines skipped
- application/json: array of rows, or {"data": [...rows]}

Row columns: path, host, version, redirectURL, statusCode, utcStartTime,
utcEndTime, operations, isRegex.

Response: {"message": "Successfully loaded N redirects.", "skipped": [...]}
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from redirector.api.deps import get_importer_config, get_rule_store, get_version_store
from redirector.api.schemas import ImportResponse
from redirector.components.ingest import (
    ImportCsvInput,
    ImporterConfig,
    ImportJsonInput,
    ImportOutput,
    run_import_csv,
    run_import_json,
)
from redirector.core.ports.store import RuleStorePort, VersionStorePort

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/redirect",
    response_model=ImportResponse,
    responses={400: {"description": "Malformed payload"}},
)
async def load_redirects(
    request: Request,
    rules: RuleStorePort = Depends(get_rule_store),
    versions: VersionStorePort = Depends(get_version_store),
    config: ImporterConfig = Depends(get_importer_config),
) -> ImportResponse:
    """Import a CSV or JSON batch of redirect rules."""
    content_type = request.headers.get("content-type", "")
    body = await request.body()

    output: ImportOutput
    if "text/csv" in content_type:
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise HTTPException(status_code=400, detail=f"CSV must be UTF-8: {e}") from e
        output = await run_in_threadpool(
            run_import_csv,
            ImportCsvInput(text=text),
            rules=rules,
            versions=versions,
            config=config,
        )
    else:
        output = await run_in_threadpool(
            run_import_json,
            ImportJsonInput(payload=body),
            rules=rules,
            versions=versions,
            config=config,
        )

    if output.errors:
        raise HTTPException(status_code=400, detail="; ".join(output.errors))

    logger.info("Import via API: %s (%d skipped)", output.message, len(output.skipped))
    return ImportResponse.model_validate(output.to_response())
