from typing import Any

from pydantic import BaseModel


# --- Import ---
class SkippedRowModel(BaseModel):
    reason: str
    item: dict[str, Any]


class ImportResponse(BaseModel):
    message: str
    skipped: list[SkippedRowModel]


# --- Admin ---
class RecordCountResponse(BaseModel):
    recordCount: int


class DeletedResponse(BaseModel):
    deleted: int
