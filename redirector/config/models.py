from typing import Literal

from pydantic import BaseModel, Field


class StoreConfig(BaseModel):
    backend: Literal["sqlite", "memory"] = "sqlite"
    db_path: str = "./data/redirector.db"


class ResolutionConfig(BaseModel):
    default_version: int = 0
    default_host_only: bool = False
    default_status_code: int = Field(default=301, ge=300, le=399)
    last_accessed_interval_seconds: int = Field(default=30, ge=0)


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


class RedirectorConfig(BaseModel):
    store: StoreConfig = Field(default_factory=StoreConfig)
    resolution: ResolutionConfig = Field(default_factory=ResolutionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
