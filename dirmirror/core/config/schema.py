# dirmirror/core/config/schema.py
"""
Pydantic schema for dirmirror configuration.

Rules:
- Strict validation
- No unknown keys
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class StoreConfig(BaseModel):
    engine: Optional[Literal["sqlite", "json"]] = Field(
        default=None,
        description="Metadata store engine; null picks one from the database path suffix",
    )

    model_config = ConfigDict(extra="forbid")


class ScanConfig(BaseModel):
    chunk_size: int = Field(default=4096, gt=0, description="Digest read chunk size in bytes")

    model_config = ConfigDict(extra="forbid")


class LoggingConfig(BaseModel):
    level: LogLevel = Field(default="WARNING")

    model_config = ConfigDict(extra="forbid")

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, value):
        return value.upper() if isinstance(value, str) else value


class MirrorConfig(BaseModel):
    store: StoreConfig = Field(default_factory=StoreConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")
