"""Pydantic models for the layer registry."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Largest value a PostgreSQL BIGINT column holds
BIGINT_MAX = 2**63 - 1


class LayerStatus(str, Enum):
    """Status values the API writes.

    The database column is an open VARCHAR(50); rows written by other
    clients may carry values outside this set.
    """

    UPLOADING = "uploading"
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"
    CANCELLED = "cancelled"
    FAILED = "failed"


class LayerUpsert(BaseModel):
    """Full layer payload for create-or-replace by id."""

    status: LayerStatus
    name: str = Field(min_length=1, max_length=255)
    upload_type: Optional[str] = Field(default=None, max_length=100)
    total_size: int = Field(default=0, ge=0, le=BIGINT_MAX)
    current_offset: int = Field(default=0, ge=0, le=BIGINT_MAX)

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    @model_validator(mode="after")
    def _offset_within_size(self) -> "LayerUpsert":
        if self.current_offset > self.total_size:
            raise ValueError("current_offset must not exceed total_size")
        return self


class LayerUpdate(BaseModel):
    """Payload for updating a layer."""

    status: Optional[LayerStatus] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    upload_type: Optional[str] = Field(default=None, max_length=100)
    total_size: Optional[int] = Field(default=None, ge=0, le=BIGINT_MAX)
    current_offset: Optional[int] = Field(default=None, ge=0, le=BIGINT_MAX)

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    @model_validator(mode="after")
    def _not_empty(self) -> "LayerUpdate":
        if not self.model_fields_set:
            raise ValueError("No fields provided for update")
        return self

    @model_validator(mode="after")
    def _required_columns_not_null(self) -> "LayerUpdate":
        for field in ("status", "name", "total_size", "current_offset"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class LayerRead(BaseModel):
    """Response model for a layer."""

    id: UUID
    # Open contract: any stored string is returned as-is.
    status: str
    name: str
    upload_type: Optional[str] = None
    total_size: int
    current_offset: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
