"""Bulk import result schemas."""
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class ImportRowErrorOut(BaseModel):
    row: int
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)


class ImportSummaryOut(BaseModel):
    success: int
    duplicates: int
    errors: List[ImportRowErrorOut] = Field(default_factory=list)
