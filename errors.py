"""Error taxonomy shared by the workflow, repositories and HTTP layer.

Every raised error carries the HTTP status it maps to. ImportRowError is a
record, not an exception: bulk imports collect them instead of aborting.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class CrmError(Exception):
    """Base class for errors surfaced to API and CLI callers."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(CrmError):
    """Missing or malformed input. Raised before any state is mutated."""

    status_code = 400

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        self.fields = fields or []
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        if self.fields:
            out["errors"] = [{"field": f} for f in self.fields]
        return out


class ConflictError(CrmError):
    """Duplicate call for phone+date, or a duplicate unique key."""

    status_code = 409


class NotFoundError(CrmError):
    """Referenced record does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class UnexpectedError(CrmError):
    """Anything else. The message is generic; details go to the log only."""

    status_code = 500

    def __init__(self, message: str = "Unexpected server error"):
        super().__init__(message)


@dataclass
class ImportRowError:
    """One rejected row of a bulk import (1-based row index)."""

    row: int
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
