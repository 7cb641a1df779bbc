from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class InvalidFilterError(ValueError):
    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class PropertyNotFoundError(LookupError):
    def __init__(self, property_id: str) -> None:
        super().__init__(f"Property not found: {property_id}")
        self.property_id = property_id


class WarningCode(StrEnum):
    NO_OPEN_LOT = "NO_OPEN_LOT"
    OVERSELL = "OVERSELL"
    MISSING_SHARES = "MISSING_SHARES"
    LOT_SHARE_MISMATCH = "LOT_SHARE_MISMATCH"


class DataIntegrityWarning(BaseModel):
    """Non-fatal data problem; the offending record was left out of the computation."""

    code: WarningCode
    message: str
    position_id: str | None = None
    transaction_id: str | None = None
