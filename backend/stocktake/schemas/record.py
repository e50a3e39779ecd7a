"""Record Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - RecordInput.code: text, 1-50 chars after strip; JSON numbers coerced to text
    - RecordInput.name: non-empty after strip
    - RecordInput.quantity: coerced to int (sign and zero accepted)
    - RecordOut mirrors the raw table row, session_id included

Design Decisions:
    - One input model for create and update: update is a full overwrite, never a patch
    - field_validator(mode="before") for coercion so max_length sees the final text
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stocktake.core.domain_types import CODE_MAX_LENGTH


class RecordInput(BaseModel):
    """Body of POST /save and PUT /save/{id}."""
    code: str = Field(min_length=1, max_length=CODE_MAX_LENGTH)
    name: str = Field(min_length=1)
    quantity: int

    @field_validator("code", mode="before")
    @classmethod
    def coerce_code_to_text(cls, v):
        # bool is an int subclass; a scanned code is never true/false
        if isinstance(v, bool):
            raise ValueError("code must be text or a number, e.g. ABC123 or 123456")
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        if isinstance(v, (int, float)):
            v = str(v)
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class RecordOut(BaseModel):
    """Raw record as listed by GET /records and GET /recover."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    quantity: int
    session_id: str
    created_at: datetime | None = None


class SaveResponse(BaseModel):
    message: str
    id: int


class MessageResponse(BaseModel):
    message: str
