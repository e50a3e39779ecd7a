"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - SessionKey is the raw Authorization header value, or ANONYMOUS_SESSION_KEY
    - SessionKey is a partition key for request correlation, NOT a security boundary:
      any client can send any header value
    - ExportRow is immutable once aggregated

Design Decisions:
    - NewType over dataclass wrappers for identifiers: zero runtime cost
    - str Enum for purge modes: parses straight from settings and query strings
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

SessionKey = NewType("SessionKey", str)
RecordId = NewType("RecordId", int)

ANONYMOUS_SESSION_KEY = SessionKey("anonymous")

CODE_MAX_LENGTH = 50


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class ExportRow:
    """One aggregated spreadsheet row: all records sharing (code, name)."""
    code: str
    name: str
    total_quantity: int


# ─── Enums ───────────────────────────────────────────────────────

class PurgeMode(str, Enum):
    """How export and purge relate to concurrent writes.

    ATOMIC removes exactly the rows it exports, in one transaction.
    SEPARATE aggregates, then deletes the whole session in a second statement:
    a record created in between is deleted without being exported.
    """
    ATOMIC = "atomic"
    SEPARATE = "separate"
