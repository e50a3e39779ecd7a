"""ScanRecord ORM — one scanned product line, partitioned by session key.

Invariants:
    - id is an autoincrement integer primary key, assigned by the store
    - created_at is set by the store at insertion (server default), never updated
    - session_id holds the raw partition key; every query filters on it
    - No uniqueness on (code, name): duplicates accumulate and are summed on export

Design Decisions:
    - code is VARCHAR(50) text, never integer: product codes are identifiers, and
      leading zeros must survive
    - Index on session_id: every read, update, delete and purge filters by it
"""

from datetime import datetime

from sqlalchemy import String, Text, Integer, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from stocktake.core.domain_types import CODE_MAX_LENGTH
from stocktake.db.base import Base


class ScanRecord(Base):
    """A scanned product entry owned by exactly one session key."""
    __tablename__ = "scanned_products"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )
    code: Mapped[str] = mapped_column(String(CODE_MAX_LENGTH), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    session_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<ScanRecord id={self.id} code={self.code!r} quantity={self.quantity}>"
