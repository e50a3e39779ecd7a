"""Record Service — create, update, delete, list and export scan records for one session key.

Invariants:
    - Every statement filters on session_id == session_key; ids alone never select a row
    - Update and delete report RecordNotFoundError when zero rows matched, whether the id
      is absent or owned by another session (no cross-session leak)
    - Update is a full overwrite of code, name and quantity
    - Export never purges unless the workbook bytes were fully built
    - Each public operation commits (or rolls back) before returning

Design Decisions:
    - Session passed in explicitly: the pool is a process resource owned by the lifespan,
      the service only borrows one connection per request
    - Two purge modes (core/domain_types.PurgeMode):
        ATOMIC   — DELETE ... RETURNING inside the export transaction; the exported rows
                   are exactly the deleted rows, concurrent creates survive untouched
        SEPARATE — SELECT SUM ... GROUP BY, then a second DELETE for the session;
                   a create landing between the two is deleted without being exported
"""

import logging
from typing import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from stocktake.core.aggregate_records import aggregate_records
from stocktake.core.domain_types import ExportRow, PurgeMode, RecordId, SessionKey
from stocktake.core.errors import ErrorContext, ExportError, RecordNotFoundError
from stocktake.core.parse_record_id import parse_record_id
from stocktake.models.scan_record import ScanRecord
from stocktake.schemas.record import RecordInput
from stocktake.services.spreadsheet import build_inventory_workbook

logger = logging.getLogger(__name__)


class RecordService:
    """CRUD and aggregated export over scanned_products, scoped by session key."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, session_key: SessionKey, data: RecordInput) -> RecordId:
        """Insert one record and return its store-assigned id."""
        record = ScanRecord(
            code=data.code,
            name=data.name,
            quantity=data.quantity,
            session_id=session_key,
        )
        self.db.add(record)
        await self.db.flush()
        record_id = RecordId(record.id)
        await self.db.commit()
        logger.info(
            f"Record {record_id} saved",
            extra={"session_key": session_key, "record_id": record_id},
        )
        return record_id

    async def update(
        self, session_key: SessionKey, record_id: str | int, data: RecordInput,
    ) -> None:
        """Overwrite code, name and quantity of a record owned by session_key."""
        rid = parse_record_id(record_id, ErrorContext(session_key=session_key))
        result = await self.db.execute(
            update(ScanRecord)
            .where(ScanRecord.id == rid, ScanRecord.session_id == session_key)
            .values(code=data.code, name=data.name, quantity=data.quantity)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise RecordNotFoundError(rid, ErrorContext(session_key=session_key))
        await self.db.commit()
        logger.info(
            f"Record {rid} updated",
            extra={"session_key": session_key, "record_id": rid},
        )

    async def delete(self, session_key: SessionKey, record_id: str | int) -> None:
        """Delete a record owned by session_key. Malformed ids never reach the store."""
        rid = parse_record_id(record_id, ErrorContext(session_key=session_key))
        result = await self.db.execute(
            delete(ScanRecord)
            .where(ScanRecord.id == rid, ScanRecord.session_id == session_key)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise RecordNotFoundError(rid, ErrorContext(session_key=session_key))
        await self.db.commit()
        logger.info(
            f"Record {rid} deleted",
            extra={"session_key": session_key, "record_id": rid},
        )

    async def list_records(self, session_key: SessionKey) -> Sequence[ScanRecord]:
        """All records of the session in insertion (id) order; empty when none."""
        result = await self.db.execute(
            select(ScanRecord)
            .where(ScanRecord.session_id == session_key)
            .order_by(ScanRecord.id)
            # bulk UPDATE bypasses the identity map; reload what the store holds
            .execution_options(populate_existing=True),
        )
        return result.scalars().all()

    async def aggregate(self, session_key: SessionKey) -> list[ExportRow]:
        """SUM(quantity) per (code, name) for the session, ordered by code, name."""
        result = await self.db.execute(
            select(
                ScanRecord.code,
                ScanRecord.name,
                func.sum(ScanRecord.quantity).label("total_quantity"),
            )
            .where(ScanRecord.session_id == session_key)
            .group_by(ScanRecord.code, ScanRecord.name)
            .order_by(ScanRecord.code, ScanRecord.name),
        )
        return [
            ExportRow(code=row.code, name=row.name, total_quantity=int(row.total_quantity))
            for row in result.all()
        ]

    async def purge(self, session_key: SessionKey) -> int:
        """Delete every record of the session; returns how many were removed."""
        result = await self.db.execute(
            delete(ScanRecord)
            .where(ScanRecord.session_id == session_key)
            .execution_options(synchronize_session=False),
        )
        await self.db.commit()
        logger.info(
            f"Purged {result.rowcount} record(s)",
            extra={"session_key": session_key, "row_count": result.rowcount},
        )
        return result.rowcount

    async def export_and_purge(
        self, session_key: SessionKey, mode: PurgeMode = PurgeMode.ATOMIC,
    ) -> bytes:
        """Build the aggregated workbook, then purge the session's records."""
        if mode is PurgeMode.ATOMIC:
            return await self._export_atomic(session_key)
        return await self._export_separate(session_key)

    async def _export_atomic(self, session_key: SessionKey) -> bytes:
        result = await self.db.execute(
            delete(ScanRecord)
            .where(ScanRecord.session_id == session_key)
            .returning(ScanRecord.code, ScanRecord.name, ScanRecord.quantity)
            .execution_options(synchronize_session=False),
        )
        deleted = result.all()
        content = await self._build_or_rollback(
            session_key, aggregate_records(deleted),
        )
        await self.db.commit()
        logger.info(
            f"Exported and purged {len(deleted)} record(s)",
            extra={
                "session_key": session_key, "row_count": len(deleted),
                "mode": PurgeMode.ATOMIC.value,
            },
        )
        return content

    async def _export_separate(self, session_key: SessionKey) -> bytes:
        rows = await self.aggregate(session_key)
        content = await self._build_or_rollback(session_key, rows)
        # not atomic with the read above: creates in between are lost
        purged = await self.purge(session_key)
        logger.info(
            f"Exported {len(rows)} group(s), purged {purged} record(s)",
            extra={
                "session_key": session_key, "row_count": purged,
                "mode": PurgeMode.SEPARATE.value,
            },
        )
        return content

    async def _build_or_rollback(
        self, session_key: SessionKey, rows: list[ExportRow],
    ) -> bytes:
        try:
            return build_inventory_workbook(rows)
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Workbook build failed: {e}",
                extra={"session_key": session_key},
                exc_info=True,
            )
            raise ExportError(str(e), ErrorContext(session_key=session_key))
