"""Record Routes — the scan CRUD + export HTTP contract.

Invariants:
    - Every route scopes its work by the request's session key (get_session_key)
    - Bodies validated by RecordInput before the handler runs (400 on failure)
    - /records and /recover are the same handler under two paths
    - /export responds with the workbook only after RecordService has purged the session;
      on failure the JSON error envelope is returned and nothing is purged

Design Decisions:
    - Path ids taken as str and parsed by the service: a non-numeric id is a
      RecordValidationError raised before the store is touched
    - Purge mode: ?mode= query override, otherwise EXPORT_PURGE_MODE from settings
"""

import logging

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from stocktake.api.dependencies import get_app_settings, get_session_key
from stocktake.config import Settings
from stocktake.core.domain_types import PurgeMode, SessionKey
from stocktake.infrastructure.database import get_db
from stocktake.schemas.record import (
    MessageResponse, RecordInput, RecordOut, SaveResponse,
)
from stocktake.services.record_service import RecordService
from stocktake.services.spreadsheet import XLSX_MEDIA_TYPE, export_filename

logger = logging.getLogger(__name__)
router = APIRouter(tags=["records"])


def get_record_service(db: AsyncSession = Depends(get_db)) -> RecordService:
    return RecordService(db)


@router.post("/save", response_model=SaveResponse)
async def save_record(
    body: RecordInput,
    session_key: SessionKey = Depends(get_session_key),
    service: RecordService = Depends(get_record_service),
):
    """Create a scan record for the session."""
    record_id = await service.create(session_key, body)
    return SaveResponse(message="Registro guardado exitosamente", id=record_id)


@router.put("/save/{record_id}", response_model=MessageResponse)
async def update_record(
    record_id: str,
    body: RecordInput,
    session_key: SessionKey = Depends(get_session_key),
    service: RecordService = Depends(get_record_service),
):
    """Overwrite a record owned by the session."""
    await service.update(session_key, record_id, body)
    return MessageResponse(message="Registro actualizado exitosamente")


@router.delete("/delete/{record_id}", response_model=MessageResponse)
async def delete_record(
    record_id: str,
    session_key: SessionKey = Depends(get_session_key),
    service: RecordService = Depends(get_record_service),
):
    """Delete a record owned by the session."""
    await service.delete(session_key, record_id)
    return MessageResponse(message="Registro eliminado exitosamente")


@router.get("/records", response_model=list[RecordOut])
@router.get("/recover", response_model=list[RecordOut])
async def list_records(
    session_key: SessionKey = Depends(get_session_key),
    service: RecordService = Depends(get_record_service),
):
    """Raw records of the session."""
    return await service.list_records(session_key)


@router.get("/export")
async def export_records(
    mode: PurgeMode | None = Query(None),
    session_key: SessionKey = Depends(get_session_key),
    service: RecordService = Depends(get_record_service),
    settings: Settings = Depends(get_app_settings),
):
    """Download the aggregated workbook; the session's records are purged."""
    purge_mode = mode or settings.export_purge_mode
    content = await service.export_and_purge(session_key, purge_mode)
    filename = export_filename()
    logger.info(
        f"Sending {filename} ({len(content)} bytes)",
        extra={"session_key": session_key, "mode": purge_mode.value},
    )
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
        },
    )
