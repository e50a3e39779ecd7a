"""Record Service — CRUD, session scoping and export/purge against SQLite.

Invariants:
    - Every operation is scoped by session key; foreign ids behave as missing
    - Update is a full overwrite; a failed update leaves the row untouched
    - Export sums per (code, name) and purges only after the workbook is built
"""

import io
from unittest.mock import AsyncMock

import pytest
from openpyxl import load_workbook

from stocktake.core.domain_types import PurgeMode, SessionKey
from stocktake.core.errors import (
    ExportError, RecordNotFoundError, RecordValidationError,
)
from stocktake.schemas.record import RecordInput
from stocktake.services.record_service import RecordService

S1 = SessionKey("s1")
S2 = SessionKey("s2")


def _input(code="ABC1", name="Widget", quantity=5) -> RecordInput:
    return RecordInput(code=code, name=name, quantity=quantity)


def _sheet_rows(content: bytes) -> list[tuple]:
    ws = load_workbook(io.BytesIO(content)).active
    return [tuple(row) for row in ws.iter_rows(values_only=True)]


# --- create / list ------------------------------------------------------------

async def test_create_then_list_returns_the_record(service):
    record_id = await service.create(S1, _input())
    records = await service.list_records(S1)
    assert len(records) == 1
    rec = records[0]
    assert (rec.id, rec.code, rec.name, rec.quantity, rec.session_id) == (
        record_id, "ABC1", "Widget", 5, "s1",
    )
    assert rec.created_at is not None


async def test_create_assigns_fresh_ids(service):
    first = await service.create(S1, _input())
    second = await service.create(S1, _input())
    assert first != second


async def test_list_for_unknown_session_is_empty(service):
    assert list(await service.list_records(SessionKey("nobody"))) == []


async def test_list_is_repeatable_without_writes(service):
    await service.create(S1, _input(code="A"))
    await service.create(S1, _input(code="B"))
    first = [(r.id, r.code) for r in await service.list_records(S1)]
    second = [(r.id, r.code) for r in await service.list_records(S1)]
    assert first == second


async def test_duplicate_code_and_name_accumulate(service):
    await service.create(S1, _input(quantity=1))
    await service.create(S1, _input(quantity=1))
    assert len(await service.list_records(S1)) == 2


# --- update -------------------------------------------------------------------

async def test_update_overwrites_all_fields(service):
    record_id = await service.create(S1, _input())
    await service.update(S1, record_id, _input(code="Z9", name="Gadget", quantity=2))
    [rec] = await service.list_records(S1)
    assert (rec.code, rec.name, rec.quantity) == ("Z9", "Gadget", 2)


async def test_update_accepts_string_id(service):
    record_id = await service.create(S1, _input())
    await service.update(S1, str(record_id), _input(quantity=9))
    [rec] = await service.list_records(S1)
    assert rec.quantity == 9


async def test_update_from_other_session_is_not_found_and_changes_nothing(service):
    record_id = await service.create(S1, _input())
    with pytest.raises(RecordNotFoundError):
        await service.update(S2, record_id, _input(code="HACK", quantity=0))
    [rec] = await service.list_records(S1)
    assert (rec.code, rec.quantity) == ("ABC1", 5)


async def test_update_missing_id_is_not_found(service):
    with pytest.raises(RecordNotFoundError) as exc_info:
        await service.update(S1, 999, _input())
    assert exc_info.value.record_id == 999


# --- delete -------------------------------------------------------------------

async def test_delete_removes_record(service):
    record_id = await service.create(S1, _input())
    await service.delete(S1, record_id)
    assert list(await service.list_records(S1)) == []


async def test_delete_from_other_session_is_not_found(service):
    record_id = await service.create(S1, _input())
    with pytest.raises(RecordNotFoundError):
        await service.delete(S2, record_id)
    assert len(await service.list_records(S1)) == 1


async def test_delete_twice_is_not_found(service):
    record_id = await service.create(S1, _input())
    await service.delete(S1, record_id)
    with pytest.raises(RecordNotFoundError):
        await service.delete(S1, record_id)


async def test_delete_non_numeric_id_fails_before_store():
    db = AsyncMock()
    service = RecordService(db)
    with pytest.raises(RecordValidationError):
        await service.delete(S1, "abc")
    db.execute.assert_not_called()


async def test_out_of_range_id_is_not_found_without_store_access():
    db = AsyncMock()
    service = RecordService(db)
    with pytest.raises(RecordNotFoundError) as exc_info:
        await service.update(S1, "0", _input())
    assert exc_info.value.context.session_key == S1
    db.execute.assert_not_called()


# --- aggregate / purge --------------------------------------------------------

async def test_aggregate_sums_identical_code_and_name(service):
    await service.create(S1, _input(quantity=3))
    await service.create(S1, _input(quantity=4))
    rows = await service.aggregate(S1)
    assert [(r.code, r.name, r.total_quantity) for r in rows] == [("ABC1", "Widget", 7)]


async def test_purge_only_touches_own_session(service):
    await service.create(S1, _input())
    await service.create(S1, _input())
    await service.create(S2, _input())
    assert await service.purge(S1) == 2
    assert list(await service.list_records(S1)) == []
    assert len(await service.list_records(S2)) == 1


# --- export -------------------------------------------------------------------

@pytest.mark.parametrize("mode", [PurgeMode.ATOMIC, PurgeMode.SEPARATE])
async def test_export_aggregates_and_purges(service, mode):
    await service.create(S1, _input(quantity=3))
    await service.create(S1, _input(quantity=4))
    await service.create(S1, _input(code="B2", name="Bolt", quantity=1))

    content = await service.export_and_purge(S1, mode)

    assert _sheet_rows(content) == [
        ("Código", "Nombre", "Cantidad Total"),
        ("ABC1", "Widget", 7),
        ("B2", "Bolt", 1),
    ]
    assert list(await service.list_records(S1)) == []


@pytest.mark.parametrize("mode", [PurgeMode.ATOMIC, PurgeMode.SEPARATE])
async def test_export_ignores_and_keeps_other_sessions(service, mode):
    await service.create(S1, _input(code="MINE"))
    await service.create(S2, _input(code="THEIRS"))

    content = await service.export_and_purge(S1, mode)

    codes = [row[0] for row in _sheet_rows(content)[1:]]
    assert codes == ["MINE"]
    [other] = await service.list_records(S2)
    assert other.code == "THEIRS"


@pytest.mark.parametrize("mode", [PurgeMode.ATOMIC, PurgeMode.SEPARATE])
async def test_export_of_empty_session_has_only_header(service, mode):
    content = await service.export_and_purge(S1, mode)
    assert _sheet_rows(content) == [("Código", "Nombre", "Cantidad Total")]


@pytest.mark.parametrize("mode", [PurgeMode.ATOMIC, PurgeMode.SEPARATE])
async def test_failed_build_does_not_purge(service, mode):
    # control characters are illegal in xlsx cells, openpyxl refuses them
    await service.create(S1, _input(name="bad\x01name"))
    await service.create(S1, _input(code="OK", name="fine"))

    with pytest.raises(ExportError):
        await service.export_and_purge(S1, mode)

    assert len(await service.list_records(S1)) == 2
