"""Error Hierarchy — verifies status codes and the REST envelope.

Tests:
    - Every error renders a top-level "error" key
    - Internal details only rendered on request
    - Status codes follow the HTTP contract (400 / 404 / 500)
"""

from stocktake.core.errors import (
    DatabaseError, ErrorCategory, ErrorContext, ExportError,
    RecordNotFoundError, RecordValidationError, StocktakeError,
)


def test_validation_error_is_400_with_field():
    err = RecordValidationError("ID inválido", "id")
    body = err.to_response()
    assert err.http_status == 400
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["field"] == "id"


def test_not_found_error_is_404_and_carries_record_id():
    err = RecordNotFoundError(5, ErrorContext(session_key="s1"))
    assert err.http_status == 404
    assert err.category is ErrorCategory.RESOURCE_NOT_FOUND
    assert err.to_response()["error"]["record_id"] == 5
    assert err.context.session_key == "s1"


def test_database_error_hides_reason_by_default():
    err = DatabaseError("relation does not exist", "query")
    body = err.to_response()
    assert err.http_status == 500
    assert body["error"]["message"] == "Error interno del servidor"
    assert "details" not in body["error"]


def test_database_error_shows_reason_in_debug_mode():
    err = DatabaseError("relation does not exist", "query")
    details = err.to_response(include_debug=True)["error"]["details"]
    assert details == {"operation": "query", "reason": "relation does not exist"}


def test_export_error_is_500():
    err = ExportError("bad character")
    assert err.http_status == 500
    assert err.to_response()["error"]["code"] == "EXPORT_ERROR"


def test_all_errors_share_base_class():
    for err in (
        RecordValidationError("x", "code"), RecordNotFoundError(1),
        DatabaseError("x", "query"), ExportError("x"),
    ):
        assert isinstance(err, StocktakeError)
        assert "error" in err.to_response()
