import logging
import pytest
from fastapi import HTTPException

from app.services.pricing.errors import ReconciliationError, SnapshotError
from app.utils.errors import error_response, pricing_error_response


def test_error_response_logs(caplog):
    caplog.set_level(logging.ERROR, logger="app.utils.errors")
    with pytest.raises(HTTPException):
        raise error_response("Invalid", {"field": "bad"})
    assert any(
        "Invalid" in r.getMessage() and "'field': 'bad'" in r.getMessage()
        for r in caplog.records
    )


def test_snapshot_error_is_client_error():
    exc = pricing_error_response(SnapshotError("Malformed pricing snapshot", {"total": "required"}))
    assert exc.status_code == 422
    assert exc.detail == {"message": "Malformed pricing snapshot", "field_errors": {"total": "required"}}


def test_reconciliation_error_is_server_error():
    exc = pricing_error_response(ReconciliationError("off by a cent"))
    assert exc.status_code == 500
    assert exc.detail["field_errors"] == {"pricing": "off by a cent"}
