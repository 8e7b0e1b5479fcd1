"""Tests for domain exceptions (error_code, message, details) and their HTTP status."""

import pytest

from sqlgate.core.exception_handlers import status_for
from sqlgate.domain.exceptions import (
    AuthorizationException,
    PolicyViolationException,
    QueryExecutionException,
    ResourceNotFoundException,
    SecurityCheckUnavailableException,
    SqlGateException,
    SqlNotConfiguredException,
    ValidationException,
)


def test_base_exception_default_error_code() -> None:
    exc = SqlGateException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "SqlGateException"
    assert exc.details == {}


def test_authorization_exception_message_and_details() -> None:
    exc = AuthorizationException(resource="role:r1", action="admin", reason="explicitly denied")
    assert exc.message == "Permission denied: admin on role:r1 (explicitly denied)"
    assert exc.details == {
        "resource": "role:r1",
        "action": "admin",
        "reason": "explicitly denied",
    }


def test_policy_violation_carries_rule() -> None:
    exc = PolicyViolationException("DDL statement (DROP) is blocked", rule="ddl_block")
    assert exc.to_dict() == {
        "error": "POLICY_VIOLATION",
        "message": "DDL statement (DROP) is blocked",
        "details": {"rule": "ddl_block", "risk_score": 0, "matched_policies": []},
    }


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (ResourceNotFoundException("connection", "c1"), 404),
        (AuthorizationException(), 403),
        (PolicyViolationException("blocked", rule="ddl_block"), 403),
        (ValidationException("bad"), 400),
        (QueryExecutionException("hint", "raw", "c1"), 422),
        (SecurityCheckUnavailableException(), 503),
        (SqlNotConfiguredException(), 503),
        (SqlGateException("other"), 400),
    ],
)
def test_status_mapping(exc: SqlGateException, status: int) -> None:
    assert status_for(exc) == status
