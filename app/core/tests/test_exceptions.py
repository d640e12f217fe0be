"""
Tests for the application error hierarchy and the DRF exception handler.
"""

from __future__ import annotations

import pytest
from rest_framework.exceptions import NotAuthenticated

from core.exception_handler import api_exception_handler
from core.exceptions import (
    BaseApplicationError,
    BusinessRuleError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


class TestApplicationErrors:
    @pytest.mark.parametrize(
        ("error_class", "status_code"),
        [
            (ValidationError, 422),
            (NotFoundError, 404),
            (PermissionDeniedError, 403),
            (ConflictError, 409),
            (BusinessRuleError, 400),
            (ExternalServiceError, 502),
        ],
    )
    def test_status_codes(self, error_class, status_code):
        assert error_class("boom").status_code == status_code

    def test_to_dict_without_details(self):
        error = ConflictError("Escrow already exists", error_code="ESCROW_EXISTS")

        assert error.to_dict() == {
            "error": "Escrow already exists",
            "error_code": "ESCROW_EXISTS",
        }

    def test_to_dict_with_details(self):
        error = BusinessRuleError(
            "Insufficient balance",
            error_code="INSUFFICIENT_BALANCE",
            details={"available": 100, "requested": 200},
        )

        assert error.to_dict()["details"] == {"available": 100, "requested": 200}

    def test_default_error_code(self):
        error = NotFoundError("Escrow not found")

        assert error.error_code == NotFoundError.default_error_code

    def test_business_rule_status_override(self):
        """Should let a single raise pick a different status."""
        error = BusinessRuleError("Lock held", status_code=409)

        assert error.status_code == 409
        assert BusinessRuleError("Other").status_code == 400

    def test_str_and_repr(self):
        error = ValidationError("Reason is required", error_code="REASON_REQUIRED")

        assert str(error) == "[REASON_REQUIRED] Reason is required"
        assert repr(error).startswith("ValidationError(message='Reason is required'")

    def test_subclasses_share_base(self):
        assert issubclass(ExternalServiceError, BaseApplicationError)


class TestApiExceptionHandler:
    def test_application_error(self):
        error = PermissionDeniedError("Not your escrow", error_code="NOT_ESCROW_CLIENT")

        response = api_exception_handler(error, {"view": None})

        assert response.status_code == 403
        assert response.data == {"error": "Not your escrow", "error_code": "NOT_ESCROW_CLIENT"}

    def test_drf_error_uses_default_handling(self):
        response = api_exception_handler(NotAuthenticated(), {"view": None})

        assert response.status_code == 401
        assert "detail" in response.data

    def test_unexpected_error_is_hidden(self, mocker):
        logger = mocker.patch("core.exception_handler.logger")

        response = api_exception_handler(RuntimeError("db password leaked"), {"view": None})

        assert response.status_code == 500
        assert response.data == {"error": "Internal server error", "error_code": "INTERNAL_ERROR"}
        logger.exception.assert_called_once()
