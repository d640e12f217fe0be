"""
DRF exception handler for application errors.

Registered as REST_FRAMEWORK["EXCEPTION_HANDLER"]. Views call services and
let core.exceptions propagate; this handler turns them into responses:

    BaseApplicationError -> e.to_dict() with e.status_code
    DRF APIException     -> DRF's default handling
    anything else        -> logged with traceback, generic 500

Response body for application errors:
    {
        "error": "Escrow is not funded",
        "error_code": "ESCROW_NOT_FUNDED",
        "details": {"current_status": "PENDING"}
    }
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """Map application errors to responses; hide internals of unexpected ones."""
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else None

    if isinstance(exc, BaseApplicationError):
        logger.warning(
            f"Request rejected: {exc.message}",
            extra={
                "error_code": exc.error_code,
                "status_code": exc.status_code,
                "view": view_name,
            },
        )
        return Response(exc.to_dict(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        return response

    logger.exception(
        "Unhandled error in API view",
        extra={"view": view_name},
        exc_info=exc,
    )
    return Response(
        {"error": "Internal server error", "error_code": "INTERNAL_ERROR"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
