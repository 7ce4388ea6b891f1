"""
DRF exception handler translating application errors into API responses.

Registered via REST_FRAMEWORK["EXCEPTION_HANDLER"]. Views raise the
exceptions from core.exceptions (or their domain subclasses) and this
handler turns them into JSON responses using each exception's status_code.

Database failures are logged with the request context and reported as 500
with the underlying message; they are never retried here.
"""

from __future__ import annotations

import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def _view_name(context: dict) -> str | None:
    view = context.get("view")
    return view.__class__.__name__ if view is not None else None


def api_exception_handler(exc, context):
    """
    Convert BaseApplicationError and DatabaseError into Responses.

    Anything else falls through to DRF's default handler, which returns
    None for unhandled exceptions so Django's 500 handling applies.
    """
    if isinstance(exc, BaseApplicationError):
        log_level = logging.ERROR if exc.status_code >= 500 else logging.INFO
        logger.log(
            log_level,
            f"Request failed: {exc}",
            extra={
                "error_code": exc.error_code,
                "status_code": exc.status_code,
                "view": _view_name(context),
            },
        )
        return Response(exc.to_dict(), status=exc.status_code)

    if isinstance(exc, DatabaseError):
        logger.error(
            f"Database error: {exc}",
            extra={"view": _view_name(context), "kwargs": context.get("kwargs")},
            exc_info=True,
        )
        return Response(
            {"error": str(exc), "error_code": "STORE_ERROR"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return exception_handler(exc, context)
