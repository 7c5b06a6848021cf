# core/api.py

"""
API ENVELOPE + EXCEPTION HANDLER

Every workflow endpoint responds with:
    {"success": bool, "message": str, "data": ...}

Failures add:
    {"error": {"code": ..., "message": ..., "details": {...}}}

Wired through REST_FRAMEWORK["EXCEPTION_HANDLER"].
"""

from __future__ import annotations

import logging

from rest_framework import exceptions as drf_exceptions
from rest_framework import status as http
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from core.exceptions import WorkflowError

logger = logging.getLogger("workflow")


def ok_response(data=None, message: str = "", status: int = http.HTTP_200_OK) -> Response:
    return Response(
        {"success": True, "message": message, "data": data},
        status=status,
    )


def error_response(*, code: str, message: str, details=None, status: int) -> Response:
    return Response(
        {
            "success": False,
            "message": message,
            "data": None,
            "error": {"code": code, "message": message, "details": details or {}},
        },
        status=status,
    )


def paginated_response(view, queryset, serializer_class, message: str = "") -> Response:
    """
    Paginate with the view's paginator; data becomes
    {"count", "next", "previous", "results"} (or a plain list when unpaginated).
    """
    page = view.paginate_queryset(queryset)
    context = view.get_serializer_context()
    if page is None:
        return ok_response(serializer_class(queryset, many=True, context=context).data, message=message)

    paginator = view.paginator
    return ok_response(
        {
            "count": paginator.page.paginator.count,
            "next": paginator.get_next_link(),
            "previous": paginator.get_previous_link(),
            "results": serializer_class(page, many=True, context=context).data,
        },
        message=message,
    )


_DRF_CODES = {
    drf_exceptions.ValidationError: "validation_error",
    drf_exceptions.ParseError: "validation_error",
    drf_exceptions.NotAuthenticated: "not_authenticated",
    drf_exceptions.AuthenticationFailed: "not_authenticated",
    drf_exceptions.PermissionDenied: "forbidden",
    drf_exceptions.NotFound: "not_found",
    drf_exceptions.MethodNotAllowed: "method_not_allowed",
    drf_exceptions.Throttled: "throttled",
}


def _drf_code(exc) -> str:
    for klass, code in _DRF_CODES.items():
        if isinstance(exc, klass):
            return code
    return "error"


def _flatten_message(detail) -> str:
    if isinstance(detail, dict):
        for key, value in detail.items():
            inner = _flatten_message(value)
            if key in ("detail", "non_field_errors"):
                return inner
            return f"{key}: {inner}"
        return ""
    if isinstance(detail, (list, tuple)):
        return _flatten_message(detail[0]) if detail else ""
    return str(detail)


def workflow_exception_handler(exc, context):
    if isinstance(exc, WorkflowError):
        view = context.get("view")
        logger.info(
            "workflow.rejected",
            extra={
                "code": exc.code,
                "view": view.__class__.__name__ if view is not None else "",
                "details": exc.details,
            },
        )
        return error_response(
            code=exc.code,
            message=exc.message,
            details=exc.details,
            status=exc.http_status,
        )

    response = drf_exception_handler(exc, context)
    if response is None:
        # unhandled -> Django's 500 path (and Sentry, when configured)
        return None

    detail = response.data
    return error_response(
        code=_drf_code(exc),
        message=_flatten_message(detail) or "Request failed.",
        details=detail if isinstance(detail, dict) else {"detail": detail},
        status=response.status_code,
    )
