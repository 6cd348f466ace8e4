"""Response envelope and error rendering shared by every API view.

Successful responses look like ``{"success": true, "data": ...}``; errors look
like ``{"code": "...", "message": "..."}``.
"""
from __future__ import annotations

import logging
import math
from typing import Any

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500

_ERROR_CODES = (
    (exceptions.ValidationError, "invalid_argument"),
    (exceptions.ParseError, "invalid_argument"),
    (exceptions.NotFound, "not_found"),
    (Http404, "not_found"),
    (exceptions.NotAuthenticated, "not_authenticated"),
    (exceptions.AuthenticationFailed, "not_authenticated"),
    (exceptions.PermissionDenied, "forbidden"),
    (DjangoPermissionDenied, "forbidden"),
    (exceptions.MethodNotAllowed, "method_not_allowed"),
)


def _error_code(exc: Exception) -> str:
    for exc_class, code in _ERROR_CODES:
        if isinstance(exc, exc_class):
            return code
    return getattr(exc, "default_code", None) or "error"


def _first_message(detail: Any) -> str:
    if isinstance(detail, dict):
        if "detail" in detail:
            return _first_message(detail["detail"])
        for field, value in detail.items():
            message = _first_message(value)
            if field == "non_field_errors":
                return message
            return f"{field}: {message}"
        return ""
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ""
    return str(detail)


def exception_handler(exc, context):
    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    payload = {"code": _error_code(exc), "message": _first_message(response.data)}
    if isinstance(exc, exceptions.ValidationError) and isinstance(response.data, dict):
        payload["errors"] = response.data

    if response.status_code >= 500:
        logger.error("API error %s: %s", payload["code"], payload["message"])
    response.data = payload
    return response


def success(data: Any, status_code: int = status.HTTP_200_OK) -> Response:
    return Response({"success": True, "data": data}, status=status_code)


def _positive_int(raw: str | None, default: int, name: str) -> int:
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise exceptions.ValidationError({name: ["Must be an integer."]}) from exc
    if value < 1:
        raise exceptions.ValidationError({name: ["Must be at least 1."]})
    return value


def paginated(request, queryset, serializer_class, *, default_limit: int = 10) -> Response:
    """Slice ``queryset`` by the ``page``/``limit`` query parameters."""

    page = _positive_int(request.query_params.get("page"), 1, "page")
    limit = min(
        _positive_int(request.query_params.get("limit"), default_limit, "limit"),
        MAX_PAGE_SIZE,
    )
    total = queryset.count()
    offset = (page - 1) * limit
    items = queryset[offset : offset + limit]
    data = serializer_class(items, many=True, context={"request": request}).data
    return Response(
        {
            "success": True,
            "data": data,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if total else 0,
            },
        }
    )
