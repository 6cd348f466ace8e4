"""Typed errors raised by the workflow services.

``NotFound``, ``PermissionDenied`` and ``ValidationError`` come straight from
DRF; the classes below cover the remaining cases so that every failure has a
stable machine-readable code.
"""
from rest_framework import exceptions, status


class InvalidState(exceptions.APIException):
    """The operation is not allowed for the entity's current status."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Operation is not allowed in the current state."
    default_code = "invalid_state"


class Conflict(exceptions.APIException):
    """A uniqueness rule would be violated."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflicting record already exists."
    default_code = "conflict"


class ResourceExhausted(exceptions.APIException):
    """A per-user quota has been reached."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Limit exceeded."
    default_code = "resource_exhausted"
