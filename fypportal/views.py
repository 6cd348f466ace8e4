import logging

from django.db import DatabaseError, connection
from rest_framework import permissions, status
from rest_framework.views import APIView

from .api import success

logger = logging.getLogger(__name__)


class HealthView(APIView):
    """Liveness check with a database round-trip."""

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
        except DatabaseError:
            logger.exception("Health check database query failed")
            return success(
                {"status": "degraded", "database": "error"},
                status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return success({"status": "ok", "database": "ok"})
