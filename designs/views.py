"""Scheduled-job endpoint for the design retention sweep."""

import hmac
import logging

from django.conf import settings
from drf_spectacular.utils import OpenApiExample, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .cleanup import sweep_expired_design_assets

logger = logging.getLogger("printworks.designs")


def _has_cron_secret(request) -> bool:
    """Check ``Authorization: Bearer <CRON_SECRET>``.

    With no secret configured every caller is accepted (local development).
    """
    expected = getattr(settings, "CRON_SECRET", "")
    if not expected:
        return True
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return False
    return hmac.compare_digest(token.strip().encode(), expected.encode())


class CleanupDesignsView(APIView):
    """Delete stored artwork for orders past their retention window."""

    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_scope = "cron"

    @extend_schema(
        tags=["Cron Endpoints"],
        summary="Run design retention sweep",
        description=(
            "Deletes design blobs of delivered orders older than 180 days and design blobs plus "
            "payment screenshots of cancelled orders older than 90 days. Requires the cron bearer secret."
        ),
        request=None,
        responses={
            200: inline_serializer(
                name="CleanupDesignsResponse",
                fields={
                    "success": rf_serializers.BooleanField(),
                    "message": rf_serializers.CharField(),
                    "summary": rf_serializers.DictField(),
                },
            ),
            401: inline_serializer(name="CronUnauthorized", fields={"detail": rf_serializers.CharField()}),
        },
        examples=[
            OpenApiExample(
                "Completed",
                value={
                    "success": True,
                    "message": "Blob cleanup completed",
                    "summary": {"deliveredOrdersProcessed": 2, "cancelledOrdersProcessed": 1, "filesDeleted": 5},
                },
            )
        ],
    )
    def post(self, request):
        if not _has_cron_secret(request):
            logger.warning("cron.unauthorized", extra={"event": "cron.unauthorized", "path": request.path})
            return Response({"detail": "Unauthorized"}, status=status.HTTP_401_UNAUTHORIZED)
        report = sweep_expired_design_assets()
        message = "Blob cleanup stopped at time budget" if report.timed_out else "Blob cleanup completed"
        return Response({"success": True, "message": message, "summary": report.as_dict()}, status=status.HTTP_200_OK)
