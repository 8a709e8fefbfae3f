from drf_spectacular.utils import OpenApiExample, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import PromoResultSerializer, PromoValidateSerializer
from .services import validate_promo_code


class PromoCodeValidateView(APIView):
    """Preview the discount a promo code grants on an order value."""

    permission_classes = [AllowAny]
    throttle_scope = "promo"

    @extend_schema(
        tags=["Promo Code Endpoints"],
        summary="Validate promo code",
        request=PromoValidateSerializer,
        responses={
            200: PromoResultSerializer,
            400: inline_serializer(name="PromoInvalid", fields={"detail": rf_serializers.CharField()}),
            404: inline_serializer(name="PromoNotFound", fields={"detail": rf_serializers.CharField()}),
        },
        examples=[
            OpenApiExample("Valid", value={"valid": True, "code": "WELCOME10", "discount": "100.00", "description": ""})
        ],
    )
    def post(self, request):
        serializer = PromoValidateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = validate_promo_code(serializer.validated_data["code"], serializer.validated_data["order_value"])
        data = PromoResultSerializer(
            {"valid": True, "code": result.code, "discount": result.discount, "description": result.description}
        ).data
        return Response(data, status=status.HTTP_200_OK)
