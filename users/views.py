"""Users app API views.

Session issuance is plain SimpleJWT; the order pipeline only consumes
``request.user`` resolved by ``JWTAuthentication``.
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .logging import log_auth_event
from .models import User


class UserMeSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "username", "email", "first_name", "last_name", "phone", "is_staff"]


@extend_schema(tags=["User Endpoints"], summary="Sign in", description="Issue an access/refresh JWT pair.")
class SignInView(TokenObtainPairView):
    throttle_scope = "signin"

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        log_auth_event("signin", request, status="success" if response.status_code == 200 else "failed")
        return response


@extend_schema(tags=["User Endpoints"], summary="Refresh access token")
class RefreshView(TokenRefreshView):
    throttle_scope = "token_refresh"


@extend_schema(
    tags=["User Endpoints"],
    summary="Get current user profile",
    responses={
        200: OpenApiResponse(description="User profile", response=UserMeSerializer),
        401: OpenApiResponse(description="Unauthorized"),
    },
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def current_user(request):
    return Response(UserMeSerializer(request.user).data)
