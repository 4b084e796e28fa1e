import logging

from rest_framework import status, permissions
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from .serializers import LoginSerializer

logger = logging.getLogger(__name__)


class PhoneTokenObtainPairView(TokenObtainPairView):
    serializer_class = LoginSerializer


class LogoutAPIView(APIView):
    """
    Blacklist the given refresh token.
    Always answers 200 so that logging out twice is harmless.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        refresh_token = request.data.get("refresh_token")
        if refresh_token:
            try:
                RefreshToken(refresh_token).blacklist()
            except TokenError:
                logger.info("[AUTH] Logout with invalid or already blacklisted token")

        return Response(
            {"detail": "Successfully logged out."}, status=status.HTTP_200_OK
        )
