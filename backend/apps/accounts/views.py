from drf_spectacular.utils import extend_schema
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework import status
from rest_framework.throttling import AnonRateThrottle

from .serializers import RegisterSerializer, UserSerializer

import logging

logger = logging.getLogger('security')


class AuthRateThrottle(AnonRateThrottle):
    """
    Rate limiting for registration.
    5 requests per minute to prevent abuse.
    """
    rate = "5/min"


@extend_schema(tags=['Accounts'], request=RegisterSerializer, responses={201: UserSerializer})
@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([AuthRateThrottle])
def register_view(request):
    """
    Register a new store or rider account.
    The wallet is opened with the role's starting balance.
    """
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    logger.info(f"New {user.role} registered: {user.email}")
    return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Accounts'], responses=UserSerializer)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def me_view(request):
    """Return the authenticated user with wallet summary."""
    return Response(UserSerializer(request.user).data)
