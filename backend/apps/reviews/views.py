"""
Review views and API endpoints.
"""
from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.orders.models import Order
from apps.reviews.serializers import (
    CreateReviewSerializer,
    ReviewSerializer,
    UserRatingSerializer,
)
from apps.reviews.services.review_service import ReviewService

User = get_user_model()


@extend_schema(tags=['Reviews'], request=CreateReviewSerializer, responses={201: ReviewSerializer})
@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def create_review(request, order_id):
    """
    Review the other party of a completed order.
    Store and rider can each review once.
    """
    order = get_object_or_404(Order, id=order_id)

    serializer = CreateReviewSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    review = ReviewService.create_review(
        order=order,
        reviewer=request.user,
        rating=serializer.validated_data['rating'],
        comment=serializer.validated_data.get('comment', ''),
    )

    return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Reviews'], responses=UserRatingSerializer)
@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def user_reviews(request, user_id):
    """
    Rating summary and reviews received by a user.
    """
    user = get_object_or_404(User, id=user_id)

    # Get limit from query params (default 20)
    try:
        limit = int(request.query_params.get('limit', 20))
    except ValueError:
        limit = 20
    limit = max(1, min(limit, 100))  # Max 100 reviews

    data = {
        'user': user,
        'reviews': ReviewService.get_user_reviews(user, limit=limit),
        **ReviewService.get_rating_summary(user),
    }
    return Response(UserRatingSerializer(data).data)
