"""
Review service - business logic for reviews and ratings.
The order's review flags are owned by OrderService; this module records
the review itself and computes a user's rating summary.
"""
from typing import Optional
from decimal import Decimal
from django.db import transaction
from django.db.models import Avg, Count
from apps.orders.services.order_service import OrderService
from apps.reviews.models import Review


class ReviewService:
    """
    Service for managing reviews between stores and riders.
    """

    @staticmethod
    @transaction.atomic
    def create_review(order, reviewer, rating: int, comment: str = "") -> Review:
        """
        Create a review for a completed order.

        The store reviews the rider and the rider reviews the store,
        each at most once per order.

        Raises:
            Forbidden: If reviewer is not a participant
            InvalidState: If the order is not COMPLETED or already reviewed by this side
        """
        order = OrderService.mark_reviewed(order, reviewer)

        target = order.rider if order.is_store(reviewer) else order.store

        return Review.objects.create(
            order=order,
            reviewer=reviewer,
            target=target,
            rating=rating,
            comment=comment[:1000],
        )

    @staticmethod
    def get_user_reviews(user, limit: Optional[int] = None):
        """
        Get reviews received by a user, newest first.
        """
        reviews = Review.objects.filter(
            target=user
        ).select_related('reviewer', 'order').order_by('-created_at')

        if limit:
            reviews = reviews[:limit]

        return reviews

    @staticmethod
    def get_rating_summary(user) -> dict:
        """
        Aggregate rating statistics for a user.
        """
        stats = Review.objects.filter(target=user).aggregate(
            total=Count('id'),
            avg_rating=Avg('rating'),
        )
        return {
            'total_reviews': stats['total'] or 0,
            'average_rating': Decimal(str(stats['avg_rating'] or 0)).quantize(Decimal('0.01')),
        }
