"""
Review serializers.
"""
from rest_framework import serializers
from apps.accounts.serializers import UserSummarySerializer
from apps.reviews.models import Review


class ReviewSerializer(serializers.ModelSerializer):
    """Serializer for reviews."""
    reviewer = UserSummarySerializer(read_only=True)
    target = UserSummarySerializer(read_only=True)
    order_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Review
        fields = ['id', 'order_id', 'reviewer', 'target', 'rating', 'comment', 'created_at']
        read_only_fields = fields


class CreateReviewSerializer(serializers.Serializer):
    """Serializer for creating reviews."""
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(
        max_length=1000,
        required=False,
        allow_blank=True
    )


class UserRatingSerializer(serializers.Serializer):
    """Rating summary with the latest reviews received."""
    user = UserSummarySerializer()
    total_reviews = serializers.IntegerField()
    average_rating = serializers.DecimalField(max_digits=3, decimal_places=2)
    reviews = ReviewSerializer(many=True)
