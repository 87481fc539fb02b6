"""
Tests for Reviews app.
Tests review creation, the order review flags and rating summaries.
"""
from decimal import Decimal
from rest_framework import status
from apps.orders.models import Order
from apps.orders.services.order_service import OrderService
from apps.reviews.models import Review
from apps.reviews.services.review_service import ReviewService
from common.exceptions import Forbidden, InvalidState
from common.testing import MarketplaceTestCase


class ReviewTestBase(MarketplaceTestCase):

    def completed_order(self):
        order = self.order_ready_for_pickup()
        OrderService.advance_status(order, self.rider_b, Order.IN_TRANSIT)
        OrderService.advance_status(order, self.rider_b, Order.DELIVERED)
        return OrderService.advance_status(order, self.store, Order.COMPLETED)


class ReviewServiceTestCase(ReviewTestBase):
    """Test review rules."""

    def test_store_reviews_rider(self):
        order = self.completed_order()

        review = ReviewService.create_review(order, self.store, 5, 'Fast and careful')

        self.assertEqual(review.target, self.rider_b)
        order.refresh_from_db()
        self.assertTrue(order.store_reviewed)
        self.assertFalse(order.rider_reviewed)

    def test_rider_reviews_store(self):
        order = self.completed_order()

        review = ReviewService.create_review(order, self.rider_b, 4)

        self.assertEqual(review.target, self.store)
        order.refresh_from_db()
        self.assertTrue(order.rider_reviewed)

    def test_second_review_by_same_side_rejected(self):
        order = self.completed_order()
        ReviewService.create_review(order, self.store, 5)

        with self.assertRaises(InvalidState):
            ReviewService.create_review(order, self.store, 1)

        self.assertEqual(Review.objects.filter(order=order).count(), 1)

    def test_review_before_completion_rejected(self):
        order = self.order_ready_for_pickup()

        with self.assertRaises(InvalidState):
            ReviewService.create_review(order, self.store, 5)

        order.refresh_from_db()
        self.assertFalse(order.store_reviewed)

    def test_non_participant_cannot_review(self):
        order = self.completed_order()

        for user in (self.outsider, self.rider_a):
            with self.assertRaises(Forbidden):
                ReviewService.create_review(order, user, 1)

        self.assertFalse(Review.objects.exists())

    def test_rating_summary(self):
        order = self.completed_order()
        ReviewService.create_review(order, self.store, 4)

        summary = ReviewService.get_rating_summary(self.rider_b)

        self.assertEqual(summary['total_reviews'], 1)
        self.assertEqual(summary['average_rating'], Decimal('4.00'))
        self.assertEqual(ReviewService.get_rating_summary(self.rider_a)['total_reviews'], 0)


class ReviewAPITestCase(ReviewTestBase):
    """Test Review API endpoints."""

    def test_create_review_success(self):
        order = self.completed_order()
        self.authenticate(self.rider_b)

        response = self.client.post(
            f'/api/reviews/orders/{order.id}/',
            {'rating': 5, 'comment': 'Paid on time'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['rating'], 5)
        self.assertEqual(response.data['target']['id'], self.store.id)
        self.assertEqual(response.data['reviewer']['id'], self.rider_b.id)

    def test_create_review_invalid_rating(self):
        order = self.completed_order()
        self.authenticate(self.store)

        response = self.client.post(f'/api/reviews/orders/{order.id}/', {'rating': 6}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_review_order_not_completed(self):
        order = self.order_ready_for_pickup()
        self.authenticate(self.store)

        response = self.client.post(f'/api/reviews/orders/{order.id}/', {'rating': 5}, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'invalid_state')

    def test_user_reviews(self):
        order = self.completed_order()
        ReviewService.create_review(order, self.store, 3)

        self.authenticate(self.outsider)
        response = self.client.get(f'/api/reviews/users/{self.rider_b.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_reviews'], 1)
        self.assertEqual(Decimal(response.data['average_rating']), Decimal('3.00'))
        self.assertEqual(len(response.data['reviews']), 1)
        self.assertEqual(response.data['user']['id'], self.rider_b.id)
