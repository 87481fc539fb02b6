"""
Review URL patterns.
"""
from django.urls import path
from apps.reviews import views

app_name = 'reviews'

urlpatterns = [
    path('orders/<uuid:order_id>/', views.create_review, name='create'),
    path('users/<int:user_id>/', views.user_reviews, name='user-reviews'),
]
