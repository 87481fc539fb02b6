from django.urls import path
from .views import register_view, me_view

app_name = "accounts"

urlpatterns = [
    path("register/", register_view, name="register"),
    path("me/", me_view, name="me"),
]
