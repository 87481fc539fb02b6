from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.utils import timezone
from .managers import UserManager


# ============================
# User Model
# ============================

class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom user model with email-based authentication.
    Every marketplace participant is either a store or a rider.
    """

    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Admin"
        STORE = "STORE", "Store"
        RIDER = "RIDER", "Rider"

    # Core fields
    email = models.EmailField(unique=True, db_index=True)
    name = models.CharField(max_length=120, blank=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.RIDER, db_index=True)

    # Account status
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    # Timestamps
    date_joined = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        indexes = [
            models.Index(fields=['role'], name='accounts_user_role_idx'),
        ]

    def __str__(self):
        return self.email

    @property
    def display_name(self):
        return self.name or self.email.split("@")[0]

    @property
    def is_store(self):
        return self.role == self.Role.STORE

    @property
    def is_rider(self):
        return self.role == self.Role.RIDER
