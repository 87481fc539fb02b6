from django.contrib.auth.base_user import BaseUserManager


class UserManager(BaseUserManager):
    """
    Email-keyed manager. Every user carries a marketplace role.
    """

    def create_user(self, email, password=None, role=None, **extra_fields):

        if not email:
            raise ValueError("Email is required")

        role = role or self.model.Role.RIDER
        if role not in self.model.Role.values:
            raise ValueError(f"Unknown role {role!r}")

        user = self.model(
            email=self.normalize_email(email),
            role=role,
            **extra_fields
        )

        user.set_password(password)
        user.save(using=self._db)

        return user

    def create_superuser(self, email, password=None, **extra_fields):

        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if not extra_fields.get("is_staff") or not extra_fields.get("is_superuser"):
            raise ValueError("Superuser must be staff and superuser")

        return self.create_user(email, password, role=self.model.Role.ADMIN, **extra_fields)
