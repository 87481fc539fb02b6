from decimal import Decimal
from django.test import SimpleTestCase, TestCase
from django.utils.module_loading import import_string
from django.urls import reverse
from rest_framework.test import APITestCase
from rest_framework import status
from apps.accounts.models import User
from apps.accounts.views import AuthRateThrottle
from apps.wallets.models import Transaction, Wallet
from core.settings import base as base_settings


class TestAccountsAPI(APITestCase):

    def setUp(self):

        # URLs
        self.register_url = reverse("accounts:register")
        self.login_url = reverse("token-obtain")
        self.me_url = reverse("accounts:me")

        # Test User
        self.user_data = {
            "email": "store@test.com",
            "name": "Corner Store",
            "role": "STORE",
            "password": "StrongPass123!",
            "password_confirm": "StrongPass123!",
        }
        self.login_data = {
            "email": "store@test.com",
            "password": "StrongPass123!",
        }

    # ======================================================
    # REGISTER TESTS
    # ======================================================

    def test_register_success(self):

        response = self.client.post(self.register_url, self.user_data)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(User.objects.filter(email="store@test.com").exists())
        self.assertEqual(response.data["role"], "STORE")

    def test_register_seeds_store_wallet(self):

        self.client.post(self.register_url, self.user_data)

        wallet = Wallet.objects.get(user__email="store@test.com")
        self.assertEqual(wallet.balance, Decimal("1000.00"))
        self.assertEqual(wallet.escrow_held, Decimal("0.00"))
        self.assertEqual(wallet.transactions.count(), 1)
        self.assertEqual(wallet.transactions.get().direction, Transaction.IN)

    def test_register_seeds_rider_wallet(self):

        data = dict(self.user_data, email="rider@test.com", role="RIDER")
        self.client.post(self.register_url, data)

        wallet = Wallet.objects.get(user__email="rider@test.com")
        self.assertEqual(wallet.balance, Decimal("500.00"))

    def test_register_admin_role_rejected(self):

        data = dict(self.user_data, role="ADMIN")
        response = self.client.post(self.register_url, data)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email="store@test.com").exists())

    def test_register_duplicate_email(self):

        self.client.post(self.register_url, self.user_data)

        response = self.client.post(self.register_url, self.user_data)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_register_password_mismatch(self):

        data = dict(self.user_data, password_confirm="OtherPass123!")
        response = self.client.post(self.register_url, data)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password_confirm", response.data)

    def test_register_missing_password(self):

        response = self.client.post(self.register_url, {
            "email": "nopass@test.com",
            "role": "RIDER",
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    # ======================================================
    # JWT LOGIN TESTS
    # ======================================================

    def test_jwt_login_success(self):

        self.client.post(self.register_url, self.user_data)

        response = self.client.post(self.login_url, self.login_data)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)

    def test_login_wrong_password(self):

        self.client.post(self.register_url, self.user_data)

        response = self.client.post(self.login_url, {
            "email": "store@test.com",
            "password": "WrongPassword123"
        })

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    # ======================================================
    # PROTECTED ENDPOINT TESTS
    # ======================================================

    def test_me_endpoint_requires_auth(self):

        response = self.client.get(self.me_url)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_endpoint_with_token(self):

        # Register
        self.client.post(self.register_url, self.user_data)

        # Login
        login_response = self.client.post(self.login_url, self.login_data)
        token = login_response.data["access"]

        # Set Authorization Header
        self.client.credentials(
            HTTP_AUTHORIZATION=f"Bearer {token}"
        )

        response = self.client.get(self.me_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["email"], "store@test.com")
        self.assertEqual(Decimal(response.data["balance"]), Decimal("1000.00"))


class TestUserManager(TestCase):

    def test_create_user_defaults_to_rider(self):
        user = User.objects.create_user(email="Someone@Example.com", password="x")

        self.assertEqual(user.role, User.Role.RIDER)
        self.assertTrue(user.is_rider)
        self.assertEqual(user.email, "Someone@example.com")

    def test_unknown_role_rejected(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email="x@test.com", password="x", role="DRIVER")

    def test_superuser_is_admin(self):
        admin = User.objects.create_superuser(email="root@test.com", password="x")

        self.assertEqual(admin.role, User.Role.ADMIN)
        self.assertTrue(admin.is_staff)
        self.assertFalse(admin.is_store or admin.is_rider)


class TestThrottleSettings(SimpleTestCase):

    def test_every_rate_belongs_to_an_installed_throttle(self):
        config = base_settings.REST_FRAMEWORK
        scopes = {
            import_string(path).scope for path in config['DEFAULT_THROTTLE_CLASSES']
        }

        self.assertEqual(set(config['DEFAULT_THROTTLE_RATES']), scopes)

    def test_registration_throttle_rate(self):
        throttle = AuthRateThrottle()

        self.assertEqual(throttle.num_requests, 5)
        self.assertEqual(throttle.duration, 60)
