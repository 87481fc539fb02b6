"""
Settings for the test suite.
"""
from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = "test-secret-key"

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.InMemoryStorage",
    },
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    'DEFAULT_THROTTLE_CLASSES': [],
}

WALLET_STARTING_BALANCES = {
    'STORE': Decimal('1000.00'),  # noqa: F405
    'RIDER': Decimal('500.00'),  # noqa: F405
}

# Throttle history lives in the cache; keep it from leaking between tests
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.dummy.DummyCache',
    }
}
