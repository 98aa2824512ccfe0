# services/learning-service/src/config/settings/testing.py
"""
Testing settings for Learning Service.
"""

from .base import *

# Testing mode
DEBUG = True
TESTING = True

# Use in-memory SQLite for tests
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

# Faster password hashing for tests
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

# Disable migrations for faster tests
class DisableMigrations:
    def __contains__(self, item):
        return True

    def __getitem__(self, item):
        return None

MIGRATION_MODULES = DisableMigrations()

# Cache
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

STORAGES['default'] = {'BACKEND': 'django.core.files.storage.InMemoryStorage'}

JWT_SETTINGS = {
    **JWT_SETTINGS,
    'SIGNING_KEY': 'test-signing-key',
    'VERIFYING_KEY': 'test-signing-key',
}

SERVICE_KEYS = {'payment-service': 'test-payment-key'}

# Logging - minimal for tests
LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
        'level': 'CRITICAL',
    },
}
