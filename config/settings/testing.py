"""
Django Settings - Testing Configuration
"""

from .base import *

DEBUG = False
TESTING = True

SECRET_KEY = "test-secret-key"

# Use faster password hasher
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Disable logging during tests
LOGGING = {}
