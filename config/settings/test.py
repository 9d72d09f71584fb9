# config/settings/test.py
from .base import *  # noqa: F401,F403

DEBUG = False

# File-backed so threaded tests get real connections instead of a shared in-memory cache
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'test_db.sqlite3',
        'OPTIONS': {'timeout': 20},
        'TEST': {'NAME': BASE_DIR / 'test_db.sqlite3'},
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

SCHEDULING = {
    **SCHEDULING,
    'READ_RETRY_BACKOFF': 0,
}

LOG_LEVEL = 'WARNING'
LOGGING['loggers']['apps']['level'] = LOG_LEVEL
LOGGING['loggers']['core']['level'] = LOG_LEVEL
