from .settings import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'hotel-booking-tests',
    }
}

# Run email jobs inline with no backoff sleeps
EMAIL_WORKER_SYNC = True
EMAIL_RETRY_BASE_DELAY = 0

LOG_LEVEL = 'WARNING'
LOGGING['loggers']['apps']['level'] = LOG_LEVEL  # noqa: F405
