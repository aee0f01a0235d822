"""
Django test settings for the hotel maintenance tracker.

Used by pytest-django (see ``[tool.pytest.ini_options]`` in pyproject.toml).
"""

from .base import *

DEBUG = False

ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

# Fast hashing for test users
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

# Tests assume the hotel's wall clock
TIME_ZONE = 'Europe/Podgorica'

RECURRING_TASK_WINDOW_SIZE = 8
RECURRING_TASK_SWEEP_MINUTES = 15
RECURRING_TASK_FIRST_RUN_DELAY_SECONDS = 5

Q_CLUSTER = {
    'name': 'hotel_maintenance_test',
    'sync': True,
    'orm': 'default',
}

# Let pytest's caplog see application logs
LOGGING = {
    **LOGGING,
    'loggers': {
        **LOGGING['loggers'],
        'apps': {
            'handlers': [],
            'level': 'DEBUG',
            'propagate': True,
        },
    },
}
