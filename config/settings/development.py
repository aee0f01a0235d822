"""
Django development settings for the hotel maintenance tracker.

Runs the recurring task sweep every minute and executes Django-Q2 jobs
in-process, so `python manage.py qcluster` is enough to watch child tasks
being generated locally.
"""

from .base import *

DEBUG = True

ALLOWED_HOSTS = ['localhost', '127.0.0.1', '0.0.0.0']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}


# =============================================================================
# RECURRING TASKS (local overrides)
# =============================================================================
RECURRING_TASK_SWEEP_MINUTES = config('RECURRING_TASK_SWEEP_MINUTES', default=1, cast=int)

Q_CLUSTER = {
    **Q_CLUSTER,
    'name': 'hotel_maintenance_dev',
    'sync': config('Q_SYNC', default=False, cast=bool),
    'catch_up': False,
}


# =============================================================================
# DEBUG TOOLBAR
# =============================================================================
# Rebind rather than mutate: the base lists are shared with the other settings modules
INSTALLED_APPS = INSTALLED_APPS + ['debug_toolbar']

MIDDLEWARE = ['debug_toolbar.middleware.DebugToolbarMiddleware'] + MIDDLEWARE

INTERNAL_IPS = ['127.0.0.1']


EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'


# =============================================================================
# LOGGING
# =============================================================================
# Scheduler and materializer messages at DEBUG, everything else unchanged
LOGGING = {
    **LOGGING,
    'loggers': {
        **LOGGING['loggers'],
        'apps': {
            'handlers': ['console'],
            'level': 'DEBUG',
            'propagate': False,
        },
        'django_q': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}
