"""
Django base settings for the hotel maintenance tracker.
Shared settings between development, production and test.

Includes the recurring task scheduler configuration (sweep interval,
maintenance window, default execution time, daily notification window).
"""

from pathlib import Path
from decouple import config, Csv

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = config('SECRET_KEY', default='django-insecure-change-me-in-production')

# Application definition
DJANGO_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

THIRD_PARTY_APPS = [
    'django_filters',
    'django_q',
]

LOCAL_APPS = [
    'apps.accounts',
    'apps.tasks',
    'apps.activity_log',
    'apps.notifications',
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'


# =============================================================================
# AUTHENTICATION - Custom User Model
# =============================================================================
# Must be set BEFORE first migration
AUTH_USER_MODEL = 'accounts.User'

LOGIN_URL = 'admin:login'


# =============================================================================
# PASSWORD VALIDATION
# =============================================================================
AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {
            'min_length': 10,
        }
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
]

# Password hashing - use Argon2 as primary
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.Argon2PasswordHasher',
    'django.contrib.auth.hashers.PBKDF2PasswordHasher',
    'django.contrib.auth.hashers.PBKDF2SHA1PasswordHasher',
]


# =============================================================================
# INTERNATIONALIZATION & TIMEZONE
# =============================================================================
LANGUAGE_CODE = 'en-us'

# Hotel local time. Execution times, calendar-date dedup and the daily
# notification window are all evaluated in this zone.
TIME_ZONE = config('TIME_ZONE', default='Europe/Podgorica')

USE_I18N = True

USE_TZ = True

DATE_FORMAT = 'j M Y'
TIME_FORMAT = 'H:i'
DATETIME_FORMAT = 'j M Y, H:i'
SHORT_DATE_FORMAT = 'd.m.Y'
SHORT_DATETIME_FORMAT = 'd.m.Y H:i'


# =============================================================================
# STATIC FILES
# =============================================================================
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'


# =============================================================================
# EMAIL SETTINGS (notification delivery)
# =============================================================================
EMAIL_BACKEND = config(
    'EMAIL_BACKEND',
    default='django.core.mail.backends.console.EmailBackend'
)
EMAIL_HOST = config('EMAIL_HOST', default='localhost')
EMAIL_PORT = config('EMAIL_PORT', default=587, cast=int)
EMAIL_USE_TLS = config('EMAIL_USE_TLS', default=True, cast=bool)
EMAIL_HOST_USER = config('EMAIL_HOST_USER', default='')
EMAIL_HOST_PASSWORD = config('EMAIL_HOST_PASSWORD', default='')

DEFAULT_FROM_EMAIL = config('DEFAULT_FROM_EMAIL', default='noreply@hotel.local')


# =============================================================================
# RECURRING TASKS
# =============================================================================
# Sweep period of the recurring task scheduler (15 minutes)
RECURRING_TASK_SWEEP_MINUTES = config('RECURRING_TASK_SWEEP_MINUTES', default=15, cast=int)

# Delay before the first sweep after the scheduler is started
RECURRING_TASK_FIRST_RUN_DELAY_SECONDS = config(
    'RECURRING_TASK_FIRST_RUN_DELAY_SECONDS', default=5, cast=int
)

# Number of active (non-terminal) child tasks kept per template.
# Weekly: 8 tasks = ~2 months, monthly: 8 tasks = ~8 months
RECURRING_TASK_WINDOW_SIZE = config('RECURRING_TASK_WINDOW_SIZE', default=8, cast=int)

# Time of day used when a template has no execution time
RECURRING_TASK_DEFAULT_EXECUTION_HOUR = 9
RECURRING_TASK_DEFAULT_EXECUTION_MINUTE = 0

# Daily notification for tasks scheduled today: 08:00-08:14 local time
SCHEDULED_NOTIFICATION_HOUR = config('SCHEDULED_NOTIFICATION_HOUR', default=8, cast=int)
SCHEDULED_NOTIFICATION_WINDOW_MINUTES = 15


# =============================================================================
# DJANGO-Q2 SETTINGS (Background Tasks)
# =============================================================================
Q_CLUSTER = {
    'name': 'hotel_maintenance',
    'workers': 1,
    'recycle': 500,
    'timeout': 300,
    'retry': 600,
    'compress': True,
    'save_limit': 250,
    'queue_limit': 500,
    'cpu_affinity': 1,
    'label': 'Django Q2',
    'orm': 'default',
}


# =============================================================================
# LOGGING
# =============================================================================
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console'],
            'level': config('APPS_LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
    },
}


# =============================================================================
# DEFAULT PRIMARY KEY FIELD TYPE
# =============================================================================
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
