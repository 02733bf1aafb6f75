"""Test settings for the CampSpot project.

Runs against an in-memory SQLite database with Celery tasks executed
eagerly, the response cache switched off and generous throttle rates so
test suites never hit the limits.
"""

import tempfile

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'campspot-tests',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}

MEDIA_ROOT = tempfile.mkdtemp(prefix='campspot-media-')

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

RESPONSE_CACHE_ENABLED = False
REALTIME_REDIS_URL = ''

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    'DEFAULT_THROTTLE_RATES': {
        'api': '100000/1m',
        'auth': '100000/1m',
    },
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'root': {'level': 'CRITICAL'},
}
