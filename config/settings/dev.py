"""Local development overrides: debug on, emails printed to the console."""

from .base import *  # noqa: F401,F403

DEBUG = True

ALLOWED_HOSTS = ['*']

EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

CELERY_TASK_ALWAYS_EAGER = env_bool('CELERY_TASK_ALWAYS_EAGER', True)  # noqa: F405

THROTTLE_EXEMPT_LOOPBACK = True
