"""Django project configuration for CampSpot."""

# Loaded with Django so @shared_task functions bind to this app
from .celery import app as celery_app  # noqa: F401
