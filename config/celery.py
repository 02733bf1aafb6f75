import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("campspot")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Approved and paid reservations whose end date has passed
    "complete-finished-reservations": {
        "task": "bookings.complete_finished_reservations",
        "schedule": crontab(minute=15),
    },
    # Campsite availability bands drift as dates pass
    "refresh-site-availability": {
        "task": "bookings.refresh_site_availability",
        "schedule": crontab(minute=0, hour="*/6"),
    },
}

app.conf.timezone = "UTC"
