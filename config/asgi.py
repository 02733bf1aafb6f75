"""ASGI config for the CampSpot project.

Realtime updates are published to Redis and served by a separate
websocket gateway, so this only exposes the HTTP application.
"""

import os
from django.core.asgi import get_asgi_application  # type: ignore

# Use the development settings by default. Production servers should set
# DJANGO_SETTINGS_MODULE accordingly.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_asgi_application()
