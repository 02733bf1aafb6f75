"""Rate limiting for the public API and the auth endpoints.

Rates are written as ``<requests>/<multiplier><unit>``, e.g. ``1000/1m``
or ``50/15m``; the multiplier is optional so DRF's ``100/hour`` also
works.
"""

from __future__ import annotations

import re

from django.conf import settings  # type: ignore
from rest_framework.throttling import SimpleRateThrottle  # type: ignore

RATE_PATTERN = re.compile(r"^(?P<count>\d+)/(?P<multiplier>\d*)(?P<unit>[smhd])")
UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}
LOOPBACK_ADDRESSES = {"127.0.0.1", "::1", "localhost"}


class MultiplierRateThrottle(SimpleRateThrottle):
    def parse_rate(self, rate):  # type: ignore
        if rate is None:
            return (None, None)
        match = RATE_PATTERN.match(rate.strip())
        if not match:
            raise ValueError(f"Invalid throttle rate: {rate!r}")
        multiplier = int(match.group("multiplier") or 1)
        duration = multiplier * UNIT_SECONDS[match.group("unit")]
        return int(match.group("count")), duration

    def allow_request(self, request, view):  # type: ignore
        if getattr(settings, "THROTTLE_EXEMPT_LOOPBACK", False) and self.get_ident(request) in LOOPBACK_ADDRESSES:
            return True
        return super().allow_request(request, view)


class ApiRateThrottle(MultiplierRateThrottle):
    """Applied to every endpoint; keyed by user when authenticated."""

    scope = "api"

    def get_cache_key(self, request, view):  # type: ignore
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            ident = f"user-{user.pk}"
        else:
            ident = self.get_ident(request)
        return self.cache_format % {"scope": self.scope, "ident": ident}


class AuthRateThrottle(MultiplierRateThrottle):
    """Register/login: keyed by client address."""

    scope = "auth"

    def get_cache_key(self, request, view):  # type: ignore
        return self.cache_format % {"scope": self.scope, "ident": self.get_ident(request)}
