"""Caching of GET responses for read-heavy catalog endpoints."""

from __future__ import annotations

import hashlib
import logging
from typing import Callable, List

from django.conf import settings  # type: ignore
from django.core.cache import cache  # type: ignore
from rest_framework.response import Response  # type: ignore

logger = logging.getLogger(__name__)

CACHE_KEYS_STORAGE_PREFIX = "response:cache_keys"
DEFAULT_TIMEOUT = 5 * 60


def _is_cache_enabled() -> bool:
    return getattr(settings, "RESPONSE_CACHE_ENABLED", False)


def _audience(request) -> str:
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated and getattr(user, "is_admin", lambda: False)():
        return "admin"
    return "public"


def _build_cache_key(family: str, request) -> str:
    prefix = getattr(settings, "RESPONSE_CACHE_PREFIX", "response")
    fingerprint = f"{_audience(request)}|{request.get_full_path()}"
    digest = hashlib.sha1(fingerprint.encode("utf-8")).hexdigest()
    return f"{prefix}:{family}:{digest}"


def _keys_storage_key(family: str) -> str:
    return f"{CACHE_KEYS_STORAGE_PREFIX}:{family}"


def _register_cache_key(family: str, key: str) -> None:
    storage_key = _keys_storage_key(family)
    keys: List[str] | None = cache.get(storage_key)
    if keys is None:
        cache.set(storage_key, [key], None)
        return
    if key in keys:
        return
    keys.append(key)
    cache.set(storage_key, keys, None)


def get_timeout(family: str) -> int:
    return getattr(settings, "RESPONSE_CACHE_TIMEOUTS", {}).get(family, DEFAULT_TIMEOUT)


def cached_response(family: str, request, builder: Callable[[], Response]) -> Response:
    """Return the cached payload for ``request`` or build and store it."""
    if not _is_cache_enabled() or request.method != "GET":
        return builder()

    key = _build_cache_key(family, request)
    cached = cache.get(key)
    if cached is not None:
        response = Response(cached)
        response["X-Cache"] = "HIT"
        return response

    response = builder()
    if response.status_code == 200:
        cache.set(key, response.data, get_timeout(family))
        _register_cache_key(family, key)
    response["X-Cache"] = "MISS"
    return response


def invalidate_response_cache(family: str) -> None:
    """Remove every cached response of a resource family."""
    storage_key = _keys_storage_key(family)
    keys: List[str] | None = cache.get(storage_key)
    if keys:
        cache.delete_many(keys)
        logger.debug(f"Invalidated {len(keys)} cached responses for {family}")
    cache.delete(storage_key)


class CachedResponseMixin:
    """Viewset mixin caching ``list`` and ``retrieve`` under ``cache_family``."""

    cache_family: str = ""

    def list(self, request, *args, **kwargs):  # type: ignore
        return cached_response(
            self.cache_family, request, lambda: super(CachedResponseMixin, self).list(request, *args, **kwargs)
        )

    def retrieve(self, request, *args, **kwargs):  # type: ignore
        return cached_response(
            self.cache_family, request, lambda: super(CachedResponseMixin, self).retrieve(request, *args, **kwargs)
        )


__all__ = [
    "CachedResponseMixin",
    "cached_response",
    "invalidate_response_cache",
]
