"""
Report caching

Cached reports share one version number; bumping it after a committed
write (see ``signals``) makes every cached report stale at once.
"""
import hashlib
import json
import logging
from typing import Callable, Dict, Optional

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

VERSION_KEY = 'analytics:version'


def current_version() -> int:
    return cache.get_or_set(VERSION_KEY, 1, timeout=None)


def invalidate_reports():
    """Mark all cached reports stale."""
    try:
        version = cache.incr(VERSION_KEY)
    except ValueError:
        version = 2
        cache.set(VERSION_KEY, version, timeout=None)
    logger.debug(f"Analytics cache version bumped to {version}")


def _report_key(name: str, params: Optional[Dict]) -> str:
    digest = hashlib.md5(json.dumps(params or {}, sort_keys=True, default=str).encode()).hexdigest()
    return f"analytics:{name}:{digest}"


def cached_report(name: str, params: Optional[Dict], builder: Callable[[], Dict]) -> Dict:
    key = _report_key(name, params)
    version = current_version()
    result = cache.get(key, version=version)
    if result is None:
        result = builder()
        cache.set(key, result, timeout=settings.ANALYTICS_CACHE_TIMEOUT, version=version)
    else:
        logger.debug(f"Analytics cache hit: {name}")
    return result
