"""
Caching utilities for expensive report queries
Uses Redis (django-redis) in production, any Django cache backend otherwise.
Keys carry a per-namespace version so invalidation never touches unrelated entries.
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
REPORTS_CACHE_TTL = 600  # 10 minutes
DASHBOARD_CACHE_TTL = 300  # 5 minutes

REPORTS_CACHE_PREFIX = 'reports'


def namespace_version(namespace):
    """Current generation of a key namespace; bumping it orphans every older key"""
    return cache.get_or_set(f"{namespace}:version", 1, None)


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    version = namespace_version(prefix.split(':', 1)[0])
    return f"{prefix}:v{version}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=600, key_prefix="reports:sales")
        def build_sales_report(start, end):
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_namespace(namespace):
    """
    Invalidate all cache keys under a namespace
    Bumping the namespace version orphans the old keys, which then expire on their TTL
    """
    version_key = f"{namespace}:version"
    cache.add(version_key, 1, None)
    version = cache.incr(version_key)
    logger.debug(f"Cache namespace {namespace} moved to version {version}")


def invalidate_reports_cache():
    """Drop cached reports after sales, returns or stock changes"""
    invalidate_namespace(REPORTS_CACHE_PREFIX)
