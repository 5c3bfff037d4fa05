"""
Redis-based rate limiting for API endpoints.

A fixed window counter per (scope, client IP). Requests are let through
when Redis is unreachable.
"""
import logging
from functools import wraps

import redis
from django.conf import settings
from rest_framework.exceptions import Throttled

logger = logging.getLogger(__name__)

_redis_client = None


def get_redis_client():
    """Lazily connect to Redis; returns None when the server is unavailable."""
    global _redis_client
    if _redis_client is None:
        try:
            client = redis.Redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )
            client.ping()
            _redis_client = client
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning(f"Redis connection failed: {e}. Rate limiting is disabled.")
            return None
    return _redis_client


def get_client_ip(request):
    """Extract client IP address from request."""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', 'unknown')


def hit(scope, request, max_requests, window_seconds):
    """
    Count one request against ``scope`` for the calling client.

    Returns the rate limit headers to attach to the response, or None when
    limiting is disabled. Raises ``Throttled`` once the window is exhausted.
    """
    if not getattr(settings, 'RATE_LIMIT_ENABLED', True):
        return None
    client = get_redis_client()
    if client is None:
        return None

    client_ip = get_client_ip(request)
    try:
        key = f"rate_limit:{scope}:{client_ip}"
        current_count = client.incr(key)
        if current_count == 1:
            client.expire(key, window_seconds)
        ttl = client.ttl(key)
    except redis.RedisError as e:
        logger.error(f"Redis error in rate limiting: {e}")
        return None

    if current_count > max_requests:
        logger.warning(f"Rate limit exceeded for {scope} from {client_ip}")
        raise Throttled(
            wait=ttl,
            detail=f"Rate limit exceeded. Maximum {max_requests} requests "
                   f"per {window_seconds} seconds allowed."
        )

    return {
        'X-RateLimit-Limit': str(max_requests),
        'X-RateLimit-Remaining': str(max(0, max_requests - current_count)),
        'X-RateLimit-Reset': str(ttl),
    }


def rate_limit(max_requests: int = 20, window_seconds: int = 60):
    """
    Rate limiting decorator for DRF view methods.

    Usage:
        @rate_limit(10, 60)  # 10 requests per minute
        def post(self, request):
            ...
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(self, request, *args, **kwargs):
            headers = hit(view_func.__qualname__, request, max_requests, window_seconds)
            response = view_func(self, request, *args, **kwargs)
            for header, value in (headers or {}).items():
                response[header] = value
            return response
        return wrapper
    return decorator


class RateLimitMixin:
    """
    Mixin for class-based views limiting every method of the view.

    Usage:
        class MyView(RateLimitMixin, APIView):
            rate_limit_max_requests = 20
            rate_limit_window_seconds = 60
    """
    rate_limit_max_requests = 20
    rate_limit_window_seconds = 60

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.rate_limit_headers = hit(
            self.__class__.__name__,
            request,
            self.rate_limit_max_requests,
            self.rate_limit_window_seconds
        )

    def finalize_response(self, request, response, *args, **kwargs):
        response = super().finalize_response(request, response, *args, **kwargs)
        for header, value in (getattr(self, 'rate_limit_headers', None) or {}).items():
            response[header] = value
        return response
