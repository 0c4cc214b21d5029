"""
Per-client rate limiting for the update endpoints

Each (client, endpoint) pair owns a RateLimitTracker counting requests in a
60 minute window. Exceeding the endpoint limit blocks the client for
min(2 ** violations, 60) minutes.
"""
import hashlib
import logging
from collections import namedtuple
from datetime import timedelta
from functools import wraps

from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response

from salesmgmt.core.exceptions import build_error_payload
from salesmgmt.core.utils import get_client_ip
from .models import RateLimitTracker

logger = logging.getLogger(__name__)

MAX_BLOCK_MINUTES = 60
INACTIVE_TRACKER_DAYS = 7

RateLimitResult = namedtuple('RateLimitResult', ['allowed', 'remaining', 'reset_seconds', 'message'])


def block_duration_minutes(violation_count):
    return min(2 ** (violation_count or 0), MAX_BLOCK_MINUTES)


def client_identifier(request):
    """X-Client-ID header, or a stable hash of User-Agent and IP"""
    client_id = request.META.get('HTTP_X_CLIENT_ID')
    if client_id:
        return client_id.strip()[:255]
    user_agent = request.META.get('HTTP_USER_AGENT') or 'unknown'
    ip = get_client_ip(request) or 'unknown'
    return hashlib.sha256(f"{user_agent}|{ip}".encode()).hexdigest()[:32]


@transaction.atomic
def check_rate_limit(client_id, client_ip, endpoint_type):
    now = timezone.now()
    tracker, _ = RateLimitTracker.objects.select_for_update().get_or_create(
        client_identifier=client_id,
        endpoint_type=endpoint_type,
        defaults={'client_ip': client_ip, 'window_start': now, 'last_request_time': now},
    )

    if tracker.is_blocked(now):
        tracker.record_blocked_request()
        tracker.save()
        return RateLimitResult(
            False, 0, tracker.seconds_until_reset(now),
            "Client is temporarily blocked due to rate limit violations",
        )

    if tracker.is_window_expired(now):
        tracker.reset_window(now)

    if tracker.request_count >= tracker.max_requests:
        minutes = block_duration_minutes(tracker.violation_count)
        tracker.block(minutes, now)
        tracker.record_blocked_request()
        tracker.save()
        logger.warning(
            f"Rate limit exceeded for client: {client_id} on endpoint: {endpoint_type}. "
            f"Blocked for {minutes} minutes"
        )
        return RateLimitResult(False, 0, minutes * 60, f"Rate limit exceeded. Blocked for {minutes} minutes")

    tracker.record_allowed_request(now)
    if client_ip:
        tracker.client_ip = client_ip
    tracker.save()
    return RateLimitResult(True, tracker.remaining_requests(now), tracker.seconds_until_reset(now), "Request allowed")


def rate_limited(endpoint_type):
    """Guard a DRF function view; place it below @api_view"""
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            result = check_rate_limit(client_identifier(request), get_client_ip(request), endpoint_type)
            if not result.allowed:
                response = Response(
                    build_error_payload(status.HTTP_429_TOO_MANY_REQUESTS, result.message, 'RATE_LIMIT_EXCEEDED'),
                    status=status.HTTP_429_TOO_MANY_REQUESTS,
                )
            else:
                response = view_func(request, *args, **kwargs)
            response['X-RateLimit-Remaining'] = str(result.remaining)
            response['X-RateLimit-Reset'] = str(result.reset_seconds)
            return response
        return wrapper
    return decorator


# Administration

def rate_limit_status(client_id):
    now = timezone.now()
    trackers = list(RateLimitTracker.objects.filter(client_identifier=client_id).order_by('endpoint_type'))
    blocked = [tracker for tracker in trackers if tracker.is_blocked(now)]
    return {
        'client_identifier': client_id,
        'is_blocked': bool(blocked),
        'blocked_until_seconds': max((tracker.seconds_until_reset(now) for tracker in blocked), default=0),
        'trackers': trackers,
    }


def reset_rate_limits(client_id):
    now = timezone.now()
    updated = RateLimitTracker.objects.filter(client_identifier=client_id).update(
        request_count=0,
        window_start=now,
        last_request_time=now,
        blocked_until=None,
        violation_count=0,
        first_violation_time=None,
    )
    logger.info(f"Reset {updated} rate limit trackers for client: {client_id}")
    return updated


def rate_limit_statistics():
    now = timezone.now()
    trackers = RateLimitTracker.objects.all()
    totals = trackers.aggregate(
        count=Count('id'),
        allowed=Sum('total_allowed_requests'),
        blocked=Sum('total_blocked_requests'),
    )
    by_endpoint = trackers.values('endpoint_type').annotate(
        trackers=Count('id'),
        allowed=Sum('total_allowed_requests'),
        blocked=Sum('total_blocked_requests'),
        violations=Sum('violation_count'),
    ).order_by('endpoint_type')
    most_active = trackers.values('client_identifier').annotate(
        allowed=Sum('total_allowed_requests'),
    ).order_by('-allowed')[:10]
    highest_violations = trackers.filter(violation_count__gt=0).values('client_identifier').annotate(
        violations=Sum('violation_count'),
        blocked=Sum('total_blocked_requests'),
    ).order_by('-violations')[:10]

    return {
        'total_trackers': totals['count'],
        'total_allowed_requests': totals['allowed'] or 0,
        'total_blocked_requests': totals['blocked'] or 0,
        'currently_blocked_clients': trackers.filter(blocked_until__gt=now).values(
            'client_identifier'
        ).distinct().count(),
        'statistics_by_endpoint': list(by_endpoint),
        'most_active_clients': list(most_active),
        'clients_with_high_violation_rates': list(highest_violations),
    }


def cleanup_expired_limits(now=None):
    """Clear lapsed blocks, reset stale windows and drop idle trackers; returns the three counts"""
    now = now or timezone.now()
    expired_blocks = RateLimitTracker.objects.filter(blocked_until__lte=now).update(blocked_until=None)
    reset_windows = RateLimitTracker.objects.filter(
        window_start__lte=now - timedelta(minutes=RateLimitTracker.WINDOW_MINUTES),
        request_count__gt=0,
    ).update(request_count=0, window_start=now)
    deleted, _ = RateLimitTracker.objects.filter(
        last_request_time__lt=now - timedelta(days=INACTIVE_TRACKER_DAYS)
    ).delete()
    if expired_blocks or reset_windows or deleted:
        logger.info(
            f"Rate limit cleanup: {expired_blocks} expired blocks, {reset_windows} windows reset, "
            f"{deleted} inactive trackers deleted"
        )
    return expired_blocks, reset_windows, deleted
