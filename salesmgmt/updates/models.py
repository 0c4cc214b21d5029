import re
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from salesmgmt.core.exceptions import format_file_size

VERSION_PATTERN = re.compile(r'^\d+\.\d+\.\d+(-[a-zA-Z0-9]+)?$')


def is_valid_version_number(version_number):
    return bool(version_number) and VERSION_PATTERN.match(version_number.strip()) is not None


def compare_versions(left, right):
    """Compare dotted versions numerically; returns -1, 0 or 1

    Missing parts count as zero and a ``-suffix`` is ignored. Anything that is
    not numeric falls back to plain string comparison.
    """
    try:
        left_parts = [int(part) for part in left.split('-', 1)[0].split('.')]
        right_parts = [int(part) for part in right.split('-', 1)[0].split('.')]
    except ValueError:
        return (left > right) - (left < right)
    length = max(len(left_parts), len(right_parts))
    left_parts += [0] * (length - len(left_parts))
    right_parts += [0] * (length - len(right_parts))
    return (left_parts > right_parts) - (left_parts < right_parts)


class ApplicationVersion(models.Model):
    """Released builds of the desktop client"""
    CHANNEL_CHOICES = [
        ('STABLE', 'Stable'),
        ('BETA', 'Beta'),
        ('ALPHA', 'Alpha'),
        ('NIGHTLY', 'Nightly'),
    ]

    version_number = models.CharField(max_length=20, unique=True)
    release_date = models.DateTimeField(default=timezone.now)
    is_mandatory = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    release_notes = models.TextField(blank=True, null=True)
    minimum_client_version = models.CharField(max_length=20, blank=True, null=True)
    file_name = models.CharField(max_length=255)
    file_size = models.BigIntegerField()
    file_checksum = models.CharField(max_length=64)
    download_url = models.CharField(max_length=500)
    release_channel = models.CharField(max_length=20, choices=CHANNEL_CHOICES, default='STABLE')
    created_by = models.CharField(max_length=100, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.version_number

    def is_newer_than(self, other_version):
        if not other_version or not other_version.strip():
            return True
        return compare_versions(self.version_number, other_version.strip()) > 0

    @property
    def formatted_file_size(self):
        return format_file_size(self.file_size)

    class Meta:
        db_table = 'application_versions'
        ordering = ['-release_date']
        indexes = [
            models.Index(fields=['is_active'], name='app_versions_active_idx'),
            models.Index(fields=['-release_date'], name='app_versions_release_idx'),
        ]


class UpdateDownload(models.Model):
    """Download attempts of a version by a client"""
    STATUS_CHOICES = [
        ('STARTED', 'Started'),
        ('IN_PROGRESS', 'In Progress'),
        ('COMPLETED', 'Completed'),
        ('FAILED', 'Failed'),
    ]

    application_version = models.ForeignKey(ApplicationVersion, on_delete=models.CASCADE, related_name='downloads')
    client_identifier = models.CharField(max_length=255)
    download_started_at = models.DateTimeField(default=timezone.now)
    download_completed_at = models.DateTimeField(null=True, blank=True)
    download_status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='STARTED')
    client_ip = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, null=True)
    error_message = models.TextField(blank=True, null=True)

    def __str__(self):
        return f"{self.application_version.version_number} -> {self.client_identifier} ({self.download_status})"

    class Meta:
        db_table = 'update_downloads'
        ordering = ['-download_started_at']
        indexes = [
            models.Index(fields=['download_status'], name='update_dl_status_idx'),
        ]


class ConnectedClient(models.Model):
    """Desktop clients registered for update notifications"""
    session_id = models.CharField(max_length=255, unique=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                             related_name='connected_clients')
    client_version = models.CharField(max_length=20, blank=True, null=True)
    connected_at = models.DateTimeField(default=timezone.now)
    last_ping_at = models.DateTimeField(default=timezone.now)
    client_ip = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.session_id} ({self.client_version or 'unknown'})"

    class Meta:
        db_table = 'connected_clients'
        indexes = [
            models.Index(fields=['is_active'], name='connected_clients_active_idx'),
        ]


class RateLimitTracker(models.Model):
    """Request counter per client and endpoint over a fixed window"""
    ENDPOINT_CHOICES = [
        ('UPDATE_CHECK', 'Update Check'),
        ('DOWNLOAD', 'Download'),
        ('METADATA', 'Metadata'),
        ('COMPATIBILITY', 'Compatibility'),
        ('ANALYTICS', 'Analytics'),
        ('ROLLBACK', 'Rollback'),
        ('DELTA', 'Delta'),
        ('WEBSOCKET', 'WebSocket'),
    ]
    ENDPOINT_LIMITS = {
        'UPDATE_CHECK': 20,
        'DOWNLOAD': 5,
        'METADATA': 30,
        'COMPATIBILITY': 10,
        'ANALYTICS': 15,
        'ROLLBACK': 3,
        'DELTA': 5,
        'WEBSOCKET': 10,
    }
    WINDOW_MINUTES = 60

    client_identifier = models.CharField(max_length=255)
    client_ip = models.GenericIPAddressField(null=True, blank=True)
    endpoint_type = models.CharField(max_length=20, choices=ENDPOINT_CHOICES)
    request_count = models.IntegerField(default=0)
    window_start = models.DateTimeField(default=timezone.now)
    last_request_time = models.DateTimeField(default=timezone.now)
    blocked_until = models.DateTimeField(null=True, blank=True)
    total_blocked_requests = models.BigIntegerField(default=0)
    total_allowed_requests = models.BigIntegerField(default=0)
    first_violation_time = models.DateTimeField(null=True, blank=True)
    violation_count = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.client_identifier} {self.endpoint_type}: {self.request_count}/{self.max_requests}"

    @property
    def max_requests(self):
        return self.ENDPOINT_LIMITS[self.endpoint_type]

    @property
    def window_end(self):
        return self.window_start + timedelta(minutes=self.WINDOW_MINUTES)

    def is_blocked(self, now=None):
        now = now or timezone.now()
        return self.blocked_until is not None and now < self.blocked_until

    def is_window_expired(self, now=None):
        return (now or timezone.now()) >= self.window_end

    def reset_window(self, now=None):
        now = now or timezone.now()
        self.window_start = now
        self.request_count = 0
        self.last_request_time = now

    def record_allowed_request(self, now=None):
        self.request_count += 1
        self.total_allowed_requests += 1
        self.last_request_time = now or timezone.now()

    def record_blocked_request(self):
        self.total_blocked_requests += 1

    def block(self, minutes, now=None):
        now = now or timezone.now()
        self.blocked_until = now + timedelta(minutes=minutes)
        self.violation_count += 1
        if self.first_violation_time is None:
            self.first_violation_time = now

    def remaining_requests(self, now=None):
        if self.is_window_expired(now):
            return self.max_requests
        return max(0, self.max_requests - self.request_count)

    def seconds_until_reset(self, now=None):
        now = now or timezone.now()
        if self.is_blocked(now):
            return max(0, int((self.blocked_until - now).total_seconds()))
        if self.is_window_expired(now):
            return 0
        return max(0, int((self.window_end - now).total_seconds()))

    def violation_rate(self):
        total = self.total_allowed_requests + self.total_blocked_requests
        return self.total_blocked_requests / total if total else 0.0

    class Meta:
        db_table = 'rate_limit_trackers'
        unique_together = [['client_identifier', 'endpoint_type']]
        indexes = [
            models.Index(fields=['blocked_until'], name='rate_limit_blocked_idx'),
            models.Index(fields=['last_request_time'], name='rate_limit_last_req_idx'),
        ]
