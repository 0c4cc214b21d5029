"""Version catalogue, update checks, downloads and connected clients"""
import logging
import uuid
from datetime import timedelta

from django.db import transaction
from django.db.models import Avg, Count, Q
from django.db.models.functions import TruncDate
from django.utils import timezone

from salesmgmt.core.exceptions import BusinessLogicException, FileUploadException, UpdateNotFoundException
from . import storage
from .models import ApplicationVersion, ConnectedClient, UpdateDownload, compare_versions, is_valid_version_number

logger = logging.getLogger(__name__)

CHANNEL_INFO = {
    'STABLE': {'description': 'Production ready releases', 'stability_level': 'STABLE', 'auto_update_enabled': True},
    'BETA': {'description': 'Feature complete releases under testing', 'stability_level': 'BETA', 'auto_update_enabled': False},
    'ALPHA': {'description': 'Early previews of upcoming features', 'stability_level': 'ALPHA', 'auto_update_enabled': False},
    'NIGHTLY': {'description': 'Automated builds from the latest sources', 'stability_level': 'EXPERIMENTAL', 'auto_update_enabled': False},
}
MINIMUM_RUNTIME_MAJOR = 11
MINIMUM_MEMORY_MB = 512
MINIMUM_DISK_SPACE_MB = 1024
SUPPORTED_OS_MARKERS = ('windows', 'linux', 'mac', 'darwin')


def download_url_for(version_number):
    return f"/api/v1/updates/download/{version_number}/"


# Versions

def active_versions(channel=None):
    queryset = ApplicationVersion.objects.filter(is_active=True)
    if channel:
        queryset = queryset.filter(release_channel=channel)
    return queryset.order_by('-release_date', '-id')


def latest_version(channel=None):
    version = active_versions(channel).first()
    if version is None:
        raise UpdateNotFoundException.no_active_versions()
    return version


def get_version(version_number):
    try:
        return ApplicationVersion.objects.get(version_number=version_number)
    except ApplicationVersion.DoesNotExist:
        raise UpdateNotFoundException.for_version(version_number)


def check_for_updates(current_version, channel=None):
    latest = active_versions(channel).first()
    if latest is None:
        logger.warning("No active versions available for update check")
        return {'update_available': False, 'current_version': current_version}

    update_available = latest.is_newer_than(current_version)
    below_minimum = bool(
        current_version and latest.minimum_client_version
        and compare_versions(current_version, latest.minimum_client_version) < 0
    )
    return {
        'update_available': update_available,
        'latest_version': latest.version_number,
        'current_version': current_version,
        'is_mandatory': latest.is_mandatory or below_minimum,
        'release_notes': latest.release_notes,
        'download_url': latest.download_url,
        'file_size': latest.file_size,
        'formatted_file_size': latest.formatted_file_size,
        'checksum': latest.file_checksum,
        'minimum_client_version': latest.minimum_client_version,
        'release_channel': latest.release_channel,
    }


def _deactivate_channel(channel, exclude=None):
    queryset = ApplicationVersion.objects.filter(is_active=True, release_channel=channel)
    if exclude is not None:
        queryset = queryset.exclude(pk=exclude.pk)
    return queryset.update(is_active=False, updated_at=timezone.now())


def create_version(data, uploaded_file, created_by=None):
    """Store the uploaded JAR and register it as a new version"""
    version_number = (data.get('version_number') or '').strip()
    if not is_valid_version_number(version_number):
        raise BusinessLogicException(
            f"Invalid version number format: {version_number}. Expected format: x.y.z (e.g., 2.1.0)"
        )
    if ApplicationVersion.objects.filter(version_number=version_number).exists():
        raise BusinessLogicException(f"Version {version_number} already exists")
    minimum = data.get('minimum_client_version')
    if minimum and not is_valid_version_number(minimum):
        raise BusinessLogicException(f"Invalid minimum client version format: {minimum}")
    if uploaded_file is None:
        raise FileUploadException("An application file is required")

    relative_path, size, checksum = storage.store_file(uploaded_file, version_number)
    try:
        with transaction.atomic():
            version = ApplicationVersion(
                version_number=version_number,
                release_date=data.get('release_date') or timezone.now(),
                is_mandatory=data.get('is_mandatory', False),
                is_active=data.get('is_active', True),
                release_notes=data.get('release_notes'),
                minimum_client_version=minimum,
                release_channel=data.get('release_channel') or 'STABLE',
                file_name=relative_path,
                file_size=size,
                file_checksum=checksum,
                download_url=download_url_for(version_number),
                created_by=created_by,
            )
            if version.is_active:
                _deactivate_channel(version.release_channel)
            version.save()
    except Exception:
        storage.delete_version_directory(version_number)
        raise

    logger.info(f"Created version {version_number} ({version.release_channel}) stored at {relative_path}")
    return version


def update_version(version, data):
    for field in ('is_mandatory', 'release_notes', 'minimum_client_version', 'release_channel', 'release_date'):
        if field in data:
            setattr(version, field, data[field])
    if version.minimum_client_version and not is_valid_version_number(version.minimum_client_version):
        raise BusinessLogicException(f"Invalid minimum client version format: {version.minimum_client_version}")
    with transaction.atomic():
        if 'is_active' in data:
            version.is_active = data['is_active']
            if version.is_active:
                _deactivate_channel(version.release_channel, exclude=version)
        version.save()
    logger.info(f"Updated version {version.version_number}")
    return version


def set_version_status(version, is_active):
    with transaction.atomic():
        if is_active:
            _deactivate_channel(version.release_channel, exclude=version)
        version.is_active = is_active
        version.save(update_fields=['is_active', 'updated_at'])
    logger.info(f"Version {version.version_number} is now {'active' if is_active else 'inactive'}")
    return version


def delete_version(version):
    version_number, file_name = version.version_number, version.file_name
    version.delete()
    if file_name:
        try:
            storage.delete_file(file_name)
        except FileUploadException as e:
            logger.warning(f"Version {version_number} deleted but its file could not be removed: {e}")
    if not storage.files_in_version(version_number):
        storage.delete_version_directory(version_number)
    logger.info(f"Deleted version {version_number} and associated files")


# Downloads

def record_download_start(version, client_identifier, client_ip=None, user_agent=None):
    return UpdateDownload.objects.create(
        application_version=version,
        client_identifier=client_identifier,
        client_ip=client_ip,
        user_agent=user_agent,
    )


def complete_download(download):
    if download.download_status == 'COMPLETED':
        raise BusinessLogicException("Download is already completed")
    download.download_status = 'COMPLETED'
    download.download_completed_at = timezone.now()
    download.save(update_fields=['download_status', 'download_completed_at'])
    return download


def fail_download(download, error_message=None):
    if download.download_status == 'COMPLETED':
        raise BusinessLogicException("Cannot mark a completed download as failed")
    download.download_status = 'FAILED'
    download.error_message = error_message
    download.save(update_fields=['download_status', 'error_message'])
    logger.warning(f"Download {download.pk} failed: {error_message}")
    return download


# Compatibility

def _major_version(runtime_version):
    """'1.8.0_292' is 8, '17.0.2' is 17"""
    parts = runtime_version.split('.')
    major = int(parts[0])
    if major == 1 and len(parts) > 1:
        major = int(parts[1])
    return major


def check_compatibility(version_number, client_version, system_info):
    try:
        version = get_version(version_number)
    except UpdateNotFoundException:
        return {
            'is_compatible': False,
            'target_version': version_number,
            'client_version': client_version,
            'compatibility_issues': [{
                'type': 'VERSION', 'severity': 'CRITICAL', 'description': 'Target version not found',
            }],
            'recommendations': [],
            'can_proceed': False,
            'warning_level': 'CRITICAL',
        }

    issues = []
    recommendations = []
    compatible = True

    minimum = version.minimum_client_version
    if minimum and client_version and compare_versions(client_version, minimum) < 0:
        compatible = False
        issues.append({
            'type': 'CLIENT_VERSION',
            'severity': 'CRITICAL',
            'description': f"Client version {client_version} is below minimum required version {minimum}",
            'resolution': 'Update to a newer client version before applying this update',
        })
        recommendations.append(f"Please update your client to version {minimum} or higher")

    runtime = system_info.get('java.version')
    if runtime:
        try:
            if _major_version(runtime) < MINIMUM_RUNTIME_MAJOR:
                compatible = False
                issues.append({
                    'type': 'RUNTIME_VERSION',
                    'severity': 'CRITICAL',
                    'description': f"Java {_major_version(runtime)} detected, but Java {MINIMUM_RUNTIME_MAJOR} or higher is required",
                    'resolution': f"Install Java {MINIMUM_RUNTIME_MAJOR} or higher",
                })
                recommendations.append(f"Please install Java {MINIMUM_RUNTIME_MAJOR} or higher")
        except ValueError:
            issues.append({
                'type': 'RUNTIME_VERSION',
                'severity': 'WARNING',
                'description': 'Unable to verify Java version compatibility',
                'resolution': 'Manual verification of Java version may be required',
            })

    os_name = system_info.get('os.name')
    if os_name and not any(marker in os_name.lower() for marker in SUPPORTED_OS_MARKERS):
        issues.append({
            'type': 'OPERATING_SYSTEM',
            'severity': 'WARNING',
            'description': f"Operating system {os_name} may not be fully supported",
            'resolution': 'Consider using Windows, macOS, or Linux for best compatibility',
        })
        recommendations.append('This operating system may not be fully supported')

    for key, minimum_mb, label in (
        ('available.memory.mb', MINIMUM_MEMORY_MB, 'memory'),
        ('available.disk.mb', MINIMUM_DISK_SPACE_MB, 'disk space'),
    ):
        value = system_info.get(key)
        if value is None:
            continue
        try:
            available = int(value)
        except ValueError:
            continue
        if available < minimum_mb:
            issues.append({
                'type': label.upper().replace(' ', '_'),
                'severity': 'WARNING',
                'description': f"Available {label} ({available} MB) is below recommended minimum ({minimum_mb} MB)",
                'resolution': f"Free up {label} before installing the update",
            })

    severities = {issue['severity'] for issue in issues}
    if 'CRITICAL' in severities:
        warning_level = 'CRITICAL'
    elif 'WARNING' in severities:
        warning_level = 'MEDIUM'
    else:
        warning_level = 'NONE'

    return {
        'is_compatible': compatible,
        'target_version': version_number,
        'client_version': client_version,
        'minimum_required_version': minimum,
        'operating_system': {
            'name': os_name,
            'version': system_info.get('os.version'),
            'architecture': system_info.get('os.arch'),
        },
        'compatibility_issues': issues,
        'recommendations': recommendations,
        'can_proceed': compatible,
        'warning_level': warning_level,
    }


def release_channels():
    channels = {}
    for channel, label in ApplicationVersion.CHANNEL_CHOICES:
        latest = active_versions(channel).first()
        channels[channel] = {
            'channel': channel,
            'name': label,
            **CHANNEL_INFO[channel],
            'latest_version': latest.version_number if latest else None,
        }
    return channels


# Connected clients

def connect_client(client_version=None, session_id=None, user=None, client_ip=None, user_agent=None):
    now = timezone.now()
    client, created = ConnectedClient.objects.update_or_create(
        session_id=session_id or uuid.uuid4().hex,
        defaults={
            'client_version': client_version,
            'user': user if user is not None and user.is_authenticated else None,
            'client_ip': client_ip,
            'user_agent': user_agent,
            'connected_at': now,
            'last_ping_at': now,
            'is_active': True,
        },
    )
    logger.info(f"Client {'connected' if created else 'reconnected'}: {client.session_id} ({client_version})")
    return client


def get_client(session_id):
    try:
        return ConnectedClient.objects.get(session_id=session_id)
    except ConnectedClient.DoesNotExist:
        raise UpdateNotFoundException(f"Connected client not found: {session_id}", error_code='CLIENT_NOT_FOUND')


def ping_client(client, client_version=None):
    if not client.is_active:
        raise BusinessLogicException("Client session is disconnected")
    client.last_ping_at = timezone.now()
    if client_version:
        client.client_version = client_version
    client.save(update_fields=['last_ping_at', 'client_version'])
    return client


def disconnect_client(client):
    client.is_active = False
    client.save(update_fields=['is_active'])
    logger.info(f"Client disconnected: {client.session_id}")
    return client


def deactivate_stale_clients(minutes=30):
    cutoff = timezone.now() - timedelta(minutes=minutes)
    return ConnectedClient.objects.filter(is_active=True, last_ping_at__lt=cutoff).update(is_active=False)


# Statistics

def update_statistics():
    versions = ApplicationVersion.objects.aggregate(
        total=Count('id'),
        active=Count('id', filter=Q(is_active=True)),
        mandatory=Count('id', filter=Q(is_mandatory=True)),
        average_size=Avg('file_size'),
    )
    downloads = UpdateDownload.objects.aggregate(
        total=Count('id'),
        completed=Count('id', filter=Q(download_status='COMPLETED')),
        failed=Count('id', filter=Q(download_status='FAILED')),
    )

    timings = [
        (download.download_completed_at - download.download_started_at).total_seconds()
        for download in UpdateDownload.objects.filter(
            download_status='COMPLETED', download_completed_at__isnull=False
        ).only('download_started_at', 'download_completed_at')
    ]

    since = timezone.now() - timedelta(days=30)
    daily = UpdateDownload.objects.filter(download_started_at__gte=since).annotate(
        day=TruncDate('download_started_at')
    ).values('day').annotate(count=Count('id')).order_by('day')
    top_versions = ApplicationVersion.objects.annotate(
        download_count=Count('downloads')
    ).order_by('-download_count').values('version_number', 'download_count')[:5]

    clients = ConnectedClient.objects.all()
    return {
        'total_versions': versions['total'],
        'active_versions': versions['active'],
        'mandatory_versions': versions['mandatory'],
        'average_file_size': versions['average_size'] or 0.0,
        'total_downloads': downloads['total'],
        'successful_downloads': downloads['completed'],
        'failed_downloads': downloads['failed'],
        'in_progress_downloads': downloads['total'] - downloads['completed'] - downloads['failed'],
        'average_download_time_seconds': sum(timings) / len(timings) if timings else 0.0,
        'total_connected_clients': clients.count(),
        'active_clients': clients.filter(is_active=True).count(),
        'client_version_distribution': {
            row['client_version'] or 'unknown': row['count']
            for row in clients.filter(is_active=True).values('client_version').annotate(count=Count('id'))
        },
        'daily_download_counts': [{'date': row['day'].isoformat(), 'count': row['count']} for row in daily],
        'top_versions_by_downloads': list(top_versions),
    }


def annotate_download_counts(queryset):
    return queryset.annotate(download_count=Count('downloads'))
