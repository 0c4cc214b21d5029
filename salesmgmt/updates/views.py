import logging
import os

from django.http import FileResponse
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from salesmgmt.core.exceptions import BusinessLogicException, UpdateNotFoundException
from salesmgmt.core.permissions import IsAdministrator
from salesmgmt.core.utils import create_audit_log, get_client_ip, paginated_response, parse_bool
from . import ratelimit, services, storage
from .models import ApplicationVersion, UpdateDownload
from .serializers import (
    ApplicationVersionSerializer, ClientConnectSerializer, ClientPingSerializer, ConnectedClientSerializer,
    DownloadFailureSerializer, RateLimitTrackerSerializer, UpdateDownloadSerializer, VersionStatusSerializer,
    VersionUpdateSerializer, VersionUploadSerializer,
)

logger = logging.getLogger(__name__)

COMPATIBILITY_RESERVED_PARAMS = ('client_version', 'clientVersion')


def _channel_param(value):
    if not value:
        return None
    channel = value.upper()
    if channel not in dict(ApplicationVersion.CHANNEL_CHOICES):
        raise BusinessLogicException(f"Unknown release channel: {value}")
    return channel


def _version_by_id(pk):
    try:
        return ApplicationVersion.objects.get(pk=pk)
    except ApplicationVersion.DoesNotExist:
        raise UpdateNotFoundException.for_id(pk)


# Client endpoints

@api_view(['GET'])
@permission_classes([IsAuthenticated])
@ratelimit.rate_limited('UPDATE_CHECK')
def latest_version(request):
    """Latest active version, optionally for ?channel"""
    version = services.latest_version(_channel_param(request.query_params.get('channel')))
    return Response(ApplicationVersionSerializer(version).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@ratelimit.rate_limited('UPDATE_CHECK')
def check_for_updates(request):
    current_version = request.query_params.get('current_version') or request.query_params.get('currentVersion')
    if not current_version:
        return Response({'error': 'current_version is required'}, status=status.HTTP_400_BAD_REQUEST)
    channel = _channel_param(request.query_params.get('channel'))
    return Response(services.check_for_updates(current_version.strip(), channel))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@ratelimit.rate_limited('DOWNLOAD')
def download_version(request, version):
    """Stream the stored JAR and record the download"""
    app_version = services.get_version(version)
    stored_file = storage.load_file(app_version.file_name)
    download = services.record_download_start(
        app_version,
        ratelimit.client_identifier(request),
        get_client_ip(request),
        request.META.get('HTTP_USER_AGENT'),
    )
    logger.info(f"Starting download for version {version} (Download ID: {download.id})")

    response = FileResponse(
        stored_file,
        as_attachment=True,
        filename=os.path.basename(app_version.file_name),
        content_type='application/java-archive',
    )
    response['X-Checksum'] = app_version.file_checksum
    response['X-Version'] = app_version.version_number
    response['X-Download-ID'] = str(download.id)
    response['ETag'] = f'"{app_version.file_checksum}"'
    response['Cache-Control'] = 'private, max-age=3600'
    return response


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def version_detail(request, version):
    return Response(ApplicationVersionSerializer(services.get_version(version)).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@ratelimit.rate_limited('METADATA')
def version_metadata(request, version):
    app_version = services.get_version(version)
    data = ApplicationVersionSerializer(app_version).data
    data['file_exists'] = storage.file_exists(app_version.file_name)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@ratelimit.rate_limited('COMPATIBILITY')
def version_compatibility(request, version):
    """Compatibility of ?client_version plus any system properties passed as query params"""
    client_version = request.query_params.get('client_version') or request.query_params.get('clientVersion')
    if not client_version:
        return Response({'error': 'client_version is required'}, status=status.HTTP_400_BAD_REQUEST)
    system_info = {
        key: value for key, value in request.query_params.items() if key not in COMPATIBILITY_RESERVED_PARAMS
    }
    return Response(services.check_compatibility(version, client_version, system_info))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def release_channels(request):
    return Response(services.release_channels())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@ratelimit.rate_limited('UPDATE_CHECK')
def channel_latest(request, channel):
    version = services.latest_version(_channel_param(channel))
    return Response(ApplicationVersionSerializer(version).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@ratelimit.rate_limited('WEBSOCKET')
def client_connect(request):
    serializer = ClientConnectSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    client = services.connect_client(
        client_version=serializer.validated_data.get('client_version'),
        session_id=serializer.validated_data.get('session_id'),
        user=request.user,
        client_ip=get_client_ip(request),
        user_agent=request.META.get('HTTP_USER_AGENT'),
    )
    return Response(ConnectedClientSerializer(client).data, status=status.HTTP_201_CREATED)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
@ratelimit.rate_limited('WEBSOCKET')
def client_ping(request, session_id):
    serializer = ClientPingSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    client = services.ping_client(services.get_client(session_id), serializer.validated_data.get('client_version'))
    return Response(ConnectedClientSerializer(client).data)


@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def client_disconnect(request, session_id):
    client = services.disconnect_client(services.get_client(session_id))
    return Response(ConnectedClientSerializer(client).data)


def _download_or_404(pk):
    try:
        return UpdateDownload.objects.select_related('application_version').get(pk=pk)
    except UpdateDownload.DoesNotExist:
        raise UpdateNotFoundException(f"Download not found with id: {pk}", error_code='DOWNLOAD_NOT_FOUND')


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
@ratelimit.rate_limited('ANALYTICS')
def download_complete(request, pk):
    download = services.complete_download(_download_or_404(pk))
    return Response(UpdateDownloadSerializer(download).data)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
@ratelimit.rate_limited('ANALYTICS')
def download_fail(request, pk):
    serializer = DownloadFailureSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    download = services.fail_download(_download_or_404(pk), serializer.validated_data.get('error_message'))
    return Response(UpdateDownloadSerializer(download).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def health(request):
    return Response({
        'status': 'UP',
        'message': 'Update service is running',
        'active_versions': ApplicationVersion.objects.filter(is_active=True).count(),
        'timestamp': timezone.now().isoformat(),
    })


# Admin endpoints

@api_view(['GET', 'POST'])
@permission_classes([IsAdministrator])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def admin_version_list_create(request):
    """List all versions or upload a new one (multipart: file + metadata)"""
    if request.method == 'GET':
        queryset = services.annotate_download_counts(ApplicationVersion.objects.all())
        channel = _channel_param(request.query_params.get('channel'))
        if channel:
            queryset = queryset.filter(release_channel=channel)
        if request.query_params.get('is_active') is not None:
            queryset = queryset.filter(is_active=parse_bool(request.query_params.get('is_active')))
        return paginated_response(request, queryset.order_by('-release_date'), ApplicationVersionSerializer)

    serializer = VersionUploadSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = dict(serializer.validated_data)
    uploaded_file = data.pop('file')
    version = services.create_version(data, uploaded_file, created_by=request.user.username)
    create_audit_log(request, 'version_upload', 'ApplicationVersion', version.id,
                     object_name=version.version_number, object_reference=version.file_checksum,
                     changes={'file_size': version.file_size, 'release_channel': version.release_channel})
    return Response(ApplicationVersionSerializer(version).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdministrator])
def admin_version_detail(request, pk):
    version = _version_by_id(pk)

    if request.method == 'GET':
        return Response(ApplicationVersionSerializer(version).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = VersionUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        version = services.update_version(version, serializer.validated_data)
        create_audit_log(request, 'update', 'ApplicationVersion', version.id, object_name=version.version_number,
                         changes={k: str(v) for k, v in serializer.validated_data.items()})
        return Response(ApplicationVersionSerializer(version).data)

    version_id, number = version.id, version.version_number
    services.delete_version(version)
    create_audit_log(request, 'delete', 'ApplicationVersion', version_id, object_name=number)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAdministrator])
def admin_version_status(request, pk):
    version = _version_by_id(pk)
    serializer = VersionStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    version = services.set_version_status(version, serializer.validated_data['is_active'])
    create_audit_log(request, 'status_change', 'ApplicationVersion', version.id,
                     object_name=version.version_number, changes={'is_active': version.is_active})
    return Response(ApplicationVersionSerializer(version).data)


@api_view(['GET'])
@permission_classes([IsAdministrator])
def admin_statistics(request):
    return Response(services.update_statistics())


@api_view(['GET'])
@permission_classes([IsAdministrator])
def admin_rate_limit_statistics(request):
    return Response(ratelimit.rate_limit_statistics())


@api_view(['GET', 'DELETE'])
@permission_classes([IsAdministrator])
def admin_rate_limit_client(request, client_id):
    """Rate limit status of a client; DELETE resets all of its trackers"""
    if request.method == 'DELETE':
        reset = ratelimit.reset_rate_limits(client_id)
        return Response({'client_identifier': client_id, 'trackers_reset': reset})

    result = ratelimit.rate_limit_status(client_id)
    result['trackers'] = RateLimitTrackerSerializer(result['trackers'], many=True).data
    return Response(result)
