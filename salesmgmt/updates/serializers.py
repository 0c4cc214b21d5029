from rest_framework import serializers
from .models import ApplicationVersion, ConnectedClient, RateLimitTracker, UpdateDownload


class ApplicationVersionSerializer(serializers.ModelSerializer):
    formatted_file_size = serializers.CharField(read_only=True)
    download_count = serializers.SerializerMethodField()

    class Meta:
        model = ApplicationVersion
        fields = '__all__'
        read_only_fields = ['file_name', 'file_size', 'file_checksum', 'download_url', 'created_by',
                            'created_at', 'updated_at']

    def get_download_count(self, obj):
        annotated = getattr(obj, 'download_count', None)
        return annotated if annotated is not None else obj.downloads.count()


class VersionUploadSerializer(serializers.Serializer):
    version_number = serializers.CharField(max_length=20)
    release_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    minimum_client_version = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    is_mandatory = serializers.BooleanField(required=False, default=False)
    is_active = serializers.BooleanField(required=False, default=True)
    release_channel = serializers.ChoiceField(choices=ApplicationVersion.CHANNEL_CHOICES, required=False, default='STABLE')
    release_date = serializers.DateTimeField(required=False, allow_null=True)
    file = serializers.FileField(allow_empty_file=True)

    def validate_minimum_client_version(self, value):
        return value or None


class VersionUpdateSerializer(serializers.Serializer):
    release_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    minimum_client_version = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    is_mandatory = serializers.BooleanField(required=False)
    is_active = serializers.BooleanField(required=False)
    release_channel = serializers.ChoiceField(choices=ApplicationVersion.CHANNEL_CHOICES, required=False)
    release_date = serializers.DateTimeField(required=False)


class VersionStatusSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


class UpdateDownloadSerializer(serializers.ModelSerializer):
    version_number = serializers.CharField(source='application_version.version_number', read_only=True)

    class Meta:
        model = UpdateDownload
        fields = '__all__'


class DownloadFailureSerializer(serializers.Serializer):
    error_message = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ConnectedClientSerializer(serializers.ModelSerializer):
    class Meta:
        model = ConnectedClient
        exclude = ['user']


class ClientConnectSerializer(serializers.Serializer):
    session_id = serializers.CharField(max_length=255, required=False, allow_blank=True)
    client_version = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)


class ClientPingSerializer(serializers.Serializer):
    client_version = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)


class RateLimitTrackerSerializer(serializers.ModelSerializer):
    max_requests = serializers.IntegerField(read_only=True)
    remaining_requests = serializers.SerializerMethodField()
    seconds_until_reset = serializers.SerializerMethodField()
    is_blocked = serializers.SerializerMethodField()

    class Meta:
        model = RateLimitTracker
        fields = '__all__'

    def get_remaining_requests(self, obj):
        return obj.remaining_requests()

    def get_seconds_until_reset(self, obj):
        return obj.seconds_until_reset()

    def get_is_blocked(self, obj):
        return obj.is_blocked()
