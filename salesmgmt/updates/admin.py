from django.contrib import admin
from .models import ApplicationVersion, ConnectedClient, RateLimitTracker, UpdateDownload


@admin.register(ApplicationVersion)
class ApplicationVersionAdmin(admin.ModelAdmin):
    list_display = ['version_number', 'release_channel', 'is_active', 'is_mandatory', 'file_size', 'release_date']
    list_filter = ['release_channel', 'is_active', 'is_mandatory']
    search_fields = ['version_number', 'release_notes']
    readonly_fields = ['file_name', 'file_size', 'file_checksum', 'download_url', 'created_by', 'created_at', 'updated_at']


@admin.register(UpdateDownload)
class UpdateDownloadAdmin(admin.ModelAdmin):
    list_display = ['application_version', 'client_identifier', 'client_ip', 'download_status', 'download_started_at']
    list_filter = ['download_status']
    search_fields = ['client_identifier', 'client_ip']


@admin.register(ConnectedClient)
class ConnectedClientAdmin(admin.ModelAdmin):
    list_display = ['session_id', 'user', 'client_version', 'is_active', 'last_ping_at']
    list_filter = ['is_active']
    search_fields = ['session_id', 'client_ip']


@admin.register(RateLimitTracker)
class RateLimitTrackerAdmin(admin.ModelAdmin):
    list_display = ['client_identifier', 'endpoint_type', 'request_count', 'violation_count', 'blocked_until']
    list_filter = ['endpoint_type']
    search_fields = ['client_identifier', 'client_ip']
