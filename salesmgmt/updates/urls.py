from django.urls import path
from . import views

urlpatterns = [
    # Client update API
    path('updates/latest/', views.latest_version, name='update-latest'),
    path('updates/check/', views.check_for_updates, name='update-check'),
    path('updates/download/<str:version>/', views.download_version, name='update-download'),
    path('updates/version/<str:version>/', views.version_detail, name='update-version-detail'),
    path('updates/metadata/<str:version>/', views.version_metadata, name='update-metadata'),
    path('updates/compatibility/<str:version>/', views.version_compatibility, name='update-compatibility'),
    path('updates/channels/', views.release_channels, name='update-channels'),
    path('updates/channels/<str:channel>/latest/', views.channel_latest, name='update-channel-latest'),
    path('updates/clients/connect/', views.client_connect, name='update-client-connect'),
    path('updates/clients/<str:session_id>/ping/', views.client_ping, name='update-client-ping'),
    path('updates/clients/<str:session_id>/disconnect/', views.client_disconnect, name='update-client-disconnect'),
    path('updates/downloads/<int:pk>/complete/', views.download_complete, name='update-download-complete'),
    path('updates/downloads/<int:pk>/fail/', views.download_fail, name='update-download-fail'),
    path('updates/health/', views.health, name='update-health'),

    # Administration
    path('admin/updates/versions/', views.admin_version_list_create, name='admin-version-list-create'),
    path('admin/updates/versions/<int:pk>/', views.admin_version_detail, name='admin-version-detail'),
    path('admin/updates/versions/<int:pk>/status/', views.admin_version_status, name='admin-version-status'),
    path('admin/updates/statistics/', views.admin_statistics, name='admin-update-statistics'),
    path('admin/updates/rate-limits/', views.admin_rate_limit_statistics, name='admin-rate-limit-statistics'),
    path('admin/updates/rate-limits/<str:client_id>/', views.admin_rate_limit_client, name='admin-rate-limit-client'),
]
