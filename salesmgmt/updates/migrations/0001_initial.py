# Generated manually
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ApplicationVersion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('version_number', models.CharField(max_length=20, unique=True)),
                ('release_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('is_mandatory', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(default=True)),
                ('release_notes', models.TextField(blank=True, null=True)),
                ('minimum_client_version', models.CharField(blank=True, max_length=20, null=True)),
                ('file_name', models.CharField(max_length=255)),
                ('file_size', models.BigIntegerField()),
                ('file_checksum', models.CharField(max_length=64)),
                ('download_url', models.CharField(max_length=500)),
                ('release_channel', models.CharField(choices=[('STABLE', 'Stable'), ('BETA', 'Beta'), ('ALPHA', 'Alpha'), ('NIGHTLY', 'Nightly')], default='STABLE', max_length=20)),
                ('created_by', models.CharField(blank=True, max_length=100, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'application_versions',
                'ordering': ['-release_date'],
                'indexes': [
                    models.Index(fields=['is_active'], name='app_versions_active_idx'),
                    models.Index(fields=['-release_date'], name='app_versions_release_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ConnectedClient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('session_id', models.CharField(max_length=255, unique=True)),
                ('client_version', models.CharField(blank=True, max_length=20, null=True)),
                ('connected_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('last_ping_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('client_ip', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.TextField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='connected_clients', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'connected_clients',
                'indexes': [
                    models.Index(fields=['is_active'], name='connected_clients_active_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RateLimitTracker',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('client_identifier', models.CharField(max_length=255)),
                ('client_ip', models.GenericIPAddressField(blank=True, null=True)),
                ('endpoint_type', models.CharField(choices=[('UPDATE_CHECK', 'Update Check'), ('DOWNLOAD', 'Download'), ('METADATA', 'Metadata'), ('COMPATIBILITY', 'Compatibility'), ('ANALYTICS', 'Analytics'), ('ROLLBACK', 'Rollback'), ('DELTA', 'Delta'), ('WEBSOCKET', 'WebSocket')], max_length=20)),
                ('request_count', models.IntegerField(default=0)),
                ('window_start', models.DateTimeField(default=django.utils.timezone.now)),
                ('last_request_time', models.DateTimeField(default=django.utils.timezone.now)),
                ('blocked_until', models.DateTimeField(blank=True, null=True)),
                ('total_blocked_requests', models.BigIntegerField(default=0)),
                ('total_allowed_requests', models.BigIntegerField(default=0)),
                ('first_violation_time', models.DateTimeField(blank=True, null=True)),
                ('violation_count', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'rate_limit_trackers',
                'unique_together': {('client_identifier', 'endpoint_type')},
                'indexes': [
                    models.Index(fields=['blocked_until'], name='rate_limit_blocked_idx'),
                    models.Index(fields=['last_request_time'], name='rate_limit_last_req_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='UpdateDownload',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('client_identifier', models.CharField(max_length=255)),
                ('download_started_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('download_completed_at', models.DateTimeField(blank=True, null=True)),
                ('download_status', models.CharField(choices=[('STARTED', 'Started'), ('IN_PROGRESS', 'In Progress'), ('COMPLETED', 'Completed'), ('FAILED', 'Failed')], default='STARTED', max_length=20)),
                ('client_ip', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.TextField(blank=True, null=True)),
                ('error_message', models.TextField(blank=True, null=True)),
                ('application_version', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='downloads', to='updates.applicationversion')),
            ],
            options={
                'db_table': 'update_downloads',
                'ordering': ['-download_started_at'],
                'indexes': [
                    models.Index(fields=['download_status'], name='update_dl_status_idx'),
                ],
            },
        ),
    ]
