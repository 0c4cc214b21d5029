"""
Comprehensive test suite for Updates module
Tests: Rate limiting, JAR validation and storage, version catalogue, update checks, downloads,
connected clients, admin endpoints and the cleanup command
"""
import hashlib
import os
import shutil
import tempfile
from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from salesmgmt.core.exceptions import BusinessLogicException, FileUploadException
from salesmgmt.core.models import AuditLog
from salesmgmt.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from salesmgmt.updates import ratelimit, services, storage
from salesmgmt.updates.models import (
    ApplicationVersion, ConnectedClient, RateLimitTracker, UpdateDownload, compare_versions,
)


class StorageDirMixin:
    """Point UPDATES_STORAGE_PATH at a throwaway directory"""

    def use_temp_storage(self):
        self.storage_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.storage_dir, ignore_errors=True)
        override = override_settings(UPDATES_STORAGE_PATH=self.storage_dir)
        override.enable()
        self.addCleanup(override.disable)


class VersionModelTests(TestCase):
    """Test version comparison"""

    def test_compare_versions(self):
        self.assertEqual(compare_versions('1.10.0', '1.9.9'), 1)
        self.assertEqual(compare_versions('2.0', '2.0.0'), 0)
        self.assertEqual(compare_versions('1.0.0-beta', '1.0.1'), -1)

    def test_is_newer_than(self):
        version = TestDataFactory.create_version('2.1.0')
        self.assertTrue(version.is_newer_than('2.0.9'))
        self.assertFalse(version.is_newer_than('2.1.0'))
        self.assertTrue(version.is_newer_than(''))

    def test_formatted_file_size(self):
        self.assertEqual(TestDataFactory.create_version().formatted_file_size, '1.0 KB')


class RateLimitTests(TestCase):
    """Test the fixed window limiter and its backoff"""

    def test_block_duration_backoff(self):
        self.assertEqual(ratelimit.block_duration_minutes(0), 1)
        self.assertEqual(ratelimit.block_duration_minutes(3), 8)
        self.assertEqual(ratelimit.block_duration_minutes(5), 32)
        self.assertEqual(ratelimit.block_duration_minutes(6), 60)
        self.assertEqual(ratelimit.block_duration_minutes(20), 60)

    def test_requests_counted_within_window(self):
        remaining = [ratelimit.check_rate_limit('client-a', '10.0.0.1', 'DOWNLOAD').remaining for _ in range(5)]
        self.assertEqual(remaining, [4, 3, 2, 1, 0])
        tracker = RateLimitTracker.objects.get(client_identifier='client-a', endpoint_type='DOWNLOAD')
        self.assertEqual(tracker.request_count, 5)
        self.assertEqual(tracker.total_allowed_requests, 5)

    def test_limit_exceeded_blocks_client(self):
        for _ in range(5):
            self.assertTrue(ratelimit.check_rate_limit('client-b', None, 'DOWNLOAD').allowed)

        result = ratelimit.check_rate_limit('client-b', None, 'DOWNLOAD')
        self.assertFalse(result.allowed)
        self.assertEqual(result.reset_seconds, 60)
        self.assertEqual(result.message, "Rate limit exceeded. Blocked for 1 minutes")

        result = ratelimit.check_rate_limit('client-b', None, 'DOWNLOAD')
        self.assertFalse(result.allowed)
        self.assertIn('temporarily blocked', result.message)

        tracker = RateLimitTracker.objects.get(client_identifier='client-b')
        self.assertEqual(tracker.violation_count, 1)
        self.assertEqual(tracker.total_blocked_requests, 2)
        self.assertIsNotNone(tracker.first_violation_time)

    def test_repeat_violation_doubles_block(self):
        for _ in range(6):
            ratelimit.check_rate_limit('client-c', None, 'DOWNLOAD')
        RateLimitTracker.objects.filter(client_identifier='client-c').update(
            blocked_until=timezone.now() - timedelta(seconds=1)
        )
        result = ratelimit.check_rate_limit('client-c', None, 'DOWNLOAD')
        self.assertFalse(result.allowed)
        self.assertEqual(result.reset_seconds, 120)
        self.assertEqual(RateLimitTracker.objects.get(client_identifier='client-c').violation_count, 2)

    def test_expired_window_resets_count(self):
        for _ in range(5):
            ratelimit.check_rate_limit('client-d', None, 'DOWNLOAD')
        RateLimitTracker.objects.filter(client_identifier='client-d').update(
            window_start=timezone.now() - timedelta(minutes=61)
        )
        result = ratelimit.check_rate_limit('client-d', None, 'DOWNLOAD')
        self.assertTrue(result.allowed)
        self.assertEqual(result.remaining, 4)

    def test_endpoints_tracked_separately(self):
        for _ in range(5):
            ratelimit.check_rate_limit('client-e', None, 'DOWNLOAD')
        self.assertTrue(ratelimit.check_rate_limit('client-e', None, 'METADATA').allowed)
        self.assertEqual(RateLimitTracker.objects.filter(client_identifier='client-e').count(), 2)

    def test_reset_and_status(self):
        for _ in range(6):
            ratelimit.check_rate_limit('client-f', None, 'DOWNLOAD')
        self.assertTrue(ratelimit.rate_limit_status('client-f')['is_blocked'])
        self.assertEqual(ratelimit.reset_rate_limits('client-f'), 1)
        self.assertFalse(ratelimit.rate_limit_status('client-f')['is_blocked'])
        self.assertTrue(ratelimit.check_rate_limit('client-f', None, 'DOWNLOAD').allowed)


class JarValidationTests(StorageDirMixin, TestCase):
    """Test upload validation and storage"""

    def setUp(self):
        self.use_temp_storage()

    def test_valid_jar_accepted(self):
        storage.validate_upload(TestDataFactory.create_jar_upload())

    def test_missing_manifest_only_warns(self):
        storage.validate_upload(TestDataFactory.create_jar_upload(content=TestDataFactory.build_jar_bytes(manifest=None)))

    def test_empty_file_rejected(self):
        with self.assertRaisesMessage(FileUploadException, "is empty"):
            storage.validate_upload(TestDataFactory.create_jar_upload(content=b''))

    def test_wrong_extension_rejected(self):
        with self.assertRaisesMessage(FileUploadException, "Only JAR files are allowed"):
            storage.validate_upload(TestDataFactory.create_jar_upload(name='app.zip'))

    def test_wrong_mime_type_rejected(self):
        with self.assertRaisesMessage(FileUploadException, "Invalid MIME type"):
            storage.validate_upload(TestDataFactory.create_jar_upload(content_type='text/plain'))

    def test_bad_magic_bytes_rejected(self):
        with self.assertRaisesMessage(FileUploadException, "does not have valid ZIP/JAR magic bytes"):
            storage.validate_upload(TestDataFactory.create_jar_upload(content=b'this is not an archive'))

    def test_empty_archive_rejected(self):
        content = b'PK\x05\x06' + b'\x00' * 18
        with self.assertRaisesMessage(FileUploadException, "JAR file appears to be empty"):
            storage.validate_upload(TestDataFactory.create_jar_upload(content=content))

    def test_truncated_archive_rejected(self):
        content = TestDataFactory.build_jar_bytes()[:40]
        with self.assertRaisesMessage(FileUploadException, "Corrupted JAR file"):
            storage.validate_upload(TestDataFactory.create_jar_upload(content=content))

    def test_path_traversal_entry_rejected(self):
        content = TestDataFactory.build_jar_bytes(entries={'../../evil.class': b'\xca\xfe'})
        with self.assertRaisesMessage(FileUploadException, "path traversal"):
            storage.validate_upload(TestDataFactory.create_jar_upload(content=content))

    def test_invalid_manifest_rejected(self):
        content = TestDataFactory.build_jar_bytes(manifest='Main-Class: com.example.App\n')
        with self.assertRaisesMessage(FileUploadException, "missing Manifest-Version"):
            storage.validate_upload(TestDataFactory.create_jar_upload(content=content))

    @override_settings(UPDATES_MAX_FILE_SIZE=16)
    def test_file_too_large_rejected(self):
        with self.assertRaisesMessage(FileUploadException, "is too large"):
            storage.validate_upload(TestDataFactory.create_jar_upload())

    def test_invalid_version_number_rejected(self):
        with self.assertRaises(FileUploadException):
            storage.store_file(TestDataFactory.create_jar_upload(), '../1.0.0')

    def test_store_and_resolve(self):
        content = TestDataFactory.build_jar_bytes()
        path, size, checksum = storage.store_file(TestDataFactory.create_jar_upload(content=content), '3.0.0')
        self.assertEqual(path, 'versions/3.0.0/sales-management-3.0.0.jar')
        self.assertEqual(size, len(content))
        self.assertEqual(checksum, hashlib.sha256(content).hexdigest())
        self.assertTrue(storage.file_exists(path))
        self.assertEqual(storage.files_in_version('3.0.0'), ['sales-management-3.0.0.jar'])

    def test_resolve_outside_root_denied(self):
        with self.assertRaisesMessage(FileUploadException, "Access denied"):
            storage.resolve_path('versions/../../etc/passwd')
        self.assertFalse(storage.file_exists('../outside.jar'))
        with self.assertRaisesMessage(FileUploadException, "Access denied"):
            storage.load_file('/etc/passwd')

    def test_store_replaces_leftover_copy(self):
        storage.store_file(TestDataFactory.create_jar_upload(), '3.1.0')
        content = TestDataFactory.build_jar_bytes(entries={'com/example/New.class': b'\xca\xfe\xba\xbe'})
        path, size, _ = storage.store_file(TestDataFactory.create_jar_upload(content=content), '3.1.0')
        self.assertEqual(storage.files_in_version('3.1.0'), ['sales-management-3.1.0.jar'])
        with storage.load_file(path) as stored:
            self.assertEqual(stored.read(), content)

    def test_load_missing_file(self):
        with self.assertRaises(FileUploadException):
            storage.load_file('versions/9.9.9/sales-management-9.9.9.jar')

    def test_delete_version_directory(self):
        storage.store_file(TestDataFactory.create_jar_upload(), '3.2.0')
        storage.delete_version_directory('3.2.0')
        self.assertEqual(storage.files_in_version('3.2.0'), [])
        self.assertFalse(os.path.exists(os.path.join(self.storage_dir, '3.2.0')))
        with self.assertRaisesMessage(FileUploadException, "Access denied"):
            storage.delete_version_directory('.')


class UpdateServiceTests(TestCase):
    """Test update checks, channels and compatibility"""

    def test_check_for_updates(self):
        TestDataFactory.create_version('1.2.0', release_notes='Fixes')
        result = services.check_for_updates('1.0.0')
        self.assertTrue(result['update_available'])
        self.assertEqual(result['latest_version'], '1.2.0')
        self.assertFalse(result['is_mandatory'])
        self.assertFalse(services.check_for_updates('1.2.0')['update_available'])

    def test_below_minimum_client_version_is_mandatory(self):
        TestDataFactory.create_version('2.0.0', minimum_client_version='1.5.0')
        self.assertTrue(services.check_for_updates('1.4.9')['is_mandatory'])
        self.assertFalse(services.check_for_updates('1.5.0')['is_mandatory'])

    def test_no_active_versions(self):
        TestDataFactory.create_version('1.0.0', is_active=False)
        self.assertEqual(services.check_for_updates('0.9.0'), {'update_available': False, 'current_version': '0.9.0'})

    def test_latest_per_channel(self):
        TestDataFactory.create_version('1.0.0')
        TestDataFactory.create_version('1.1.0-beta', release_channel='BETA', release_date=timezone.now() + timedelta(hours=1))
        self.assertEqual(services.latest_version('STABLE').version_number, '1.0.0')
        self.assertEqual(services.latest_version().version_number, '1.1.0-beta')
        channels = services.release_channels()
        self.assertEqual(channels['BETA']['latest_version'], '1.1.0-beta')
        self.assertIsNone(channels['NIGHTLY']['latest_version'])

    def test_activation_deactivates_same_channel_only(self):
        stable = TestDataFactory.create_version('1.0.0')
        beta = TestDataFactory.create_version('1.1.0', release_channel='BETA')
        older = TestDataFactory.create_version('0.9.0', is_active=False)
        services.set_version_status(older, True)
        stable.refresh_from_db()
        beta.refresh_from_db()
        self.assertFalse(stable.is_active)
        self.assertTrue(beta.is_active)

    def test_compatibility(self):
        TestDataFactory.create_version('2.0.0', minimum_client_version='1.5.0')
        result = services.check_compatibility('2.0.0', '1.0.0', {'java.version': '1.8.0_292', 'os.name': 'Linux'})
        self.assertFalse(result['is_compatible'])
        self.assertEqual(result['warning_level'], 'CRITICAL')
        self.assertEqual([issue['type'] for issue in result['compatibility_issues']],
                         ['CLIENT_VERSION', 'RUNTIME_VERSION'])

        result = services.check_compatibility('2.0.0', '1.6.0', {'java.version': '17.0.2', 'available.memory.mb': '256'})
        self.assertTrue(result['is_compatible'])
        self.assertEqual(result['warning_level'], 'MEDIUM')

    def test_compatibility_unknown_version(self):
        result = services.check_compatibility('9.9.9', '1.0.0', {})
        self.assertFalse(result['can_proceed'])

    def test_download_lifecycle(self):
        download = services.record_download_start(TestDataFactory.create_version(), 'client-1')
        services.complete_download(download)
        self.assertEqual(download.download_status, 'COMPLETED')
        self.assertIsNotNone(download.download_completed_at)
        with self.assertRaisesMessage(BusinessLogicException, "Cannot mark a completed download as failed"):
            services.fail_download(download, 'late failure')

    def test_stale_clients(self):
        services.connect_client('1.0.0', session_id='fresh')
        stale = services.connect_client('1.0.0', session_id='stale')
        ConnectedClient.objects.filter(pk=stale.pk).update(last_ping_at=timezone.now() - timedelta(hours=1))
        self.assertEqual(services.deactivate_stale_clients(30), 1)
        self.assertTrue(ConnectedClient.objects.get(session_id='fresh').is_active)


class UpdateClientAPITests(StorageDirMixin, TestCase):
    """Test client-facing update endpoints"""

    def setUp(self):
        self.use_temp_storage()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_check_requires_current_version(self):
        response = self.client.get('/api/v1/updates/check/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_check_endpoint(self):
        TestDataFactory.create_version('1.3.0')
        response = self.client.get('/api/v1/updates/check/?currentVersion=1.2.0')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['update_available'])
        self.assertEqual(response['X-RateLimit-Remaining'], '19')
        self.assertIn('X-RateLimit-Reset', response)

    def test_unknown_channel_rejected(self):
        response = self.client.get('/api/v1/updates/latest/?channel=unstable')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_latest_without_versions(self):
        response = self.client.get('/api/v1/updates/latest/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error_code'], 'UPDATE_NOT_FOUND')

    def test_rate_limit_returns_429(self):
        TestDataFactory.create_version('1.0.0')
        for _ in range(20):
            response = self.client.get('/api/v1/updates/latest/', HTTP_X_CLIENT_ID='desktop-1')
            self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get('/api/v1/updates/latest/', HTTP_X_CLIENT_ID='desktop-1')
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertEqual(response.data['error_code'], 'RATE_LIMIT_EXCEEDED')
        self.assertEqual(response.data['status'], 429)
        self.assertEqual(response['X-RateLimit-Remaining'], '0')
        self.assertEqual(response['X-RateLimit-Reset'], '60')

        response = self.client.get('/api/v1/updates/latest/', HTTP_X_CLIENT_ID='desktop-2')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_download(self):
        content = TestDataFactory.build_jar_bytes()
        version = services.create_version({'version_number': '4.0.0'}, TestDataFactory.create_jar_upload(content=content))

        response = self.client.get('/api/v1/updates/download/4.0.0/', HTTP_X_CLIENT_ID='desktop-1')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(b''.join(response.streaming_content), content)
        response.close()
        self.assertEqual(response['X-Checksum'], version.file_checksum)
        self.assertEqual(response['X-Version'], '4.0.0')

        download = UpdateDownload.objects.get()
        self.assertEqual(str(download.id), response['X-Download-ID'])
        self.assertEqual(download.client_identifier, 'desktop-1')

        response = self.client.post(f'/api/v1/updates/downloads/{download.id}/complete/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['download_status'], 'COMPLETED')

        response = self.client.post(f'/api/v1/updates/downloads/{download.id}/fail/', {'error_message': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_download_unknown_version(self):
        response = self.client.get('/api/v1/updates/download/9.9.9/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_metadata_reports_missing_file(self):
        TestDataFactory.create_version('1.0.0')
        response = self.client.get('/api/v1/updates/metadata/1.0.0/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['file_exists'])

    def test_compatibility_endpoint(self):
        TestDataFactory.create_version('2.0.0', minimum_client_version='1.5.0')
        response = self.client.get('/api/v1/updates/compatibility/2.0.0/?client_version=1.0.0&java.version=17')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_compatible'])
        response = self.client.get('/api/v1/updates/compatibility/2.0.0/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_client_session(self):
        response = self.client.post('/api/v1/updates/clients/connect/', {'client_version': '1.0.0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        session_id = response.data['session_id']

        response = self.client.post(f'/api/v1/updates/clients/{session_id}/ping/', {'client_version': '1.1.0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['client_version'], '1.1.0')

        response = self.client.post(f'/api/v1/updates/clients/{session_id}/disconnect/')
        self.assertFalse(response.data['is_active'])

        response = self.client.post(f'/api/v1/updates/clients/{session_id}/ping/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/updates/clients/unknown/ping/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_health_is_public(self):
        self.client.logout()
        response = self.client.get('/api/v1/updates/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'UP')


class UpdateAdminAPITests(StorageDirMixin, TestCase):
    """Test admin version management endpoints"""

    def setUp(self):
        self.use_temp_storage()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def _upload(self, version_number='2.0.0', content=None, **extra):
        data = {'version_number': version_number, 'file': TestDataFactory.create_jar_upload(content=content)}
        data.update(extra)
        return self.client.post('/api/v1/admin/updates/versions/', data, format='multipart')

    def test_non_admin_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/admin/updates/versions/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_role_allowed(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='ADMIN'))
        response = self.client.get('/api/v1/admin/updates/versions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_upload_version(self):
        previous = TestDataFactory.create_version('1.0.0')
        beta = TestDataFactory.create_version('1.5.0', release_channel='BETA')
        content = TestDataFactory.build_jar_bytes()

        response = self._upload(content=content, release_notes='New reports')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['file_checksum'], hashlib.sha256(content).hexdigest())
        self.assertEqual(response.data['download_url'], '/api/v1/updates/download/2.0.0/')
        self.assertEqual(response.data['created_by'], self.admin.username)
        self.assertTrue(storage.file_exists(response.data['file_name']))
        self.assertTrue(AuditLog.objects.filter(action='version_upload').exists())

        self.assertFalse(ApplicationVersion.objects.get(pk=previous.pk).is_active)
        self.assertTrue(ApplicationVersion.objects.get(pk=beta.pk).is_active)

    def test_upload_duplicate_version(self):
        TestDataFactory.create_version('2.0.0')
        response = self._upload()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_upload_invalid_jar(self):
        response = self._upload(content=b'plain text')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error_code'], 'FILE_UPLOAD_ERROR')
        self.assertFalse(ApplicationVersion.objects.exists())

    def test_upload_invalid_version_number(self):
        response = self._upload(version_number='2.0')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_and_status(self):
        version = TestDataFactory.create_version('1.0.0')
        response = self.client.patch(f'/api/v1/admin/updates/versions/{version.id}/',
                                     {'is_mandatory': True, 'minimum_client_version': '0.9.0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_mandatory'])

        response = self.client.put(f'/api/v1/admin/updates/versions/{version.id}/status/', {'is_active': False},
                                   format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])

    def test_delete_version_removes_file(self):
        version_id = self._upload().data['id']
        response = self.client.delete(f'/api/v1/admin/updates/versions/{version_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ApplicationVersion.objects.exists())
        self.assertEqual(storage.files_in_version('2.0.0'), [])

    def test_unknown_version_id(self):
        response = self.client.get('/api/v1/admin/updates/versions/999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_and_statistics(self):
        version = TestDataFactory.create_version('1.0.0')
        TestDataFactory.create_version('1.1.0', release_channel='BETA')
        services.record_download_start(version, 'client-1')

        response = self.client.get('/api/v1/admin/updates/versions/?channel=stable')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['download_count'], 1)

        response = self.client.get('/api/v1/admin/updates/statistics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_versions'], 2)
        self.assertEqual(response.data['total_downloads'], 1)

    def test_rate_limit_admin(self):
        for _ in range(6):
            ratelimit.check_rate_limit('desktop-9', None, 'DOWNLOAD')

        response = self.client.get('/api/v1/admin/updates/rate-limits/desktop-9/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_blocked'])
        self.assertEqual(len(response.data['trackers']), 1)

        response = self.client.get('/api/v1/admin/updates/rate-limits/')
        self.assertEqual(response.data['total_blocked_requests'], 1)
        self.assertEqual(response.data['currently_blocked_clients'], 1)

        response = self.client.delete('/api/v1/admin/updates/rate-limits/desktop-9/')
        self.assertEqual(response.data['trackers_reset'], 1)


class CleanupCommandTests(TestCase):
    """Test the cleanup_rate_limits management command"""

    def test_cleanup(self):
        now = timezone.now()
        RateLimitTracker.objects.create(client_identifier='a', endpoint_type='DOWNLOAD',
                                        blocked_until=now - timedelta(minutes=1))
        RateLimitTracker.objects.create(client_identifier='b', endpoint_type='DOWNLOAD', request_count=3,
                                        window_start=now - timedelta(hours=2))
        RateLimitTracker.objects.create(client_identifier='c', endpoint_type='DOWNLOAD',
                                        last_request_time=now - timedelta(days=8))
        client = services.connect_client('1.0.0', session_id='idle')
        ConnectedClient.objects.filter(pk=client.pk).update(last_ping_at=now - timedelta(hours=2))

        out = StringIO()
        call_command('cleanup_rate_limits', '--stale-clients', stdout=out)
        output = out.getvalue()

        self.assertIn('Expired blocks cleared: 1', output)
        self.assertIn('Windows reset: 1', output)
        self.assertIn('Inactive trackers deleted: 1', output)
        self.assertIn('Stale clients deactivated: 1', output)
        self.assertIsNone(RateLimitTracker.objects.get(client_identifier='a').blocked_until)
        self.assertEqual(RateLimitTracker.objects.get(client_identifier='b').request_count, 0)
        self.assertFalse(RateLimitTracker.objects.filter(client_identifier='c').exists())
