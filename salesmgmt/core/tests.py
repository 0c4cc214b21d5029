"""
Comprehensive test suite for Core module
Tests: JWT authentication, registration, audit logs, shared helpers, report caching and the error payload
"""
from django.core.cache import cache
from django.test import TestCase, RequestFactory
from rest_framework import status
from rest_framework.request import Request

from salesmgmt.core.cache_utils import (
    REPORTS_CACHE_PREFIX, cached_query, invalidate_reports_cache, make_cache_key, namespace_version,
)
from salesmgmt.core.exceptions import (
    BusinessLogicException, FileUploadException, InsufficientStockException, ResourceNotFoundException,
    format_file_size,
)
from salesmgmt.core.models import AuditLog
from salesmgmt.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from salesmgmt.core.utils import (
    apply_sorting, create_audit_log, get_client_ip, get_object_or_not_found, paginated_response, parse_bool,
    parse_int,
)
from salesmgmt.parties.models import Customer


class AuthenticationTests(TestCase):
    """Test login, refresh, registration and the current-user endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(username='cashier', password='testpass123')

    def test_login_returns_tokens_and_user(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'cashier',
            'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['username'], 'cashier')

    def test_login_with_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'cashier',
            'password': 'wrong'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_token(self):
        login = self.client.post('/api/v1/auth/login/', {
            'username': 'cashier',
            'password': 'testpass123'
        }, format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_invalid_refresh_token(self):
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_register(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'newuser',
            'email': 'newuser@test.com',
            'password': 'Str0ngPassw0rd!',
            'password_confirm': 'Str0ngPassw0rd!'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['username'], 'newuser')
        self.assertIn('access', response.data)

    def test_register_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'newuser',
            'email': 'newuser@test.com',
            'password': 'Str0ngPassw0rd!',
            'password_confirm': 'Different0ne!'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_register_with_analyst_role(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'analyst',
            'email': 'analyst@test.com',
            'password': 'Str0ngPassw0rd!',
            'password_confirm': 'Str0ngPassw0rd!',
            'role': 'SALES_ANALYST'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], 'SALES_ANALYST')
        self.assertEqual(response.data['user']['role_display'], 'Sales Analyst')

    def test_register_elevated_role_rejected(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'sneaky',
            'email': 'sneaky@test.com',
            'password': 'Str0ngPassw0rd!',
            'password_confirm': 'Str0ngPassw0rd!',
            'role': 'ADMIN'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('role', response.data)

    def test_register_duplicate_email_rejected(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'another',
            'email': 'CASHIER@test.com',
            'password': 'Str0ngPassw0rd!',
            'password_confirm': 'Str0ngPassw0rd!'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_unauthenticated_request_rejected(self):
        response = self.client.get('/api/v1/customers/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_user_me(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'cashier')

        response = self.client.patch('/api/v1/auth/me/', {'phone': '5551234'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.phone, '5551234')

    def test_user_me_cannot_change_role(self):
        self.client.authenticate_user(self.user)
        response = self.client.patch('/api/v1/auth/me/', {'role': 'ADMIN'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, 'USER')


class AuditLogTests(TestCase):
    """Test audit log creation and visibility"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()

    def test_create_audit_log_with_user(self):
        log = create_audit_log(action='create', model_name='Customer', object_id=5, user=self.user,
                               object_name='Jane', changes={'name': 'Jane'})
        self.assertIsNotNone(log)
        self.assertEqual(log.object_id, '5')
        self.assertEqual(log.user, self.user)

    def test_create_audit_log_missing_fields_skipped(self):
        self.assertIsNone(create_audit_log(action='create', model_name=None, object_id=1))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_non_staff_only_sees_own_logs(self):
        create_audit_log(action='create', model_name='Customer', object_id=1, user=self.user)
        create_audit_log(action='create', model_name='Customer', object_id=2, user=self.other)

        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/?model=Customer')
        self.assertEqual(response.data['count'], 2)

    def test_admin_role_sees_all_logs(self):
        create_audit_log(action='create', model_name='Customer', object_id=1, user=self.user)
        create_audit_log(action='create', model_name='Customer', object_id=2, user=self.other)
        self.client.authenticate_user(TestDataFactory.create_user(role='ADMIN'))
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.data['count'], 2)

    def test_audit_log_detail_permission(self):
        log = create_audit_log(action='create', model_name='Customer', object_id=2, user=self.other)
        self.client.authenticate_user(self.user)
        response = self.client.get(f'/api/v1/audit-logs/{log.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_api_create_writes_audit_log(self):
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/customers/', {
            'name': 'Audit Customer',
            'email': 'audit@test.com'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(AuditLog.objects.filter(model_name='Customer', action='create').exists())


class ErrorPayloadTests(TestCase):
    """Test the shape of domain error responses"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_not_found_payload(self):
        response = self.client.get('/api/v1/customers/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error_code'], 'RESOURCE_NOT_FOUND')
        self.assertEqual(response.data['status'], 404)
        self.assertIn('999999', response.data['error'])
        self.assertIn('timestamp', response.data)

    def test_business_logic_payload(self):
        response = self.client.get('/api/v1/customers/?page=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error_code'], 'INVALID_PAGINATION')

    def test_exception_defaults(self):
        exc = BusinessLogicException("Something is wrong")
        self.assertEqual(exc.status_code, 400)
        self.assertEqual(exc.message, "Something is wrong")

        exc = FileUploadException.empty_file('app.jar')
        self.assertEqual(exc.status_code, 400)
        self.assertIn('app.jar', exc.message)

    def test_insufficient_stock_messages(self):
        exc = InsufficientStockException('Hammer', 0, 3)
        self.assertEqual(exc.status_code, 409)
        self.assertEqual(exc.error_code, 'INSUFFICIENT_STOCK')
        self.assertIn("Product 'Hammer' is currently out of stock", exc.message)
        self.assertIn("none are available", exc.message)

        exc = InsufficientStockException('Hammer', 1, 3)
        self.assertIn("Insufficient stock for product 'Hammer'", exc.message)
        self.assertIn("but only 1 unit is available", exc.message)
        self.assertEqual(exc.details['shortfall'], 2)

        exc = InsufficientStockException('Hammer', 4, 7)
        self.assertIn("You requested 7 unit(s), but only 4 units are available", exc.message)
        self.assertEqual(exc.details['available_stock'], 4)
        self.assertEqual(exc.details['shortfall'], 3)


class UtilsTests(TestCase):
    """Test shared request and query-param helpers"""

    def setUp(self):
        self.factory = RequestFactory()

    def test_client_ip_prefers_forwarded_for(self):
        request = self.factory.get('/', HTTP_X_FORWARDED_FOR='10.0.0.1, 10.0.0.2', REMOTE_ADDR='127.0.0.1')
        self.assertEqual(get_client_ip(request), '10.0.0.1')

    def test_client_ip_falls_back_to_real_ip(self):
        request = self.factory.get('/', HTTP_X_REAL_IP='10.1.1.1', REMOTE_ADDR='127.0.0.1')
        self.assertEqual(get_client_ip(request), '10.1.1.1')

    def test_client_ip_remote_addr(self):
        request = self.factory.get('/', REMOTE_ADDR='127.0.0.1')
        self.assertEqual(get_client_ip(request), '127.0.0.1')

    def test_parse_int(self):
        self.assertEqual(parse_int('5', 'days'), 5)
        self.assertEqual(parse_int(None, 'days', 30), 30)
        with self.assertRaises(BusinessLogicException):
            parse_int('five', 'days')

    def test_parse_bool(self):
        self.assertTrue(parse_bool('true'))
        self.assertTrue(parse_bool('1'))
        self.assertFalse(parse_bool('no'))
        self.assertTrue(parse_bool(None, default=True))

    def test_get_object_or_not_found(self):
        customer = TestDataFactory.create_customer()
        self.assertEqual(get_object_or_not_found(Customer, customer.pk), customer)
        with self.assertRaises(ResourceNotFoundException):
            get_object_or_not_found(Customer, 424242)

    def test_format_file_size(self):
        self.assertEqual(format_file_size(512), '512 B')
        self.assertEqual(format_file_size(1536), '1.5 KB')
        self.assertEqual(format_file_size(5 * 1024 * 1024), '5.0 MB')
        self.assertEqual(format_file_size(None), 'Unknown')

    def _sorted_names(self, query):
        request = Request(self.factory.get(f'/{query}'))
        queryset = apply_sorting(request, Customer.objects.all(), ('name', 'loyalty_points'), ('name',))
        return [customer.name for customer in queryset]

    def test_apply_sorting(self):
        TestDataFactory.create_customer(name='Alice', loyalty_points=30)
        TestDataFactory.create_customer(name='Bob', loyalty_points=10)
        TestDataFactory.create_customer(name='Carol', loyalty_points=20)

        self.assertEqual(self._sorted_names(''), ['Alice', 'Bob', 'Carol'])
        self.assertEqual(self._sorted_names('?sort_by=loyaltyPoints'), ['Bob', 'Carol', 'Alice'])
        self.assertEqual(self._sorted_names('?sort_by=LOYALTY_POINTS&sort_dir=DESC'), ['Alice', 'Carol', 'Bob'])
        self.assertEqual(self._sorted_names('?sort_by=name&sort_dir=sideways'), ['Alice', 'Bob', 'Carol'])
        self.assertEqual(self._sorted_names('?sort_by=password&sort_dir=desc'), ['Alice', 'Bob', 'Carol'])

    def test_paginated_response_without_serializer(self):
        for name in ('Alice', 'Bob', 'Carol'):
            TestDataFactory.create_customer(name=name)
        request = Request(self.factory.get('/?page=2&limit=2'))
        response = paginated_response(request, Customer.objects.order_by('name').values('name'))
        self.assertEqual(response.data['results'], [{'name': 'Carol'}])
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(response.data['previous'], 1)
        self.assertIsNone(response.data['next'])


class CacheUtilsTests(TestCase):
    """Test report caching and namespace invalidation"""

    def setUp(self):
        cache.clear()

    def test_invalidation_keeps_unrelated_keys(self):
        calls = []

        @cached_query(cache_ttl=60, key_prefix="reports:test")
        def build(days):
            calls.append(days)
            return {'days': days}

        build(7)
        build(7)
        self.assertEqual(calls, [7])
        cache.set('sessions:abc', 'keep-me', 60)

        invalidate_reports_cache()
        build(7)
        self.assertEqual(calls, [7, 7])
        self.assertEqual(cache.get('sessions:abc'), 'keep-me')

    def test_invalidation_bumps_namespace_version(self):
        first = make_cache_key('reports:sales', 1)
        self.assertIn(':v1:', first)
        invalidate_reports_cache()
        invalidate_reports_cache()
        self.assertEqual(namespace_version(REPORTS_CACHE_PREFIX), 3)
        self.assertNotEqual(make_cache_key('reports:sales', 1), first)
