"""
Comprehensive test suite for Parties module
Tests: Customer CRUD, soft delete and restore, loyalty and credit rules, supplier rules and analytics
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from salesmgmt.core.exceptions import BusinessLogicException, DataIntegrityException
from salesmgmt.core.models import AuditLog
from salesmgmt.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from salesmgmt.parties import services
from salesmgmt.parties.models import Customer, Supplier
from salesmgmt.returns.models import Return
from salesmgmt.sales.models import Sale


class CustomerServiceTests(TestCase):
    """Test customer business rules"""

    def test_name_built_from_first_and_last_name(self):
        data = services.prepare_customer_data({'first_name': 'Ada', 'last_name': 'Lovelace', 'email': 'ada@test.com'})
        self.assertEqual(data['name'], 'Ada Lovelace')

    def test_duplicate_email_case_insensitive(self):
        TestDataFactory.create_customer(email='taken@test.com')
        with self.assertRaisesMessage(BusinessLogicException, "Email already exists: TAKEN@test.com"):
            services.prepare_customer_data({'name': 'Other', 'email': 'TAKEN@test.com'})

    def test_soft_delete_and_restore(self):
        customer = TestDataFactory.create_customer()
        services.delete_customer(customer, 'admin', 'Duplicate record')
        customer.refresh_from_db()
        self.assertTrue(customer.is_deleted)
        self.assertEqual(customer.deleted_by, 'admin')
        self.assertNotIn(customer, Customer.objects.not_deleted())

        services.restore_customer(customer)
        customer.refresh_from_db()
        self.assertFalse(customer.is_deleted)
        self.assertIsNone(customer.deleted_at)

    def test_soft_delete_blocked_by_pending_sale(self):
        customer = TestDataFactory.create_customer()
        TestDataFactory.create_sale(customer=customer, status='PENDING')
        with self.assertRaises(DataIntegrityException):
            services.delete_customer(customer, 'admin')

    def test_soft_delete_allowed_with_completed_sales(self):
        customer = TestDataFactory.create_customer()
        TestDataFactory.create_sale(customer=customer, status='COMPLETED')
        services.delete_customer(customer, 'admin')
        self.assertTrue(Customer.objects.get(pk=customer.pk).is_deleted)

    def test_soft_delete_blocked_by_open_return(self):
        customer = TestDataFactory.create_customer()
        sale = TestDataFactory.create_sale(customer=customer, status='COMPLETED')
        return_request = TestDataFactory.create_return(sale, status='APPROVED')
        with self.assertRaises(DataIntegrityException) as ctx:
            services.delete_customer(customer, 'admin')
        self.assertEqual(ctx.exception.error_code, 'CUSTOMER_HAS_RETURNS')
        self.assertFalse(Customer.objects.get(pk=customer.pk).is_deleted)

        return_request.status = 'REFUNDED'
        return_request.save()
        services.delete_customer(customer, 'admin')
        self.assertTrue(Customer.objects.get(pk=customer.pk).is_deleted)

    def test_hard_delete_cascades_sales_and_returns(self):
        customer = TestDataFactory.create_customer()
        sale = TestDataFactory.create_sale(customer=customer, status='COMPLETED')
        TestDataFactory.create_sale(customer=customer, status='PENDING')
        TestDataFactory.create_return(sale)

        with self.assertLogs('salesmgmt.parties.services', level='WARNING') as logs:
            counts = services.hard_delete_customer(customer)
        self.assertEqual(counts, {'sales_deleted': 2, 'returns_deleted': 1})
        self.assertIn("with 2 sales and 1 returns", logs.output[0])
        self.assertFalse(Sale.objects.filter(customer_id=customer.pk).exists())
        self.assertFalse(Return.objects.filter(customer_id=customer.pk).exists())

    def test_restore_active_customer_rejected(self):
        with self.assertRaises(BusinessLogicException):
            services.restore_customer(TestDataFactory.create_customer())

    def test_add_loyalty_points(self):
        customer = TestDataFactory.create_customer()
        services.add_loyalty_points(customer, 150)
        self.assertEqual(Customer.objects.get(pk=customer.pk).loyalty_points, 150)
        with self.assertRaises(BusinessLogicException):
            services.add_loyalty_points(customer, 0)

    def test_vip_customers(self):
        vip = TestDataFactory.create_customer(customer_type='VIP')
        loyal = TestDataFactory.create_customer(loyalty_points=1500)
        TestDataFactory.create_customer()
        self.assertEqual(set(services.vip_customers()), {vip, loyal})


class CustomerAPITests(TestCase):
    """Test Customer API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_customer(self):
        response = self.client.post('/api/v1/customers/', {
            'first_name': 'Grace',
            'last_name': 'Hopper',
            'name': 'placeholder',
            'email': 'grace@test.com',
            'customer_type': 'CORPORATE'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Grace Hopper')

    def test_create_customer_duplicate_email(self):
        TestDataFactory.create_customer(email='dup@test.com')
        response = self.client.post('/api/v1/customers/', {'name': 'Dup', 'email': 'dup@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_soft_delete_hides_customer(self):
        customer = TestDataFactory.create_customer()
        response = self.client.delete(f'/api/v1/customers/{customer.id}/?reason=Closed')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        response = self.client.get(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.get('/api/v1/customers/deleted/')
        self.assertEqual(response.data['count'], 1)

        response = self.client.post(f'/api/v1/customers/{customer.id}/restore/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_deleted'])

    def test_force_delete_requires_admin(self):
        customer = TestDataFactory.create_customer()
        response = self.client.delete(f'/api/v1/customers/{customer.id}/?force=true')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        TestDataFactory.create_sale(customer=customer)
        response = self.client.delete(f'/api/v1/customers/{customer.id}/?force=true')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Customer.objects.filter(pk=customer.pk).exists())

    def test_force_delete_by_admin_cascades(self):
        customer = TestDataFactory.create_customer()
        sale = TestDataFactory.create_sale(customer=customer, status='COMPLETED')
        TestDataFactory.create_return(sale, status='PENDING')
        self.client.authenticate_user(self.admin)

        with self.assertLogs('salesmgmt.parties.services', level='WARNING'):
            response = self.client.delete(f'/api/v1/customers/{customer.id}/?force=true')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Sale.objects.filter(pk=sale.pk).exists())
        self.assertFalse(Return.objects.filter(original_sale_id=sale.pk).exists())
        log = AuditLog.objects.get(model_name='Customer', object_id=str(customer.id))
        self.assertEqual(log.changes['sales_deleted'], 1)
        self.assertEqual(log.changes['returns_deleted'], 1)

    def test_soft_delete_with_open_return_conflict(self):
        customer = TestDataFactory.create_customer()
        sale = TestDataFactory.create_sale(customer=customer, status='COMPLETED')
        TestDataFactory.create_return(sale, status='PENDING')
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error_code'], 'CUSTOMER_HAS_RETURNS')

    def test_list_sorting(self):
        TestDataFactory.create_customer(name='Few Points', email='few@test.com', loyalty_points=5)
        TestDataFactory.create_customer(name='Many Points', email='many@test.com', loyalty_points=500)
        response = self.client.get('/api/v1/customers/?sort_by=loyaltyPoints&sort_dir=desc')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['results'][0]['name'], 'Many Points')
        response = self.client.get('/api/v1/customers/?sort_by=loyalty_points&sort_dir=asc')
        self.assertEqual(response.data['results'][0]['name'], 'Few Points')
        response = self.client.get('/api/v1/customers/?sort_by=notAField')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_search_requires_query(self):
        response = self.client.get('/api/v1/customers/search/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_search(self):
        TestDataFactory.create_customer(name='Margaret Hamilton', email='mh@test.com')
        TestDataFactory.create_customer(name='Alan Turing', email='at@test.com')
        response = self.client.get('/api/v1/customers/search/?q=hamilton')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_credit_limit_negative_rejected(self):
        customer = TestDataFactory.create_customer()
        response = self.client.put(f'/api/v1/customers/{customer.id}/credit-limit/', {'credit_limit': '-5.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_statistics(self):
        TestDataFactory.create_customer(customer_type='VIP', loyalty_points=10)
        TestDataFactory.create_customer(loyalty_points=5)
        response = self.client.get('/api/v1/customers/statistics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalCustomers'], 2)
        self.assertEqual(response.data['totalLoyaltyPoints'], 15)
        self.assertEqual(response.data['customersByType']['VIP'], 1)


class SupplierTests(TestCase):
    """Test supplier rules and API endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_rating_range(self):
        with self.assertRaisesMessage(BusinessLogicException, "Rating must be between 0.0 and 5.0"):
            services.validate_rating(5.5)

    def test_duplicate_tax_number(self):
        TestDataFactory.create_supplier(tax_number='TAX-1')
        with self.assertRaises(BusinessLogicException):
            services.validate_supplier({'tax_number': 'TAX-1'})

    def test_delete_supplier_with_active_orders(self):
        supplier = TestDataFactory.create_supplier()
        TestDataFactory.create_purchase_order(supplier=supplier, status='APPROVED')
        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Supplier.objects.filter(pk=supplier.pk).exists())

    def test_delete_supplier_with_received_orders_cascades(self):
        supplier = TestDataFactory.create_supplier()
        TestDataFactory.create_purchase_order(supplier=supplier, status='RECEIVED')
        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_create_supplier(self):
        response = self.client.post('/api/v1/suppliers/', {
            'name': 'Acme Parts',
            'email': 'sales@acme.test',
            'rating': 4.5
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'ACTIVE')

    def test_update_rating(self):
        supplier = TestDataFactory.create_supplier()
        response = self.client.put(f'/api/v1/suppliers/{supplier.id}/rating/', {'rating': 4.2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['rating'], 4.2)

    def test_analytics(self):
        TestDataFactory.create_supplier(rating=4.0, total_amount=Decimal('100.00'))
        TestDataFactory.create_supplier(rating=3.0, total_amount=Decimal('50.00'))
        response = self.client.get('/api/v1/suppliers/analytics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalSuppliers'], 2)
        self.assertEqual(response.data['averageRating'], 3.5)
        self.assertEqual(response.data['topPerformingSuppliers'], 1)
