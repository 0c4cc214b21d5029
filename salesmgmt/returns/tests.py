"""
Comprehensive test suite for Returns module
Tests: Return policy window, quantity limits, approval workflow, refunds and restocking
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from salesmgmt.catalog.models import Product
from salesmgmt.core.exceptions import BusinessLogicException
from salesmgmt.core.models import AuditLog
from salesmgmt.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from salesmgmt.returns import services
from salesmgmt.returns.models import Return


class ReturnServiceTests(TestCase):
    """Test return request rules"""

    def setUp(self):
        self.product = TestDataFactory.create_product(price=Decimal('40.00'), stock_quantity=10)
        self.sale = TestDataFactory.create_sale(product=self.product, quantity=3, status='COMPLETED')
        self.sale_item = self.sale.items.get()

    def _data(self, quantity=1, **item_extra):
        item = {'original_sale_item': self.sale_item, 'return_quantity': quantity}
        item.update(item_extra)
        return {'original_sale': self.sale, 'reason': 'DEFECTIVE', 'items': [item]}

    def test_create_return(self):
        return_request = services.create_return(self._data(quantity=2))
        self.assertEqual(return_request.status, 'PENDING')
        self.assertEqual(return_request.customer, self.sale.customer)
        self.assertEqual(return_request.total_refund_amount, Decimal('80.00'))
        self.assertTrue(return_request.return_number)

    def test_restocking_fee_reduces_refund(self):
        return_request = services.create_return(self._data(quantity=1, restocking_fee=Decimal('5.00')))
        self.assertEqual(return_request.total_refund_amount, Decimal('35.00'))

    def test_condition_decides_restockable(self):
        return_request = services.create_return(self._data(quantity=1, item_condition='DAMAGED'))
        self.assertFalse(return_request.items.get().is_restockable)

    def test_sale_must_be_completed(self):
        self.sale.status = 'PENDING'
        self.sale.save()
        with self.assertRaisesMessage(BusinessLogicException, "Returns can only be created for completed sales"):
            services.create_return(self._data())

    def test_outside_return_period(self):
        self.sale.sale_date = timezone.now() - timedelta(days=31)
        self.sale.save()
        with self.assertRaisesMessage(BusinessLogicException, "outside the allowed return period of 30 days"):
            services.create_return(self._data())

    @override_settings(RETURN_POLICY_DAYS=60)
    def test_return_period_from_settings(self):
        self.sale.sale_date = timezone.now() - timedelta(days=31)
        self.sale.save()
        services.create_return(self._data())

    def test_quantity_above_sold_rejected(self):
        with self.assertRaises(BusinessLogicException):
            services.create_return(self._data(quantity=4))

    def test_open_requests_count_against_quantity(self):
        services.create_return(self._data(quantity=2))
        with self.assertRaisesMessage(BusinessLogicException, "Invalid return quantity"):
            services.create_return(self._data(quantity=2))
        services.create_return(self._data(quantity=1))

    def test_rejected_requests_release_quantity(self):
        first = services.create_return(self._data(quantity=3))
        services.reject_return(first, 'manager', 'Used item')
        services.create_return(self._data(quantity=3))

    def test_item_from_other_sale_rejected(self):
        other_item = TestDataFactory.create_sale(customer=self.sale.customer).items.get()
        with self.assertRaises(BusinessLogicException):
            services.create_return(self._data(original_sale_item=other_item))

    def test_customer_must_match_sale(self):
        data = self._data()
        data['customer'] = TestDataFactory.create_customer()
        with self.assertRaisesMessage(BusinessLogicException, "Customer does not match the original sale"):
            services.create_return(data)

    def test_approve_and_reject_only_pending(self):
        return_request = services.create_return(self._data())
        services.approve_return(return_request, 'manager')
        self.assertEqual(return_request.status, 'APPROVED')
        self.assertEqual(return_request.processed_by, 'manager')
        with self.assertRaises(BusinessLogicException):
            services.reject_return(return_request, 'manager')
        with self.assertRaises(BusinessLogicException):
            services.update_return(return_request, {'notes': 'late edit'})
        with self.assertRaises(BusinessLogicException):
            services.delete_return(return_request)

    def test_reject_appends_reason(self):
        return_request = services.create_return(dict(self._data(), notes='Box opened'))
        services.reject_return(return_request, 'manager', 'Outside condition rules')
        self.assertEqual(return_request.status, 'REJECTED')
        self.assertEqual(return_request.notes, "Box opened\nRejection reason: Outside condition rules")

    def test_refund_requires_approval(self):
        return_request = services.create_return(self._data())
        with self.assertRaisesMessage(BusinessLogicException, "Return must be approved before processing refund"):
            services.process_refund(return_request, 'CASH')

    def test_refund_restocks_restockable_items(self):
        return_request = services.create_return(self._data(quantity=2))
        services.approve_return(return_request, 'manager')
        services.process_refund(return_request, 'STORE_CREDIT', 'SC-1')

        self.assertEqual(return_request.status, 'REFUNDED')
        self.assertIsNotNone(return_request.refund_date)
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock_quantity, 12)
        self.sale_item.refresh_from_db()
        self.assertEqual(self.sale_item.returned_quantity, 2)
        self.assertFalse(self.sale_item.is_returned)

    def test_refund_cannot_exceed_sold_quantity(self):
        return_request = services.create_return(self._data(quantity=3))
        services.approve_return(return_request, 'manager')
        self.sale_item.returned_quantity = 1
        self.sale_item.save()

        with self.assertRaisesMessage(BusinessLogicException, "more units than were sold"):
            services.process_refund(return_request, 'CASH')
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock_quantity, 10)
        self.assertEqual(Return.objects.get(pk=return_request.pk).status, 'APPROVED')

    def test_refund_skips_non_restockable_items(self):
        return_request = services.create_return(self._data(quantity=3, is_restockable=False))
        services.approve_return(return_request, 'manager')
        services.process_refund(return_request, 'CASH')
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock_quantity, 10)
        self.sale_item.refresh_from_db()
        self.assertTrue(self.sale_item.is_returned)


class ReturnAPITests(TestCase):
    """Test Return API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(price=Decimal('25.00'), stock_quantity=0)
        self.sale = TestDataFactory.create_sale(product=self.product, quantity=2, status='COMPLETED')
        self.sale_item = self.sale.items.get()

    def _create(self, quantity=1):
        return self.client.post('/api/v1/returns/', {
            'original_sale': self.sale.id,
            'reason': 'WRONG_ITEM',
            'items': [{'original_sale_item': self.sale_item.id, 'return_quantity': quantity}]
        }, format='json')

    def test_create_return(self):
        response = self._create(quantity=2)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['original_sale_number'], self.sale.sale_number)
        self.assertEqual(Decimal(response.data['total_refund_amount']), Decimal('50.00'))
        self.assertTrue(response.data['is_within_return_period'])
        self.assertEqual(len(response.data['items']), 1)

    def test_create_return_invalid_quantity(self):
        response = self._create(quantity=3)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Return.objects.count(), 0)

    def test_full_workflow(self):
        return_id = self._create().data['id']

        response = self.client.post(f'/api/v1/returns/{return_id}/refund/', {'refund_method': 'CASH'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(f'/api/v1/returns/{return_id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['processed_by'], self.user.username)

        response = self.client.post(f'/api/v1/returns/{return_id}/refund/', {'refund_method': 'CASH'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'REFUNDED')
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock_quantity, 1)
        self.assertTrue(AuditLog.objects.filter(action='refund', object_id=str(return_id)).exists())

    def test_reject(self):
        return_id = self._create().data['id']
        response = self.client.post(f'/api/v1/returns/{return_id}/reject/', {'rejection_reason': 'No receipt'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'REJECTED')
        self.assertIn('No receipt', response.data['notes'])

    def test_update_pending_return(self):
        return_id = self._create().data['id']
        response = self.client.patch(f'/api/v1/returns/{return_id}/', {'notes': 'Customer called'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['notes'], 'Customer called')

    def test_delete_pending_return(self):
        return_id = self._create().data['id']
        response = self.client.delete(f'/api/v1/returns/{return_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Return.objects.filter(pk=return_id).exists())

    def test_filter_by_status(self):
        TestDataFactory.create_return(self.sale, status='APPROVED')
        TestDataFactory.create_return(self.sale, status='PENDING')
        response = self.client.get('/api/v1/returns/?status=approved')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
