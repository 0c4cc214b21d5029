"""
Comprehensive test suite for Purchasing module
Tests: Purchase order creation, totals, status transitions, approval, receiving and stock updates
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from salesmgmt.catalog.models import Product
from salesmgmt.core.exceptions import BusinessLogicException
from salesmgmt.core.models import AuditLog
from salesmgmt.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from salesmgmt.purchasing import services
from salesmgmt.purchasing.models import PurchaseOrder, PurchaseOrderItem


class PurchaseOrderItemTotalsTests(TestCase):
    """Test line total calculation"""

    def test_totals_with_discount_and_tax(self):
        product = TestDataFactory.create_product()
        item = PurchaseOrderItem(
            product=product,
            quantity=10,
            unit_cost=Decimal('20.00'),
            discount_percentage=Decimal('10.00'),
            tax_percentage=Decimal('5.00'),
        )
        services.calculate_item_totals(item)
        self.assertEqual(item.subtotal, Decimal('200.00'))
        self.assertEqual(item.discount_amount, Decimal('20.00'))
        self.assertEqual(item.tax_amount, Decimal('9.00'))
        self.assertEqual(item.total_price, Decimal('189.00'))

    def test_status_transitions(self):
        services.validate_status_transition('PENDING', 'APPROVED')
        services.validate_status_transition('ORDERED', 'RECEIVED')
        with self.assertRaisesMessage(BusinessLogicException, "Invalid status transition from RECEIVED to PENDING"):
            services.validate_status_transition('RECEIVED', 'PENDING')
        with self.assertRaises(BusinessLogicException):
            services.validate_status_transition('PENDING', 'RECEIVED')


class PurchaseOrderAPITests(TestCase):
    """Test Purchase Order API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.supplier = TestDataFactory.create_supplier(payment_terms='NET 30')
        self.product = TestDataFactory.create_product(stock_quantity=5)

    def _create_order(self, quantity=10, unit_cost='25.00', **extra):
        data = {
            'supplier': self.supplier.id,
            'items': [{'product': self.product.id, 'quantity': quantity, 'unit_cost': unit_cost}],
        }
        data.update(extra)
        return self.client.post('/api/v1/purchase-orders/', data, format='json')

    def test_create_purchase_order(self):
        response = self._create_order()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['order_number'].startswith('PO-'))
        self.assertEqual(response.data['status'], 'PENDING')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('250.00'))
        self.assertEqual(response.data['payment_terms'], 'NET 30')
        self.assertEqual(len(response.data['items']), 1)

        self.supplier.refresh_from_db()
        self.assertEqual(self.supplier.total_orders, 1)
        self.assertEqual(self.supplier.total_amount, Decimal('250.00'))

    def test_create_without_items(self):
        response = self.client.post('/api/v1/purchase-orders/', {'supplier': self.supplier.id, 'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_for_inactive_supplier(self):
        self.supplier.status = 'INACTIVE'
        self.supplier.save()
        response = self._create_order()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('inactive supplier', response.data['error'])

    def test_total_mismatch_rejected(self):
        response = self._create_order(total_amount='999.00')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(PurchaseOrder.objects.count(), 0)

    def test_update_only_while_pending(self):
        order = TestDataFactory.create_purchase_order(supplier=self.supplier, status='APPROVED')
        response = self.client.patch(f'/api/v1/purchase-orders/{order.id}/', {'notes': 'rush'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_approve(self):
        order_id = self._create_order().data['id']
        response = self.client.post(f'/api/v1/purchase-orders/{order_id}/approve/', {'approval_notes': 'ok'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'APPROVED')
        self.assertEqual(response.data['approved_by_username'], self.user.username)
        self.assertTrue(AuditLog.objects.filter(action='po_approve', object_id=str(order_id)).exists())

        response = self.client.post(f'/api/v1/purchase-orders/{order_id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_change_invalid_transition(self):
        order = TestDataFactory.create_purchase_order(supplier=self.supplier)
        response = self.client.put(f'/api/v1/purchase-orders/{order.id}/status/', {'status': 'RECEIVED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_change_to_received_does_not_move_stock(self):
        order = TestDataFactory.create_purchase_order(supplier=self.supplier, product=self.product, status='ORDERED')
        response = self.client.put(f'/api/v1/purchase-orders/{order.id}/status/', {'status': 'RECEIVED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['actual_delivery_date'])
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock_quantity, 5)

    def test_receive_all_items(self):
        order = TestDataFactory.create_purchase_order(supplier=self.supplier, product=self.product, quantity=10, status='ORDERED')
        response = self.client.post(f'/api/v1/purchase-orders/{order.id}/receive/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'RECEIVED')
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock_quantity, 15)

    def test_partial_receive(self):
        order = TestDataFactory.create_purchase_order(supplier=self.supplier, product=self.product, quantity=10, status='ORDERED')
        item = order.items.first()
        response = self.client.post(f'/api/v1/purchase-orders/{order.id}/receive/', {
            'items': [{'item_id': item.id, 'received_quantity': 4}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'PARTIALLY_RECEIVED')
        self.assertEqual(response.data['items'][0]['pending_quantity'], 6)
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock_quantity, 9)

        response = self.client.post(f'/api/v1/purchase-orders/{order.id}/receive/', {
            'items': [{'item_id': item.id, 'received_quantity': 7}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_receive_requires_ordered_status(self):
        order = TestDataFactory.create_purchase_order(supplier=self.supplier, status='PENDING')
        response = self.client.post(f'/api/v1/purchase-orders/{order.id}/receive/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_pending_order(self):
        order = TestDataFactory.create_purchase_order(supplier=self.supplier)
        response = self.client.delete(f'/api/v1/purchase-orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(PurchaseOrder.objects.filter(pk=order.pk).exists())

    def test_filter_by_status(self):
        TestDataFactory.create_purchase_order(supplier=self.supplier, status='PENDING')
        TestDataFactory.create_purchase_order(supplier=self.supplier, status='RECEIVED')
        response = self.client.get('/api/v1/purchase-orders/?status=received')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
