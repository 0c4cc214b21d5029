"""
Comprehensive test suite for Sales module
Tests: Sale creation with stock reduction, totals formula, promotions, completion, cancellation and item returns
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from salesmgmt.catalog.models import Product
from salesmgmt.core.exceptions import BusinessLogicException, DataIntegrityException
from salesmgmt.core.models import AuditLog
from salesmgmt.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from salesmgmt.parties.models import Customer
from salesmgmt.pricing.models import Promotion
from salesmgmt.returns import services as return_services
from salesmgmt.sales import services
from salesmgmt.sales.models import Sale, SaleItem


class SaleTotalsTests(TestCase):
    """Test the sale totals formula"""

    def setUp(self):
        self.product = TestDataFactory.create_product(price=Decimal('100.00'))

    def _items(self, quantity=2):
        item = SaleItem(product=self.product, quantity=quantity, unit_price=Decimal('100.00'))
        return [services.calculate_item_totals(item)]

    def test_item_totals(self):
        item = SaleItem(product=self.product, quantity=3, unit_price=Decimal('10.00'),
                        discount_percentage=Decimal('10.00'), tax_percentage=Decimal('10.00'))
        services.calculate_item_totals(item)
        self.assertEqual(item.subtotal, Decimal('30.00'))
        self.assertEqual(item.discount_amount, Decimal('3.00'))
        self.assertEqual(item.tax_amount, Decimal('2.70'))
        self.assertEqual(item.total_price, Decimal('29.70'))

    def test_given_tax_amount_kept_without_percentage(self):
        sale = Sale(customer=TestDataFactory.create_customer(), tax_amount=Decimal('18.00'),
                    shipping_cost=Decimal('10.00'))
        services.recalculate_totals(sale, self._items())
        self.assertEqual(sale.subtotal, Decimal('200.00'))
        self.assertEqual(sale.final_total, Decimal('228.00'))
        self.assertEqual(sale.total_amount, sale.final_total)

    def test_tax_percentage_applied_after_discount(self):
        sale = Sale(customer=TestDataFactory.create_customer(), discount_amount=Decimal('50.00'),
                    tax_percentage=Decimal('10.00'))
        services.recalculate_totals(sale, self._items())
        self.assertEqual(sale.tax_amount, Decimal('15.00'))
        self.assertEqual(sale.total_amount, Decimal('165.00'))

    def test_discount_percentage_sets_manual_discount(self):
        sale = Sale(customer=TestDataFactory.create_customer(), discount_percentage=Decimal('25.00'))
        services.recalculate_totals(sale, self._items())
        self.assertEqual(sale.discount_amount, Decimal('50.00'))
        self.assertEqual(sale.total_amount, Decimal('150.00'))

    def test_total_never_negative(self):
        sale = Sale(customer=TestDataFactory.create_customer(), discount_amount=Decimal('500.00'))
        services.recalculate_totals(sale, self._items())
        self.assertEqual(sale.total_amount, Decimal('0.00'))

    def test_validate_sale_data(self):
        with self.assertRaisesMessage(BusinessLogicException, "Sale must contain at least one item"):
            services.validate_sale_data({'items': []})
        with self.assertRaisesMessage(BusinessLogicException, "Item quantity must be greater than zero"):
            services.validate_sale_data({'items': [{'product': self.product, 'quantity': 0}]})
        with self.assertRaises(BusinessLogicException):
            services.validate_sale_data({'items': [{'product': self.product, 'quantity': 1}],
                                         'discount_percentage': Decimal('101')})
        services.validate_sale_data({'notes': 'only notes'}, creating=False)


class SaleLifecycleTests(TestCase):
    """Test sale creation, completion and cancellation"""

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.product = TestDataFactory.create_product(price=Decimal('100.00'), stock_quantity=10)

    def _create(self, quantity=2, **extra):
        data = {'customer': self.customer, 'items': [{'product': self.product, 'quantity': quantity}]}
        data.update(extra)
        return services.create_sale(data)

    def _stock(self):
        return Product.objects.get(pk=self.product.pk).stock_quantity

    def test_create_reduces_stock(self):
        sale = self._create(quantity=3)
        self.assertEqual(sale.status, 'PENDING')
        self.assertEqual(sale.total_amount, Decimal('300.00'))
        self.assertEqual(self._stock(), 7)
        self.assertEqual(sale.items.count(), 1)

    def test_promotion_example_total(self):
        TestDataFactory.create_promotion(coupon_code='TENOFF', discount_value=Decimal('10.00'))
        sale = self._create(quantity=2, coupon_code='tenoff', tax_amount=Decimal('18.00'),
                            shipping_cost=Decimal('10.00'))
        self.assertEqual(sale.subtotal, Decimal('200.00'))
        self.assertEqual(sale.promotion_discount_amount, Decimal('20.00'))
        self.assertEqual(sale.total_amount, Decimal('208.00'))
        self.assertEqual(sale.coupon_code, 'TENOFF')
        self.assertEqual(Promotion.objects.get(coupon_code='TENOFF').usage_count, 1)

    def test_auto_apply_promotion(self):
        promotion = TestDataFactory.create_promotion(auto_apply=True, type='FIXED_AMOUNT',
                                                     discount_value=Decimal('25.00'))
        sale = self._create()
        applied = sale.applied_promotions.get()
        self.assertEqual(applied.promotion, promotion)
        self.assertTrue(applied.is_auto_applied)
        self.assertEqual(sale.total_amount, Decimal('175.00'))

    def test_non_stackable_promotions_not_combined(self):
        TestDataFactory.create_promotion(auto_apply=True, discount_value=Decimal('10.00'))
        TestDataFactory.create_promotion(auto_apply=True, discount_value=Decimal('20.00'))
        sale = self._create()
        self.assertEqual(sale.applied_promotions.count(), 1)
        self.assertEqual(sale.promotion_discount_amount, Decimal('40.00'))

    def test_insufficient_loyalty_points(self):
        with self.assertRaisesMessage(BusinessLogicException, "Customer does not have enough loyalty points"):
            self._create(loyalty_points_used=5)
        self.assertEqual(self._stock(), 10)

    def test_loyalty_points_rechecked_on_completion(self):
        self.customer.loyalty_points = 100
        self.customer.save()
        first = self._create(quantity=1, loyalty_points_used=100)
        second = self._create(quantity=1, loyalty_points_used=100)

        services.complete_sale(first)
        self.assertEqual(Customer.objects.get(pk=self.customer.pk).loyalty_points, 10)

        with self.assertRaisesMessage(BusinessLogicException, "Customer does not have enough loyalty points"):
            services.complete_sale(second)
        self.assertEqual(Sale.objects.get(pk=second.pk).status, 'PENDING')
        self.assertEqual(Customer.objects.get(pk=self.customer.pk).loyalty_points, 10)

    def test_complete_awards_loyalty_points(self):
        sale = self._create(quantity=2, shipping_cost=Decimal('5.00'))
        services.complete_sale(sale)
        self.assertEqual(sale.loyalty_points_earned, 20)

        customer = Customer.objects.get(pk=self.customer.pk)
        self.assertEqual(customer.loyalty_points, 20)
        self.assertEqual(customer.total_purchases, Decimal('205.00'))
        self.assertIsNotNone(customer.last_purchase_date)
        self.assertEqual(Product.objects.get(pk=self.product.pk).total_sold, 2)

        with self.assertRaisesMessage(BusinessLogicException, "Sale is already completed"):
            services.complete_sale(sale)
        with self.assertRaisesMessage(BusinessLogicException, "Cannot cancel completed sale"):
            services.cancel_sale(sale)

    def test_cancel_restores_stock_and_usage(self):
        promotion = TestDataFactory.create_promotion(coupon_code='BACK', discount_value=Decimal('10.00'))
        sale = self._create(quantity=4, coupon_code='BACK')
        self.assertEqual(self._stock(), 6)

        services.cancel_sale(sale)
        self.assertEqual(sale.status, 'CANCELLED')
        self.assertEqual(self._stock(), 10)
        promotion.refresh_from_db()
        self.assertEqual(promotion.usage_count, 0)

        with self.assertRaisesMessage(BusinessLogicException, "Cannot complete cancelled sale"):
            services.complete_sale(sale)

    def test_update_status(self):
        sale = self._create()
        services.update_sale_status(sale, 'COMPLETED')
        self.assertEqual(Sale.objects.get(pk=sale.pk).status, 'COMPLETED')
        with self.assertRaises(BusinessLogicException):
            services.update_sale_status(sale, 'PENDING')

    def test_delete_pending_sale_cancels(self):
        sale = self._create(quantity=5)
        services.delete_sale(sale)
        self.assertEqual(Sale.objects.get(pk=sale.pk).status, 'CANCELLED')
        self.assertEqual(self._stock(), 10)

    def test_delete_completed_sale_rejected(self):
        sale = TestDataFactory.create_sale(customer=self.customer, status='COMPLETED')
        with self.assertRaisesMessage(BusinessLogicException, "Cannot delete completed sales"):
            services.delete_sale(sale)

    def test_delete_sale_with_returns_rejected(self):
        sale = TestDataFactory.create_sale(customer=self.customer, status='COMPLETED')
        TestDataFactory.create_return(sale)
        sale.status = 'PENDING'
        sale.save()
        with self.assertRaises(DataIntegrityException):
            services.delete_sale(sale)

    def test_update_items_moves_stock(self):
        sale = self._create(quantity=2)
        services.update_sale(sale, {'items': [{'product': self.product, 'quantity': 5}]})
        self.assertEqual(self._stock(), 5)
        self.assertEqual(sale.total_amount, Decimal('500.00'))

    def test_item_return(self):
        sale = self._create(quantity=3)
        item = sale.items.get()
        services.process_item_return(sale, item.id, 2, 'Damaged')
        item.refresh_from_db()
        self.assertEqual(item.returned_quantity, 2)
        self.assertFalse(item.is_returned)
        self.assertEqual(self._stock(), 9)

        with self.assertRaisesMessage(BusinessLogicException, "Return quantity exceeds available quantity for return"):
            services.process_item_return(sale, item.id, 2)

    def test_item_return_respects_open_return_requests(self):
        sale = self._create(quantity=3)
        services.complete_sale(sale)
        item = sale.items.get()
        return_request = return_services.create_return({
            'original_sale': sale,
            'reason': 'DEFECTIVE',
            'items': [{'original_sale_item': item, 'return_quantity': 3}],
        })

        with self.assertRaisesMessage(BusinessLogicException, "Return quantity exceeds available quantity for return"):
            services.process_item_return(sale, item.id, 3)

        return_services.approve_return(return_request, 'manager')
        return_services.process_refund(return_request, 'CASH')
        item.refresh_from_db()
        self.assertEqual(item.returned_quantity, 3)
        self.assertEqual(self._stock(), 10)


class SaleAPITests(TestCase):
    """Test Sale API endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.customer = TestDataFactory.create_customer()
        self.product = TestDataFactory.create_product(price=Decimal('100.00'), stock_quantity=3)

    def _create(self, quantity=2, **extra):
        data = {'customer': self.customer.id, 'items': [{'product': self.product.id, 'quantity': quantity}]}
        data.update(extra)
        return self.client.post('/api/v1/sales/', data, format='json')

    def test_create_sale(self):
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['sale_number'])
        self.assertEqual(response.data['status'], 'PENDING')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('200.00'))
        self.assertEqual(response.data['items'][0]['product_name'], self.product.name)
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Sale').exists())

    def test_insufficient_stock_conflict(self):
        response = self._create(quantity=5)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error_code'], 'INSUFFICIENT_STOCK')
        self.assertEqual(response.data['details']['shortfall'], 2)
        self.assertEqual(Sale.objects.count(), 0)
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock_quantity, 3)

    def test_create_without_items(self):
        response = self.client.post('/api/v1/sales/', {'customer': self.customer.id, 'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_complete_and_cancel(self):
        sale_id = self._create().data['id']
        response = self.client.post(f'/api/v1/sales/{sale_id}/complete/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['loyalty_points_earned'], 20)

        response = self.client.post(f'/api/v1/sales/{sale_id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_apply_and_remove_promotion(self):
        promotion = TestDataFactory.create_promotion(coupon_code='SPRING', discount_value=Decimal('10.00'))
        sale_id = self._create().data['id']

        response = self.client.post(f'/api/v1/sales/{sale_id}/promotions/', {'coupon_code': 'spring'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('180.00'))
        self.assertEqual(response.data['promotion_count'], 1)

        response = self.client.post(f'/api/v1/sales/{sale_id}/promotions/', {'promotion_id': promotion.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/v1/sales/{sale_id}/promotions/?promotion_id={promotion.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('200.00'))
        self.assertIsNone(response.data['coupon_code'])

    def test_ineligible_promotion_rejected(self):
        promotion = TestDataFactory.create_promotion(customer_eligibility='VIP_ONLY')
        sale_id = self._create().data['id']
        response = self.client.post(f'/api/v1/sales/{sale_id}/promotions/', {'promotion_id': promotion.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_is_soft_cancel(self):
        sale_id = self._create().data['id']
        response = self.client.delete(f'/api/v1/sales/{sale_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(Sale.objects.get(pk=sale_id).status, 'CANCELLED')

    def test_item_return_endpoint(self):
        data = self._create().data
        item_id = data['items'][0]['id']
        response = self.client.post(f"/api/v1/sales/{data['id']}/items/{item_id}/return/",
                                    {'return_quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'][0]['returned_quantity'], 1)
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock_quantity, 2)

    def test_list_filters_by_status(self):
        TestDataFactory.create_sale(customer=self.customer, status='COMPLETED')
        TestDataFactory.create_sale(customer=self.customer, status='PENDING')
        response = self.client.get('/api/v1/sales/?status=completed')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_analytics(self):
        TestDataFactory.create_sale(customer=self.customer, product=self.product, quantity=1, status='COMPLETED')
        response = self.client.get('/api/v1/sales/analytics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalSales'], 1)
        self.assertEqual(response.data['totalRevenue'], Decimal('100.00'))
