"""
Comprehensive test suite for Pricing module
Tests: Discount engine arithmetic, caps, minimums, eligibility, coupon validation and promotion API
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from salesmgmt.core.exceptions import BusinessLogicException
from salesmgmt.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from salesmgmt.pricing import services
from salesmgmt.pricing.models import Promotion
from salesmgmt.sales.models import SaleItem


def line(product, total):
    """Unsaved sale item carrying only what the engine reads"""
    return SaleItem(product=product, quantity=1, unit_price=total, total_price=total)


class PromotionModelTests(TestCase):
    """Test Promotion status properties"""

    def test_currently_active(self):
        promotion = TestDataFactory.create_promotion()
        self.assertTrue(promotion.is_currently_active)
        self.assertEqual(promotion.status_display, 'Active')

    def test_expired(self):
        now = timezone.now()
        promotion = TestDataFactory.create_promotion(start_date=now - timedelta(days=10), end_date=now - timedelta(days=1))
        self.assertFalse(promotion.is_currently_active)
        self.assertEqual(promotion.status_display, 'Expired')

    def test_scheduled(self):
        now = timezone.now()
        promotion = TestDataFactory.create_promotion(start_date=now + timedelta(days=1), end_date=now + timedelta(days=5))
        self.assertEqual(promotion.status_display, 'Scheduled')

    def test_usage_limit(self):
        promotion = TestDataFactory.create_promotion(usage_limit=5, usage_count=5)
        self.assertTrue(promotion.is_usage_limit_reached)
        self.assertFalse(promotion.is_currently_active)
        self.assertEqual(promotion.remaining_usage, 0)
        self.assertEqual(promotion.usage_percentage, 100.0)


class DiscountEngineTests(TestCase):
    """Test discount calculation rules"""

    def setUp(self):
        self.category = TestDataFactory.create_category()
        self.product = TestDataFactory.create_product(category=self.category)
        self.other = TestDataFactory.create_product()
        self.items = [line(self.product, Decimal('150.00')), line(self.other, Decimal('50.00'))]

    def test_percentage_discount(self):
        promotion = TestDataFactory.create_promotion(type='PERCENTAGE', discount_value=Decimal('10.00'))
        self.assertEqual(services.calculate_discount(promotion, self.items, Decimal('200.00')), Decimal('20.00'))

    def test_percentage_rounds_half_up(self):
        promotion = TestDataFactory.create_promotion(type='PERCENTAGE', discount_value=Decimal('12.50'))
        items = [line(self.product, Decimal('0.20'))]
        self.assertEqual(services.calculate_discount(promotion, items, Decimal('0.20')), Decimal('0.03'))

    def test_fixed_amount_discount(self):
        promotion = TestDataFactory.create_promotion(type='FIXED_AMOUNT', discount_value=Decimal('15.00'))
        self.assertEqual(services.calculate_discount(promotion, self.items, Decimal('200.00')), Decimal('15.00'))

    def test_fixed_amount_capped_by_applicable_amount(self):
        promotion = TestDataFactory.create_promotion(type='FIXED_AMOUNT', discount_value=Decimal('500.00'))
        self.assertEqual(services.calculate_discount(promotion, self.items, Decimal('200.00')), Decimal('200.00'))

    def test_maximum_discount_cap(self):
        promotion = TestDataFactory.create_promotion(
            type='PERCENTAGE', discount_value=Decimal('50.00'), maximum_discount_amount=Decimal('30.00')
        )
        self.assertEqual(services.calculate_discount(promotion, self.items, Decimal('200.00')), Decimal('30.00'))

    def test_minimum_order_amount(self):
        promotion = TestDataFactory.create_promotion(minimum_order_amount=Decimal('250.00'))
        self.assertEqual(services.calculate_discount(promotion, self.items, Decimal('200.00')), Decimal('0.00'))
        self.assertFalse(services.meets_minimum(promotion, Decimal('249.99')))
        self.assertTrue(services.meets_minimum(promotion, Decimal('250.00')))

    def test_free_shipping_has_no_monetary_discount(self):
        promotion = TestDataFactory.create_promotion(type='FREE_SHIPPING')
        self.assertEqual(services.calculate_discount(promotion, self.items, Decimal('200.00')), Decimal('0.00'))

    def test_inactive_promotion_gives_nothing(self):
        promotion = TestDataFactory.create_promotion(is_active=False)
        self.assertEqual(services.calculate_discount(promotion, self.items, Decimal('200.00')), Decimal('0.00'))

    def test_product_restriction_limits_applicable_amount(self):
        promotion = TestDataFactory.create_promotion(type='PERCENTAGE', discount_value=Decimal('10.00'))
        promotion.applicable_products.add(self.other)
        self.assertEqual(services.applicable_amount(promotion, self.items), Decimal('50.00'))
        self.assertEqual(services.calculate_discount(promotion, self.items, Decimal('200.00')), Decimal('5.00'))

    def test_category_restriction(self):
        promotion = TestDataFactory.create_promotion(type='PERCENTAGE', discount_value=Decimal('10.00'))
        promotion.applicable_categories.add(self.category)
        self.assertTrue(services.applies_to_items(promotion, self.items))
        self.assertFalse(services.applies_to_items(promotion, [line(self.other, Decimal('50.00'))]))
        self.assertEqual(services.calculate_discount(promotion, self.items, Decimal('200.00')), Decimal('15.00'))

    def test_order_discount_ignores_restrictions(self):
        promotion = TestDataFactory.create_promotion(type='PERCENTAGE', discount_value=Decimal('10.00'))
        promotion.applicable_products.add(self.other)
        self.assertEqual(services.calculate_order_discount(promotion, Decimal('200.00')), Decimal('20.00'))


class EligibilityTests(TestCase):
    """Test customer eligibility rules"""

    def test_eligibility_matrix(self):
        regular = TestDataFactory.create_customer()
        vip = TestDataFactory.create_customer(customer_type='VIP')
        premium = TestDataFactory.create_customer(customer_type='PREMIUM')
        returning = TestDataFactory.create_customer(total_purchases=Decimal('10.00'))

        cases = {
            'ALL': {regular: True, vip: True},
            'VIP_ONLY': {regular: False, vip: True, premium: False},
            'PREMIUM_ONLY': {regular: False, vip: True, premium: True},
            'NEW_CUSTOMERS': {regular: True, returning: False},
            'RETURNING_CUSTOMERS': {regular: False, returning: True},
        }
        for eligibility, expected in cases.items():
            promotion = Promotion(customer_eligibility=eligibility)
            for customer, eligible in expected.items():
                self.assertEqual(services.is_customer_eligible(promotion, customer), eligible,
                                 f"{eligibility} for {customer.customer_type}")

    def test_no_customer_only_eligible_for_all(self):
        self.assertTrue(services.is_customer_eligible(Promotion(customer_eligibility='ALL'), None))
        self.assertFalse(services.is_customer_eligible(Promotion(customer_eligibility='VIP_ONLY'), None))


class CouponTests(TestCase):
    """Test coupon validation"""

    def test_valid_coupon_case_insensitive(self):
        promotion = TestDataFactory.create_promotion(coupon_code='SAVE10')
        self.assertEqual(services.validate_coupon(' save10 '), promotion)

    def test_unknown_coupon(self):
        with self.assertRaisesMessage(BusinessLogicException, "Invalid coupon code: NOPE"):
            services.validate_coupon('NOPE')

    def test_inactive_coupon(self):
        TestDataFactory.create_promotion(coupon_code='OFF', is_active=False)
        with self.assertRaisesMessage(BusinessLogicException, "Coupon code is not currently active"):
            services.validate_coupon('OFF')

    def test_usage_limit_checked_first(self):
        TestDataFactory.create_promotion(coupon_code='USED', usage_limit=1, usage_count=1, is_active=False)
        with self.assertRaisesMessage(BusinessLogicException, "Coupon usage limit has been reached"):
            services.validate_coupon('USED')

    def test_usage_counter(self):
        promotion = TestDataFactory.create_promotion()
        services.increment_usage(promotion)
        self.assertEqual(promotion.usage_count, 1)
        services.decrement_usage(promotion)
        services.decrement_usage(promotion)
        self.assertEqual(promotion.usage_count, 0)


class PromotionAPITests(TestCase):
    """Test Promotion API endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        now = timezone.now()
        self.payload = {
            'name': 'Summer Sale',
            'type': 'PERCENTAGE',
            'discount_value': '15.00',
            'start_date': (now - timedelta(days=1)).isoformat(),
            'end_date': (now + timedelta(days=10)).isoformat(),
        }

    def test_create_generates_coupon_code(self):
        response = self.client.post('/api/v1/promotions/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['coupon_code'].startswith('PROMO'))
        self.assertTrue(response.data['is_currently_active'])

    def test_create_auto_apply_without_coupon(self):
        self.payload['auto_apply'] = True
        response = self.client.post('/api/v1/promotions/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['coupon_code'])

    def test_percentage_over_100_rejected(self):
        self.payload['discount_value'] = '150.00'
        response = self.client.post('/api/v1/promotions/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_end_before_start_rejected(self):
        self.payload['start_date'], self.payload['end_date'] = self.payload['end_date'], self.payload['start_date']
        response = self.client.post('/api/v1/promotions/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_validate_coupon_endpoint(self):
        TestDataFactory.create_promotion(coupon_code='WELCOME')
        response = self.client.get('/api/v1/promotions/validate-coupon/?code=welcome')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get('/api/v1/promotions/validate-coupon/?code=missing')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error_code'], 'INVALID_COUPON')

    def test_calculate_discount_endpoint(self):
        promotion = TestDataFactory.create_promotion(
            type='PERCENTAGE', discount_value=Decimal('20.00'), maximum_discount_amount=Decimal('25.00')
        )
        response = self.client.post(f'/api/v1/promotions/{promotion.id}/calculate-discount/',
                                    {'order_amount': '200.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['discount_amount'], Decimal('25.00'))
        self.assertEqual(response.data['final_amount'], Decimal('175.00'))

    def test_delete_active_promotion_rejected(self):
        promotion = TestDataFactory.create_promotion()
        response = self.client.delete(f'/api/v1/promotions/{promotion.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        self.client.post(f'/api/v1/promotions/{promotion.id}/deactivate/')
        response = self.client.delete(f'/api/v1/promotions/{promotion.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_promotions_for_product(self):
        category = TestDataFactory.create_category()
        product = TestDataFactory.create_product(category=category)
        promotion = TestDataFactory.create_promotion()
        promotion.applicable_categories.add(category)
        TestDataFactory.create_promotion()
        response = self.client.get(f'/api/v1/promotions/for-product/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['id'] for p in response.data], [promotion.id])
