"""
Comprehensive test suite for Catalog module
Tests: Category and product CRUD, stock movements, low stock queries, statistics and deletion guards
"""
from datetime import timedelta
from decimal import Decimal

from django.db import transaction
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from salesmgmt.catalog import services
from salesmgmt.catalog.models import Category, Product
from salesmgmt.core.exceptions import BusinessLogicException, DataIntegrityException, InsufficientStockException
from salesmgmt.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class ProductModelTests(TestCase):
    """Test Product computed properties"""

    def test_stock_flags(self):
        product = TestDataFactory.create_product(stock_quantity=3, min_stock_level=5, reorder_point=10)
        self.assertTrue(product.is_low_stock)
        self.assertFalse(product.is_out_of_stock)
        self.assertTrue(product.needs_reorder)

    def test_profit_margin(self):
        product = TestDataFactory.create_product(price=Decimal('200.00'), cost_price=Decimal('150.00'))
        self.assertEqual(product.profit_margin, Decimal('25.00'))

    def test_profit_margin_without_cost(self):
        product = TestDataFactory.create_product()
        self.assertIsNone(product.profit_margin)

    def test_is_expired(self):
        product = TestDataFactory.create_product(expiry_date=timezone.localdate() - timedelta(days=1))
        self.assertTrue(product.is_expired)


class StockServiceTests(TestCase):
    """Test stock movements"""

    def setUp(self):
        self.product = TestDataFactory.create_product(name='Widget', stock_quantity=5)

    def test_reduce_stock(self):
        with transaction.atomic():
            services.reduce_stock(self.product.id, 3)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 2)

    def test_reduce_stock_below_zero_rejected(self):
        with self.assertRaises(InsufficientStockException) as ctx:
            with transaction.atomic():
                services.reduce_stock(self.product.id, 6)
        self.assertEqual(ctx.exception.details['shortfall'], 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 5)

    def test_increase_stock(self):
        with transaction.atomic():
            services.increase_stock(self.product.id, 4)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 9)

    def test_restock_requires_positive_quantity(self):
        with self.assertRaises(BusinessLogicException):
            services.restock_product(self.product, 0)

    def test_restock_sets_restocked_date(self):
        product = services.restock_product(self.product, 10)
        self.assertEqual(product.stock_quantity, 15)
        self.assertIsNotNone(product.last_restocked_date)

    def test_update_stock_negative_rejected(self):
        with self.assertRaises(BusinessLogicException):
            services.update_stock(self.product, -1)

    def test_low_stock_uses_threshold(self):
        TestDataFactory.create_product(stock_quantity=50)
        self.assertEqual(list(services.low_stock_products(10)), [self.product])

    def test_negative_stock_counted_as_out_of_stock(self):
        Product.objects.filter(pk=self.product.pk).update(stock_quantity=-2)
        TestDataFactory.create_product(stock_quantity=0)
        self.assertEqual(services.product_statistics()['outOfStockCount'], 2)
        self.assertEqual(services.inventory_summary()['out_of_stock_products'], 2)
        self.assertEqual(services.out_of_stock_products().count(), 2)


class ProductValidationTests(TestCase):
    """Test product validation rules"""

    def test_duplicate_sku(self):
        TestDataFactory.create_product(sku='SKU-1')
        with self.assertRaisesMessage(BusinessLogicException, "SKU already exists: SKU-1"):
            services.validate_product({'sku': 'SKU-1', 'price': Decimal('10.00')})

    def test_price_must_be_positive(self):
        with self.assertRaisesMessage(BusinessLogicException, "Product price must be greater than zero"):
            services.validate_product({'price': Decimal('0.00')})

    def test_blank_identifiers_normalized(self):
        data = services.normalize_product_data({'sku': '  ', 'barcode': ' 123 '})
        self.assertIsNone(data['sku'])
        self.assertEqual(data['barcode'], '123')

    def test_delete_product_with_sales(self):
        product = TestDataFactory.create_product()
        TestDataFactory.create_sale(product=product)
        with self.assertRaises(DataIntegrityException):
            services.delete_product(product)

    def test_delete_category_with_products(self):
        category = TestDataFactory.create_category()
        TestDataFactory.create_product(category=category)
        with self.assertRaises(DataIntegrityException):
            services.delete_category(category)


class CategoryAPITests(TestCase):
    """Test Category API endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_create_category(self):
        inventory = TestDataFactory.create_inventory()
        response = self.client.post('/api/v1/categories/', {
            'name': 'Electronics',
            'inventory': inventory.id
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['inventory_name'], inventory.name)
        self.assertEqual(response.data['product_count'], 0)

    def test_create_duplicate_category(self):
        TestDataFactory.create_category(name='Electronics')
        response = self.client.post('/api/v1/categories/', {'name': 'electronics'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_active_categories(self):
        TestDataFactory.create_category(status='ACTIVE')
        TestDataFactory.create_category(status='INACTIVE')
        response = self.client.get('/api/v1/categories/active/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_delete_category_in_use(self):
        category = TestDataFactory.create_category()
        TestDataFactory.create_product(category=category)
        response = self.client.delete(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Category.objects.filter(pk=category.pk).exists())


class ProductAPITests(TestCase):
    """Test Product API endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.category = TestDataFactory.create_category(name='Tools')

    def test_create_product(self):
        response = self.client.post('/api/v1/products/', {
            'name': 'Hammer',
            'price': '25.00',
            'stock_quantity': 40,
            'category': self.category.id,
            'sku': 'HAM-001'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['category_name'], 'Tools')
        self.assertFalse(response.data['is_low_stock'])

    def test_create_product_invalid_price(self):
        response = self.client.post('/api/v1/products/', {
            'name': 'Hammer',
            'price': '0.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_products(self):
        TestDataFactory.create_product(name='Cheap Saw', price=Decimal('5.00'), category=self.category)
        TestDataFactory.create_product(name='Premium Saw', price=Decimal('500.00'))
        response = self.client.get(f'/api/v1/products/?category={self.category.id}')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/products/?search=saw&min_price=100')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Premium Saw')

    def test_restock_product(self):
        product = TestDataFactory.create_product(stock_quantity=2)
        response = self.client.post(f'/api/v1/products/{product.id}/restock/', {'quantity': 8}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock_quantity'], 10)

    def test_set_stock(self):
        product = TestDataFactory.create_product(stock_quantity=2)
        response = self.client.put(f'/api/v1/products/{product.id}/stock/', {'quantity': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_out_of_stock'])

    def test_by_sku(self):
        TestDataFactory.create_product(sku='FIND-ME')
        response = self.client.get('/api/v1/products/by-sku/?sku=FIND-ME')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get('/api/v1/products/by-sku/?sku=MISSING')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.get('/api/v1/products/by-sku/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_statistics(self):
        TestDataFactory.create_product(price=Decimal('10.00'), stock_quantity=0)
        TestDataFactory.create_product(price=Decimal('30.00'), stock_quantity=100)
        response = self.client.get('/api/v1/products/statistics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalProducts'], 2)
        self.assertEqual(response.data['outOfStockCount'], 1)
        self.assertEqual(response.data['totalValue'], Decimal('3000.00'))
        self.assertEqual(response.data['averagePrice'], Decimal('20.00'))

    def test_recent_products_invalid_days(self):
        response = self.client.get('/api/v1/products/recent/?days=0')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_product(self):
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())
