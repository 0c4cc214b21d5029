"""
Comprehensive test suite for Inventory module
Tests: Warehouse CRUD, uniqueness and dimension rules, main warehouse constraint, deletion guards
"""
from decimal import Decimal
from datetime import time

from django.test import TestCase
from rest_framework import status

from salesmgmt.core.exceptions import BusinessLogicException
from salesmgmt.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from salesmgmt.inventory import services
from salesmgmt.inventory.models import Inventory


class InventoryModelTests(TestCase):
    """Test Inventory computed properties"""

    def test_volume_and_floor_area(self):
        inventory = TestDataFactory.create_inventory(
            length=Decimal('10.00'), width=Decimal('5.00'), height=Decimal('3.00')
        )
        self.assertTrue(inventory.has_dimensions)
        self.assertEqual(inventory.volume, Decimal('150.0000'))
        self.assertEqual(inventory.floor_area, Decimal('50.0000'))

    def test_volume_without_dimensions(self):
        inventory = TestDataFactory.create_inventory()
        self.assertFalse(inventory.has_dimensions)
        self.assertIsNone(inventory.volume)

    def test_work_duration_and_utilization(self):
        inventory = TestDataFactory.create_inventory(
            start_work_time=time(8, 0), end_work_time=time(17, 30), capacity=200, current_stock_count=50
        )
        self.assertEqual(inventory.work_duration_minutes, 570)
        self.assertEqual(inventory.capacity_utilization, 25.0)


class InventoryServiceTests(TestCase):
    """Test inventory validation rules"""

    def test_duplicate_name_rejected_case_insensitive(self):
        TestDataFactory.create_inventory(name='Central')
        with self.assertRaisesMessage(BusinessLogicException, "Inventory with name 'central' already exists"):
            services.validate_inventory({'name': 'central', 'location': 'Elsewhere'})

    def test_location_required(self):
        with self.assertRaisesMessage(BusinessLogicException, "Inventory location is required"):
            services.validate_inventory({'name': 'North', 'location': '  '})

    def test_non_positive_dimension_rejected(self):
        with self.assertRaisesMessage(BusinessLogicException, "Inventory width must be greater than 0"):
            services.validate_inventory({'name': 'North', 'location': 'A', 'width': Decimal('0')})

    def test_work_time_order(self):
        with self.assertRaises(BusinessLogicException):
            services.validate_inventory({
                'name': 'North', 'location': 'A',
                'start_work_time': time(18, 0), 'end_work_time': time(9, 0),
            })

    def test_single_main_warehouse(self):
        TestDataFactory.create_inventory(is_main_warehouse=True)
        with self.assertRaises(BusinessLogicException):
            services.validate_inventory({'name': 'Second', 'location': 'B', 'is_main_warehouse': True})

    def test_main_warehouse_update_of_itself_allowed(self):
        main = TestDataFactory.create_inventory(is_main_warehouse=True)
        services.validate_inventory({'is_main_warehouse': True}, instance=main)

    def test_blank_warehouse_code_normalized(self):
        data = services.normalize_inventory_data({'name': ' North ', 'location': 'A', 'warehouse_code': '  '})
        self.assertEqual(data['name'], 'North')
        self.assertIsNone(data['warehouse_code'])

    def test_empty_inventories(self):
        empty = TestDataFactory.create_inventory()
        used = TestDataFactory.create_inventory()
        TestDataFactory.create_category(inventory=used)
        self.assertEqual(list(services.empty_inventories()), [empty])


class InventoryAPITests(TestCase):
    """Test Inventory API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_inventory(self):
        response = self.client.post('/api/v1/inventories/', {
            'name': 'Central Warehouse',
            'location': 'Industrial Zone',
            'warehouse_code': 'WH-001',
            'capacity': 1000
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['category_count'], 0)
        self.assertEqual(response.data['status'], 'ACTIVE')

    def test_create_duplicate_name(self):
        TestDataFactory.create_inventory(name='Central Warehouse')
        response = self.client.post('/api/v1/inventories/', {
            'name': 'Central Warehouse',
            'location': 'Industrial Zone'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('already exists', response.data['error'])

    def test_list_and_search(self):
        TestDataFactory.create_inventory(name='North Depot')
        TestDataFactory.create_inventory(name='South Depot')
        response = self.client.get('/api/v1/inventories/?search=north')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_by_code(self):
        TestDataFactory.create_inventory(warehouse_code='WH-9')
        response = self.client.get('/api/v1/inventories/by-code/WH-9/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get('/api/v1/inventories/by-code/NOPE/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_status(self):
        inventory = TestDataFactory.create_inventory()
        response = self.client.put(f'/api/v1/inventories/{inventory.id}/status/', {'status': 'MAINTENANCE'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        inventory.refresh_from_db()
        self.assertEqual(inventory.status, 'MAINTENANCE')

    def test_delete_inventory_with_categories_conflicts(self):
        inventory = TestDataFactory.create_inventory()
        TestDataFactory.create_category(inventory=inventory)
        response = self.client.delete(f'/api/v1/inventories/{inventory.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Inventory.objects.filter(pk=inventory.pk).exists())

    def test_delete_empty_inventory(self):
        inventory = TestDataFactory.create_inventory()
        response = self.client.delete(f'/api/v1/inventories/{inventory.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Inventory.objects.filter(pk=inventory.pk).exists())
