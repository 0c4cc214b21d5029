"""
Test utilities and factories for creating test data
"""
import io
import random
import string
import zipfile
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from salesmgmt.catalog.models import Category, Product
from salesmgmt.inventory.models import Inventory
from salesmgmt.parties.models import Customer, Supplier
from salesmgmt.pricing.models import Promotion
from salesmgmt.purchasing.models import PurchaseOrder, PurchaseOrderItem
from salesmgmt.returns.models import Return, ReturnItem
from salesmgmt.sales.models import Sale, SaleItem
from salesmgmt.updates.models import ApplicationVersion

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False, role='USER'):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser,
            role=role
        )

    @staticmethod
    def create_admin(username=None):
        return TestDataFactory.create_user(username=username, is_staff=True, is_superuser=True)

    @staticmethod
    def create_inventory(name=None, location='Main Street 1', **kwargs):
        """Create a test warehouse"""
        if not name:
            name = f'Warehouse_{TestDataFactory.random_string(6)}'
        return Inventory.objects.create(name=name, location=location, **kwargs)

    @staticmethod
    def create_category(name=None, inventory=None, status='ACTIVE'):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            description=f'Test category {name}',
            inventory=inventory,
            status=status
        )

    @staticmethod
    def create_product(name=None, price=None, stock_quantity=100, category=None, sku=None, **kwargs):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU_{TestDataFactory.random_string(8)}'
        if price is None:
            price = Decimal('100.00')
        return Product.objects.create(
            name=name,
            price=price,
            stock_quantity=stock_quantity,
            category=category,
            sku=sku,
            **kwargs
        )

    @staticmethod
    def create_customer(name=None, email=None, customer_type='REGULAR', **kwargs):
        """Create a test customer"""
        if not name:
            name = f'Customer_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{name.lower()}@test.com'
        return Customer.objects.create(
            name=name,
            email=email,
            phone=f'9{random.randint(100000000, 999999999)}',
            customer_type=customer_type,
            **kwargs
        )

    @staticmethod
    def create_supplier(name=None, email=None, **kwargs):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{name.lower()}@test.com'
        return Supplier.objects.create(name=name, email=email, **kwargs)

    @staticmethod
    def create_purchase_order(supplier=None, product=None, quantity=10, unit_cost=None, status='PENDING', user=None):
        """Create a purchase order with a single line"""
        if not supplier:
            supplier = TestDataFactory.create_supplier()
        if not product:
            product = TestDataFactory.create_product()
        if unit_cost is None:
            unit_cost = Decimal('50.00')
        line_total = unit_cost * quantity
        order = PurchaseOrder.objects.create(
            order_number=f'PO-TEST-{TestDataFactory.random_string(8).upper()}',
            supplier=supplier,
            order_date=timezone.now(),
            status=status,
            subtotal=line_total,
            total_amount=line_total,
            created_by=user
        )
        PurchaseOrderItem.objects.create(
            purchase_order=order,
            product=product,
            quantity=quantity,
            unit_cost=unit_cost,
            subtotal=line_total,
            total_price=line_total
        )
        return order

    @staticmethod
    def create_promotion(name=None, type='PERCENTAGE', discount_value=None, coupon_code=None,
                         start_date=None, end_date=None, **kwargs):
        """Create a promotion running from yesterday to next month"""
        if not name:
            name = f'Promotion_{TestDataFactory.random_string(6)}'
        if discount_value is None:
            discount_value = Decimal('10.00')
        now = timezone.now()
        return Promotion.objects.create(
            name=name,
            type=type,
            discount_value=discount_value,
            coupon_code=coupon_code,
            start_date=start_date or now - timedelta(days=1),
            end_date=end_date or now + timedelta(days=30),
            **kwargs
        )

    @staticmethod
    def create_sale(customer=None, product=None, quantity=2, unit_price=None, status='COMPLETED', sale_date=None):
        """Create a sale with one item; totals are set directly without touching stock"""
        if not customer:
            customer = TestDataFactory.create_customer()
        if not product:
            product = TestDataFactory.create_product()
        if unit_price is None:
            unit_price = product.price
        line_total = unit_price * quantity
        sale = Sale.objects.create(
            customer=customer,
            status=status,
            subtotal=line_total,
            total_amount=line_total,
            sale_date=sale_date or timezone.now(),
            payment_method='CASH'
        )
        SaleItem.objects.create(
            sale=sale,
            product=product,
            quantity=quantity,
            unit_price=unit_price,
            original_unit_price=unit_price,
            subtotal=line_total,
            total_price=line_total
        )
        return sale

    @staticmethod
    def create_return(sale, quantity=1, status='PENDING', reason='DEFECTIVE', is_restockable=True):
        """Create a return for the first item of a sale"""
        sale_item = sale.items.first()
        return_request = Return.objects.create(
            original_sale=sale,
            customer=sale.customer,
            reason=reason,
            status=status,
            total_refund_amount=sale_item.unit_price * quantity
        )
        ReturnItem.objects.create(
            return_request=return_request,
            original_sale_item=sale_item,
            product=sale_item.product,
            return_quantity=quantity,
            original_unit_price=sale_item.unit_price,
            refund_amount=sale_item.unit_price * quantity,
            is_restockable=is_restockable
        )
        return return_request

    @staticmethod
    def build_jar_bytes(manifest='Manifest-Version: 1.0\nMain-Class: com.example.App\n', entries=None):
        """In-memory JAR archive with a manifest and a couple of class entries"""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as archive:
            if manifest is not None:
                archive.writestr('META-INF/MANIFEST.MF', manifest)
            for name, content in (entries or {'com/example/App.class': b'\xca\xfe\xba\xbe'}).items():
                archive.writestr(name, content)
        return buffer.getvalue()

    @staticmethod
    def create_jar_upload(name='app.jar', content=None, content_type='application/java-archive'):
        if content is None:
            content = TestDataFactory.build_jar_bytes()
        return SimpleUploadedFile(name, content, content_type=content_type)

    @staticmethod
    def create_version(version_number='1.0.0', release_channel='STABLE', is_active=True, **kwargs):
        """Version row without a stored file"""
        return ApplicationVersion.objects.create(
            version_number=version_number,
            release_channel=release_channel,
            is_active=is_active,
            file_name=f'versions/{version_number}/sales-management-{version_number}.jar',
            file_size=1024,
            file_checksum='0' * 64,
            download_url=f'/api/v1/updates/download/{version_number}/',
            **kwargs
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
