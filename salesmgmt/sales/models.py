import itertools
import time
import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone
from salesmgmt.catalog.models import Product
from salesmgmt.parties.models import Customer
from salesmgmt.pricing.models import Promotion

_sale_counter = itertools.count(1)


def generate_sale_number():
    """SALE-{epoch ms}-{process counter}-{4 hex}"""
    return f"SALE-{int(time.time() * 1000)}-{next(_sale_counter)}-{uuid.uuid4().hex[:4].upper()}"


class Sale(models.Model):
    """Sales orders"""
    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('COMPLETED', 'Completed'),
        ('CANCELLED', 'Cancelled'),
    ]
    PAYMENT_METHOD_CHOICES = [
        ('CASH', 'Cash'),
        ('CREDIT_CARD', 'Credit Card'),
        ('DEBIT_CARD', 'Debit Card'),
        ('BANK_TRANSFER', 'Bank Transfer'),
        ('CHECK', 'Check'),
        ('PAYPAL', 'PayPal'),
        ('STRIPE', 'Stripe'),
        ('SQUARE', 'Square'),
        ('OTHER', 'Other'),
        ('NET_30', 'Net 30'),
    ]
    PAYMENT_STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('PAID', 'Paid'),
        ('PARTIALLY_PAID', 'Partially Paid'),
        ('OVERDUE', 'Overdue'),
        ('REFUNDED', 'Refunded'),
        ('CANCELLED', 'Cancelled'),
    ]
    SALE_TYPE_CHOICES = [
        ('RETAIL', 'Retail'),
        ('WHOLESALE', 'Wholesale'),
        ('B2B', 'Business to Business'),
        ('ONLINE', 'Online'),
        ('SUBSCRIPTION', 'Subscription'),
        ('RETURN', 'Return'),
    ]
    DELIVERY_STATUS_CHOICES = [
        ('NOT_SHIPPED', 'Not Shipped'),
        ('PROCESSING', 'Processing'),
        ('SHIPPED', 'Shipped'),
        ('IN_TRANSIT', 'In Transit'),
        ('DELIVERED', 'Delivered'),
        ('RETURNED', 'Returned'),
        ('CANCELLED', 'Cancelled'),
        ('PICKED_UP', 'Picked Up'),
    ]

    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='sales')
    sale_number = models.CharField(max_length=100, unique=True, default=generate_sale_number)
    reference_number = models.CharField(max_length=100, blank=True, null=True)
    sale_date = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    tax_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    shipping_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, blank=True, null=True)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='PENDING')
    payment_date = models.DateTimeField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    billing_address = models.TextField(blank=True, null=True)
    shipping_address = models.TextField(blank=True, null=True)
    sales_person = models.CharField(max_length=100, blank=True, null=True)
    sales_channel = models.CharField(max_length=50, blank=True, null=True)
    sale_type = models.CharField(max_length=20, choices=SALE_TYPE_CHOICES, default='RETAIL')
    currency = models.CharField(max_length=3, default='USD')
    exchange_rate = models.DecimalField(max_digits=10, decimal_places=4, default=Decimal('1.0000'))
    notes = models.TextField(blank=True, null=True)
    internal_notes = models.TextField(blank=True, null=True)
    terms = models.TextField(blank=True, null=True)
    warranty_info = models.TextField(blank=True, null=True)
    delivery_status = models.CharField(max_length=20, choices=DELIVERY_STATUS_CHOICES, default='NOT_SHIPPED')
    delivery_date = models.DateTimeField(null=True, blank=True)
    expected_delivery_date = models.DateField(null=True, blank=True)
    tracking_number = models.CharField(max_length=100, blank=True, null=True)
    is_gift = models.BooleanField(default=False)
    gift_message = models.TextField(blank=True, null=True)
    loyalty_points_earned = models.IntegerField(default=0)
    loyalty_points_used = models.IntegerField(default=0)
    is_return = models.BooleanField(default=False)
    original_sale_id = models.BigIntegerField(null=True, blank=True)
    return_reason = models.TextField(blank=True, null=True)
    profit_margin = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    cost_of_goods_sold = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    promotion = models.ForeignKey(Promotion, on_delete=models.SET_NULL, null=True, blank=True, related_name='sales')
    coupon_code = models.CharField(max_length=50, blank=True, null=True)
    original_total = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    final_total = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    promotion_discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.sale_number

    @property
    def is_overdue(self):
        return self.due_date is not None and self.due_date < timezone.localdate() and self.payment_status != 'PAID'

    def mark_as_paid(self):
        self.payment_status = 'PAID'
        self.payment_date = timezone.now()

    class Meta:
        db_table = 'sales'
        ordering = ['-sale_date']
        indexes = [
            models.Index(fields=['status'], name='sales_status_idx'),
            models.Index(fields=['-sale_date'], name='sales_date_idx'),
            models.Index(fields=['customer', 'status'], name='sales_customer_status_idx'),
        ]


class SaleItem(models.Model):
    """Sale line items"""
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='sale_items')
    quantity = models.IntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    original_unit_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    serial_numbers = models.TextField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    is_returned = models.BooleanField(default=False)
    returned_quantity = models.IntegerField(default=0)
    unit_of_measure = models.CharField(max_length=20, default='PCS')

    def __str__(self):
        return f"{self.sale.sale_number} - {self.product.name} x {self.quantity}"

    @property
    def remaining_quantity(self):
        return self.quantity - (self.returned_quantity or 0)

    class Meta:
        db_table = 'sale_items'


class AppliedPromotion(models.Model):
    """A promotion as it was applied to one sale"""
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='applied_promotions')
    promotion = models.ForeignKey(Promotion, on_delete=models.SET_NULL, null=True, blank=True, related_name='applications')
    promotion_name = models.CharField(max_length=200)
    promotion_type = models.CharField(max_length=20, choices=Promotion.TYPE_CHOICES)
    coupon_code = models.CharField(max_length=50, blank=True, null=True)
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2)
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    original_amount = models.DecimalField(max_digits=14, decimal_places=2)
    final_amount = models.DecimalField(max_digits=14, decimal_places=2)
    is_auto_applied = models.BooleanField(default=False)
    applied_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.promotion_name} on {self.sale.sale_number}"

    class Meta:
        db_table = 'applied_promotions'
        ordering = ['applied_at']
