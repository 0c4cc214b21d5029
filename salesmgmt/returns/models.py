import time
from datetime import timedelta
import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone
from salesmgmt.catalog.models import Product
from salesmgmt.parties.models import Customer
from salesmgmt.sales.models import Sale, SaleItem


def generate_return_number():
    """RET-{last 6 digits of epoch ms}-{8 hex}"""
    return f"RET-{str(int(time.time() * 1000))[-6:]}-{uuid.uuid4().hex[:8].upper()}"


class Return(models.Model):
    """Return requests against completed sales"""
    REASON_CHOICES = [
        ('DEFECTIVE', 'Defective Product'),
        ('WRONG_ITEM', 'Wrong Item Sent'),
        ('CUSTOMER_CHANGE_MIND', 'Customer Changed Mind'),
        ('DAMAGED_IN_SHIPPING', 'Damaged in Shipping'),
        ('NOT_AS_DESCRIBED', 'Not as Described'),
        ('EXPIRED', 'Expired Product'),
        ('DUPLICATE_ORDER', 'Duplicate Order'),
        ('OTHER', 'Other'),
    ]
    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('APPROVED', 'Approved'),
        ('REJECTED', 'Rejected'),
        ('REFUNDED', 'Refunded'),
        ('EXCHANGED', 'Exchanged'),
        ('CANCELLED', 'Cancelled'),
    ]
    REFUND_METHOD_CHOICES = [
        ('ORIGINAL_PAYMENT', 'Original Payment Method'),
        ('STORE_CREDIT', 'Store Credit'),
        ('CASH', 'Cash'),
        ('BANK_TRANSFER', 'Bank Transfer'),
        ('CHECK', 'Check'),
    ]

    return_number = models.CharField(max_length=50, unique=True, default=generate_return_number)
    original_sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='returns')
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='returns')
    return_date = models.DateTimeField(default=timezone.now)
    reason = models.CharField(max_length=30, choices=REASON_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    total_refund_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True, null=True)
    processed_by = models.CharField(max_length=150, blank=True, null=True)
    processed_date = models.DateTimeField(null=True, blank=True)
    refund_method = models.CharField(max_length=20, choices=REFUND_METHOD_CHOICES, blank=True, null=True)
    refund_reference = models.CharField(max_length=100, blank=True, null=True)
    refund_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.return_number

    def can_be_modified(self):
        return self.status == 'PENDING'

    def is_within_return_period(self, days):
        sale_date = self.original_sale.sale_date
        return sale_date is not None and timezone.now() <= sale_date + timedelta(days=days)

    class Meta:
        db_table = 'returns'
        ordering = ['-return_date']
        indexes = [
            models.Index(fields=['status'], name='returns_status_idx'),
            models.Index(fields=['-return_date'], name='returns_date_idx'),
        ]


class ReturnItem(models.Model):
    """Items of a return request"""
    CONDITION_CHOICES = [
        ('NEW', 'New'),
        ('LIKE_NEW', 'Like New'),
        ('GOOD', 'Good'),
        ('FAIR', 'Fair'),
        ('POOR', 'Poor'),
        ('DAMAGED', 'Damaged'),
        ('DEFECTIVE', 'Defective'),
    ]
    NON_RESTOCKABLE_CONDITIONS = ('POOR', 'DAMAGED', 'DEFECTIVE')

    return_request = models.ForeignKey(Return, on_delete=models.CASCADE, related_name='items')
    original_sale_item = models.ForeignKey(SaleItem, on_delete=models.CASCADE, related_name='return_items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='return_items')
    return_quantity = models.IntegerField()
    original_unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    refund_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    restocking_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    item_condition = models.CharField(max_length=20, choices=CONDITION_CHOICES, blank=True, null=True)
    condition_notes = models.TextField(blank=True, null=True)
    serial_numbers = models.TextField(blank=True, null=True)
    is_restockable = models.BooleanField(default=True)
    disposal_reason = models.TextField(blank=True, null=True)

    def __str__(self):
        return f"{self.return_request.return_number} - {self.product.name} x {self.return_quantity}"

    def calculate_refund_amount(self):
        total_value = self.original_unit_price * self.return_quantity
        self.refund_amount = max(total_value - (self.restocking_fee or Decimal('0.00')), Decimal('0.00'))
        return self.refund_amount

    class Meta:
        db_table = 'return_items'
