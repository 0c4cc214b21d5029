from django.db import models
from django.utils import timezone
from decimal import Decimal, ROUND_HALF_UP
from salesmgmt.inventory.models import Inventory


class Category(models.Model):
    """Product categories"""
    STATUS_CHOICES = [
        ('ACTIVE', 'Active'),
        ('INACTIVE', 'Inactive'),
        ('ARCHIVED', 'Archived'),
    ]

    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True, null=True)
    display_order = models.IntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='ACTIVE')
    image_url = models.CharField(max_length=500, blank=True, null=True)
    icon = models.CharField(max_length=100, blank=True, null=True)
    color_code = models.CharField(max_length=20, blank=True, null=True)
    inventory = models.ForeignKey(Inventory, on_delete=models.SET_NULL, null=True, blank=True, related_name='categories')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        ordering = ['display_order', 'name']
        verbose_name_plural = 'categories'


class Product(models.Model):
    """Products with stock tracking"""
    STATUS_CHOICES = [
        ('ACTIVE', 'Active'),
        ('INACTIVE', 'Inactive'),
        ('DISCONTINUED', 'Discontinued'),
        ('OUT_OF_STOCK', 'Out of Stock'),
        ('COMING_SOON', 'Coming Soon'),
    ]

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    stock_quantity = models.IntegerField(default=0)
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    sku = models.CharField(max_length=100, unique=True, blank=True, null=True)
    barcode = models.CharField(max_length=100, unique=True, blank=True, null=True)
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    brand = models.CharField(max_length=100, blank=True, null=True)
    model_number = models.CharField(max_length=100, blank=True, null=True)
    weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    length = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    width = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    height = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    product_status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='ACTIVE')
    min_stock_level = models.IntegerField(default=5)
    max_stock_level = models.IntegerField(default=1000)
    reorder_point = models.IntegerField(default=10)
    reorder_quantity = models.IntegerField(default=20)
    supplier_name = models.CharField(max_length=200, blank=True, null=True)
    supplier_code = models.CharField(max_length=100, blank=True, null=True)
    warranty_period = models.IntegerField(null=True, blank=True, help_text="Warranty period in months")
    expiry_date = models.DateField(null=True, blank=True)
    manufacturing_date = models.DateField(null=True, blank=True)
    tags = models.CharField(max_length=500, blank=True, null=True)
    image_url = models.CharField(max_length=500, blank=True, null=True)
    is_serialized = models.BooleanField(default=False)
    is_digital = models.BooleanField(default=False)
    is_taxable = models.BooleanField(default=True)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    unit_of_measure = models.CharField(max_length=20, default='PCS')
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    location_in_warehouse = models.CharField(max_length=100, blank=True, null=True)
    total_sold = models.IntegerField(default=0)
    total_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    last_sold_date = models.DateTimeField(null=True, blank=True)
    last_restocked_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def is_low_stock(self):
        return self.stock_quantity <= self.min_stock_level

    @property
    def is_out_of_stock(self):
        return self.stock_quantity <= 0

    @property
    def needs_reorder(self):
        return self.stock_quantity <= self.reorder_point

    @property
    def is_expired(self):
        return self.expiry_date is not None and self.expiry_date < timezone.localdate()

    @property
    def profit_margin(self):
        """Margin over selling price, as a percentage"""
        if self.cost_price is None or not self.price:
            return None
        margin = (self.price - self.cost_price) * 100 / self.price
        return margin.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    @property
    def stock_value(self):
        return self.price * self.stock_quantity

    class Meta:
        db_table = 'products'
        ordering = ['name']
        indexes = [
            models.Index(fields=['name'], name='products_name_idx'),
            models.Index(fields=['stock_quantity'], name='products_stock_idx'),
            models.Index(fields=['product_status'], name='products_status_idx'),
        ]
