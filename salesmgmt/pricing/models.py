from django.db import models
from django.utils import timezone
from salesmgmt.catalog.models import Category, Product


class Promotion(models.Model):
    """Discount campaigns, either auto-applied or redeemed with a coupon code"""
    TYPE_CHOICES = [
        ('PERCENTAGE', 'Percentage Discount'),
        ('FIXED_AMOUNT', 'Fixed Amount Discount'),
        ('FREE_SHIPPING', 'Free Shipping'),
        ('BUY_X_GET_Y', 'Buy X Get Y'),
    ]
    ELIGIBILITY_CHOICES = [
        ('ALL', 'All Customers'),
        ('VIP_ONLY', 'VIP Customers Only'),
        ('NEW_CUSTOMERS', 'New Customers'),
        ('RETURNING_CUSTOMERS', 'Returning Customers'),
        ('PREMIUM_ONLY', 'Premium Customers Only'),
    ]

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    discount_value = models.DecimalField(max_digits=12, decimal_places=2)
    minimum_order_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    maximum_discount_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    is_active = models.BooleanField(default=True)
    applicable_products = models.ManyToManyField(Product, blank=True, related_name='promotions')
    applicable_categories = models.ManyToManyField(Category, blank=True, related_name='promotions')
    usage_limit = models.IntegerField(null=True, blank=True)
    usage_count = models.IntegerField(default=0)
    customer_eligibility = models.CharField(max_length=30, choices=ELIGIBILITY_CHOICES, default='ALL')
    coupon_code = models.CharField(max_length=50, unique=True, null=True, blank=True)
    auto_apply = models.BooleanField(default=False)
    stackable = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def is_expired(self):
        return self.end_date is not None and timezone.now() > self.end_date

    @property
    def is_not_yet_started(self):
        return self.start_date is not None and timezone.now() < self.start_date

    @property
    def is_usage_limit_reached(self):
        return self.usage_limit is not None and self.usage_count >= self.usage_limit

    @property
    def is_currently_active(self):
        now = timezone.now()
        return (
            self.is_active
            and self.start_date <= now <= self.end_date
            and not self.is_usage_limit_reached
        )

    @property
    def days_until_expiry(self):
        if self.end_date is None:
            return None
        return (self.end_date - timezone.now()).days

    @property
    def remaining_usage(self):
        if self.usage_limit is None:
            return None
        return max(0, self.usage_limit - self.usage_count)

    @property
    def usage_percentage(self):
        if not self.usage_limit:
            return None
        return self.usage_count * 100.0 / self.usage_limit

    @property
    def status_display(self):
        if not self.is_active:
            return 'Inactive'
        if self.is_expired:
            return 'Expired'
        if self.is_not_yet_started:
            return 'Scheduled'
        if self.is_usage_limit_reached:
            return 'Usage Limit Reached'
        return 'Active'

    class Meta:
        db_table = 'promotions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_active', 'start_date', 'end_date'], name='promotions_active_idx'),
        ]
