from django.contrib import admin
from .models import Promotion


@admin.register(Promotion)
class PromotionAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'discount_value', 'coupon_code', 'is_active', 'auto_apply', 'usage_count', 'start_date', 'end_date']
    list_filter = ['type', 'is_active', 'auto_apply', 'stackable', 'customer_eligibility']
    search_fields = ['name', 'coupon_code']
    filter_horizontal = ['applicable_products', 'applicable_categories']
    readonly_fields = ['usage_count', 'created_at', 'updated_at']
