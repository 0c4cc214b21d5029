from django.contrib import admin
from .models import Sale, SaleItem, AppliedPromotion


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    readonly_fields = ['subtotal', 'discount_amount', 'tax_amount', 'total_price']


class AppliedPromotionInline(admin.TabularInline):
    model = AppliedPromotion
    extra = 0
    readonly_fields = ['applied_at']


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ['sale_number', 'customer', 'status', 'payment_status', 'total_amount', 'sale_date']
    list_filter = ['status', 'payment_status', 'delivery_status', 'sale_type', 'sale_date']
    search_fields = ['sale_number', 'customer__name', 'coupon_code']
    readonly_fields = ['sale_number', 'subtotal', 'total_amount', 'final_total', 'promotion_discount_amount',
                       'created_at', 'updated_at']
    inlines = [SaleItemInline, AppliedPromotionInline]
