from django.contrib import admin
from .models import PurchaseOrder, PurchaseOrderItem


class PurchaseOrderItemInline(admin.TabularInline):
    model = PurchaseOrderItem
    extra = 0
    readonly_fields = ['subtotal', 'tax_amount', 'discount_amount', 'total_price']


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'supplier', 'status', 'priority', 'total_amount', 'order_date']
    list_filter = ['status', 'priority', 'order_date']
    search_fields = ['order_number', 'supplier__name']
    readonly_fields = ['subtotal', 'total_amount', 'approved_by', 'approved_date', 'created_at', 'updated_at']
    inlines = [PurchaseOrderItemInline]
