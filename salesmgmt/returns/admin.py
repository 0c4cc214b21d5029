from django.contrib import admin
from .models import Return, ReturnItem


class ReturnItemInline(admin.TabularInline):
    model = ReturnItem
    extra = 0
    readonly_fields = ['refund_amount']


@admin.register(Return)
class ReturnAdmin(admin.ModelAdmin):
    list_display = ['return_number', 'original_sale', 'customer', 'reason', 'status', 'total_refund_amount', 'return_date']
    list_filter = ['status', 'reason', 'refund_method']
    search_fields = ['return_number', 'customer__name', 'original_sale__sale_number']
    readonly_fields = ['return_number', 'processed_by', 'processed_date', 'refund_date', 'created_at', 'updated_at']
    inlines = [ReturnItemInline]
