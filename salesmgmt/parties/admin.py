from django.contrib import admin
from .models import Customer, Supplier


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'phone', 'customer_type', 'customer_status', 'loyalty_points', 'is_deleted', 'created_at']
    list_filter = ['customer_type', 'customer_status', 'is_deleted']
    search_fields = ['name', 'email', 'phone', 'company_name']
    readonly_fields = ['deleted_at', 'deleted_by', 'deletion_reason', 'created_at', 'updated_at']


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'contact_person', 'email', 'phone', 'status', 'rating', 'total_orders', 'total_amount']
    list_filter = ['status', 'country']
    search_fields = ['name', 'contact_person', 'email', 'tax_number']
