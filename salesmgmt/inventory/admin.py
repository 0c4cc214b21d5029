from django.contrib import admin
from .models import Inventory


@admin.register(Inventory)
class InventoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'location', 'warehouse_code', 'status', 'is_main_warehouse', 'current_stock_count', 'created_at']
    list_filter = ['status', 'is_main_warehouse']
    search_fields = ['name', 'location', 'warehouse_code', 'manager_name']
