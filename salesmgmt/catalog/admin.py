from django.contrib import admin
from .models import Category, Product


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'status', 'display_order', 'inventory', 'created_at']
    list_filter = ['status', 'inventory']
    search_fields = ['name', 'description']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'barcode', 'category', 'price', 'stock_quantity', 'product_status', 'created_at']
    list_filter = ['product_status', 'category', 'is_taxable']
    search_fields = ['name', 'sku', 'barcode', 'brand']
    readonly_fields = ['total_sold', 'total_revenue', 'last_sold_date', 'last_restocked_date', 'created_at', 'updated_at']
