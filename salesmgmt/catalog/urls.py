from django.urls import path
from . import views

urlpatterns = [
    # Category endpoints
    path('categories/', views.category_list_create, name='category-list-create'),
    path('categories/active/', views.category_active, name='category-active'),
    path('categories/empty/', views.category_empty, name='category-empty'),
    path('categories/<int:pk>/', views.category_detail, name='category-detail'),
    path('categories/<int:pk>/status/', views.category_status, name='category-status'),

    # Product endpoints
    path('products/', views.product_list_create, name='product-list-create'),
    path('products/low-stock/', views.product_low_stock, name='product-low-stock'),
    path('products/out-of-stock/', views.product_out_of_stock, name='product-out-of-stock'),
    path('products/reorder/', views.product_reorder, name='product-reorder'),
    path('products/expired/', views.product_expired, name='product-expired'),
    path('products/recent/', views.product_recent, name='product-recent'),
    path('products/by-sku/', views.product_by_sku, name='product-by-sku'),
    path('products/by-barcode/', views.product_by_barcode, name='product-by-barcode'),
    path('products/statistics/', views.product_statistics, name='product-statistics'),
    path('products/inventory-summary/', views.product_inventory_summary, name='product-inventory-summary'),
    path('products/<int:pk>/', views.product_detail, name='product-detail'),
    path('products/<int:pk>/stock/', views.product_stock, name='product-stock'),
    path('products/<int:pk>/restock/', views.product_restock, name='product-restock'),
    path('products/<int:pk>/status/', views.product_status, name='product-status'),
]
