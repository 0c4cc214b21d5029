from django.urls import path
from . import views

urlpatterns = [
    # Customer endpoints
    path('customers/', views.customer_list_create, name='customer-list-create'),
    path('customers/search/', views.customer_search, name='customer-search'),
    path('customers/deleted/', views.customer_deleted, name='customer-deleted'),
    path('customers/by-email/', views.customer_by_email, name='customer-by-email'),
    path('customers/vip/', views.customer_vip, name='customer-vip'),
    path('customers/outstanding-balance/', views.customer_outstanding_balance, name='customer-outstanding-balance'),
    path('customers/statistics/', views.customer_statistics, name='customer-statistics'),
    path('customers/<int:pk>/', views.customer_detail, name='customer-detail'),
    path('customers/<int:pk>/restore/', views.customer_restore, name='customer-restore'),
    path('customers/<int:pk>/status/', views.customer_status, name='customer-status'),
    path('customers/<int:pk>/type/', views.customer_type, name='customer-type'),
    path('customers/<int:pk>/credit-limit/', views.customer_credit_limit, name='customer-credit-limit'),
    path('customers/<int:pk>/loyalty-points/', views.customer_loyalty_points, name='customer-loyalty-points'),

    # Supplier endpoints
    path('suppliers/', views.supplier_list_create, name='supplier-list-create'),
    path('suppliers/top-rated/', views.supplier_top_rated, name='supplier-top-rated'),
    path('suppliers/high-value/', views.supplier_high_value, name='supplier-high-value'),
    path('suppliers/analytics/', views.supplier_analytics, name='supplier-analytics'),
    path('suppliers/<int:pk>/', views.supplier_detail, name='supplier-detail'),
    path('suppliers/<int:pk>/rating/', views.supplier_rating, name='supplier-rating'),
]
