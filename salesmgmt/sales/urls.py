from django.urls import path
from . import views

urlpatterns = [
    path('sales/', views.sale_list_create, name='sale-list-create'),
    path('sales/overdue/', views.sale_overdue, name='sale-overdue'),
    path('sales/gifts/', views.sale_gifts, name='sale-gifts'),
    path('sales/high-value/', views.sale_high_value, name='sale-high-value'),
    path('sales/analytics/', views.sale_analytics, name='sale-analytics'),
    path('sales/daily-summary/', views.sale_daily_summary, name='sale-daily-summary'),
    path('sales/product-performance/', views.sale_product_performance, name='sale-product-performance'),
    path('sales/<int:pk>/', views.sale_detail, name='sale-detail'),
    path('sales/<int:pk>/complete/', views.sale_complete, name='sale-complete'),
    path('sales/<int:pk>/cancel/', views.sale_cancel, name='sale-cancel'),
    path('sales/<int:pk>/status/', views.sale_status, name='sale-status'),
    path('sales/<int:pk>/payment/', views.sale_payment, name='sale-payment'),
    path('sales/<int:pk>/delivery/', views.sale_delivery, name='sale-delivery'),
    path('sales/<int:pk>/items/<int:item_id>/return/', views.sale_item_return, name='sale-item-return'),
    path('sales/<int:pk>/promotions/', views.sale_promotions, name='sale-promotions'),
    path('sales/<int:pk>/eligible-promotions/', views.sale_eligible_promotions, name='sale-eligible-promotions'),
]
