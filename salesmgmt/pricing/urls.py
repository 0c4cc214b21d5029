from django.urls import path
from . import views

urlpatterns = [
    path('promotions/', views.promotion_list_create, name='promotion-list-create'),
    path('promotions/active/', views.promotion_active, name='promotion-active'),
    path('promotions/available/', views.promotion_available, name='promotion-available'),
    path('promotions/validate-coupon/', views.promotion_validate_coupon, name='promotion-validate-coupon'),
    path('promotions/for-product/<int:product_id>/', views.promotion_for_product, name='promotion-for-product'),
    path('promotions/for-category/<int:category_id>/', views.promotion_for_category, name='promotion-for-category'),
    path('promotions/<int:pk>/', views.promotion_detail, name='promotion-detail'),
    path('promotions/<int:pk>/activate/', views.promotion_activate, name='promotion-activate'),
    path('promotions/<int:pk>/deactivate/', views.promotion_deactivate, name='promotion-deactivate'),
    path('promotions/<int:pk>/calculate-discount/', views.promotion_calculate_discount, name='promotion-calculate-discount'),
]
