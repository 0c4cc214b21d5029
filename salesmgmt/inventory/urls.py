from django.urls import path
from . import views

urlpatterns = [
    path('inventories/', views.inventory_list_create, name='inventory-list-create'),
    path('inventories/active/', views.inventory_active, name='inventory-active'),
    path('inventories/main/', views.inventory_main, name='inventory-main'),
    path('inventories/empty/', views.inventory_empty, name='inventory-empty'),
    path('inventories/by-code/<str:code>/', views.inventory_by_code, name='inventory-by-code'),
    path('inventories/<int:pk>/', views.inventory_detail, name='inventory-detail'),
    path('inventories/<int:pk>/status/', views.inventory_status, name='inventory-status'),
]
