"""
URL configuration for the sales management backend.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Sales Management Admin Panel"
admin.site.site_title = "Sales Management Admin Portal"
admin.site.index_title = "Welcome to the Sales Management Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('salesmgmt.core.urls')),
    path('api/v1/', include('salesmgmt.inventory.urls')),
    path('api/v1/', include('salesmgmt.catalog.urls')),
    path('api/v1/', include('salesmgmt.parties.urls')),
    path('api/v1/', include('salesmgmt.purchasing.urls')),
    path('api/v1/', include('salesmgmt.pricing.urls')),
    path('api/v1/', include('salesmgmt.sales.urls')),
    path('api/v1/', include('salesmgmt.returns.urls')),
    path('api/v1/', include('salesmgmt.reports.urls')),
    path('api/v1/', include('salesmgmt.updates.urls')),
]
