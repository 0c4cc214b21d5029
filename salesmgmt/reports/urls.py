from django.urls import path
from . import views

urlpatterns = [
    path('reports/sales/', views.sales_report, name='report-sales'),
    path('reports/customers/', views.customer_report, name='report-customers'),
    path('reports/customers/lifetime-value/', views.customer_lifetime_value, name='report-customer-lifetime-value'),
    path('reports/customers/retention/', views.customer_retention, name='report-customer-retention'),
    path('reports/inventory/', views.inventory_report, name='report-inventory'),
    path('reports/inventory/turnover/', views.inventory_turnover, name='report-inventory-turnover'),
    path('reports/inventory/valuation/', views.inventory_valuation, name='report-inventory-valuation'),
    path('reports/financial/revenue/', views.financial_revenue, name='report-financial-revenue'),
    path('reports/revenue-trends/', views.revenue_trends, name='report-revenue-trends'),
    path('reports/top-performers/', views.top_performers, name='report-top-performers'),
    path('reports/promotions/', views.promotion_report, name='report-promotions'),
    path('reports/dashboard/', views.dashboard, name='report-dashboard'),
    path('reports/dashboard/executive/', views.executive_dashboard, name='report-dashboard-executive'),
    path('reports/dashboard/operational/', views.operational_dashboard, name='report-dashboard-operational'),
    path('reports/kpi/real-time/', views.real_time_kpis, name='report-kpi-real-time'),
]
