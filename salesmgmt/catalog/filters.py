import django_filters
from django.conf import settings
from django.db.models import Q, F
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Filter for Product list using django-filter"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    name = django_filters.CharFilter(field_name='name', lookup_expr='icontains')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    category_name = django_filters.CharFilter(field_name='category__name', lookup_expr='iexact')
    brand = django_filters.CharFilter(field_name='brand', lookup_expr='iexact')
    status = django_filters.CharFilter(method='filter_status', label='Status')
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')
    low_stock = django_filters.BooleanFilter(method='filter_low_stock', label='Low Stock')
    out_of_stock = django_filters.BooleanFilter(method='filter_out_of_stock', label='Out of Stock')
    needs_reorder = django_filters.BooleanFilter(method='filter_needs_reorder', label='Needs Reorder')

    class Meta:
        model = Product
        fields = ['search', 'name', 'category', 'category_name', 'brand', 'status',
                  'min_price', 'max_price', 'low_stock', 'out_of_stock', 'needs_reorder']

    def filter_search(self, queryset, name, value):
        """Search across name, SKU, barcode, brand and description"""
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(sku__icontains=value) |
            Q(barcode__iexact=value) |
            Q(brand__icontains=value) |
            Q(description__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        return queryset.filter(product_status=value.upper()) if value else queryset

    def filter_low_stock(self, queryset, name, value):
        if value is None:
            return queryset
        threshold = settings.LOW_STOCK_THRESHOLD
        if value:
            return queryset.filter(stock_quantity__lt=threshold)
        return queryset.filter(stock_quantity__gte=threshold)

    def filter_out_of_stock(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(stock_quantity__lte=0) if value else queryset.filter(stock_quantity__gt=0)

    def filter_needs_reorder(self, queryset, name, value):
        if value is None:
            return queryset
        if value:
            return queryset.filter(stock_quantity__lte=F('reorder_point'))
        return queryset.filter(stock_quantity__gt=F('reorder_point'))
