from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.shortcuts import get_object_or_404
from salesmgmt.core.exceptions import ResourceNotFoundException, BusinessLogicException
from salesmgmt.core.utils import (
    apply_sorting, create_audit_log, get_object_or_not_found, paginated_response, parse_int,
)
from salesmgmt.core.cache_utils import invalidate_reports_cache
from .filters import ProductFilter
from .models import Category, Product
from .serializers import (
    CategorySerializer, CategoryStatusSerializer, ProductSerializer, ProductListSerializer,
    StockUpdateSerializer, ProductStatusSerializer,
)
from . import services

PRODUCT_SORT_FIELDS = (
    'id', 'name', 'description', 'price', 'cost_price', 'stock_quantity', 'sku', 'brand', 'product_status',
    'min_stock_level', 'reorder_point', 'total_sold', 'total_revenue', 'last_sold_date', 'created_at', 'updated_at',
)
CATEGORY_SORT_FIELDS = ('id', 'name', 'display_order', 'status', 'created_at', 'updated_at')


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    """List categories or create a new category"""
    if request.method == 'GET':
        queryset = services.categories_with_counts()
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(name__icontains=search)
        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter.upper())
        inventory_id = request.query_params.get('inventory')
        if inventory_id:
            queryset = queryset.filter(inventory_id=inventory_id)
        queryset = apply_sorting(request, queryset, CATEGORY_SORT_FIELDS, ('display_order', 'name'))
        return paginated_response(request, queryset, CategorySerializer)

    serializer = CategorySerializer(data=request.data)
    if serializer.is_valid():
        if isinstance(serializer.validated_data.get('name'), str):
            serializer.validated_data['name'] = serializer.validated_data['name'].strip()
        services.validate_category(serializer.validated_data)
        category = serializer.save()
        create_audit_log(request, 'create', 'Category', category.id, object_name=category.name)
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, pk):
    """Retrieve, update or delete a category"""
    category = get_object_or_not_found(Category, pk)

    if request.method == 'GET':
        return Response(CategorySerializer(category).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            services.validate_category(serializer.validated_data, instance=category)
            category = serializer.save()
            create_audit_log(request, 'update', 'Category', category.id, object_name=category.name)
            return Response(CategorySerializer(category).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    category_id, name = category.id, category.name
    services.delete_category(category)
    create_audit_log(request, 'delete', 'Category', category_id, object_name=name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def category_active(request):
    """List active categories"""
    queryset = services.categories_with_counts().filter(status='ACTIVE').order_by('display_order', 'name')
    return Response(CategorySerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def category_empty(request):
    """List categories without products"""
    queryset = services.categories_with_counts().filter(product_count=0)
    return Response(CategorySerializer(queryset, many=True).data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def category_status(request, pk):
    """Update category status"""
    category = get_object_or_404(Category, pk=pk)
    serializer = CategoryStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    old_status = category.status
    category.status = serializer.validated_data['status']
    category.save(update_fields=['status', 'updated_at'])
    create_audit_log(request, 'status_change', 'Category', category.id, object_name=category.name,
                     changes={'status': {'old': old_status, 'new': category.status}})
    return Response(CategorySerializer(category).data)


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """List products with filters or create a new product"""
    if request.method == 'GET':
        queryset = Product.objects.select_related('category')
        filterset = ProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

        queryset = apply_sorting(request, filterset.qs, PRODUCT_SORT_FIELDS, ('name',))
        return paginated_response(request, queryset, ProductSerializer)

    serializer = ProductSerializer(data=request.data)
    if serializer.is_valid():
        data = services.normalize_product_data(serializer.validated_data)
        services.validate_product(data)
        product = serializer.save()
        create_audit_log(request, 'create', 'Product', product.id, object_name=product.name,
                         object_reference=product.sku)
        invalidate_reports_cache()
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_not_found(Product.objects.select_related('category'), pk, 'Product')

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            data = services.normalize_product_data(serializer.validated_data)
            services.validate_product(data, instance=product)
            product = serializer.save()
            create_audit_log(request, 'update', 'Product', product.id, object_name=product.name,
                             object_reference=product.sku)
            invalidate_reports_cache()
            return Response(ProductSerializer(product).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        product_id, name = product.id, product.name
        services.delete_product(product)
        create_audit_log(request, 'delete', 'Product', product_id, object_name=name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def product_stock(request, pk):
    """Set the stock quantity of a product"""
    product = get_object_or_not_found(Product, pk)
    serializer = StockUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_quantity = product.stock_quantity
    product = services.update_stock(product, serializer.validated_data['quantity'])
    create_audit_log(request, 'stock_adjust', 'Product', product.id, object_name=product.name,
                     changes={'stock_quantity': {'old': old_quantity, 'new': product.stock_quantity}})
    return Response(ProductSerializer(product).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def product_restock(request, pk):
    """Add units to a product's stock"""
    product = get_object_or_not_found(Product, pk)
    serializer = StockUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_quantity = product.stock_quantity
    product = services.restock_product(product, serializer.validated_data['quantity'])
    create_audit_log(request, 'stock_adjust', 'Product', product.id, object_name=product.name,
                     changes={'restocked': serializer.validated_data['quantity'],
                              'stock_quantity': {'old': old_quantity, 'new': product.stock_quantity}})
    return Response(ProductSerializer(product).data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def product_status(request, pk):
    """Update product status"""
    product = get_object_or_404(Product, pk=pk)
    serializer = ProductStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    old_status = product.product_status
    product.product_status = serializer.validated_data['status']
    product.save(update_fields=['product_status', 'updated_at'])
    create_audit_log(request, 'status_change', 'Product', product.id, object_name=product.name,
                     changes={'product_status': {'old': old_status, 'new': product.product_status}})
    return Response(ProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_low_stock(request):
    """Products below the low stock threshold, lowest stock first"""
    threshold = parse_int(request.query_params.get('threshold'), 'threshold')
    queryset = services.low_stock_products(threshold)
    return Response(ProductListSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_out_of_stock(request):
    return Response(ProductListSerializer(services.out_of_stock_products(), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_reorder(request):
    return Response(ProductListSerializer(services.products_needing_reorder(), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_expired(request):
    return Response(ProductListSerializer(services.expired_products(), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_recent(request):
    """Products created in the last N days, optionally by category id or name"""
    days = parse_int(request.query_params.get('days'), 'days', default=30)
    if days <= 0:
        raise BusinessLogicException("days must be greater than zero")
    queryset = services.recent_products(days, request.query_params.get('category'))
    return paginated_response(request, queryset, ProductListSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_by_sku(request):
    """Look up a product by SKU"""
    sku = request.query_params.get('sku')
    if not sku:
        return Response({'error': 'sku parameter is required'}, status=status.HTTP_400_BAD_REQUEST)
    product = Product.objects.select_related('category').filter(sku=sku).first()
    if product is None:
        raise ResourceNotFoundException(resource_type='Product', field='SKU', value=sku)
    return Response(ProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_by_barcode(request):
    """Look up a product by barcode"""
    barcode = request.query_params.get('barcode')
    if not barcode:
        return Response({'error': 'barcode parameter is required'}, status=status.HTTP_400_BAD_REQUEST)
    product = Product.objects.select_related('category').filter(barcode=barcode).first()
    if product is None:
        raise ResourceNotFoundException(resource_type='Product', field='barcode', value=barcode)
    return Response(ProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_statistics(request):
    return Response(services.product_statistics())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_inventory_summary(request):
    """Stock health summary, optionally for one category"""
    return Response(services.inventory_summary(request.query_params.get('category')))
