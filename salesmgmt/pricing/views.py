from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from salesmgmt.catalog.models import Category, Product
from salesmgmt.core.exceptions import BusinessLogicException
from salesmgmt.core.utils import (
    apply_sorting, create_audit_log, get_object_or_not_found, paginated_response, parse_bool,
)
from .models import Promotion
from .serializers import PromotionSerializer, DiscountCalculationSerializer
from . import services

PROMOTION_SORT_FIELDS = (
    'id', 'name', 'type', 'discount_value', 'start_date', 'end_date', 'is_active', 'usage_count', 'coupon_code',
    'created_at', 'updated_at',
)


def _promotion_queryset():
    return Promotion.objects.prefetch_related('applicable_products', 'applicable_categories')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def promotion_list_create(request):
    """List promotions or create a new promotion"""
    if request.method == 'GET':
        queryset = _promotion_queryset()
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            queryset = queryset.filter(is_active=parse_bool(is_active))
        promotion_type = request.query_params.get('type')
        if promotion_type:
            queryset = queryset.filter(type=promotion_type.upper())
        search = request.query_params.get('search')
        if search:
            queryset = services.search_promotions(search, queryset)
        queryset = apply_sorting(request, queryset, PROMOTION_SORT_FIELDS, ('-created_at',))
        return paginated_response(request, queryset, PromotionSerializer)

    serializer = PromotionSerializer(data=request.data)
    if serializer.is_valid():
        services.normalize_promotion_data(serializer.validated_data, creating=True)
        services.validate_promotion(serializer.validated_data)
        promotion = serializer.save()
        create_audit_log(request, 'create', 'Promotion', promotion.id, object_name=promotion.name,
                         object_reference=promotion.coupon_code)
        return Response(PromotionSerializer(promotion).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def promotion_detail(request, pk):
    """Retrieve, update or delete a promotion"""
    promotion = get_object_or_not_found(_promotion_queryset(), pk, 'Promotion')

    if request.method == 'GET':
        return Response(PromotionSerializer(promotion).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = PromotionSerializer(promotion, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        services.normalize_promotion_data(serializer.validated_data)
        services.validate_promotion(serializer.validated_data, instance=promotion)
        promotion = serializer.save()
        create_audit_log(request, 'update', 'Promotion', promotion.id, object_name=promotion.name,
                         changes={k: str(v) for k, v in request.data.items()})
        return Response(PromotionSerializer(promotion).data)

    promotion_id, name = promotion.id, promotion.name
    services.delete_promotion(promotion)
    create_audit_log(request, 'delete', 'Promotion', promotion_id, object_name=name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def promotion_active(request):
    """Promotions that are switched on and within their date range"""
    queryset = services.active_promotions().prefetch_related('applicable_products', 'applicable_categories')
    return Response(PromotionSerializer(queryset.order_by('end_date'), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def promotion_available(request):
    """Active promotions that still have usage left"""
    queryset = services.available_promotions().prefetch_related('applicable_products', 'applicable_categories')
    return Response(PromotionSerializer(queryset.order_by('end_date'), many=True).data)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
def promotion_activate(request, pk):
    promotion = get_object_or_404(Promotion, pk=pk)
    promotion = services.set_active(promotion, True)
    create_audit_log(request, 'status_change', 'Promotion', promotion.id, object_name=promotion.name,
                     changes={'is_active': True})
    return Response(PromotionSerializer(promotion).data)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
def promotion_deactivate(request, pk):
    promotion = get_object_or_404(Promotion, pk=pk)
    promotion = services.set_active(promotion, False)
    create_audit_log(request, 'status_change', 'Promotion', promotion.id, object_name=promotion.name,
                     changes={'is_active': False})
    return Response(PromotionSerializer(promotion).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def promotion_validate_coupon(request):
    """Check that a coupon code can be redeemed right now"""
    code = request.query_params.get('code') or request.data.get('code') or request.data.get('coupon_code')
    if not code:
        return Response({'error': 'code parameter is required'}, status=status.HTTP_400_BAD_REQUEST)
    promotion = services.validate_coupon(code)
    return Response(PromotionSerializer(promotion).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def promotion_calculate_discount(request, pk):
    """Discount a promotion would give on an order amount"""
    promotion = get_object_or_not_found(Promotion, pk)
    serializer = DiscountCalculationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    if not promotion.is_currently_active:
        raise BusinessLogicException("Promotion is not currently active")
    order_amount = serializer.validated_data['order_amount']
    discount = services.calculate_order_discount(promotion, order_amount)
    return Response({
        'promotion_id': promotion.id,
        'order_amount': order_amount,
        'discount_amount': discount,
        'final_amount': order_amount - discount,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def promotion_for_product(request, product_id):
    product = get_object_or_not_found(Product, product_id)
    queryset = services.promotions_for_product(product).prefetch_related('applicable_products', 'applicable_categories')
    return Response(PromotionSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def promotion_for_category(request, category_id):
    category = get_object_or_not_found(Category, category_id)
    queryset = services.promotions_for_category(category).prefetch_related('applicable_products', 'applicable_categories')
    return Response(PromotionSerializer(queryset, many=True).data)
