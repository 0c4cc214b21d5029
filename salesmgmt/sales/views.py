from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Prefetch
from salesmgmt.core.utils import (
    apply_sorting, create_audit_log, filter_date_range, get_object_or_not_found, paginated_response,
    parse_datetime_param, parse_decimal, parse_int,
)
from salesmgmt.pricing import services as pricing_services
from salesmgmt.pricing.serializers import PromotionSerializer
from .models import Sale, SaleItem
from .serializers import (
    SaleSerializer, SaleListSerializer, SaleInputSerializer, SaleStatusSerializer, PaymentSerializer,
    DeliverySerializer, ItemReturnSerializer, ApplyPromotionSerializer,
)
from . import services

SALE_SORT_FIELDS = (
    'id', 'sale_date', 'total_amount', 'status', 'sale_number', 'subtotal', 'payment_method', 'payment_status',
    'payment_date', 'due_date', 'sales_person', 'sale_type', 'delivery_status', 'created_at', 'updated_at',
)


def _sale_queryset():
    return Sale.objects.select_related('customer', 'promotion').prefetch_related(
        Prefetch('items', queryset=SaleItem.objects.select_related('product')),
        'applied_promotions',
    )


def _sale_response(sale, status_code=status.HTTP_200_OK):
    return Response(SaleSerializer(_sale_queryset().get(pk=sale.pk)).data, status=status_code)


def _date_range(request):
    return services.default_range(
        parse_datetime_param(request.query_params.get('start_date'), 'start_date'),
        parse_datetime_param(request.query_params.get('end_date'), 'end_date'),
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def sale_list_create(request):
    """List sales or create a new sale"""
    if request.method == 'GET':
        queryset = Sale.objects.select_related('customer')

        sale_status = request.query_params.get('status')
        if sale_status:
            queryset = queryset.filter(status=sale_status.upper())
        customer = request.query_params.get('customer') or request.query_params.get('customer_id')
        if customer:
            queryset = queryset.filter(customer_id=customer)
        payment_method = request.query_params.get('payment_method')
        if payment_method:
            queryset = queryset.filter(payment_method=payment_method.upper())
        payment_status = request.query_params.get('payment_status')
        if payment_status:
            queryset = queryset.filter(payment_status=payment_status.upper())

        queryset = filter_date_range(
            queryset, 'sale_date',
            parse_datetime_param(request.query_params.get('start_date'), 'start_date'),
            parse_datetime_param(request.query_params.get('end_date'), 'end_date'),
        )

        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(sale_number__icontains=search) | queryset.filter(customer__name__icontains=search)

        queryset = apply_sorting(request, queryset, SALE_SORT_FIELDS, ('-sale_date',))
        return paginated_response(request, queryset, SaleListSerializer)

    serializer = SaleInputSerializer(data=request.data)
    if serializer.is_valid():
        sale = services.create_sale(serializer.validated_data)
        create_audit_log(request, 'create', 'Sale', sale.id, object_name=sale.sale_number,
                         object_reference=sale.sale_number,
                         changes={'customer': sale.customer_id, 'total_amount': str(sale.total_amount)})
        return _sale_response(sale, status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def sale_detail(request, pk):
    """Retrieve, update or delete a sale"""
    sale = get_object_or_not_found(_sale_queryset(), pk, 'Sale')

    if request.method == 'GET':
        return Response(SaleSerializer(sale).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = SaleInputSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        sale = services.update_sale(sale, serializer.validated_data)
        create_audit_log(request, 'update', 'Sale', sale.id, object_name=sale.sale_number,
                         object_reference=sale.sale_number,
                         changes={'total_amount': str(sale.total_amount)})
        return _sale_response(sale)

    services.delete_sale(sale)
    create_audit_log(request, 'delete', 'Sale', sale.id, object_name=sale.sale_number,
                     object_reference=sale.sale_number)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
def sale_complete(request, pk):
    """Complete a pending sale"""
    sale = get_object_or_not_found(Sale, pk)
    sale = services.complete_sale(sale)
    create_audit_log(request, 'sale_complete', 'Sale', sale.id, object_name=sale.sale_number,
                     object_reference=sale.sale_number,
                     changes={'loyalty_points_earned': sale.loyalty_points_earned})
    return _sale_response(sale)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
def sale_cancel(request, pk):
    """Cancel a pending sale and restore its stock"""
    sale = get_object_or_not_found(Sale, pk)
    sale = services.cancel_sale(sale)
    create_audit_log(request, 'sale_cancel', 'Sale', sale.id, object_name=sale.sale_number,
                     object_reference=sale.sale_number)
    return _sale_response(sale)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def sale_status(request, pk):
    sale = get_object_or_not_found(Sale, pk)
    serializer = SaleStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    old_status = sale.status
    sale = services.update_sale_status(sale, serializer.validated_data['status'])
    create_audit_log(request, 'status_change', 'Sale', sale.id, object_name=sale.sale_number,
                     object_reference=sale.sale_number,
                     changes={'status': {'old': old_status, 'new': sale.status}})
    return _sale_response(sale)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def sale_payment(request, pk):
    """Update payment method and status"""
    sale = get_object_or_not_found(Sale, pk)
    serializer = PaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    sale = services.update_payment(sale, **serializer.validated_data)
    create_audit_log(request, 'update', 'Sale', sale.id, object_name=sale.sale_number,
                     object_reference=sale.sale_number,
                     changes={'payment_status': sale.payment_status, 'payment_method': sale.payment_method})
    return _sale_response(sale)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def sale_delivery(request, pk):
    """Update delivery status and tracking number"""
    sale = get_object_or_not_found(Sale, pk)
    serializer = DeliverySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    sale = services.update_delivery(sale, **serializer.validated_data)
    create_audit_log(request, 'update', 'Sale', sale.id, object_name=sale.sale_number,
                     object_reference=sale.sale_number,
                     changes={'delivery_status': sale.delivery_status, 'tracking_number': sale.tracking_number})
    return _sale_response(sale)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sale_item_return(request, pk, item_id):
    """Return units of a single sale item to stock"""
    sale = get_object_or_not_found(Sale, pk)
    serializer = ItemReturnSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    sale = services.process_item_return(
        sale, item_id,
        serializer.validated_data['return_quantity'],
        serializer.validated_data.get('return_reason'),
    )
    create_audit_log(request, 'return', 'Sale', sale.id, object_name=sale.sale_number,
                     object_reference=sale.sale_number,
                     changes={'item_id': item_id, 'quantity': serializer.validated_data['return_quantity']})
    return _sale_response(sale)


@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def sale_promotions(request, pk):
    """Apply a promotion (by coupon code or id) to a pending sale, or remove one"""
    sale = get_object_or_not_found(Sale.objects.select_related('customer'), pk, 'Sale')

    if request.method == 'DELETE':
        promotion_id = parse_int(
            request.query_params.get('promotion_id') or request.data.get('promotion_id'), 'promotion_id'
        )
        if promotion_id is None:
            return Response({'error': 'promotion_id is required'}, status=status.HTTP_400_BAD_REQUEST)
        sale = services.remove_promotion(sale, promotion_id)
        create_audit_log(request, 'promotion_remove', 'Sale', sale.id, object_name=sale.sale_number,
                         object_reference=sale.sale_number, changes={'promotion_id': promotion_id})
        return _sale_response(sale)

    serializer = ApplyPromotionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    if serializer.validated_data.get('coupon_code'):
        promotion = pricing_services.validate_coupon(serializer.validated_data['coupon_code'])
    else:
        promotion = services.promotion_by_id(serializer.validated_data['promotion_id'])
    sale = services.apply_promotion(sale, promotion)
    create_audit_log(request, 'promotion_apply', 'Sale', sale.id, object_name=sale.sale_number,
                     object_reference=sale.sale_number,
                     changes={'promotion_id': promotion.id, 'discount': str(sale.promotion_discount_amount)})
    return _sale_response(sale)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sale_eligible_promotions(request, pk):
    sale = get_object_or_not_found(Sale.objects.select_related('customer'), pk, 'Sale')
    return Response(PromotionSerializer(services.eligible_promotions(sale), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sale_overdue(request):
    return paginated_response(request, services.overdue_sales(), SaleListSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sale_gifts(request):
    return paginated_response(request, services.gift_sales(), SaleListSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sale_high_value(request):
    """Sales at or above ?min_amount (default 1000)"""
    min_amount = parse_decimal(request.query_params.get('min_amount'), 'min_amount')
    return paginated_response(request, services.high_value_sales(min_amount), SaleListSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sale_analytics(request):
    start, end = _date_range(request)
    return Response(services.sales_analytics(start, end))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sale_daily_summary(request):
    start, end = _date_range(request)
    return Response(services.daily_sales_summary(start, end))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sale_product_performance(request):
    start, end = _date_range(request)
    return Response(services.product_performance(start, end))
