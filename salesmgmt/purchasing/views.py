from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Prefetch
from salesmgmt.core.utils import (
    apply_sorting, create_audit_log, filter_date_range, get_object_or_not_found, paginated_response,
    parse_datetime_param,
)
from .models import PurchaseOrder, PurchaseOrderItem
from .serializers import (
    PurchaseOrderSerializer, PurchaseOrderInputSerializer, PurchaseOrderStatusSerializer,
    PurchaseOrderApproveSerializer, PurchaseOrderReceiveSerializer,
)
from . import services

PURCHASE_ORDER_SORT_FIELDS = (
    'id', 'order_number', 'order_date', 'expected_delivery_date', 'actual_delivery_date', 'total_amount', 'status',
    'priority', 'created_at', 'updated_at',
)


def _order_queryset():
    return PurchaseOrder.objects.select_related('supplier', 'created_by', 'approved_by').prefetch_related(
        Prefetch('items', queryset=PurchaseOrderItem.objects.select_related('product'))
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def purchase_order_list_create(request):
    """List purchase orders or create a new one"""
    if request.method == 'GET':
        queryset = _order_queryset()

        order_status = request.query_params.get('status')
        if order_status:
            queryset = queryset.filter(status=order_status.upper())
        supplier = request.query_params.get('supplier') or request.query_params.get('supplier_id')
        if supplier:
            queryset = queryset.filter(supplier_id=supplier)
        priority = request.query_params.get('priority')
        if priority:
            queryset = queryset.filter(priority=priority.upper())

        queryset = filter_date_range(
            queryset, 'order_date',
            parse_datetime_param(request.query_params.get('from_date'), 'from_date'),
            parse_datetime_param(request.query_params.get('to_date'), 'to_date'),
        )

        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(order_number__icontains=search)

        queryset = apply_sorting(request, queryset, PURCHASE_ORDER_SORT_FIELDS, ('-order_date',))
        return paginated_response(request, queryset, PurchaseOrderSerializer)

    serializer = PurchaseOrderInputSerializer(data=request.data)
    if serializer.is_valid():
        order = services.create_purchase_order(serializer.validated_data, request.user)
        create_audit_log(request, 'create', 'PurchaseOrder', order.id, object_name=order.order_number,
                         object_reference=order.order_number,
                         changes={'supplier': order.supplier_id, 'total_amount': str(order.total_amount)})
        order = _order_queryset().get(pk=order.pk)
        return Response(PurchaseOrderSerializer(order).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def purchase_order_detail(request, pk):
    """Retrieve, update or delete a purchase order"""
    order = get_object_or_not_found(_order_queryset(), pk, 'PurchaseOrder')

    if request.method == 'GET':
        return Response(PurchaseOrderSerializer(order).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = PurchaseOrderInputSerializer(data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        order = services.update_purchase_order(order, serializer.validated_data)
        create_audit_log(request, 'update', 'PurchaseOrder', order.id, object_name=order.order_number,
                         object_reference=order.order_number,
                         changes={'total_amount': str(order.total_amount)})
        order = _order_queryset().get(pk=order.pk)
        return Response(PurchaseOrderSerializer(order).data)

    order_id, order_number = order.id, order.order_number
    services.delete_purchase_order(order)
    create_audit_log(request, 'delete', 'PurchaseOrder', order_id, object_name=order_number,
                     object_reference=order_number)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PUT', 'POST'])
@permission_classes([IsAuthenticated])
def purchase_order_approve(request, pk):
    """Approve a pending purchase order"""
    order = get_object_or_not_found(PurchaseOrder, pk)
    serializer = PurchaseOrderApproveSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    order = services.approve_purchase_order(order, request.user, serializer.validated_data.get('approval_notes'))
    create_audit_log(request, 'po_approve', 'PurchaseOrder', order.id, object_name=order.order_number,
                     object_reference=order.order_number)
    return Response(PurchaseOrderSerializer(_order_queryset().get(pk=order.pk)).data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def purchase_order_status(request, pk):
    """Move a purchase order to another status"""
    order = get_object_or_not_found(PurchaseOrder, pk)
    serializer = PurchaseOrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    old_status = order.status
    order = services.update_purchase_order_status(
        order,
        serializer.validated_data['status'],
        notes=serializer.validated_data.get('notes'),
        actual_delivery_date=serializer.validated_data.get('actual_delivery_date'),
        user=request.user,
    )
    create_audit_log(request, 'status_change', 'PurchaseOrder', order.id, object_name=order.order_number,
                     object_reference=order.order_number,
                     changes={'status': {'old': old_status, 'new': order.status}})
    return Response(PurchaseOrderSerializer(_order_queryset().get(pk=order.pk)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def purchase_order_receive(request, pk):
    """Receive some or all pending items and add them to stock"""
    order = get_object_or_not_found(PurchaseOrder, pk)
    serializer = PurchaseOrderReceiveSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    order, received = services.receive_purchase_order(
        order,
        serializer.validated_data.get('items'),
        serializer.validated_data.get('actual_delivery_date'),
    )
    create_audit_log(request, 'po_receive', 'PurchaseOrder', order.id, object_name=order.order_number,
                     object_reference=order.order_number,
                     changes={'received': {str(k): v for k, v in received.items()}, 'status': order.status})
    return Response(PurchaseOrderSerializer(_order_queryset().get(pk=order.pk)).data)
