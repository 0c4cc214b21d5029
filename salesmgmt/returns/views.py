from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Prefetch
from salesmgmt.core.utils import (
    apply_sorting, create_audit_log, filter_date_range, get_object_or_not_found, paginated_response,
    parse_datetime_param,
)
from .models import Return, ReturnItem
from .serializers import ReturnSerializer, ReturnInputSerializer, RejectReturnSerializer, RefundSerializer
from . import services

RETURN_SORT_FIELDS = (
    'id', 'return_number', 'return_date', 'reason', 'status', 'total_refund_amount', 'processed_date', 'refund_date',
    'created_at', 'updated_at',
)


def _return_queryset():
    return Return.objects.select_related('customer', 'original_sale').prefetch_related(
        Prefetch('items', queryset=ReturnItem.objects.select_related('product'))
    )


def _return_response(return_request, status_code=status.HTTP_200_OK):
    return Response(ReturnSerializer(_return_queryset().get(pk=return_request.pk)).data, status=status_code)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def return_list_create(request):
    """List returns or create a return request"""
    if request.method == 'GET':
        queryset = _return_queryset()

        return_status = request.query_params.get('status')
        if return_status:
            queryset = queryset.filter(status=return_status.upper())
        customer = request.query_params.get('customer') or request.query_params.get('customer_id')
        if customer:
            queryset = queryset.filter(customer_id=customer)
        sale = request.query_params.get('sale') or request.query_params.get('original_sale')
        if sale:
            queryset = queryset.filter(original_sale_id=sale)

        queryset = filter_date_range(
            queryset, 'return_date',
            parse_datetime_param(request.query_params.get('start_date'), 'start_date'),
            parse_datetime_param(request.query_params.get('end_date'), 'end_date'),
        )

        search = request.query_params.get('search')
        if search:
            queryset = services.search_returns(search, queryset)

        queryset = apply_sorting(request, queryset, RETURN_SORT_FIELDS, ('-return_date',))
        return paginated_response(request, queryset, ReturnSerializer)

    serializer = ReturnInputSerializer(data=request.data)
    if serializer.is_valid():
        return_request = services.create_return(serializer.validated_data)
        create_audit_log(request, 'return', 'Return', return_request.id, object_name=return_request.return_number,
                         object_reference=return_request.original_sale.sale_number,
                         changes={'total_refund_amount': str(return_request.total_refund_amount)})
        return _return_response(return_request, status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def return_detail(request, pk):
    """Retrieve, update or delete a return request"""
    return_request = get_object_or_not_found(_return_queryset(), pk, 'Return')

    if request.method == 'GET':
        return Response(ReturnSerializer(return_request).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = ReturnInputSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return_request = services.update_return(return_request, serializer.validated_data)
        create_audit_log(request, 'update', 'Return', return_request.id, object_name=return_request.return_number,
                         changes={k: str(v) for k, v in request.data.items() if k != 'items'})
        return _return_response(return_request)

    return_id, number = return_request.id, return_request.return_number
    services.delete_return(return_request)
    create_audit_log(request, 'delete', 'Return', return_id, object_name=number)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
def return_approve(request, pk):
    return_request = get_object_or_not_found(Return, pk)
    return_request = services.approve_return(return_request, request.user.username)
    create_audit_log(request, 'status_change', 'Return', return_request.id,
                     object_name=return_request.return_number, changes={'status': 'APPROVED'})
    return _return_response(return_request)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
def return_reject(request, pk):
    return_request = get_object_or_not_found(Return, pk)
    serializer = RejectReturnSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return_request = services.reject_return(
        return_request, request.user.username, serializer.validated_data.get('rejection_reason')
    )
    create_audit_log(request, 'status_change', 'Return', return_request.id,
                     object_name=return_request.return_number, changes={'status': 'REJECTED'})
    return _return_response(return_request)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
def return_refund(request, pk):
    """Refund an approved return and restock its items"""
    return_request = get_object_or_not_found(Return, pk)
    serializer = RefundSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return_request = services.process_refund(
        return_request,
        serializer.validated_data['refund_method'],
        serializer.validated_data.get('refund_reference'),
    )
    create_audit_log(request, 'refund', 'Return', return_request.id, object_name=return_request.return_number,
                     changes={'refund_method': return_request.refund_method,
                              'amount': str(return_request.total_refund_amount)})
    return _return_response(return_request)
