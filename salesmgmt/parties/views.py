from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from salesmgmt.core.exceptions import ResourceNotFoundException
from salesmgmt.core.utils import (
    apply_sorting, create_audit_log, filter_date_range, get_object_or_not_found, is_admin_user, paginated_response,
    parse_bool,
    parse_datetime_param, parse_decimal,
)
from .models import Customer, Supplier
from .serializers import (
    CustomerSerializer, CustomerListSerializer, CustomerStatusSerializer, CustomerTypeSerializer,
    CreditLimitSerializer, LoyaltyPointsSerializer, SupplierSerializer, SupplierRatingSerializer,
)
from . import services

CUSTOMER_SORT_FIELDS = (
    'id', 'name', 'first_name', 'last_name', 'email', 'phone', 'customer_type', 'customer_status',
    'total_purchases', 'loyalty_points', 'last_purchase_date', 'created_at', 'updated_at',
)
SUPPLIER_SORT_FIELDS = (
    'id', 'name', 'contact_person', 'email', 'city', 'country', 'rating', 'status', 'total_orders', 'total_amount',
    'last_order_date', 'created_at', 'updated_at',
)


# Customer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def customer_list_create(request):
    """List active customers or create a new customer"""
    if request.method == 'GET':
        queryset = Customer.objects.not_deleted()

        customer_type = request.query_params.get('customer_type')
        if customer_type:
            queryset = queryset.filter(customer_type=customer_type.upper())
        customer_status = request.query_params.get('customer_status')
        if customer_status:
            queryset = queryset.filter(customer_status=customer_status.upper())

        queryset = filter_date_range(
            queryset, 'created_at',
            parse_datetime_param(request.query_params.get('created_from'), 'created_from'),
            parse_datetime_param(request.query_params.get('created_to'), 'created_to'),
        )

        search = request.query_params.get('search')
        if search:
            queryset = services.search_customers(search, queryset)

        queryset = apply_sorting(request, queryset, CUSTOMER_SORT_FIELDS, ('-created_at',))
        return paginated_response(request, queryset, CustomerListSerializer)

    serializer = CustomerSerializer(data=request.data)
    if serializer.is_valid():
        services.prepare_customer_data(serializer.validated_data)
        customer = serializer.save()
        create_audit_log(request, 'create', 'Customer', customer.id, object_name=customer.name)
        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer

    DELETE is a soft delete unless ?force=true is passed by an admin, which
    removes the customer together with its sales and returns.
    """
    if request.method == 'DELETE':
        customer = get_object_or_not_found(Customer, pk)
        if parse_bool(request.query_params.get('force')):
            if not is_admin_user(request.user):
                return Response({'error': 'Only administrators can force delete customers'},
                                status=status.HTTP_403_FORBIDDEN)
            customer_id, name = customer.id, customer.name
            counts = services.hard_delete_customer(customer)
            create_audit_log(request, 'delete', 'Customer', customer_id, object_name=name,
                             changes={'force': True, **counts})
            return Response(status=status.HTTP_204_NO_CONTENT)

        if customer.is_deleted:
            raise ResourceNotFoundException.for_id('Customer', pk)
        services.delete_customer(customer, request.user.username, request.query_params.get('reason'))
        create_audit_log(request, 'delete', 'Customer', customer.id, object_name=customer.name,
                         changes={'soft_delete': True, 'reason': customer.deletion_reason})
        return Response(status=status.HTTP_204_NO_CONTENT)

    customer = get_object_or_not_found(Customer.objects.not_deleted(), pk, 'Customer')

    if request.method == 'GET':
        return Response(CustomerSerializer(customer).data)

    # PUT and PATCH both apply only the submitted fields
    serializer = CustomerSerializer(customer, data=request.data, partial=True)
    if serializer.is_valid():
        services.prepare_customer_data(serializer.validated_data, instance=customer)
        customer = serializer.save()
        create_audit_log(request, 'update', 'Customer', customer.id, object_name=customer.name,
                         changes={k: str(v) for k, v in request.data.items()})
        return Response(CustomerSerializer(customer).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def customer_restore(request, pk):
    """Restore a soft-deleted customer"""
    customer = get_object_or_not_found(Customer, pk)
    customer = services.restore_customer(customer)
    create_audit_log(request, 'restore', 'Customer', customer.id, object_name=customer.name)
    return Response(CustomerSerializer(customer).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_search(request):
    """Search active customers by name, email, phone or company"""
    query = request.query_params.get('q') or request.query_params.get('query')
    if not query:
        return Response({'error': 'q parameter is required'}, status=status.HTTP_400_BAD_REQUEST)
    return paginated_response(request, services.search_customers(query).order_by('name'), CustomerListSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_deleted(request):
    """List soft-deleted customers"""
    queryset = Customer.objects.deleted().order_by('-deleted_at')
    return paginated_response(request, queryset, CustomerSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_by_email(request):
    email = request.query_params.get('email')
    if not email:
        return Response({'error': 'email parameter is required'}, status=status.HTTP_400_BAD_REQUEST)
    customer = Customer.objects.not_deleted().filter(email__iexact=email).first()
    if customer is None:
        raise ResourceNotFoundException(resource_type='Customer', field='email', value=email)
    return Response(CustomerSerializer(customer).data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def customer_status(request, pk):
    """Update customer status"""
    customer = get_object_or_404(Customer, pk=pk, is_deleted=False)
    serializer = CustomerStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    old_status = customer.customer_status
    customer.customer_status = serializer.validated_data['status']
    customer.save(update_fields=['customer_status', 'updated_at'])
    create_audit_log(request, 'status_change', 'Customer', customer.id, object_name=customer.name,
                     changes={'customer_status': {'old': old_status, 'new': customer.customer_status}})
    return Response(CustomerSerializer(customer).data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def customer_type(request, pk):
    """Update customer type"""
    customer = get_object_or_404(Customer, pk=pk, is_deleted=False)
    serializer = CustomerTypeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    old_type = customer.customer_type
    customer.customer_type = serializer.validated_data['type']
    customer.save(update_fields=['customer_type', 'updated_at'])
    create_audit_log(request, 'update', 'Customer', customer.id, object_name=customer.name,
                     changes={'customer_type': {'old': old_type, 'new': customer.customer_type}})
    return Response(CustomerSerializer(customer).data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def customer_credit_limit(request, pk):
    customer = get_object_or_404(Customer, pk=pk, is_deleted=False)
    serializer = CreditLimitSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    customer = services.update_credit_limit(customer, serializer.validated_data['credit_limit'])
    return Response(CustomerSerializer(customer).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def customer_loyalty_points(request, pk):
    """Add loyalty points to a customer"""
    customer = get_object_or_404(Customer, pk=pk, is_deleted=False)
    serializer = LoyaltyPointsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    customer = services.add_loyalty_points(customer, serializer.validated_data['points'])
    return Response(CustomerSerializer(customer).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_vip(request):
    return Response(CustomerListSerializer(services.vip_customers(), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_outstanding_balance(request):
    return Response(CustomerListSerializer(services.customers_with_outstanding_balance(), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_statistics(request):
    return Response(services.customer_statistics())


# Supplier views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def supplier_list_create(request):
    """List suppliers or create a new supplier"""
    if request.method == 'GET':
        search = request.query_params.get('search')
        queryset = services.search_suppliers(search) if search else Supplier.objects.all()
        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter.upper())
        queryset = apply_sorting(request, queryset, SUPPLIER_SORT_FIELDS, ('name',))
        return paginated_response(request, queryset, SupplierSerializer)

    serializer = SupplierSerializer(data=request.data)
    if serializer.is_valid():
        data = services.normalize_supplier_data(serializer.validated_data)
        services.validate_supplier(data)
        supplier = serializer.save()
        create_audit_log(request, 'create', 'Supplier', supplier.id, object_name=supplier.name)
        return Response(SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    supplier = get_object_or_not_found(Supplier, pk)

    if request.method == 'GET':
        return Response(SupplierSerializer(supplier).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            data = services.normalize_supplier_data(serializer.validated_data)
            services.validate_supplier(data, instance=supplier)
            supplier = serializer.save()
            create_audit_log(request, 'update', 'Supplier', supplier.id, object_name=supplier.name)
            return Response(SupplierSerializer(supplier).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    supplier_id, name = supplier.id, supplier.name
    services.delete_supplier(supplier)
    create_audit_log(request, 'delete', 'Supplier', supplier_id, object_name=name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def supplier_rating(request, pk):
    supplier = get_object_or_not_found(Supplier, pk)
    serializer = SupplierRatingSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    supplier = services.update_supplier_rating(supplier, serializer.validated_data['rating'])
    return Response(SupplierSerializer(supplier).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def supplier_top_rated(request):
    """Suppliers rated at or above min_rating (default 4.0)"""
    min_rating = float(parse_decimal(request.query_params.get('min_rating'), 'min_rating', default=4))
    queryset = Supplier.objects.filter(rating__gte=min_rating).order_by('-rating')
    return Response(SupplierSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def supplier_high_value(request):
    """Suppliers whose order total is at least min_amount (default 10000)"""
    min_amount = parse_decimal(request.query_params.get('min_amount'), 'min_amount', default=10000)
    queryset = Supplier.objects.filter(total_amount__gte=min_amount).order_by('-total_amount')
    return Response(SupplierSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def supplier_analytics(request):
    return Response(services.supplier_analytics())
