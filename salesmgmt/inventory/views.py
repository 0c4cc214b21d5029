from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.shortcuts import get_object_or_404
from salesmgmt.core.exceptions import ResourceNotFoundException
from salesmgmt.core.utils import create_audit_log, get_object_or_not_found, paginated_response
from .models import Inventory
from .serializers import InventorySerializer, InventoryStatusSerializer
from . import services


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def inventory_list_create(request):
    """List inventories or create a new one"""
    if request.method == 'GET':
        search = request.query_params.get('search')
        queryset = services.search_inventories(search) if search else services.with_category_counts()
        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter.upper())
        return paginated_response(request, queryset.order_by('name'), InventorySerializer)

    serializer = InventorySerializer(data=request.data)
    if serializer.is_valid():
        data = services.normalize_inventory_data(serializer.validated_data)
        services.validate_inventory(data)
        inventory = serializer.save()
        create_audit_log(request, 'create', 'Inventory', inventory.id, object_name=inventory.name)
        return Response(InventorySerializer(inventory).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def inventory_detail(request, pk):
    """Retrieve, update or delete an inventory"""
    inventory = get_object_or_not_found(Inventory, pk)

    if request.method == 'GET':
        return Response(InventorySerializer(inventory).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = InventorySerializer(inventory, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            data = services.normalize_inventory_data(serializer.validated_data)
            services.validate_inventory(data, instance=inventory)
            inventory = serializer.save()
            create_audit_log(request, 'update', 'Inventory', inventory.id, object_name=inventory.name,
                             changes={k: str(v) for k, v in request.data.items()})
            return Response(InventorySerializer(inventory).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    with transaction.atomic():
        inventory_id, name = inventory.id, inventory.name
        services.delete_inventory(inventory)
        create_audit_log(request, 'delete', 'Inventory', inventory_id, object_name=name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_active(request):
    """List active inventories"""
    queryset = services.with_category_counts().filter(status='ACTIVE').order_by('name')
    return Response(InventorySerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_main(request):
    """List main warehouses"""
    queryset = services.with_category_counts().filter(is_main_warehouse=True)
    return Response(InventorySerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_empty(request):
    """List inventories without categories"""
    return Response(InventorySerializer(services.empty_inventories(), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_by_code(request, code):
    """Retrieve an inventory by warehouse code"""
    inventory = Inventory.objects.filter(warehouse_code=code).first()
    if inventory is None:
        raise ResourceNotFoundException(resource_type='Inventory', field='warehouse code', value=code)
    return Response(InventorySerializer(inventory).data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def inventory_status(request, pk):
    """Update inventory status"""
    inventory = get_object_or_404(Inventory, pk=pk)
    serializer = InventoryStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = inventory.status
    inventory.status = serializer.validated_data['status']
    inventory.save(update_fields=['status', 'updated_at'])
    create_audit_log(request, 'status_change', 'Inventory', inventory.id, object_name=inventory.name,
                     changes={'status': {'old': old_status, 'new': inventory.status}})
    return Response(InventorySerializer(inventory).data)
