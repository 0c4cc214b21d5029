"""Inventory (warehouse) business rules"""
import logging

from django.db.models import Count, Q

from salesmgmt.core.exceptions import BusinessLogicException, DataIntegrityException
from .models import Inventory

logger = logging.getLogger(__name__)


def validate_inventory(data, instance=None):
    """Validate warehouse data against uniqueness, dimension and work-time rules"""
    def current(field):
        if field in data:
            return data[field]
        return getattr(instance, field) if instance is not None else None

    name = current('name')
    if not name or not str(name).strip():
        raise BusinessLogicException("Inventory name is required")
    name = str(name).strip()
    others = Inventory.objects.exclude(pk=instance.pk) if instance is not None else Inventory.objects.all()
    if others.filter(name__iexact=name).exists():
        raise BusinessLogicException(f"Inventory with name '{name}' already exists")

    location = current('location')
    if not location or not str(location).strip():
        raise BusinessLogicException("Inventory location is required")

    code = current('warehouse_code')
    if code and str(code).strip() and others.filter(warehouse_code=str(code).strip()).exists():
        raise BusinessLogicException(f"Warehouse code '{code}' already exists")

    for dimension in ('length', 'width', 'height'):
        value = current(dimension)
        if value is not None and value <= 0:
            raise BusinessLogicException(f"Inventory {dimension} must be greater than 0")

    stock_count = current('current_stock_count')
    if stock_count is not None and stock_count < 0:
        raise BusinessLogicException("Current stock count cannot be negative")

    start, end = current('start_work_time'), current('end_work_time')
    if start is not None and end is not None and not start < end:
        raise BusinessLogicException("Start work time must be before end work time")

    if current('is_main_warehouse') and others.filter(is_main_warehouse=True).exists():
        raise BusinessLogicException(
            "Only one main warehouse is allowed. Please unset the current main warehouse first."
        )


def normalize_inventory_data(data):
    for field in ('name', 'location'):
        if isinstance(data.get(field), str):
            data[field] = data[field].strip()
    if isinstance(data.get('warehouse_code'), str):
        # Blank codes are stored as NULL so the unique constraint ignores them
        data['warehouse_code'] = data['warehouse_code'].strip() or None
    return data


def delete_inventory(inventory):
    category_count = inventory.categories.count()
    if category_count > 0:
        raise DataIntegrityException.inventory_has_categories(inventory.pk, category_count)
    logger.info(f"Deleting inventory {inventory.pk} ({inventory.name})")
    inventory.delete()


def with_category_counts(queryset=None):
    if queryset is None:
        queryset = Inventory.objects.all()
    return queryset.annotate(category_count=Count('categories'))


def search_inventories(term):
    return with_category_counts().filter(
        Q(name__icontains=term) |
        Q(location__icontains=term) |
        Q(description__icontains=term) |
        Q(manager_name__icontains=term) |
        Q(warehouse_code__icontains=term)
    )


def empty_inventories():
    return with_category_counts().filter(category_count=0)
