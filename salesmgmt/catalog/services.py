"""
Category and product business rules, including every stock movement.

Sales, returns and purchase receipts move stock through ``reduce_stock`` and
``increase_stock`` so the non-negative invariant is enforced in one place.
"""
import logging
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction
from django.db.models import Count, F, Q, Sum, Avg, DecimalField, ExpressionWrapper
from django.utils import timezone

from salesmgmt.core.cache_utils import invalidate_reports_cache
from salesmgmt.core.exceptions import (
    BusinessLogicException, DataIntegrityException, InsufficientStockException, ResourceNotFoundException,
)
from .models import Category, Product

logger = logging.getLogger(__name__)

STOCK_VALUE = ExpressionWrapper(F('price') * F('stock_quantity'), output_field=DecimalField(max_digits=20, decimal_places=2))


def _current(data, instance, field):
    if field in data:
        return data[field]
    return getattr(instance, field) if instance is not None else None


# Category rules

def validate_category(data, instance=None):
    name = _current(data, instance, 'name')
    if not name or not str(name).strip():
        raise BusinessLogicException("Category name is required")
    name = str(name).strip()
    others = Category.objects.exclude(pk=instance.pk) if instance is not None else Category.objects.all()
    if others.filter(name__iexact=name).exists():
        raise BusinessLogicException(f"Category with name '{name}' already exists")

    display_order = _current(data, instance, 'display_order')
    if display_order is not None and display_order < 0:
        raise BusinessLogicException("Display order cannot be negative")


def delete_category(category):
    product_count = category.products.count()
    if product_count > 0:
        raise DataIntegrityException.category_has_products(category.pk, product_count)
    logger.info(f"Deleting category {category.pk} ({category.name})")
    category.delete()


def categories_with_counts():
    return Category.objects.select_related('inventory').annotate(product_count=Count('products'))


# Product rules

def validate_product(data, instance=None):
    others = Product.objects.exclude(pk=instance.pk) if instance is not None else Product.objects.all()

    sku = _current(data, instance, 'sku')
    if sku and others.filter(sku=sku).exists():
        raise BusinessLogicException(f"SKU already exists: {sku}")

    barcode = _current(data, instance, 'barcode')
    if barcode and others.filter(barcode=barcode).exists():
        raise BusinessLogicException(f"Barcode already exists: {barcode}")

    price = _current(data, instance, 'price')
    if price is None or price <= 0:
        raise BusinessLogicException("Product price must be greater than zero")

    stock = _current(data, instance, 'stock_quantity')
    if stock is not None and stock < 0:
        raise BusinessLogicException("Stock quantity cannot be negative")

    cost_price = _current(data, instance, 'cost_price')
    if cost_price is not None and cost_price < 0:
        raise BusinessLogicException("Cost price cannot be negative")

    min_stock = _current(data, instance, 'min_stock_level')
    if min_stock is not None and min_stock < 0:
        raise BusinessLogicException("Minimum stock level cannot be negative")

    reorder_point = _current(data, instance, 'reorder_point')
    if reorder_point is not None and reorder_point < 0:
        raise BusinessLogicException("Reorder point cannot be negative")


def normalize_product_data(data):
    # Blank identifiers are stored as NULL so the unique constraints ignore them
    for field in ('sku', 'barcode'):
        if isinstance(data.get(field), str):
            data[field] = data[field].strip() or None
    return data


def delete_product(product):
    sale_item_count = product.sale_items.count()
    if sale_item_count > 0:
        raise DataIntegrityException.product_has_sale_items(product.pk, sale_item_count)
    return_item_count = product.return_items.count()
    if return_item_count > 0:
        raise DataIntegrityException.product_has_return_items(product.pk, return_item_count)
    logger.info(f"Deleting product {product.pk} ({product.name})")
    product.delete()
    invalidate_reports_cache()


def update_stock(product, quantity):
    """Set the stock level outright"""
    if quantity is None or quantity < 0:
        raise BusinessLogicException("Stock quantity cannot be negative")
    old_quantity = product.stock_quantity
    product.stock_quantity = quantity
    product.save(update_fields=['stock_quantity', 'updated_at'])
    logger.info(f"Stock for product {product.pk} set from {old_quantity} to {quantity}")
    invalidate_reports_cache()
    return product


def restock_product(product, quantity):
    if quantity is None or quantity <= 0:
        raise BusinessLogicException("Restock quantity must be greater than zero")
    with transaction.atomic():
        locked = Product.objects.select_for_update().get(pk=product.pk)
        locked.stock_quantity += quantity
        locked.last_restocked_date = timezone.now()
        locked.save(update_fields=['stock_quantity', 'last_restocked_date', 'updated_at'])
    logger.info(f"Restocked product {locked.pk} with {quantity} units (now {locked.stock_quantity})")
    invalidate_reports_cache()
    return locked


def lock_product(product_id):
    """Fetch a product row locked for the rest of the transaction"""
    product = Product.objects.select_for_update().filter(pk=product_id).first()
    if product is None:
        raise ResourceNotFoundException.for_id('Product', product_id)
    return product


def reduce_stock(product_id, quantity):
    """Decrement stock, refusing to go below zero. Call inside transaction.atomic"""
    product = lock_product(product_id)
    if product.stock_quantity < quantity:
        raise InsufficientStockException(product.name, product.stock_quantity, quantity)
    product.stock_quantity -= quantity
    product.save(update_fields=['stock_quantity', 'updated_at'])
    return product


def increase_stock(product_id, quantity):
    """Increment stock for cancellations, refunds and receipts. Call inside transaction.atomic"""
    product = lock_product(product_id)
    product.stock_quantity += quantity
    product.save(update_fields=['stock_quantity', 'updated_at'])
    return product


def low_stock_products(threshold=None):
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    return Product.objects.select_related('category').filter(stock_quantity__lt=threshold).order_by('stock_quantity', 'name')


def out_of_stock_products():
    return Product.objects.select_related('category').filter(stock_quantity__lte=0).order_by('name')


def products_needing_reorder():
    return Product.objects.select_related('category').filter(stock_quantity__lte=F('reorder_point')).order_by('stock_quantity')


def expired_products():
    return Product.objects.select_related('category').filter(expiry_date__lt=timezone.localdate()).order_by('expiry_date')


def recent_products(days=30, category=None):
    queryset = Product.objects.select_related('category').filter(
        created_at__gte=timezone.now() - timedelta(days=days)
    )
    if category:
        category = str(category).strip()
        if category.isdigit():
            queryset = queryset.filter(category_id=int(category))
        else:
            queryset = queryset.filter(category__name__iexact=category)
    return queryset.order_by('-created_at')


def product_statistics():
    """Counts and values over the whole catalog"""
    threshold = settings.LOW_STOCK_THRESHOLD
    aggregates = Product.objects.aggregate(
        total_products=Count('id'),
        total_value=Sum(STOCK_VALUE),
        low_stock_count=Count('id', filter=Q(stock_quantity__lt=threshold)),
        out_of_stock_count=Count('id', filter=Q(stock_quantity__lte=0)),
        average_price=Avg('price'),
    )
    average_price = aggregates['average_price']
    return {
        'totalProducts': aggregates['total_products'],
        'totalValue': aggregates['total_value'] or Decimal('0.00'),
        'lowStockCount': aggregates['low_stock_count'],
        'outOfStockCount': aggregates['out_of_stock_count'],
        'averagePrice': Decimal(str(average_price)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP) if average_price is not None else Decimal('0.00'),
    }


def inventory_summary(category=None):
    queryset = Product.objects.all()
    if category:
        category = str(category).strip()
        if category.isdigit():
            queryset = queryset.filter(category_id=int(category))
        else:
            queryset = queryset.filter(category__name__iexact=category)

    aggregates = queryset.aggregate(
        total_products=Count('id'),
        in_stock=Count('id', filter=Q(stock_quantity__gt=0)),
        out_of_stock=Count('id', filter=Q(stock_quantity__lte=0)),
        low_stock=Count('id', filter=Q(stock_quantity__gt=0, stock_quantity__lte=F('min_stock_level'))),
        needs_reorder=Count('id', filter=Q(stock_quantity__lte=F('reorder_point'))),
        total_value=Sum(STOCK_VALUE),
    )
    total = aggregates['total_products']
    in_stock = aggregates['in_stock']
    total_value = aggregates['total_value'] or Decimal('0.00')

    summary = {
        'total_products': total,
        'total_products_in_stock': in_stock,
        'out_of_stock_products': aggregates['out_of_stock'],
        'low_stock_alerts': aggregates['low_stock'],
        'products_needing_reorder': aggregates['needs_reorder'],
        'total_stock_value': total_value,
        'out_of_stock_percentage': round(aggregates['out_of_stock'] * 100.0 / total, 2) if total else 0.0,
        'low_stock_percentage': round(aggregates['low_stock'] * 100.0 / total, 2) if total else 0.0,
        'average_stock_value_per_product': (
            (total_value / in_stock).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP) if in_stock else Decimal('0.00')
        ),
        'last_updated': timezone.now(),
    }
    summary['is_inventory_healthy'] = (
        summary['out_of_stock_percentage'] < 5.0 and summary['low_stock_percentage'] < 15.0
    )
    if category:
        summary['category'] = category
    return summary
