"""Return requests: policy window, quantity limits, approval and refunds"""
import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Q, Sum
from django.utils import timezone

from salesmgmt.catalog import services as catalog_services
from salesmgmt.core.cache_utils import invalidate_reports_cache
from salesmgmt.core.exceptions import BusinessLogicException
from salesmgmt.sales.models import SaleItem
from .models import Return, ReturnItem

logger = logging.getLogger(__name__)

OPEN_STATUSES = ('PENDING', 'APPROVED')


def return_policy_days():
    return getattr(settings, 'RETURN_POLICY_DAYS', 30)


def open_return_quantity(sale_item, exclude_return=None):
    """Units of a sale item tied up in open return requests"""
    queryset = ReturnItem.objects.filter(original_sale_item=sale_item, return_request__status__in=OPEN_STATUSES)
    if exclude_return is not None and exclude_return.pk is not None:
        queryset = queryset.exclude(return_request=exclude_return)
    return queryset.aggregate(total=Sum('return_quantity'))['total'] or 0


def _build_items(return_request, sale, items_data):
    if not items_data:
        raise BusinessLogicException("Return must contain at least one item")

    items = []
    for item_data in items_data:
        sale_item = item_data['original_sale_item']
        if sale_item.sale_id != sale.pk:
            raise BusinessLogicException(
                f"Sale item {sale_item.pk} does not belong to sale {sale.sale_number}"
            )
        product = item_data.get('product') or sale_item.product
        quantity = item_data['return_quantity']
        available = sale_item.remaining_quantity - open_return_quantity(sale_item, exclude_return=return_request)
        if quantity <= 0 or quantity > available:
            raise BusinessLogicException(f"Invalid return quantity for product: {product.name}")

        restocking_fee = item_data.get('restocking_fee') or Decimal('0.00')
        if restocking_fee < 0:
            raise BusinessLogicException("Restocking fee cannot be negative")

        condition = item_data.get('item_condition')
        is_restockable = item_data.get('is_restockable')
        if is_restockable is None:
            is_restockable = condition not in ReturnItem.NON_RESTOCKABLE_CONDITIONS

        item = ReturnItem(
            return_request=return_request,
            original_sale_item=sale_item,
            product=product,
            return_quantity=quantity,
            original_unit_price=item_data.get('original_unit_price') or sale_item.unit_price,
            restocking_fee=restocking_fee,
            item_condition=condition,
            condition_notes=item_data.get('condition_notes'),
            serial_numbers=item_data.get('serial_numbers'),
            is_restockable=is_restockable,
            disposal_reason=item_data.get('disposal_reason'),
        )
        item.calculate_refund_amount()
        items.append(item)
    return items


@transaction.atomic
def create_return(data):
    sale = data['original_sale']
    if sale.status != 'COMPLETED':
        raise BusinessLogicException("Returns can only be created for completed sales")

    customer = data.get('customer') or sale.customer
    if customer.pk != sale.customer_id:
        raise BusinessLogicException("Customer does not match the original sale")

    return_request = Return(
        original_sale=sale,
        customer=customer,
        reason=data['reason'],
        notes=data.get('notes'),
    )
    days = return_policy_days()
    if not return_request.is_within_return_period(days):
        raise BusinessLogicException(f"Return request is outside the allowed return period of {days} days")

    items = _build_items(return_request, sale, data.get('items'))
    return_request.total_refund_amount = sum((item.refund_amount for item in items), Decimal('0.00'))
    return_request.save()
    ReturnItem.objects.bulk_create(items)

    logger.info(
        f"Return {return_request.return_number} created for sale {sale.sale_number} "
        f"with refund {return_request.total_refund_amount}"
    )
    return return_request


@transaction.atomic
def update_return(return_request, data):
    if not return_request.can_be_modified():
        raise BusinessLogicException(f"Return cannot be modified in current status: {return_request.status}")

    for field in ('reason', 'notes'):
        if data.get(field) is not None:
            setattr(return_request, field, data[field])

    if data.get('items'):
        items = _build_items(return_request, return_request.original_sale, data['items'])
        return_request.items.all().delete()
        ReturnItem.objects.bulk_create(items)
        return_request.total_refund_amount = sum((item.refund_amount for item in items), Decimal('0.00'))
    elif data.get('total_refund_amount') is not None:
        if data['total_refund_amount'] < 0:
            raise BusinessLogicException("Total refund amount cannot be negative")
        return_request.total_refund_amount = data['total_refund_amount']

    return_request.save()
    return return_request


def delete_return(return_request):
    if not return_request.can_be_modified():
        raise BusinessLogicException(f"Cannot delete return in current status: {return_request.status}")
    logger.info(f"Deleting return {return_request.return_number}")
    return_request.delete()


def approve_return(return_request, approved_by):
    if return_request.status != 'PENDING':
        raise BusinessLogicException(f"Return cannot be approved in current status: {return_request.status}")
    return_request.status = 'APPROVED'
    return_request.processed_by = approved_by
    return_request.processed_date = timezone.now()
    return_request.save()
    logger.info(f"Return {return_request.return_number} approved by {approved_by}")
    return return_request


def reject_return(return_request, rejected_by, rejection_reason=None):
    if return_request.status != 'PENDING':
        raise BusinessLogicException(f"Return cannot be rejected in current status: {return_request.status}")
    return_request.status = 'REJECTED'
    return_request.processed_by = rejected_by
    return_request.processed_date = timezone.now()
    if rejection_reason:
        prefix = f"{return_request.notes}\n" if return_request.notes else ''
        return_request.notes = f"{prefix}Rejection reason: {rejection_reason}"
    return_request.save()
    logger.warning(f"Return {return_request.return_number} rejected by {rejected_by}: {rejection_reason}")
    return return_request


@transaction.atomic
def process_refund(return_request, refund_method, refund_reference=None):
    """Refund an approved return, restocking restockable items"""
    if return_request.status != 'APPROVED':
        raise BusinessLogicException("Return must be approved before processing refund")

    restocked = 0
    for item in return_request.items.all():
        sale_item = SaleItem.objects.select_for_update().get(pk=item.original_sale_item_id)
        if sale_item.returned_quantity + item.return_quantity > sale_item.quantity:
            raise BusinessLogicException(
                f"Refund would return more units than were sold for sale item {sale_item.pk}"
            )
        sale_item.returned_quantity += item.return_quantity
        sale_item.is_returned = sale_item.returned_quantity >= sale_item.quantity
        sale_item.save(update_fields=['returned_quantity', 'is_returned'])
        if item.is_restockable:
            catalog_services.increase_stock(item.product_id, item.return_quantity)
            restocked += item.return_quantity

    return_request.status = 'REFUNDED'
    return_request.refund_method = refund_method
    return_request.refund_reference = refund_reference
    return_request.refund_date = timezone.now()
    return_request.save()
    invalidate_reports_cache()
    logger.info(
        f"Refunded return {return_request.return_number} ({return_request.total_refund_amount} via {refund_method}), "
        f"{restocked} units restocked"
    )
    return return_request


def search_returns(term, queryset=None):
    if queryset is None:
        queryset = Return.objects.all()
    return queryset.filter(
        Q(return_number__icontains=term) |
        Q(customer__name__icontains=term) |
        Q(original_sale__sale_number__icontains=term)
    )
