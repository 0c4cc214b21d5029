"""
Purchase order workflow.

Orders are editable only while PENDING and move through the statuses in
``ALLOWED_TRANSITIONS``. Receiving goods adds the received quantities to
product stock.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from salesmgmt.catalog import services as catalog_services
from salesmgmt.core.exceptions import BusinessLogicException
from .models import PurchaseOrder, PurchaseOrderItem

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')

ALLOWED_TRANSITIONS = {
    'PENDING': ('APPROVED', 'CANCELLED'),
    'APPROVED': ('ORDERED', 'CANCELLED'),
    'ORDERED': ('PARTIALLY_RECEIVED', 'RECEIVED'),
    'PARTIALLY_RECEIVED': ('RECEIVED',),
    'RECEIVED': (),
    'CANCELLED': (),
}


def calculate_item_totals(item):
    """Fill subtotal, discount, tax and total on a purchase order item"""
    item.subtotal = (item.unit_cost * item.quantity).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    item.discount_amount = Decimal('0.00')
    if item.discount_percentage and item.discount_percentage > 0:
        item.discount_amount = (item.subtotal * item.discount_percentage / 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    after_discount = item.subtotal - item.discount_amount
    item.tax_amount = Decimal('0.00')
    if item.tax_percentage and item.tax_percentage > 0:
        item.tax_amount = (after_discount * item.tax_percentage / 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    item.total_price = after_discount + item.tax_amount
    return item


def generate_order_number():
    year = timezone.now().year
    count = PurchaseOrder.objects.filter(order_number__startswith=f"PO-{year}").count()
    return f"PO-{year}-{count + 1:03d}"


def build_items(items_data):
    if not items_data:
        raise BusinessLogicException("At least one item is required")

    items = []
    for item_data in items_data:
        if item_data['quantity'] <= 0:
            raise BusinessLogicException("Quantity must be greater than 0")
        if item_data['unit_cost'] <= 0:
            raise BusinessLogicException("Unit cost must be greater than 0")

        item = PurchaseOrderItem(
            product=item_data['product'],
            quantity=item_data['quantity'],
            unit_cost=item_data['unit_cost'],
            tax_percentage=item_data.get('tax_percentage') or Decimal('0.00'),
            discount_percentage=item_data.get('discount_percentage') or Decimal('0.00'),
            notes=item_data.get('notes'),
        )
        calculate_item_totals(item)

        expected_total = item_data.get('total_price')
        if expected_total is not None and item.total_price != expected_total:
            raise BusinessLogicException(f"Total price calculation mismatch for product: {item.product.name}")
        items.append(item)
    return items


def _validate_financials(order, data):
    """Client-supplied totals, when present, must match the computed ones"""
    if data.get('subtotal') is not None and order.subtotal != data['subtotal']:
        raise BusinessLogicException("Subtotal calculation mismatch")
    if data.get('total_amount') is not None and order.total_amount != data['total_amount']:
        raise BusinessLogicException("Total amount calculation mismatch")


def _apply_order_fields(order, data):
    for field in ('expected_delivery_date', 'priority', 'payment_terms', 'delivery_terms', 'shipping_address', 'notes'):
        if field in data and data[field] is not None:
            setattr(order, field, data[field])
    for field in ('tax_amount', 'discount_amount'):
        if data.get(field) is not None:
            setattr(order, field, data[field])


@transaction.atomic
def create_purchase_order(data, user=None):
    supplier = data['supplier']
    if supplier.status != 'ACTIVE':
        raise BusinessLogicException("Cannot create order for inactive supplier")

    items = build_items(data.get('items'))

    order = PurchaseOrder(
        order_number=generate_order_number(),
        supplier=supplier,
        order_date=data.get('order_date') or timezone.now(),
        created_by=user if user is not None and user.is_authenticated else None,
    )
    _apply_order_fields(order, data)

    # Terms default to the supplier's
    if not order.payment_terms and supplier.payment_terms:
        order.payment_terms = supplier.payment_terms
    if not order.delivery_terms and supplier.delivery_terms:
        order.delivery_terms = supplier.delivery_terms

    order.calculate_totals(items)
    _validate_financials(order, data)
    order.save()

    for item in items:
        item.purchase_order = order
    PurchaseOrderItem.objects.bulk_create(items)

    # Supplier statistics
    supplier.total_orders = F('total_orders') + 1
    supplier.total_amount = F('total_amount') + order.total_amount
    supplier.last_order_date = timezone.now()
    supplier.save(update_fields=['total_orders', 'total_amount', 'last_order_date', 'updated_at'])
    supplier.refresh_from_db()

    logger.info(f"Purchase order {order.order_number} created for supplier {supplier.pk} with total {order.total_amount}")
    return order


@transaction.atomic
def update_purchase_order(order, data):
    if not order.can_be_modified():
        raise BusinessLogicException(f"Cannot modify order with status: {order.status}")

    supplier = data.get('supplier')
    if supplier is not None and supplier.pk != order.supplier_id:
        if supplier.status != 'ACTIVE':
            raise BusinessLogicException("Cannot assign order to inactive supplier")
        order.supplier = supplier

    if data.get('order_date'):
        order.order_date = data['order_date']
    _apply_order_fields(order, data)

    if 'items' in data:
        items = build_items(data['items'])
        order.items.all().delete()
        for item in items:
            item.purchase_order = order
        PurchaseOrderItem.objects.bulk_create(items)
    else:
        items = list(order.items.all())

    order.calculate_totals(items)
    _validate_financials(order, data)
    order.save()
    return order


def delete_purchase_order(order):
    if not order.can_be_modified():
        raise BusinessLogicException(f"Cannot delete order with status: {order.status}")
    logger.info(f"Deleting purchase order {order.order_number}")
    order.delete()


def validate_status_transition(current_status, new_status):
    if new_status not in ALLOWED_TRANSITIONS.get(current_status, ()):
        raise BusinessLogicException(f"Invalid status transition from {current_status} to {new_status}")


def approve_purchase_order(order, user, approval_notes=None):
    if order.status != 'PENDING':
        raise BusinessLogicException("Only PENDING orders can be approved")
    order.status = 'APPROVED'
    order.approved_by = user
    order.approved_date = timezone.now()
    if approval_notes:
        order.notes = approval_notes
    order.save()
    logger.info(f"Purchase order {order.order_number} approved by {user.username}")
    return order


def update_purchase_order_status(order, new_status, notes=None, actual_delivery_date=None, user=None):
    """Move an order to a new status. Stock is only changed by ``receive_purchase_order``"""
    validate_status_transition(order.status, new_status)
    old_status = order.status
    order.status = new_status
    if notes:
        order.notes = notes
    if actual_delivery_date:
        order.actual_delivery_date = actual_delivery_date

    if new_status == 'APPROVED':
        order.approved_date = timezone.now()
        if user is not None and user.is_authenticated:
            order.approved_by = user
    elif new_status == 'RECEIVED' and not order.actual_delivery_date:
        order.actual_delivery_date = timezone.now()

    order.save()
    logger.info(f"Purchase order {order.order_number} status changed from {old_status} to {new_status}")
    return order


@transaction.atomic
def receive_purchase_order(order, received_items=None, actual_delivery_date=None):
    """
    Record received goods and add them to stock.

    ``received_items`` is a list of ``{'item_id', 'received_quantity'}``; when
    omitted every pending quantity is received.
    """
    if order.status not in ('ORDERED', 'PARTIALLY_RECEIVED'):
        raise BusinessLogicException(f"Cannot receive items for order with status: {order.status}")

    items = {item.id: item for item in order.items.select_related('product')}
    if received_items:
        quantities = {}
        for entry in received_items:
            if entry['item_id'] not in items:
                raise BusinessLogicException(f"Item {entry['item_id']} does not belong to order {order.order_number}")
            if entry['received_quantity'] <= 0:
                raise BusinessLogicException("Received quantity must be greater than 0")
            quantities[entry['item_id']] = quantities.get(entry['item_id'], 0) + entry['received_quantity']
    else:
        quantities = {item_id: item.pending_quantity for item_id, item in items.items() if item.pending_quantity > 0}

    for item_id, quantity in quantities.items():
        item = items[item_id]
        if quantity > item.pending_quantity:
            raise BusinessLogicException(
                f"Received quantity exceeds pending quantity for product: {item.product.name}"
            )
        item.received_quantity += quantity
        item.save(update_fields=['received_quantity'])
        product = catalog_services.increase_stock(item.product_id, quantity)
        product.last_restocked_date = timezone.now()
        product.save(update_fields=['last_restocked_date'])

    if all(item.is_fully_received for item in items.values()):
        order.status = 'RECEIVED'
        order.actual_delivery_date = actual_delivery_date or timezone.now()
    else:
        order.status = 'PARTIALLY_RECEIVED'
        if actual_delivery_date:
            order.actual_delivery_date = actual_delivery_date
    order.save()
    logger.info(f"Received {sum(quantities.values())} units for purchase order {order.order_number} ({order.status})")
    return order, quantities
