"""
Sale lifecycle: creation with stock reduction, promotion application,
completion, cancellation and item returns.

Totals follow one formula everywhere:

    final_total = subtotal - promotion discounts - manual discount + tax + shipping

and ``total_amount`` always equals ``final_total``.
"""
import logging
from collections import defaultdict
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import Count, F
from django.utils import timezone

from salesmgmt.catalog import services as catalog_services
from salesmgmt.catalog.models import Product
from salesmgmt.core.cache_utils import invalidate_reports_cache
from salesmgmt.core.exceptions import BusinessLogicException, DataIntegrityException, ResourceNotFoundException
from salesmgmt.parties.models import Customer
from salesmgmt.pricing import services as pricing_services
from salesmgmt.pricing.models import Promotion
from salesmgmt.returns.services import open_return_quantity
from .models import AppliedPromotion, Sale, SaleItem

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
TWO_PLACES = Decimal('0.01')
LOYALTY_POINTS_PER_AMOUNT = Decimal('10')
DEFAULT_HIGH_VALUE_AMOUNT = Decimal('1000')

SALE_FIELDS = (
    'reference_number', 'discount_percentage', 'discount_amount', 'tax_percentage', 'tax_amount',
    'shipping_cost', 'payment_method', 'sale_type', 'billing_address', 'shipping_address', 'sales_person',
    'sales_channel', 'due_date', 'expected_delivery_date', 'notes', 'internal_notes', 'terms',
    'warranty_info', 'is_gift', 'gift_message', 'loyalty_points_used', 'currency', 'exchange_rate',
)


def _money(value):
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def calculate_item_totals(item):
    item.subtotal = _money(item.unit_price * item.quantity)
    item.discount_amount = ZERO
    if item.discount_percentage and item.discount_percentage > 0:
        item.discount_amount = _money(item.subtotal * item.discount_percentage / 100)
    after_discount = item.subtotal - item.discount_amount
    item.tax_amount = ZERO
    if item.tax_percentage and item.tax_percentage > 0:
        item.tax_amount = _money(after_discount * item.tax_percentage / 100)
    item.total_price = after_discount + item.tax_amount
    return item


def recalculate_totals(sale, items=None):
    """Recompute the sale header from its items and applied promotions"""
    if items is None:
        items = list(sale.items.all())
    applied = list(sale.applied_promotions.all()) if sale.pk else []

    sale.subtotal = sum((_money(item.unit_price * item.quantity) for item in items), ZERO)
    if sale.discount_percentage and sale.discount_percentage > 0:
        sale.discount_amount = _money(sale.subtotal * sale.discount_percentage / 100)
    manual_discount = sale.discount_amount or ZERO

    promotion_discount = sum((a.discount_amount for a in applied), ZERO)
    if sale.tax_percentage and sale.tax_percentage > 0:
        taxable = max(sale.subtotal - promotion_discount - manual_discount, ZERO)
        sale.tax_amount = _money(taxable * sale.tax_percentage / 100)

    sale.original_total = sale.subtotal
    sale.promotion_discount_amount = promotion_discount
    sale.final_total = max(
        sale.subtotal - promotion_discount - manual_discount + (sale.tax_amount or ZERO) + (sale.shipping_cost or ZERO),
        ZERO,
    )
    sale.total_amount = sale.final_total

    sale.cost_of_goods_sold = sum(((item.cost_price or ZERO) * item.quantity for item in items), ZERO)
    sale.profit_margin = sale.subtotal - promotion_discount - manual_discount - sale.cost_of_goods_sold
    return sale


def validate_sale_data(data, creating=True):
    items = data.get('items')
    if creating or items is not None:
        if not items:
            raise BusinessLogicException("Sale must contain at least one item")
        for item in items:
            if item['quantity'] <= 0:
                raise BusinessLogicException("Item quantity must be greater than zero")

    discount_percentage = data.get('discount_percentage')
    if discount_percentage is not None and (discount_percentage < 0 or discount_percentage > 100):
        raise BusinessLogicException("Discount percentage must be between 0 and 100")
    tax_percentage = data.get('tax_percentage')
    if tax_percentage is not None and tax_percentage < 0:
        raise BusinessLogicException("Tax percentage cannot be negative")
    shipping_cost = data.get('shipping_cost')
    if shipping_cost is not None and shipping_cost < 0:
        raise BusinessLogicException("Shipping cost cannot be negative")


def _build_items(sale, items_data):
    """Reserve stock and build unsaved sale items. Call inside transaction.atomic"""
    items = []
    for item_data in items_data:
        product = catalog_services.reduce_stock(item_data['product'].pk, item_data['quantity'])
        unit_price = item_data.get('unit_price') or product.price
        item = SaleItem(
            sale=sale,
            product=product,
            quantity=item_data['quantity'],
            unit_price=unit_price,
            original_unit_price=product.price,
            cost_price=product.cost_price,
            discount_percentage=item_data.get('discount_percentage') or ZERO,
            tax_percentage=item_data.get('tax_percentage') or ZERO,
            serial_numbers=item_data.get('serial_numbers'),
            notes=item_data.get('notes'),
            unit_of_measure=product.unit_of_measure or 'PCS',
        )
        items.append(calculate_item_totals(item))
    return items


def _restore_stock(items):
    for item in items:
        quantity = item.quantity - (item.returned_quantity or 0)
        if quantity > 0:
            catalog_services.increase_stock(item.product_id, quantity)


def _apply_sale_fields(sale, data):
    for field in SALE_FIELDS:
        if field in data and data[field] is not None:
            setattr(sale, field, data[field])


@transaction.atomic
def create_sale(data):
    validate_sale_data(data)
    customer = data['customer']

    loyalty_points_used = data.get('loyalty_points_used') or 0
    if loyalty_points_used > customer.loyalty_points:
        raise BusinessLogicException("Customer does not have enough loyalty points")

    sale = Sale(customer=customer)
    _apply_sale_fields(sale, data)
    if not sale.billing_address:
        sale.billing_address = customer.billing_address
    if not sale.shipping_address:
        sale.shipping_address = customer.shipping_address

    items = _build_items(sale, data['items'])
    recalculate_totals(sale, items)
    sale.save()
    SaleItem.objects.bulk_create(items)

    coupon_code = (data.get('coupon_code') or '').strip()
    if coupon_code:
        promotion = pricing_services.validate_coupon(coupon_code)
        apply_promotion(sale, promotion)
    else:
        auto_apply_promotions(sale)

    recalculate_totals(sale)
    sale.save()
    invalidate_reports_cache()
    logger.info(f"Sale {sale.sale_number} created for customer {customer.pk} with total {sale.total_amount}")
    return sale


def eligible_promotions(sale, items=None):
    if items is None:
        items = list(sale.items.select_related('product'))
    return [
        promotion for promotion in pricing_services.available_promotions().prefetch_related(
            'applicable_products', 'applicable_categories')
        if pricing_services.is_eligible_for_sale(promotion, sale.customer, items, sale.subtotal)
    ]


def apply_promotion(sale, promotion, auto_applied=False):
    """Attach a promotion to a pending sale and refresh its totals"""
    if sale.status != 'PENDING':
        raise BusinessLogicException("Can only apply promotions to pending sales")

    items = list(sale.items.select_related('product'))
    order_amount = sale.subtotal
    if not pricing_services.is_eligible_for_sale(promotion, sale.customer, items, order_amount):
        raise BusinessLogicException(f"Promotion is not eligible for this sale: {promotion.name}")

    applied = list(sale.applied_promotions.select_related('promotion'))
    if any(a.promotion_id == promotion.pk for a in applied):
        raise BusinessLogicException(f"Promotion is already applied to this sale: {promotion.name}")
    if applied:
        others_stackable = all(a.promotion is not None and a.promotion.stackable for a in applied)
        if not promotion.stackable or not others_stackable:
            raise BusinessLogicException("Promotion cannot be combined with other promotions on this sale")

    discount = pricing_services.calculate_discount(promotion, items, order_amount)
    if discount <= 0:
        raise BusinessLogicException("Promotion does not provide any discount for this order")

    AppliedPromotion.objects.create(
        sale=sale,
        promotion=promotion,
        promotion_name=promotion.name,
        promotion_type=promotion.type,
        coupon_code=promotion.coupon_code,
        discount_amount=discount,
        discount_percentage=promotion.discount_value if promotion.type == 'PERCENTAGE' else None,
        original_amount=order_amount,
        final_amount=order_amount - discount,
        is_auto_applied=auto_applied,
    )
    pricing_services.increment_usage(promotion)

    if sale.promotion_id is None:
        sale.promotion = promotion
    if not auto_applied and promotion.coupon_code:
        sale.coupon_code = promotion.coupon_code
    recalculate_totals(sale, items)
    sale.save()
    logger.info(f"Applied promotion {promotion.pk} to sale {sale.sale_number} with discount {discount}")
    return sale


def auto_apply_promotions(sale):
    """Apply eligible auto-apply promotions, largest discount first"""
    items = list(sale.items.select_related('product'))
    candidates = [
        promotion for promotion in pricing_services.auto_apply_candidates()
        if pricing_services.is_eligible_for_sale(promotion, sale.customer, items, sale.subtotal)
    ]
    candidates.sort(key=lambda p: pricing_services.calculate_discount(p, items, sale.subtotal), reverse=True)

    for promotion in candidates:
        try:
            with transaction.atomic():
                apply_promotion(sale, promotion, auto_applied=True)
        except BusinessLogicException as e:
            logger.warning(f"Failed to auto-apply promotion {promotion.pk} to sale {sale.sale_number}: {e}")
    return sale


@transaction.atomic
def remove_promotion(sale, promotion_id):
    if sale.status != 'PENDING':
        raise BusinessLogicException("Can only remove promotions from pending sales")

    applied = list(sale.applied_promotions.select_related('promotion'))
    if not applied:
        raise BusinessLogicException("No promotions applied to this sale")
    match = next((a for a in applied if a.promotion_id == promotion_id), None)
    if match is None:
        raise BusinessLogicException("Promotion not found in this sale")

    if match.promotion is not None:
        pricing_services.decrement_usage(match.promotion)
    match.delete()

    remaining = [a for a in applied if a.pk != match.pk]
    if sale.promotion_id == promotion_id:
        sale.promotion_id = remaining[0].promotion_id if remaining else None
    if not remaining:
        sale.coupon_code = None
    recalculate_totals(sale)
    sale.save()
    logger.info(f"Removed promotion {promotion_id} from sale {sale.sale_number}")
    return sale


def _release_promotions(sale):
    for applied in sale.applied_promotions.select_related('promotion'):
        if applied.promotion is not None:
            pricing_services.decrement_usage(applied.promotion)


@transaction.atomic
def complete_sale(sale):
    if sale.status == 'COMPLETED':
        raise BusinessLogicException("Sale is already completed")
    if sale.status == 'CANCELLED':
        raise BusinessLogicException("Cannot complete cancelled sale")

    # Points are only spent here, so another sale may have used them since creation
    customer = Customer.objects.select_for_update().get(pk=sale.customer_id)
    if (sale.loyalty_points_used or 0) > customer.loyalty_points:
        raise BusinessLogicException("Customer does not have enough loyalty points")

    now = timezone.now()
    points = int(sale.total_amount // LOYALTY_POINTS_PER_AMOUNT) if sale.total_amount > 0 else 0
    sale.status = 'COMPLETED'
    sale.loyalty_points_earned = points
    sale.save()

    Customer.objects.filter(pk=sale.customer_id).update(
        loyalty_points=F('loyalty_points') + points - (sale.loyalty_points_used or 0),
        total_purchases=F('total_purchases') + sale.total_amount,
        last_purchase_date=now,
    )
    for item in sale.items.all():
        Product.objects.filter(pk=item.product_id).update(
            total_sold=F('total_sold') + item.quantity,
            total_revenue=F('total_revenue') + item.subtotal,
            last_sold_date=now,
        )

    invalidate_reports_cache()
    logger.info(f"Sale {sale.sale_number} completed, {points} loyalty points earned")
    return sale


@transaction.atomic
def cancel_sale(sale):
    if sale.status == 'CANCELLED':
        raise BusinessLogicException("Sale is already cancelled")
    if sale.status == 'COMPLETED':
        raise BusinessLogicException("Cannot cancel completed sale")

    _restore_stock(list(sale.items.all()))
    _release_promotions(sale)
    sale.status = 'CANCELLED'
    sale.save()
    invalidate_reports_cache()
    logger.info(f"Sale {sale.sale_number} cancelled and stock restored")
    return sale


def update_sale_status(sale, new_status):
    if sale.status == new_status:
        return sale
    if sale.status == 'COMPLETED':
        raise BusinessLogicException("Cannot change status of completed sale")
    if sale.status == 'CANCELLED':
        raise BusinessLogicException("Cannot change status of cancelled sale")
    if new_status == 'COMPLETED':
        return complete_sale(sale)
    if new_status == 'CANCELLED':
        return cancel_sale(sale)
    raise BusinessLogicException(f"Invalid status transition from {sale.status} to {new_status}")


def _refresh_applied_promotions(sale, items):
    """Re-price applied promotions after the items changed, dropping those that no longer apply"""
    for applied in sale.applied_promotions.select_related('promotion'):
        promotion = applied.promotion
        discount = ZERO
        if promotion is not None and pricing_services.is_eligible_for_sale(promotion, sale.customer, items, sale.subtotal):
            discount = pricing_services.calculate_discount(promotion, items, sale.subtotal)
        if discount <= 0:
            if promotion is not None:
                pricing_services.decrement_usage(promotion)
            logger.info(f"Promotion {applied.promotion_id} no longer applies to sale {sale.sale_number}")
            applied.delete()
            continue
        applied.discount_amount = discount
        applied.original_amount = sale.subtotal
        applied.final_amount = sale.subtotal - discount
        applied.save(update_fields=['discount_amount', 'original_amount', 'final_amount'])


@transaction.atomic
def update_sale(sale, data):
    if sale.status in ('COMPLETED', 'CANCELLED'):
        raise BusinessLogicException("Cannot update completed or cancelled sales")
    validate_sale_data(data, creating=False)

    _apply_sale_fields(sale, data)
    if data.get('discount_percentage') is not None and 'discount_amount' not in data:
        sale.discount_amount = ZERO

    if data.get('items'):
        old_items = list(sale.items.all())
        _restore_stock(old_items)
        sale.items.all().delete()
        items = _build_items(sale, data['items'])
        SaleItem.objects.bulk_create(items)
        recalculate_totals(sale, items)
        _refresh_applied_promotions(sale, items)

    recalculate_totals(sale)
    sale.save()
    invalidate_reports_cache()
    return sale


@transaction.atomic
def delete_sale(sale):
    """Cancel a sale that has no returns; pending sales give their stock back"""
    if sale.status == 'COMPLETED':
        raise BusinessLogicException("Cannot delete completed sales")
    return_count = sale.returns.count()
    if return_count > 0:
        raise DataIntegrityException.sale_has_returns(sale.pk, return_count)

    if sale.status == 'PENDING':
        _restore_stock(list(sale.items.all()))
        _release_promotions(sale)
    sale.status = 'CANCELLED'
    sale.save()
    invalidate_reports_cache()
    logger.info(f"Sale {sale.sale_number} deleted (cancelled)")


def update_payment(sale, payment_method=None, payment_status=None):
    if payment_method:
        sale.payment_method = payment_method
    if payment_status:
        sale.payment_status = payment_status
        if payment_status == 'PAID':
            sale.mark_as_paid()
    sale.save()
    return sale


def update_delivery(sale, delivery_status, tracking_number=None, expected_delivery_date=None):
    sale.delivery_status = delivery_status
    if tracking_number is not None:
        sale.tracking_number = tracking_number
    if expected_delivery_date is not None:
        sale.expected_delivery_date = expected_delivery_date
    if delivery_status == 'DELIVERED':
        sale.delivery_date = timezone.now()
    sale.save()
    return sale


@transaction.atomic
def process_item_return(sale, item_id, return_quantity, return_reason=None):
    """Return part of a sale line directly, putting the units back in stock"""
    if sale.status == 'CANCELLED':
        raise BusinessLogicException("Cannot return items from a cancelled sale")
    item = sale.items.select_for_update().filter(pk=item_id).first()
    if item is None:
        raise ResourceNotFoundException.for_id('Sale item', item_id)
    if return_quantity is None or return_quantity <= 0:
        raise BusinessLogicException("Return quantity must be greater than zero")
    if return_quantity > item.remaining_quantity - open_return_quantity(item):
        raise BusinessLogicException("Return quantity exceeds available quantity for return")

    item.returned_quantity += return_quantity
    item.is_returned = item.returned_quantity >= item.quantity
    item.save(update_fields=['returned_quantity', 'is_returned'])
    catalog_services.increase_stock(item.product_id, return_quantity)

    sale.return_reason = return_reason
    sale.save(update_fields=['return_reason', 'updated_at'])
    invalidate_reports_cache()
    logger.info(f"Returned {return_quantity} x product {item.product_id} from sale {sale.sale_number}")
    return sale


# Lists and analytics

def default_range(start=None, end=None, days=30):
    end = end or timezone.now()
    start = start or end - timedelta(days=days)
    return start, end


def sales_in_range(start, end):
    return Sale.objects.filter(sale_date__gte=start, sale_date__lte=end)


def overdue_sales():
    return Sale.objects.select_related('customer').filter(
        due_date__lt=timezone.localdate()
    ).exclude(payment_status='PAID').exclude(status='CANCELLED').order_by('due_date')


def gift_sales():
    return Sale.objects.select_related('customer').filter(is_gift=True).order_by('-sale_date')


def high_value_sales(min_amount=None):
    if min_amount is None:
        min_amount = DEFAULT_HIGH_VALUE_AMOUNT
    return Sale.objects.select_related('customer').filter(total_amount__gte=min_amount).order_by('-total_amount')


def sales_analytics(start, end):
    sales = sales_in_range(start, end)
    completed = list(sales.filter(status='COMPLETED').select_related('customer'))

    total_revenue = sum((sale.total_amount for sale in completed), ZERO)
    average = _money(total_revenue / len(completed)) if completed else ZERO
    top_customers = defaultdict(int)
    for sale in completed:
        top_customers[sale.customer.name] += 1

    return {
        'totalSales': len(completed),
        'totalRevenue': total_revenue,
        'averageSaleAmount': average,
        'salesByStatus': {row['status']: row['count'] for row in sales.values('status').annotate(count=Count('id'))},
        'topCustomers': dict(top_customers),
    }


def daily_sales_summary(start, end):
    summary = defaultdict(lambda: ZERO)
    for sale in sales_in_range(start, end).filter(status='COMPLETED').only('sale_date', 'total_amount'):
        summary[timezone.localtime(sale.sale_date).date().isoformat()] += sale.total_amount
    return dict(sorted(summary.items()))


def product_performance(start, end):
    quantities = defaultdict(int)
    revenue = defaultdict(lambda: ZERO)
    items = SaleItem.objects.select_related('product').filter(
        sale__status='COMPLETED', sale__sale_date__gte=start, sale__sale_date__lte=end,
    )
    for item in items:
        quantities[item.product.name] += item.quantity
        revenue[item.product.name] += item.unit_price * item.quantity
    return {
        'productQuantities': dict(quantities),
        'productRevenue': dict(revenue),
    }


def promotion_by_id(promotion_id):
    promotion = Promotion.objects.filter(pk=promotion_id).first()
    if promotion is None:
        raise ResourceNotFoundException.for_id('Promotion', promotion_id)
    return promotion
