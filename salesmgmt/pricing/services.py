"""
Promotion discount engine.

A promotion is *currently active* when it is switched on, today falls
between its start and end dates and its usage limit has not been hit.
Discounts are computed over the line totals of the items a promotion
applies to; a promotion without product or category restrictions applies
to every item.
"""
import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.db.models import F, Q
from django.utils import timezone

from salesmgmt.core.exceptions import BusinessLogicException
from .models import Promotion

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
TWO_PLACES = Decimal('0.01')


def is_customer_eligible(promotion, customer):
    eligibility = promotion.customer_eligibility
    if eligibility == 'ALL':
        return True
    if customer is None:
        return False
    if eligibility == 'VIP_ONLY':
        return customer.customer_type == 'VIP'
    if eligibility == 'PREMIUM_ONLY':
        return customer.customer_type in ('PREMIUM', 'VIP')
    total_purchases = customer.total_purchases or ZERO
    if eligibility == 'NEW_CUSTOMERS':
        return total_purchases == 0
    if eligibility == 'RETURNING_CUSTOMERS':
        return total_purchases > 0
    return False


def _restrictions(promotion):
    product_ids = set(promotion.applicable_products.values_list('id', flat=True))
    category_ids = set(promotion.applicable_categories.values_list('id', flat=True))
    return product_ids, category_ids


def _item_matches(item, product_ids, category_ids):
    product = item.product
    return product.pk in product_ids or (product.category_id is not None and product.category_id in category_ids)


def applies_to_items(promotion, items):
    product_ids, category_ids = _restrictions(promotion)
    if not product_ids and not category_ids:
        return True
    return any(_item_matches(item, product_ids, category_ids) for item in items)


def applicable_amount(promotion, items):
    """Sum of the line totals the promotion can discount"""
    product_ids, category_ids = _restrictions(promotion)
    if not product_ids and not category_ids:
        return sum((item.total_price for item in items), ZERO)
    return sum((item.total_price for item in items if _item_matches(item, product_ids, category_ids)), ZERO)


def meets_minimum(promotion, order_amount):
    return promotion.minimum_order_amount is None or order_amount >= promotion.minimum_order_amount


def is_eligible_for_sale(promotion, customer, items, order_amount):
    return (
        promotion.is_currently_active
        and is_customer_eligible(promotion, customer)
        and meets_minimum(promotion, order_amount)
        and applies_to_items(promotion, items)
    )


def _raw_discount(promotion, amount):
    if promotion.type == 'PERCENTAGE':
        return (amount * promotion.discount_value / 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    if promotion.type == 'FIXED_AMOUNT':
        return promotion.discount_value
    # FREE_SHIPPING and BUY_X_GET_Y carry no monetary discount here
    return ZERO


def _cap(promotion, discount, ceiling):
    if promotion.maximum_discount_amount is not None and discount > promotion.maximum_discount_amount:
        discount = promotion.maximum_discount_amount
    if discount > ceiling:
        discount = ceiling
    return max(discount, ZERO)


def calculate_discount(promotion, items, order_amount):
    """Discount a promotion gives on a set of sale items"""
    if not promotion.is_currently_active or not meets_minimum(promotion, order_amount):
        return ZERO
    amount = applicable_amount(promotion, items)
    return _cap(promotion, _raw_discount(promotion, amount), amount)


def calculate_order_discount(promotion, order_amount):
    """Discount over a whole order amount, ignoring item restrictions"""
    if not meets_minimum(promotion, order_amount):
        return ZERO
    return _cap(promotion, _raw_discount(promotion, order_amount), order_amount)


def validate_coupon(code):
    code = (code or '').strip()
    promotion = Promotion.objects.filter(coupon_code__iexact=code).first() if code else None
    if promotion is None:
        raise BusinessLogicException(f"Invalid coupon code: {code}", error_code='INVALID_COUPON')
    if promotion.is_usage_limit_reached:
        raise BusinessLogicException(f"Coupon usage limit has been reached: {code}", error_code='COUPON_LIMIT_REACHED')
    if not promotion.is_currently_active:
        raise BusinessLogicException(f"Coupon code is not currently active: {code}", error_code='COUPON_INACTIVE')
    return promotion


def generate_coupon_code():
    return f"PROMO{uuid.uuid4().hex[:8].upper()}"


def validate_promotion(data, instance=None):
    def current(field):
        if field in data:
            return data[field]
        return getattr(instance, field) if instance is not None else None

    start_date, end_date = current('start_date'), current('end_date')
    if start_date is None or end_date is None:
        raise BusinessLogicException("Start date and end date are required")
    if start_date > end_date:
        raise BusinessLogicException("Start date must be before end date")
    if 'end_date' in data and end_date < timezone.now():
        raise BusinessLogicException("End date cannot be in the past")

    discount_value = current('discount_value')
    if discount_value is None or discount_value <= 0:
        raise BusinessLogicException("Discount value must be greater than 0")
    if current('type') == 'PERCENTAGE' and discount_value > 100:
        raise BusinessLogicException("Percentage discount cannot exceed 100")

    usage_limit = current('usage_limit')
    if usage_limit is not None and usage_limit <= 0:
        raise BusinessLogicException("Usage limit must be greater than 0")

    coupon_code = data.get('coupon_code')
    if coupon_code:
        others = Promotion.objects.exclude(pk=instance.pk) if instance is not None else Promotion.objects.all()
        if others.filter(coupon_code__iexact=coupon_code).exists():
            raise BusinessLogicException(f"Coupon code already exists: {coupon_code}")


def normalize_promotion_data(data, creating=False):
    if isinstance(data.get('coupon_code'), str):
        data['coupon_code'] = data['coupon_code'].strip().upper() or None
    # Promotions that are not auto-applied need a code to be redeemed
    if creating and not data.get('coupon_code') and not data.get('auto_apply'):
        data['coupon_code'] = generate_coupon_code()
    return data


def delete_promotion(promotion):
    if promotion.is_currently_active:
        raise BusinessLogicException("Cannot delete an active promotion")
    logger.info(f"Deleting promotion {promotion.pk} ({promotion.name})")
    promotion.delete()


def set_active(promotion, active):
    promotion.is_active = active
    promotion.save(update_fields=['is_active', 'updated_at'])
    logger.info(f"Promotion {promotion.pk} {'activated' if active else 'deactivated'}")
    return promotion


def increment_usage(promotion):
    Promotion.objects.filter(pk=promotion.pk).update(usage_count=F('usage_count') + 1)
    promotion.refresh_from_db(fields=['usage_count'])


def decrement_usage(promotion):
    Promotion.objects.filter(pk=promotion.pk, usage_count__gt=0).update(usage_count=F('usage_count') - 1)
    promotion.refresh_from_db(fields=['usage_count'])


def active_promotions():
    now = timezone.now()
    return Promotion.objects.filter(is_active=True, start_date__lte=now, end_date__gte=now)


def available_promotions():
    return active_promotions().filter(Q(usage_limit__isnull=True) | Q(usage_count__lt=F('usage_limit')))


def auto_apply_candidates():
    return available_promotions().filter(auto_apply=True).prefetch_related('applicable_products', 'applicable_categories')


def promotions_for_product(product):
    """Currently active promotions that cover a product directly or through its category"""
    match = Q(applicable_products=product)
    if product.category_id is not None:
        match |= Q(applicable_categories=product.category_id)
    return available_promotions().filter(match).distinct()


def promotions_for_category(category):
    return available_promotions().filter(applicable_categories=category).distinct()


def search_promotions(term, queryset=None):
    if queryset is None:
        queryset = Promotion.objects.all()
    return queryset.filter(
        Q(name__icontains=term) | Q(description__icontains=term) | Q(coupon_code__icontains=term)
    )
