"""Customer and supplier business rules"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Avg, Count, Q, Sum
from django.utils import timezone

from salesmgmt.core.exceptions import BusinessLogicException, DataIntegrityException
from .models import Customer, Supplier

logger = logging.getLogger(__name__)

VIP_LOYALTY_POINTS = 1000
ACTIVE_PURCHASE_ORDER_STATUSES = ('PENDING', 'APPROVED', 'ORDERED')


# Customers

def prepare_customer_data(data, instance=None):
    """Check email uniqueness and fill the display name from first and last name"""
    email = data.get('email')
    if email:
        others = Customer.objects.exclude(pk=instance.pk) if instance is not None else Customer.objects.all()
        if others.filter(email__iexact=email).exists():
            raise BusinessLogicException(f"Email already exists: {email}")

    if data.get('first_name') and data.get('last_name'):
        data['name'] = f"{data['first_name']} {data['last_name']}"

    name = data.get('name', getattr(instance, 'name', None))
    if not name or not str(name).strip():
        raise BusinessLogicException("Customer name is required")

    credit_limit = data.get('credit_limit')
    if credit_limit is not None and credit_limit < 0:
        raise BusinessLogicException("Credit limit cannot be negative")
    return data


def delete_customer(customer, deleted_by, reason=None):
    """Soft delete a customer that has no pending sales or open returns"""
    if customer.is_deleted:
        raise BusinessLogicException("Customer is already deleted")

    pending_sales = customer.sales.filter(status='PENDING').count()
    if pending_sales > 0:
        raise DataIntegrityException.customer_has_sales(customer.pk, pending_sales)

    open_returns = customer.returns.filter(status__in=['PENDING', 'APPROVED']).count()
    if open_returns > 0:
        raise DataIntegrityException.customer_has_returns(customer.pk, open_returns)

    customer.soft_delete(deleted_by, reason or "Customer deletion requested")
    customer.save(update_fields=['is_deleted', 'deleted_at', 'deleted_by', 'deletion_reason', 'updated_at'])
    logger.info(f"Soft deleted customer {customer.pk} by {deleted_by} with reason: {customer.deletion_reason}")


def hard_delete_customer(customer):
    """Delete a customer together with its sales and returns"""
    sales_count = customer.sales.count()
    returns_count = customer.returns.count()
    if sales_count > 0 or returns_count > 0:
        logger.warning(
            f"Hard deleting customer {customer.pk} with {sales_count} sales and {returns_count} returns "
            f"- cascade deletion will occur"
        )
    with transaction.atomic():
        customer.delete()
    logger.info(f"Hard deleted customer with {sales_count} sales and {returns_count} returns")
    return {'sales_deleted': sales_count, 'returns_deleted': returns_count}


def restore_customer(customer):
    if not customer.is_deleted:
        raise BusinessLogicException("Customer is not deleted and cannot be restored")
    customer.restore()
    customer.save(update_fields=['is_deleted', 'deleted_at', 'deleted_by', 'deletion_reason', 'updated_at'])
    logger.info(f"Restored customer {customer.pk}")
    return customer


def update_credit_limit(customer, credit_limit):
    if credit_limit < 0:
        raise BusinessLogicException("Credit limit cannot be negative")
    customer.credit_limit = credit_limit
    customer.save(update_fields=['credit_limit', 'updated_at'])
    return customer


def add_loyalty_points(customer, points):
    if points is None or points <= 0:
        raise BusinessLogicException("Points must be greater than zero")
    customer.loyalty_points += points
    customer.save(update_fields=['loyalty_points', 'updated_at'])
    return customer


def search_customers(term, queryset=None):
    if queryset is None:
        queryset = Customer.objects.not_deleted()
    return queryset.filter(
        Q(name__icontains=term) |
        Q(email__icontains=term) |
        Q(phone__icontains=term) |
        Q(company_name__icontains=term)
    )


def vip_customers():
    return Customer.objects.not_deleted().filter(
        Q(customer_type='VIP') | Q(loyalty_points__gte=VIP_LOYALTY_POINTS)
    ).order_by('-loyalty_points')


def customers_with_outstanding_balance():
    return Customer.objects.not_deleted().filter(current_balance__gt=0).order_by('-current_balance')


def customer_statistics():
    customers = Customer.objects.not_deleted()
    aggregates = customers.aggregate(
        total=Count('id'),
        loyalty=Sum('loyalty_points'),
        credit=Sum('credit_limit'),
        outstanding=Sum('current_balance'),
        verified=Count('id', filter=Q(is_email_verified=True)),
    )
    by_type = {row['customer_type']: row['count'] for row in customers.values('customer_type').annotate(count=Count('id'))}
    by_status = {row['customer_status']: row['count'] for row in customers.values('customer_status').annotate(count=Count('id'))}
    total = aggregates['total']
    return {
        'totalCustomers': total,
        'customersByType': by_type,
        'customersByStatus': by_status,
        'totalLoyaltyPoints': aggregates['loyalty'] or 0,
        'totalCreditLimit': aggregates['credit'] or Decimal('0.00'),
        'totalOutstandingBalance': aggregates['outstanding'] or Decimal('0.00'),
        'verifiedEmailsCount': aggregates['verified'],
        'verificationRate': round(aggregates['verified'] * 100.0 / total, 2) if total else 0,
        'deletedCustomers': Customer.objects.deleted().count(),
    }


# Suppliers

def validate_supplier(data, instance=None):
    others = Supplier.objects.exclude(pk=instance.pk) if instance is not None else Supplier.objects.all()

    email = data.get('email')
    if email and others.filter(email__iexact=email).exists():
        raise BusinessLogicException(f"Email already exists: {email}")

    tax_number = data.get('tax_number')
    if tax_number and others.filter(tax_number=tax_number).exists():
        raise BusinessLogicException(f"Tax number already exists: {tax_number}")

    rating = data.get('rating')
    if rating is not None:
        validate_rating(rating)


def normalize_supplier_data(data):
    for field in ('email', 'tax_number'):
        if isinstance(data.get(field), str):
            data[field] = data[field].strip() or None
    return data


def validate_rating(rating):
    if rating < 0.0 or rating > 5.0:
        raise BusinessLogicException("Rating must be between 0.0 and 5.0")


def update_supplier_rating(supplier, rating):
    validate_rating(rating)
    supplier.rating = rating
    supplier.save(update_fields=['rating', 'updated_at'])
    return supplier


def delete_supplier(supplier):
    active_orders = supplier.purchase_orders.filter(status__in=ACTIVE_PURCHASE_ORDER_STATUSES).count()
    if active_orders > 0:
        raise DataIntegrityException.supplier_has_purchase_orders(supplier.pk, active_orders)
    logger.info(f"Deleting supplier {supplier.pk} ({supplier.name})")
    supplier.delete()


def search_suppliers(term):
    return Supplier.objects.filter(
        Q(name__icontains=term) |
        Q(contact_person__icontains=term) |
        Q(email__icontains=term) |
        Q(city__icontains=term) |
        Q(country__icontains=term)
    )


def supplier_analytics():
    active = Supplier.objects.filter(status='ACTIVE')
    aggregates = active.aggregate(average_rating=Avg('rating'), total_value=Sum('total_amount'))
    month_start = timezone.now().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    average_rating = aggregates['average_rating'] or 0.0
    return {
        'totalSuppliers': Supplier.objects.count(),
        'activeSuppliers': active.count(),
        'averageRating': round(average_rating * 10.0) / 10.0,
        'totalValue': aggregates['total_value'] or Decimal('0.00'),
        'topPerformingSuppliers': Supplier.objects.filter(rating__gte=4.0).count(),
        'newSuppliersThisMonth': Supplier.objects.filter(created_at__gte=month_start).count(),
    }
