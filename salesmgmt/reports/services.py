"""Aggregated business reports

Every report is cached under the ``reports`` namespace; sale, return and stock
writes bump the namespace version through ``invalidate_reports_cache`` so stale
entries are never read again. Real-time KPIs and the lifetime value listing
are computed per request.
"""
import logging
from collections import defaultdict
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db.models import Avg, Count, DecimalField, F, Max, Min, Q, Sum, Value
from django.db.models.functions import Coalesce, TruncMonth
from django.utils import timezone

from salesmgmt.catalog.models import Product
from salesmgmt.catalog.services import STOCK_VALUE
from salesmgmt.core.cache_utils import DASHBOARD_CACHE_TTL, REPORTS_CACHE_TTL, cached_query
from salesmgmt.core.utils import filter_date_range
from salesmgmt.parties.models import Customer
from salesmgmt.pricing.models import Promotion
from salesmgmt.purchasing.models import PurchaseOrder
from salesmgmt.returns.models import Return
from salesmgmt.sales.models import AppliedPromotion, Sale, SaleItem

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
TOP_LIMIT = 10


def _money(value):
    return Decimal(value).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def _percentage(part, whole):
    if not whole:
        return 0.0
    return round(float(part) * 100.0 / float(whole), 2)


def default_period(start=None, end=None, days=30):
    """Date-granular period so cache keys stay stable within a day"""
    end = end or timezone.localdate()
    start = start or end - timedelta(days=days)
    return start, end


def _sales_between(start, end):
    return filter_date_range(Sale.objects.all(), 'sale_date', start, end)


def _stock_band(quantity):
    if quantity <= 0:
        return 'Out of Stock'
    if quantity < settings.LOW_STOCK_THRESHOLD:
        return 'Low Stock'
    if quantity < 50:
        return 'Medium Stock'
    return 'High Stock'


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix="reports:sales")
def sales_report(start, end):
    sales = _sales_between(start, end)
    completed = sales.filter(status='COMPLETED')

    totals = completed.aggregate(
        revenue=Sum('total_amount'),
        discounts=Sum('discount_amount'),
        promotion_discounts=Sum('promotion_discount_amount'),
        tax=Sum('tax_amount'),
        count=Count('id'),
    )
    revenue = totals['revenue'] or ZERO
    count = totals['count']

    daily_revenue = defaultdict(lambda: ZERO)
    for sale in completed.only('sale_date', 'total_amount'):
        daily_revenue[timezone.localtime(sale.sale_date).date().isoformat()] += sale.total_amount

    top_customers = completed.values('customer__id', 'customer__name').annotate(
        total_spent=Sum('total_amount'),
        order_count=Count('id'),
    ).order_by('-total_spent')[:TOP_LIMIT]

    product_rows = SaleItem.objects.filter(sale__in=completed).values('product__id', 'product__name').annotate(
        quantity_sold=Sum('quantity'),
        revenue=Sum('total_price'),
    ).order_by('-revenue')[:TOP_LIMIT]

    return {
        'period': {'startDate': start.isoformat(), 'endDate': end.isoformat()},
        'summary': {
            'totalSales': count,
            'totalRevenue': revenue,
            'averageOrderValue': _money(revenue / count) if count else ZERO,
            'totalDiscounts': (totals['discounts'] or ZERO) + (totals['promotion_discounts'] or ZERO),
            'totalTax': totals['tax'] or ZERO,
        },
        'salesByStatus': {row['status']: row['count'] for row in sales.values('status').annotate(count=Count('id'))},
        'dailyRevenue': dict(sorted(daily_revenue.items())),
        'topCustomers': list(top_customers),
        'productPerformance': list(product_rows),
    }


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix="reports:customers")
def customer_report():
    customers = Customer.objects.not_deleted()
    total_customers = customers.count()

    details = Sale.objects.filter(status='COMPLETED', customer__is_deleted=False).values(
        'customer__id', 'customer__name'
    ).annotate(
        total_sales=Count('id'),
        total_spent=Sum('total_amount'),
    ).order_by('-total_spent')
    details = list(details)
    for row in details:
        row['average_order_value'] = _money(row['total_spent'] / row['total_sales']) if row['total_sales'] else ZERO

    active_customers = len(details)
    return {
        'totalCustomers': total_customers,
        'activeCustomers': active_customers,
        'customerRetentionRate': _percentage(active_customers, total_customers),
        'customersByType': {
            row['customer_type']: row['count']
            for row in customers.values('customer_type').annotate(count=Count('id'))
        },
        'customerDetails': details[:TOP_LIMIT * 5],
    }


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix="reports:inventory")
def inventory_report():
    products = list(Product.objects.select_related('category'))

    stock_levels = defaultdict(int)
    categories = defaultdict(lambda: {'productCount': 0, 'totalValue': ZERO, 'totalPrice': ZERO})
    total_value = ZERO
    low_stock = []
    for product in products:
        stock_levels[_stock_band(product.stock_quantity)] += 1
        value = product.price * product.stock_quantity
        total_value += value
        if product.category is not None:
            bucket = categories[product.category.name]
            bucket['productCount'] += 1
            bucket['totalValue'] += value
            bucket['totalPrice'] += product.price
        if product.stock_quantity < settings.LOW_STOCK_THRESHOLD:
            low_stock.append({
                'id': product.id,
                'name': product.name,
                'currentStock': product.stock_quantity,
                'category': product.category.name if product.category else 'Uncategorized',
            })

    category_analysis = {
        name: {
            'productCount': bucket['productCount'],
            'totalValue': bucket['totalValue'],
            'averagePrice': _money(bucket['totalPrice'] / bucket['productCount']),
        }
        for name, bucket in categories.items()
    }
    return {
        'totalProducts': len(products),
        'totalInventoryValue': total_value,
        'stockLevels': dict(stock_levels),
        'categoryAnalysis': category_analysis,
        'lowStockProducts': low_stock,
    }


def _growth_trend(monthly_revenue):
    """Percentage change between the last two months with revenue"""
    values = list(monthly_revenue.values())
    if len(values) < 2 or not values[-2]:
        return 0.0
    return _percentage(values[-1] - values[-2], values[-2])


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix="reports:revenue_trends")
def revenue_trends(months):
    end = timezone.localdate()
    start = end - timedelta(days=30 * months)
    rows = _sales_between(start, end).filter(status='COMPLETED').annotate(
        month=TruncMonth('sale_date')
    ).values('month').annotate(revenue=Sum('total_amount'), count=Count('id')).order_by('month')

    monthly_revenue = {}
    monthly_count = {}
    for row in rows:
        key = row['month'].strftime('%Y-%m')
        monthly_revenue[key] = row['revenue'] or ZERO
        monthly_count[key] = row['count']

    total_revenue = sum(monthly_revenue.values(), ZERO)
    return {
        'period': f"{months} months",
        'totalRevenue': total_revenue,
        'totalSales': sum(monthly_count.values()),
        'monthlyRevenue': monthly_revenue,
        'monthlySalesCount': monthly_count,
        'averageMonthlyRevenue': _money(total_revenue / len(monthly_revenue)) if monthly_revenue else ZERO,
        'growthTrend': _growth_trend(monthly_revenue),
    }


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix="reports:top_performers")
def top_performers(start, end):
    completed = _sales_between(start, end).filter(status='COMPLETED')
    items = SaleItem.objects.filter(sale__in=completed)

    customers = completed.values('customer__name').annotate(revenue=Sum('total_amount')).order_by('-revenue')
    by_quantity = items.values('product__name').annotate(quantity=Sum('quantity')).order_by('-quantity')
    by_revenue = items.values('product__name').annotate(revenue=Sum('total_price')).order_by('-revenue')
    sales_people = completed.exclude(sales_person__isnull=True).exclude(sales_person='').values(
        'sales_person'
    ).annotate(revenue=Sum('total_amount'), count=Count('id')).order_by('-revenue')

    return {
        'topCustomersByRevenue': {row['customer__name']: row['revenue'] for row in customers[:TOP_LIMIT]},
        'topProductsByQuantity': {row['product__name']: row['quantity'] for row in by_quantity[:TOP_LIMIT]},
        'topProductsByRevenue': {row['product__name']: row['revenue'] for row in by_revenue[:TOP_LIMIT]},
        'topSalesPeople': list(sales_people[:TOP_LIMIT]),
    }


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix="reports:promotions")
def promotion_report(start, end):
    applied = filter_date_range(AppliedPromotion.objects.all(), 'applied_at', start, end)
    totals = applied.aggregate(
        discount=Sum('discount_amount'),
        original=Sum('original_amount'),
        final=Sum('final_amount'),
        count=Count('id'),
        auto=Count('id', filter=Q(is_auto_applied=True)),
    )
    top_promotions = applied.values('promotion_name', 'promotion_type').annotate(
        usage=Count('id'),
        total_discount=Sum('discount_amount'),
        revenue=Sum('final_amount'),
    ).order_by('-usage')[:TOP_LIMIT]

    sales_in_period = _sales_between(start, end).filter(status='COMPLETED')
    promoted_sales = sales_in_period.filter(applied_promotions__isnull=False).distinct().count()

    return {
        'period': {'startDate': start.isoformat(), 'endDate': end.isoformat()},
        'totalApplications': totals['count'],
        'autoAppliedCount': totals['auto'],
        'couponAppliedCount': totals['count'] - totals['auto'],
        'totalDiscountGiven': totals['discount'] or ZERO,
        'revenueBeforeDiscount': totals['original'] or ZERO,
        'revenueAfterDiscount': totals['final'] or ZERO,
        'promotionConversionRate': _percentage(promoted_sales, sales_in_period.count()),
        'topPromotions': list(top_promotions),
        'activePromotions': Promotion.objects.filter(
            is_active=True, start_date__lte=timezone.now(), end_date__gte=timezone.now()
        ).count(),
    }


@cached_query(cache_ttl=DASHBOARD_CACHE_TTL, key_prefix="reports:dashboard")
def dashboard(days):
    """Headline KPIs for the last ``days`` days plus today's figures"""
    start, end = default_period(days=days)
    today = timezone.localdate()

    period_sales = _sales_between(start, end)
    completed = period_sales.filter(status='COMPLETED')
    totals = completed.aggregate(revenue=Sum('total_amount'), count=Count('id'))
    today_totals = filter_date_range(Sale.objects.filter(status='COMPLETED'), 'sale_date', today, today).aggregate(
        revenue=Sum('total_amount'), count=Count('id')
    )
    top_products = SaleItem.objects.filter(sale__in=completed).values('product__name').annotate(
        quantity=Sum('quantity')
    ).order_by('-quantity')[:5]

    revenue = totals['revenue'] or ZERO
    logger.info(f"Built dashboard for the last {days} days: {totals['count']} completed sales")
    return {
        'period': {'startDate': start.isoformat(), 'endDate': end.isoformat(), 'days': days},
        'summary': {
            'totalSales': totals['count'],
            'totalRevenue': revenue,
            'averageOrderValue': _money(revenue / totals['count']) if totals['count'] else ZERO,
            'pendingSales': period_sales.filter(status='PENDING').count(),
        },
        'todaysSales': {
            'count': today_totals['count'],
            'revenue': today_totals['revenue'] or ZERO,
        },
        'topProducts': list(top_products),
        'quickStats': {
            'totalCustomers': Customer.objects.not_deleted().count(),
            'totalProducts': Product.objects.count(),
            'lowStockProducts': Product.objects.filter(
                stock_quantity__gt=0, stock_quantity__lt=settings.LOW_STOCK_THRESHOLD
            ).count(),
            'outOfStockProducts': Product.objects.filter(stock_quantity__lte=0).count(),
            'reorderNeeded': Product.objects.filter(stock_quantity__lte=F('reorder_point')).count(),
            'pendingReturns': Return.objects.filter(status='PENDING').count(),
            'activePromotions': Promotion.objects.filter(is_active=True).count(),
        },
    }


MONEY_FIELD = DecimalField(max_digits=14, decimal_places=2)
VALUATION_METHODS = ('COST', 'MARKET', 'LOWER_OF_COST_OR_MARKET')
FAST_MOVER_TURNOVER = 6
SLOW_MOVER_TURNOVER = 2


def _completed_sales_filter(prefix='sales__'):
    return Q(**{f'{prefix}status': 'COMPLETED'})


def customer_lifetime_values():
    """One row per live customer with their completed-sale totals

    Returned uncached as a values queryset so the view can sort and page it.
    """
    completed = _completed_sales_filter()
    return Customer.objects.not_deleted().annotate(
        total_value=Coalesce(Sum('sales__total_amount', filter=completed), Value(ZERO), output_field=MONEY_FIELD),
        order_count=Count('sales', filter=completed),
        average_order_value=Coalesce(Avg('sales__total_amount', filter=completed), Value(ZERO),
                                     output_field=MONEY_FIELD),
        first_purchase=Min('sales__sale_date', filter=completed),
        last_purchase=Max('sales__sale_date', filter=completed),
    ).values(
        'id', 'name', 'email', 'customer_type', 'loyalty_points', 'created_at',
        'total_value', 'order_count', 'average_order_value', 'first_purchase', 'last_purchase',
    )


def _lifecycle_stage(last_purchase, today):
    if last_purchase is None:
        return 'neverPurchased'
    days = (today - timezone.localtime(last_purchase).date()).days
    if days <= 30:
        return 'active'
    if days <= 90:
        return 'atRisk'
    return 'lapsed'


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix="reports:customer_retention")
def customer_retention(months):
    """Retention of the customer base over the last ``months`` months

    A customer is retained when they bought before the window and bought again
    inside it.
    """
    today = timezone.localdate()
    start = today - timedelta(days=30 * months)
    customers = Customer.objects.not_deleted()
    completed = Sale.objects.filter(status='COMPLETED', customer__is_deleted=False)

    in_window = filter_date_range(completed, 'sale_date', start, today)
    window_counts = {
        row['customer_id']: row['count']
        for row in in_window.values('customer_id').annotate(count=Count('id'))
    }
    earlier_buyers = set(completed.filter(sale_date__date__lt=start).values_list('customer_id', flat=True))
    retained = earlier_buyers & set(window_counts)
    repeat_buyers = [customer_id for customer_id, count in window_counts.items() if count > 1]

    cohorts = {}
    cohort_rows = customers.filter(created_at__date__gte=start).annotate(
        cohort=TruncMonth('created_at')
    ).values('cohort').annotate(
        signed_up=Count('id', distinct=True),
        purchased=Count('id', filter=_completed_sales_filter(), distinct=True),
    ).order_by('cohort')
    for row in cohort_rows:
        cohorts[row['cohort'].strftime('%Y-%m')] = {
            'customers': row['signed_up'],
            'purchased': row['purchased'],
            'conversionRate': _percentage(row['purchased'], row['signed_up']),
        }

    lifecycle = {'active': 0, 'atRisk': 0, 'lapsed': 0, 'neverPurchased': 0}
    last_purchases = customers.annotate(last=Max('sales__sale_date', filter=_completed_sales_filter()))
    for last in last_purchases.values_list('last', flat=True):
        lifecycle[_lifecycle_stage(last, today)] += 1

    retention_rate = _percentage(len(retained), len(earlier_buyers))
    return {
        'period': f"{months} months",
        'totalCustomers': customers.count(),
        'newCustomers': customers.filter(created_at__date__gte=start).count(),
        'purchasingCustomers': len(window_counts),
        'returningCustomers': len(retained),
        'retentionRate': retention_rate,
        'churnRate': round(100.0 - retention_rate, 2) if earlier_buyers else 0.0,
        'repeatPurchaseRate': _percentage(len(repeat_buyers), len(window_counts)),
        'cohorts': cohorts,
        'lifecycle': lifecycle,
    }


def _unit_cost(product):
    return product.cost_price if product.cost_price is not None else product.price


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix="reports:inventory_turnover")
def inventory_turnover(months, category_id=None):
    """Cost of goods sold over average inventory value for each product

    Opening stock is estimated as current stock plus the units sold in the
    window; restocks inside the window are not reconstructed.
    """
    today = timezone.localdate()
    start = today - timedelta(days=30 * months)
    products = Product.objects.select_related('category')
    if category_id is not None:
        products = products.filter(category_id=category_id)

    sold = defaultdict(lambda: {'units': 0, 'cogs': ZERO})
    items = SaleItem.objects.filter(
        sale__status='COMPLETED', sale__sale_date__date__gte=start, sale__sale_date__date__lte=today,
        product__in=products,
    ).values_list('product_id', 'quantity', 'cost_price', 'unit_price')
    for product_id, quantity, cost_price, unit_price in items:
        sold[product_id]['units'] += quantity
        sold[product_id]['cogs'] += quantity * (cost_price if cost_price is not None else unit_price)

    rows = []
    total_cogs = ZERO
    total_average_value = ZERO
    for product in products:
        units = sold[product.id]['units']
        cogs = sold[product.id]['cogs']
        closing = max(product.stock_quantity, 0)
        average_value = _money(_unit_cost(product) * (2 * closing + units) / 2)
        turnover = round(float(cogs) / float(average_value), 2) if average_value else 0.0
        annual_turnover = round(turnover * 12 / months, 2)
        total_cogs += cogs
        total_average_value += average_value
        rows.append({
            'id': product.id,
            'name': product.name,
            'category': product.category.name if product.category else 'Uncategorized',
            'unitsSold': units,
            'costOfGoodsSold': _money(cogs),
            'averageInventoryValue': average_value,
            'turnoverRatio': turnover,
            'annualizedTurnover': annual_turnover,
            'daysOfInventory': round(30 * months / turnover, 1) if turnover else None,
            'currentStock': product.stock_quantity,
            'reorderPoint': product.reorder_point,
            'reorderQuantity': product.reorder_quantity,
        })

    rows.sort(key=lambda row: row['turnoverRatio'], reverse=True)
    overall = round(float(total_cogs) / float(total_average_value), 2) if total_average_value else 0.0
    reorder = [
        {
            'id': row['id'],
            'name': row['name'],
            'currentStock': row['currentStock'],
            'suggestedQuantity': row['reorderQuantity'] + max(row['reorderPoint'] - row['currentStock'], 0),
        }
        for row in rows if row['currentStock'] <= row['reorderPoint']
    ]
    return {
        'period': f"{months} months",
        'summary': {
            'productCount': len(rows),
            'totalCostOfGoodsSold': _money(total_cogs),
            'averageInventoryValue': _money(total_average_value),
            'overallTurnover': overall,
            'daysOfInventory': round(30 * months / overall, 1) if overall else None,
        },
        'fastMovers': [row for row in rows if row['annualizedTurnover'] >= FAST_MOVER_TURNOVER][:TOP_LIMIT],
        'slowMovers': [
            row for row in reversed(rows)
            if row['annualizedTurnover'] < SLOW_MOVER_TURNOVER and row['currentStock'] > 0
        ][:TOP_LIMIT],
        'reorderSuggestions': reorder,
        'products': rows,
    }


def _unit_value(product, method):
    if method == 'MARKET':
        return product.price
    if method == 'LOWER_OF_COST_OR_MARKET':
        return min(_unit_cost(product), product.price)
    return _unit_cost(product)


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix="reports:inventory_valuation")
def inventory_valuation(method='COST', category_id=None):
    """Value of the stock on hand; products without a cost price are valued at their selling price"""
    products = Product.objects.select_related('category').filter(stock_quantity__gt=0)
    if category_id is not None:
        products = products.filter(category_id=category_id)

    categories = defaultdict(lambda: {'productCount': 0, 'units': 0, 'costValue': ZERO,
                                      'marketValue': ZERO, 'value': ZERO})
    totals = {'units': 0, 'costValue': ZERO, 'marketValue': ZERO, 'value': ZERO}
    ranked = []
    missing_cost = 0
    for product in products:
        units = product.stock_quantity
        cost_value = _unit_cost(product) * units
        market_value = product.price * units
        value = _unit_value(product, method) * units
        if product.cost_price is None:
            missing_cost += 1
        bucket = categories[product.category.name if product.category else 'Uncategorized']
        bucket['productCount'] += 1
        for target in (bucket, totals):
            target['units'] += units
            target['costValue'] += cost_value
            target['marketValue'] += market_value
            target['value'] += value
        ranked.append({'id': product.id, 'name': product.name, 'units': units, 'value': value})

    ranked.sort(key=lambda row: row['value'], reverse=True)
    return {
        'valuationMethod': method,
        'valuationDate': timezone.localdate().isoformat(),
        'productCount': len(ranked),
        'totalUnits': totals['units'],
        'totalValue': totals['value'],
        'costValue': totals['costValue'],
        'marketValue': totals['marketValue'],
        'potentialProfit': totals['marketValue'] - totals['costValue'],
        'productsWithoutCost': missing_cost,
        'categoryBreakdown': dict(categories),
        'topValueProducts': ranked[:TOP_LIMIT],
    }


def previous_period(start, end):
    """The period of equal length that ends just before ``start``"""
    if hasattr(start, 'hour') != hasattr(end, 'hour'):
        start = start.date() if hasattr(start, 'hour') else start
        end = end.date() if hasattr(end, 'hour') else end
    if hasattr(start, 'hour'):
        return start - (end - start), start
    length = end - start + timedelta(days=1)
    return start - length, start - timedelta(days=1)


def _revenue_totals(start, end):
    completed = _sales_between(start, end).filter(status='COMPLETED')
    totals = completed.aggregate(
        revenue=Sum('total_amount'),
        discounts=Sum('discount_amount'),
        promotion_discounts=Sum('promotion_discount_amount'),
        tax=Sum('tax_amount'),
        shipping=Sum('shipping_cost'),
        cost=Sum('cost_of_goods_sold'),
        count=Count('id'),
        customers=Count('customer', distinct=True),
    )
    for field in ('revenue', 'discounts', 'promotion_discounts', 'tax', 'shipping', 'cost'):
        totals[field] = totals[field] or ZERO
    refunds = filter_date_range(Return.objects.filter(status='REFUNDED'), 'refund_date', start, end)
    totals['refunds'] = refunds.aggregate(total=Sum('total_refund_amount'))['total'] or ZERO
    return completed, totals


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix="reports:financial_revenue")
def financial_revenue(start, end):
    completed, totals = _revenue_totals(start, end)
    revenue = totals['revenue']
    count = totals['count']
    gross_profit = revenue - totals['cost']
    average_order_value = _money(revenue / count) if count else ZERO

    by_category = SaleItem.objects.filter(sale__in=completed).values('product__category__name').annotate(
        revenue=Sum('total_price'),
        units=Sum('quantity'),
    ).order_by('-revenue')
    by_payment = completed.values('payment_method').annotate(
        revenue=Sum('total_amount'),
        count=Count('id'),
    ).order_by('-revenue')

    daily = defaultdict(lambda: {'revenue': ZERO, 'transactions': 0})
    for sale in completed.only('sale_date', 'total_amount'):
        day = daily[timezone.localtime(sale.sale_date).date().isoformat()]
        day['revenue'] += sale.total_amount
        day['transactions'] += 1

    previous_start, previous_end = previous_period(start, end)
    _, previous = _revenue_totals(previous_start, previous_end)
    previous_aov = _money(previous['revenue'] / previous['count']) if previous['count'] else ZERO

    return {
        'period': {'startDate': start.isoformat(), 'endDate': end.isoformat()},
        'summary': {
            'totalRevenue': revenue,
            'grossRevenue': revenue + totals['discounts'] + totals['promotion_discounts'],
            'netRevenue': revenue - totals['refunds'],
            'totalCost': totals['cost'],
            'grossProfit': gross_profit,
            'grossMargin': _percentage(gross_profit, revenue),
            'netProfit': gross_profit - totals['refunds'],
            'totalTax': totals['tax'],
            'totalDiscounts': totals['discounts'] + totals['promotion_discounts'],
            'totalShipping': totals['shipping'],
            'totalRefunds': totals['refunds'],
            'totalTransactions': count,
            'uniqueCustomers': totals['customers'],
            'averageOrderValue': average_order_value,
            'revenuePerCustomer': _money(revenue / totals['customers']) if totals['customers'] else ZERO,
        },
        'revenueByCategory': {
            row['product__category__name'] or 'Uncategorized': {'revenue': row['revenue'], 'units': row['units']}
            for row in by_category
        },
        'paymentMethodAnalysis': {
            row['payment_method'] or 'UNSPECIFIED': {
                'revenue': row['revenue'],
                'transactions': row['count'],
                'share': _percentage(row['revenue'], revenue),
            }
            for row in by_payment
        },
        'dailyTrends': dict(sorted(daily.items())),
        'growthMetrics': {
            'previousPeriod': {'startDate': previous_start.isoformat(), 'endDate': previous_end.isoformat()},
            'previousRevenue': previous['revenue'],
            'revenueGrowth': _percentage(revenue - previous['revenue'], previous['revenue']),
            'transactionGrowth': _percentage(count - previous['count'], previous['count']),
            'averageOrderValueGrowth': _percentage(average_order_value - previous_aov, previous_aov),
        },
    }


def _overdue_sales():
    return Sale.objects.filter(due_date__lt=timezone.localdate()).exclude(
        payment_status='PAID').exclude(status='CANCELLED')


@cached_query(cache_ttl=DASHBOARD_CACHE_TTL, key_prefix="reports:dashboard_executive")
def executive_dashboard(days):
    """Management view of the last ``days`` days compared with the period before"""
    start, end = default_period(days=days)
    financials = financial_revenue(start, end)
    summary = financials['summary']
    growth = financials['growthMetrics']

    period_sales = _sales_between(start, end)
    completed = period_sales.filter(status='COMPLETED')
    customers = Customer.objects.not_deleted()
    new_customers = customers.filter(created_at__date__gte=start).count()
    repeat_customers = completed.values('customer_id').annotate(count=Count('id')).filter(count__gt=1).count()
    returns_in_period = filter_date_range(Return.objects.all(), 'return_date', start, end).count()
    top_customers = completed.values('customer__id', 'customer__name').annotate(
        total_spent=Sum('total_amount')
    ).order_by('-total_spent')[:5]

    alerts = []
    out_of_stock = Product.objects.filter(stock_quantity__lte=0).count()
    if out_of_stock:
        alerts.append({'type': 'OUT_OF_STOCK', 'severity': 'HIGH',
                       'message': f"{out_of_stock} products are out of stock"})
    low_stock = Product.objects.filter(stock_quantity__gt=0, stock_quantity__lt=settings.LOW_STOCK_THRESHOLD).count()
    if low_stock:
        alerts.append({'type': 'LOW_STOCK', 'severity': 'MEDIUM',
                       'message': f"{low_stock} products are running low"})
    overdue = _overdue_sales().count()
    if overdue:
        alerts.append({'type': 'OVERDUE_PAYMENTS', 'severity': 'HIGH',
                       'message': f"{overdue} sales have overdue payments"})
    if growth['previousRevenue'] and growth['revenueGrowth'] <= -10:
        alerts.append({'type': 'REVENUE_DECLINE', 'severity': 'MEDIUM',
                       'message': f"Revenue is down {abs(growth['revenueGrowth'])}% on the previous period"})
    pending_returns = Return.objects.filter(status='PENDING').count()
    if pending_returns:
        alerts.append({'type': 'PENDING_RETURNS', 'severity': 'LOW',
                       'message': f"{pending_returns} returns are waiting for review"})

    logger.info(f"Built executive dashboard for the last {days} days with {len(alerts)} alerts")
    return {
        'period': {'startDate': start.isoformat(), 'endDate': end.isoformat(), 'days': days},
        'kpis': {
            'totalRevenue': summary['totalRevenue'],
            'revenueGrowth': growth['revenueGrowth'],
            'totalSales': summary['totalTransactions'],
            'averageOrderValue': summary['averageOrderValue'],
            'grossProfit': summary['grossProfit'],
            'grossMargin': summary['grossMargin'],
            'returnRate': _percentage(returns_in_period, summary['totalTransactions']),
        },
        'salesOverview': {
            'salesByStatus': {
                row['status']: row['count'] for row in period_sales.values('status').annotate(count=Count('id'))
            },
            'dailyTrends': financials['dailyTrends'],
            'revenueByCategory': financials['revenueByCategory'],
        },
        'customerMetrics': {
            'totalCustomers': customers.count(),
            'newCustomers': new_customers,
            'activeCustomers': summary['uniqueCustomers'],
            'repeatCustomers': repeat_customers,
            'topCustomers': list(top_customers),
        },
        'financialSummary': summary,
        'alerts': alerts,
    }


@cached_query(cache_ttl=DASHBOARD_CACHE_TTL, key_prefix="reports:dashboard_operational")
def operational_dashboard():
    """Work queues for today: orders to fulfil, stock to reorder, returns and payments to chase"""
    today = timezone.localdate()
    todays = filter_date_range(Sale.objects.all(), 'sale_date', today, today)
    today_totals = todays.filter(status='COMPLETED').aggregate(revenue=Sum('total_amount'), count=Count('id'))

    pending = Sale.objects.filter(status='PENDING')
    oldest_pending = pending.aggregate(oldest=Min('sale_date'))['oldest']
    overdue = _overdue_sales().aggregate(count=Count('id'), amount=Sum('total_amount'))

    out_of_stock = Product.objects.filter(stock_quantity__lte=0)
    return {
        'date': today.isoformat(),
        'todaysSales': {
            'count': today_totals['count'],
            'revenue': today_totals['revenue'] or ZERO,
            'pending': todays.filter(status='PENDING').count(),
            'cancelled': todays.filter(status='CANCELLED').count(),
        },
        'pendingOrders': {
            'pendingSales': pending.count(),
            'oldestPendingSale': oldest_pending.isoformat() if oldest_pending else None,
            'awaitingShipment': Sale.objects.filter(
                status='COMPLETED', delivery_status__in=('NOT_SHIPPED', 'PROCESSING')
            ).count(),
            'openPurchaseOrders': PurchaseOrder.objects.filter(
                status__in=('PENDING', 'APPROVED', 'ORDERED', 'PARTIALLY_RECEIVED')
            ).count(),
        },
        'inventoryAlerts': {
            'outOfStockCount': out_of_stock.count(),
            'outOfStock': list(out_of_stock.order_by('name').values('id', 'name', 'stock_quantity')[:TOP_LIMIT * 2]),
            'lowStockCount': Product.objects.filter(
                stock_quantity__gt=0, stock_quantity__lt=settings.LOW_STOCK_THRESHOLD
            ).count(),
            'reorderNeeded': Product.objects.filter(stock_quantity__lte=F('reorder_point')).count(),
            'expiringSoon': Product.objects.filter(
                expiry_date__gte=today, expiry_date__lte=today + timedelta(days=30)
            ).count(),
        },
        'returns': {
            'pending': Return.objects.filter(status='PENDING').count(),
            'awaitingRefund': Return.objects.filter(status='APPROVED').count(),
        },
        'overduePayments': {
            'count': overdue['count'],
            'amount': overdue['amount'] or ZERO,
        },
    }


def real_time_kpis():
    """Live figures for today; never cached"""
    today = timezone.localdate()
    todays = filter_date_range(Sale.objects.filter(status='COMPLETED'), 'sale_date', today, today)
    totals = todays.aggregate(
        revenue=Sum('total_amount'),
        count=Count('id'),
        customers=Count('customer', distinct=True),
    )
    inventory_value = Product.objects.filter(stock_quantity__gt=0).aggregate(
        value=Sum(STOCK_VALUE)
    )['value']
    return {
        'timestamp': timezone.now().isoformat(),
        'todaysSales': totals['count'],
        'todaysRevenue': totals['revenue'] or ZERO,
        'activeCustomers': totals['customers'],
        'inventoryValue': inventory_value or ZERO,
        'lowStockItems': Product.objects.filter(
            stock_quantity__gt=0, stock_quantity__lt=settings.LOW_STOCK_THRESHOLD
        ).count(),
        'outOfStockItems': Product.objects.filter(stock_quantity__lte=0).count(),
        'pendingSales': Sale.objects.filter(status='PENDING').count(),
        'pendingReturns': Return.objects.filter(status='PENDING').count(),
    }
