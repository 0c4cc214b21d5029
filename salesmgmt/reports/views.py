from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from salesmgmt.core.exceptions import BusinessLogicException
from salesmgmt.core.utils import apply_sorting, paginated_response, parse_datetime_param, parse_int
from . import services

LIFETIME_VALUE_SORT_FIELDS = (
    'total_value', 'order_count', 'average_order_value', 'first_purchase', 'last_purchase', 'name',
    'loyalty_points', 'created_at',
)


def _report_period(request):
    start = parse_datetime_param(request.query_params.get('start_date'), 'start_date')
    end = parse_datetime_param(request.query_params.get('end_date'), 'end_date')
    start, end = services.default_period(start, end)
    if hasattr(start, 'hour') == hasattr(end, 'hour') and start > end:
        raise BusinessLogicException("start_date must be before end_date")
    return start, end


def _bounded_int(request, name, default, low, high):
    value = parse_int(request.query_params.get(name), name, default=default)
    if value < low or value > high:
        raise BusinessLogicException(f"{name} must be between {low} and {high}")
    return value


def _category_param(request):
    return parse_int(request.query_params.get('category'), 'category')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_report(request):
    """Sales report for a period (defaults to the last 30 days)"""
    start, end = _report_period(request)
    return Response(services.sales_report(start, end))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_report(request):
    return Response(services.customer_report())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_report(request):
    return Response(services.inventory_report())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def revenue_trends(request):
    """Monthly revenue for the last ?months months"""
    months = _bounded_int(request, 'months', 6, 1, 60)
    return Response(services.revenue_trends(months))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def top_performers(request):
    start, end = _report_period(request)
    return Response(services.top_performers(start, end))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def promotion_report(request):
    start, end = _report_period(request)
    return Response(services.promotion_report(start, end))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    days = _bounded_int(request, 'days', 30, 1, 365)
    return Response(services.dashboard(days))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_lifetime_value(request):
    """Paged customer lifetime values, highest total first unless ?sort_by says otherwise"""
    queryset = apply_sorting(request, services.customer_lifetime_values(), LIFETIME_VALUE_SORT_FIELDS,
                             ('-total_value', 'pk'))
    return paginated_response(request, queryset)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_retention(request):
    months = _bounded_int(request, 'months', 12, 1, 36)
    return Response(services.customer_retention(months))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_turnover(request):
    months = _bounded_int(request, 'months', 12, 1, 24)
    return Response(services.inventory_turnover(months, _category_param(request)))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_valuation(request):
    """Stock valuation at cost, market price or the lower of the two"""
    method = (request.query_params.get('method') or 'COST').upper()
    if method not in services.VALUATION_METHODS:
        raise BusinessLogicException(
            f"Unsupported valuation method: {method}",
            error_code='INVALID_VALUATION_METHOD',
            details={'allowed_methods': list(services.VALUATION_METHODS)},
        )
    return Response(services.inventory_valuation(method, _category_param(request)))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def financial_revenue(request):
    start, end = _report_period(request)
    return Response(services.financial_revenue(start, end))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def executive_dashboard(request):
    days = _bounded_int(request, 'days', 30, 1, 365)
    return Response(services.executive_dashboard(days))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def operational_dashboard(request):
    return Response(services.operational_dashboard())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def real_time_kpis(request):
    return Response(services.real_time_kpis())
