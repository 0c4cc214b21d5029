"""Shared helpers: audit logging, client IP, pagination and query-param parsing"""
import logging
from decimal import Decimal, InvalidOperation

from django.core.paginator import Paginator
from django.db import DatabaseError
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework.response import Response

from .exceptions import BusinessLogicException, ResourceNotFoundException
from .models import AuditLog

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 15
MAX_PAGE_SIZE = 100


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for and x_forwarded_for.lower() != 'unknown':
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('HTTP_X_REAL_IP') or request.META.get('REMOTE_ADDR')
    return ip or None


def is_admin_user(user):
    """Staff, superusers and ADMIN role accounts administer hard deletes and audit logs"""
    if not (user and user.is_authenticated):
        return False
    return user.is_staff or user.is_superuser or getattr(user, 'role', None) == 'ADMIN'


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, sale_complete, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object
        object_reference: Reference identifier (e.g., sale number, return number)
    """
    if not action or not model_name or object_id is None:
        logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
        return None

    audit_user = user
    if audit_user is None and request is not None and hasattr(request, 'user'):
        audit_user = request.user

    try:
        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except DatabaseError as e:
        # Audit failures never fail the main operation
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def paginated_response(request, queryset, serializer_class=None, default_limit=DEFAULT_PAGE_SIZE, context=None):
    """Page a queryset with the `page` and `limit` query params

    Without a serializer the rows are returned as they are, which suits
    `.values()` querysets and report rows.
    """
    try:
        page = max(int(request.query_params.get('page', 1)), 1)
        limit = min(max(int(request.query_params.get('limit', default_limit)), 1), MAX_PAGE_SIZE)
    except (TypeError, ValueError):
        raise BusinessLogicException('page and limit must be integers', error_code='INVALID_PAGINATION')

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    if serializer_class is None:
        results = list(page_obj)
    else:
        results = serializer_class(page_obj, many=True, context=context or {'request': request}).data
    return Response({
        'results': results,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


def parse_decimal(value, field_name, default=None):
    if value in (None, ''):
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise BusinessLogicException(f"{field_name} must be a valid number")


def parse_int(value, field_name, default=None):
    if value in (None, ''):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BusinessLogicException(f"{field_name} must be an integer")


def parse_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).lower() in ('1', 'true', 'yes', 'on')


def get_object_or_not_found(queryset_or_model, pk, resource_type=None):
    """Like get_object_or_404 but renders the domain error payload"""
    queryset = getattr(queryset_or_model, 'objects', queryset_or_model)
    obj = queryset.filter(pk=pk).first()
    if obj is None:
        if resource_type is None:
            resource_type = queryset.model.__name__
        raise ResourceNotFoundException.for_id(resource_type, pk)
    return obj


def parse_datetime_param(value, name):
    """Parse an ISO datetime or date query param; returns None when absent"""
    if not value:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        day = parse_date(value)
        if day is None:
            raise BusinessLogicException(f"{name} must be an ISO date or datetime")
        return day
    return parsed


def filter_date_range(queryset, field, start=None, end=None):
    """Apply inclusive bounds from ``parse_datetime_param`` to a datetime field"""
    if start is not None:
        lookup = f'{field}__gte' if hasattr(start, 'hour') else f'{field}__date__gte'
        queryset = queryset.filter(**{lookup: start})
    if end is not None:
        lookup = f'{field}__lte' if hasattr(end, 'hour') else f'{field}__date__lte'
        queryset = queryset.filter(**{lookup: end})
    return queryset


SORT_DIRECTIONS = ('asc', 'desc')


def _sort_key(name):
    return name.replace('_', '').lower()


def apply_sorting(request, queryset, allowed_fields, default_ordering):
    """Order a queryset by the `sort_by` and `sort_dir` query params

    `sort_by` matches `allowed_fields` ignoring case and underscores, so
    `saleDate` and `sale_date` are the same field. An unknown field falls back
    to `default_ordering` and an unknown direction to ascending.
    """
    sort_by = (request.query_params.get('sort_by') or '').strip()
    if not sort_by:
        return queryset.order_by(*default_ordering)

    fields = {_sort_key(field): field for field in allowed_fields}
    field = fields.get(_sort_key(sort_by))
    if field is None:
        logger.debug(f"Ignoring unknown sort field {sort_by}, using {default_ordering}")
        return queryset.order_by(*default_ordering)

    sort_dir = (request.query_params.get('sort_dir') or 'asc').strip().lower()
    if sort_dir not in SORT_DIRECTIONS:
        sort_dir = 'asc'
    prefix = '-' if sort_dir == 'desc' else ''
    return queryset.order_by(f'{prefix}{field}', f'{prefix}pk')
