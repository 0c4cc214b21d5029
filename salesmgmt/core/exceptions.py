"""
Typed domain exceptions and the global DRF exception handler.

Every exception carries an ``error_code`` and an optional ``details`` dict;
``exception_handler`` renders them as::

    {"error": ..., "error_code": ..., "status": ..., "timestamp": ..., "details": {...}}
"""
import logging

from django.db import IntegrityError
from django.db.models import ProtectedError
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION = "Please remove or reassign all dependent records before deletion."

DEPENDENCY_SUGGESTIONS = {
    ('sale', 'returns'): "Please process or cancel all associated returns before deleting this sale.",
    ('customer', 'sales'): "Please complete, cancel, or reassign all customer sales before deleting this customer.",
    ('customer', 'returns'): "Please process all customer returns before deleting this customer.",
    ('product', 'sale items'): "This product has been sold and cannot be deleted. Consider marking it as inactive instead.",
    ('product', 'return items'): "This product has associated returns and cannot be deleted.",
    ('category', 'products'): "Please move all products to another category or delete them before removing this category.",
    ('supplier', 'purchase orders'): "Please complete or cancel all purchase orders before deleting this supplier.",
    ('inventory', 'categories'): "Please move all categories to another inventory or delete them before removing this inventory.",
}


def _plural(count, singular_suffix='', plural_suffix='s'):
    return singular_suffix if count == 1 else plural_suffix


class SalesAPIException(APIException):
    """Base class for domain errors rendered by the global handler"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'ERROR'
    error_label = 'Error'

    def __init__(self, message=None, error_code=None, details=None, suggestion=None):
        super().__init__(detail=message or self.default_detail, code=error_code or self.default_code)
        self.message = str(self.detail)
        self.error_code = error_code or self.default_code
        self.details = details
        self.suggestion = suggestion

    def __str__(self):
        return self.message


class ResourceNotFoundException(SalesAPIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'RESOURCE_NOT_FOUND'
    error_label = 'Resource Not Found'

    def __init__(self, message=None, resource_type=None, field=None, value=None):
        details = None
        if resource_type is not None:
            message = message or (
                f"{resource_type} with {field} '{value}' was not found. "
                f"Please verify the {field} and try again."
            )
            details = {'resource_type': resource_type, 'field': field, 'value': value}
        super().__init__(
            message,
            details=details,
            suggestion="Please verify the provided information and try again. If the problem persists, contact support.",
        )

    @classmethod
    def for_id(cls, resource_type, pk):
        return cls(f"{resource_type} not found with id: {pk}")


class BusinessLogicException(SalesAPIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Business rule violation.'
    default_code = 'BUSINESS_RULE_VIOLATION'
    error_label = 'Business Rule Violation'

    def __init__(self, message=None, error_code=None, details=None):
        super().__init__(
            message,
            error_code=error_code,
            details=details,
            suggestion="Please review the requirements and adjust your input accordingly.",
        )


class DataIntegrityException(SalesAPIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Data integrity violation.'
    default_code = 'DATA_INTEGRITY_VIOLATION'
    error_label = 'Data Integrity Violation'

    def __init__(self, resource_type, resource_id, dependent_resource, message, error_code=None, suggestion=None):
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.dependent_resource = dependent_resource
        if suggestion is None:
            suggestion = DEPENDENCY_SUGGESTIONS.get(
                (resource_type.lower(), dependent_resource.lower()), DEFAULT_SUGGESTION
            )
        super().__init__(
            message,
            error_code=error_code,
            details={
                'resource_type': resource_type,
                'resource_id': resource_id,
                'dependent_resource': dependent_resource,
            },
            suggestion=suggestion,
        )

    @classmethod
    def sale_has_returns(cls, sale_id, count):
        return cls('Sale', sale_id, 'Returns',
                   f"Cannot delete sale because it has {count} associated return{_plural(count)}",
                   'SALE_HAS_RETURNS')

    @classmethod
    def customer_has_sales(cls, customer_id, count):
        return cls('Customer', customer_id, 'Sales',
                   f"Cannot delete customer because they have {count} associated sale{_plural(count)}",
                   'CUSTOMER_HAS_SALES')

    @classmethod
    def customer_has_returns(cls, customer_id, count):
        return cls('Customer', customer_id, 'Returns',
                   f"Cannot delete customer because they have {count} associated return{_plural(count)}",
                   'CUSTOMER_HAS_RETURNS')

    @classmethod
    def product_has_sale_items(cls, product_id, count):
        return cls('Product', product_id, 'Sale Items',
                   f"Cannot delete product because it appears in {count} sale record{_plural(count)}",
                   'PRODUCT_HAS_SALE_ITEMS')

    @classmethod
    def product_has_return_items(cls, product_id, count):
        return cls('Product', product_id, 'Return Items',
                   f"Cannot delete product because it appears in {count} return record{_plural(count)}",
                   'PRODUCT_HAS_RETURN_ITEMS')

    @classmethod
    def category_has_products(cls, category_id, count):
        return cls('Category', category_id, 'Products',
                   f"Cannot delete category because it contains {count} product{_plural(count)}",
                   'CATEGORY_HAS_PRODUCTS')

    @classmethod
    def supplier_has_purchase_orders(cls, supplier_id, count):
        return cls('Supplier', supplier_id, 'Purchase Orders',
                   f"Cannot delete supplier because they have {count} active purchase order{_plural(count)}",
                   'SUPPLIER_HAS_PURCHASE_ORDERS')

    @classmethod
    def inventory_has_categories(cls, inventory_id, count):
        return cls('Inventory', inventory_id, 'Categories',
                   f"Cannot delete inventory because it contains {count} categor{_plural(count, 'y', 'ies')}",
                   'INVENTORY_HAS_CATEGORIES')


class InsufficientStockException(SalesAPIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Insufficient stock.'
    default_code = 'INSUFFICIENT_STOCK'
    error_label = 'Insufficient Stock'

    def __init__(self, product_name, available_stock, requested_quantity):
        self.product_name = product_name
        self.available_stock = available_stock
        self.requested_quantity = requested_quantity
        if available_stock == 0:
            message = (
                f"Product '{product_name}' is currently out of stock. You requested {requested_quantity} unit(s), "
                f"but none are available. Please check back later or choose a different product."
            )
        elif available_stock == 1:
            message = (
                f"Insufficient stock for product '{product_name}'. You requested {requested_quantity} unit(s), "
                f"but only 1 unit is available. Please adjust your quantity or choose a different product."
            )
        else:
            message = (
                f"Insufficient stock for product '{product_name}'. You requested {requested_quantity} unit(s), "
                f"but only {available_stock} units are available. Please reduce the quantity or choose a different product."
            )
        super().__init__(
            message,
            details={
                'product_name': product_name,
                'available_stock': available_stock,
                'requested_quantity': requested_quantity,
                'shortfall': requested_quantity - available_stock,
            },
            suggestion="Please reduce the quantity, choose a different product, or check back later for restocked items.",
        )


class FileUploadException(SalesAPIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'File upload failed.'
    default_code = 'FILE_UPLOAD_ERROR'
    error_label = 'File Upload Error'

    @classmethod
    def empty_file(cls, file_name):
        return cls(f"File '{file_name}' is empty")

    @classmethod
    def file_too_large(cls, file_name, size, max_size):
        return cls(f"File '{file_name}' is too large ({format_file_size(size)}). "
                   f"Maximum allowed size: {format_file_size(max_size)}")

    @classmethod
    def invalid_file_name(cls, reason):
        return cls(f"Invalid file name: {reason}")

    @classmethod
    def invalid_file_type(cls, file_name, allowed):
        return cls(f"Invalid file type for '{file_name}'. Allowed types: {allowed}")

    @classmethod
    def invalid_mime_type(cls, file_name, actual, expected):
        return cls(f"Invalid MIME type for file '{file_name}'. Expected: {expected}, but got: {actual}. "
                   f"Only JAR files are allowed for application updates.")

    @classmethod
    def invalid_file_structure(cls, file_name, reason):
        return cls(f"Invalid file structure for '{file_name}': {reason}. "
                   f"Only valid JAR files are allowed for application updates.")

    @classmethod
    def invalid_jar_manifest(cls, file_name, reason):
        return cls(f"Invalid JAR manifest for '{file_name}': {reason}. "
                   f"The JAR file must contain a valid MANIFEST.MF file.")

    @classmethod
    def corrupted_jar_file(cls, file_name, reason):
        return cls(f"Corrupted JAR file '{file_name}': {reason}. "
                   f"Please ensure the file is a valid, uncorrupted JAR archive.")

    @classmethod
    def suspicious_jar_content(cls, file_name, reason):
        return cls(f"Suspicious content detected in JAR file '{file_name}': {reason}. "
                   f"The file may contain potentially harmful content.")

    @classmethod
    def file_not_found(cls, file_name):
        return cls(f"File '{file_name}' not found")


class UpdateNotFoundException(SalesAPIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Update not found.'
    default_code = 'UPDATE_NOT_FOUND'
    error_label = 'Update Not Found'

    @classmethod
    def for_version(cls, version_number):
        return cls(f"Version not found: {version_number}")

    @classmethod
    def for_id(cls, pk):
        return cls(f"Version not found with id: {pk}")

    @classmethod
    def no_active_versions(cls):
        return cls("No active versions available")


def format_file_size(size):
    """Human-readable file size, e.g. 1.5 MB"""
    if size is None:
        return 'Unknown'
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    return f"{size / (1024 * 1024 * 1024):.1f} GB"


def build_error_payload(status_code, message, error_code, label=None, details=None, suggestion=None):
    payload = {
        'error': message,
        'error_code': error_code,
        'status': status_code,
        'timestamp': timezone.now().isoformat(),
    }
    if label:
        payload['title'] = label
    if details:
        payload['details'] = details
    if suggestion:
        payload['suggestion'] = suggestion
    return payload


def exception_handler(exc, context):
    """Global handler wired through REST_FRAMEWORK['EXCEPTION_HANDLER']"""
    if isinstance(exc, SalesAPIException):
        set_rollback()
        view = context.get('view')
        logger.warning(
            f"{exc.error_code} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
        )
        return Response(
            build_error_payload(
                exc.status_code, exc.message, exc.error_code,
                label=exc.error_label, details=exc.details, suggestion=exc.suggestion,
            ),
            status=exc.status_code,
        )

    if isinstance(exc, (IntegrityError, ProtectedError)):
        set_rollback()
        logger.error(f"Database constraint violation: {exc}")
        return Response(
            build_error_payload(
                status.HTTP_409_CONFLICT,
                'Cannot perform this operation due to existing data dependencies.',
                'DATABASE_CONSTRAINT_VIOLATION',
                label='Data Integrity Violation',
                suggestion='Please remove or reassign dependent records before attempting this operation.',
            ),
            status=status.HTTP_409_CONFLICT,
        )

    return drf_exception_handler(exc, context)
