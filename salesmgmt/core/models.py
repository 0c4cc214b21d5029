from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Application user; ``role`` scopes what the account may do beyond plain staff flags"""
    ROLE_CHOICES = [
        ('USER', 'User'),
        ('ADMIN', 'Administrator'),
        ('MANAGER', 'Manager'),
        ('SALES_ANALYST', 'Sales Analyst'),
        ('CUSTOMER_ANALYST', 'Customer Analyst'),
        ('PRODUCT_ANALYST', 'Product Analyst'),
        ('INVENTORY_ANALYST', 'Inventory Analyst'),
        ('FINANCIAL_ANALYST', 'Financial Analyst'),
        ('MARKETING_ANALYST', 'Marketing Analyst'),
        ('EXECUTIVE', 'Executive'),
    ]
    SELF_SERVICE_ROLES = [role for role, _ in ROLE_CHOICES if role not in ('ADMIN', 'MANAGER', 'EXECUTIVE')]

    role = models.CharField(max_length=30, choices=ROLE_CHOICES, default='USER')
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('restore', 'Restore'),
        ('status_change', 'Status Change'),
        ('stock_adjust', 'Stock Adjustment'),
        ('sale_complete', 'Sale Completed'),
        ('sale_cancel', 'Sale Cancelled'),
        ('promotion_apply', 'Promotion Applied'),
        ('promotion_remove', 'Promotion Removed'),
        ('return', 'Return'),
        ('refund', 'Refund'),
        ('po_approve', 'Purchase Order Approved'),
        ('po_receive', 'Purchase Order Received'),
        ('version_upload', 'Version Uploaded'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., product name, sale number)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., sale number, return number, order number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action} {self.model_name}#{self.object_id}"

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_idx'),
            models.Index(fields=['action'], name='audit_logs_action_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_ref_idx'),
        ]
