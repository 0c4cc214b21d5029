from django.db import models


class Inventory(models.Model):
    """Warehouse or storage location that groups categories"""
    STATUS_CHOICES = [
        ('ACTIVE', 'Active'),
        ('INACTIVE', 'Inactive'),
        ('ARCHIVED', 'Archived'),
        ('MAINTENANCE', 'Maintenance'),
    ]

    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True, null=True)
    location = models.CharField(max_length=255)
    address = models.TextField(blank=True, null=True)
    manager_name = models.CharField(max_length=255, blank=True, null=True)
    manager_phone = models.CharField(max_length=30, blank=True, null=True)
    manager_email = models.EmailField(blank=True, null=True)
    length = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    width = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    height = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    capacity = models.IntegerField(null=True, blank=True, help_text="Maximum number of items")
    current_stock_count = models.IntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='ACTIVE')
    warehouse_code = models.CharField(max_length=50, unique=True, blank=True, null=True)
    is_main_warehouse = models.BooleanField(default=False)
    start_work_time = models.TimeField(null=True, blank=True)
    end_work_time = models.TimeField(null=True, blank=True)
    contact_phone = models.CharField(max_length=30, blank=True, null=True)
    contact_email = models.EmailField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def has_dimensions(self):
        return self.length is not None and self.width is not None and self.height is not None

    @property
    def volume(self):
        if not self.has_dimensions:
            return None
        return self.length * self.width * self.height

    @property
    def floor_area(self):
        if self.length is None or self.width is None:
            return None
        return self.length * self.width

    @property
    def work_duration_minutes(self):
        if not self.start_work_time or not self.end_work_time:
            return None
        start = self.start_work_time.hour * 60 + self.start_work_time.minute
        end = self.end_work_time.hour * 60 + self.end_work_time.minute
        return end - start

    @property
    def capacity_utilization(self):
        if not self.capacity:
            return None
        return round(self.current_stock_count * 100.0 / self.capacity, 2)

    class Meta:
        db_table = 'inventories'
        ordering = ['name']
        verbose_name_plural = 'inventories'
        indexes = [
            models.Index(fields=['status'], name='inventories_status_idx'),
        ]
