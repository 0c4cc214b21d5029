from rest_framework import serializers
from .models import Inventory


class InventorySerializer(serializers.ModelSerializer):
    category_count = serializers.SerializerMethodField()
    volume = serializers.DecimalField(max_digits=20, decimal_places=2, read_only=True)
    floor_area = serializers.DecimalField(max_digits=20, decimal_places=2, read_only=True)
    has_dimensions = serializers.BooleanField(read_only=True)
    work_duration_minutes = serializers.IntegerField(read_only=True)
    capacity_utilization = serializers.FloatField(read_only=True)

    class Meta:
        model = Inventory
        fields = '__all__'
        # Uniqueness is checked in services so the error shape matches other business rules
        extra_kwargs = {
            'name': {'validators': []},
            'warehouse_code': {'validators': []},
        }

    def get_category_count(self, obj):
        if hasattr(obj, 'category_count'):
            return obj.category_count
        return obj.categories.count()


class InventoryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Inventory.STATUS_CHOICES)
