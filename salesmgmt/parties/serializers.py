from rest_framework import serializers
from .models import Customer, Supplier


class CustomerSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    available_credit = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Customer
        fields = '__all__'
        read_only_fields = ['last_purchase_date', 'total_purchases', 'is_deleted', 'deleted_at',
                            'deleted_by', 'deletion_reason', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'required': False},
            'email': {'validators': []},
        }


class CustomerListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ['id', 'name', 'email', 'phone', 'customer_type', 'customer_status', 'loyalty_points',
                  'current_balance', 'credit_limit', 'total_purchases', 'is_deleted', 'created_at']


class CustomerStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Customer.STATUS_CHOICES)


class CustomerTypeSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=Customer.TYPE_CHOICES)


class CreditLimitSerializer(serializers.Serializer):
    credit_limit = serializers.DecimalField(max_digits=12, decimal_places=2)


class LoyaltyPointsSerializer(serializers.Serializer):
    points = serializers.IntegerField()


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = '__all__'
        read_only_fields = ['total_orders', 'total_amount', 'last_order_date', 'created_at', 'updated_at']
        extra_kwargs = {
            'email': {'validators': []},
            'tax_number': {'validators': []},
        }


class SupplierRatingSerializer(serializers.Serializer):
    rating = serializers.FloatField()
