from rest_framework import serializers
from salesmgmt.catalog.models import Category, Product
from .models import Promotion


class PromotionSerializer(serializers.ModelSerializer):
    applicable_products = serializers.PrimaryKeyRelatedField(many=True, queryset=Product.objects.all(), required=False)
    applicable_categories = serializers.PrimaryKeyRelatedField(many=True, queryset=Category.objects.all(), required=False)
    type_display = serializers.CharField(source='get_type_display', read_only=True)
    eligibility_display = serializers.CharField(source='get_customer_eligibility_display', read_only=True)
    status_display = serializers.CharField(read_only=True)
    is_currently_active = serializers.BooleanField(read_only=True)
    is_expired = serializers.BooleanField(read_only=True)
    is_not_yet_started = serializers.BooleanField(read_only=True)
    is_usage_limit_reached = serializers.BooleanField(read_only=True)
    days_until_expiry = serializers.IntegerField(read_only=True)
    remaining_usage = serializers.IntegerField(read_only=True)
    usage_percentage = serializers.FloatField(read_only=True)

    class Meta:
        model = Promotion
        fields = '__all__'
        read_only_fields = ['usage_count']
        extra_kwargs = {
            'coupon_code': {'validators': []},
        }


class DiscountCalculationSerializer(serializers.Serializer):
    order_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
