from decimal import Decimal
from rest_framework import serializers
from salesmgmt.catalog.models import Product
from salesmgmt.parties.models import Customer
from .models import Sale, SaleItem, AppliedPromotion


class SaleItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True, default=None)
    remaining_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = SaleItem
        exclude = ['sale']


class AppliedPromotionSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_promotion_type_display', read_only=True)

    class Meta:
        model = AppliedPromotion
        fields = '__all__'


class SaleSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    items = SaleItemSerializer(many=True, read_only=True)
    applied_promotions = AppliedPromotionSerializer(many=True, read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)
    total_savings = serializers.SerializerMethodField()
    has_promotions = serializers.SerializerMethodField()
    promotion_count = serializers.SerializerMethodField()

    class Meta:
        model = Sale
        fields = '__all__'

    def get_total_savings(self, obj):
        return str(sum((a.discount_amount for a in obj.applied_promotions.all()), Decimal('0.00')))

    def get_has_promotions(self, obj):
        return len(obj.applied_promotions.all()) > 0

    def get_promotion_count(self, obj):
        return len(obj.applied_promotions.all())


class SaleListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for sale lists"""
    customer_name = serializers.CharField(source='customer.name', read_only=True)

    class Meta:
        model = Sale
        fields = ['id', 'sale_number', 'customer', 'customer_name', 'sale_date', 'status', 'total_amount',
                  'payment_status', 'payment_method', 'delivery_status', 'due_date', 'is_gift', 'created_at']


class SaleItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True, min_value=0)
    discount_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True,
                                                   min_value=0, max_value=100)
    tax_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True, min_value=0)
    serial_numbers = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class SaleInputSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.not_deleted())
    items = SaleItemInputSerializer(many=True, required=False)
    reference_number = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    discount_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True)
    discount_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True, min_value=0)
    tax_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True)
    tax_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True, min_value=0)
    shipping_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    payment_method = serializers.ChoiceField(choices=Sale.PAYMENT_METHOD_CHOICES, required=False, allow_null=True)
    sale_type = serializers.ChoiceField(choices=Sale.SALE_TYPE_CHOICES, required=False)
    billing_address = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    shipping_address = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    sales_person = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    sales_channel = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    expected_delivery_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    internal_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    terms = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    warranty_info = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    is_gift = serializers.BooleanField(required=False)
    gift_message = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    loyalty_points_used = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    currency = serializers.CharField(required=False, max_length=3)
    exchange_rate = serializers.DecimalField(max_digits=10, decimal_places=4, required=False)
    coupon_code = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class SaleStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Sale.STATUS_CHOICES)


class PaymentSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=Sale.PAYMENT_METHOD_CHOICES, required=False)
    payment_status = serializers.ChoiceField(choices=Sale.PAYMENT_STATUS_CHOICES, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("payment_method or payment_status is required")
        return attrs


class DeliverySerializer(serializers.Serializer):
    delivery_status = serializers.ChoiceField(choices=Sale.DELIVERY_STATUS_CHOICES)
    tracking_number = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    expected_delivery_date = serializers.DateField(required=False, allow_null=True)


class ItemReturnSerializer(serializers.Serializer):
    return_quantity = serializers.IntegerField()
    return_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ApplyPromotionSerializer(serializers.Serializer):
    coupon_code = serializers.CharField(required=False, allow_blank=False)
    promotion_id = serializers.IntegerField(required=False)

    def validate(self, attrs):
        if not attrs.get('coupon_code') and not attrs.get('promotion_id'):
            raise serializers.ValidationError("coupon_code or promotion_id is required")
        return attrs
