from rest_framework import serializers
from salesmgmt.catalog.models import Product
from salesmgmt.parties.models import Customer
from salesmgmt.sales.models import Sale, SaleItem
from .models import Return, ReturnItem
from .services import return_policy_days


class ReturnItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = ReturnItem
        exclude = ['return_request']


class ReturnSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    original_sale_number = serializers.CharField(source='original_sale.sale_number', read_only=True)
    items = ReturnItemSerializer(many=True, read_only=True)
    is_within_return_period = serializers.SerializerMethodField()

    class Meta:
        model = Return
        fields = '__all__'

    def get_is_within_return_period(self, obj):
        return obj.is_within_return_period(return_policy_days())


class ReturnItemInputSerializer(serializers.Serializer):
    original_sale_item = serializers.PrimaryKeyRelatedField(queryset=SaleItem.objects.select_related('product'))
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all(), required=False, allow_null=True)
    return_quantity = serializers.IntegerField()
    original_unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    restocking_fee = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    item_condition = serializers.ChoiceField(choices=ReturnItem.CONDITION_CHOICES, required=False, allow_null=True)
    condition_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    serial_numbers = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    is_restockable = serializers.BooleanField(required=False, allow_null=True, default=None)
    disposal_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ReturnInputSerializer(serializers.Serializer):
    original_sale = serializers.PrimaryKeyRelatedField(queryset=Sale.objects.select_related('customer'))
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all(), required=False, allow_null=True)
    reason = serializers.ChoiceField(choices=Return.REASON_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    total_refund_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    items = ReturnItemInputSerializer(many=True, required=False)


class RejectReturnSerializer(serializers.Serializer):
    rejection_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class RefundSerializer(serializers.Serializer):
    refund_method = serializers.ChoiceField(choices=Return.REFUND_METHOD_CHOICES)
    refund_reference = serializers.CharField(required=False, allow_blank=True, allow_null=True)
