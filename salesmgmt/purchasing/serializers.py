from rest_framework import serializers
from salesmgmt.catalog.models import Product
from salesmgmt.parties.models import Supplier
from .models import PurchaseOrder, PurchaseOrderItem


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True, default=None)
    pending_quantity = serializers.IntegerField(read_only=True)
    is_fully_received = serializers.BooleanField(read_only=True)

    class Meta:
        model = PurchaseOrderItem
        fields = ['id', 'product', 'product_name', 'product_sku', 'quantity', 'unit_cost', 'tax_percentage',
                  'tax_amount', 'discount_percentage', 'discount_amount', 'subtotal', 'total_price',
                  'received_quantity', 'pending_quantity', 'is_fully_received', 'notes']


class PurchaseOrderSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)
    approved_by_username = serializers.CharField(source='approved_by.username', read_only=True, default=None)
    items = PurchaseOrderItemSerializer(many=True, read_only=True)
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = PurchaseOrder
        fields = '__all__'

    def get_item_count(self, obj):
        return len(obj.items.all())


class PurchaseOrderItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField()
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True)
    discount_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True)
    total_price = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class PurchaseOrderInputSerializer(serializers.Serializer):
    supplier = serializers.PrimaryKeyRelatedField(queryset=Supplier.objects.all())
    order_date = serializers.DateTimeField(required=False, allow_null=True)
    expected_delivery_date = serializers.DateTimeField(required=False, allow_null=True)
    priority = serializers.ChoiceField(choices=PurchaseOrder.PRIORITY_CHOICES, required=False)
    payment_terms = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    delivery_terms = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    shipping_address = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    tax_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    discount_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    items = PurchaseOrderItemInputSerializer(many=True, required=False)


class PurchaseOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PurchaseOrder.STATUS_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    actual_delivery_date = serializers.DateTimeField(required=False, allow_null=True)


class PurchaseOrderApproveSerializer(serializers.Serializer):
    approval_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ReceiveItemSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    received_quantity = serializers.IntegerField()


class PurchaseOrderReceiveSerializer(serializers.Serializer):
    items = ReceiveItemSerializer(many=True, required=False)
    actual_delivery_date = serializers.DateTimeField(required=False, allow_null=True)
