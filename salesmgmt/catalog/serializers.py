from rest_framework import serializers
from .models import Category, Product


class CategorySerializer(serializers.ModelSerializer):
    inventory_name = serializers.CharField(source='inventory.name', read_only=True, default=None)
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = '__all__'
        extra_kwargs = {'name': {'validators': []}}

    def get_product_count(self, obj):
        if hasattr(obj, 'product_count'):
            return obj.product_count
        return obj.products.count()


class CategoryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Category.STATUS_CHOICES)


class ProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    is_low_stock = serializers.BooleanField(read_only=True)
    is_out_of_stock = serializers.BooleanField(read_only=True)
    needs_reorder = serializers.BooleanField(read_only=True)
    is_expired = serializers.BooleanField(read_only=True)
    profit_margin = serializers.DecimalField(max_digits=8, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = '__all__'
        read_only_fields = ['total_sold', 'total_revenue', 'last_sold_date', 'last_restocked_date', 'created_at', 'updated_at']
        extra_kwargs = {
            'sku': {'validators': []},
            'barcode': {'validators': []},
        }


class ProductListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list and lookup endpoints"""
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'sku', 'barcode', 'price', 'stock_quantity', 'category', 'category_name',
                  'brand', 'product_status', 'is_low_stock', 'reorder_point', 'created_at']


class StockUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()


class ProductStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Product.STATUS_CHOICES)
