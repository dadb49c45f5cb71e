"""
Stock and inventory log serializers
"""
from rest_framework import serializers

from apps.inventory.models import InventoryLog, Stock


class StockSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    variant_name = serializers.CharField(source='variant.name', read_only=True, default=None)
    is_low = serializers.BooleanField(read_only=True)

    class Meta:
        model = Stock
        fields = [
            'id', 'product', 'product_name', 'product_sku', 'variant', 'variant_name',
            'quantity', 'min_stock', 'notes', 'is_low', 'created_at', 'updated_at',
        ]


class StockCreateSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    min_stock = serializers.IntegerField(min_value=0, required=False, default=0)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class StockUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    min_stock = serializers.IntegerField(min_value=0, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class StockQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0)


class StockBulkEntrySerializer(StockUpdateSerializer):
    id = serializers.UUIDField()


class StockBulkUpdateSerializer(serializers.Serializer):
    updates = StockBulkEntrySerializer(many=True, allow_empty=False)


class StockBulkSyncSerializer(serializers.Serializer):
    product_id = serializers.UUIDField(required=False)
    variant_id = serializers.UUIDField(required=False)


class InventoryLogSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    staff_name = serializers.CharField(source='staff.name', read_only=True, default=None)

    class Meta:
        model = InventoryLog
        fields = ['id', 'product', 'product_name', 'variant', 'staff', 'staff_name', 'change', 'reason', 'created_at']
