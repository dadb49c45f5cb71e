"""
Order and coupon serializers
"""
from rest_framework import serializers

from apps.sales.models import Coupon, Order, OrderItem


class ShippingAddressSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True)
    street = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    pincode = serializers.CharField(max_length=20)


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'variant', 'product_name', 'quantity', 'unit_price', 'subtotal']


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    shipping_address = serializers.DictField(read_only=True)
    customer_name = serializers.CharField(source='customer.name', read_only=True, default=None)
    coupon_code = serializers.CharField(source='coupon.code', read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            'id', 'invoice_no', 'customer', 'customer_name', 'status', 'payment_method',
            'payment_status', 'subtotal', 'shipping_cost', 'discount_amount', 'tax_amount',
            'total_amount', 'coupon_code', 'tracking_number', 'estimated_delivery',
            'order_time', 'shipping_address', 'items', 'created_at', 'updated_at',
        ]


class OrderLineInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=0)


class PlaceOrderSerializer(serializers.Serializer):
    payment_method = serializers.CharField()
    shipping_address = ShippingAddressSerializer()
    items = OrderLineInputSerializer(many=True, allow_empty=False)
    shipping_cost = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, default=0, min_value=0)
    coupon_code = serializers.CharField(required=False, allow_blank=True)


class AdminOrderCreateSerializer(PlaceOrderSerializer):
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    payment_method = serializers.ChoiceField(choices=[c[0] for c in Order.PAYMENT_METHOD_CHOICES], default='cash')
    payment_status = serializers.ChoiceField(choices=[c[0] for c in Order.PAYMENT_STATUS_CHOICES], required=False)
    status = serializers.CharField(required=False, default='processing')
    shipping_address = ShippingAddressSerializer(required=False)


class OrderStatusSerializer(serializers.Serializer):
    """
    ``status`` is checked against the allowed set by the service layer so
    that every caller gets the same error.
    """
    status = serializers.CharField()
    trackingNumber = serializers.CharField(required=False, allow_blank=True)


class CouponSerializer(serializers.ModelSerializer):
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = Coupon
        fields = [
            'id', 'campaign_name', 'code', 'discount_type', 'discount_value', 'start_date',
            'end_date', 'min_purchase', 'max_discount', 'usage_limit', 'used_count',
            'image_url', 'published', 'is_expired', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'used_count', 'created_at', 'updated_at']

    def validate_code(self, value):
        value = value.strip().upper()
        qs = Coupon.objects.filter(code=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Coupon code already exists")
        return value

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "End date must be after start date"})
        discount_type = attrs.get('discount_type', getattr(self.instance, 'discount_type', 'percentage'))
        value = attrs.get('discount_value', getattr(self.instance, 'discount_value', None))
        if discount_type == 'percentage' and value is not None and value > 100:
            raise serializers.ValidationError({"discount_value": "Percentage discount cannot exceed 100"})
        return attrs


class CouponValidateSerializer(serializers.Serializer):
    code = serializers.CharField()
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
