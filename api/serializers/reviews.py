"""
Rating serializers
"""
from rest_framework import serializers

from apps.reviews.models import Rating


class RatingSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = Rating
        fields = [
            'id', 'customer', 'customer_name', 'product', 'product_name', 'order', 'rating',
            'review', 'images', 'verified_purchase', 'helpful_count', 'status',
            'created_at', 'updated_at',
        ]


class RatingSubmitSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    order_id = serializers.UUIDField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    review = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')
    images = serializers.ListField(child=serializers.URLField(), required=False, default=list)


class RatingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in Rating.STATUS_CHOICES])
