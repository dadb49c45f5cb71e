"""
Storefront offer serializers
"""
from rest_framework import serializers

from apps.marketing.models import BulkOrder, MarqueeOffer, SpecialOffer


class BulkOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = BulkOrder
        fields = ['id', 'title', 'description', 'price', 'min_quantity', 'image', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class SpecialOfferSerializer(serializers.ModelSerializer):
    class Meta:
        model = SpecialOffer
        fields = ['id', 'title', 'description', 'icon', 'bg_color', 'order', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class MarqueeOfferSerializer(serializers.ModelSerializer):
    class Meta:
        model = MarqueeOffer
        fields = ['id', 'title', 'description', 'icon', 'order', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']
