"""
Marketing Models
Tables: BulkOrders, SpecialOffers, MarqueeOffers
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from apps.core.models import BaseModel, SortedContentModel


class BulkOrder(BaseModel):
    """
    Wholesale deal: a price that applies from ``min_quantity`` units.
    """
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    min_quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    image = models.URLField(max_length=500, blank=True, default='')
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'marketing_bulk_orders'
        verbose_name = 'Bulk Order'
        verbose_name_plural = 'Bulk Orders'
        ordering = ['-created_at']

    def __str__(self):
        return self.title


class SpecialOffer(SortedContentModel):
    icon = models.CharField(max_length=100, blank=True, default='')
    bg_color = models.CharField(max_length=50, blank=True, default='')

    class Meta(SortedContentModel.Meta):
        db_table = 'marketing_special_offers'
        verbose_name = 'Special Offer'
        verbose_name_plural = 'Special Offers'


class MarqueeOffer(SortedContentModel):
    icon = models.CharField(max_length=100, blank=True, default='')

    class Meta(SortedContentModel.Meta):
        db_table = 'marketing_marquee_offers'
        verbose_name = 'Marquee Offer'
        verbose_name_plural = 'Marquee Offers'
