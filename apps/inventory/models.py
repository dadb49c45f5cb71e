"""
Inventory Models
Tables: Stock, InventoryLogs
"""
from django.db import models
from django.db.models import Q

from apps.core.models import BaseModel


class Stock(BaseModel):
    """
    On-hand quantity for a product, or for one of its variants.

    A product has at most one base record (``variant`` NULL) and at most
    one record per variant.
    """
    product = models.ForeignKey('catalog.Product', on_delete=models.CASCADE, related_name='stock_entries')
    variant = models.ForeignKey(
        'catalog.ProductVariant', on_delete=models.CASCADE, null=True, blank=True,
        related_name='stock_entries'
    )
    quantity = models.PositiveIntegerField(null=True, blank=True)
    min_stock = models.PositiveIntegerField(default=0)
    notes = models.TextField(blank=True, default='')

    class Meta:
        db_table = 'inventory_stock'
        verbose_name = 'Stock Entry'
        verbose_name_plural = 'Stock Entries'
        ordering = ['-updated_at']
        constraints = [
            models.UniqueConstraint(fields=['product', 'variant'], name='unique_product_variant_stock'),
            models.UniqueConstraint(
                fields=['product'], condition=Q(variant__isnull=True), name='unique_product_base_stock'
            ),
        ]

    @property
    def is_low(self) -> bool:
        return (self.quantity or 0) <= self.min_stock

    def __str__(self):
        return f"{self.product_id}/{self.variant_id or 'base'}: {self.quantity}"


class InventoryLog(BaseModel):
    """
    Append-only record of every quantity change.
    """
    product = models.ForeignKey('catalog.Product', on_delete=models.CASCADE, related_name='inventory_logs')
    variant = models.ForeignKey(
        'catalog.ProductVariant', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='inventory_logs'
    )
    staff = models.ForeignKey(
        'accounts.Staff', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='inventory_logs'
    )
    change = models.IntegerField()
    reason = models.CharField(max_length=255)

    class Meta:
        db_table = 'inventory_logs'
        verbose_name = 'Inventory Log'
        verbose_name_plural = 'Inventory Logs'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.product_id} {self.change:+d} ({self.reason})"
