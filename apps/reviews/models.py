"""
Review Models
Tables: Ratings
"""
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.core.models import BaseModel


class Rating(BaseModel):
    """
    One customer's rating of one product, tied to the delivered order it
    came from. Only approved ratings count toward product averages.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    customer = models.ForeignKey('accounts.Customer', on_delete=models.CASCADE, related_name='ratings')
    product = models.ForeignKey('catalog.Product', on_delete=models.CASCADE, related_name='ratings')
    order = models.ForeignKey('sales.Order', on_delete=models.SET_NULL, null=True, related_name='ratings')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    review = models.TextField(max_length=1000, blank=True, default='')
    images = models.JSONField(default=list, blank=True)
    verified_purchase = models.BooleanField(default=True)
    helpful_count = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')

    class Meta:
        db_table = 'reviews_ratings'
        verbose_name = 'Rating'
        verbose_name_plural = 'Ratings'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['customer', 'product'], name='unique_customer_product_rating'),
        ]

    def __str__(self):
        return f"{self.product_id}: {self.rating}/5 ({self.status})"
