"""
Abstract base models for Bazaar applications
"""
import uuid
from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model with common fields for all entities.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return str(self.id)


class SortedContentModel(BaseModel):
    """
    Abstract model for storefront content blocks shown in a fixed order.
    """
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        abstract = True
        ordering = ['order', '-created_at']

    def __str__(self):
        return self.title
