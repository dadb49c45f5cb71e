"""
Report cache invalidation

Any committed write to data the reports read makes every cached report
stale. Dispatch decrements use ``QuerySet.update`` and send no signals;
the order status change that runs them invalidates on its own.
"""
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from apps.accounts.models import Customer
from apps.catalog.models import Category, CategorySubcategoryMap, Product, ProductVariant, Subcategory
from apps.inventory.models import Stock
from apps.reviews.models import Rating
from apps.sales.models import Order, OrderItem

from .cache import invalidate_reports

REPORT_SOURCES = (
    Customer, Category, Subcategory, CategorySubcategoryMap, Product, ProductVariant,
    Stock, Order, OrderItem, Rating,
)


@receiver(post_save)
@receiver(post_delete)
def invalidate_on_write(sender, **kwargs):
    if sender in REPORT_SOURCES:
        transaction.on_commit(invalidate_reports)
