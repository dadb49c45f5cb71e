"""
Rating workflows and product rating aggregates
"""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict

from django.db import transaction
from django.db.models import Avg, Count, Q

from apps.catalog.models import Product
from apps.core.exceptions import ResourceNotFoundException, ValidationException
from apps.sales.models import Order
from .models import Rating

logger = logging.getLogger(__name__)


def recalculate_product_rating(product_id) -> Dict:
    """
    Rebuild a product's average (one decimal), rating count and review count
    from its approved ratings.
    """
    stats = Rating.objects.filter(product_id=product_id, status='approved').aggregate(
        average=Avg('rating'),
        total=Count('id'),
        reviews=Count('id', filter=~Q(review='')),
    )
    average = Decimal('0')
    if stats['total']:
        average = Decimal(str(stats['average'])).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)

    Product.objects.filter(pk=product_id).update(
        average_rating=average,
        total_ratings=stats['total'],
        total_reviews=stats['reviews'],
    )
    logger.debug(f"Product {product_id} rating now {average} from {stats['total']} ratings")
    return {"average_rating": average, "total_ratings": stats['total'], "total_reviews": stats['reviews']}


def submit_rating(customer, data: Dict) -> Rating:
    """
    Create or replace the customer's rating for a product.

    The order must belong to the customer, be delivered and contain the
    product. A resubmitted rating goes back to moderation.
    """
    product = Product.objects.filter(pk=data['product_id']).first()
    if product is None:
        raise ResourceNotFoundException("Product", data['product_id'])

    order = Order.objects.filter(pk=data['order_id'], customer=customer).first()
    if order is None:
        raise ResourceNotFoundException("Order", data['order_id'])
    if order.status != 'delivered':
        raise ValidationException("You can only review products from delivered orders", field='order_id')
    if not order.items.filter(product=product).exists():
        raise ValidationException("This product is not part of the order", field='product_id')

    with transaction.atomic():
        rating, created = Rating.objects.update_or_create(
            customer=customer,
            product=product,
            defaults={
                'order': order,
                'rating': data['rating'],
                'review': data.get('review', ''),
                'images': data.get('images', []),
                'verified_purchase': True,
                'status': 'pending',
            },
        )
        if not created:
            recalculate_product_rating(product.pk)

    logger.info(f"Rating {'created' if created else 'updated'} for product {product.pk} by customer {customer.pk}")
    return rating


def set_rating_status(rating: Rating, status: str) -> Rating:
    if status not in dict(Rating.STATUS_CHOICES):
        raise ValidationException(f"Invalid rating status '{status}'", field='status')
    with transaction.atomic():
        rating.status = status
        rating.save(update_fields=['status', 'updated_at'])
        recalculate_product_rating(rating.product_id)
    logger.info(f"Rating {rating.pk} marked {status}")
    return rating


def delete_rating(rating: Rating):
    product_id = rating.product_id
    with transaction.atomic():
        rating.delete()
        recalculate_product_rating(product_id)
