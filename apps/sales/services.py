"""
Sales services

Order placement, order status transitions (with the dispatch stock
decrement) and derived customer statistics.
"""
import logging
import random
from datetime import timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Count, F, Max, Sum
from django.utils import timezone

from apps.accounts.models import Customer
from apps.analytics.cache import invalidate_reports
from apps.catalog.models import Product, ProductVariant
from apps.core.exceptions import ResourceNotFoundException, ValidationException
from apps.core.utils import generate_invoice_number
from apps.inventory.services import dispatch_order_stock
from .models import Coupon, Order, OrderItem

logger = logging.getLogger(__name__)

VALID_STATUSES = ('pending', 'processing', 'dispatched', 'shipped', 'delivered', 'cancelled')
TWO_PLACES = Decimal('0.01')

SHIPPING_FIELDS = ('name', 'phone', 'email', 'street', 'city', 'state', 'pincode')


def _shipping_kwargs(address: Optional[Dict]) -> Dict:
    address = address or {}
    return {f'shipping_{key}': address.get(key) or '' for key in SHIPPING_FIELDS}


def validate_status(status: str) -> str:
    if status not in VALID_STATUSES:
        raise ValidationException(
            f"Invalid status '{status}'. Allowed: {', '.join(VALID_STATUSES)}", field='status'
        )
    return status


def change_order_status(order_id, status: str, tracking_number: Optional[str] = None, staff=None) -> Order:
    """
    Move an order to ``status``.

    Entering ``dispatched`` from any other status takes the ordered units
    out of stock in the same transaction; if any line is short, nothing is
    decremented and the status stays as it was.
    """
    validate_status(status)

    with transaction.atomic():
        order = Order.objects.select_for_update().filter(pk=order_id).first()
        if order is None:
            raise ResourceNotFoundException("Order", order_id)

        previous = order.status
        if status == 'dispatched' and previous != 'dispatched':
            dispatch_order_stock(order, staff=staff)

        order.status = status
        update_fields = ['status', 'updated_at']
        if status == 'shipped' and tracking_number:
            order.tracking_number = tracking_number
            update_fields.append('tracking_number')
            if order.estimated_delivery is None:
                order.estimated_delivery = timezone.now() + timedelta(days=settings.DEFAULT_DELIVERY_DAYS)
                update_fields.append('estimated_delivery')
        order.save(update_fields=update_fields)
        transaction.on_commit(invalidate_reports)

    logger.info(f"Order {order.invoice_no} status {previous} -> {status}")
    return order


def _resolve_line(line: Dict):
    product = Product.objects.filter(pk=line['product_id']).first()
    if product is None:
        raise ResourceNotFoundException("Product", line['product_id'])
    variant = None
    if line.get('variant_id'):
        variant = ProductVariant.objects.filter(pk=line['variant_id'], product=product).first()
        if variant is None:
            raise ResourceNotFoundException("Variant", line['variant_id'])
    return product, variant


def resolve_coupon(code: Optional[str], subtotal: Decimal) -> Optional[Coupon]:
    if not code:
        return None
    coupon = Coupon.objects.filter(code=code.strip().upper()).first()
    if coupon is None:
        raise ResourceNotFoundException("Coupon", code)
    if not coupon.is_valid(subtotal):
        raise ValidationException("Coupon is not applicable to this order", field='coupon_code')
    return coupon


def _build_order(customer, lines: List[Dict], shipping_address: Dict, payment_method: str,
                 shipping_cost: Decimal, coupon_code: Optional[str], status: str,
                 use_catalog_prices: bool) -> Order:
    resolved = []
    subtotal = Decimal('0')
    for line in lines:
        product, variant = _resolve_line(line)
        if use_catalog_prices or line.get('unit_price') is None:
            unit_price = (variant or product).selling_price
        else:
            unit_price = Decimal(str(line['unit_price']))
        quantity = int(line['quantity'])
        line_total = (unit_price * quantity).quantize(TWO_PLACES)
        subtotal += line_total
        resolved.append((product, variant, quantity, unit_price, line_total))

    coupon = resolve_coupon(coupon_code, subtotal)
    discount = coupon.compute_discount(subtotal) if coupon else Decimal('0')
    tax_rate = Decimal(str(settings.ORDER_TAX_RATE))
    tax = ((subtotal - discount) * tax_rate).quantize(TWO_PLACES)
    shipping_cost = Decimal(str(shipping_cost or 0))
    total = (subtotal - discount + tax + shipping_cost).quantize(TWO_PLACES)

    order = Order.objects.create(
        customer=customer,
        coupon=coupon,
        invoice_no=generate_invoice_number(),
        status=status,
        payment_method=payment_method,
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        discount_amount=discount,
        tax_amount=tax,
        total_amount=total,
        estimated_delivery=timezone.now() + timedelta(days=random.randint(7, 14)),
        **_shipping_kwargs(shipping_address),
    )
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            product=product,
            variant=variant,
            product_name=variant.name if variant else product.name,
            quantity=quantity,
            unit_price=unit_price,
            subtotal=line_total,
        )
        for product, variant, quantity, unit_price, line_total in resolved
    ])
    if coupon is not None:
        Coupon.objects.filter(pk=coupon.pk).update(used_count=F('used_count') + 1)
    return order


def place_order(customer, data: Dict) -> Order:
    """
    Storefront checkout. Cash on delivery only; prices come from the
    catalog, not from the request.
    """
    if data.get('payment_method') != 'cash':
        raise ValidationException("Only Cash on Delivery payment method is supported", field='payment_method')

    with transaction.atomic():
        order = _build_order(
            customer=customer,
            lines=data['items'],
            shipping_address=data['shipping_address'],
            payment_method='cash',
            shipping_cost=data.get('shipping_cost', 0),
            coupon_code=data.get('coupon_code'),
            status='processing',
            use_catalog_prices=True,
        )
        transaction.on_commit(invalidate_reports)

    logger.info(f"Order {order.invoice_no} placed by customer {customer.pk}: total {order.total_amount}")
    return order


def create_order(data: Dict) -> Order:
    """Admin-side order entry; accepts explicit unit prices and status."""
    customer = None
    if data.get('customer_id'):
        customer = Customer.objects.filter(pk=data['customer_id']).first()
        if customer is None:
            raise ResourceNotFoundException("Customer", data['customer_id'])

    with transaction.atomic():
        order = _build_order(
            customer=customer,
            lines=data['items'],
            shipping_address=data.get('shipping_address'),
            payment_method=data.get('payment_method', 'cash'),
            shipping_cost=data.get('shipping_cost', 0),
            coupon_code=data.get('coupon_code'),
            status=validate_status(data.get('status', 'processing')),
            use_catalog_prices=False,
        )
        if data.get('payment_status'):
            order.payment_status = data['payment_status']
            order.save(update_fields=['payment_status', 'updated_at'])
        transaction.on_commit(invalidate_reports)

    logger.info(f"Order {order.invoice_no} created by staff")
    return order


def delete_order(order: Order):
    invoice_no = order.invoice_no
    order.delete()
    invalidate_reports()
    logger.info(f"Deleted order {invoice_no}")


def customer_statistics(customer) -> Dict:
    """
    Derived order statistics; never stored on the customer.
    """
    orders = Order.objects.filter(customer=customer)
    totals = orders.aggregate(total_orders=Count('id'), total_spent=Sum('total_amount'), last_order=Max('order_time'))
    by_status = {
        row['status']: {"count": row['count'], "total": row['total'] or Decimal('0')}
        for row in orders.values('status').annotate(count=Count('id'), total=Sum('total_amount'))
    }
    return {
        "total_orders": totals['total_orders'] or 0,
        "total_spent": totals['total_spent'] or Decimal('0'),
        "last_order": totals['last_order'],
        "order_statuses": by_status,
    }


def has_purchased(customer, product_id) -> bool:
    return Order.objects.filter(
        customer=customer,
        status__in=['processing', 'dispatched', 'shipped', 'delivered'],
        items__product_id=product_id,
    ).exists()
