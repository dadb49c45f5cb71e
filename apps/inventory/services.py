"""
Inventory services

Keeps stock records, product/variant stock fields and product status in
step, and performs the stock decrement when an order is dispatched.
"""
import logging
from typing import Dict, List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.catalog.models import Product, ProductVariant
from apps.catalog.services import refresh_product_status, stock_status
from apps.core.exceptions import (
    ConflictException,
    InsufficientStockException,
    ResourceNotFoundException,
)
from .models import InventoryLog, Stock

logger = logging.getLogger(__name__)


def log_change(product: Product, change: int, reason: str, variant: Optional[ProductVariant] = None,
               staff=None) -> Optional[InventoryLog]:
    if not change:
        return None
    return InventoryLog.objects.create(
        product=product, variant=variant, staff=staff, change=change, reason=reason[:255]
    )


def sync_product_with_stock(stock: Stock) -> Dict:
    """
    Copy a stock record onto its product or variant and recompute statuses.
    """
    product = stock.product
    if product.product_type == 'digital':
        return {"success": True, "message": "Digital product - no sync needed"}

    quantity = stock.quantity or 0
    if stock.variant_id:
        variant = stock.variant
        variant.stock = quantity
        variant.min_stock = stock.min_stock
        variant.status = stock_status(quantity, stock.min_stock)
        variant.published = True
        variant.save(update_fields=['stock', 'min_stock', 'status', 'published', 'updated_at'])
        message = f"Variant {variant.status} ({quantity}/{stock.min_stock})"
    else:
        product.base_stock = quantity
        product.min_stock = stock.min_stock
        product.save(update_fields=['base_stock', 'min_stock', 'updated_at'])
        message = f"Product stock updated ({quantity}/{stock.min_stock})"

    refresh_product_status(product)
    return {"success": True, "message": message}


def create_stock(product_id, variant_id=None, quantity=None, min_stock=0, notes='', staff=None) -> Stock:
    product = Product.objects.filter(pk=product_id).first()
    if product is None:
        raise ResourceNotFoundException("Product", product_id)

    variant = None
    if variant_id:
        variant = ProductVariant.objects.filter(pk=variant_id, product=product).first()
        if variant is None:
            raise ResourceNotFoundException("Variant", variant_id)

    if Stock.objects.filter(product=product, variant=variant).exists():
        raise ConflictException("Stock entry already exists for this product/variant")

    with transaction.atomic():
        stock = Stock.objects.create(
            product=product, variant=variant, quantity=quantity, min_stock=min_stock or 0, notes=notes or ''
        )
        log_change(product, quantity or 0, "Stock entry created", variant=variant, staff=staff)
        sync_product_with_stock(stock)
    logger.info(f"Created stock entry {stock.pk} for product {product.pk}")
    return stock


def update_stock(stock: Stock, data: Dict, staff=None, reason: str = "Manual stock update") -> Stock:
    """
    Apply ``quantity``/``min_stock``/``notes`` to a stock record.

    The row is re-read under a lock and only the given columns are written,
    so a stale ``stock`` instance cannot undo a concurrent dispatch.
    """
    with transaction.atomic():
        locked = Stock.objects.select_for_update().get(pk=stock.pk)
        before = locked.quantity or 0
        changed = []
        for attr in ('quantity', 'min_stock', 'notes'):
            if attr in data and data[attr] is not None:
                setattr(locked, attr, data[attr])
                changed.append(attr)
        if changed:
            locked.save(update_fields=changed + ['updated_at'])
        log_change(stock.product, (locked.quantity or 0) - before, reason, variant=stock.variant, staff=staff)
        stock.refresh_from_db()
        sync_product_with_stock(stock)
    return stock


def delete_stock(stock: Stock):
    """
    Delete a stock record and zero the stock it described.
    """
    product = stock.product
    variant = stock.variant
    with transaction.atomic():
        log_change(product, -(stock.quantity or 0), "Stock entry deleted", variant=variant)
        stock.delete()
        if variant is not None:
            variant.stock = 0
            variant.status = 'out_of_stock'
            variant.published = True
            variant.save(update_fields=['stock', 'status', 'published', 'updated_at'])
        else:
            product.base_stock = 0
            product.save(update_fields=['base_stock', 'updated_at'])
        refresh_product_status(product)
    logger.info(f"Deleted stock entry for product {product.pk}")


def bulk_update(updates: List[Dict], staff=None) -> Dict:
    """
    Apply ``[{id, quantity, min_stock, notes}]``; each entry stands alone.
    """
    results = []
    sync_results = []
    for entry in updates:
        stock = Stock.objects.select_related('product', 'variant').filter(pk=entry.get('id')).first()
        if stock is None:
            sync_results.append({"stockId": entry.get('id'), "success": False, "message": "Stock entry not found"})
            continue
        data = {
            'quantity': entry.get('quantity'),
            'min_stock': entry.get('min_stock'),
            'notes': entry.get('notes') or None,
        }
        update_stock(stock, data, staff=staff, reason="Bulk stock update")
        results.append(stock)
        sync_results.append({"stockId": str(stock.pk), "success": True, "message": "Updated"})
    return {"results": results, "syncResults": sync_results}


def bulk_sync(product_id=None, variant_id=None) -> Dict:
    qs = Stock.objects.select_related('product', 'variant')
    if product_id:
        qs = qs.filter(product_id=product_id)
    if variant_id:
        qs = qs.filter(variant_id=variant_id)

    summary = {"success": 0, "failed": 0, "messages": []}
    for stock in qs:
        result = sync_product_with_stock(stock)
        summary["success" if result["success"] else "failed"] += 1
        summary["messages"].append(result["message"])
    logger.info(f"Bulk sync: {summary['success']} synced, {summary['failed']} failed")
    return summary


def severity(quantity: Optional[int], min_stock: int) -> str:
    quantity = quantity or 0
    if quantity <= 0:
        return 'critical'
    if quantity <= min_stock * 0.5:
        return 'high'
    return 'medium'


def low_stock_alerts(threshold: float = 1.0) -> List[Dict]:
    """
    Stock records at or below ``min_stock * threshold``, lowest first.
    """
    stocks = Stock.objects.select_related('product', 'variant').order_by(F('quantity').asc(nulls_first=True))
    alerts = []
    for stock in stocks:
        quantity = stock.quantity or 0
        if quantity > stock.min_stock * threshold:
            continue
        target = stock.variant or stock.product
        alerts.append({
            "id": str(stock.pk),
            "productId": str(stock.product_id),
            "productName": stock.product.name,
            "productSku": stock.product.sku,
            "productType": stock.product.product_type,
            "variantId": str(stock.variant_id) if stock.variant_id else None,
            "variantName": stock.variant.name if stock.variant else None,
            "quantity": stock.quantity,
            "minStock": stock.min_stock,
            "shortfall": stock.min_stock - quantity,
            "severity": severity(stock.quantity, stock.min_stock),
            "isPublished": target.published,
            "status": target.status,
            "notes": stock.notes,
        })
    return alerts


def _stock_for_line(product: Product, variant: Optional[ProductVariant]) -> Stock:
    stock = Stock.objects.filter(product=product, variant=variant).first()
    if stock is not None:
        return stock
    opening = variant.stock if variant is not None else product.base_stock
    stock = Stock.objects.create(
        product=product,
        variant=variant,
        quantity=max(opening or 0, 0),
        min_stock=settings.DEFAULT_MIN_STOCK,
        notes="Created on order dispatch",
    )
    logger.info(f"Created missing stock entry for product {product.pk} during dispatch")
    return stock


def decrement_for_dispatch(stock: Stock, quantity: int, invoice_no: str, product_name: str,
                           staff=None) -> Stock:
    """
    Take ``quantity`` units off a stock record in a single conditional
    UPDATE, so concurrent dispatches can never drive it below zero.
    """
    with transaction.atomic():
        locked = Stock.objects.select_for_update().get(pk=stock.pk)
        before = locked.quantity or 0
        updated = Stock.objects.filter(pk=stock.pk, quantity__gte=quantity).update(
            quantity=F('quantity') - quantity,
            updated_at=timezone.now(),
        )
        if not updated:
            stock.refresh_from_db(fields=['quantity'])
            raise InsufficientStockException(product_name, quantity, stock.quantity or 0)

        stock.refresh_from_db()
        stock.notes = f"Updated via order dispatch: {before} → {stock.quantity} (Order: {invoice_no})"
        stock.save(update_fields=['notes', 'updated_at'])
        log_change(stock.product, -quantity, f"Order dispatch {invoice_no}", variant=stock.variant, staff=staff)
    return stock


def dispatch_order_stock(order, staff=None) -> List[Stock]:
    """
    Decrement stock for every physical line of an order.

    Must run inside the caller's transaction: any insufficient line raises
    ``InsufficientStockException`` and the caller's rollback undoes the
    lines already taken.
    """
    touched = []
    for item in order.items.select_related('product', 'variant'):
        product = item.product
        if product is None or product.product_type == 'digital':
            continue
        stock = _stock_for_line(product, item.variant)
        stock = decrement_for_dispatch(stock, item.quantity, order.invoice_no, item.product_name, staff=staff)
        sync_product_with_stock(stock)
        touched.append(stock)
    logger.info(f"Dispatched stock for order {order.invoice_no}: {len(touched)} lines")
    return touched
