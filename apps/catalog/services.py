"""
Catalog services

Category/subcategory mapping helpers, category deletion, and the product
status rules driven by stock levels.
"""
import logging
from typing import Dict, List, Optional

from django.db import transaction
from django.db.models import Q

from apps.core.exceptions import ConflictException, ResourceNotFoundException
from .models import Category, CategorySubcategoryMap, Product, ProductVariant, Subcategory

logger = logging.getLogger(__name__)


# Mapping helpers

def add_subcategory_to_category(category: Category, subcategory: Subcategory, sort_order: int = 0,
                                is_primary: bool = False, created_by=None) -> CategorySubcategoryMap:
    """
    Link a subcategory to a category.

    A subcategory has at most one primary category, so marking this link
    primary clears the flag on the subcategory's other links.
    """
    if CategorySubcategoryMap.objects.filter(category=category, subcategory=subcategory).exists():
        raise ConflictException(f"Subcategory '{subcategory.name}' is already linked to '{category.name}'")

    with transaction.atomic():
        if is_primary:
            CategorySubcategoryMap.objects.filter(subcategory=subcategory, is_primary=True).update(is_primary=False)
        mapping = CategorySubcategoryMap.objects.create(
            category=category,
            subcategory=subcategory,
            sort_order=sort_order,
            is_primary=is_primary,
            created_by=created_by,
        )

    logger.info(f"Linked subcategory {subcategory.slug} to category {category.slug}")
    return mapping


def remove_subcategory_from_category(category: Category, subcategory: Subcategory):
    mapping = CategorySubcategoryMap.objects.filter(category=category, subcategory=subcategory).first()
    if mapping is None:
        raise ResourceNotFoundException("Category/subcategory mapping")

    with transaction.atomic():
        was_primary = mapping.is_primary
        mapping.delete()
        if was_primary:
            _promote_primary(subcategory)

    logger.info(f"Unlinked subcategory {subcategory.slug} from category {category.slug}")


def _promote_primary(subcategory: Subcategory):
    replacement = CategorySubcategoryMap.objects.filter(subcategory=subcategory).order_by('created_at').first()
    if replacement is not None:
        replacement.is_primary = True
        replacement.save(update_fields=['is_primary', 'updated_at'])


def get_subcategories_by_category(category: Category, published: Optional[bool] = None,
                                  limit: Optional[int] = None, skip: int = 0) -> List[Dict]:
    qs = (
        CategorySubcategoryMap.objects
        .filter(category=category)
        .select_related('subcategory')
        .order_by('sort_order', 'subcategory__name')
    )
    if published is not None:
        qs = qs.filter(subcategory__published=published)
    qs = qs[skip:skip + limit] if limit else qs[skip:]
    return [
        {"subcategory": m.subcategory, "sort_order": m.sort_order, "is_primary": m.is_primary}
        for m in qs
    ]


def get_categories_by_subcategory(subcategory: Subcategory, published: Optional[bool] = None,
                                  limit: Optional[int] = None, skip: int = 0) -> List[Dict]:
    qs = (
        CategorySubcategoryMap.objects
        .filter(subcategory=subcategory)
        .select_related('category')
        .order_by('sort_order', 'category__name')
    )
    if published is not None:
        qs = qs.filter(category__published=published)
    qs = qs[skip:skip + limit] if limit else qs[skip:]
    return [
        {"category": m.category, "sort_order": m.sort_order, "is_primary": m.is_primary}
        for m in qs
    ]


def get_products_by_category(category: Category, published: Optional[bool] = None,
                             limit: Optional[int] = None, skip: int = 0):
    """
    Products attached to the category directly or through any of its
    mapped subcategories, newest first.
    """
    subcategory_ids = CategorySubcategoryMap.objects.filter(category=category).values('subcategory_id')
    qs = Product.objects.filter(
        Q(categories=category) | Q(subcategories__in=subcategory_ids)
    ).distinct().order_by('-created_at')
    if published is not None:
        qs = qs.filter(published=published)
    return list(qs[skip:skip + limit] if limit else qs[skip:])


def set_category_subcategories(category: Category, entries: List[Dict], created_by=None):
    """
    Replace a category's subcategory set from nested payload entries.

    Each entry either references an existing subcategory by ``id`` or
    describes a new one by ``name``. Links absent from ``entries`` are
    removed, and subcategories left without any category are deleted.
    """
    keep_ids = []
    for index, entry in enumerate(entries):
        subcategory = None
        if entry.get('id'):
            subcategory = Subcategory.objects.filter(pk=entry['id']).first()
            if subcategory is None:
                raise ResourceNotFoundException("Subcategory", entry['id'])
            for attr in ('name', 'description', 'image_url', 'published'):
                if attr in entry:
                    setattr(subcategory, attr, entry[attr])
            subcategory.save()
        else:
            subcategory = Subcategory.objects.create(
                name=entry['name'],
                slug=entry.get('slug') or '',
                description=entry.get('description', ''),
                image_url=entry.get('image_url', ''),
                published=entry.get('published', True),
                created_by=created_by,
            )

        mapping, created = CategorySubcategoryMap.objects.get_or_create(
            category=category,
            subcategory=subcategory,
            defaults={
                'sort_order': entry.get('sort_order', index),
                'is_primary': not subcategory.category_maps.exists(),
                'created_by': created_by,
            },
        )
        if not created and 'sort_order' in entry:
            mapping.sort_order = entry['sort_order']
            mapping.save(update_fields=['sort_order', 'updated_at'])
        keep_ids.append(subcategory.pk)

    stale = CategorySubcategoryMap.objects.filter(category=category).exclude(subcategory_id__in=keep_ids)
    stale_subcategories = list(Subcategory.objects.filter(category_maps__in=stale))
    for mapping in list(stale.select_related('subcategory')):
        remove_subcategory_from_category(category, mapping.subcategory)
    _delete_orphans(stale_subcategories)


def _delete_orphans(subcategories: List[Subcategory]) -> int:
    deleted = 0
    for subcategory in subcategories:
        if not CategorySubcategoryMap.objects.filter(subcategory=subcategory).exists():
            subcategory.delete()
            deleted += 1
    return deleted


def delete_category(category: Category) -> Dict:
    """
    Delete a category with its mappings.

    Subcategories that were mapped only to this category are deleted too;
    subcategories still mapped elsewhere survive, and get a new primary
    mapping when the deleted one was primary.
    """
    with transaction.atomic():
        subcategories = list(Subcategory.objects.filter(category_maps__category=category))
        primary_ids = set(
            CategorySubcategoryMap.objects.filter(category=category, is_primary=True)
            .values_list('subcategory_id', flat=True)
        )
        CategorySubcategoryMap.objects.filter(category=category).delete()

        orphans = []
        for subcategory in subcategories:
            if CategorySubcategoryMap.objects.filter(subcategory=subcategory).exists():
                if subcategory.pk in primary_ids:
                    _promote_primary(subcategory)
            else:
                orphans.append(subcategory)
        deleted_subcategories = _delete_orphans(orphans)
        category.delete()

    logger.info(
        f"Deleted category {category.slug}: {deleted_subcategories} orphaned subcategories removed, "
        f"{len(subcategories) - deleted_subcategories} kept"
    )
    return {
        "deletedSubcategories": deleted_subcategories,
        "keptSubcategories": len(subcategories) - deleted_subcategories,
    }


# Product status

def stock_status(quantity: Optional[int], min_stock: int) -> str:
    quantity = quantity or 0
    if quantity <= 0:
        return 'out_of_stock'
    if quantity <= (min_stock or 0):
        return 'low_stock'
    return 'selling'


def status_from_variants(variants: List[ProductVariant]) -> Dict:
    """
    Overall status for a variant product: selling when any published variant
    sells normally, low stock when every available one is low, out of stock
    when all are out, and draft (unpublished) otherwise.
    """
    selling = [v for v in variants if v.published and v.status == 'selling']
    low = [v for v in variants if v.published and v.status == 'low_stock']
    out = [v for v in variants if v.status == 'out_of_stock']

    if selling:
        return {'status': 'selling', 'published': True}
    if low:
        return {'status': 'low_stock', 'published': True}
    if variants and len(out) == len(variants):
        return {'status': 'out_of_stock', 'published': True}
    return {'status': 'draft', 'published': False}


def refresh_product_status(product: Product) -> Product:
    """
    Recompute a product's status from its own or its variants' stock.

    Archived products keep their status. Digital products always sell.
    """
    if product.status == 'archived':
        return product

    if product.product_type == 'digital':
        new_status, published = 'selling', product.published
    elif product.is_variant_product:
        variants = list(product.variants.all())
        if not variants:
            return product
        result = status_from_variants(variants)
        new_status, published = result['status'], result['published']
    else:
        new_status, published = stock_status(product.base_stock, product.min_stock), True

    if new_status != product.status or published != product.published:
        logger.debug(f"Product {product.pk} status {product.status} -> {new_status}")
        product.status = new_status
        product.published = published
        product.save(update_fields=['status', 'published', 'updated_at'])
    return product


# Archive

ARCHIVE_ROBOTS = 'noindex,nofollow'


def archive_product(product: Product) -> Product:
    seo = dict(product.seo or {})
    seo['robots'] = ARCHIVE_ROBOTS
    product.seo = seo
    product.status = 'archived'
    product.published = False
    product.save(update_fields=['seo', 'status', 'published', 'updated_at'])
    logger.info(f"Archived product {product.pk}")
    return product


def restore_product(product: Product) -> Product:
    seo = dict(product.seo or {})
    if seo.get('robots') == ARCHIVE_ROBOTS:
        seo['robots'] = 'index,follow'
    product.seo = seo
    product.status = 'draft'
    product.published = False
    product.save(update_fields=['seo', 'status', 'published', 'updated_at'])
    logger.info(f"Restored product {product.pk} to draft")
    return product


def toggle_archive(product: Product) -> Product:
    if product.status == 'archived':
        return restore_product(product)
    return archive_product(product)
