"""
Catalog Models
Tables: Categories, Subcategories, CategorySubcategoryMap, Products, ProductVariants
"""
from django.db import models

from apps.core.models import BaseModel
from apps.core.utils import slugify, unique_slug


class Category(BaseModel):
    """
    Top-level catalog grouping. Subcategories attach through
    ``CategorySubcategoryMap`` only.
    """
    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(max_length=120, unique=True, blank=True)
    description = models.CharField(max_length=500, blank=True, default='')
    image_url = models.URLField(max_length=500, blank=True, default='')
    published = models.BooleanField(default=True)
    seo_title = models.CharField(max_length=60, blank=True, default='')
    seo_description = models.CharField(max_length=160, blank=True, default='')
    created_by = models.ForeignKey(
        'accounts.Staff', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='categories'
    )

    class Meta:
        db_table = 'catalog_categories'
        verbose_name = 'Category'
        verbose_name_plural = 'Categories'
        ordering = ['-created_at']

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(Category, self.name, exclude_pk=self.pk)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class Subcategory(BaseModel):
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=120, unique=True, blank=True)
    description = models.CharField(max_length=500, blank=True, default='')
    image_url = models.URLField(max_length=500, blank=True, default='')
    published = models.BooleanField(default=True)
    seo_title = models.CharField(max_length=60, blank=True, default='')
    seo_description = models.CharField(max_length=160, blank=True, default='')
    created_by = models.ForeignKey(
        'accounts.Staff', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='subcategories'
    )
    categories = models.ManyToManyField(
        Category, through='CategorySubcategoryMap', related_name='subcategories'
    )

    class Meta:
        db_table = 'catalog_subcategories'
        verbose_name = 'Subcategory'
        verbose_name_plural = 'Subcategories'
        ordering = ['name']

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(type(self), self.name, exclude_pk=self.pk)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class CategorySubcategoryMap(BaseModel):
    """
    Join table recording which subcategories belong to which categories.
    """
    category = models.ForeignKey(Category, on_delete=models.CASCADE, related_name='subcategory_maps')
    subcategory = models.ForeignKey(Subcategory, on_delete=models.CASCADE, related_name='category_maps')
    sort_order = models.IntegerField(default=0)
    is_primary = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        'accounts.Staff', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='+'
    )

    class Meta:
        db_table = 'catalog_category_subcategory_map'
        verbose_name = 'Category/Subcategory Mapping'
        verbose_name_plural = 'Category/Subcategory Mappings'
        ordering = ['sort_order', 'subcategory__name']
        constraints = [
            models.UniqueConstraint(fields=['category', 'subcategory'], name='unique_category_subcategory'),
        ]

    def __str__(self):
        return f"{self.category_id} -> {self.subcategory_id}"


class Product(BaseModel):
    """
    Sellable catalog item. ``product_structure`` decides whether stock lives on
    the product itself (``simple``) or on its variants (``variant``).
    """
    STATUS_CHOICES = [
        ('selling', 'Selling'),
        ('out_of_stock', 'Out of Stock'),
        ('low_stock', 'Low Stock'),
        ('draft', 'Draft'),
        ('archived', 'Archived'),
    ]

    TYPE_CHOICES = [
        ('physical', 'Physical'),
        ('digital', 'Digital'),
    ]

    STRUCTURE_CHOICES = [
        ('simple', 'Simple'),
        ('variant', 'Variant'),
    ]

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=280, unique=True, blank=True)
    sku = models.CharField(max_length=64, unique=True, null=True, blank=True)
    description = models.TextField(blank=True, default='')
    product_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='physical')
    product_structure = models.CharField(max_length=20, choices=STRUCTURE_CHOICES, default='simple')
    image_urls = models.JSONField(default=list, blank=True)
    categories = models.ManyToManyField(Category, related_name='products', blank=True)
    subcategories = models.ManyToManyField(Subcategory, related_name='products', blank=True)

    cost_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    selling_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    base_stock = models.IntegerField(default=0)
    min_stock = models.IntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    published = models.BooleanField(default=False)

    average_rating = models.DecimalField(max_digits=2, decimal_places=1, default=0)
    total_ratings = models.PositiveIntegerField(default=0)
    total_reviews = models.PositiveIntegerField(default=0)

    weight = models.CharField(max_length=50, blank=True, default='')
    color = models.CharField(max_length=50, blank=True, default='')
    warranty = models.CharField(max_length=100, blank=True, default='')
    is_cod_available = models.BooleanField(default=True)
    is_free_shipping = models.BooleanField(default=False)
    show_ratings = models.BooleanField(default=True)
    is_new_arrival = models.BooleanField(default=False)
    tags = models.JSONField(default=list, blank=True)
    seo = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = 'catalog_products'
        verbose_name = 'Product'
        verbose_name_plural = 'Products'
        ordering = ['-created_at']

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(type(self), self.name, exclude_pk=self.pk)
        super().save(*args, **kwargs)

    @property
    def is_variant_product(self) -> bool:
        return self.product_structure == 'variant'

    def __str__(self):
        return f"{self.name} ({self.sku or self.slug})"


class ProductVariant(BaseModel):
    STATUS_CHOICES = [
        ('selling', 'Selling'),
        ('out_of_stock', 'Out of Stock'),
        ('low_stock', 'Low Stock'),
        ('draft', 'Draft'),
    ]

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='variants')
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=64, unique=True, null=True, blank=True)
    slug = models.SlugField(max_length=280, blank=True)
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    selling_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    stock = models.IntegerField(default=0)
    min_stock = models.IntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='selling')
    images = models.JSONField(default=list, blank=True)
    attributes = models.JSONField(default=dict, blank=True)
    published = models.BooleanField(default=True)

    class Meta:
        db_table = 'catalog_product_variants'
        verbose_name = 'Product Variant'
        verbose_name_plural = 'Product Variants'
        ordering = ['created_at']

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.product.name} / {self.name}"
