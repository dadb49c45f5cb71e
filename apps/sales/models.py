"""
Sales Models
Tables: Coupons, Orders, OrderItems
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from apps.core.models import BaseModel


class Coupon(BaseModel):
    """
    Discount campaign redeemable at checkout.
    """
    DISCOUNT_TYPE_CHOICES = [
        ('percentage', 'Percentage'),
        ('fixed', 'Fixed Amount'),
    ]

    campaign_name = models.CharField(max_length=255)
    code = models.CharField(max_length=50, unique=True)
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPE_CHOICES, default='percentage')
    discount_value = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))]
    )
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    min_purchase = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    max_discount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    used_count = models.PositiveIntegerField(default=0)
    image_url = models.URLField(max_length=500, blank=True, default='')
    published = models.BooleanField(default=True)

    class Meta:
        db_table = 'sales_coupons'
        verbose_name = 'Coupon'
        verbose_name_plural = 'Coupons'
        ordering = ['-created_at']

    def save(self, *args, **kwargs):
        self.code = (self.code or '').strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_expired(self) -> bool:
        return self.end_date < timezone.now()

    def is_valid(self, subtotal: Decimal = None, at=None) -> bool:
        at = at or timezone.now()
        if not self.published or not (self.start_date <= at <= self.end_date):
            return False
        if self.usage_limit is not None and self.used_count >= self.usage_limit:
            return False
        if subtotal is not None and subtotal < self.min_purchase:
            return False
        return True

    def compute_discount(self, subtotal: Decimal) -> Decimal:
        subtotal = Decimal(subtotal)
        if self.discount_type == 'percentage':
            discount = subtotal * self.discount_value / Decimal('100')
            if self.max_discount is not None:
                discount = min(discount, self.max_discount)
        else:
            discount = self.discount_value
        return min(discount, subtotal).quantize(Decimal('0.01'))

    def __str__(self):
        return f"{self.code} ({self.campaign_name})"


class Order(BaseModel):
    """
    Customer order with its shipping snapshot.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('dispatched', 'Dispatched'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash on Delivery'),
        ('online', 'Online'),
        ('razorpay', 'Razorpay'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('success', 'Success'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
    ]

    customer = models.ForeignKey(
        'accounts.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders'
    )
    coupon = models.ForeignKey(
        Coupon, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders'
    )
    invoice_no = models.CharField(max_length=40, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='processing')
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='cash')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='pending')

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    shipping_cost = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    tracking_number = models.CharField(max_length=100, null=True, blank=True, db_index=True)
    estimated_delivery = models.DateTimeField(null=True, blank=True)
    order_time = models.DateTimeField(default=timezone.now, db_index=True)

    shipping_name = models.CharField(max_length=255, blank=True, default='')
    shipping_phone = models.CharField(max_length=20, blank=True, default='')
    shipping_email = models.EmailField(blank=True, default='')
    shipping_street = models.CharField(max_length=255, blank=True, default='')
    shipping_city = models.CharField(max_length=100, blank=True, default='')
    shipping_state = models.CharField(max_length=100, blank=True, default='')
    shipping_pincode = models.CharField(max_length=20, blank=True, default='')

    class Meta:
        db_table = 'sales_orders'
        verbose_name = 'Order'
        verbose_name_plural = 'Orders'
        ordering = ['-order_time']
        indexes = [
            models.Index(fields=['status']),
            models.Index(fields=['customer', 'order_time']),
        ]

    @property
    def shipping_address(self):
        return {
            "name": self.shipping_name,
            "phone": self.shipping_phone,
            "email": self.shipping_email,
            "street": self.shipping_street,
            "city": self.shipping_city,
            "state": self.shipping_state,
            "pincode": self.shipping_pincode,
        }

    def __str__(self):
        return f"{self.invoice_no} - {self.status}"


class OrderItem(BaseModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(
        'catalog.Product', on_delete=models.SET_NULL, null=True, related_name='order_items'
    )
    variant = models.ForeignKey(
        'catalog.ProductVariant', on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items'
    )
    product_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = 'sales_order_items'
        verbose_name = 'Order Item'
        verbose_name_plural = 'Order Items'
        ordering = ['created_at']

    def __str__(self):
        return f"{self.product_name} x{self.quantity}"
