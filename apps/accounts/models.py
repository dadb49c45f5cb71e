"""
Account Models
Tables: Staff, Customers
"""
from django.contrib.auth.hashers import check_password, make_password
from django.db import models

from apps.core.models import BaseModel


class PasswordMixin:
    """Hashing helpers shared by staff and customer accounts."""

    def set_password(self, raw_password: str):
        self.password = make_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        if not self.password or not raw_password:
            return False
        return check_password(raw_password, self.password)

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_anonymous(self) -> bool:
        return False


class Staff(PasswordMixin, BaseModel):
    """
    Admin dashboard user.
    """
    ROLE_CHOICES = [
        ('superadmin', 'Super Admin'),
        ('admin', 'Admin'),
        ('staff', 'Staff'),
    ]

    principal_type = 'staff'

    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    password = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True, default='')
    image_url = models.URLField(max_length=500, blank=True, default='')
    joining_date = models.DateField(null=True, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='staff')
    published = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'accounts_staff'
        verbose_name = 'Staff Member'
        verbose_name_plural = 'Staff'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.email})"


class Customer(PasswordMixin, BaseModel):
    """
    Storefront customer. Needs at least one of email or phone.

    Order statistics are derived from orders on read, see
    ``apps.sales.services.customer_statistics``.
    """
    principal_type = 'customer'

    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True, null=True, blank=True)
    phone = models.CharField(max_length=20, unique=True, null=True, blank=True)
    password = models.CharField(max_length=255, blank=True, default='')
    firebase_uid = models.CharField(max_length=128, unique=True, null=True, blank=True)
    google_id = models.CharField(max_length=128, blank=True, default='')
    image_url = models.URLField(max_length=500, blank=True, default='')
    role = models.CharField(max_length=20, default='customer')
    is_active = models.BooleanField(default=True)
    address = models.TextField(blank=True, default='')

    class Meta:
        db_table = 'accounts_customers'
        verbose_name = 'Customer'
        verbose_name_plural = 'Customers'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.email or self.phone})"
