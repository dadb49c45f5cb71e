"""
Shared fixtures for the API and service tests
"""
from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.accounts.models import Customer, Staff
from apps.catalog.models import Category, Product, Subcategory
from apps.inventory.models import Stock
from apps.sales.models import Order, OrderItem


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def staff(db):
    member = Staff(name='Asha Admin', email='asha@example.com', role='admin')
    member.set_password('secret123')
    member.save()
    return member


@pytest.fixture
def staff_client(staff):
    client = APIClient()
    client.force_authenticate(user=staff)
    return client


@pytest.fixture
def customer(db):
    buyer = Customer(name='Ravi Buyer', email='ravi@example.com', phone='9000000001')
    buyer.set_password('buyer123')
    buyer.save()
    return buyer


@pytest.fixture
def customer_client(customer):
    client = APIClient()
    client.force_authenticate(user=customer)
    return client


@pytest.fixture
def make_product(db):
    def _make(name='Desk Lamp', sku=None, price='25.00', base_stock=20, min_stock=5,
              published=True, status='selling', **extra):
        return Product.objects.create(
            name=name,
            sku=sku,
            selling_price=Decimal(price),
            cost_price=Decimal(price) / 2,
            base_stock=base_stock,
            min_stock=min_stock,
            published=published,
            status=status,
            **extra
        )
    return _make


@pytest.fixture
def product(make_product):
    return make_product(sku='LAMP-1')


@pytest.fixture
def stock(product):
    return Stock.objects.create(product=product, quantity=20, min_stock=5)


@pytest.fixture
def category(db):
    return Category.objects.create(name='Home')


@pytest.fixture
def subcategory(db):
    return Subcategory.objects.create(name='Lighting')


@pytest.fixture
def make_order(db):
    def _make(customer=None, lines=(), status='processing', **extra):
        subtotal = sum((p.selling_price * q for p, q in lines), Decimal('0'))
        order = Order.objects.create(
            customer=customer,
            invoice_no=f"ORD-TEST-{Order.objects.count() + 1:04d}",
            status=status,
            subtotal=subtotal,
            total_amount=subtotal,
            shipping_name=customer.name if customer else 'Walk-in',
            **extra
        )
        for product, quantity in lines:
            OrderItem.objects.create(
                order=order,
                product=product,
                product_name=product.name,
                quantity=quantity,
                unit_price=product.selling_price,
                subtotal=product.selling_price * quantity,
            )
        return order
    return _make
