"""
Synthetic Data Generator for the Bazaar commerce backend

Seeds staff, customers, a category tree, products with stock, coupons,
orders, ratings and storefront offers so the admin dashboard and the
analytics reports have something to show.
"""
import os
import sys
import uuid
import random
from datetime import timedelta
from decimal import Decimal

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Setup Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

import django
django.setup()

from django.utils import timezone
from faker import Faker

from apps.accounts.models import Customer, Staff
from apps.catalog.models import Category, CategorySubcategoryMap, Product, ProductVariant, Subcategory
from apps.catalog.services import add_subcategory_to_category, refresh_product_status
from apps.inventory.models import InventoryLog, Stock
from apps.inventory.services import sync_product_with_stock
from apps.marketing.models import BulkOrder, MarqueeOffer, SpecialOffer
from apps.reviews.models import Rating
from apps.reviews.services import recalculate_product_rating
from apps.sales.models import Coupon, Order, OrderItem
from apps.core.utils import generate_invoice_number

fake = Faker()

TAX_RATE = Decimal('0.10')

CATALOG = {
    'Electronics': {
        'Audio': [('Wireless Headphones', 49.99, 299.99), ('Bluetooth Speaker', 29.99, 149.99)],
        'Accessories': [('USB-C Hub', 19.99, 89.99), ('Power Bank', 19.99, 79.99), ('Laptop Stand', 29.99, 79.99)],
        'Peripherals': [('Mechanical Keyboard', 79.99, 199.99), ('Gaming Mouse', 29.99, 129.99)],
    },
    'Home & Kitchen': {
        'Appliances': [('Coffee Maker', 29.99, 199.99), ('Air Fryer', 49.99, 199.99), ('Blender', 29.99, 149.99)],
        'Decor': [('Table Lamp', 19.99, 89.99), ('Wall Clock', 14.99, 59.99)],
    },
    'Fashion': {
        'Clothing': [('Cotton T-Shirt', 14.99, 49.99), ('Denim Jeans', 39.99, 129.99)],
        'Footwear': [('Running Shoes', 49.99, 199.99), ('Sneakers', 59.99, 189.99)],
    },
    'Sports': {
        'Fitness': [('Yoga Mat', 19.99, 79.99), ('Dumbbell Set', 29.99, 299.99)],
        'Accessories': [('Water Bottle', 9.99, 29.99), ('Gym Bag', 19.99, 69.99)],
    },
}

SIZES = ['S', 'M', 'L', 'XL']
COLORS = ['Black', 'White', 'Blue', 'Red', 'Green']


def _price(low, high):
    return Decimal(str(round(random.uniform(low, high), 2)))


def generate_staff(count=5):
    """Generate staff accounts; the first one is a known superadmin."""
    print(f"Generating {count} staff...")
    staff_members = []

    admin = Staff(name='Store Admin', email='admin@bazaar.local', role='superadmin')
    admin.set_password('admin123')
    admin.save()
    staff_members.append(admin)

    for _ in range(count - 1):
        member = Staff(
            name=fake.name(),
            email=fake.unique.email(),
            phone=fake.phone_number()[:20],
            role=random.choice(['admin', 'staff', 'staff']),
            joining_date=fake.date_between(start_date='-3y', end_date='today'),
        )
        member.set_password('staff123')
        member.save()
        staff_members.append(member)

    print(f"Created {len(staff_members)} staff")
    return staff_members


def generate_customers(count=60):
    print(f"Generating {count} customers...")
    customers = []

    for _ in range(count):
        customer = Customer(
            name=fake.name(),
            email=fake.unique.email(),
            phone=fake.unique.msisdn()[:15],
            address=fake.address(),
        )
        customer.set_password('customer123')
        customer.save()
        customers.append(customer)

    print(f"Created {len(customers)} customers")
    return customers


def generate_catalog(admin):
    """Generate categories, subcategories (shared where names repeat) and products."""
    print("Generating catalog...")
    products = []
    subcategories = {}

    for category_name, children in CATALOG.items():
        category = Category.objects.create(
            name=category_name,
            description=fake.sentence(nb_words=10),
            created_by=admin,
        )
        for position, (subcategory_name, templates) in enumerate(children.items()):
            subcategory = subcategories.get(subcategory_name)
            if subcategory is None:
                subcategory = Subcategory.objects.create(name=subcategory_name, created_by=admin)
                subcategories[subcategory_name] = subcategory
            add_subcategory_to_category(
                category, subcategory,
                sort_order=position,
                is_primary=not subcategory.category_maps.exists(),
                created_by=admin,
            )

            for name, low, high in templates:
                products.append(_create_product(name, low, high, category, subcategory))

    print(f"Created {Category.objects.count()} categories, {len(subcategories)} subcategories, "
          f"{len(products)} products")
    return products


def _create_product(name, low, high, category, subcategory):
    selling = _price(low, high)
    with_variants = category.name == 'Fashion'
    product = Product.objects.create(
        name=name,
        sku=f"SKU-{uuid.uuid4().hex[:8].upper()}",
        description=fake.paragraph(nb_sentences=3),
        product_structure='variant' if with_variants else 'simple',
        cost_price=(selling * Decimal('0.6')).quantize(Decimal('0.01')),
        selling_price=selling,
        min_stock=5,
        status='draft',
        color=random.choice(COLORS),
        is_new_arrival=random.random() < 0.2,
        tags=[category.name.lower(), subcategory.name.lower()],
    )
    product.categories.add(category)
    product.subcategories.add(subcategory)

    if with_variants:
        for size in random.sample(SIZES, 3):
            variant = ProductVariant.objects.create(
                product=product,
                name=f"{name} - {size}",
                sku=f"{product.sku}-{size}",
                cost_price=product.cost_price,
                selling_price=selling,
                attributes={'size': size},
            )
            stock = Stock.objects.create(
                product=product, variant=variant, quantity=random.randint(0, 80), min_stock=5
            )
            sync_product_with_stock(stock)
    else:
        stock = Stock.objects.create(product=product, quantity=random.randint(0, 150), min_stock=5)
        sync_product_with_stock(stock)

    refresh_product_status(product)
    return product


def generate_coupons(count=6):
    print(f"Generating {count} coupons...")
    coupons = []
    now = timezone.now()

    for _ in range(count):
        percentage = random.random() < 0.6
        coupon = Coupon.objects.create(
            campaign_name=fake.catch_phrase(),
            code=fake.unique.bothify(text='SAVE##??').upper(),
            discount_type='percentage' if percentage else 'fixed',
            discount_value=Decimal(random.choice([5, 10, 15, 20])) if percentage else Decimal(random.choice([5, 10, 25])),
            start_date=now - timedelta(days=random.randint(10, 60)),
            end_date=now + timedelta(days=random.randint(-5, 90)),
            min_purchase=Decimal(random.choice([0, 25, 50])),
            max_discount=Decimal('50') if percentage else None,
            usage_limit=random.choice([None, 100, 500]),
        )
        coupons.append(coupon)

    print(f"Created {len(coupons)} coupons")
    return coupons


def generate_orders(customers, products, count=200):
    """Generate orders over the last 60 days with weighted statuses."""
    print(f"Generating {count} orders...")
    orders = []

    statuses = ['pending', 'processing', 'dispatched', 'shipped', 'delivered', 'cancelled']
    status_weights = [5, 15, 10, 15, 45, 10]

    for _ in range(count):
        customer = random.choice(customers)
        order_status = random.choices(statuses, weights=status_weights)[0]
        order_time = timezone.now() - timedelta(days=random.randint(0, 60), hours=random.randint(0, 23))

        lines = []
        subtotal = Decimal('0')
        for product in random.sample(products, random.randint(1, 3)):
            variant = product.variants.first() if product.is_variant_product else None
            unit_price = (variant or product).selling_price
            quantity = random.randint(1, 3)
            line_total = unit_price * quantity
            subtotal += line_total
            lines.append((product, variant, quantity, unit_price, line_total))

        shipping_cost = Decimal(random.choice([0, 5, 10]))
        tax = (subtotal * TAX_RATE).quantize(Decimal('0.01'))
        order = Order.objects.create(
            customer=customer,
            invoice_no=generate_invoice_number() + uuid.uuid4().hex[:2].upper(),
            status=order_status,
            payment_method=random.choice(['cash', 'cash', 'online']),
            payment_status='completed' if order_status == 'delivered' else 'pending',
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            tax_amount=tax,
            total_amount=subtotal + tax + shipping_cost,
            tracking_number=f"BZR{uuid.uuid4().hex[:10].upper()}" if order_status in ('shipped', 'delivered') else None,
            estimated_delivery=order_time + timedelta(days=random.randint(7, 14)),
            order_time=order_time,
            shipping_name=customer.name,
            shipping_phone=customer.phone or '',
            shipping_email=customer.email or '',
            shipping_street=fake.street_address(),
            shipping_city=fake.city(),
            shipping_state=fake.state(),
            shipping_pincode=fake.postcode(),
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order, product=product, variant=variant,
                product_name=variant.name if variant else product.name,
                quantity=quantity, unit_price=unit_price, subtotal=line_total,
            )
            for product, variant, quantity, unit_price, line_total in lines
        ])
        orders.append(order)

    print(f"Created {len(orders)} orders")
    return orders


def generate_ratings(orders):
    """Customers rate some of the products from their delivered orders."""
    print("Generating ratings...")
    ratings = []
    seen = set()

    for order in orders:
        if order.status != 'delivered' or random.random() < 0.5:
            continue
        for item in order.items.all():
            key = (order.customer_id, item.product_id)
            if key in seen:
                continue
            seen.add(key)
            ratings.append(Rating.objects.create(
                customer=order.customer,
                product=item.product,
                order=order,
                rating=random.choices([1, 2, 3, 4, 5], weights=[5, 5, 15, 35, 40])[0],
                review=fake.paragraph(nb_sentences=2) if random.random() > 0.3 else '',
                verified_purchase=True,
                status=random.choice(['approved', 'approved', 'pending']),
            ))

    for product_id in {r.product_id for r in ratings}:
        recalculate_product_rating(product_id)

    print(f"Created {len(ratings)} ratings")
    return ratings


def generate_offers():
    print("Generating storefront offers...")
    for _ in range(4):
        BulkOrder.objects.create(
            title=f"Bulk {fake.word().title()} Pack",
            description=fake.sentence(),
            price=_price(99, 999),
            min_quantity=random.choice([10, 25, 50]),
        )
    for position, (title, icon) in enumerate([
        ('Free Shipping', 'truck'), ('Easy Returns', 'rotate-ccw'), ('Secure Payment', 'shield'),
    ]):
        SpecialOffer.objects.create(title=title, description=fake.sentence(), icon=icon, order=position)
    for position in range(3):
        MarqueeOffer.objects.create(title=fake.catch_phrase(), icon='tag', order=position)
    print("Created offers")


def clear_all_data():
    """Clear all existing data."""
    print("Clearing existing data...")

    Rating.objects.all().delete()
    OrderItem.objects.all().delete()
    Order.objects.all().delete()
    Coupon.objects.all().delete()
    InventoryLog.objects.all().delete()
    Stock.objects.all().delete()
    ProductVariant.objects.all().delete()
    Product.objects.all().delete()
    CategorySubcategoryMap.objects.all().delete()
    Subcategory.objects.all().delete()
    Category.objects.all().delete()
    BulkOrder.objects.all().delete()
    SpecialOffer.objects.all().delete()
    MarqueeOffer.objects.all().delete()
    Customer.objects.all().delete()
    Staff.objects.all().delete()

    print("All data cleared")


def main():
    """Main function to generate all data."""
    print("\n" + "="*60)
    print("Bazaar Synthetic Data Generator")
    print("="*60 + "\n")

    clear_all_data()

    staff_members = generate_staff(5)
    customers = generate_customers(60)
    products = generate_catalog(staff_members[0])
    coupons = generate_coupons(6)
    orders = generate_orders(customers, products, 200)
    ratings = generate_ratings(orders)
    generate_offers()

    print("\n" + "="*60)
    print("Data Generation Complete!")
    print("="*60)
    print(f"\nSummary:")
    print(f"  - Staff: {len(staff_members)} (login admin@bazaar.local / admin123)")
    print(f"  - Customers: {len(customers)}")
    print(f"  - Products: {len(products)}")
    print(f"  - Coupons: {len(coupons)}")
    print(f"  - Orders: {len(orders)}")
    print(f"  - Ratings: {len(ratings)}")
    print()


if __name__ == '__main__':
    main()
