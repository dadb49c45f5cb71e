"""
Sales reports

Every report takes an optional ``(start, end)`` order-time window and
returns plain dicts ready for JSON. ``CSV_LAYOUTS`` describes how each
report is flattened for ``?format=csv`` downloads.
"""
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from django.db.models import Avg, Count, DecimalField, Max, Min, Sum, Value
from django.db.models.functions import Coalesce, TruncDay, TruncMonth, TruncWeek, TruncYear
from django.utils import timezone

from apps.accounts.models import Customer
from apps.catalog.models import Product
from apps.core.csv_export import field, format_currency, format_date
from apps.core.utils import apply_date_range, start_of_day
from apps.sales.models import Order, OrderItem

logger = logging.getLogger(__name__)

TOP_LIMIT = 100
BEST_SELLER_LIMIT = 5
SUCCESSFUL_PAYMENT_STATUSES = ('completed', 'success')

GROUPINGS = {
    'day': (TruncDay, '%Y-%m-%d'),
    'week': (TruncWeek, '%G-W%V'),
    'month': (TruncMonth, '%Y-%m'),
    'year': (TruncYear, '%Y'),
}


def _money(value) -> float:
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal('0.01')))


def _orders(start=None, end=None):
    return apply_date_range(Order.objects.all(), 'order_time', start, end)


def _order_items(start=None, end=None):
    return apply_date_range(OrderItem.objects.all(), 'order__order_time', start, end)


def sales_overview(start=None, end=None) -> Dict:
    orders = _orders(start, end)
    totals = orders.aggregate(
        total_orders=Count('id'),
        total_revenue=Sum('total_amount'),
        total_shipping=Sum('shipping_cost'),
        avg_order_value=Avg('total_amount'),
    )
    customers = apply_date_range(Customer.objects.all(), 'created_at', start, end)

    return {
        "totalRevenue": _money(totals['total_revenue']),
        "totalOrders": totals['total_orders'],
        "totalCustomers": customers.count(),
        "avgOrderValue": _money(totals['avg_order_value']),
        "totalShippingCost": _money(totals['total_shipping']),
        "statusBreakdown": [
            {"status": row['status'], "count": row['count']}
            for row in orders.values('status').annotate(count=Count('id')).order_by('status')
        ],
        "paymentBreakdown": [
            {"method": row['payment_method'], "count": row['count'], "revenue": _money(row['revenue'])}
            for row in orders.values('payment_method')
            .annotate(count=Count('id'), revenue=Sum('total_amount'))
            .order_by('payment_method')
        ],
    }


def revenue(start=None, end=None, group_by: str = 'day') -> List[Dict]:
    trunc, label_format = GROUPINGS.get(group_by, GROUPINGS['day'])
    rows = (
        _orders(start, end)
        .annotate(period=trunc('order_time'))
        .values('period')
        .annotate(revenue=Sum('total_amount'), orders=Count('id'), avg=Avg('total_amount'))
        .order_by('period')
    )
    return [
        {
            "period": row['period'].strftime(label_format),
            "revenue": _money(row['revenue']),
            "orders": row['orders'],
            "avgOrderValue": _money(row['avg']),
        }
        for row in rows
    ]


def product_performance(start=None, end=None) -> List[Dict]:
    rows = (
        _order_items(start, end)
        .filter(product__isnull=False)
        .values(
            'product_id', 'product__name', 'product__sku', 'product__base_stock',
            'product__min_stock', 'product__cost_price', 'product__selling_price',
        )
        .annotate(units=Sum('quantity'), revenue=Sum('subtotal'), order_count=Count('order', distinct=True))
        .order_by('-revenue')[:TOP_LIMIT]
    )
    data = []
    for row in rows:
        cost = row['product__cost_price'] or Decimal('0')
        price = row['product__selling_price'] or Decimal('0')
        data.append({
            "productId": str(row['product_id']),
            "productName": row['product__name'],
            "sku": row['product__sku'],
            "unitsSold": row['units'],
            "revenue": _money(row['revenue']),
            "orderCount": row['order_count'],
            "currentStock": row['product__base_stock'] or 0,
            "minStock": row['product__min_stock'] or 0,
            "costPrice": _money(cost),
            "sellingPrice": _money(price),
            "profit": _money((price - cost) * row['units']),
        })
    return data


def customer_analytics(start=None, end=None) -> List[Dict]:
    rows = (
        _orders(start, end)
        .filter(customer__isnull=False)
        .values('customer_id', 'customer__name', 'customer__email', 'customer__phone', 'customer__created_at')
        .annotate(
            total_orders=Count('id'),
            total_spent=Sum('total_amount'),
            avg=Avg('total_amount'),
            last_order=Max('order_time'),
            first_order=Min('order_time'),
        )
        .order_by('-total_spent')[:TOP_LIMIT]
    )
    return [
        {
            "customerId": str(row['customer_id']),
            "customerName": row['customer__name'],
            "email": row['customer__email'],
            "phone": row['customer__phone'],
            "totalOrders": row['total_orders'],
            "totalSpent": _money(row['total_spent']),
            "avgOrderValue": _money(row['avg']),
            "lastOrderDate": row['last_order'],
            "firstOrderDate": row['first_order'],
            "customerSince": row['customer__created_at'],
        }
        for row in rows
    ]


def _breakdown(orders, column: str, label: str) -> List[Dict]:
    return [
        {label: row[column], "count": row['count'], "revenue": _money(row['revenue'])}
        for row in orders.values(column).annotate(count=Count('id'), revenue=Sum('total_amount')).order_by(column)
    ]


def order_analytics(start=None, end=None) -> Dict:
    orders = _orders(start, end)
    shipping = orders.aggregate(total=Sum('shipping_cost'), avg=Avg('shipping_cost'))
    return {
        "statusBreakdown": _breakdown(orders, 'status', 'status'),
        "paymentMethodBreakdown": _breakdown(orders, 'payment_method', 'method'),
        "paymentStatusBreakdown": _breakdown(orders, 'payment_status', 'status'),
        "shippingStats": {
            "totalShippingCost": _money(shipping['total']),
            "avgShippingCost": _money(shipping['avg']),
        },
    }


def inventory_analytics() -> Dict:
    products = Product.objects.filter(product_structure='simple').order_by('name')
    rows = []
    for product in products:
        stock = product.base_stock or 0
        rows.append({
            "productName": product.name,
            "sku": product.sku,
            "currentStock": stock,
            "minStock": product.min_stock or 0,
            "stockStatus": 'Low Stock' if stock <= (product.min_stock or 0) else 'In Stock',
            "costPrice": _money(product.cost_price),
            "sellingPrice": _money(product.selling_price),
            "stockValue": _money(stock * product.cost_price),
            "status": product.status,
        })

    summary = {
        "totalProducts": len(rows),
        "lowStockProducts": sum(1 for r in rows if r['stockStatus'] == 'Low Stock'),
        "outOfStockProducts": sum(1 for r in rows if r['currentStock'] <= 0),
        "totalStockValue": round(sum(r['stockValue'] for r in rows), 2),
        "totalStockUnits": sum(r['currentStock'] for r in rows),
    }
    return {"summary": summary, "products": rows}


def category_performance(start=None, end=None) -> List[Dict]:
    rows = (
        _order_items(start, end)
        .filter(product__categories__isnull=False)
        .values('product__categories', 'product__categories__name', 'product__categories__slug')
        .annotate(units=Sum('quantity'), revenue=Sum('subtotal'), order_count=Count('id'))
        .order_by('-revenue')
    )
    return [
        {
            "categoryId": str(row['product__categories']),
            "categoryName": row['product__categories__name'],
            "categorySlug": row['product__categories__slug'],
            "unitsSold": row['units'],
            "revenue": _money(row['revenue']),
            "orderCount": row['order_count'],
            "avgOrderValue": _money(row['revenue'] / row['order_count']) if row['order_count'] else 0.0,
        }
        for row in rows
    ]


def payment_analytics(start=None, end=None) -> List[Dict]:
    rows = (
        _orders(start, end)
        .values('payment_method', 'payment_status')
        .annotate(count=Count('id'), revenue=Sum('total_amount'))
        .order_by('payment_method', 'payment_status')
    )
    methods: Dict[str, Dict] = {}
    for row in rows:
        entry = methods.setdefault(row['payment_method'], {
            "paymentMethod": row['payment_method'],
            "totalCount": 0,
            "totalRevenue": 0.0,
            "successRate": 0.0,
            "statusBreakdown": [],
        })
        entry["totalCount"] += row['count']
        entry["totalRevenue"] = round(entry["totalRevenue"] + _money(row['revenue']), 2)
        entry["statusBreakdown"].append(
            {"status": row['payment_status'], "count": row['count'], "revenue": _money(row['revenue'])}
        )

    for entry in methods.values():
        successful = sum(
            s['count'] for s in entry['statusBreakdown'] if s['status'] in SUCCESSFUL_PAYMENT_STATUSES
        )
        entry["successRate"] = round(successful / entry['totalCount'] * 100, 2) if entry['totalCount'] else 0.0
    return list(methods.values())


def _sales_stats(orders) -> Dict:
    result = orders.aggregate(
        totalRevenue=Coalesce(Sum('total_amount'), Value(0), output_field=DecimalField()),
        count=Count('id'),
    )
    return {"totalRevenue": _money(result['totalRevenue']), "count": result['count']}


def dashboard_summary(now=None) -> Dict:
    """
    Cards and charts for the admin dashboard home page.
    """
    now = timezone.localtime(now or timezone.now())
    today = start_of_day(now)
    tomorrow = today + timedelta(days=1)
    yesterday = today - timedelta(days=1)
    month_start = today.replace(day=1)
    last_month_start = (month_start - timedelta(days=1)).replace(day=1)
    orders = Order.objects.all()

    status_counts = {"total": 0, "pending": 0, "processing": 0, "delivered": 0, "cancelled": 0}
    for row in orders.values('status').annotate(count=Count('id')).order_by():
        status_counts["total"] += row['count']
        if row['status'] in status_counts:
            status_counts[row['status']] = row['count']

    week_start = today - timedelta(days=6)
    by_day = {
        row['day'].date().isoformat(): row
        for row in orders.filter(order_time__gte=week_start, order_time__lt=tomorrow)
        .annotate(day=TruncDay('order_time'))
        .values('day')
        .annotate(sales=Sum('total_amount'), orders=Count('id'))
        .order_by('day')
    }
    weekly_sales = []
    for offset in range(7):
        day = (week_start + timedelta(days=offset)).date().isoformat()
        row = by_day.get(day)
        weekly_sales.append({
            "date": day,
            "sales": _money(row['sales']) if row else 0.0,
            "orders": row['orders'] if row else 0,
        })

    best_sellers = [
        {"name": row['product__name'], "units": row['units'], "revenue": _money(row['revenue'])}
        for row in OrderItem.objects.filter(product__isnull=False)
        .values('product_id', 'product__name')
        .annotate(units=Sum('quantity'), revenue=Sum('subtotal'))
        .order_by('-units')[:BEST_SELLER_LIMIT]
    ]

    return {
        "today": _sales_stats(orders.filter(order_time__gte=today, order_time__lt=tomorrow)),
        "yesterday": _sales_stats(orders.filter(order_time__gte=yesterday, order_time__lt=today)),
        "thisMonth": _sales_stats(orders.filter(order_time__gte=month_start)),
        "lastMonth": _sales_stats(orders.filter(order_time__gte=last_month_start, order_time__lt=month_start)),
        "allTime": _sales_stats(orders),
        "statusCounts": status_counts,
        "weeklySales": weekly_sales,
        "bestSellers": best_sellers,
    }


# CSV layouts: report name -> (flatten(data) -> rows, fields, filename)

def _overview_rows(data):
    return [data]


def _order_rows(data):
    rows = []
    for category, key, label in (
        ('Order Status', 'statusBreakdown', 'status'),
        ('Payment Method', 'paymentMethodBreakdown', 'method'),
        ('Payment Status', 'paymentStatusBreakdown', 'status'),
    ):
        for item in data[key]:
            rows.append({"category": category, "type": item[label], "count": item['count'], "revenue": item['revenue']})
    return rows


def _payment_rows(data):
    return [
        {
            "method": item['paymentMethod'],
            "status": status['status'],
            "count": status['count'],
            "revenue": status['revenue'],
            "successRate": f"{item['successRate']:.2f}%",
        }
        for item in data
        for status in item['statusBreakdown']
    ]


CSV_LAYOUTS: Dict[str, Tuple] = {
    'sales-overview': (_overview_rows, [
        field('Total Revenue', 'totalRevenue', format_currency),
        field('Total Orders', 'totalOrders'),
        field('Total Customers', 'totalCustomers'),
        field('Average Order Value', 'avgOrderValue', format_currency),
        field('Total Shipping Cost', 'totalShippingCost', format_currency),
    ], 'sales-overview'),
    'revenue': (list, [
        field('Period', 'period'),
        field('Revenue', 'revenue', format_currency),
        field('Orders', 'orders'),
        field('Average Order Value', 'avgOrderValue', format_currency),
    ], 'revenue-analytics'),
    'products': (list, [
        field('Product Name', 'productName'),
        field('SKU', 'sku'),
        field('Units Sold', 'unitsSold'),
        field('Revenue', 'revenue', format_currency),
        field('Order Count', 'orderCount'),
        field('Current Stock', 'currentStock'),
        field('Min Stock', 'minStock'),
        field('Cost Price', 'costPrice', format_currency),
        field('Selling Price', 'sellingPrice', format_currency),
        field('Profit', 'profit', format_currency),
    ], 'product-performance'),
    'customers': (list, [
        field('Customer Name', 'customerName'),
        field('Email', 'email'),
        field('Phone', 'phone'),
        field('Total Orders', 'totalOrders'),
        field('Total Spent', 'totalSpent', format_currency),
        field('Average Order Value', 'avgOrderValue', format_currency),
        field('Last Order Date', 'lastOrderDate', format_date),
        field('First Order Date', 'firstOrderDate', format_date),
        field('Customer Since', 'customerSince', format_date),
    ], 'customer-analytics'),
    'orders': (_order_rows, [
        field('Category', 'category'),
        field('Type', 'type'),
        field('Count', 'count'),
        field('Revenue', 'revenue', format_currency),
    ], 'order-analytics'),
    'inventory': (lambda data: data['products'], [
        field('Product Name', 'productName'),
        field('SKU', 'sku'),
        field('Current Stock', 'currentStock'),
        field('Min Stock', 'minStock'),
        field('Stock Status', 'stockStatus'),
        field('Cost Price', 'costPrice', format_currency),
        field('Selling Price', 'sellingPrice', format_currency),
        field('Stock Value', 'stockValue', format_currency),
        field('Status', 'status'),
    ], 'inventory-report'),
    'categories': (list, [
        field('Category Name', 'categoryName'),
        field('Category Slug', 'categorySlug'),
        field('Units Sold', 'unitsSold'),
        field('Revenue', 'revenue', format_currency),
        field('Order Count', 'orderCount'),
        field('Average Order Value', 'avgOrderValue', format_currency),
    ], 'category-performance'),
    'payments': (_payment_rows, [
        field('Payment Method', 'method'),
        field('Payment Status', 'status'),
        field('Count', 'count'),
        field('Revenue', 'revenue', format_currency),
        field('Success Rate', 'successRate'),
    ], 'payment-analytics'),
    'dashboard-summary': (lambda data: data['weeklySales'], [
        field('Date', 'date'),
        field('Sales', 'sales', format_currency),
        field('Orders', 'orders'),
    ], 'dashboard-weekly-sales'),
}


def build_report(name: str, start=None, end=None, group_by: Optional[str] = None):
    """Dispatch a report by its URL name."""
    builders = {
        'sales-overview': lambda: sales_overview(start, end),
        'revenue': lambda: revenue(start, end, group_by or 'day'),
        'products': lambda: product_performance(start, end),
        'customers': lambda: customer_analytics(start, end),
        'orders': lambda: order_analytics(start, end),
        'inventory': inventory_analytics,
        'categories': lambda: category_performance(start, end),
        'payments': lambda: payment_analytics(start, end),
        'dashboard-summary': dashboard_summary,
    }
    logger.info(f"Building analytics report {name}")
    return builders[name]()
