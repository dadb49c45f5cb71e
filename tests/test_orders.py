"""
Order placement, status transition and dispatch stock tests
"""
import json
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.accounts.models import Customer
from apps.core.exceptions import InsufficientStockException, ValidationException
from apps.inventory import services as inventory_services
from apps.inventory.models import InventoryLog, Stock
from apps.sales import services
from apps.sales.models import Coupon, Order

ADDRESS = {
    'name': 'Ravi Buyer',
    'phone': '9000000001',
    'street': '12 Market Road',
    'city': 'Pune',
    'pincode': '411001',
}


@pytest.fixture
def coupon(db):
    now = timezone.now()
    return Coupon.objects.create(
        campaign_name='Festive',
        code='save10',
        discount_type='percentage',
        discount_value=Decimal('10'),
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=10),
    )


class TestStatusChanges:

    def test_unknown_status_rejected(self, make_order, customer, product):
        order = make_order(customer, [(product, 1)])

        with pytest.raises(ValidationException):
            services.change_order_status(order.id, 'teleported')

    def test_dispatch_decrements_stock(self, make_order, customer, product, stock, staff):
        order = make_order(customer, [(product, 3)])

        services.change_order_status(order.id, 'dispatched', staff=staff)

        stock.refresh_from_db()
        product.refresh_from_db()
        assert stock.quantity == 17
        assert stock.notes == 'Updated via order dispatch: 20 → 17 (Order: ORD-TEST-0001)'
        assert product.base_stock == 17
        log = InventoryLog.objects.get()
        assert (log.change, log.staff) == (-3, staff)

    def test_repeat_dispatch_does_not_decrement_twice(self, make_order, customer, product, stock):
        order = make_order(customer, [(product, 3)], status='dispatched')

        services.change_order_status(order.id, 'dispatched')

        stock.refresh_from_db()
        assert stock.quantity == 20

    def test_shortfall_rolls_back_every_line(self, make_order, customer, product, stock, make_product):
        rug = make_product(name='Rug', sku='RUG-1')
        Stock.objects.create(product=rug, quantity=1, min_stock=0)
        order = make_order(customer, [(product, 3), (rug, 5)])

        with pytest.raises(InsufficientStockException):
            services.change_order_status(order.id, 'dispatched')

        stock.refresh_from_db()
        order.refresh_from_db()
        assert stock.quantity == 20
        assert order.status == 'processing'
        assert not InventoryLog.objects.exists()

    def test_missing_stock_is_created_from_product(self, make_order, customer, make_product):
        product = make_product(sku='NOSTOCK', base_stock=8)
        order = make_order(customer, [(product, 2)])

        services.change_order_status(order.id, 'dispatched')

        assert Stock.objects.get(product=product).quantity == 6

    def test_digital_lines_are_skipped(self, make_order, customer, make_product):
        ebook = make_product(sku='EBOOK', product_type='digital', base_stock=0)
        order = make_order(customer, [(ebook, 4)])

        services.change_order_status(order.id, 'dispatched')

        assert not Stock.objects.exists()

    def test_shipping_with_tracking_sets_delivery(self, make_order, customer, product):
        order = make_order(customer, [(product, 1)], status='dispatched')

        order = services.change_order_status(order.id, 'shipped', tracking_number='TRK-42')

        assert order.tracking_number == 'TRK-42'
        assert order.estimated_delivery > timezone.now()


class TestDispatchAgainstStaleReads:

    def test_decrement_uses_current_row_not_loaded_copy(self, stock):
        stale = Stock.objects.get(pk=stock.pk)
        Stock.objects.filter(pk=stock.pk).update(quantity=10)

        inventory_services.decrement_for_dispatch(stale, 3, 'ORD-X', 'Desk Lamp')

        stock.refresh_from_db()
        assert stock.quantity == 7
        assert stock.notes == 'Updated via order dispatch: 10 → 7 (Order: ORD-X)'

    def test_decrement_checks_current_quantity(self, stock):
        stale = Stock.objects.get(pk=stock.pk)
        Stock.objects.filter(pk=stock.pk).update(quantity=2)

        with pytest.raises(InsufficientStockException):
            inventory_services.decrement_for_dispatch(stale, 3, 'ORD-X', 'Desk Lamp')

        stock.refresh_from_db()
        assert stock.quantity == 2

    def test_stale_edit_keeps_dispatched_quantity(self, make_order, customer, product, stock):
        stale = Stock.objects.get(pk=stock.pk)
        order = make_order(customer, [(product, 3)])
        services.change_order_status(order.id, 'dispatched')

        inventory_services.update_stock(stale, {'notes': 'shelf recount'})

        stock.refresh_from_db()
        assert stock.quantity == 17
        assert stock.notes == 'shelf recount'
        assert InventoryLog.objects.count() == 1

    def test_stale_min_stock_edit_keeps_dispatched_quantity(self, make_order, customer, product, stock):
        stale = Stock.objects.get(pk=stock.pk)
        order = make_order(customer, [(product, 3)])
        services.change_order_status(order.id, 'dispatched')

        inventory_services.update_stock(stale, {'min_stock': 2})

        stock.refresh_from_db()
        assert (stock.quantity, stock.min_stock) == (17, 2)

    def test_dispatching_exact_quantity_empties_stock(self, make_order, customer, product, stock):
        order = make_order(customer, [(product, 20)])

        services.change_order_status(order.id, 'dispatched')

        stock.refresh_from_db()
        product.refresh_from_db()
        assert stock.quantity == 0
        assert product.base_stock == 0

    def test_second_order_cannot_overdraw(self, make_order, customer, product, stock):
        first = make_order(customer, [(product, 15)])
        second = make_order(customer, [(product, 10)])

        services.change_order_status(first.id, 'dispatched')
        with pytest.raises(InsufficientStockException):
            services.change_order_status(second.id, 'dispatched')

        stock.refresh_from_db()
        assert stock.quantity == 5


class TestOrderApi:

    def test_status_endpoint_rejects_unknown_status(self, staff_client, make_order, customer, product):
        order = make_order(customer, [(product, 1)])

        response = staff_client.put(f'/api/orders/{order.id}/status', {'status': 'lost'}, format='json')

        assert response.status_code == 400
        assert response.json()['details']['field'] == 'status'

    def test_status_endpoint_reports_shortfall(self, staff_client, make_order, customer, product, stock):
        order = make_order(customer, [(product, 25)])

        response = staff_client.put(f'/api/orders/{order.id}/status', {'status': 'dispatched'}, format='json')

        assert response.status_code == 409
        assert response.json()['details']['code'] == 'INSUFFICIENT_STOCK'
        order.refresh_from_db()
        assert order.status == 'processing'

    def test_status_patch_alias(self, staff_client, make_order, customer, product):
        order = make_order(customer, [(product, 1)])

        response = staff_client.patch(f'/api/orders/{order.id}/status', {'status': 'cancelled'}, format='json')

        assert response.json()['data']['status'] == 'cancelled'

    def test_place_order_uses_catalog_prices(self, customer_client, product):
        response = customer_client.post('/api/orders/place-order', {
            'payment_method': 'cash',
            'shipping_address': ADDRESS,
            'items': [{'product_id': str(product.id), 'quantity': 2, 'unit_price': '0.01'}],
        }, format='json')

        assert response.status_code == 201
        data = response.json()['data']
        assert data['subtotal'] == '50.00'
        assert data['tax_amount'] == '5.00'
        assert data['total_amount'] == '55.00'
        assert data['status'] == 'processing'
        assert data['shipping_address']['city'] == 'Pune'

    def test_place_order_with_coupon(self, customer_client, product, coupon):
        response = customer_client.post('/api/orders/place-order', {
            'payment_method': 'cash',
            'shipping_address': ADDRESS,
            'coupon_code': 'SAVE10',
            'items': [{'product_id': str(product.id), 'quantity': 2}],
        }, format='json')

        data = response.json()['data']
        assert data['discount_amount'] == '5.00'
        assert data['total_amount'] == '49.50'
        coupon.refresh_from_db()
        assert coupon.used_count == 1

    def test_place_order_only_takes_cash(self, customer_client, product):
        response = customer_client.post('/api/orders/place-order', {
            'payment_method': 'card',
            'shipping_address': ADDRESS,
            'items': [{'product_id': str(product.id), 'quantity': 1}],
        }, format='json')

        assert response.status_code == 400
        assert not Order.objects.exists()

    def test_staff_cannot_place_storefront_orders(self, staff_client, product):
        response = staff_client.post('/api/orders/place-order', {}, format='json')

        assert response.status_code == 403

    def test_admin_order_entry_keeps_given_prices(self, staff_client, customer, product):
        response = staff_client.post('/api/orders', {
            'customer_id': str(customer.id),
            'items': [{'product_id': str(product.id), 'quantity': 1, 'unit_price': '20.00'}],
            'payment_status': 'completed',
        }, format='json')

        assert response.status_code == 201
        data = response.json()['data']
        assert (data['subtotal'], data['payment_status']) == ('20.00', 'completed')

    def test_my_orders_only_lists_own(self, customer_client, customer, make_order, product):
        other = Customer.objects.create(name='Other', email='other@example.com')
        mine = make_order(customer, [(product, 1)])
        make_order(other, [(product, 1)])

        response = customer_client.get('/api/orders/my-orders')

        assert [o['id'] for o in response.json()['data']] == [str(mine.id)]

    def test_customer_cannot_see_foreign_order(self, customer_client, make_order, product):
        other = Customer.objects.create(name='Other', email='other@example.com')
        order = make_order(other, [(product, 1)])

        assert customer_client.get(f'/api/orders/{order.id}').status_code == 404

    def test_customer_cannot_delete_orders(self, customer_client, customer, make_order, product):
        order = make_order(customer, [(product, 1)])

        response = customer_client.delete(f'/api/orders/{order.id}')

        assert response.status_code == 403
        assert Order.objects.exists()

    def test_check_purchase(self, customer_client, customer, make_order, product, make_product):
        make_order(customer, [(product, 1)], status='delivered')
        unbought = make_product(sku='NEW-1')

        bought = customer_client.get(f'/api/orders/check-purchase/{product.id}').json()
        not_bought = customer_client.get(f'/api/orders/check-purchase/{unbought.id}').json()

        assert bought['hasPurchased'] is True
        assert not_bought['hasPurchased'] is False

    def test_cancelled_orders_do_not_count_as_purchases(self, customer, make_order, product):
        make_order(customer, [(product, 1)], status='cancelled')

        assert services.has_purchased(customer, product.id) is False

    def test_track_order(self, api_client, make_order, customer, product):
        make_order(customer, [(product, 1)], status='shipped', tracking_number='TRK-9')

        body = api_client.get('/api/orders/track/TRK-9').json()

        assert body['orderId'] == 'ORD-TEST-0001'
        assert body['status'] == 'shipped'
        assert body['items'][0]['quantity'] == 1

    def test_track_unknown_number(self, api_client, db):
        assert api_client.get('/api/orders/track/NOPE').status_code == 404

    def test_list_filters_by_status(self, staff_client, make_order, customer, product):
        make_order(customer, [(product, 1)], status='delivered')
        make_order(customer, [(product, 1)], status='pending')

        response = staff_client.get('/api/orders', {'status': 'pending'})

        assert [o['status'] for o in response.json()['data']] == ['pending']

    def test_export_csv(self, staff_client, make_order, customer, product):
        make_order(customer, [(product, 2)])

        response = staff_client.get('/api/orders/export/csv')

        assert 'orders_export_' in response['Content-Disposition']
        lines = b''.join(response.streaming_content).decode().splitlines()
        assert lines[0].startswith('Invoice No,Order Date,Customer Name')
        assert 'ORD-TEST-0001' in lines[1]

    def test_export_json(self, staff_client, make_order, customer, product):
        make_order(customer, [(product, 2)])

        response = staff_client.get('/api/orders/export/json', {'status': 'processing'})

        body = json.loads(response.content)
        assert response['Content-Type'].startswith('application/json')
        assert body['filters']['status'] == 'processing'
        assert body['data'][0]['invoice_no'] == 'ORD-TEST-0001'


class TestCustomerStatistics:

    def test_statistics_are_derived_from_orders(self, customer, make_order, product):
        make_order(customer, [(product, 2)], status='delivered')
        make_order(customer, [(product, 1)], status='cancelled')

        stats = services.customer_statistics(customer)

        assert stats['total_orders'] == 2
        assert stats['total_spent'] == Decimal('75.00')
        assert stats['order_statuses']['delivered']['count'] == 1
