"""
Stock record, sync and low-stock alert tests
"""
import pytest

from apps.catalog.models import ProductVariant
from apps.core.exceptions import ConflictException
from apps.inventory import services
from apps.inventory.models import InventoryLog, Stock


class TestStockServices:

    def test_create_rejects_second_entry(self, product, stock):
        with pytest.raises(ConflictException):
            services.create_stock(product.id, quantity=5)

    def test_create_syncs_product(self, make_product, staff):
        product = make_product(sku='NEW-1', base_stock=0, status='draft')

        services.create_stock(product.id, quantity=3, min_stock=5, staff=staff)

        product.refresh_from_db()
        assert (product.base_stock, product.min_stock, product.status) == (3, 5, 'low_stock')
        log = InventoryLog.objects.get()
        assert (log.change, log.staff) == (3, staff)

    def test_update_logs_the_difference(self, product, stock, staff):
        services.update_stock(stock, {'quantity': 0}, staff=staff)

        product.refresh_from_db()
        assert product.status == 'out_of_stock'
        assert InventoryLog.objects.get().change == -20

    def test_update_without_quantity_change_writes_no_log(self, stock):
        services.update_stock(stock, {'notes': 'recounted'})

        assert not InventoryLog.objects.exists()

    def test_variant_stock_drives_product_status(self, make_product):
        product = make_product(sku='TEE', product_structure='variant', status='draft', published=False)
        small = ProductVariant.objects.create(product=product, name='S', status='draft', published=False)

        stock = services.create_stock(product.id, variant_id=small.id, quantity=10, min_stock=2)

        small.refresh_from_db()
        product.refresh_from_db()
        assert (small.stock, small.status, small.published) == (10, 'selling', True)
        assert (product.status, product.published) == ('selling', True)
        assert stock.variant == small

    def test_digital_products_are_not_synced(self, make_product):
        product = make_product(sku='EBOOK', product_type='digital', base_stock=0)
        stock = Stock.objects.create(product=product, quantity=7)

        result = services.sync_product_with_stock(stock)

        product.refresh_from_db()
        assert result['message'] == 'Digital product - no sync needed'
        assert product.base_stock == 0

    def test_delete_zeroes_product(self, product, stock):
        services.delete_stock(stock)

        product.refresh_from_db()
        assert product.base_stock == 0
        assert product.status == 'out_of_stock'
        assert not Stock.objects.exists()

    @pytest.mark.parametrize('quantity,expected', [(None, 'critical'), (0, 'critical'), (2, 'high'),
                                                   (5, 'high'), (6, 'medium')])
    def test_severity(self, quantity, expected):
        assert services.severity(quantity, 10) == expected


class TestStockApi:

    def test_create_endpoint(self, staff_client, make_product):
        product = make_product(sku='NEW-1', base_stock=0)

        response = staff_client.post('/api/stock', {
            'product_id': str(product.id), 'quantity': 12, 'min_stock': 3,
        }, format='json')

        assert response.status_code == 201
        assert response.json()['data']['quantity'] == 12

    def test_duplicate_create_is_conflict(self, staff_client, product, stock):
        response = staff_client.post('/api/stock', {'product_id': str(product.id), 'quantity': 1}, format='json')

        assert response.status_code == 409
        assert response.json()['success'] is False

    def test_unknown_product_is_404(self, staff_client, db):
        response = staff_client.post('/api/stock', {
            'product_id': '00000000-0000-0000-0000-000000000000', 'quantity': 1,
        }, format='json')

        assert response.status_code == 404

    def test_quantity_patch(self, staff_client, product, stock):
        response = staff_client.patch(f'/api/stock/{stock.id}/quantity', {'quantity': 4}, format='json')

        product.refresh_from_db()
        assert response.json()['data']['quantity'] == 4
        assert product.status == 'low_stock'
        assert InventoryLog.objects.get().reason == 'Quick quantity update'

    def test_negative_quantity_rejected(self, staff_client, stock):
        response = staff_client.patch(f'/api/stock/{stock.id}/quantity', {'quantity': -1}, format='json')

        assert response.status_code == 400

    def test_low_stock_filter(self, staff_client, stock, make_product):
        other = make_product(name='Rug', sku='RUG-1')
        Stock.objects.create(product=other, quantity=1, min_stock=5)

        response = staff_client.get('/api/stock', {'lowStock': 'true'})

        assert [s['product_name'] for s in response.json()['data']] == ['Rug']

    def test_bad_product_filter_matches_nothing(self, staff_client, stock):
        response = staff_client.get('/api/stock', {'productId': 'not-a-uuid'})

        assert response.status_code == 200
        assert response.json()['data'] == []

    def test_bulk_update_reports_missing_entries(self, staff_client, stock):
        response = staff_client.post('/api/stock/bulk-update', {'updates': [
            {'id': str(stock.id), 'quantity': 9},
            {'id': '00000000-0000-0000-0000-000000000000', 'quantity': 1},
        ]}, format='json')

        body = response.json()
        assert [r['success'] for r in body['syncResults']] == [True, False]
        assert body['data'][0]['quantity'] == 9

    def test_low_stock_alerts(self, staff_client, make_product):
        for sku, quantity in [('A', 0), ('B', 2), ('C', 8), ('D', 50)]:
            Stock.objects.create(product=make_product(name=sku, sku=sku), quantity=quantity, min_stock=10)

        body = staff_client.get('/api/stock/alerts/low-stock').json()

        assert [a['productName'] for a in body['data']] == ['A', 'B', 'C']
        assert (body['count'], body['criticalCount'], body['highCount'], body['mediumCount']) == (3, 1, 1, 1)
        assert body['data'][2]['shortfall'] == 2

    def test_alert_threshold(self, staff_client, make_product):
        Stock.objects.create(product=make_product(sku='C'), quantity=8, min_stock=10)

        body = staff_client.get('/api/stock/alerts/low-stock', {'threshold': '0.5'}).json()

        assert body['count'] == 0

    def test_export_csv(self, staff_client, stock):
        response = staff_client.get('/api/stock/export/csv')

        lines = b''.join(response.streaming_content).decode().splitlines()
        assert lines[0].startswith('Product Name,SKU')
        assert 'Base Product' in lines[1]
        assert 'In Stock' in lines[1]

    def test_inventory_logs(self, staff_client, product, stock):
        services.update_stock(stock, {'quantity': 15})

        response = staff_client.get('/api/inventory-logs', {'productId': str(product.id)})

        assert response.json()['data'][0]['change'] == -5

    def test_customers_cannot_read_stock(self, customer_client, db):
        assert customer_client.get('/api/stock').status_code == 403
