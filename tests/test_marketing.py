"""
Storefront offer endpoint tests
"""
from decimal import Decimal

import pytest

from apps.marketing.models import BulkOrder, MarqueeOffer, SpecialOffer


@pytest.fixture
def offers(db):
    SpecialOffer.objects.create(title='Second', order=2)
    SpecialOffer.objects.create(title='First', order=1)
    SpecialOffer.objects.create(title='Hidden', order=0, is_active=False)


class TestOfferLists:

    def test_public_list_is_active_and_sorted(self, api_client, offers):
        data = api_client.get('/api/special-offers').json()['data']

        assert [o['title'] for o in data] == ['First', 'Second']

    def test_admin_list_shows_inactive(self, staff_client, offers):
        data = staff_client.get('/api/special-offers/admin').json()['data']

        assert [o['title'] for o in data] == ['Hidden', 'First', 'Second']

    def test_admin_list_needs_staff(self, api_client, offers):
        assert api_client.get('/api/special-offers/admin').status_code == 401

    def test_bulk_orders_newest_first(self, api_client, db):
        BulkOrder.objects.create(title='Old', price=Decimal('10'))
        BulkOrder.objects.create(title='New', price=Decimal('20'), min_quantity=50)

        data = api_client.get('/api/bulk-orders').json()['data']

        assert [o['title'] for o in data] == ['New', 'Old']


class TestOfferWrites:

    def test_staff_create(self, staff_client):
        response = staff_client.post('/api/marquee-offers', {'title': 'Free shipping over 499', 'order': 1},
                                     format='json')

        assert response.status_code == 201
        assert MarqueeOffer.objects.get().title == 'Free shipping over 499'

    def test_anonymous_create_rejected(self, api_client, db):
        response = api_client.post('/api/marquee-offers', {'title': 'Sneaky'}, format='json')

        assert response.status_code == 401
        assert not MarqueeOffer.objects.exists()

    def test_bulk_order_price_cannot_be_negative(self, staff_client):
        response = staff_client.post('/api/bulk-orders', {'title': 'Bad', 'price': '-1'}, format='json')

        assert response.status_code == 400

    def test_update_and_delete(self, staff_client):
        offer = SpecialOffer.objects.create(title='Draft', order=3)

        updated = staff_client.put(f'/api/special-offers/{offer.id}', {'is_active': False}, format='json')
        deleted = staff_client.delete(f'/api/special-offers/{offer.id}')

        assert updated.json()['data']['is_active'] is False
        assert deleted.status_code == 200
        assert not SpecialOffer.objects.exists()

    def test_detail_is_public(self, api_client, db):
        offer = SpecialOffer.objects.create(title='Open')

        assert api_client.get(f'/api/special-offers/{offer.id}').json()['data']['title'] == 'Open'

    def test_detail_write_needs_staff(self, customer_client, db):
        offer = SpecialOffer.objects.create(title='Locked')

        assert customer_client.delete(f'/api/special-offers/{offer.id}').status_code == 403

    def test_missing_offer(self, api_client, db):
        response = api_client.get('/api/special-offers/00000000-0000-0000-0000-000000000000')

        assert response.status_code == 404
