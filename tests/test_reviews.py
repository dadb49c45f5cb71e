"""
Rating submission, moderation and aggregate tests
"""
from decimal import Decimal

import pytest

from apps.accounts.models import Customer
from apps.core.exceptions import ResourceNotFoundException, ValidationException
from apps.reviews import services
from apps.reviews.models import Rating


@pytest.fixture
def delivered_order(make_order, customer, product):
    return make_order(customer, [(product, 1)], status='delivered')


def submit(customer, product, order, rating=5, review='Bright and sturdy'):
    return services.submit_rating(customer, {
        'product_id': product.id, 'order_id': order.id, 'rating': rating, 'review': review,
    })


class TestSubmitRating:

    def test_requires_delivered_order(self, make_order, customer, product):
        order = make_order(customer, [(product, 1)], status='shipped')

        with pytest.raises(ValidationException):
            submit(customer, product, order)

    def test_requires_product_in_order(self, delivered_order, customer, make_product):
        other = make_product(sku='OTHER')

        with pytest.raises(ValidationException):
            submit(customer, other, delivered_order)

    def test_order_must_belong_to_customer(self, delivered_order, product):
        stranger = Customer.objects.create(name='Stranger', email='stranger@example.com')

        with pytest.raises(ResourceNotFoundException):
            submit(stranger, product, delivered_order)

    def test_new_ratings_wait_for_moderation(self, delivered_order, customer, product):
        rating = submit(customer, product, delivered_order)

        product.refresh_from_db()
        assert rating.status == 'pending'
        assert rating.verified_purchase is True
        assert product.total_ratings == 0

    def test_resubmission_replaces_and_resets(self, delivered_order, customer, product):
        rating = submit(customer, product, delivered_order, rating=5)
        services.set_rating_status(rating, 'approved')

        again = submit(customer, product, delivered_order, rating=2, review='Flickers')

        product.refresh_from_db()
        assert Rating.objects.count() == 1
        assert (again.rating, again.status) == (2, 'pending')
        assert product.total_ratings == 0


class TestAggregates:

    def test_only_approved_ratings_count(self, make_order, customer, product):
        others = [Customer.objects.create(name=f'C{i}', email=f'c{i}@example.com') for i in range(3)]
        scores = [(customer, 5, 'Great'), (others[0], 4, ''), (others[1], 4, 'Fine'), (others[2], 1, 'Bad')]
        for buyer, score, review in scores:
            order = make_order(buyer, [(product, 1)], status='delivered')
            rating = submit(buyer, product, order, rating=score, review=review)
            if score > 1:
                services.set_rating_status(rating, 'approved')

        product.refresh_from_db()
        assert product.average_rating == Decimal('4.3')
        assert (product.total_ratings, product.total_reviews) == (3, 2)

    def test_delete_recalculates(self, delivered_order, customer, product):
        rating = submit(customer, product, delivered_order)
        services.set_rating_status(rating, 'approved')

        services.delete_rating(rating)

        product.refresh_from_db()
        assert (product.average_rating, product.total_ratings) == (Decimal('0'), 0)

    def test_unknown_status_rejected(self, delivered_order, customer, product):
        rating = submit(customer, product, delivered_order)

        with pytest.raises(ValidationException):
            services.set_rating_status(rating, 'maybe')


class TestRatingApi:

    def test_submit_endpoint(self, customer_client, delivered_order, product):
        response = customer_client.post('/api/ratings', {
            'product_id': str(product.id), 'order_id': str(delivered_order.id), 'rating': 4,
        }, format='json')

        assert response.status_code == 201
        assert response.json()['data']['status'] == 'pending'

    def test_out_of_range_rating(self, customer_client, delivered_order, product):
        response = customer_client.post('/api/ratings', {
            'product_id': str(product.id), 'order_id': str(delivered_order.id), 'rating': 6,
        }, format='json')

        assert response.status_code == 400

    def test_public_list_shows_approved_only(self, api_client, staff_client, delivered_order, customer, product):
        rating = submit(customer, product, delivered_order, rating=4)
        assert api_client.get(f'/api/products/{product.id}/ratings').json()['data'] == []

        staff_client.patch(f'/api/ratings/admin/{rating.id}', {'status': 'approved'}, format='json')

        body = api_client.get(f'/api/products/{product.id}/ratings').json()
        assert len(body['data']) == 1
        assert float(body['averageRating']) == 4.0
        assert body['totalRatings'] == 1

    def test_admin_list_filters(self, staff_client, delivered_order, customer, product):
        submit(customer, product, delivered_order)

        pending = staff_client.get('/api/ratings/admin', {'status': 'pending'}).json()['data']
        approved = staff_client.get('/api/ratings/admin', {'status': 'approved'}).json()['data']

        assert len(pending) == 1
        assert approved == []

    def test_my_reviews(self, customer_client, delivered_order, customer, product):
        submit(customer, product, delivered_order)

        data = customer_client.get('/api/ratings/my-reviews').json()['data']

        assert data[0]['product_name'] == product.name

    def test_moderation_needs_staff(self, customer_client, delivered_order, customer, product):
        rating = submit(customer, product, delivered_order)

        response = customer_client.patch(f'/api/ratings/admin/{rating.id}', {'status': 'approved'}, format='json')

        assert response.status_code == 403
