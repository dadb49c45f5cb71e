"""
Pagination block tests
"""
import pytest

from apps.accounts.models import Customer
from apps.core.utils import paginate


@pytest.fixture
def customers(db):
    return [Customer.objects.create(name=f"Customer {i}", email=f"c{i}@example.com") for i in range(23)]


def test_paginate_middle_page(customers):
    records, pagination = paginate(Customer.objects.order_by('email'), page=2, limit=10)

    assert len(records) == 10
    assert pagination == {"items": 23, "current": 2, "limit": 10, "pages": 3, "prev": 1, "next": 3}


def test_paginate_past_the_end_returns_nothing(customers):
    records, pagination = paginate(Customer.objects.order_by('email'), page=9, limit=10)

    assert records == []
    assert pagination["items"] == 23
    assert pagination["next"] is None


def test_paginate_empty_queryset(db):
    records, pagination = paginate(Customer.objects.order_by('email'), page=1, limit=10)

    assert records == []
    assert pagination["pages"] == 0
    assert pagination["prev"] is None and pagination["next"] is None


@pytest.mark.parametrize('page,limit', [(1, 5), (3, 10), (5, 5), (1, 100)])
def test_list_endpoint_pagination_invariant(staff_client, customers, page, limit):
    response = staff_client.get('/api/customers', {'page': page, 'limit': limit})

    assert response.status_code == 200
    body = response.json()
    pagination = body['pagination']
    assert pagination['current'] * pagination['limit'] >= min(pagination['items'], len(body['data']))
    assert len(body['data']) <= limit


def test_limit_is_capped(staff_client, customers):
    response = staff_client.get('/api/customers', {'limit': 5000})

    assert response.json()['pagination']['limit'] == 100
