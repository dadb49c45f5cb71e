"""
Staff and customer management tests
"""
import pytest
from rest_framework.test import APIClient

from apps.accounts.models import Customer, Staff


@pytest.fixture
def plain_staff_client(db):
    member = Staff(name='Sam Staff', email='sam@example.com', role='staff')
    member.set_password('secret123')
    member.save()
    client = APIClient()
    client.force_authenticate(user=member)
    return client


class TestStaffManagement:

    def test_admin_creates_staff(self, staff_client):
        response = staff_client.post('/api/staff', {
            'name': 'New Hire', 'email': 'New.Hire@Example.com', 'password': 'welcome1', 'role': 'staff',
        }, format='json')

        assert response.status_code == 201
        created = Staff.objects.get(email='new.hire@example.com')
        assert created.check_password('welcome1')
        assert 'password' not in response.json()['data']

    def test_password_required_on_create(self, staff_client):
        response = staff_client.post('/api/staff', {'name': 'No Pass', 'email': 'np@example.com'}, format='json')

        assert response.status_code == 400

    def test_plain_staff_can_read_but_not_write(self, plain_staff_client, staff):
        listed = plain_staff_client.get('/api/staff')
        created = plain_staff_client.post('/api/staff', {
            'name': 'X', 'email': 'x@example.com', 'password': 'secret123',
        }, format='json')

        assert listed.status_code == 200
        assert created.status_code == 403

    def test_role_filter(self, staff_client, plain_staff_client):
        data = staff_client.get('/api/staff', {'role': 'staff'}).json()['data']

        assert [s['email'] for s in data] == ['sam@example.com']

    def test_cannot_delete_self(self, staff_client, staff):
        response = staff_client.delete(f'/api/staff/{staff.id}')

        assert response.status_code == 400
        assert Staff.objects.filter(pk=staff.pk).exists()

    def test_toggle_active(self, staff_client, plain_staff_client):
        sam = Staff.objects.get(email='sam@example.com')

        response = staff_client.patch(f'/api/staff/{sam.id}/toggle-active')

        assert response.json()['data']['is_active'] is False

    def test_update_changes_password(self, staff_client, plain_staff_client):
        sam = Staff.objects.get(email='sam@example.com')

        staff_client.put(f'/api/staff/{sam.id}', {'password': 'rotated99'}, format='json')

        sam.refresh_from_db()
        assert sam.check_password('rotated99')


class TestCustomerManagement:

    def test_create_needs_email_or_phone(self, staff_client):
        response = staff_client.post('/api/customers', {'name': 'Nobody'}, format='json')

        assert response.status_code == 400

    def test_create_with_phone_only(self, staff_client):
        response = staff_client.post('/api/customers', {'name': 'Phone Only', 'phone': '9000000099'}, format='json')

        assert response.status_code == 201
        assert response.json()['data']['email'] is None

    def test_duplicate_email_is_case_insensitive(self, staff_client, customer):
        response = staff_client.post('/api/customers', {'name': 'Copy', 'email': 'RAVI@example.com'}, format='json')

        assert response.status_code == 400

    def test_detail_includes_statistics(self, staff_client, customer, make_order, product):
        make_order(customer, [(product, 2)], status='delivered')

        body = staff_client.get(f'/api/customers/{customer.id}').json()

        assert body['statistics']['total_orders'] == 1
        assert len(body['recentOrders']) == 1

    def test_search(self, staff_client, customer):
        Customer.objects.create(name='Meera', email='meera@example.com')

        data = staff_client.get('/api/customers', {'search': 'meera'}).json()['data']

        assert [c['name'] for c in data] == ['Meera']

    def test_customer_orders(self, staff_client, customer, make_order, product):
        make_order(customer, [(product, 1)])

        body = staff_client.get(f'/api/customers/{customer.id}/orders').json()

        assert body['pagination']['items'] == 1

    def test_customer_login(self, api_client, customer):
        response = api_client.post('/api/customers/login', {
            'email': 'ravi@example.com', 'password': 'buyer123',
        }, format='json')

        assert response.status_code == 200
        assert response.json()['user']['id'] == str(customer.id)
        assert response.cookies['authToken'].value == response.json()['token']

    def test_customer_login_wrong_password(self, api_client, customer):
        response = api_client.post('/api/customers/login', {
            'email': 'ravi@example.com', 'password': 'nope',
        }, format='json')

        assert response.status_code == 401

    def test_firebase_lookup_for_self(self, customer_client, customer):
        customer.firebase_uid = 'fb-123'
        customer.save()

        assert customer_client.get('/api/customers/firebase/fb-123').status_code == 200

    def test_firebase_lookup_for_someone_else(self, customer_client, db):
        Customer.objects.create(name='Other', email='other@example.com', firebase_uid='fb-999')

        assert customer_client.get('/api/customers/firebase/fb-999').status_code == 403

    def test_export_csv_includes_order_totals(self, staff_client, customer, make_order, product):
        make_order(customer, [(product, 2)])

        response = staff_client.get('/api/customers/export/csv')

        lines = b''.join(response.streaming_content).decode().splitlines()
        assert lines[0].split(',')[:4] == ['Name', 'Email', 'Phone', 'Address']
        assert 'Ravi Buyer' in lines[1]
        assert ',1,' in lines[1]
