"""
Authentication endpoint tests
"""
from apps.accounts.models import Staff
from apps.accounts.tokens import create_password_reset_token


def test_register_creates_staff(api_client, db):
    response = api_client.post('/api/auth/register', {
        'name': 'New Person', 'email': 'New@Example.com', 'password': 'longenough',
    })

    assert response.status_code == 201
    staff = Staff.objects.get(email='new@example.com')
    assert staff.check_password('longenough')
    assert staff.role == 'staff'
    assert staff.is_active is False
    assert 'password' not in response.json()['user']


def test_register_ignores_requested_role(api_client, db):
    api_client.post('/api/auth/register', {
        'name': 'Eve', 'email': 'eve@example.com', 'password': 'longenough', 'role': 'superadmin',
    })

    assert Staff.objects.get(email='eve@example.com').role == 'staff'


def test_registered_account_cannot_sign_in_or_manage_staff(api_client, db):
    api_client.post('/api/auth/register', {
        'name': 'Eve', 'email': 'eve@example.com', 'password': 'longenough', 'role': 'superadmin',
    })

    login = api_client.post('/api/auth/login', {'email': 'eve@example.com', 'password': 'longenough'})
    assert login.status_code == 401

    response = api_client.post('/api/staff', {
        'name': 'Mallory', 'email': 'mallory@example.com', 'password': 'longenough',
    }, format='json')
    assert response.status_code == 401


def test_registered_account_signs_in_after_activation(api_client, staff_client, db):
    api_client.post('/api/auth/register', {'name': 'Neo', 'email': 'neo@example.com', 'password': 'longenough'})
    neo = Staff.objects.get(email='neo@example.com')

    staff_client.patch(f'/api/staff/{neo.id}/toggle-active')
    login = api_client.post('/api/auth/login', {'email': 'neo@example.com', 'password': 'longenough'})

    assert login.status_code == 200
    assert login.json()['user']['role'] == 'staff'


def test_register_rejects_duplicate_email(api_client, staff):
    response = api_client.post('/api/auth/register', {
        'name': 'Copy', 'email': staff.email, 'password': 'longenough',
    })

    assert response.status_code == 400
    assert response.json()['success'] is False


def test_register_rejects_short_password(api_client, db):
    response = api_client.post('/api/auth/register', {'name': 'A', 'email': 'a@example.com', 'password': '123'})

    assert response.status_code == 400


def test_login_sets_cookie_and_returns_token(api_client, staff):
    response = api_client.post('/api/auth/login', {'email': staff.email, 'password': 'secret123'})

    assert response.status_code == 200
    body = response.json()
    assert body['token']
    assert body['user']['email'] == staff.email
    assert response.cookies['authToken'].value == body['token']
    assert response.cookies['authToken']['httponly']


def test_cookie_session_reaches_me(api_client, staff):
    api_client.post('/api/auth/login', {'email': staff.email, 'password': 'secret123'})

    response = api_client.get('/api/auth/me')

    assert response.status_code == 200
    assert response.json()['user']['id'] == str(staff.id)


def test_bearer_token_reaches_me(api_client, staff):
    token = api_client.post('/api/auth/login', {'email': staff.email, 'password': 'secret123'}).json()['token']
    api_client.cookies.clear()

    response = api_client.get('/api/auth/me', HTTP_AUTHORIZATION=f'Bearer {token}')

    assert response.status_code == 200


def test_wrong_password_is_401(api_client, staff):
    response = api_client.post('/api/auth/login', {'email': staff.email, 'password': 'nope'})

    assert response.status_code == 401
    assert response.json()['error'] == 'Invalid credentials'


def test_inactive_staff_cannot_login(api_client, staff):
    staff.is_active = False
    staff.save()

    response = api_client.post('/api/auth/login', {'email': staff.email, 'password': 'secret123'})

    assert response.status_code == 401


def test_me_without_credentials_is_401(api_client, db):
    assert api_client.get('/api/auth/me').status_code == 401


def test_garbage_token_is_401(api_client, db):
    response = api_client.get('/api/auth/me', HTTP_AUTHORIZATION='Bearer not-a-token')

    assert response.status_code == 401


def test_customer_token_cannot_reach_admin_endpoints(api_client, customer):
    token = api_client.post('/api/customers/login', {'email': customer.email, 'password': 'buyer123'}).json()['token']

    response = api_client.get('/api/staff', HTTP_AUTHORIZATION=f'Bearer {token}')

    assert response.status_code == 403


def test_logout_clears_cookie(api_client, staff):
    api_client.post('/api/auth/login', {'email': staff.email, 'password': 'secret123'})

    response = api_client.post('/api/auth/logout')

    assert response.status_code == 200
    assert response.cookies['authToken'].value == ''


def test_change_password(staff_client, staff):
    response = staff_client.put('/api/auth/update-password', {
        'currentPassword': 'secret123', 'newPassword': 'newsecret1',
    })

    assert response.status_code == 200
    staff.refresh_from_db()
    assert staff.check_password('newsecret1')


def test_change_password_requires_login(api_client, db):
    response = api_client.put('/api/auth/update-password', {
        'currentPassword': 'secret123', 'newPassword': 'newsecret1',
    })

    assert response.status_code == 401


def test_reset_password_with_code(api_client, staff):
    code = create_password_reset_token(staff)

    response = api_client.put('/api/auth/update-password', {
        'code': code, 'password': 'resetpass1', 'confirmPassword': 'resetpass1',
    })

    assert response.status_code == 200
    staff.refresh_from_db()
    assert staff.check_password('resetpass1')


def test_reset_password_mismatch(api_client, staff):
    code = create_password_reset_token(staff)

    response = api_client.put('/api/auth/update-password', {
        'code': code, 'password': 'resetpass1', 'confirmPassword': 'different1',
    })

    assert response.status_code == 400


def test_forgot_password_never_reveals_accounts(api_client, staff):
    known = api_client.post('/api/auth/forgot-password', {'email': staff.email})
    unknown = api_client.post('/api/auth/forgot-password', {'email': 'nobody@example.com'})

    assert known.status_code == unknown.status_code == 200
    assert known.json()['message'] == unknown.json()['message']
