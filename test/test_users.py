from datetime import datetime, timezone
from io import BytesIO

import pytest
from PIL import Image

from chalicelib import users
from chalicelib.constants import keys_structure
from chalicelib.utils import boto_clients, db as utils_db
from chalicelib.utils.errors import ErrorCategory

id_user = 'eaa45e81-c17a-4da3-bdee-149919ca531b'
id_driver = 'e5b01491-e538-4be3-8d3c-a57db7fc43c1'


def create_test_user(fake_table, id_=id_user, role='customer', email='user@test.com', name='Test User',
                     created_at='2024-01-01T10:00:00+00:00', **fields):
    fake_table.put_item(Item={
        'partkey': keys_structure.users_pk,
        'sortkey': keys_structure.users_sk.format(user_id=id_),
        'record_type': 'user',
        'id_': id_,
        'email': email,
        'name': name,
        'role': role,
        'created_at': created_at,
        'updated_at': created_at,
        **fields
    })
    return id_


class FakeCognitoClient:
    def __init__(self):
        self.calls = []
        self.deleted = []

    def admin_create_user(self, **kwargs):
        self.calls.append(kwargs)
        return {'User': {'Username': kwargs['Username'], 'Attributes': [{'Name': 'sub', 'Value': 'cognito-sub-1'}]}}

    def admin_delete_user(self, **kwargs):
        self.deleted.append(kwargs)


@pytest.fixture
def cognito_client(monkeypatch):
    client = FakeCognitoClient()
    monkeypatch.setattr(boto_clients, 'cognito_client', client)
    monkeypatch.setenv('COGNITO_USER_POOL_ID', 'test-pool')
    return client


def test_add_user(fake_table):
    result = users.add_user({'email': 'owner@test.com', 'name': 'Olivia', 'role': 'owner'})

    assert result.ok
    assert result.data['role'] == 'owner'
    assert result.data['is_verified'] is False
    assert fake_table.items[('users', result.data['id'])]['email'] == 'owner@test.com'
    assert 'address_text' not in result.data

    result = users.add_user({'email': 'home@test.com', 'address': {'street': '5 Elm', 'city': 'Oxford'}})
    assert result.data['address_text'] == '5 Elm, Oxford'


def test_add_user_defaults_to_customer(fake_table):
    result = users.add_user({'email': 'customer@test.com'})
    assert result.data['role'] == 'customer'


def test_add_user_validation(fake_table):
    result = users.add_user({'name': 'No email'})
    assert not result.ok
    assert result.error.category == ErrorCategory.VALIDATION
    assert result.user_message == 'Email is required'

    result = users.add_user({'email': 'x@test.com', 'role': 'superuser'})
    assert not result.ok
    assert result.user_message.startswith('Role must be one of')


def test_add_user_with_login(fake_table, cognito_client):
    result = users.add_user({'email': 'manager@test.com', 'role': 'store_manager'}, temporary_password='Temp-1234')

    assert result.data['id'] == 'cognito-sub-1'
    call = cognito_client.calls[0]
    assert call['UserPoolId'] == 'test-pool'
    assert call['Username'] == 'manager@test.com'
    assert call['TemporaryPassword'] == 'Temp-1234'
    assert {'Name': 'custom:role', 'Value': 'store_manager'} in call['UserAttributes']


def test_invalid_user_gets_no_login(fake_table, cognito_client):
    result = users.add_owner({'email': 'owner@test.com', 'rating': 9}, temporary_password='Temp-1234')

    assert not result.ok
    assert result.error.category == ErrorCategory.VALIDATION
    assert cognito_client.calls == []
    assert fake_table.partition('users') == []


def test_login_removed_when_user_record_fails(fake_table, cognito_client, monkeypatch):
    def failing_put(item, table=None):
        raise RuntimeError('table unavailable')
    monkeypatch.setattr(utils_db, 'put_db_record', failing_put)

    result = users.add_user({'email': 'manager@test.com'}, temporary_password='Temp-1234')

    assert not result.ok
    assert len(cognito_client.calls) == 1
    assert cognito_client.deleted == [{'UserPoolId': 'test-pool', 'Username': 'manager@test.com'}]


def test_failed_user_creation_hides_password(fake_table, cognito_client, recent_errors):
    users.add_owner({'email': 'owner@test.com', 'rating': 9}, temporary_password='Temp-1234')
    users.add_user({'email': 'manager@test.com', 'role': 'nobody'}, 'Temp-5678')

    logged = recent_errors()
    assert len(logged) == 2
    assert 'Temp-1234' not in str(logged)
    assert 'Temp-5678' not in str(logged)
    assert logged[0]['context']['args'][1] == '***'
    assert logged[1]['context']['kwargs']['temporary_password'] == '***'


def test_list_users(fake_table):
    create_test_user(fake_table, id_='u1', name='Anna', email='anna@test.com', created_at='2024-01-01T10:00:00+00:00')
    create_test_user(fake_table, id_='u2', name='Bob', email='bob@test.com', role='driver',
                     created_at='2024-02-01T10:00:00+00:00')
    create_test_user(fake_table, id_='u3', name='Carl', email='carl@shop.com', role='owner',
                     created_at='2024-03-01T10:00:00+00:00')

    assert [user['id'] for user in users.list_users().data] == ['u3', 'u2', 'u1']
    assert [user['id'] for user in users.list_users(role='driver').data] == ['u2']
    assert [user['id'] for user in users.list_users(role=['driver', 'owner']).data] == ['u3', 'u2']
    assert [user['id'] for user in users.list_users(search='SHOP').data] == ['u3']
    assert [user['id'] for user in users.list_users(limit=1).data] == ['u3']


def test_update_user(fake_table):
    create_test_user(fake_table, phone='555-000-0000')

    result = users.update_user(id_user, {'name': 'Renamed', 'phone': '', 'rating': 9})
    assert result.data['name'] == 'Renamed'
    assert result.data['rating'] == 0
    assert 'phone' not in fake_table.items[('users', id_user)]

    assert users.update_user('missing', {'name': 'Renamed'}).data is None


def test_change_user_role(fake_table):
    create_test_user(fake_table)

    assert users.change_user_role(id_user, 'admin').data['role'] == 'admin'
    assert users.change_user_role('missing', 'admin').data is None

    result = users.change_user_role(id_user, 'superuser')
    assert result.error.category == ErrorCategory.VALIDATION
    assert fake_table.items[('users', id_user)]['role'] == 'admin'


def test_delete_user(fake_table):
    create_test_user(fake_table)

    assert users.delete_user(id_user).data == {'id': id_user, 'deleted': True}
    assert users.delete_user(id_user).data is None


def test_add_driver(fake_table):
    result = users.add_driver({'email': 'driver@test.com', 'name': 'Dave', 'role': 'admin'})

    assert result.data == {
        'id': result.data['id'],
        'name': 'Dave',
        'email': 'driver@test.com',
        'phone': 'No phone',
        'status': 'inactive',
        'current_location': 'Unknown',
        'completed_orders': 0,
        'rating': 0,
        'vehicle_type': 'Car',
        'avatar_url': None,
    }
    assert fake_table.items[('users', result.data['id'])]['role'] == 'driver'


def test_get_driver(fake_table):
    create_test_user(fake_table, id_=id_driver, role='driver', is_verified=True, current_suburb='Uptown',
                     vehicle_type='Scooter')
    create_test_user(fake_table)

    driver = users.get_driver(id_driver).data
    assert driver['status'] == 'active'
    assert driver['current_location'] == 'Uptown'
    assert driver['vehicle_type'] == 'Scooter'

    assert users.get_driver(id_user).data is None
    assert [driver['id'] for driver in users.list_drivers().data] == [id_driver]


def test_update_driver_keeps_role(fake_table):
    create_test_user(fake_table, id_=id_driver, role='driver')

    result = users.update_driver(id_driver, {'role': 'admin', 'vehicle_type': 'Bicycle'})
    assert result.data['vehicle_type'] == 'Bicycle'
    assert fake_table.items[('users', id_driver)]['role'] == 'driver'

    create_test_user(fake_table)
    assert users.update_driver(id_user, {'vehicle_type': 'Bicycle'}).data is None


def test_delete_driver(fake_table):
    create_test_user(fake_table, id_=id_driver, role='driver')
    create_test_user(fake_table)

    assert users.delete_driver(id_user).data is None
    assert users.delete_driver(id_driver).data == {'id': id_driver, 'deleted': True}
    assert ('users', id_user) in fake_table.items


def test_upload_driver_avatar(fake_table, fake_s3):
    create_test_user(fake_table, id_=id_driver, role='driver')
    buffer = BytesIO()
    Image.new('RGB', (64, 64), 'blue').save(buffer, format='PNG')

    result = users.upload_driver_avatar(id_driver, buffer.getvalue(), 'me.png')
    assert result.data['path'].startswith(f'profile-images/{id_driver}/')
    assert fake_table.items[('users', id_driver)]['avatar_url'] == result.data['url']

    assert users.upload_driver_avatar('missing', buffer.getvalue(), 'me.png').data is None


def test_owners(fake_table, cognito_client):
    create_test_user(fake_table, id_='o1', role='owner')
    create_test_user(fake_table)

    assert [owner['id'] for owner in users.list_owners().data] == ['o1']

    result = users.add_owner({'email': 'new-owner@test.com', 'role': 'admin'}, temporary_password='Temp-1234')
    assert result.data['role'] == 'owner'
    assert result.data['id'] == 'cognito-sub-1'


def test_count_users(fake_table):
    create_test_user(fake_table, id_='u1', created_at='2024-01-01T10:00:00+00:00')
    create_test_user(fake_table, id_='u2', created_at='2024-06-01T10:00:00+00:00')

    assert users.count_users().data == 2
    assert users.count_users_created_before(datetime(2024, 3, 1, tzinfo=timezone.utc)) == 1
