import pytest
from chalice.test import Client

from chalicelib.utils import auth as utils_auth, boto_clients, db as utils_db, errors as utils_errors
from chalicelib.utils.exceptions import AuthorizationException
from test.utils.fake_table import FakeS3, FakeTable

id_admin = '13303309-d941-486f-b600-3e90929ac50f'
id_owner = '8178f948-cdc2-4e8c-b013-07a956e7e72a'
id_driver = 'e5b01491-e538-4be3-8d3c-a57db7fc43c1'
id_customer = '0b6ad1f4-2a3c-4c4e-9d5e-5f2d1a7e9c10'

token_admin = 'admin-token'
token_owner = 'owner-token'
token_driver = 'driver-token'
token_customer = 'customer-token'

TOKEN_CLAIMS = {
    token_admin: {'sub': id_admin, 'custom:role': 'admin'},
    token_owner: {'sub': id_owner, 'custom:role': 'owner'},
    token_driver: {'sub': id_driver, 'custom:role': 'driver'},
    token_customer: {'sub': id_customer, 'custom:role': 'customer'},
}


def decode_test_token(token):
    token = utils_auth.strip_bearer(token)
    if token not in TOKEN_CLAIMS:
        raise AuthorizationException('Invalid token')
    return dict(TOKEN_CLAIMS[token])


@pytest.fixture
def fake_table(monkeypatch) -> FakeTable:
    table = FakeTable()
    monkeypatch.setattr(utils_db, 'get_gen_table', lambda: table)
    yield table


@pytest.fixture
def fake_s3(monkeypatch) -> FakeS3:
    s3 = FakeS3()
    monkeypatch.setattr(boto_clients, 's3_client', s3)
    monkeypatch.setenv('IMAGES_BUCKET_NAME', 'test-images')
    monkeypatch.setenv('IMAGES_BASE_URL', 'https://images.test')
    yield s3


@pytest.fixture
def recent_errors():
    utils_errors.clear_recent_errors()
    yield utils_errors.get_recent_errors
    utils_errors.clear_recent_errors()


@pytest.fixture
def test_tokens(monkeypatch):
    monkeypatch.setattr(utils_auth, 'decode_id_token', decode_test_token)


@pytest.fixture
def client(fake_table, fake_s3, test_tokens):
    from app import app
    with Client(app) as chalice_client:
        yield chalice_client
