from chalicelib.constants.status_codes import http200, http201, http400, http401, http403, http404
from test.utils.fixtures import id_admin, id_driver, token_admin, token_customer, token_driver, token_owner
from test.utils.request_utils import make_request


def create_test_restaurant(client, **fields):
    restaurant_to_create = {
        'name': 'Burger Palace',
        'cuisine': 'American',
        'rating': 4.5,
        'address': {'street': '123 Main St', 'city': 'Anytown'},
        **fields
    }
    response = make_request(client, endpoint='/restaurants', method='POST', json_body=restaurant_to_create,
                            token=token_admin)
    assert response.status_code == http201
    return response.json_body['id']


def test_health_check(client):
    response = make_request(client, endpoint='/health-check')
    assert response.status_code == http200
    assert response.json_body == {'health': 'check'}


def test_missing_token_is_unauthorized(client):
    response = make_request(client, endpoint='/restaurants')
    assert response.status_code == http401


def test_invalid_token_is_forbidden(client):
    response = make_request(client, endpoint='/restaurants', token='not-a-token')
    assert response.status_code == http403


def test_customer_has_no_dashboard_access(client):
    response = make_request(client, endpoint='/restaurants', token=token_customer)
    assert response.status_code == http403


def test_owner_routes(client):
    assert make_request(client, endpoint='/restaurants', token=token_owner).status_code == http200
    assert make_request(client, endpoint='/dashboard/metrics', token=token_owner).status_code == http200
    assert make_request(client, endpoint='/users', token=token_owner).status_code == http403
    assert make_request(client, endpoint='/documentation', method='POST', json_body={'title': 'x'},
                        token=token_owner).status_code == http403


def test_driver_routes(client):
    response = make_request(client, endpoint=f'/tracking/drivers/{id_driver}/location', method='PUT',
                            json_body={'location': {'latitude': 40.7128, 'longitude': -74.006}}, token=token_driver)
    assert response.status_code == http200
    assert response.json_body['driver_id'] == id_driver
    assert response.json_body['location'] == {'latitude': 40.7128, 'longitude': -74.006}

    assert make_request(client, endpoint='/restaurants', token=token_driver).status_code == http403


def test_restaurant_crud(client, fake_table):
    restaurant_id = create_test_restaurant(client)

    stored = fake_table.items[('restaurants', restaurant_id)]
    assert stored['created_by'] == id_admin
    assert stored['status'] == 'pending_verification'

    response = make_request(client, endpoint=f'/restaurants/{restaurant_id}', token=token_admin)
    assert response.status_code == http200
    assert response.json_body['name'] == 'Burger Palace'
    assert response.json_body['rating'] == 4.5
    assert response.json_body['address_text'] == '123 Main St, Anytown'

    response = make_request(client, endpoint=f'/restaurants/{restaurant_id}', method='PUT',
                            json_body={'status': 'active', 'rating': 3, 'unexpected_field': 'value'},
                            token=token_admin)
    assert response.status_code == http200
    assert response.json_body['status'] == 'active'
    assert response.json_body['status_variant'] == 'success'
    assert response.json_body['rating'] == 3
    assert 'unexpected_field' not in response.json_body

    response = make_request(client, endpoint=f'/restaurants/{restaurant_id}', method='DELETE', token=token_admin)
    assert response.status_code == http200
    assert response.json_body == {'id': restaurant_id, 'deleted': True}

    response = make_request(client, endpoint=f'/restaurants/{restaurant_id}', token=token_admin)
    assert response.status_code == http404
    assert response.json_body['message'] == 'Restaurant not found'


def test_restaurant_validation_error(client):
    response = make_request(client, endpoint='/restaurants', method='POST', json_body={'cuisine': 'Thai'},
                            token=token_admin)
    assert response.status_code == http400
    assert response.json_body['category'] == 'validation'
    assert response.json_body['message'] == 'Restaurant name is required'


def test_update_missing_restaurant(client):
    response = make_request(client, endpoint='/restaurants/missing-id', method='PUT', json_body={'name': 'New name'},
                            token=token_admin)
    assert response.status_code == http404


def test_recent_restaurants(client):
    create_test_restaurant(client, name='First')
    create_test_restaurant(client, name='Second')

    response = make_request(client, endpoint='/restaurants/recent', query='limit=1', token=token_owner)
    assert response.status_code == http200
    assert len(response.json_body) == 1
    assert response.json_body[0]['stars'] == {'full': 4, 'half': 1, 'empty': 0}


def test_orders_flow(client):
    response = make_request(client, endpoint='/orders', method='POST', token=token_owner, json_body={
        'restaurant': {'id': 'restaurant-1', 'name': 'Burger Palace'},
        'customer': {'name': 'John Doe'},
        'items': [{'name': 'Cheeseburger', 'quantity': 2, 'price': 8.99}],
        'total': 17.98
    })
    assert response.status_code == http201
    order_id = response.json_body['id']
    assert response.json_body['status'] == 'pending'

    response = make_request(client, endpoint=f'/orders/{order_id}/status', method='PUT',
                            json_body={'status': 'unknown'}, token=token_owner)
    assert response.status_code == http400

    response = make_request(client, endpoint=f'/orders/{order_id}/status', method='PUT',
                            json_body={'status': 'preparing'}, token=token_owner)
    assert response.status_code == http200
    assert response.json_body['status'] == 'preparing'

    response = make_request(client, endpoint='/orders', token=token_owner)
    assert response.status_code == http200
    assert response.json_body[0]['restaurant'] == 'Burger Palace'
    assert response.json_body[0]['customer'] == 'John Doe'
    assert response.json_body[0]['items'] == 1

    response = make_request(client, endpoint='/orders/statistics', token=token_owner)
    assert response.json_body['total_orders'] == 1
    assert response.json_body['preparing'] == 1


def test_dashboard_metrics(client):
    create_test_restaurant(client, status='active')

    response = make_request(client, endpoint='/dashboard/metrics', token=token_admin)
    assert response.status_code == http200
    assert response.json_body['active_restaurants']['count'] == 1
    assert response.json_body['today_orders'] == {'count': 0}
    assert response.json_body['data_models']['label'] == 'Active schemas'
    assert response.json_body['delivery_time'] == {'avg_minutes': 0, 'percent_change': 0}


def test_documentation_initialize(client):
    response = make_request(client, endpoint='/documentation/initialize', method='POST', token=token_admin)
    assert response.status_code == http200
    assert response.json_body == {'initialized': True, 'created': 6}

    response = make_request(client, endpoint='/documentation', query='category=Analytics', token=token_owner)
    assert response.status_code == http200
    assert [document['title'] for document in response.json_body] == ['Analytics Dashboard Guide']


def test_tracking_event_validation(client):
    response = make_request(client, endpoint='/tracking/events', method='POST', token=token_driver,
                            json_body={'type': 'teleported', 'driver': {'id': id_driver}})
    assert response.status_code == http400

    response = make_request(client, endpoint='/tracking/events', method='POST', token=token_driver,
                            json_body={'type': 'status_change', 'driver': {'id': id_driver}, 'status': 'delivering'})
    assert response.status_code == http201

    response = make_request(client, endpoint='/tracking/events', token=token_driver)
    assert response.status_code == http200
    assert response.json_body[0]['type'] == 'status_change'


def test_file_download_url_requires_path(client):
    response = make_request(client, endpoint='/files', token=token_admin)
    assert response.status_code == http400

    response = make_request(client, endpoint='/files', query='path=reports/day.csv&expires_in=60', token=token_admin)
    assert response.status_code == http200
    assert response.json_body['path'] == 'reports/day.csv'
    assert response.json_body['url'].endswith('reports/day.csv?expires=60')


def test_malformed_json_body_is_bad_request(client):
    response = client.http.request(
        method='POST', path='/restaurants', body=b'{"name": "Cafe",',
        headers={'Content-Type': 'application/json', 'Authorization': token_admin}
    )
    assert response.status_code == http400
    assert response.json_body['exception'] == 'ValidationException'

    response = client.http.request(
        method='PUT', path='/tracking/drivers/driver-1/location', body=b'not json',
        headers={'Content-Type': 'application/json', 'Authorization': token_admin}
    )
    assert response.status_code == http400


def test_file_download_url_rejects_non_numeric_expiry(client):
    response = make_request(client, endpoint='/files', query='path=reports/day.csv&expires_in=soon', token=token_admin)
    assert response.status_code == http400
    assert response.json_body['message'] == 'expires_in must be a whole number of seconds'


def test_login_requires_credentials(client):
    response = make_request(client, endpoint='/auth/login', method='POST', json_body={'username': 'admin'})
    assert response.status_code == http400
    assert response.json_body['exception'] == 'MandatoryFieldsAreNotFilled'


def test_error_logs(client, recent_errors):
    make_request(client, endpoint='/data-models', method='POST', json_body={'description': 'no name'},
                 token=token_admin)

    response = make_request(client, endpoint='/debug/error-logs', token=token_admin)
    assert response.status_code == http200
    assert response.json_body[0]['category'] == 'validation'
    assert response.json_body[0]['user_message'] == 'Data model name is required'
    assert response.json_body[0]['context']['action'] == 'add_data_model'

    response = make_request(client, endpoint='/debug/error-logs', method='DELETE', token=token_admin)
    assert response.status_code == http200
    assert recent_errors() == []
