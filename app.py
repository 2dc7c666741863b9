from chalice import Chalice, Response

from chalicelib import (auth, dashboard, data_models, documentation, images, orders, restaurants, sample_data,
                        simulation, storage, tracking, users)
from chalicelib.constants.status_codes import http200
from chalicelib.utils import app as utils_app, auth as utils_auth, data as utils_data, errors as utils_errors
from chalicelib.utils.exceptions import ValidationException
from chalicelib.utils.logger import log_request, set_request_id

app = Chalice(app_name='bizidata-admin-api')

app.api.binary_types.insert(0, 'multipart/form-data')
app.debug = True


def current_request():
    request = app.current_request
    set_request_id(request)
    log_request(request)
    return request


def query_params() -> dict:
    return current_request().query_params or {}


def request_body() -> dict:
    return utils_data.parse_raw_body(current_request())


def uploaded_file() -> dict:
    form = images.parse_multipart_request_data(current_request())
    return {**images.get_uploaded_file(form), 'form': form}


@app.authorizer()
def role_authorizer(auth_request):
    return auth.role_authorizer(auth_request)


@app.route('/health-check', methods=['GET'], cors=True)
def health_check():
    return {'health': 'check'}


# AUTH
@app.route('/auth/login', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def login():
    return auth.login_cognito(current_request())


@app.route('/auth/new-password', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def set_new_password():
    return auth.set_new_password_cognito(current_request())


@app.route('/auth/refresh', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def refresh_token():
    return auth.refresh_id_token_cognito(current_request())


# RESTAURANTS
@app.route('/restaurants', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_restaurants():
    params = query_params()
    return utils_app.service_response(restaurants.list_restaurants(
        status=params.get('status'),
        owner_id=params.get('owner_id'),
        search=params.get('search'),
        limit=params.get('limit')
    ))


@app.route('/restaurants/recent', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_recent_restaurants():
    limit = query_params().get('limit')
    return utils_app.service_response(
        restaurants.get_recent_restaurants(limit) if limit else restaurants.get_recent_restaurants()
    )


@app.route('/restaurants/{restaurant_id}', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_restaurant(restaurant_id):
    return utils_app.service_response(restaurants.get_restaurant(restaurant_id),
                                      not_found_message='Restaurant not found')


@app.route('/restaurants', methods=['POST'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def create_restaurant():
    body = request_body()
    created_by = utils_auth.get_current_user_id(app.current_request)
    return utils_app.created_response(restaurants.add_restaurant(body, created_by=created_by))


@app.route('/restaurants/{restaurant_id}', methods=['PUT'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def update_restaurant(restaurant_id):
    return utils_app.service_response(restaurants.update_restaurant(restaurant_id, request_body()),
                                      not_found_message='Restaurant not found')


@app.route('/restaurants/{restaurant_id}', methods=['DELETE'], authorizer=role_authorizer, cors=True)
def delete_restaurant(restaurant_id):
    current_request()
    return utils_app.service_response(restaurants.delete_restaurant(restaurant_id),
                                      not_found_message='Restaurant not found')


@app.route('/restaurants/{restaurant_id}/image', methods=['POST'], content_types=['multipart/form-data'],
           authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def upload_restaurant_image(restaurant_id):
    uploaded = uploaded_file()
    image_type = uploaded['form'].get('image_type') or 'logo'
    return utils_app.service_response(
        restaurants.upload_restaurant_image(restaurant_id, uploaded['content'], uploaded['file_name'], image_type),
        not_found_message='Restaurant not found'
    )


# USERS
@app.route('/users', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_users():
    params = query_params()
    return utils_app.service_response(users.list_users(
        role=params.get('role'), search=params.get('search'), limit=params.get('limit')
    ))


@app.route('/users', methods=['POST'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def create_user():
    body = request_body()
    temporary_password = body.pop('temporary_password', None)
    return utils_app.created_response(users.add_user(body, temporary_password=temporary_password))


@app.route('/users/{user_id}', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_user(user_id):
    current_request()
    return utils_app.service_response(users.get_user(user_id), not_found_message='User not found')


@app.route('/users/{user_id}', methods=['PUT'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def update_user(user_id):
    return utils_app.service_response(users.update_user(user_id, request_body()), not_found_message='User not found')


@app.route('/users/{user_id}', methods=['DELETE'], authorizer=role_authorizer, cors=True)
def delete_user(user_id):
    current_request()
    return utils_app.service_response(users.delete_user(user_id), not_found_message='User not found')


@app.route('/users/{user_id}/role', methods=['PUT'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def change_user_role(user_id):
    return utils_app.service_response(users.change_user_role(user_id, request_body().get('role')),
                                      not_found_message='User not found')


# DRIVERS
@app.route('/drivers', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_drivers():
    current_request()
    return utils_app.service_response(users.list_drivers())


@app.route('/drivers', methods=['POST'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def create_driver():
    return utils_app.created_response(users.add_driver(request_body()))


@app.route('/drivers/{driver_id}', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_driver(driver_id):
    current_request()
    return utils_app.service_response(users.get_driver(driver_id), not_found_message='Driver not found')


@app.route('/drivers/{driver_id}', methods=['PUT'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def update_driver(driver_id):
    return utils_app.service_response(users.update_driver(driver_id, request_body()),
                                      not_found_message='Driver not found')


@app.route('/drivers/{driver_id}', methods=['DELETE'], authorizer=role_authorizer, cors=True)
def delete_driver(driver_id):
    current_request()
    return utils_app.service_response(users.delete_driver(driver_id), not_found_message='Driver not found')


@app.route('/drivers/{driver_id}/avatar', methods=['POST'], content_types=['multipart/form-data'],
           authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def upload_driver_avatar(driver_id):
    uploaded = uploaded_file()
    return utils_app.service_response(
        users.upload_driver_avatar(driver_id, uploaded['content'], uploaded['file_name']),
        not_found_message='Driver not found'
    )


# OWNERS
@app.route('/owners', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_owners():
    current_request()
    return utils_app.service_response(users.list_owners())


@app.route('/owners', methods=['POST'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def create_owner():
    body = request_body()
    temporary_password = body.pop('temporary_password', None)
    return utils_app.created_response(users.add_owner(body, temporary_password=temporary_password))


# DATA MODELS
@app.route('/data-models', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_data_models():
    current_request()
    return utils_app.service_response(data_models.list_data_models())


@app.route('/data-models/popular', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_popular_data_models():
    limit = query_params().get('limit')
    return utils_app.service_response(
        data_models.get_popular_data_models(limit) if limit else data_models.get_popular_data_models()
    )


@app.route('/data-models/initialize', methods=['POST'], authorizer=role_authorizer, cors=True)
def initialize_data_models():
    current_request()
    return utils_app.service_response(data_models.initialize_default_data_models())


@app.route('/data-models', methods=['POST'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def create_data_model():
    return utils_app.created_response(data_models.add_data_model(request_body()))


@app.route('/data-models/{data_model_id}', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_data_model(data_model_id):
    current_request()
    return utils_app.service_response(data_models.get_data_model(data_model_id),
                                      not_found_message='Data model not found')


@app.route('/data-models/{data_model_id}', methods=['PUT'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def update_data_model(data_model_id):
    return utils_app.service_response(data_models.update_data_model(data_model_id, request_body()),
                                      not_found_message='Data model not found')


@app.route('/data-models/{data_model_id}', methods=['DELETE'], authorizer=role_authorizer, cors=True)
def delete_data_model(data_model_id):
    current_request()
    return utils_app.service_response(data_models.delete_data_model(data_model_id),
                                      not_found_message='Data model not found')


# ORDERS
@app.route('/orders', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_orders():
    current_request()
    return utils_app.service_response(orders.list_orders())


@app.route('/orders', methods=['POST'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def create_order():
    return utils_app.created_response(orders.add_order(request_body()))


@app.route('/orders/statistics', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_order_statistics():
    current_request()
    return utils_app.service_response(orders.get_order_statistics())


@app.route('/orders/{order_id}', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_order(order_id):
    current_request()
    return utils_app.service_response(orders.get_order(order_id), not_found_message='Order not found')


@app.route('/orders/{order_id}/status', methods=['PUT'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def update_order_status(order_id):
    return utils_app.service_response(orders.update_order_status(order_id, request_body().get('status')),
                                      not_found_message='Order not found')


@app.route('/orders/{order_id}/driver', methods=['PUT'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def assign_driver_to_order(order_id):
    return utils_app.service_response(orders.assign_driver_to_order(order_id, request_body().get('driver_id')),
                                      not_found_message='Order not found')


@app.route('/analytics', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_analytics():
    current_request()
    return utils_app.service_response(orders.get_analytics())


@app.route('/dashboard/metrics', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_dashboard_metrics():
    current_request()
    return utils_app.service_response(dashboard.get_dashboard_metrics())


# DOCUMENTATION
@app.route('/documentation', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_documentation_list():
    return utils_app.service_response(documentation.list_documentation(query_params().get('category')))


@app.route('/documentation/categories', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_documentation_categories():
    current_request()
    return utils_app.service_response(documentation.list_documentation_categories())


@app.route('/documentation/initialize', methods=['POST'], authorizer=role_authorizer, cors=True)
def initialize_documentation():
    current_request()
    return utils_app.service_response(documentation.initialize_default_documentation())


@app.route('/documentation', methods=['POST'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def create_documentation():
    return utils_app.created_response(documentation.add_documentation(request_body()))


@app.route('/documentation/{documentation_id}', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_documentation(documentation_id):
    current_request()
    return utils_app.service_response(documentation.get_documentation(documentation_id),
                                      not_found_message='Documentation not found')


@app.route('/documentation/{documentation_id}', methods=['PUT'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def update_documentation(documentation_id):
    return utils_app.service_response(documentation.update_documentation(documentation_id, request_body()),
                                      not_found_message='Documentation not found')


@app.route('/documentation/{documentation_id}', methods=['DELETE'], authorizer=role_authorizer, cors=True)
def delete_documentation(documentation_id):
    current_request()
    return utils_app.service_response(documentation.delete_documentation(documentation_id),
                                      not_found_message='Documentation not found')


# FILES
@app.route('/files', methods=['POST'], content_types=['multipart/form-data'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def upload_file():
    form = images.parse_multipart_request_data(current_request())
    uploaded = form.get('file')
    if not isinstance(uploaded, dict):
        raise ValidationException('No file was uploaded')
    return utils_app.created_response(storage.upload_file(
        uploaded['content'], uploaded['file_name'], uploaded['content_type'],
        folder_path=form.get('folder_path', ''),
        generate_unique_filename=form.get('unique_name', 'true').lower() != 'false'
    ))


@app.route('/files', methods=['GET'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def get_file_download_url():
    params = query_params()
    try:
        expires_in = int(params.get('expires_in', 3600))
    except ValueError:
        raise ValidationException('expires_in must be a whole number of seconds')
    return utils_app.service_response(storage.get_download_url(params.get('path'), expires_in=expires_in))


@app.route('/files', methods=['DELETE'], authorizer=role_authorizer, cors=True)
def delete_file():
    return utils_app.service_response(storage.delete_file(query_params().get('path')))


# TRACKING
@app.route('/tracking/events', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_tracking_events():
    limit = query_params().get('limit')
    return utils_app.service_response(
        tracking.get_recent_tracking_events(limit) if limit else tracking.get_recent_tracking_events()
    )


@app.route('/tracking/events', methods=['POST'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def create_tracking_event():
    return utils_app.created_response(tracking.add_tracking_event(request_body()))


@app.route('/tracking/drivers', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_driver_locations():
    current_request()
    return utils_app.service_response(tracking.get_active_driver_locations())


@app.route('/tracking/drivers/{driver_id}/location', methods=['PUT'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def update_driver_location(driver_id):
    body = request_body()
    return utils_app.service_response(tracking.update_driver_location(driver_id, body.get('location'),
                                                                      status=body.get('status')))


@app.route('/tracking/simulation', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_simulation_status():
    current_request()
    return simulation.simulation.status()


@app.route('/tracking/simulation/start', methods=['POST'], authorizer=role_authorizer, cors=True)
@utils_app.request_exception_handler
def start_simulation():
    interval_seconds = request_body().get('interval_seconds')
    try:
        interval_seconds = float(interval_seconds) if interval_seconds else None
    except (TypeError, ValueError):
        raise ValidationException('interval_seconds must be a number')
    started = simulation.simulation.start(interval_seconds)
    return {'started': started, **simulation.simulation.status()}


@app.route('/tracking/simulation/stop', methods=['POST'], authorizer=role_authorizer, cors=True)
def stop_simulation():
    current_request()
    stopped = simulation.simulation.stop()
    return {'stopped': stopped, **simulation.simulation.status()}


# SAMPLE DATA
@app.route('/sample-data/initialize', methods=['POST'], authorizer=role_authorizer, cors=True)
def initialize_sample_data():
    current_request()
    return Response(status_code=http200, body=sample_data.initialize_all_sample_data(),
                    headers={'Content-Type': 'application/json'})


# DEBUG
@app.route('/debug/error-logs', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_error_logs():
    current_request()
    return Response(status_code=http200, body=utils_data.prepare_for_ui(utils_errors.get_recent_errors()),
                    headers={'Content-Type': 'application/json'})


@app.route('/debug/error-logs', methods=['DELETE'], authorizer=role_authorizer, cors=True)
def clear_error_logs():
    current_request()
    utils_errors.clear_recent_errors()
    return {'cleared': True}
