from typing import Dict, List

from chalicelib import data_models, documentation, orders, restaurants
from chalicelib.utils import app as utils_app, db as utils_db
from chalicelib.utils.logger import logger

WEEKDAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']


def weekly_hours(weekday: tuple, weekend: tuple, sunday: tuple) -> Dict:
    """ (open, close) for monday-thursday, friday-saturday and sunday """
    hours = {}
    for day in WEEKDAYS:
        open_time, close_time = sunday if day == 'sunday' else weekend if day in ('friday', 'saturday') else weekday
        hours[day] = {'open': open_time, 'close': close_time}
    return hours


SAMPLE_RESTAURANTS = [
    {
        'name': 'Burger Palace',
        'description': 'Gourmet burgers and sides',
        'address': '123 Main St, Anytown, USA',
        'phone': '555-123-4567',
        'email': 'info@burgerpalace.com',
        'cuisine': 'American',
        'price_range': '$$',
        'rating': 4.5,
        'opening_hours': weekly_hours(('11:00', '22:00'), ('11:00', '23:00'), ('12:00', '21:00')),
        'owner_id': 'sample_owner_1',
    },
    {
        'name': 'Pizza Heaven',
        'description': 'Authentic Italian pizzas',
        'address': '456 Oak Ave, Somewhere, USA',
        'phone': '555-987-6543',
        'email': 'contact@pizzaheaven.com',
        'cuisine': 'Italian',
        'price_range': '$$',
        'rating': 4.2,
        'opening_hours': weekly_hours(('12:00', '22:00'), ('12:00', '23:30'), ('12:00', '22:00')),
        'owner_id': 'sample_owner_2',
    },
    {
        'name': 'Sushi Express',
        'description': 'Fresh sushi and Japanese cuisine',
        'address': '789 Pine Rd, Elsewhere, USA',
        'phone': '555-456-7890',
        'email': 'hello@sushiexpress.com',
        'cuisine': 'Japanese',
        'price_range': '$$$',
        'rating': 4.7,
        'opening_hours': weekly_hours(('11:30', '21:30'), ('11:30', '22:30'), ('12:30', '21:00')),
        'owner_id': 'sample_owner_3',
    },
    {
        'name': 'Taco Fiesta',
        'description': 'Authentic Mexican street food',
        'address': '321 Elm St, Nowhere, USA',
        'phone': '555-789-0123',
        'email': 'hola@tacofiesta.com',
        'cuisine': 'Mexican',
        'price_range': '$',
        'rating': 4.3,
        'opening_hours': weekly_hours(('10:00', '21:00'), ('10:00', '22:00'), ('11:00', '20:00')),
        'owner_id': 'sample_owner_4',
    },
    {
        'name': 'Noodle House',
        'description': 'Asian noodles and soups',
        'address': '654 Maple Dr, Somewhere Else, USA',
        'phone': '555-321-6547',
        'email': 'info@noodlehouse.com',
        'cuisine': 'Asian Fusion',
        'price_range': '$$',
        'rating': 4.1,
        'opening_hours': weekly_hours(('11:00', '21:00'), ('11:00', '22:00'), ('12:00', '20:00')),
        'owner_id': 'sample_owner_5',
    },
]

# restaurant is filled in from the stored restaurants, by position
SAMPLE_ORDERS = [
    {
        'customer': {'id': 'customer_1', 'name': 'John Doe', 'address': '123 Customer St, Anytown, USA',
                     'phone': '555-111-2222'},
        'items': [
            {'id': 'item_1', 'name': 'Cheeseburger', 'quantity': 2, 'price': 8.99},
            {'id': 'item_2', 'name': 'French Fries', 'quantity': 1, 'price': 3.99},
        ],
        'total': 21.97,
        'status': 'completed',
        'delivery_time': 25,
    },
    {
        'customer': {'id': 'customer_2', 'name': 'Jane Smith', 'address': '456 Customer Ave, Somewhere, USA',
                     'phone': '555-333-4444'},
        'items': [
            {'id': 'item_3', 'name': 'Pepperoni Pizza', 'quantity': 1, 'price': 14.99},
            {'id': 'item_4', 'name': 'Garlic Bread', 'quantity': 1, 'price': 4.99},
        ],
        'total': 19.98,
        'status': 'completed',
        'delivery_time': 30,
    },
    {
        'customer': {'id': 'customer_3', 'name': 'Bob Johnson', 'address': '789 Customer Blvd, Elsewhere, USA',
                     'phone': '555-555-6666'},
        'items': [
            {'id': 'item_5', 'name': 'California Roll', 'quantity': 2, 'price': 9.99},
            {'id': 'item_6', 'name': 'Miso Soup', 'quantity': 1, 'price': 2.99},
        ],
        'total': 22.97,
        'status': 'pending',
    },
]


def _create_sample_restaurants() -> List[restaurants.Restaurant]:
    created = []
    for fields in SAMPLE_RESTAURANTS:
        restaurant = restaurants.Restaurant(status='active', **fields)
        restaurant._create_db_record()
        created.append(restaurant)
    logger.info(f'_create_sample_restaurants ::: created {len(created)} restaurants')
    return created


@utils_app.service_operation('Failed to initialize sample restaurants')
def initialize_sample_restaurants() -> Dict:
    if utils_db.partition_has_items(restaurants.Restaurant.pk):
        logger.info('initialize_sample_restaurants ::: restaurants already exist, skipping')
        return {'initialized': False, 'created': 0}
    return {'initialized': True, 'created': len(_create_sample_restaurants())}


@utils_app.service_operation('Failed to initialize sample orders')
def initialize_sample_orders() -> Dict:
    if utils_db.partition_has_items(orders.Order.pk):
        logger.info('initialize_sample_orders ::: orders already exist, skipping')
        return {'initialized': False, 'created': 0}
    stored_restaurants = restaurants.Restaurant.query_all() or _create_sample_restaurants()
    for index, fields in enumerate(SAMPLE_ORDERS):
        restaurant = stored_restaurants[index % len(stored_restaurants)]
        orders.Order(restaurant={'id': restaurant.id_, 'name': restaurant.name}, **fields)._create_db_record()
    logger.info(f'initialize_sample_orders ::: created {len(SAMPLE_ORDERS)} orders')
    return {'initialized': True, 'created': len(SAMPLE_ORDERS)}


@utils_app.log_start_finish
def initialize_all_sample_data() -> Dict:
    """ Seeds every empty collection, one failing collection does not stop the others """
    results = {
        'restaurants': initialize_sample_restaurants(),
        'orders': initialize_sample_orders(),
        'data_models': data_models.initialize_default_data_models(),
        'documentation': documentation.initialize_default_documentation(),
    }
    return {
        name: result.data if result.ok else {'initialized': False, 'error': result.user_message}
        for name, result in results.items()
    }
