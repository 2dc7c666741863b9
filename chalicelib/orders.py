from collections import defaultdict
from datetime import datetime
from typing import Tuple, List, Dict, Optional

from chalicelib.base_class_entity import EntityBase, is_str, is_non_empty_str, is_number, is_list, is_dict, one_of
from chalicelib.constants import keys_structure, db_structure
from chalicelib.constants.constants import ORDER_STATUSES, TOP_RESTAURANTS_LIMIT
from chalicelib.utils import app as utils_app, formatting
from chalicelib.utils.data import to_number
from chalicelib.utils.exceptions import ValidationException
from chalicelib.utils.logger import logger
from chalicelib.utils.timestamps import timestamp_sort_key, to_datetime


class Order(EntityBase):
    pk = keys_structure.orders_pk
    sk = keys_structure.orders_sk
    record_type = 'order'
    defaults = db_structure.ORDER

    required_immutable_fields_validation = {
        'id_': is_str,
        'created_at': is_str
    }

    required_mutable_fields_validation = {
        'status': one_of(*ORDER_STATUSES),
    }

    optional_fields_validation = {
        'restaurant': is_dict,
        'customer': is_dict,
        'items': is_list,
        'total': lambda x: is_number(x) and x >= 0,
        'driver_id': is_str,
        'delivery_time': lambda x: is_number(x) and x >= 0,
    }

    deletable_fields = ['driver_id', 'delivery_time']

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(order_id=self.id_)

    @property
    def restaurant_id(self) -> Optional[str]:
        restaurant = self.restaurant if isinstance(self.restaurant, dict) else {}
        return restaurant.get('id') or self.extra_fields.get('restaurant_id')

    @property
    def restaurant_name(self) -> str:
        # older orders only carry restaurant_id and restaurant_name
        restaurant = self.restaurant if isinstance(self.restaurant, dict) else {}
        return restaurant.get('name') or self.extra_fields.get('restaurant_name') or 'Unknown Restaurant'

    @property
    def customer_name(self) -> str:
        customer = self.customer if isinstance(self.customer, dict) else {}
        return customer.get('name') or self.extra_fields.get('customer_name') or 'Unknown Customer'

    @property
    def total_amount(self):
        return to_number(self.total)

    def to_summary(self) -> Dict:
        """ Row of the orders table """
        restaurant = self.restaurant if isinstance(self.restaurant, dict) else {}
        created_at = to_datetime(self.created_at)
        return {
            'id': self.id_,
            'restaurant': self.restaurant_name,
            'restaurant_logo': restaurant.get('logo'),
            'customer': self.customer_name,
            'items': len(self.items or []),
            'total': self.total_amount,
            'status': self.status or 'pending',
            'status_label': formatting.format_status(self.status),
            'status_variant': formatting.get_status_variant(self.status),
            'date': created_at.strftime('%Y-%m-%d') if created_at else '',
            'time': formatting.format_time(created_at),
        }


def _newest_first(orders: List[Order]) -> List[Order]:
    return sorted(orders, key=lambda order: timestamp_sort_key(order.created_at), reverse=True)


def _order_fields(fields: Dict) -> Dict:
    return {key: value for key, value in (fields or {}).items() if key not in ('id', 'id_', 'created_at', 'updated_at')}


def find_orders() -> List[Order]:
    """ Every order for internal callers, errors propagate """
    return Order.query_all()


@utils_app.service_operation('Failed to load orders')
def list_orders() -> List[Dict]:
    orders = _newest_first(find_orders())
    logger.info(f'list_orders ::: returning {len(orders)} orders')
    return [order.to_summary() for order in orders]


@utils_app.service_operation('Failed to load order')
def get_order(order_id: str) -> Optional[Dict]:
    order = Order.init_by_id(order_id)
    return order._to_ui() if order else None


@utils_app.service_operation('Failed to add order')
def add_order(fields: Dict) -> Dict:
    fields = _order_fields(fields)
    fields.setdefault('status', 'pending')
    if fields['status'] not in ORDER_STATUSES:
        raise ValidationException(f"Status must be one of {', '.join(ORDER_STATUSES)}")
    order = Order(**fields)
    order._create_db_record()
    return order._to_ui()


@utils_app.service_operation('Failed to update order status')
def update_order_status(order_id: str, status: str) -> Optional[Dict]:
    if status not in ORDER_STATUSES:
        raise ValidationException(f"Status must be one of {', '.join(ORDER_STATUSES)}")
    attributes = Order(id_=order_id)._update_db_record({'status': status})
    if attributes is None:
        return None
    logger.info(f'update_order_status ::: {order_id=} moved to {status=}')
    return Order.from_db_record(attributes)._to_ui()


@utils_app.service_operation('Failed to assign driver')
def assign_driver_to_order(order_id: str, driver_id: str) -> Optional[Dict]:
    if not is_non_empty_str(driver_id):
        raise ValidationException('Driver id is required')
    attributes = Order(id_=order_id)._update_db_record({'driver_id': driver_id})
    return Order.from_db_record(attributes)._to_ui() if attributes is not None else None


@utils_app.service_operation('Failed to load order statistics')
def get_order_statistics() -> Dict:
    statistics = {'total_orders': 0, **{status: 0 for status in ORDER_STATUSES}}
    for order in find_orders():
        statistics['total_orders'] += 1
        status = order.status or 'pending'
        statistics[status] = statistics.get(status, 0) + 1
    return statistics


def _top_restaurants(orders: List[Order], limit: int) -> List[Dict]:
    by_restaurant = {}
    for order in orders:
        restaurant_id = order.restaurant_id
        if not restaurant_id:
            continue
        entry = by_restaurant.setdefault(
            restaurant_id, {'id': restaurant_id, 'name': order.restaurant_name, 'orders': 0, 'revenue': 0}
        )
        entry['orders'] += 1
        entry['revenue'] += order.total_amount
    return sorted(by_restaurant.values(), key=lambda entry: entry['revenue'], reverse=True)[:limit]


def _per_day(orders: List[Order]) -> Tuple[List[Dict], List[Dict]]:
    orders_by_day = defaultdict(int)
    revenue_by_day = defaultdict(int)
    for order in orders:
        created_at = to_datetime(order.created_at)
        if created_at is None:
            continue
        day = created_at.strftime('%Y-%m-%d')
        orders_by_day[day] += 1
        revenue_by_day[day] += order.total_amount
    return (
        [{'date': day, 'orders': orders_by_day[day]} for day in sorted(orders_by_day)],
        [{'date': day, 'revenue': revenue_by_day[day]} for day in sorted(revenue_by_day)]
    )


@utils_app.service_operation('Failed to load analytics')
def get_analytics() -> Dict:
    orders = find_orders()
    total_orders = len(orders)
    total_revenue = sum(order.total_amount for order in orders)
    orders_by_day, revenue_by_day = _per_day(orders)
    return {
        'total_orders': total_orders,
        'total_revenue': total_revenue,
        'average_order_value': total_revenue / total_orders if total_orders > 0 else 0,
        'top_restaurants': _top_restaurants(orders, TOP_RESTAURANTS_LIMIT),
        'orders_by_day': orders_by_day,
        'revenue_by_day': revenue_by_day,
    }


def count_orders_since(moment: datetime) -> int:
    return len([order for order in find_orders() if timestamp_sort_key(order.created_at) >= moment])


def completed_delivery_times(orders: Optional[List[Order]] = None) -> List:
    """ delivery_time (minutes) of completed orders which have one """
    orders = find_orders() if orders is None else orders
    return [
        to_number(order.delivery_time) for order in orders
        if order.status == 'completed' and is_number(order.delivery_time) and order.delivery_time > 0
    ]
