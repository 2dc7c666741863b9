from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from boto3.dynamodb.conditions import Attr

from chalicelib import data_models, orders, restaurants, users
from chalicelib.constants.constants import METRICS_COMPARISON_DAYS
from chalicelib.utils import app as utils_app
from chalicelib.utils.timestamps import timestamp_sort_key


def percent_change(current, previous) -> int:
    """ Rounded change against the previous value, 0 when there is nothing to compare with """
    if not previous:
        return 0
    return round((current - previous) / previous * 100)


def _average(values) -> int:
    return round(sum(values) / len(values)) if values else 0


@utils_app.service_operation('Failed to load active restaurants')
def active_restaurants_metric(comparison_moment: datetime) -> Dict:
    active = restaurants.Restaurant.query_all(Attr('status').eq('active'))
    previous = [restaurant for restaurant in active if timestamp_sort_key(restaurant.created_at) <= comparison_moment]
    return {'count': len(active), 'percent_change': percent_change(len(active), len(previous))}


@utils_app.service_operation("Failed to load today's orders")
def today_orders_metric(start_of_day: datetime) -> Dict:
    return {'count': orders.count_orders_since(start_of_day)}


@utils_app.service_operation('Failed to load users')
def users_metric(comparison_moment: datetime) -> Dict:
    count = len(users.User.query_all())
    previous = users.count_users_created_before(comparison_moment)
    return {'count': count, 'percent_change': percent_change(count, previous)}


@utils_app.service_operation('Failed to load data models')
def data_models_metric() -> Dict:
    return {'count': len(data_models.DataModel.query_all()), 'label': 'Active schemas'}


@utils_app.service_operation('Failed to load delivery time')
def delivery_time_metric(comparison_moment: datetime) -> Dict:
    """ Average delivery time of completed orders in minutes """
    all_orders = orders.find_orders()
    average = _average(orders.completed_delivery_times(all_orders))
    previous_orders = [order for order in all_orders if timestamp_sort_key(order.created_at) <= comparison_moment]
    previous_average = _average(orders.completed_delivery_times(previous_orders)) or average
    return {'avg_minutes': average, 'percent_change': percent_change(average, previous_average)}


@utils_app.service_operation('Failed to load dashboard metrics')
@utils_app.log_start_finish
def get_dashboard_metrics(now: Optional[datetime] = None) -> Dict:
    """
    Summary cards of the dashboard.
    Every metric is loaded on its own, a failing one is reported as zeros
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    comparison_moment = now - timedelta(days=METRICS_COMPARISON_DAYS)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return {
        'active_restaurants': active_restaurants_metric(comparison_moment).unwrap_or(
            {'count': 0, 'percent_change': 0}),
        'today_orders': today_orders_metric(start_of_day).unwrap_or({'count': 0}),
        'users': users_metric(comparison_moment).unwrap_or({'count': 0, 'percent_change': 0}),
        'data_models': data_models_metric().unwrap_or({'count': 0, 'label': 'Active schemas'}),
        'delivery_time': delivery_time_metric(comparison_moment).unwrap_or({'avg_minutes': 0, 'percent_change': 0}),
    }
