from datetime import datetime, timezone
from decimal import Decimal

from chalicelib import dashboard, orders
from test.test_orders import create_test_order
from test.test_restaurants import create_test_restaurant
from test.test_users import create_test_user

now = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def test_percent_change():
    assert dashboard.percent_change(15, 10) == 50
    assert dashboard.percent_change(5, 0) == 0
    assert dashboard.percent_change(1, 3) == -67


def test_dashboard_metrics(fake_table):
    create_test_restaurant(fake_table, id_='r1', status='active', created_at='2024-06-10T10:00:00+00:00')
    create_test_restaurant(fake_table, id_='r2', status='active', created_at='2024-04-01T10:00:00+00:00')
    create_test_restaurant(fake_table, id_='r3', status='suspended', created_at='2024-04-01T10:00:00+00:00')

    create_test_order(fake_table, id_='o1', status='completed', created_at='2024-06-15T08:00:00+00:00',
                      delivery_time=Decimal(20))
    create_test_order(fake_table, id_='o2', status='completed', created_at='2024-04-01T08:00:00+00:00',
                      delivery_time=Decimal(40))
    create_test_order(fake_table, id_='o3', created_at='2024-06-14T23:59:00+00:00')

    create_test_user(fake_table, id_='u1', created_at='2024-01-01T10:00:00+00:00')
    create_test_user(fake_table, id_='u2', created_at='2024-06-10T10:00:00+00:00')

    result = dashboard.get_dashboard_metrics(now)
    assert result.ok
    assert result.data == {
        'active_restaurants': {'count': 2, 'percent_change': 100},
        'today_orders': {'count': 1},
        'users': {'count': 2, 'percent_change': 100},
        'data_models': {'count': 0, 'label': 'Active schemas'},
        'delivery_time': {'avg_minutes': 30, 'percent_change': -25},
    }


def test_dashboard_metrics_naive_now(fake_table):
    create_test_order(fake_table, id_='o1', created_at='2024-06-15T08:00:00+00:00')

    result = dashboard.get_dashboard_metrics(datetime(2024, 6, 15, 12, 0))
    assert result.data['today_orders'] == {'count': 1}


def test_delivery_time_without_history(fake_table):
    create_test_order(fake_table, id_='o1', status='completed', created_at='2024-06-15T08:00:00+00:00',
                      delivery_time=Decimal(25))

    result = dashboard.get_dashboard_metrics(now)
    assert result.data['delivery_time'] == {'avg_minutes': 25, 'percent_change': 0}


def test_failing_metric_is_reported_as_zeros(fake_table, monkeypatch, recent_errors):
    create_test_restaurant(fake_table, status='active', created_at='2024-06-10T10:00:00+00:00')

    def broken_find_orders():
        raise RuntimeError('orders are unavailable')
    monkeypatch.setattr(orders, 'find_orders', broken_find_orders)

    result = dashboard.get_dashboard_metrics(now)
    assert result.ok
    assert result.data['active_restaurants'] == {'count': 1, 'percent_change': 0}
    assert result.data['today_orders'] == {'count': 0}
    assert result.data['delivery_time'] == {'avg_minutes': 0, 'percent_change': 0}
    assert {error['user_message'] for error in recent_errors()} == {"Failed to load today's orders",
                                                                     'Failed to load delivery time'}
