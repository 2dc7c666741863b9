from decimal import Decimal

import pytest

from chalicelib import simulation, tracking
from test.test_tracking import create_test_driver_location
from test.test_users import create_test_user

id_driver = 'e5b01491-e538-4be3-8d3c-a57db7fc43c1'


class ScriptedRandom:
    """ choice() returns the next scripted value when the sequence holds it, the first item otherwise """

    def __init__(self, *picks):
        self.picks = list(picks)

    def choice(self, seq):
        if self.picks and self.picks[0] in seq:
            return self.picks.pop(0)
        return seq[0]

    def randint(self, a, b):
        return a


@pytest.fixture
def idle_simulation(monkeypatch):
    monkeypatch.setattr(simulation, 'initialize_driver_data', lambda rng: 0)
    driver_simulation = simulation.DriverSimulation(rng=ScriptedRandom())
    yield driver_simulation
    driver_simulation.stop()


def test_random_order_id():
    assert simulation.random_order_id(ScriptedRandom()) == 'ORD-1000'


def test_initialize_creates_sample_drivers(fake_table):
    assert simulation.initialize_driver_data(ScriptedRandom()) == 4

    drivers = fake_table.partition('users')
    assert sorted(driver['name'] for driver in drivers) == ['Aisha Patel', 'David Chen', 'James Wilson',
                                                            'Maria Rodriguez']
    assert all(driver['role'] == 'driver' and driver['is_verified'] is True for driver in drivers)

    locations = fake_table.partition('driver_locations')
    assert len(locations) == 4
    assert all(location['status'] == 'available' and 'current_order' not in location for location in locations)
    assert locations[0]['location']['address'] == 'Downtown'
    assert locations[0]['vehicle'] == 'Car'
    assert len(fake_table.partition('tracking_events')) == 4

    assert simulation.initialize_driver_data(ScriptedRandom()) == 0
    assert len(fake_table.partition('users')) == 4


def test_initialize_uses_existing_drivers(fake_table):
    create_test_user(fake_table, id_=id_driver, role='driver', name='Dave')
    create_test_user(fake_table, id_='customer-1', role='customer')

    assert simulation.initialize_driver_data(ScriptedRandom('delivering')) == 1

    location = fake_table.items[('driver_locations', id_driver)]
    assert location['name'] == 'Dave'
    assert location['status'] == 'delivering'
    assert location['current_order'] == 'ORD-1000'
    assert len(fake_table.partition('users')) == 2


def test_initialize_adds_locations_for_new_drivers(fake_table):
    create_test_user(fake_table, id_=id_driver, role='driver', name='Dave')
    create_test_driver_location(fake_table, driver_id=id_driver)
    create_test_user(fake_table, id_='driver-2', role='driver', name='Nina', email='nina@test.com')

    assert simulation.initialize_driver_data(ScriptedRandom()) == 1

    assert fake_table.items[('driver_locations', 'driver-2')]['name'] == 'Nina'
    assert fake_table.items[('driver_locations', id_driver)]['created_at'] == '2024-01-01T10:00:00+00:00'
    assert len(fake_table.partition('driver_locations')) == 2
    assert len(fake_table.partition('users')) == 2
    assert simulation.initialize_driver_data(ScriptedRandom()) == 0


def test_initialize_keeps_orphan_locations_without_samples(fake_table):
    create_test_driver_location(fake_table, driver_id='driver-gone')

    assert simulation.initialize_driver_data(ScriptedRandom()) == 0
    assert fake_table.partition('users') == []


def test_generate_event_without_drivers(fake_table):
    assert simulation.generate_random_event(ScriptedRandom()) is False
    assert fake_table.partition('tracking_events') == []


def test_generate_location_update(fake_table):
    create_test_driver_location(fake_table)

    assert simulation.generate_random_event(ScriptedRandom('location_update', simulation.LOCATIONS[2])) is True

    stored = fake_table.items[('driver_locations', id_driver)]
    assert stored['location']['address'] == 'Midtown'
    event = fake_table.partition('tracking_events')[0]
    assert event['type'] == 'location_update'
    assert event['location']['address'] == 'Midtown'
    assert event['driver'] == {'id': id_driver, 'name': 'Dave'}


def test_generate_status_change(fake_table):
    create_test_driver_location(fake_table)

    assert simulation.generate_random_event(ScriptedRandom('status_change', 'picking up')) is True

    stored = fake_table.items[('driver_locations', id_driver)]
    assert stored['status'] == 'picking up'
    assert stored['current_order'] == 'ORD-1000'
    assert fake_table.partition('tracking_events')[0]['status'] == 'picking up'


def test_generate_order_assigned(fake_table):
    create_test_driver_location(fake_table)

    assert simulation.generate_random_event(ScriptedRandom('order_assigned', 'Taco Time')) is True

    stored = fake_table.items[('driver_locations', id_driver)]
    assert stored['status'] == 'en route'
    assert stored['current_order'] == 'ORD-1000'
    event = fake_table.partition('tracking_events')[0]
    assert event['type'] == 'order_assigned'
    assert event['order'] == {'id': 'ORD-1000', 'restaurant': 'Taco Time'}


def test_generate_order_delivered(fake_table):
    create_test_driver_location(fake_table, status='delivering', current_order='ORD-1234')

    assert simulation.generate_random_event(ScriptedRandom('order_delivered')) is True

    stored = fake_table.items[('driver_locations', id_driver)]
    assert stored['status'] == 'available'
    assert 'current_order' not in stored
    event = fake_table.partition('tracking_events')[0]
    assert event['type'] == 'order_delivered'
    assert event['order'] == {'id': 'ORD-1234', 'restaurant': 'Pizza Palace'}


def test_order_delivered_without_order_moves_driver(fake_table):
    create_test_driver_location(fake_table)

    assert simulation.generate_random_event(ScriptedRandom('order_delivered')) is True

    event = fake_table.partition('tracking_events')[0]
    assert event['type'] == 'location_update'
    assert event['location']['latitude'] == Decimal('40.7128')


def test_generate_event_failure_is_logged(fake_table, monkeypatch, recent_errors):
    def broken_find_driver_locations(filter_expression=None):
        raise RuntimeError('table is gone')
    monkeypatch.setattr(tracking, 'find_driver_locations', broken_find_driver_locations)

    assert simulation.generate_random_event(ScriptedRandom()) is False
    assert recent_errors()[0]['user_message'] == 'Failed to generate a tracking event'
    assert recent_errors()[0]['category'] == 'database'


def test_start_and_stop_are_idempotent(idle_simulation):
    assert idle_simulation.stop() is False

    assert idle_simulation.start(interval_seconds=3600) is True
    assert idle_simulation.is_running
    assert idle_simulation.start() is False
    assert idle_simulation.status() == {'running': True, 'interval_seconds': 3600.0, 'ticks': 0}

    assert idle_simulation.stop() is True
    assert idle_simulation.stop() is False
    assert not idle_simulation.is_running
    assert idle_simulation._timer is None


def test_start_again_after_stop(idle_simulation):
    assert idle_simulation.start(interval_seconds=3600) is True
    assert idle_simulation.stop() is True
    assert idle_simulation.start(interval_seconds=3600) is True
    assert idle_simulation.is_running


def test_tick_of_an_earlier_run_does_not_rearm(idle_simulation, monkeypatch):
    assert idle_simulation.start(interval_seconds=3600) is True
    first_timer = idle_simulation._timer
    first_generation = idle_simulation._generation
    restarted = []

    def restart_during_tick():
        idle_simulation.stop()
        idle_simulation.start(interval_seconds=3600)
        restarted.append(idle_simulation._timer)
        return True
    monkeypatch.setattr(idle_simulation, 'tick', restart_during_tick)

    idle_simulation._run(first_generation)

    assert first_timer.finished.is_set()
    assert len(restarted) == 1
    assert idle_simulation._timer is restarted[0]
    assert idle_simulation.is_running

    idle_simulation._run(first_generation)
    assert len(restarted) == 1
    assert idle_simulation._timer is restarted[0]


def test_start_survives_failed_initialization(monkeypatch, recent_errors):
    def broken_initialize(rng):
        raise RuntimeError('no table')
    monkeypatch.setattr(simulation, 'initialize_driver_data', broken_initialize)
    driver_simulation = simulation.DriverSimulation(rng=ScriptedRandom())

    try:
        assert driver_simulation.start(interval_seconds=3600) is True
        assert driver_simulation.is_running
        assert recent_errors()[0]['user_message'] == 'Failed to initialize driver data'
    finally:
        driver_simulation.stop()


def test_tick(fake_table, idle_simulation):
    assert idle_simulation.tick() is False
    assert idle_simulation.ticks == 1

    create_test_driver_location(fake_table)
    assert idle_simulation.tick() is True
    assert idle_simulation.ticks == 2


def test_stopped_simulation_does_not_tick(idle_simulation):
    idle_simulation._run(idle_simulation._generation)
    assert idle_simulation.ticks == 0
