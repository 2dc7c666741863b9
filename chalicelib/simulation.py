"""
Driver simulation for the live tracking page.

Moves the known drivers between a few fixed places and appends tracking
events on a timer. Runs inside the API process: ``start`` schedules a
``threading.Timer`` which re-arms itself after every tick, ``stop`` cancels
the pending timer. A tick which is already running when ``stop`` is called
finishes on its own and does not re-arm.
"""
import os
import random
import threading
from typing import Dict, List, Optional

from chalicelib import tracking, users
from chalicelib.constants.constants import (DEFAULT_SIMULATION_INTERVAL_SECONDS, DRIVER_STATUS_AVAILABLE,
                                            ROLE_DRIVER, TRACKING_EVENT_TYPES)
from chalicelib.utils import app as utils_app
from chalicelib.utils.errors import ErrorCategory, create_error_context, log_error
from chalicelib.utils.logger import logger

LOCATIONS = [
    {'latitude': 40.7128, 'longitude': -74.0060, 'address': 'Downtown'},
    {'latitude': 40.7831, 'longitude': -73.9712, 'address': 'Uptown'},
    {'latitude': 40.7589, 'longitude': -73.9851, 'address': 'Midtown'},
    {'latitude': 40.7241, 'longitude': -73.9956, 'address': 'West End'},
    {'latitude': 40.7214, 'longitude': -73.9879, 'address': 'East Village'},
    {'latitude': 40.7464, 'longitude': -73.9857, 'address': 'Murray Hill'},
    {'latitude': 40.7587, 'longitude': -73.9787, 'address': 'Times Square'},
    {'latitude': 40.7484, 'longitude': -73.9857, 'address': 'Gramercy'},
]

VEHICLES = ['Car', 'Scooter', 'Bicycle', 'Motorcycle']

STATUSES = [DRIVER_STATUS_AVAILABLE, 'en route', 'delivering', 'picking up']

EVENT_TYPES = TRACKING_EVENT_TYPES

RESTAURANTS = [
    'Pizza Palace',
    'Burger Bonanza',
    'Sushi Supreme',
    'Taco Time',
    'Pasta Paradise',
    'Curry Corner',
    'Salad Sensation',
    'Breakfast Bistro',
]

SAMPLE_DRIVERS = [
    {
        'name': 'David Chen',
        'email': 'david.chen@example.com',
        'phone': '555-123-4567',
        'current_suburb': 'Downtown',
        'rating': 4.8,
        'completed_orders': 128,
        'avatar_url': 'https://api.dicebear.com/7.x/avataaars/svg?seed=david'
    },
    {
        'name': 'Maria Rodriguez',
        'email': 'maria.r@example.com',
        'phone': '555-234-5678',
        'current_suburb': 'Uptown',
        'rating': 4.7,
        'completed_orders': 95,
        'avatar_url': 'https://api.dicebear.com/7.x/avataaars/svg?seed=maria'
    },
    {
        'name': 'James Wilson',
        'email': 'james.w@example.com',
        'phone': '555-345-6789',
        'current_suburb': 'Midtown',
        'rating': 4.5,
        'completed_orders': 67,
        'avatar_url': 'https://api.dicebear.com/7.x/avataaars/svg?seed=james'
    },
    {
        'name': 'Aisha Patel',
        'email': 'aisha.p@example.com',
        'phone': '555-456-7890',
        'current_suburb': 'West End',
        'rating': 4.9,
        'completed_orders': 112,
        'avatar_url': 'https://api.dicebear.com/7.x/avataaars/svg?seed=aisha'
    },
]


def simulation_interval_seconds() -> float:
    return float(os.environ.get('SIMULATION_INTERVAL_SECONDS', DEFAULT_SIMULATION_INTERVAL_SECONDS))


def random_order_id(rng=random) -> str:
    return f'ORD-{1000 + rng.randint(0, 999)}'


def create_sample_drivers() -> List:
    drivers = [
        users.create_user_record({**driver, 'role': ROLE_DRIVER, 'is_verified': True}) for driver in SAMPLE_DRIVERS
    ]
    logger.info(f'create_sample_drivers ::: created {len(drivers)} drivers')
    return drivers


@utils_app.log_start_finish
def initialize_driver_data(rng=random) -> int:
    """
    Gives every driver without one a location record and a first tracking event.
    Sample drivers are created first when there are neither drivers nor locations.
    :return:
    number of location records created
    """
    located = {driver_location.driver_id for driver_location in tracking.find_driver_locations()}
    drivers = users.find_drivers()
    if not drivers and not located:
        drivers = create_sample_drivers()

    missing = [driver for driver in drivers if driver.id_ not in located]
    if not missing:
        logger.info('initialize_driver_data ::: driver data already initialized')
        return 0

    for driver in missing:
        location = rng.choice(LOCATIONS)
        status = rng.choice(STATUSES)
        driver_location = tracking.create_driver_location(
            driver.id_, location, status,
            name=driver.name or 'Unknown Driver',
            avatar_url=driver.avatar_url,
            vehicle=rng.choice(VEHICLES),
            current_order=random_order_id(rng) if status != DRIVER_STATUS_AVAILABLE else None
        )
        tracking.record_tracking_event('location_update', driver_location.driver_reference(), location=location)
    logger.info(f'initialize_driver_data ::: initialized {len(missing)} drivers')
    return len(missing)


def _move_driver(driver_location, rng):
    location = rng.choice(LOCATIONS)
    driver_location = tracking.change_driver_location(driver_location, location=location)
    tracking.record_tracking_event('location_update', driver_location.driver_reference(), location=location)


def _change_status(driver_location, rng):
    status = rng.choice(STATUSES)
    current_order = random_order_id(rng) if status != DRIVER_STATUS_AVAILABLE else None
    driver_location = tracking.change_driver_location(driver_location, status=status, current_order=current_order)
    tracking.record_tracking_event('status_change', driver_location.driver_reference(), status=status)


def _assign_order(driver_location, rng):
    order = {'id': random_order_id(rng), 'restaurant': rng.choice(RESTAURANTS)}
    driver_location = tracking.change_driver_location(driver_location, status='en route', current_order=order['id'])
    tracking.record_tracking_event('order_assigned', driver_location.driver_reference(), order=order)


def _deliver_order(driver_location, rng):
    order = {'id': driver_location.current_order, 'restaurant': rng.choice(RESTAURANTS)}
    driver_location = tracking.change_driver_location(
        driver_location, status=DRIVER_STATUS_AVAILABLE, current_order=None
    )
    tracking.record_tracking_event('order_delivered', driver_location.driver_reference(), order=order)


EVENT_GENERATORS = {
    'location_update': _move_driver,
    'status_change': _change_status,
    'order_assigned': _assign_order,
    'order_delivered': _deliver_order,
}


def generate_random_event(rng=random) -> bool:
    """
    One simulation step for a random driver
    :return:
    False when there are no drivers or the step failed
    """
    try:
        driver_locations = tracking.find_driver_locations()
        if not driver_locations:
            logger.info('generate_random_event ::: no drivers found')
            return False
        driver_location = rng.choice(driver_locations)
        event_type = rng.choice(EVENT_TYPES)
        if event_type == 'order_delivered' and not driver_location.current_order:
            event_type = 'location_update'
        EVENT_GENERATORS[event_type](driver_location, rng)
        logger.debug(f'generate_random_event ::: {event_type=} for driver={driver_location.driver_id}')
        return True
    except Exception as error:
        log_error(error, user_message='Failed to generate a tracking event', default_category=ErrorCategory.DATABASE,
                  context=create_error_context('simulation', 'generate_random_event'))
        return False


class DriverSimulation:
    def __init__(self, rng=random):
        self._rng = rng
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._running = False
        # bumped on every start, timers of an earlier run never re-arm
        self._generation = 0
        self.interval: float = simulation_interval_seconds()
        self.ticks = 0

    @property
    def is_running(self) -> bool:
        return self._running

    def status(self) -> Dict:
        return {'running': self._running, 'interval_seconds': self.interval, 'ticks': self.ticks}

    def start(self, interval_seconds: Optional[float] = None) -> bool:
        """ False when the simulation was already running """
        with self._lock:
            if self._running:
                logger.info('DriverSimulation.start ::: simulation already running')
                return False
            self._running = True
            self._generation += 1
            generation = self._generation
            if interval_seconds:
                self.interval = float(interval_seconds)

        try:
            initialize_driver_data(self._rng)
        except Exception as error:
            log_error(error, user_message='Failed to initialize driver data',
                      context=create_error_context('simulation', 'initialize_driver_data'))

        with self._lock:
            # stop() may have been called while the drivers were initialized
            if self._is_current(generation):
                self._schedule(generation)
        logger.info(f'DriverSimulation.start ::: started with interval of {self.interval} seconds')
        return True

    def stop(self) -> bool:
        """ False when the simulation was not running """
        with self._lock:
            if not self._running:
                return False
            self._running = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        logger.info(f'DriverSimulation.stop ::: stopped after {self.ticks} ticks')
        return True

    def tick(self) -> bool:
        generated = generate_random_event(self._rng)
        self.ticks += 1
        return generated

    def _is_current(self, generation: int) -> bool:
        return self._running and generation == self._generation

    def _schedule(self, generation: int):
        self._timer = threading.Timer(self.interval, self._run, args=(generation,))
        self._timer.daemon = True
        self._timer.start()

    def _run(self, generation: int):
        if not self._is_current(generation):
            return
        self.tick()
        with self._lock:
            if self._is_current(generation):
                self._schedule(generation)


simulation = DriverSimulation()
