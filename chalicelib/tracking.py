from datetime import datetime, timezone
from typing import Tuple, List, Dict, Optional

from boto3.dynamodb.conditions import Attr

from chalicelib.base_class_entity import EntityBase, is_str, is_non_empty_str, is_dict, one_of
from chalicelib.constants import keys_structure, db_structure
from chalicelib.constants.constants import (DEFAULT_TRACKING_EVENTS_LIMIT, DRIVER_STATUS_AVAILABLE,
                                            DRIVER_STATUS_OFFLINE, TRACKING_EVENT_TYPES)
from chalicelib.users import get_user_record
from chalicelib.utils import app as utils_app, db as utils_db
from chalicelib.utils.exceptions import ValidationException
from chalicelib.utils.logger import logger
from chalicelib.utils.timestamps import server_timestamp


def is_location(value) -> bool:
    return is_dict(value) and 'latitude' in value and 'longitude' in value


def event_timestamp(value=None) -> str:
    """ ISO time with milliseconds, events of the same second still sort in order """
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    elif is_non_empty_str(value):
        return value
    else:
        moment = datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds')


class TrackingEvent(EntityBase):
    pk = keys_structure.tracking_events_pk
    sk = keys_structure.tracking_events_sk
    record_type = 'tracking_event'
    defaults = db_structure.TRACKING_EVENT

    required_immutable_fields_validation = {
        'id_': is_str,
        'created_at': is_str,
        'timestamp': is_str,
        'type': one_of(*TRACKING_EVENT_TYPES),
        'driver': lambda x: is_dict(x) and is_non_empty_str(x.get('id')),
    }

    optional_fields_validation = {
        'order': is_dict,
        'location': is_location,
        'status': is_str,
    }

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(timestamp=self.timestamp, event_id=self.id_)


class DriverLocation(EntityBase):
    """ Last known position of a driver, one record per driver """
    pk = keys_structure.driver_locations_pk
    sk = keys_structure.driver_locations_sk
    record_type = 'driver_location'
    defaults = db_structure.DRIVER_LOCATION

    required_immutable_fields_validation = {
        'id_': is_str,
        'created_at': is_str,
        'driver_id': is_non_empty_str,
    }

    required_mutable_fields_validation = {
        'status': is_non_empty_str,
    }

    optional_fields_validation = {
        'name': is_str,
        'avatar_url': is_str,
        'location': is_location,
        'vehicle': is_str,
        'current_order': is_str,
        'last_updated': is_str,
    }

    deletable_fields = ['current_order']

    def __init__(self, id_=None, **kwargs):
        EntityBase.__init__(self, id_ or kwargs.get('driver_id'), **kwargs)
        self.driver_id = self.id_

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(driver_id=self.id_)

    def driver_reference(self) -> Dict:
        reference = {'id': self.driver_id, 'name': self.name or 'Unknown Driver'}
        if self.avatar_url:
            reference['avatar'] = self.avatar_url
        return reference


def find_driver_locations(filter_expression=None) -> List[DriverLocation]:
    return DriverLocation.query_all(filter_expression)


def find_driver_location(driver_id: str) -> Optional[DriverLocation]:
    return DriverLocation.init_by_id(driver_id)


def create_driver_location(driver_id: str, location: Dict, status: str = DRIVER_STATUS_AVAILABLE,
                           **fields) -> DriverLocation:
    driver_location = DriverLocation(driver_id=driver_id, location=location, status=status,
                                     last_updated=server_timestamp(), **fields)
    driver_location._create_db_record()
    return driver_location


def change_driver_location(driver_location: DriverLocation, **fields) -> DriverLocation:
    """ Writes the changed fields of a location record, a field set to None is removed """
    attributes = driver_location._update_db_record({**fields, 'last_updated': server_timestamp()})
    if attributes is None:
        raise ValidationException(f'Driver location {driver_location.driver_id} no longer exists')
    return DriverLocation.from_db_record(attributes)


def record_tracking_event(event_type: str, driver: Dict, timestamp=None, **payload) -> TrackingEvent:
    """ Appends an event to the tracking feed, errors propagate """
    event = TrackingEvent(
        type=event_type,
        driver=driver,
        timestamp=event_timestamp(timestamp),
        **{key: value for key, value in payload.items() if value is not None}
    )
    event._create_db_record()
    logger.debug(f'record_tracking_event ::: {event_type=} driver={driver.get("id")}')
    return event


@utils_app.service_operation('Failed to fetch tracking events')
def get_recent_tracking_events(limit: int = DEFAULT_TRACKING_EVENTS_LIMIT) -> List[Dict]:
    records = utils_db.query_latest(TrackingEvent.pk, int(limit))
    return [TrackingEvent.from_db_record(record)._to_ui() for record in records]


@utils_app.service_operation('Failed to fetch driver locations')
def get_active_driver_locations() -> List[Dict]:
    locations = find_driver_locations(Attr('status').ne(DRIVER_STATUS_OFFLINE))
    return [driver_location._to_ui() for driver_location in locations]


@utils_app.service_operation('Failed to add tracking event')
def add_tracking_event(event: Dict) -> Dict:
    event = dict(event or {})
    event_type = event.pop('type', None)
    driver = event.pop('driver', None)
    if event_type not in TRACKING_EVENT_TYPES:
        raise ValidationException(f"Event type must be one of {', '.join(TRACKING_EVENT_TYPES)}")
    if not is_dict(driver) or not is_non_empty_str(driver.get('id')):
        raise ValidationException('Event driver with an id is required')
    payload = {key: event.get(key) for key in ('order', 'location', 'status')}
    return record_tracking_event(event_type, driver, timestamp=event.get('timestamp'), **payload)._to_ui()


def _driver_reference(driver_id: str) -> Dict:
    user = get_user_record(driver_id)
    reference = {'id': driver_id, 'name': (user.name if user else None) or 'Driver'}
    if user and user.avatar_url:
        reference['avatar'] = user.avatar_url
    return reference


@utils_app.service_operation('Failed to update driver location')
def update_driver_location(driver_id: str, location: Dict, status: Optional[str] = None) -> Dict:
    if not is_non_empty_str(driver_id):
        raise ValidationException('Driver id is required')
    if not is_location(location):
        raise ValidationException('Location needs latitude and longitude')

    driver_location = find_driver_location(driver_id)
    if driver_location is None:
        driver = _driver_reference(driver_id)
        driver_location = create_driver_location(
            driver_id, location, status or DRIVER_STATUS_AVAILABLE,
            name=driver['name'], avatar_url=driver.get('avatar')
        )
        logger.info(f'update_driver_location ::: location record created for {driver_id=}')
    else:
        fields = {'location': location}
        if status:
            fields['status'] = status
        driver_location = change_driver_location(driver_location, **fields)

    record_tracking_event('location_update', driver_location.driver_reference(), location=location)
    return driver_location._to_ui()
