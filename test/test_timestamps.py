from datetime import datetime, timezone
from decimal import Decimal

from chalicelib.utils import timestamps

moment = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


def test_convert_timestamp_wrappers():
    record = {
        'name': 'Burger Palace',
        'created_at': {'seconds': 1700000000, 'nanoseconds': 0},
        'updated_at': {'_seconds': Decimal(1700000000), '_nanoseconds': Decimal(500000000)},
        'history': [{'changed_at': {'seconds': 1700000000, 'nanoseconds': 0}, 'by': 'admin'}],
        'address': {'street': '1 Main', 'city': 'Springfield'},
    }

    converted = timestamps.convert_timestamps(record)

    assert converted['name'] == 'Burger Palace'
    assert converted['created_at'] == moment
    assert converted['updated_at'] == datetime(2023, 11, 14, 22, 13, 20, 500000, tzinfo=timezone.utc)
    assert converted['history'] == [{'changed_at': moment, 'by': 'admin'}]
    assert converted['address'] == {'street': '1 Main', 'city': 'Springfield'}
    assert record['created_at'] == {'seconds': 1700000000, 'nanoseconds': 0}


def test_convert_iso_strings_only_under_timestamp_keys():
    converted = timestamps.convert_timestamps({
        'created_at': '2023-11-14T22:13:20Z',
        'last_updated': '2023-11-14T22:13:20',
        'description': '2023-11-14T22:13:20Z',
        'deleted_at': 'never',
    })

    assert converted['created_at'] == moment
    assert converted['last_updated'] == moment
    assert converted['description'] == '2023-11-14T22:13:20Z'
    assert converted['deleted_at'] == 'never'


def test_convert_is_idempotent():
    once = timestamps.convert_timestamps({'created_at': {'seconds': 1700000000, 'nanoseconds': 0}})
    assert timestamps.convert_timestamps(once) == once


def test_convert_leaves_other_values():
    assert timestamps.convert_timestamps(None) is None
    assert timestamps.convert_timestamps({}) == {}
    assert timestamps.convert_timestamps('text') == 'text'
    assert timestamps.convert_timestamps({'seconds': 1, 'minutes': 2}) == {'seconds': 1, 'minutes': 2}
    assert timestamps.convert_timestamps({'seconds': 1, 'nanoseconds': 'x'}) == {'seconds': 1, 'nanoseconds': 'x'}


def test_to_datetime():
    assert timestamps.to_datetime(moment) == moment
    assert timestamps.to_datetime(datetime(2023, 11, 14, 22, 13, 20)) == moment
    assert timestamps.to_datetime(1700000000) == moment
    assert timestamps.to_datetime('2023-11-14T22:13:20+00:00') == moment
    assert timestamps.to_datetime('yesterday') is None
    assert timestamps.to_datetime(True) is None
    assert timestamps.to_datetime(None) is None


def test_timestamp_sort_key():
    assert timestamps.timestamp_sort_key(None) == timestamps.EPOCH
    assert timestamps.timestamp_sort_key('2023-11-14T22:13:20Z') == moment


def test_server_timestamp():
    assert timestamps.to_datetime(timestamps.server_timestamp()).tzinfo is not None
