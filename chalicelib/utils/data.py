import json
from datetime import datetime, date
from decimal import Decimal

from chalicelib.utils.exceptions import ValidationException


def replace_dict_key(item, orig_key, new_key):
    if orig_key in item:
        if new_key not in item:
            item[new_key] = item[orig_key]
        del item[orig_key]


def substitute_keys(dict_to_process: dict, base_keys: dict, opt_dict=None):
    if opt_dict is None:
        opt_dict = {}
    all_keys = {**base_keys, **opt_dict}
    for key, val in all_keys.items():
        if val:
            replace_dict_key(dict_to_process, key, val)
        elif key in dict_to_process.keys():
            dict_to_process.pop(key, None)


def parse_raw_body(chalice_request):
    request_raw_body = chalice_request.raw_body
    if request_raw_body:
        try:
            body = json.loads(request_raw_body)
        except ValueError:
            raise ValidationException('Request body is not valid JSON')
        return fix_values_from_ui(item=body)
    else:
        return {}


def fix_values_from_ui(item):
    """
    Remove keys with empty or None values and transform float to Decimal
    """
    if not isinstance(item, dict):
        return to_db_numbers(item)
    if item.get('_values_from_ui_strategy') == 'delete_empty':
        list_to_cleanup = ['', None]
    else:
        list_to_cleanup = [None]
    item = cleanup_dict(item, list_to_cleanup)
    item.pop('_values_from_ui_strategy', None)
    return to_db_numbers(item)


def cleanup_dict(item: dict, list_of_values: list):
    """ Remove None fields in dict with. Supports one nesting.  """

    def sub_clean(sub_item):
        return {
            key: value
            for key, value in sub_item.items()
            if value not in list_of_values
        }

    clean = {}
    for k, v in item.items():
        if isinstance(v, dict):
            nested = sub_clean(v)
            if len(nested.keys()) > 0:
                clean[k] = nested
        elif v not in list_of_values:
            clean[k] = v
    return clean


def to_db_numbers(value):
    """ DynamoDB rejects float, every float is stored as Decimal """
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {key: to_db_numbers(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_db_numbers(val) for val in value]
    return value


def to_number(value, default=0):
    if isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def prepare_for_ui(value):
    """ Make a record JSON friendly: datetimes become ISO strings, Decimals become int or float """
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return to_number(value)
    if isinstance(value, dict):
        return {key: prepare_for_ui(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [prepare_for_ui(val) for val in value]
    return value
