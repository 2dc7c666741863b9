import functools
import os
from typing import Dict, List, Optional, Tuple

import boto3 as boto3
from boto3.dynamodb.conditions import Attr, Key

from chalicelib.constants import substitute_keys
from chalicelib.utils import data
from chalicelib.utils import exceptions
from chalicelib.utils.boto_clients import aws_config_ddb
from chalicelib.utils.logger import logger, log_exception

table_operations = ('put_item', 'get_item', 'update_item', 'delete_item', 'query')

_DB = None


def log_db_operation(func):
    """
        should be used for any atomic
        get/put/update/delete/query call in the code.
        Errors are logged and propagated, nothing is retried here
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger.debug(f'{func.__name__}:: args={args}, kwargs={kwargs}')
        if func.__name__ not in table_operations:
            raise RuntimeError("This decorator only for DynamoDB methods")
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            log_exception(e, msg=f'Got exception while trying to {func.__name__}: ')
            raise
        logger.info(f'{func.__name__}:: SUCCESS')
        return result

    return wrapper


def get_table(gl_table, table_name: str):
    if gl_table is None:
        if os.environ.get('ENDPOINT_URL'):
            gl_table = boto3.resource('dynamodb', endpoint_url=os.environ.get('ENDPOINT_URL')).Table(table_name)
        else:
            gl_table = boto3.resource('dynamodb', config=aws_config_ddb).Table(table_name)

        for operation in table_operations:
            setattr(gl_table, operation, log_db_operation(getattr(gl_table, operation)))

    return gl_table


def get_gen_table():
    global _DB
    _DB = get_table(_DB, os.environ.get('GEN_TABLE_NAME'))
    return _DB


def _table(table=None):
    # looked up on every call so tests can swap the generic table
    return table() if table is not None else get_gen_table()


def put_db_record(item: dict, table=None):
    _table(table).put_item(Item=data.to_db_numbers(item))


def update_db_record(key: dict, update_body: dict, allowed_attrs_to_update: list,
                     allowed_attrs_to_delete: list, table=None, must_exist: bool = True):
    """
    Update the item under key, returning the updated attributes.
    With must_exist the update fails with ConditionalCheckFailedException
    instead of creating a new item.
    """
    data.substitute_keys(dict_to_process=update_body, base_keys=substitute_keys.to_db)
    update_expr, expr_attr_names, expr_attr_values = generate_update_expression(
        update_body=data.to_db_numbers(update_body),
        allowed_attrs_to_update=allowed_attrs_to_update,
        allowed_attrs_to_delete=allowed_attrs_to_delete
    )
    if not update_expr:
        logger.warning(f'update_db_record ::: nothing to update for {key=}')
        return {}

    update_item_dict = {
        "Key": key,
        "UpdateExpression": update_expr,
        "ExpressionAttributeNames": expr_attr_names,
        "ReturnValues": "ALL_NEW",
    }
    if expr_attr_values:
        update_item_dict["ExpressionAttributeValues"] = expr_attr_values
    if must_exist:
        update_item_dict["ConditionExpression"] = Attr('partkey').exists()

    response = _table(table).update_item(**update_item_dict)
    return response.get('Attributes', {})


def generate_update_expression(update_body: dict, allowed_attrs_to_update: list,
                               allowed_attrs_to_delete: list) -> Tuple[Optional[str], Dict, Dict]:
    """
    Generate a single expression which sets and removes attributes.
    if a key of update_body is empty and may be deleted - the attribute is removed, else - attribute is updated.
    Attribute names always go through placeholders as name, status, location are reserved words
    """
    expr_attr_names = {}
    expr_attr_values = {}
    set_parts = []
    remove_parts = []
    for index, field in enumerate(allowed_attrs_to_update):
        if field not in update_body:
            continue
        field_value = update_body[field]
        name_placeholder = f'#attr{index}'
        if field_value in ['', [], {}, None] and field in allowed_attrs_to_delete:
            expr_attr_names[name_placeholder] = field
            remove_parts.append(name_placeholder)
        elif field_value is not None:
            expr_attr_names[name_placeholder] = field
            expr_attr_values[f':val{index}'] = field_value
            set_parts.append(f'{name_placeholder} = :val{index}')

    expressions = []
    if set_parts:
        expressions.append('SET ' + ', '.join(set_parts))
    if remove_parts:
        expressions.append('REMOVE ' + ', '.join(remove_parts))

    return (' '.join(expressions) or None), expr_attr_names, expr_attr_values


def get_db_item(partkey, sortkey, table=None):
    result = _table(table).get_item(
        Key={
            'partkey': partkey,
            'sortkey': sortkey
        }
    )

    if 'Item' in result:
        return result['Item']
    else:
        logger.info(f"get_db_item ::: record partkey={partkey} sortkey={sortkey} not found")
        raise exceptions.RecordNotFound(f'record partkey={partkey} sortkey={sortkey} not found')


def find_db_item(partkey, sortkey, table=None) -> Optional[Dict]:
    """ Same as get_db_item, but a missing record is None """
    try:
        return get_db_item(partkey, sortkey, table=table)
    except exceptions.RecordNotFound:
        return None


def delete_db_record(partkey, sortkey, table=None) -> bool:
    """ Returns False when there was nothing to delete """
    response = _table(table).delete_item(
        Key={'partkey': partkey, 'sortkey': sortkey},
        ReturnValues='ALL_OLD'
    )
    return bool(response.get('Attributes'))


def query_items_paginated(
        key_condition_expression,
        filter_expression=None,
        projection_expression=None,
        table=None,
        index_name=None,
        expr_attr_names=None,
        limit=None,
        start_key=None,
        scan_forward=True
):
    kwargs = {'KeyConditionExpression': key_condition_expression}
    if filter_expression is not None:
        kwargs.update({'FilterExpression': filter_expression})

    if projection_expression:
        kwargs.update({'ProjectionExpression': projection_expression})

    if expr_attr_names:
        kwargs.update({'ExpressionAttributeNames': expr_attr_names})

    if limit:
        kwargs.update({'Limit': int(limit)})

    if index_name:
        kwargs.update({'IndexName': index_name})

    if start_key:
        kwargs.update({'ExclusiveStartKey': start_key})

    if not scan_forward:
        kwargs.update({'ScanIndexForward': False})

    resp = _table(table).query(**kwargs)
    return resp['Items'], resp.get('LastEvaluatedKey')


def query_items_paged(key_condition_expression, filter_expression=None, projection_expression=None,
                      table=None, index_name=None, expr_attr_names=None, scan_forward=True) -> List[Dict]:
    """ This method shall be used whenever you think the query will
        return more than 1mb of data at once"""
    all_items = []
    items, last_evaluated_key = query_items_paginated(
        key_condition_expression,
        filter_expression=filter_expression,
        projection_expression=projection_expression,
        table=table,
        index_name=index_name,
        expr_attr_names=expr_attr_names,
        scan_forward=scan_forward
    )
    all_items.extend(items)

    while last_evaluated_key is not None:
        items, last_evaluated_key = query_items_paginated(
            key_condition_expression,
            filter_expression=filter_expression,
            projection_expression=projection_expression,
            table=table,
            index_name=index_name,
            expr_attr_names=expr_attr_names,
            start_key=last_evaluated_key,
            scan_forward=scan_forward
        )
        all_items.extend(items)

    return all_items


def query_partition(partkey: str, filter_expression=None, scan_forward=True) -> List[Dict]:
    return query_items_paged(Key('partkey').eq(partkey), filter_expression=filter_expression,
                             scan_forward=scan_forward)


def query_latest(partkey: str, limit: int) -> List[Dict]:
    """ Last `limit` items of a partition, newest sortkey first """
    items, _ = query_items_paginated(Key('partkey').eq(partkey), limit=limit, scan_forward=False)
    return items


def partition_has_items(partkey: str) -> bool:
    items, _ = query_items_paginated(Key('partkey').eq(partkey), limit=1)
    return len(items) > 0


def combine_filters(*conditions):
    """ AND together the conditions which are not None """
    combined = None
    for condition in conditions:
        if condition is None:
            continue
        combined = condition if combined is None else combined & condition
    return combined
