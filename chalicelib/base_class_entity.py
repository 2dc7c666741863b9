from copy import deepcopy
from decimal import Decimal
from typing import Tuple, Dict, List, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from chalicelib.constants.substitute_keys import from_db
from chalicelib.utils import db as utils_db
from chalicelib.utils.data import substitute_keys
from chalicelib.utils.exceptions import ValidationException
from chalicelib.utils.logger import logger
from chalicelib.utils.timestamps import convert_timestamps, server_timestamp


def is_str(value) -> bool:
    return isinstance(value, str)


def is_non_empty_str(value) -> bool:
    return isinstance(value, str) and value.strip() != ''


def is_number(value) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def is_bool(value) -> bool:
    return isinstance(value, bool)


def is_list(value) -> bool:
    return isinstance(value, list)


def is_dict(value) -> bool:
    return isinstance(value, dict)


def is_str_or_dict(value) -> bool:
    return isinstance(value, (str, dict))


def one_of(*allowed):
    return lambda value: value in allowed


class EntityBase:
    pk = None
    sk = None
    record_type: str = ''

    # values filled in when the stored document lacks them
    defaults: Dict = {}

    required_immutable_fields_validation = {}
    required_mutable_fields_validation = {}
    optional_fields_validation = {}

    # fields removed from the record when updated with an empty value
    deletable_fields: List = []

    def __init__(self, id_=None, **kwargs):
        self.id_: str = id_ or str(uuid4())
        for key, default in self.defaults.items():
            if key == 'id_':
                continue
            value = kwargs.get(key)
            setattr(self, key, deepcopy(default) if value is None else value)
        self.extra_fields: Dict = {
            key: value for key, value in kwargs.items()
            if key not in self.defaults and key not in from_db
        }
        self.db_record: Dict = {}

    @classmethod
    def from_db_record(cls, record: Dict):
        item = convert_timestamps(dict(record))
        substitute_keys(dict_to_process=item, base_keys=from_db)
        id_ = item.pop('id', None) or record.get('sortkey')
        return cls(id_=id_, **item)

    @classmethod
    def init_by_id(cls, id_: str):
        """ None when there is no such record """
        record = utils_db.find_db_item(*cls(id_=id_)._get_pk_sk())
        return cls.from_db_record(record) if record is not None else None

    @classmethod
    def query_all(cls, filter_expression=None) -> List:
        records = utils_db.query_items_paged(Key('partkey').eq(cls.pk), filter_expression=filter_expression)
        return [cls.from_db_record(record) for record in records]

    def _get_pk_sk(self) -> Tuple[str, str]:
        """
        Should be re-implemented in each child class
        :return:
        partkey, sortkey of db item for child
        """
        return self.pk, self.sk

    def _to_dict(self) -> Dict:
        """
        :return:
        dict of item's attributes
        """
        return {
            'id_': self.id_,
            **{key: getattr(self, key) for key in self.defaults if key != 'id_'}
        }

    def _init_db_record(self) -> None:
        """
        New DB record initialization
        :return:
        None
        """
        pk, sk = self._get_pk_sk()
        self.db_record = {
            'partkey': pk,
            'sortkey': sk,
            'record_type': self.record_type,
            **{key: value for key, value in self._to_dict().items() if value is not None}
        }

    def _validate_mandatory_fields(self):
        """
        Validates mandatory fields if all fields have correct type to put to db
        Raise ValidationException in case if a field is not valid
        :return:
        None
        """
        for key, validator_func in {
            **self.required_immutable_fields_validation,
            **self.required_mutable_fields_validation
        }.items():
            if validator_func(self.db_record.get(key)) is False:
                message = f'Field "{key}" is missing or not valid'
                logger.warning(f"_validate_mandatory_fields ::: {self.record_type=} {message}")
                raise ValidationException(message)

    def _validate_optional_fields(self):
        """
        Validates optional fields which are present in the record
        Raise ValidationException in case if a field is not valid
        :return:
        None
        """
        for key, validator_func in self.optional_fields_validation.items():
            value = self.db_record.get(key)
            if value is not None and validator_func(value) is False:
                message = f'Field "{key}" is not valid'
                logger.warning(f"_validate_optional_fields ::: {self.record_type=} {message}")
                raise ValidationException(message)

    def _get_validated_update_dict(self, update_body: Dict) -> Dict:
        """
        Validates fields for update
        Delete field if it is not valid
        :return:
        Clean dict for update
        (all invalid fields will be automatically excluded)
        """
        clean_dict = {}
        validation_dict = {**self.required_mutable_fields_validation, **self.optional_fields_validation}
        for key, value in update_body.items():
            if key in validation_dict and validation_dict[key](value) is True:
                clean_dict[key] = value
            elif key in self.deletable_fields and value in ['', [], {}, None]:
                clean_dict[key] = value
            else:
                logger.warning(f'_get_validated_update_dict ::: {key=}, {value=} is not valid, '
                               f'removing from update dict..')
        return clean_dict

    def _prepare_db_record(self) -> None:
        """ Builds and validates the record a create would store, without writing it """
        now = server_timestamp()
        self.created_at = now
        self.updated_at = now
        self._init_db_record()
        self._validate_mandatory_fields()
        self._validate_optional_fields()

    def _create_db_record(self) -> Dict:
        """
        Creates entity db record
        :return:
        the stored record
        """
        self._prepare_db_record()
        utils_db.put_db_record(self.db_record)
        logger.info(f"_create_db_record ::: {self.record_type=} {self.id_=} {self.db_record.get('partkey')=} "
                    f"{self.db_record.get('sortkey')=} successfully created")
        return self.db_record

    def _update_fields_whitelist(self) -> List:
        return [*self.required_mutable_fields_validation.keys(), *self.optional_fields_validation.keys(),
                'updated_at']

    def _update_db_record(self, update_body: Dict) -> Optional[Dict]:
        """
        Updates entity db record
        :return:
        attributes of the updated record, None when the record does not exist
        """
        pk, sk = self._get_pk_sk()
        update_dict = self._get_validated_update_dict(update_body)
        if not update_dict:
            raise ValidationException('Nothing to update, no valid fields were provided')
        update_dict['updated_at'] = server_timestamp()
        try:
            attributes = utils_db.update_db_record(
                key={'partkey': pk, 'sortkey': sk},
                update_body=update_dict,
                allowed_attrs_to_update=self._update_fields_whitelist(),
                allowed_attrs_to_delete=self.deletable_fields
            )
        except ClientError as error:
            if error.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException':
                logger.info(f"_update_db_record ::: {self.record_type=} {self.id_=} does not exist")
                return None
            raise
        logger.info(f"_update_db_record ::: {self.record_type=} "
                    f"{self.id_=} {pk=} {sk=} successfully updated")
        return attributes

    def _delete_db_record(self) -> bool:
        deleted = utils_db.delete_db_record(*self._get_pk_sk())
        logger.info(f"_delete_db_record ::: {self.record_type=} {self.id_=} {deleted=}")
        return deleted

    def _to_ui(self) -> Dict:
        item = {**self.extra_fields, **self._to_dict()}
        substitute_keys(dict_to_process=item, base_keys=from_db)
        return item
