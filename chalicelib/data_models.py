from typing import Tuple, List, Dict, Optional

from chalicelib.base_class_entity import EntityBase, is_str, is_non_empty_str, is_number, one_of
from chalicelib.constants import keys_structure, db_structure
from chalicelib.constants.constants import DATA_MODEL_CATEGORIES, DEFAULT_DATA_MODELS, DEFAULT_POPULAR_DATA_MODELS_LIMIT
from chalicelib.utils import app as utils_app, db as utils_db
from chalicelib.utils.data import to_number
from chalicelib.utils.exceptions import ValidationException
from chalicelib.utils.logger import logger


class DataModel(EntityBase):
    """ Catalog entry describing a data model, the described schema itself is never enforced """
    pk = keys_structure.data_models_pk
    sk = keys_structure.data_models_sk
    record_type = 'data_model'
    defaults = db_structure.DATA_MODEL

    required_immutable_fields_validation = {
        'id_': is_str,
        'created_at': is_str
    }

    required_mutable_fields_validation = {
        'name': is_non_empty_str,
    }

    optional_fields_validation = {
        'description': is_str,
        'category': one_of(*DATA_MODEL_CATEGORIES),
        'fields': lambda x: is_number(x) and x >= 0,
        'usage_count': lambda x: is_number(x) and x >= 0,
    }

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(data_model_id=self.id_)


def _by_usage(data_models: List[DataModel]) -> List[DataModel]:
    return sorted(data_models, key=lambda data_model: to_number(data_model.usage_count), reverse=True)


def _data_model_fields(fields: Dict) -> Dict:
    return {key: value for key, value in (fields or {}).items() if key not in ('id', 'id_', 'created_at', 'updated_at')}


@utils_app.service_operation('Failed to load data models')
def list_data_models() -> List[Dict]:
    return [data_model._to_ui() for data_model in _by_usage(DataModel.query_all())]


@utils_app.service_operation('Failed to load popular data models')
def get_popular_data_models(limit: int = DEFAULT_POPULAR_DATA_MODELS_LIMIT) -> List[Dict]:
    return [data_model._to_ui() for data_model in _by_usage(DataModel.query_all())[:int(limit)]]


@utils_app.service_operation('Failed to load data model')
def get_data_model(data_model_id: str) -> Optional[Dict]:
    data_model = DataModel.init_by_id(data_model_id)
    return data_model._to_ui() if data_model else None


@utils_app.service_operation('Failed to add data model')
def add_data_model(fields: Dict) -> Dict:
    fields = _data_model_fields(fields)
    if not is_non_empty_str(fields.get('name')):
        raise ValidationException('Data model name is required')
    data_model = DataModel(**fields)
    data_model._create_db_record()
    return data_model._to_ui()


@utils_app.service_operation('Failed to update data model')
def update_data_model(data_model_id: str, fields: Dict) -> Optional[Dict]:
    attributes = DataModel(id_=data_model_id)._update_db_record(_data_model_fields(fields))
    return DataModel.from_db_record(attributes)._to_ui() if attributes is not None else None


@utils_app.service_operation('Failed to delete data model')
def delete_data_model(data_model_id: str) -> Optional[Dict]:
    deleted = DataModel(id_=data_model_id)._delete_db_record()
    return {'id': data_model_id, 'deleted': True} if deleted else None


@utils_app.service_operation('Failed to count data models')
def count_data_models() -> int:
    return len(DataModel.query_all())


@utils_app.service_operation('Failed to initialize data models')
def initialize_default_data_models() -> Dict:
    """ Seeds the default catalog, only into an empty collection """
    if utils_db.partition_has_items(DataModel.pk):
        logger.info('initialize_default_data_models ::: data models already exist, skipping')
        return {'initialized': False, 'created': 0}
    for default_model in DEFAULT_DATA_MODELS:
        DataModel(**default_model)._create_db_record()
    logger.info(f'initialize_default_data_models ::: created {len(DEFAULT_DATA_MODELS)} data models')
    return {'initialized': True, 'created': len(DEFAULT_DATA_MODELS)}
