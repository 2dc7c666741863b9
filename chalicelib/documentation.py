import os
from typing import Tuple, List, Dict, Optional

from boto3.dynamodb.conditions import Attr

from chalicelib.base_class_entity import EntityBase, is_str, is_non_empty_str, is_list
from chalicelib.constants import keys_structure, db_structure
from chalicelib.constants.constants import DOCUMENTATION_CATEGORIES, DOCUMENTATION_FILES
from chalicelib.utils import app as utils_app, db as utils_db
from chalicelib.utils.exceptions import ValidationException
from chalicelib.utils.logger import logger
from chalicelib.utils.timestamps import timestamp_sort_key

DOCS_FOLDER = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'docs')


class Documentation(EntityBase):
    pk = keys_structure.documentation_pk
    sk = keys_structure.documentation_sk
    record_type = 'documentation'
    defaults = db_structure.DOCUMENTATION

    required_immutable_fields_validation = {
        'id_': is_str,
        'created_at': is_str
    }

    required_mutable_fields_validation = {
        'title': is_non_empty_str,
        'category': is_non_empty_str,
    }

    optional_fields_validation = {
        'description': is_str,
        'content': is_str,
        'tags': lambda x: is_list(x) and all(is_str(tag) for tag in x),
        'url': is_str,
    }

    deletable_fields = ['url']

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(documentation_id=self.id_)


def _documentation_fields(fields: Dict) -> Dict:
    return {key: value for key, value in (fields or {}).items() if key not in ('id', 'id_', 'created_at', 'updated_at')}


def read_documentation_file(slug: str) -> str:
    with open(os.path.join(DOCS_FOLDER, f'{slug}.md'), encoding='utf-8') as doc_file:
        return doc_file.read()


@utils_app.service_operation('Failed to load documentation')
def list_documentation(category: Optional[str] = None) -> List[Dict]:
    documents = Documentation.query_all(Attr('category').eq(category) if category else None)
    documents = sorted(documents, key=lambda document: timestamp_sort_key(document.created_at), reverse=True)
    return [document._to_ui() for document in documents]


@utils_app.service_operation('Failed to load documentation')
def get_documentation(documentation_id: str) -> Optional[Dict]:
    document = Documentation.init_by_id(documentation_id)
    return document._to_ui() if document else None


@utils_app.service_operation('Failed to add documentation')
def add_documentation(fields: Dict) -> Dict:
    fields = _documentation_fields(fields)
    if not is_non_empty_str(fields.get('title')):
        raise ValidationException('Documentation title is required')
    document = Documentation(**fields)
    document._create_db_record()
    return document._to_ui()


@utils_app.service_operation('Failed to update documentation')
def update_documentation(documentation_id: str, fields: Dict) -> Optional[Dict]:
    attributes = Documentation(id_=documentation_id)._update_db_record(_documentation_fields(fields))
    return Documentation.from_db_record(attributes)._to_ui() if attributes is not None else None


@utils_app.service_operation('Failed to delete documentation')
def delete_documentation(documentation_id: str) -> Optional[Dict]:
    deleted = Documentation(id_=documentation_id)._delete_db_record()
    return {'id': documentation_id, 'deleted': True} if deleted else None


@utils_app.service_operation('Failed to load documentation categories')
def list_documentation_categories() -> List[str]:
    """ Known categories first, then any category used only by stored documents """
    used = {document.category for document in Documentation.query_all() if document.category}
    return DOCUMENTATION_CATEGORIES + sorted(used - set(DOCUMENTATION_CATEGORIES))


@utils_app.service_operation('Failed to initialize documentation')
def initialize_default_documentation() -> Dict:
    if utils_db.partition_has_items(Documentation.pk):
        logger.info('initialize_default_documentation ::: documentation already exists, skipping')
        return {'initialized': False, 'created': 0}
    for slug, meta in DOCUMENTATION_FILES.items():
        Documentation(content=read_documentation_file(slug), url=f'/docs/{slug}.md', **meta)._create_db_record()
    logger.info(f'initialize_default_documentation ::: created {len(DOCUMENTATION_FILES)} documents')
    return {'initialized': True, 'created': len(DOCUMENTATION_FILES)}
