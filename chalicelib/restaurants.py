from typing import Tuple, List, Dict, Optional

from boto3.dynamodb.conditions import Attr

from chalicelib import images
from chalicelib.base_class_entity import (EntityBase, is_str, is_non_empty_str, is_number, is_str_or_dict, one_of)
from chalicelib.constants import keys_structure, db_structure
from chalicelib.constants.constants import (RESTAURANT_STATUSES, RESTAURANT_IMAGE_FIELDS, RESTAURANT_IMAGES_FOLDER,
                                            DEFAULT_RECENT_RESTAURANTS_LIMIT)
from chalicelib.utils import app as utils_app, db as utils_db, formatting
from chalicelib.utils.errors import ErrorCategory
from chalicelib.utils.exceptions import ValidationException
from chalicelib.utils.logger import logger
from chalicelib.utils.timestamps import timestamp_sort_key


class Restaurant(EntityBase):
    pk = keys_structure.restaurants_pk
    sk = keys_structure.restaurants_sk
    record_type = 'restaurant'
    defaults = db_structure.RESTAURANT

    required_immutable_fields_validation = {
        'id_': is_str,
        'created_at': is_str
    }

    required_mutable_fields_validation = {
        'name': is_non_empty_str,
    }

    optional_fields_validation = {
        'description': is_str,
        'cuisine': lambda x: isinstance(x, (str, list)),
        'rating': lambda x: is_number(x) and 0 <= x <= 5,
        'address': is_str_or_dict,
        'status': one_of(*RESTAURANT_STATUSES),
        'owner_id': is_str,
        'phone': is_str,
        'email': is_str,
        'price_range': is_str,
        'opening_hours': lambda x: isinstance(x, (list, dict)),
        'logo_url': is_str,
        'cover_page_url': is_str,
        'created_by': is_str,
    }

    deletable_fields = ['description', 'address', 'owner_id', 'phone', 'email', 'price_range', 'opening_hours',
                        'logo_url', 'cover_page_url']

    def __init__(self, id_=None, **kwargs):
        # records created before the rename keep the cuisine in cuisine_type
        if kwargs.get('cuisine') in (None, '') and kwargs.get('cuisine_type'):
            kwargs['cuisine'] = kwargs['cuisine_type']
        EntityBase.__init__(self, id_, **kwargs)

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(restaurant_id=self.id_)

    def _update_fields_whitelist(self) -> List:
        return [key for key in EntityBase._update_fields_whitelist(self) if key != 'created_by']

    def _to_ui(self) -> Dict:
        item = EntityBase._to_ui(self)
        item.update({
            'address_text': formatting.format_address(self.address),
            'status_label': formatting.format_status(self.status),
            'status_variant': formatting.get_status_variant(self.status),
            'is_open': formatting.is_restaurant_open(self.opening_hours),
            'today_hours': formatting.get_today_hours(self.opening_hours),
        })
        return item

    def to_card(self) -> Dict:
        """ Compact display record used by the dashboard's recent restaurants list """
        rating = formatting.clamp_rating(self.rating)
        return {
            'id': self.id_,
            'name': self.name,
            'cuisine': self.cuisine,
            'rating': rating,
            'stars': formatting.rating_stars(rating),
            'address_text': formatting.format_address(self.address),
            'status': self.status,
            'status_label': formatting.format_status(self.status),
            'status_variant': formatting.get_status_variant(self.status),
            'logo_url': self.logo_url,
            'created_at': self.created_at,
            'created_at_text': formatting.format_date(self.created_at),
        }


def _newest_first(restaurants: List[Restaurant]) -> List[Restaurant]:
    return sorted(restaurants, key=lambda restaurant: timestamp_sort_key(restaurant.created_at), reverse=True)


def _restaurant_fields(fields: Dict) -> Dict:
    return {key: value for key, value in (fields or {}).items() if key not in ('id', 'id_', 'created_at', 'updated_at')}


@utils_app.service_operation('Failed to load restaurants')
def list_restaurants(status: Optional[str] = None, owner_id: Optional[str] = None, search: Optional[str] = None,
                     limit: Optional[int] = None) -> List[Dict]:
    filter_expression = utils_db.combine_filters(
        Attr('status').eq(status) if status else None,
        Attr('owner_id').eq(owner_id) if owner_id else None
    )
    restaurants = _newest_first(Restaurant.query_all(filter_expression))
    if search:
        search_lower = search.lower()
        restaurants = [restaurant for restaurant in restaurants if search_lower in str(restaurant.name).lower()]
    if limit:
        restaurants = restaurants[:int(limit)]
    logger.info(f"list_restaurants ::: returning {len(restaurants)} restaurants, {status=}, {owner_id=}")
    return [restaurant._to_ui() for restaurant in restaurants]


@utils_app.service_operation('Failed to load restaurant')
def get_restaurant(restaurant_id: str) -> Optional[Dict]:
    restaurant = Restaurant.init_by_id(restaurant_id)
    return restaurant._to_ui() if restaurant else None


@utils_app.service_operation('Failed to add restaurant')
def add_restaurant(fields: Dict, created_by: Optional[str] = None) -> Dict:
    fields = _restaurant_fields(fields)
    if not is_non_empty_str(fields.get('name')):
        raise ValidationException('Restaurant name is required')
    if created_by:
        fields['created_by'] = created_by
    restaurant = Restaurant(**fields)
    restaurant._create_db_record()
    return restaurant._to_ui()


@utils_app.service_operation('Failed to update restaurant')
def update_restaurant(restaurant_id: str, fields: Dict) -> Optional[Dict]:
    attributes = Restaurant(id_=restaurant_id)._update_db_record(_restaurant_fields(fields))
    return Restaurant.from_db_record(attributes)._to_ui() if attributes is not None else None


@utils_app.service_operation('Failed to delete restaurant')
def delete_restaurant(restaurant_id: str) -> Optional[Dict]:
    deleted = Restaurant(id_=restaurant_id)._delete_db_record()
    return {'id': restaurant_id, 'deleted': True} if deleted else None


@utils_app.service_operation('Failed to load recent restaurants')
def get_recent_restaurants(limit: int = DEFAULT_RECENT_RESTAURANTS_LIMIT) -> List[Dict]:
    restaurants = _newest_first(Restaurant.query_all())[:int(limit)]
    return [restaurant.to_card() for restaurant in restaurants]


@utils_app.service_operation('Failed to count restaurants')
def count_restaurants(status: Optional[str] = None) -> int:
    return len(Restaurant.query_all(Attr('status').eq(status) if status else None))


@utils_app.service_operation('Failed to upload restaurant image', category=ErrorCategory.STORAGE)
def upload_restaurant_image(restaurant_id: str, content: bytes, file_name: str,
                            image_type: str = 'logo') -> Optional[Dict]:
    if image_type not in RESTAURANT_IMAGE_FIELDS:
        raise ValidationException(f'Unknown image type {image_type}, expected one of {list(RESTAURANT_IMAGE_FIELDS)}')
    restaurant = Restaurant.init_by_id(restaurant_id)
    if restaurant is None:
        return None
    uploaded = images.upload_image(content, file_name, f'{RESTAURANT_IMAGES_FOLDER}/{restaurant_id}')
    field = RESTAURANT_IMAGE_FIELDS[image_type]
    restaurant._update_db_record({field: uploaded['url']})
    logger.info(f'upload_restaurant_image ::: {restaurant_id=} {field=} updated')
    return {'id': restaurant_id, 'field': field, **uploaded}
