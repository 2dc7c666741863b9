import os
from typing import Tuple, List, Dict, Optional, Union

from boto3.dynamodb.conditions import Attr

from chalicelib import images
from chalicelib.base_class_entity import EntityBase, is_str, is_non_empty_str, is_number, is_bool, is_str_or_dict, one_of
from chalicelib.constants import keys_structure, db_structure
from chalicelib.constants.constants import USER_ROLES, ROLE_CUSTOMER, ROLE_DRIVER, ROLE_OWNER, PROFILE_IMAGES_FOLDER
from chalicelib.utils import app as utils_app, boto_clients, formatting
from chalicelib.utils.errors import ErrorCategory
from chalicelib.utils.exceptions import ValidationException
from chalicelib.utils.logger import logger
from chalicelib.utils.timestamps import timestamp_sort_key


class User(EntityBase):
    pk = keys_structure.users_pk
    sk = keys_structure.users_sk
    record_type = 'user'
    defaults = db_structure.USER

    required_immutable_fields_validation = {
        'id_': is_str,
        'created_at': is_str
    }

    required_mutable_fields_validation = {
        'email': is_str,
        'role': one_of(*USER_ROLES),
    }

    optional_fields_validation = {
        'name': is_non_empty_str,
        'phone': is_str,
        'is_verified': is_bool,
        'rating': lambda x: is_number(x) and 0 <= x <= 5,
        'completed_orders': lambda x: is_number(x) and x >= 0,
        'avatar_url': is_str,
        'vehicle_type': is_str,
        'current_suburb': is_str,
        'address': is_str_or_dict,
    }

    deletable_fields = ['phone', 'avatar_url', 'vehicle_type', 'current_suburb', 'address']

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(user_id=self.id_)

    def _to_ui(self) -> Dict:
        item = EntityBase._to_ui(self)
        if self.address is not None:
            item['address_text'] = formatting.format_address(self.address)
        return item

    def to_driver_details(self) -> Dict:
        return {
            'id': self.id_,
            'name': self.name or 'Unknown Driver',
            'email': self.email or '',
            'phone': self.phone or 'No phone',
            'status': 'active' if self.is_verified else 'inactive',
            'current_location': self.current_suburb or 'Unknown',
            'completed_orders': self.completed_orders or 0,
            'rating': self.rating or 0,
            'vehicle_type': self.vehicle_type or 'Car',
            'avatar_url': self.avatar_url,
        }


def _user_fields(fields: Dict) -> Dict:
    return {key: value for key, value in (fields or {}).items() if key not in ('id', 'id_', 'created_at', 'updated_at')}


def _role_filter(role: Union[str, List[str], None]):
    if not role:
        return None
    if isinstance(role, (list, tuple)):
        return Attr('role').is_in(list(role))
    return Attr('role').eq(role)


def _query_users(role=None, search: Optional[str] = None, limit: Optional[int] = None) -> List[User]:
    users = sorted(User.query_all(_role_filter(role)), key=lambda user: timestamp_sort_key(user.created_at),
                   reverse=True)
    if search:
        search_lower = search.lower()
        users = [
            user for user in users
            if search_lower in str(user.name or '').lower() or search_lower in str(user.email or '').lower()
        ]
    if limit:
        users = users[:int(limit)]
    return users


def cognito_user_pool_id() -> str:
    return os.environ['COGNITO_USER_POOL_ID']


def create_cognito_login(email: str, temporary_password: str, role: str) -> str:
    """ Creates the Cognito login for a new dashboard user, returns its sub used as the user id """
    response = boto_clients.cognito_client.admin_create_user(
        UserPoolId=cognito_user_pool_id(),
        Username=email,
        TemporaryPassword=temporary_password,
        UserAttributes=[
            {'Name': 'email', 'Value': email},
            {'Name': 'email_verified', 'Value': 'true'},
            {'Name': 'custom:role', 'Value': role},
        ],
        MessageAction='SUPPRESS'
    )
    attributes = {attr['Name']: attr['Value'] for attr in response['User'].get('Attributes', [])}
    logger.info(f"create_cognito_login ::: login created for {email=}, {role=}")
    return attributes.get('sub') or response['User']['Username']


def delete_cognito_login(email: str) -> None:
    boto_clients.cognito_client.admin_delete_user(UserPoolId=cognito_user_pool_id(), Username=email)
    logger.info(f"delete_cognito_login ::: login removed for {email=}")


def _create_user(fields: Dict, role: Optional[str] = None, temporary_password: Optional[str] = None) -> User:
    fields = _user_fields(fields)
    fields['role'] = role or fields.get('role') or ROLE_CUSTOMER
    if not is_non_empty_str(fields.get('email')):
        raise ValidationException('Email is required')
    if fields.get('role') not in USER_ROLES:
        raise ValidationException(f"Role must be one of {', '.join(USER_ROLES)}")
    user = User(**fields)
    # the login is created only for a record that passes validation
    user._prepare_db_record()
    if not temporary_password:
        user._create_db_record()
        return user

    user.id_ = create_cognito_login(fields['email'], temporary_password, fields['role'])
    try:
        user._create_db_record()
    except Exception:
        delete_cognito_login(fields['email'])
        raise
    return user


def _update_user(user_id: str, fields: Dict) -> Optional[User]:
    attributes = User(id_=user_id)._update_db_record(_user_fields(fields))
    return User.from_db_record(attributes) if attributes is not None else None


# USERS
@utils_app.service_operation('Failed to load users')
def list_users(role=None, search: Optional[str] = None, limit: Optional[int] = None) -> List[Dict]:
    return [user._to_ui() for user in _query_users(role, search, limit)]


@utils_app.service_operation('Failed to load user')
def get_user(user_id: str) -> Optional[Dict]:
    user = User.init_by_id(user_id)
    return user._to_ui() if user else None


@utils_app.service_operation('Failed to add user')
def add_user(fields: Dict, temporary_password: Optional[str] = None) -> Dict:
    return _create_user(fields, temporary_password=temporary_password)._to_ui()


@utils_app.service_operation('Failed to update user')
def update_user(user_id: str, fields: Dict) -> Optional[Dict]:
    user = _update_user(user_id, fields)
    return user._to_ui() if user else None


@utils_app.service_operation('Failed to change user role')
def change_user_role(user_id: str, role: str) -> Optional[Dict]:
    if role not in USER_ROLES:
        raise ValidationException(f"Role must be one of {', '.join(USER_ROLES)}")
    user = _update_user(user_id, {'role': role})
    return user._to_ui() if user else None


@utils_app.service_operation('Failed to delete user')
def delete_user(user_id: str) -> Optional[Dict]:
    deleted = User(id_=user_id)._delete_db_record()
    return {'id': user_id, 'deleted': True} if deleted else None


@utils_app.service_operation('Failed to count users')
def count_users() -> int:
    return len(User.query_all())


# DRIVERS
def _get_driver(driver_id: str) -> Optional[User]:
    user = User.init_by_id(driver_id)
    if user is None or user.role != ROLE_DRIVER:
        return None
    return user


@utils_app.service_operation('Failed to load drivers')
def list_drivers() -> List[Dict]:
    return [user.to_driver_details() for user in _query_users(role=ROLE_DRIVER)]


@utils_app.service_operation('Failed to load driver')
def get_driver(driver_id: str) -> Optional[Dict]:
    user = _get_driver(driver_id)
    return user.to_driver_details() if user else None


@utils_app.service_operation('Failed to add driver')
def add_driver(fields: Dict) -> Dict:
    fields = {'is_verified': False, 'rating': 0, 'completed_orders': 0, **_user_fields(fields)}
    return _create_user(fields, role=ROLE_DRIVER).to_driver_details()


@utils_app.service_operation('Failed to update driver')
def update_driver(driver_id: str, fields: Dict) -> Optional[Dict]:
    if _get_driver(driver_id) is None:
        return None
    fields = {key: value for key, value in _user_fields(fields).items() if key != 'role'}
    user = _update_user(driver_id, fields)
    return user.to_driver_details() if user else None


@utils_app.service_operation('Failed to delete driver')
def delete_driver(driver_id: str) -> Optional[Dict]:
    driver = _get_driver(driver_id)
    if driver is None:
        return None
    driver._delete_db_record()
    return {'id': driver_id, 'deleted': True}


@utils_app.service_operation('Failed to upload driver avatar', category=ErrorCategory.STORAGE)
def upload_driver_avatar(driver_id: str, content: bytes, file_name: str) -> Optional[Dict]:
    if _get_driver(driver_id) is None:
        return None
    uploaded = images.upload_image(content, file_name, f'{PROFILE_IMAGES_FOLDER}/{driver_id}')
    _update_user(driver_id, {'avatar_url': uploaded['url']})
    logger.info(f'upload_driver_avatar ::: {driver_id=} avatar updated')
    return {'id': driver_id, **uploaded}


# OWNERS
@utils_app.service_operation('Failed to load owners')
def list_owners() -> List[Dict]:
    return [user._to_ui() for user in _query_users(role=ROLE_OWNER)]


@utils_app.service_operation('Failed to add owner')
def add_owner(fields: Dict, temporary_password: Optional[str] = None) -> Dict:
    return _create_user(fields, role=ROLE_OWNER, temporary_password=temporary_password)._to_ui()


def find_drivers() -> List[User]:
    """ Driver users for internal callers, errors propagate """
    return User.query_all(_role_filter(ROLE_DRIVER))


def create_user_record(fields: Dict) -> User:
    """ Creates a user record for internal callers, errors propagate """
    return _create_user(fields)


def get_user_record(user_id: str) -> Optional[User]:
    return User.init_by_id(user_id)


def count_users_created_before(moment) -> int:
    return len([user for user in User.query_all() if timestamp_sort_key(user.created_at) <= moment])
