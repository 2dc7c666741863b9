import os
from typing import Dict, List, Optional

from chalice import AuthResponse, AuthRoute
from pycognito import Cognito
from pycognito.exceptions import ForceChangePasswordException

from chalicelib.constants.constants import ROLE_ADMIN, ROLE_DRIVER, ROLE_OWNER
from chalicelib.users import cognito_user_pool_id, get_user_record
from chalicelib.utils import auth as utils_auth
from chalicelib.utils.exceptions import AuthorizationException, MandatoryFieldsAreNotFilled, NotAuthorizedException
from chalicelib.utils.logger import logger

ALL_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE']
READ_METHODS = ['GET']


def _resource_routes(path: str, methods: List[str]) -> List[AuthRoute]:
    """ The collection path and everything below it """
    return [AuthRoute(path=path, methods=methods), AuthRoute(path=f'{path}/*', methods=methods)]


ROLE_ROUTES = {
    ROLE_ADMIN: [
        AuthRoute(path='/*', methods=ALL_METHODS),
    ],
    ROLE_OWNER: [
        *_resource_routes('/restaurants', ALL_METHODS),
        *_resource_routes('/orders', ALL_METHODS),
        AuthRoute(path='/analytics', methods=READ_METHODS),
        AuthRoute(path='/dashboard/*', methods=READ_METHODS),
        *_resource_routes('/documentation', READ_METHODS),
    ],
    ROLE_DRIVER: [
        AuthRoute(path='/tracking/*', methods=['GET', 'POST', 'PUT']),
    ],
}


def cognito_client_id() -> str:
    return os.environ['COGNITO_CLIENT_ID']


def _user_role(claims: Dict) -> Optional[str]:
    user = get_user_record(claims['sub'])
    if user is not None:
        return user.role
    # dashboard users created outside of this api only carry the role in the token
    return claims.get('custom:role')


def role_authorizer(auth_request):
    try:
        claims = utils_auth.decode_id_token(auth_request.token)
        role = _user_role(claims)
    except AuthorizationException:
        return AuthResponse(routes=[], principal_id='')
    except Exception as error:
        logger.exception(f'role_authorizer ::: failed to load the user role: {error}')
        return AuthResponse(routes=[], principal_id='')

    routes = ROLE_ROUTES.get(role, [])
    logger.info(f"role_authorizer ::: user={claims['sub']} {role=} allowed {len(routes)} routes")
    return AuthResponse(routes=routes, principal_id=claims['sub'], context={'role': role or ''})


def _credentials(body: Optional[Dict], *fields) -> List[str]:
    body = body or {}
    missing = [field for field in fields if not body.get(field)]
    if missing:
        raise MandatoryFieldsAreNotFilled(f"Missing fields: {', '.join(missing)}")
    return [body[field] for field in fields]


def _tokens(u: Cognito) -> Dict:
    return {
        'token': u.id_token,
        'id_token': u.id_token,
        'access_token': u.access_token,
        'refresh_token': u.refresh_token
    }


def _cognito(**kwargs) -> Cognito:
    return Cognito(cognito_user_pool_id(), cognito_client_id(), user_pool_region=os.environ.get('DEFAULT_REGION'),
                   **kwargs)


def login_cognito(current_request) -> Dict:
    username, password = _credentials(current_request.json_body, 'username', 'password')
    u = _cognito(username=username)
    try:
        u.authenticate(password=password)
    except ForceChangePasswordException:
        logger.info(f'login_cognito ::: {username=} has to set a new password')
        return {'status': 'new_password_required', 'token': None}
    except Exception as error:
        logger.warning(f'login_cognito ::: {username=} failed to log in: {error}')
        raise NotAuthorizedException('Incorrect username or password')
    return {'status': 'success', **_tokens(u)}


def set_new_password_cognito(current_request) -> Dict:
    """ First login of a user created with a temporary password """
    username, password, new_password = _credentials(current_request.json_body, 'username', 'password',
                                                    'new_password')
    u = _cognito(username=username)
    try:
        u.new_password_challenge(password, new_password)
    except Exception as error:
        logger.warning(f'set_new_password_cognito ::: {username=} failed: {error}')
        raise NotAuthorizedException('The temporary password is not valid')
    return {'status': 'success', **_tokens(u)}


def refresh_id_token_cognito(current_request) -> Dict:
    id_token, refresh_token = _credentials(current_request.json_body, 'id_token', 'refresh_token')
    u = _cognito(id_token=id_token, refresh_token=refresh_token)
    try:
        u.renew_access_token()
    except Exception as error:
        logger.warning(f'refresh_id_token_cognito ::: {error}')
        raise NotAuthorizedException('The session has expired, please log in again')
    logger.debug('refresh_id_token_cognito ::: id token refreshed')
    return {'status': 'success', 'id_token': u.id_token}
