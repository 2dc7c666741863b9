import os
from typing import Dict, Optional

import jwt
from chalice.app import Request

from chalicelib.utils import exceptions as utils_exceptions
from chalicelib.utils.logger import logger, log_exception

_JWKS_CLIENT = None


def cognito_idp_url() -> str:
    return f"https://cognito-idp.{os.environ['DEFAULT_REGION']}.amazonaws.com/{os.environ['COGNITO_USER_POOL_ID']}"


def cognito_jwk_url() -> str:
    return f'{cognito_idp_url()}/.well-known/jwks.json'


def get_jwks_client() -> jwt.PyJWKClient:
    global _JWKS_CLIENT
    if _JWKS_CLIENT is None:
        _JWKS_CLIENT = jwt.PyJWKClient(cognito_jwk_url())
    return _JWKS_CLIENT


def strip_bearer(token: Optional[str]) -> str:
    token = (token or '').strip()
    if token.lower().startswith('bearer '):
        token = token[len('bearer '):].strip()
    return token


def decode_id_token(token: str) -> Dict:
    """ Validates the Cognito id token signature, audience and issuer, returns the token claims """
    try:
        token = strip_bearer(token)
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)
        decoded_jwt_token = jwt.decode(
            token,
            signing_key.key,
            algorithms=['RS256'],
            audience=os.environ['COGNITO_CLIENT_ID'],
            issuer=cognito_idp_url())
        logger.debug(f"decode_id_token ::: token decoded for sub={decoded_jwt_token.get('sub')}")
        return decoded_jwt_token
    except Exception as error:
        setattr(error, 'LEVEL', 'warning')
        log_exception(error, 401, f"decode_id_token ::: {error}")
        raise utils_exceptions.AuthorizationException(error)


def get_auth_context(request: Request) -> Dict:
    return (request.context or {}).get('authorizer') or {}


def get_current_user_id(request: Request) -> Optional[str]:
    return get_auth_context(request).get('principalId') or None


def get_current_user_role(request: Request) -> Optional[str]:
    return get_auth_context(request).get('role')
