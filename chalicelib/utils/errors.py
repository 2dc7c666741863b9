"""
Classification of caught exceptions.

Every failure that reaches a service boundary is turned into an ``AppError``:
a severity, a category, an optional code and a message that can be shown to
a dashboard user as is. ``user_message`` is never empty.
"""
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import jwt
from botocore.exceptions import (BotoCoreError, ClientError, ConnectTimeoutError, EndpointConnectionError,
                                 NoCredentialsError, ReadTimeoutError)

from chalicelib.constants.constants import GENERIC_ERROR_MESSAGE
from chalicelib.utils import exceptions
from chalicelib.utils.logger import logger


class ErrorSeverity(str, Enum):
    INFO = 'info'
    WARNING = 'warning'
    ERROR = 'error'
    CRITICAL = 'critical'


class ErrorCategory(str, Enum):
    DATABASE = 'database'
    STORAGE = 'storage'
    NETWORK = 'network'
    AUTH = 'auth'
    VALIDATION = 'validation'
    PERMISSION = 'permission'
    UNKNOWN = 'unknown'


@dataclass
class AppError:
    message: str
    user_message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    category: ErrorCategory = ErrorCategory.UNKNOWN
    code: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec='seconds'))
    original_error: Any = field(default=None, repr=False)

    def to_dict(self) -> Dict:
        return {
            'message': self.message,
            'user_message': self.user_message,
            'severity': self.severity.value,
            'category': self.category.value,
            'code': self.code,
            'context': self.context,
            'timestamp': self.timestamp,
            'exception': self.original_error.__class__.__name__ if self.original_error is not None else None
        }


DATABASE_ERROR_CODES = {
    'ConditionalCheckFailedException': ErrorSeverity.WARNING,
    'ProvisionedThroughputExceededException': ErrorSeverity.WARNING,
    'ThrottlingException': ErrorSeverity.WARNING,
    'RequestLimitExceeded': ErrorSeverity.WARNING,
    'TransactionConflictException': ErrorSeverity.WARNING,
    'ItemCollectionSizeLimitExceededException': ErrorSeverity.ERROR,
    'ResourceNotFoundException': ErrorSeverity.CRITICAL,
    'InternalServerError': ErrorSeverity.CRITICAL,
}

STORAGE_ERROR_CODES = {
    'NoSuchKey': ErrorSeverity.WARNING,
    'EntityTooLarge': ErrorSeverity.WARNING,
    'InvalidObjectState': ErrorSeverity.ERROR,
    'NoSuchBucket': ErrorSeverity.CRITICAL,
}

AUTH_ERROR_CODES = {
    'NotAuthorizedException': ErrorSeverity.WARNING,
    'UserNotFoundException': ErrorSeverity.WARNING,
    'UserNotConfirmedException': ErrorSeverity.WARNING,
    'PasswordResetRequiredException': ErrorSeverity.WARNING,
    'InvalidPasswordException': ErrorSeverity.WARNING,
    'CodeMismatchException': ErrorSeverity.WARNING,
    'ExpiredTokenException': ErrorSeverity.WARNING,
    'UsernameExistsException': ErrorSeverity.WARNING,
}

PERMISSION_ERROR_CODES = {'AccessDenied', 'AccessDeniedException', 'UnauthorizedOperation', 'Forbidden'}

VALIDATION_ERROR_CODES = {'ValidationException', 'InvalidParameterException', 'InvalidArgument'}

CODE_MESSAGES = {
    'ConditionalCheckFailedException': "The record doesn't exist or has been deleted.",
    'ResourceNotFoundException': 'Database connection error. Please try again later.',
    'InternalServerError': 'Database connection error. Please try again later.',
    'ProvisionedThroughputExceededException': 'The system is currently busy. Please try again later.',
    'ThrottlingException': 'The system is currently busy. Please try again later.',
    'RequestLimitExceeded': 'The system is currently busy. Please try again later.',
    'TransactionConflictException': 'The record is being changed by someone else. Please try again.',
    'NoSuchKey': 'The requested file could not be found.',
    'NoSuchBucket': 'File storage is not available. Please try again later.',
    'EntityTooLarge': 'The file is too large to upload.',
    'NotAuthorizedException': 'Invalid email or password. Please try again.',
    'UserNotFoundException': 'Invalid email or password. Please try again.',
    'UserNotConfirmedException': 'Please confirm your email address before logging in.',
    'PasswordResetRequiredException': 'Your password has to be reset before you can log in.',
    'InvalidPasswordException': 'The password does not meet the requirements.',
    'CodeMismatchException': 'The confirmation code is not valid.',
    'ExpiredTokenException': 'Your session has expired. Please log in again.',
    'ExpiredSignatureError': 'Your session has expired. Please log in again.',
    'UsernameExistsException': 'This record already exists. Please try with different information.',
    'AccessDenied': "You don't have permission to perform this action.",
    'AccessDeniedException': "You don't have permission to perform this action.",
    'ValidationException': 'Invalid input format. Please check your data and try again.',
}

CATEGORY_MESSAGES = {
    ErrorCategory.DATABASE: 'A database error occurred. Please try again later.',
    ErrorCategory.STORAGE: 'A file storage error occurred. Please try again later.',
    ErrorCategory.NETWORK: 'Network error. Please check your connection and try again.',
    ErrorCategory.AUTH: 'Authentication failed. Please check your credentials and try again.',
    ErrorCategory.PERMISSION: "You don't have permission to perform this action.",
    ErrorCategory.VALIDATION: 'Required information is missing or invalid. Please check your data and try again.',
}

# our own exceptions carry messages written for the dashboard user
USER_FACING_EXCEPTIONS = (exceptions.ValidationException, exceptions.MandatoryFieldsAreNotFilled,
                          exceptions.InvalidUpload)

EXCEPTION_CLASSIFICATION = (
    (exceptions.RecordNotFound, ErrorCategory.DATABASE, ErrorSeverity.INFO),
    (exceptions.ValidationException, ErrorCategory.VALIDATION, ErrorSeverity.WARNING),
    (exceptions.MandatoryFieldsAreNotFilled, ErrorCategory.VALIDATION, ErrorSeverity.WARNING),
    (exceptions.InvalidUpload, ErrorCategory.VALIDATION, ErrorSeverity.WARNING),
    (exceptions.AccessDenied, ErrorCategory.PERMISSION, ErrorSeverity.WARNING),
    (exceptions.NotAuthorizedException, ErrorCategory.AUTH, ErrorSeverity.WARNING),
    (exceptions.AuthorizationException, ErrorCategory.AUTH, ErrorSeverity.ERROR),
    (exceptions.StorageException, ErrorCategory.STORAGE, ErrorSeverity.ERROR),
    (jwt.ExpiredSignatureError, ErrorCategory.AUTH, ErrorSeverity.WARNING),
    (jwt.PyJWTError, ErrorCategory.AUTH, ErrorSeverity.WARNING),
    (NoCredentialsError, ErrorCategory.AUTH, ErrorSeverity.CRITICAL),
    (EndpointConnectionError, ErrorCategory.NETWORK, ErrorSeverity.ERROR),
    (ConnectTimeoutError, ErrorCategory.NETWORK, ErrorSeverity.ERROR),
    (ReadTimeoutError, ErrorCategory.NETWORK, ErrorSeverity.ERROR),
    (ConnectionError, ErrorCategory.NETWORK, ErrorSeverity.ERROR),
    (TimeoutError, ErrorCategory.NETWORK, ErrorSeverity.ERROR),
    (BotoCoreError, ErrorCategory.UNKNOWN, ErrorSeverity.ERROR),
)

_config = {
    'log_to_console': True,
    'keep_recent': True,
    'max_recent': 100,
    'min_severity_for_recent': ErrorSeverity.WARNING,
}

_SEVERITY_ORDER = [ErrorSeverity.INFO, ErrorSeverity.WARNING, ErrorSeverity.ERROR, ErrorSeverity.CRITICAL]

_recent_errors = deque(maxlen=_config['max_recent'])


def configure_error_handler(**new_config) -> Dict:
    global _recent_errors
    unknown = set(new_config) - set(_config)
    if unknown:
        raise ValueError(f'Unknown error handler options: {sorted(unknown)}')
    _config.update(new_config)
    if _recent_errors.maxlen != _config['max_recent']:
        _recent_errors = deque(_recent_errors, maxlen=_config['max_recent'])
    return dict(_config)


def get_error_code(error) -> Optional[str]:
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code')
    if isinstance(error, BaseException):
        return error.__class__.__name__
    return None


def _classify_client_error(code: str) -> Tuple[ErrorCategory, ErrorSeverity]:
    if code in DATABASE_ERROR_CODES:
        return ErrorCategory.DATABASE, DATABASE_ERROR_CODES[code]
    if code in STORAGE_ERROR_CODES:
        return ErrorCategory.STORAGE, STORAGE_ERROR_CODES[code]
    if code in AUTH_ERROR_CODES:
        return ErrorCategory.AUTH, AUTH_ERROR_CODES[code]
    if code in PERMISSION_ERROR_CODES:
        return ErrorCategory.PERMISSION, ErrorSeverity.WARNING
    if code in VALIDATION_ERROR_CODES:
        return ErrorCategory.VALIDATION, ErrorSeverity.WARNING
    return ErrorCategory.UNKNOWN, ErrorSeverity.ERROR


def classify_error(error) -> Tuple[ErrorCategory, ErrorSeverity, Optional[str]]:
    code = get_error_code(error)
    if isinstance(error, ClientError):
        category, severity = _classify_client_error(code)
        return category, severity, code
    for error_class, category, severity in EXCEPTION_CLASSIFICATION:
        if isinstance(error, error_class):
            return category, severity, code
    return ErrorCategory.UNKNOWN, ErrorSeverity.ERROR, code


def _error_text(error) -> str:
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Message') or str(error)
    if isinstance(error, BaseException):
        return str(error)
    if isinstance(error, str):
        return error
    return ''


def get_user_friendly_message(error) -> str:
    if isinstance(error, str):
        return error or GENERIC_ERROR_MESSAGE
    if isinstance(error, USER_FACING_EXCEPTIONS) and str(error):
        return str(error)

    category, _, code = classify_error(error)
    if code in CODE_MESSAGES:
        return CODE_MESSAGES[code]
    if category in CATEGORY_MESSAGES:
        return CATEGORY_MESSAGES[category]

    message = _error_text(error).lower()
    if 'email' in message and 'password' in message:
        return CODE_MESSAGES['NotAuthorizedException']
    if 'jwt' in message or 'token' in message:
        return CODE_MESSAGES['ExpiredTokenException']
    if 'permission' in message or 'access' in message:
        return CATEGORY_MESSAGES[ErrorCategory.PERMISSION]
    return GENERIC_ERROR_MESSAGE


def format_error(error, user_message: Optional[str] = None, severity: Optional[ErrorSeverity] = None,
                 category: Optional[ErrorCategory] = None, context: Optional[Dict] = None,
                 default_category: Optional[ErrorCategory] = None) -> AppError:
    """
    Build an AppError out of anything that was raised or reported.

    Explicit severity/category win over the derived ones, default_category
    only replaces an unknown derived category.
    """
    derived_category, derived_severity, code = classify_error(error)
    if derived_category == ErrorCategory.UNKNOWN and default_category is not None:
        derived_category = default_category

    message = _error_text(error) or 'Unknown error occurred'
    return AppError(
        message=message,
        user_message=user_message or get_user_friendly_message(error) or GENERIC_ERROR_MESSAGE,
        severity=ErrorSeverity(severity) if severity else derived_severity,
        category=ErrorCategory(category) if category else derived_category,
        code=code if not isinstance(error, str) else None,
        context=dict(context or {}),
        original_error=error if not isinstance(error, str) else None
    )


def _severity_reached(severity: ErrorSeverity, minimum: ErrorSeverity) -> bool:
    return _SEVERITY_ORDER.index(severity) >= _SEVERITY_ORDER.index(minimum)


def log_error(error, **options) -> AppError:
    app_error = format_error(error, **options)

    if _config['log_to_console']:
        code_text = f' (Code: {app_error.code})' if app_error.code else ''
        context_text = f' context={app_error.context}' if app_error.context else ''
        msg = f'[{app_error.category.value.upper()}] {app_error.message}{code_text}{context_text}'
        if app_error.severity == ErrorSeverity.INFO:
            logger.info(msg)
        elif app_error.severity == ErrorSeverity.WARNING:
            logger.warning(msg)
        elif app_error.severity == ErrorSeverity.CRITICAL:
            logger.critical(f'[CRITICAL] {msg}', exc_info=isinstance(error, BaseException) and error)
        else:
            logger.error(msg, exc_info=isinstance(error, BaseException) and error)

    if _config['keep_recent'] and _severity_reached(app_error.severity, _config['min_severity_for_recent']):
        _recent_errors.appendleft(app_error)

    return app_error


def handle_error(error, **options) -> str:
    return log_error(error, **options).user_message


def create_error_context(component: str, action: str, **data) -> Dict:
    return {
        'component': component,
        'action': action,
        **data
    }


def get_recent_errors() -> List[Dict]:
    return [app_error.to_dict() for app_error in list(_recent_errors)]


def clear_recent_errors() -> None:
    _recent_errors.clear()
