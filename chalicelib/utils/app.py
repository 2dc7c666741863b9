import functools
import inspect
from typing import Callable, Dict

from chalice import Response

from chalicelib.constants.status_codes import http200, http201, http400, http401, http403, http404, http500
from chalicelib.utils.data import prepare_for_ui
from chalicelib.utils.errors import AppError, ErrorCategory, USER_FACING_EXCEPTIONS, create_error_context, log_error
from chalicelib.utils.exceptions import (AccessDenied, InvalidUpload, MandatoryFieldsAreNotFilled,
                                         NotAuthorizedException, ValidationException)
from chalicelib.utils.logger import logger, log_exception
from chalicelib.utils.result import ServiceResult

CATEGORY_STATUS_CODES = {
    ErrorCategory.VALIDATION: http400,
    ErrorCategory.AUTH: http401,
    ErrorCategory.PERMISSION: http403,
}


def error_response(error: Exception, msg: str = "", status_code: int = 400, *args, **kwargs):
    log_exception(error=error, msg=msg, status_code=status_code, *args, **kwargs)
    return Response(
        body={
            'error': str(error),
            'exception': error.__class__.__name__,
            "message": str(msg),
            'error_id': getattr(logger, 'current_request_id'),
            'level': getattr(error, 'LEVEL', 'exception')
        },
        status_code=status_code,
        headers={'Content-Type': 'application/json'}
    )


def app_error_response(app_error: AppError) -> Response:
    return Response(
        body={
            'error': app_error.code or app_error.category.value,
            'message': app_error.user_message,
            'category': app_error.category.value,
            'severity': app_error.severity.value,
            'error_id': getattr(logger, 'current_request_id')
        },
        status_code=CATEGORY_STATUS_CODES.get(app_error.category, http500),
        headers={'Content-Type': 'application/json'}
    )


def request_exception_handler(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        try:
            logger.info(f'Calling function {func.__name__}')
            return func(*args, **kwargs)
        except (MandatoryFieldsAreNotFilled, ValidationException, InvalidUpload) as validation_error:
            return error_response(
                error=validation_error,
                msg=str(validation_error),
                status_code=http400)
        except NotAuthorizedException as not_authorized:
            return error_response(
                error=not_authorized,
                msg='Authentication failed. Please check your credentials and try again.',
                status_code=http401)
        except AccessDenied as access_denied:
            return error_response(
                error=access_denied,
                msg="You don't have permission to perform this action.",
                status_code=http403)
        except Exception as exception:
            return error_response(
                error=exception,
                msg=f'function = {func.__name__}, error = {exception}',
                status_code=http500)
    return result


def log_start_finish(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        logger.info(f'{func.__name__} ::: started')
        response = func(*args, **kwargs)
        logger.info(f'{func.__name__} ::: finished')
        return response
    return result


SENSITIVE_ARGUMENTS = ('temporary_password', 'password', 'new_password', 'refresh_token', 'id_token')


def _describe_arguments(func: Callable, args, kwargs) -> Dict:
    def short(name, value):
        if name in SENSITIVE_ARGUMENTS:
            return '***'
        if isinstance(value, dict):
            value = {key: '***' if key in SENSITIVE_ARGUMENTS else item for key, item in value.items()}
        if isinstance(value, (bytes, bytearray)):
            return f'<{len(value)} bytes>'
        text = repr(value)
        return text if len(text) <= 200 else text[:200] + '...'

    names = list(inspect.signature(func).parameters)
    return {
        'args': [short(names[index] if index < len(names) else None, arg) for index, arg in enumerate(args)],
        'kwargs': {key: short(key, value) for key, value in kwargs.items()}
    }


def service_operation(user_message: str, category: ErrorCategory = ErrorCategory.DATABASE):
    """
    Boundary of an entity service function: the wrapped function returns plain data
    or raises, callers always get a ServiceResult and never an exception.
    """
    def decorator(func: Callable):
        @functools.wraps(func)
        def result(*args, **kwargs) -> ServiceResult:
            try:
                return ServiceResult.success(func(*args, **kwargs))
            except Exception as error:
                app_error = log_error(
                    error,
                    user_message=None if isinstance(error, USER_FACING_EXCEPTIONS) else user_message,
                    default_category=category,
                    context=create_error_context(
                        func.__module__.split('.')[-1], func.__name__, **_describe_arguments(func, args, kwargs)
                    )
                )
                return ServiceResult.failure(app_error)
        return result
    return decorator


def service_response(service_result: ServiceResult, status_code: int = http200,
                     not_found_message: str = 'Record not found') -> Response:
    if not service_result.ok:
        return app_error_response(service_result.error)
    if service_result.data is None:
        return Response(
            body={'error': 'not_found', 'message': not_found_message,
                  'error_id': getattr(logger, 'current_request_id')},
            status_code=http404,
            headers={'Content-Type': 'application/json'}
        )
    return Response(status_code=status_code, body=prepare_for_ui(service_result.data),
                    headers={'Content-Type': 'application/json'})


def created_response(service_result: ServiceResult) -> Response:
    return service_response(service_result, status_code=http201)
