__all__ = ["NotAuthorizedException", "AccessDenied", "RecordNotFound", "MandatoryFieldsAreNotFilled",
           "ValidationException", "AuthorizationException", "StorageException", "InvalidUpload"]


class NotAuthorizedException(Exception):
    LEVEL = 'warning'


# Generic Exceptions
class AccessDenied(Exception):
    LEVEL = 'warning'


class MandatoryFieldsAreNotFilled(Exception):
    LEVEL = 'warning'


# DynamoDB exceptions
class RecordNotFound(Exception):
    LEVEL = 'info'


# Validations exceptions
class ValidationException(Exception):
    LEVEL = 'warning'


class AuthorizationException(Exception):
    LEVEL = 'error'


# S3 exceptions
class StorageException(Exception):
    pass


class InvalidUpload(Exception):
    LEVEL = 'warning'
