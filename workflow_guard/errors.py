'''
This module holds the error kinds raised by the transport
and the API client, and the one place they get logged.
'''

import logging
from enum import Enum

logger = logging.getLogger(__name__)

class ErrorKind(Enum):
    SIGNATURE_INVALID = "signature_invalid"
    API_ERROR = "api_error"
    DELIVERY_AGGREGATE = "delivery_aggregate"
    UNKNOWN = "unknown"

class ValidationError(Exception):
    '''
    Raised when validation has errors
    '''
    def __init__(self, message):
        self.message = message
        super().__init__(self.message)

class ApiError(Exception):
    '''
    Raised when a Github API call returns an error response.
    '''
    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"Status: {status}. Message: {message}")

class DeliveryAggregateError(Exception):
    '''
    Raised by the dispatcher when one or more handlers
    failed for a single delivery.
    '''
    def __init__(self, event, errors: list[Exception]):
        self.event = event
        self.errors = list(errors)
        super().__init__(f"{len(self.errors)} handler(s) failed for {event}")

def error_kind(error: BaseException) -> ErrorKind:
    if isinstance(error, ValidationError):
        return ErrorKind.SIGNATURE_INVALID
    if isinstance(error, ApiError):
        return ErrorKind.API_ERROR
    if isinstance(error, DeliveryAggregateError):
        return ErrorKind.DELIVERY_AGGREGATE
    return ErrorKind.UNKNOWN

def log_error(error: BaseException):
    '''
    Logs an error according to its kind.
    '''
    kind = error_kind(error)
    if kind is ErrorKind.SIGNATURE_INVALID:
        logger.warning("Invalid signature: %s", error.message)
    elif kind is ErrorKind.API_ERROR:
        logger.error("Error! Status: %s. Message: %s", error.status, error.message)
    elif kind is ErrorKind.DELIVERY_AGGREGATE:
        logger.error("Error processing request: %s", error.event)
        for inner in error.errors:
            logger.error("Handler failure: %r", inner, exc_info=inner)
    elif kind is ErrorKind.UNKNOWN:
        logger.error("%r", error, exc_info=error)
    else:
        raise AssertionError(f"unhandled error kind {kind}")
