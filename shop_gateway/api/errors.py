"""Map domain exceptions to HTTP responses at the request boundary"""

from fastapi import HTTPException
from shop_gateway.domain.exceptions import (
    DomainException,
    ValidationError,
    InvalidPaymentError,
    NotFoundError,
    InvalidOrderStateError,
    RemoteOperationError,
    AuthenticationError,
)

STATUS_BY_EXCEPTION = [
    (ValidationError, 422),
    (InvalidPaymentError, 422),
    (NotFoundError, 404),
    (InvalidOrderStateError, 409),
    (AuthenticationError, 401),
    (RemoteOperationError, 502),
]


def to_http_exception(exc: DomainException) -> HTTPException:
    """User-facing error; store failures get a generic message"""
    for exc_type, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            if exc_type is RemoteOperationError:
                return HTTPException(status_code=status_code, detail="Operation failed, please try again")
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail="Internal server error")
