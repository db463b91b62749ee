"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Required field missing or out of range; raised before any write"""

    pass


class InvalidPaymentError(DomainException):
    """Settlement attempted with nothing paid"""

    pass


class NotFoundError(DomainException):
    """Requested record does not exist"""

    pass


class InvalidOrderStateError(DomainException):
    """Order status transition is not allowed"""

    pass


class RemoteOperationError(DomainException):
    """Data store rejected a read or write"""

    pass


class AuthenticationError(DomainException):
    """No active operator behind the request"""

    pass
