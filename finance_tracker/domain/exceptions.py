"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input rejected before any network or store call"""

    pass


class PaymentGatewayError(DomainException):
    """Payment gateway returned an error or is unavailable"""

    pass


class StoreError(DomainException):
    """Reading from or writing to the record store failed"""

    pass


class RecordNotFoundError(StoreError):
    """No record with that id exists for the current owner"""

    pass


class NotAuthenticatedError(DomainException):
    """Operation requires an owner identity and none is bound"""

    pass
