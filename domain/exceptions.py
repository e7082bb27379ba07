"""Domain Errors"""


class DomainError(Exception):
    """Base class for user-facing domain failures"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """Referenced entity id does not resolve"""


class InvalidStateError(DomainError):
    """Entity status does not allow the requested transition"""


class ValidationError(DomainError):
    """Request data breaks a business rule"""
