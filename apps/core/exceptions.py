"""
Custom exceptions for the Bazaar commerce backend
"""


class BazaarException(Exception):
    """Base exception for all Bazaar errors"""
    status_code = 500

    def __init__(self, message: str, code: str = "BAZAAR_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ResourceNotFoundException(BazaarException):
    """Exception raised when a requested record does not exist"""
    status_code = 404

    def __init__(self, resource: str, identifier=None):
        self.resource = resource
        self.identifier = identifier
        message = f"{resource} not found"
        super().__init__(message=message, code="NOT_FOUND")


class ValidationException(BazaarException):
    """Exception raised for validation errors"""
    status_code = 400

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(
            message=message,
            code="VALIDATION_ERROR"
        )


class ConflictException(BazaarException):
    """Exception raised when a write collides with existing data"""
    status_code = 409

    def __init__(self, message: str):
        super().__init__(message=message, code="CONFLICT")


class InsufficientStockException(ConflictException):
    """Exception raised when a dispatch asks for more units than are on hand"""
    def __init__(self, product_name: str, requested: int, available: int):
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            message=(
                f"Insufficient stock for {product_name}: "
                f"requested {requested}, available {available}"
            )
        )
        self.code = "INSUFFICIENT_STOCK"


class AuthenticationException(BazaarException):
    """Exception raised when credentials or tokens are rejected"""
    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message=message, code="AUTHENTICATION_ERROR")
