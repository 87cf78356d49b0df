from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    INVALID_CREDENTIALS = ErrorDefinition(
        "INVALID_CREDENTIALS",
        "Invalid email or password.",
        status.HTTP_401_UNAUTHORIZED,
    )
    EMAIL_ALREADY_REGISTERED = ErrorDefinition(
        "EMAIL_ALREADY_REGISTERED",
        "This email is already registered.",
        status.HTTP_409_CONFLICT,
    )
    REGISTRATION_FAILED = ErrorDefinition(
        "REGISTRATION_FAILED",
        "Failed to register. Please try again.",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    PROFILE_NOT_FOUND = ErrorDefinition(
        "PROFILE_NOT_FOUND",
        "User profile not found or incomplete. Please contact support.",
        status.HTTP_403_FORBIDDEN,
    )
    UNKNOWN_ROLE = ErrorDefinition(
        "UNKNOWN_ROLE",
        "Unknown user role.",
        status.HTTP_403_FORBIDDEN,
    )
    STORE_NOT_FOUND = ErrorDefinition(
        "STORE_NOT_FOUND",
        "Invalid Store ID. Please check with your store admin.",
        status.HTTP_404_NOT_FOUND,
    )
    STORE_SCOPE_MISMATCH = ErrorDefinition(
        "STORE_SCOPE_MISMATCH",
        "Store ID does not match your profile. Please check and try again.",
        status.HTTP_403_FORBIDDEN,
    )
    SESSION_SCOPE_MISSING = ErrorDefinition(
        "SESSION_SCOPE_MISSING",
        "User or store information is missing.",
        status.HTTP_403_FORBIDDEN,
    )
    PRODUCT_NOT_FOUND = ErrorDefinition(
        "PRODUCT_NOT_FOUND",
        "Product not found.",
        status.HTTP_404_NOT_FOUND,
    )
    PRODUCT_SAVE_FAILED = ErrorDefinition(
        "PRODUCT_SAVE_FAILED",
        "Could not save product.",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    PRODUCT_DELETE_FAILED = ErrorDefinition(
        "PRODUCT_DELETE_FAILED",
        "Could not delete product.",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    PRODUCTS_UNAVAILABLE = ErrorDefinition(
        "PRODUCTS_UNAVAILABLE",
        "Could not fetch products.",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    SALES_UNAVAILABLE = ErrorDefinition(
        "SALES_UNAVAILABLE",
        "Could not fetch sales data.",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    CART_EMPTY = ErrorDefinition(
        "CART_EMPTY",
        "Cart is empty.",
        status.HTTP_400_BAD_REQUEST,
    )
    CART_ITEM_NOT_FOUND = ErrorDefinition(
        "CART_ITEM_NOT_FOUND",
        "Product is not in the cart.",
        status.HTTP_404_NOT_FOUND,
    )
    SALE_SUBMISSION_IN_PROGRESS = ErrorDefinition(
        "SALE_SUBMISSION_IN_PROGRESS",
        "A sale is already being recorded.",
        status.HTTP_409_CONFLICT,
    )
    SALE_RECORD_FAILED = ErrorDefinition(
        "SALE_RECORD_FAILED",
        "Could not record sale.",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    DOCUMENT_NOT_FOUND = ErrorDefinition(
        "DOCUMENT_NOT_FOUND",
        "Document not found",
        status.HTTP_404_NOT_FOUND,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)


class InputValidationError(AppError):
    """Local, pre-write validation failure; never reaches the backend."""

    def __init__(self, errors: list[dict], error: ErrorDefinition = ErrorCatalog.VALIDATION_ERROR):
        super().__init__(error, details={"errors": errors})
        self.errors = errors

    @classmethod
    def for_field(cls, field: str | None, message: str, error: ErrorDefinition = ErrorCatalog.VALIDATION_ERROR):
        return cls([{"field": field, "message": message}], error=error)


class AuthError(AppError):
    pass


class ScopeError(AppError):
    pass


class TransientBackendError(AppError):
    pass


class RedirectRequired(Exception):
    def __init__(self, location: str):
        self.location = location
        super().__init__(location)
