# Overview: Domain error taxonomy shared by services and routes.

"""
Every error raised by the service layer derives from StorefrontError.

Routes translate these into {"error": message} responses using the class's
status_code; anything else is treated as an unexpected server error.
Messages are short and safe to show to the admin UI.
"""


class StorefrontError(Exception):
    """Base class for expected, user-facing failures."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationFailed(StorefrontError):
    """Malformed request shape or missing required field."""
    status_code = 400


class InvalidIdentifier(StorefrontError):
    status_code = 400


class NotFound(StorefrontError):
    status_code = 404


class ProductNotFound(NotFound):
    pass


class SaleNotFound(NotFound):
    pass


class InsufficientStock(StorefrontError):
    status_code = 400

    def __init__(self, product_name: str, details: dict | None = None):
        super().__init__(f"Insufficient stock for: {product_name}", details)
        self.product_name = product_name


class CannotReturnAReturn(StorefrontError):
    status_code = 400

    def __init__(self):
        super().__init__("Cannot return a return")


class AlreadyReturned(StorefrontError):
    status_code = 400

    def __init__(self):
        super().__init__("Sale already returned")


class Conflict(StorefrontError):
    """409-level business rule conflict (e.g., duplicate SKU)."""
    status_code = 409


class Forbidden(StorefrontError):
    status_code = 403


class StorageUnavailable(StorefrontError):
    """Generic backend failure; message never carries driver details."""
    status_code = 500

    def __init__(self, message: str = "Server error"):
        super().__init__(message)


def parse_identifier(value, *, label: str = "ID") -> int:
    """
    Turn a path/body identifier into a primary key.

    Accepts ints and strings of plain digits; everything else is malformed.
    """
    if isinstance(value, bool):
        raise InvalidIdentifier(f"Invalid {label}: {value}")
    if isinstance(value, int):
        if value <= 0:
            raise InvalidIdentifier(f"Invalid {label}: {value}")
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isascii() and stripped.isdigit() and int(stripped) > 0:
            return int(stripped)
    raise InvalidIdentifier(f"Invalid {label}: {value}")
