from fastapi import status


class ShopError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(ShopError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class InsufficientStockError(ValidationError):
    message = "Not enough stock available"


class AuthError(ShopError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid credentials"


class NotFoundError(ShopError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class StoreError(ShopError):
    """Underlying query failure; the message carries the raw store error."""

    @classmethod
    def from_exception(cls, exc):
        orig = getattr(exc, "orig", None)
        return cls(str(orig) if orig is not None else str(exc))
