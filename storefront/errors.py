# storefront/errors.py
from fastapi import status


class StorefrontError(Exception):
    """Base error for every failure the core reports to a caller.

    ``kind`` is the machine-checkable tag rendered in error responses,
    ``status_code`` the HTTP status the boundary uses for it.
    """

    kind = "error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.kind

    def to_dict(self) -> dict:
        return {"success": False, "kind": self.kind, "message": self.message}


class InvalidInput(StorefrontError):
    kind = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidSignature(StorefrontError):
    kind = "invalid_signature"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidCredential(StorefrontError):
    kind = "invalid_credential"
    status_code = status.HTTP_401_UNAUTHORIZED


class Unauthorized(StorefrontError):
    kind = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDenied(StorefrontError):
    kind = "permission_denied"
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(StorefrontError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class DuplicateEmail(StorefrontError):
    kind = "duplicate_email"
    status_code = status.HTTP_409_CONFLICT


class EmptyCart(StorefrontError):
    kind = "empty_cart"
    status_code = status.HTTP_409_CONFLICT


class GatewayFailure(StorefrontError):
    kind = "gateway_failure"
    status_code = status.HTTP_502_BAD_GATEWAY


class StorageFailure(StorefrontError):
    kind = "storage_failure"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
