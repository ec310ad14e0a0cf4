# errors.py
from fastapi import HTTPException, status


class ValidationError(HTTPException):
    def __init__(self, detail: str = "Invalid request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class AddressNotFoundError(ValidationError):
    """The geocoding provider answered, but with zero candidates."""

    def __init__(self, detail: str = "Unable to fetch coordinates for the provided address"):
        super().__init__(detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str = "Shop already exists"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Shop not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AuthError(HTTPException):
    """
    Bad credentials are a client error (400); a missing, malformed, tampered
    or expired bearer token is 401. Callers never learn which token check failed.
    """

    def __init__(self, detail: str = "Missing or invalid token", status_code: int = status.HTTP_401_UNAUTHORIZED):
        headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ProviderError(HTTPException):
    def __init__(self, detail: str = "An error occurred while fetching coordinates"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class InternalError(HTTPException):
    def __init__(self, detail: str = "Internal Server Error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
