"""Domain errors raised by the catalog services.

They are HTTPExceptions so a service can raise them straight through the
endpoint, exactly like the rest of the API raises HTTP errors.
"""

from fastapi import HTTPException, status


class CatalogError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class NotFoundError(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(CatalogError):
    status_code = status.HTTP_409_CONFLICT


class ValidationError(CatalogError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class TierValidationError(ValidationError):
    """All violated tier rules at once, not just the first one."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class ReferentialIntegrityError(CatalogError):
    """The operation would leave referential data inconsistent."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
