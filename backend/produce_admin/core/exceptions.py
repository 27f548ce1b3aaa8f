"""Custom exception classes for the application."""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )


class ValidationFailure(HTTPException):
    """A proposed hierarchy change was rejected locally, before any remote call."""

    def __init__(self, detail: str = "Invalid category move"):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )


class MutationInFlightError(HTTPException):
    def __init__(self, category_id):
        self.category_id = category_id
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Category {category_id} is already being moved",
        )


class MutationFailure(HTTPException):
    """The marketplace backend failed or refused a category write."""

    def __init__(self, detail: str = "Category update failed", upstream_status: int | None = None):
        self.upstream_status = upstream_status
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail,
        )


class StoreUnavailableError(HTTPException):
    def __init__(self, detail: str = "Categories could not be loaded"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
        )
