"""Exception types shared by the service layer."""

from typing import Optional


class ServiceError(Exception):
    """Base class for failures of an upstream hosted service."""


class GenerationError(ServiceError):
    """The generation model call failed."""


class StoreError(ServiceError):
    """A document store call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OverviewNotFoundError(StoreError):
    """No document exists under the requested overview id."""

    def __init__(self, overview_id: str):
        super().__init__(f"Overview not found: {overview_id}", status_code=404)
        self.overview_id = overview_id


class WriteConflictError(StoreError):
    """The document changed between read and write."""

    def __init__(self, overview_id: str):
        super().__init__(
            f"Overview {overview_id} was modified by another writer",
            status_code=409,
        )
        self.overview_id = overview_id
