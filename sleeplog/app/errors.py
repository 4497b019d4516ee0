"""Error taxonomy for sleep-log operations."""

from __future__ import annotations


class SleepLogError(Exception):
    """Base class for errors surfaced to callers."""


class NoIdentityError(SleepLogError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, message: str = "No user is signed in.") -> None:
        super().__init__(message)


class StoreError(SleepLogError):
    """An event-store read, write or delete failed. The original error is kept as ``cause``."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class DeletionError(SleepLogError):
    """One or more deletes issued by a delete-all failed."""

    def __init__(self, cause: BaseException, failed: int, total: int) -> None:
        super().__init__(f"Failed to delete {failed} of {total} sleep times: {cause}")
        self.cause = cause
        self.failed = failed
        self.total = total


__all__ = ["SleepLogError", "NoIdentityError", "StoreError", "DeletionError"]
