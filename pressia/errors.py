from __future__ import annotations


class ValidationError(ValueError):
    """Rejected input; raised before anything is written."""


class NotFoundError(LookupError):
    pass


class StorageError(RuntimeError):
    pass
