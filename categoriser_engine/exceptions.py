"""
Exceptions raised by the adaptive categoriser engine.
"""

from typing import Optional


class CategorisationError(Exception):
    """Base class for categoriser errors."""
    pass


class InvalidTransactionError(CategorisationError):
    """Raised when a transaction cannot be interpreted (missing or malformed fields)."""
    pass


class ComputationError(CategorisationError):
    """Raised when a pipeline stage fails while scoring a transaction."""

    def __init__(self, stage: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.cause = cause


class ModelVersionMismatchError(CategorisationError):
    """Raised when an imported model snapshot has an incompatible version or shape."""
    pass
