# core/errors.py

from typing import List, Optional


def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: Supabase Auth / GoTrue / PostgREST errors
    message = getattr(error, "message", None)
    if message:
        return str(message)

    # Case 2: errors with args (common)
    if getattr(error, "args", None):
        return str(error.args[0])

    # Case 3: plain string fallback
    return str(error) or "Unknown Supabase error"


# =====================================================
# Access control error taxonomy
# =====================================================

class AccessControlError(Exception):
    """Base class for every error raised by the permission engine."""


class CatalogError(AccessControlError):
    """The static module catalog is malformed."""


class FetchFailure(AccessControlError):
    """A read from the persistence collaborator failed."""

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation}: {detail}")


class PersistFailure(AccessControlError):
    """A write to the persistence collaborator failed. Nothing was saved."""

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation}: {detail}")


class InvalidGrantAttempt(AccessControlError):
    """
    A delegation request was rejected before persistence.

    `violations` holds one {"key", "reason"} entry per rejected key so the
    editor can show every problem at once.
    """

    def __init__(self, message: str, violations: Optional[List[dict]] = None):
        self.message = message
        self.violations = violations or []
        super().__init__(message)

    def as_detail(self) -> dict:
        return {"message": self.message, "violations": self.violations}


def fetch_failure(error: Exception, operation: str) -> FetchFailure:
    """Wrap a Supabase read error. Returns (doesn't raise)."""
    from core.logging_config import logger

    detail = extract_supabase_error(error)
    logger.warning(f"{operation} failed: {detail}")
    return FetchFailure(operation, detail)


def persist_failure(error: Exception, operation: str) -> PersistFailure:
    """Wrap a Supabase write error. Returns (doesn't raise)."""
    from core.logging_config import logger

    detail = extract_supabase_error(error)
    logger.error(f"{operation} failed: {detail}")
    return PersistFailure(operation, detail)
