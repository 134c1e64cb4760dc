"""
Custom Exceptions for the Match Engine

Hierarchical exception classes for proper error handling across layers.
"""

from typing import Optional, Dict, Any, List


class MatchEngineError(Exception):
    """Base exception for all Match Engine errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ValidationError(MatchEngineError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, str]]] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if errors:
            details["errors"] = errors
        super().__init__(message, details, original_error)
        self.errors = errors or []


class DatabaseError(MatchEngineError):
    """Raised when database operations fail."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table
        super().__init__(message, details, original_error)


class NotFoundError(DatabaseError):
    """Raised when a requested resource is not found."""
    pass


class ProfileNotFoundError(NotFoundError):
    """
    Raised when a student has no academic profile yet.

    Distinct from a score of zero: matches cannot be computed at all.
    """

    def __init__(self, student_id: str):
        super().__init__(
            f"No academic profile found for student {student_id}",
            operation="select",
            table="student_academic_profiles",
        )
        self.student_id = student_id


class CacheBackendError(MatchEngineError):
    """Raised when the cache backend cannot serve a request."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        key: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if key:
            details["key"] = key
        super().__init__(message, details, original_error)


class PrecomputeError(MatchEngineError):
    """Raised inside a background precompute job; never leaves the queue."""

    def __init__(
        self,
        message: str,
        student_id: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if student_id:
            details["student_id"] = student_id
        super().__init__(message, details, original_error)


class ConfigurationError(MatchEngineError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(message, details, original_error)
