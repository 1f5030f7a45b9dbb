"""
Custom exceptions for SchemaScout.
Separates caller-initiated cancellation from genuine query failures.
"""

from typing import Any, Optional


class SchemaScoutError(Exception):
    """Base exception for all SchemaScout errors."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


class ConfigurationError(SchemaScoutError):
    """Raised when configuration is invalid or missing."""

    pass


class QueryError(SchemaScoutError):
    """Raised when a SPARQL request fails (HTTP, network or malformed response)."""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details.update({
            "query": query,
            "endpoint": endpoint,
            "status_code": status_code,
        })
        super().__init__(message, details=details, **kwargs)
        self.query = query
        self.endpoint = endpoint
        self.status_code = status_code


class QueryCancelledError(SchemaScoutError):
    """
    Raised when a request is abandoned through its cancellation token.

    Callers treat this as "abandoned", never as "errored".
    """

    def __init__(self, message: str = "Query cancelled", query: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["query"] = query
        super().__init__(message, details=details, **kwargs)
        self.query = query
