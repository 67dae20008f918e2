"""
Exception hierarchy for the triangle route scanner.

Only InvalidInput and ConfigError abort a scan. Venue errors are caught by the
simulation engine and folded into the run statistics.
"""

from typing import Any, Dict, Optional


class TriScanError(Exception):
    """Base exception for all scanner related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class InvalidInput(TriScanError):
    """Raised for malformed run inputs (amounts, triangles, budgets)."""

    pass


class InvalidDecimal(InvalidInput):
    """Raised when a decimal string cannot be converted to integer units."""

    def __init__(
        self,
        message: str,
        value: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.value = value


class ConfigError(TriScanError):
    """Raised when config is invalid or missing required fields."""

    pass


class RegistryError(ConfigError):
    """Raised when a token registry or preference file fails validation."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.path = path


class VenueError(TriScanError):
    """Raised when a venue adapter cannot produce a quote."""

    def __init__(
        self,
        message: str,
        venue: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.venue = venue


class ExpectedVenueRejection(VenueError):
    """
    A venue rejected a speculative quote mode that does not apply to the pair.

    Counted as a quote attempt but not as a failure unless verbose
    diagnostics are enabled.
    """

    pass
