"""
Custom exceptions for Label Station.

Exception Hierarchy:
    LabelStationError (base)
    ├── CatalogLoadError    - Existing product file could not be read
    ├── InvalidSpecError    - Label dimensions leave no printable area (startup failure)
    ├── EncodeError         - Payload cannot be encoded in the barcode symbology
    ├── RenderError         - Label rendering failed (wraps EncodeError)
    ├── NoLabelError        - Print requested before anything was scanned
    └── PrintSubsystemError - Printer/spooler failure, never retried

Usage:
    InvalidSpecError at startup causes the app to fail fast.
    Runtime errors abort only the current operation; callers show a message
    and keep the previous state.

Note:
    A code that is not in the catalog is NOT an error. Lookups return None.
"""

from typing import Optional, Dict, Any


class LabelStationError(Exception):
    """
    Base exception for all Label Station errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CATALOG ERRORS
# =============================================================================

class CatalogLoadError(LabelStationError):
    """
    The product file exists but could not be opened, read or decoded.

    A missing product file is NOT this error - it yields an empty catalog.

    Typical causes:
    - Path points to a directory
    - Permission denied
    - File is not UTF-8
    """

    def __init__(self, source: str, reason: str):
        message = f"Could not load product catalog from {source}: {reason}"
        details = {
            "source": source,
            "resolution": "Check that the product file is a readable UTF-8 CSV"
        }
        super().__init__(message, details)
        self.source = source
        self.reason = reason


# =============================================================================
# LABEL ERRORS
# =============================================================================

class InvalidSpecError(LabelStationError):
    """
    Label configuration is unusable.

    Raised for non-positive dimensions or DPI, and when the page margin
    leaves no positive imageable area. The app refuses to start with an
    invalid spec rather than clamping it.
    """

    def __init__(
        self,
        message: str,
        width_mm: Optional[float] = None,
        height_mm: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if width_mm is not None:
            error_details["width_mm"] = width_mm
        if height_mm is not None:
            error_details["height_mm"] = height_mm
        super().__init__(message, error_details)
        self.width_mm = width_mm
        self.height_mm = height_mm


class EncodeError(LabelStationError):
    """
    Text cannot be encoded in the configured barcode symbology.

    Raised for empty payloads, characters outside the symbology's set,
    and payloads too long for the requested pixel box.
    """

    def __init__(self, message: str, payload: str = "", symbology: str = "code128"):
        details = {"payload": payload, "symbology": symbology}
        super().__init__(message, details)
        self.payload = payload
        self.symbology = symbology


class RenderError(LabelStationError):
    """
    A label could not be rendered.

    Wraps EncodeError (available as __cause__) or invalid layout input.
    No partial image is ever returned alongside this error.
    """

    def __init__(self, message: str, code: str = "", details: Optional[Dict[str, Any]] = None):
        error_details = details or {}
        if code:
            error_details["code"] = code
        super().__init__(message, error_details)
        self.code = code


class NoLabelError(LabelStationError):
    """Print was requested before any label was scanned or previewed."""

    def __init__(self, message: str = "No label to print. Scan first."):
        super().__init__(message)


# =============================================================================
# PRINT ERRORS
# =============================================================================

class PrintSubsystemError(LabelStationError):
    """
    The printer or spooler reported a failure.

    The original error is chained as __cause__. Label Station never retries;
    resubmission is left to the caller.
    """

    def __init__(self, message: str, destination: str = "", job_name: str = ""):
        details = {}
        if destination:
            details["destination"] = destination
        if job_name:
            details["job_name"] = job_name
        details["resolution"] = "Check the printer and resubmit the label"
        super().__init__(message, details)
        self.destination = destination
        self.job_name = job_name
