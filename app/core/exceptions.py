"""
Custom exceptions for the walk generation backend.

Each failure mode of route generation and live tracking is a distinct,
inspectable exception type carrying a stable error code, a user-facing
message and the HTTP status it maps to.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for the application."""

    # Route generation
    NO_CANDIDATES = "NO_CANDIDATES"
    SOURCE_UNAVAILABLE = "SOURCE_UNAVAILABLE"
    ROUTING_UNAVAILABLE = "ROUTING_UNAVAILABLE"
    ENRICHMENT_UNAVAILABLE = "ENRICHMENT_UNAVAILABLE"
    INVALID_PREFERENCES = "INVALID_PREFERENCES"

    # Live tracking
    LOCATION_UNAVAILABLE = "LOCATION_UNAVAILABLE"
    INVALID_SESSION_STATE = "INVALID_SESSION_STATE"

    # Saved walks
    WALK_NOT_FOUND = "WALK_NOT_FOUND"

    # Generic errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class WalkException(Exception):
    """Base exception for the walk generation backend."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code


class NoCandidatesError(WalkException):
    """Raised when a POI search yields nothing usable around the origin."""

    def __init__(self, radius_m: float, interests: Optional[list] = None):
        super().__init__(
            message="No places found nearby. Widen your filters or increase duration.",
            error_code=ErrorCode.NO_CANDIDATES,
            details={"radius_m": round(radius_m, 1), "interests": interests or []},
            status_code=404
        )


class SourceUnavailableError(WalkException):
    """Raised when an external data source cannot be queried (transport failure)."""

    def __init__(self, source: str, reason: Optional[str] = None):
        details = {"source": source}
        if reason:
            details["reason"] = reason
        super().__init__(
            message=f"Could not reach {source}. Please try again.",
            error_code=ErrorCode.SOURCE_UNAVAILABLE,
            details=details,
            status_code=503
        )


class RoutingUnavailableError(WalkException):
    """
    Raised by routing clients when no walkable path can be obtained.

    Never surfaced to end users: the route builder answers it with a
    straight-line polyline.
    """

    def __init__(self, reason: str):
        super().__init__(
            message=f"Walking route unavailable: {reason}",
            error_code=ErrorCode.ROUTING_UNAVAILABLE,
            details={"reason": reason},
            status_code=503
        )


class EnrichmentUnavailableError(WalkException):
    """Raised by enrichment lookups that failed at the transport level."""

    def __init__(self, name: str, reason: str):
        super().__init__(
            message=f"Enrichment for '{name}' unavailable: {reason}",
            error_code=ErrorCode.ENRICHMENT_UNAVAILABLE,
            details={"name": name, "reason": reason},
            status_code=503
        )


class LocationUnavailableError(WalkException):
    """Raised when no position fix can be obtained."""

    def __init__(self, reason: str = "GPS signal lost"):
        super().__init__(
            message=f"Location unavailable: {reason}",
            error_code=ErrorCode.LOCATION_UNAVAILABLE,
            details={"reason": reason},
            status_code=503
        )


class InvalidPreferencesError(WalkException):
    """Raised when route preferences are outside their allowed values."""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_PREFERENCES,
            details={"field": field},
            status_code=422
        )


class RouteGenerationError(WalkException):
    """
    Raised when a route cannot be built.

    Keeps the underlying failure as ``reason`` and reuses its code,
    message and status so callers can still tell "found nothing" from
    "try again".
    """

    def __init__(self, reason: WalkException):
        super().__init__(
            message=reason.message,
            error_code=reason.error_code,
            details=dict(reason.details),
            status_code=reason.status_code
        )
        self.reason = reason


class SessionStateError(WalkException):
    """Raised when a walk session command is not valid in the current state."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_SESSION_STATE,
            details=details,
            status_code=409
        )


class WalkNotFoundError(WalkException):
    """Raised when a saved walk cannot be found."""

    def __init__(self, share_id: str):
        super().__init__(
            message="Walk not found or is private",
            error_code=ErrorCode.WALK_NOT_FOUND,
            details={"share_id": share_id},
            status_code=404
        )
