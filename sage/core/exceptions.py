"""Custom exceptions for Sage."""

from typing import Any, Optional


class SageError(Exception):
    """Base exception for Sage."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ExtractionMiss(SageError):
    """No ingredient container or marker was found. Expected, not a failure."""

    def __init__(
        self,
        extractor: str,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(f"No ingredient block found by {extractor}", context)
        self.extractor = extractor


class ValidationRejection(SageError):
    """Candidate text failed a gatekeeping rule."""

    def __init__(
        self,
        reason: str,
        dropped: Optional[list[tuple[str, str]]] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(f"Candidate rejected: {reason}", context)
        self.reason = reason
        self.dropped = dropped or []


class NetworkFailure(SageError):
    """Fetch failed, timed out, or returned an unusable page."""

    def __init__(
        self,
        url: str,
        reason: str,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(f"Fetch failed for {url}: {reason}", context)
        self.url = url
        self.reason = reason


class BotProtectionDetected(NetworkFailure):
    """Challenge/CAPTCHA page served instead of the product page."""

    def __init__(
        self,
        url: str,
        signal: str,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(url, f"bot protection ({signal})", context)
        self.signal = signal


class IdentityMismatch(SageError):
    """Page identity scored below the configured threshold."""

    def __init__(
        self,
        score: float,
        threshold: float,
        warnings: Optional[list[str]] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        message = f"Identity score {score:.2f} below threshold {threshold:.2f}"
        super().__init__(message, context)
        self.score = score
        self.threshold = threshold
        self.warnings = warnings or []


class ClassificationFailure(SageError):
    """External model collaborator failed. Callers degrade to a local fallback."""

    def __init__(
        self,
        component: str,
        error: str,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(f"{component} failed: {error}", context)
        self.component = component
        self.error = error
