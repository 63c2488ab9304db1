"""Custom exceptions for the tax document resolver.

This module provides a hierarchy of exception classes for consistent error
handling across the resolution pipeline. All exceptions inherit from
TaxDocError, making it easy to catch all resolver-specific errors.

Example:
    try:
        fields = resolver.resolve(document, "W2")
    except UpstreamUnavailable as e:
        # Both the primary model and the read model failed
        logger.error("resolution_failed", error=str(e), **e.details)
    except TaxDocError as e:
        # Any other resolver error
        logger.error("resolution_error", error=str(e))
"""

from typing import Any, Optional


class TaxDocError(Exception):
    """Base exception for all resolver errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the error is potentially recoverable.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        """Initialize TaxDocError.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context about the error.
            recoverable: Whether the error is potentially recoverable through
                an alternative approach. Defaults to False.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class UpstreamError(TaxDocError):
    """Error raised when the document-understanding service call fails.

    Any remote failure that is not a "model/resource not found" signal
    aborts the whole resolution; no partial structured result is trusted.

    Attributes:
        model_id: The model identifier that was requested.
        operation: The remote operation being attempted.

    Example:
        >>> raise UpstreamError(
        ...     "Service returned 500",
        ...     model_id="prebuilt-tax.us.w2",
        ...     operation="analyze_document",
        ... )
        UpstreamError: Service returned 500
    """

    def __init__(
        self,
        message: str,
        *,
        model_id: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        """Initialize UpstreamError.

        Args:
            message: Human-readable error description.
            model_id: Identifier of the model the call was made with.
            operation: The remote operation being attempted.
            details: Optional dictionary with additional context.
            recoverable: Whether another model may still succeed.
        """
        super().__init__(message, details=details, recoverable=recoverable)
        self.model_id = model_id
        self.operation = operation

        if model_id:
            self.details["model_id"] = model_id
        if operation:
            self.details["operation"] = operation


class ModelNotFoundError(UpstreamError):
    """The requested model or resource does not exist on the service.

    This is the only remote failure the resolver recovers from, by
    switching to the full-text read model.
    """

    def __init__(
        self,
        message: str,
        *,
        model_id: Optional[str] = None,
        operation: Optional[str] = "analyze_document",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            model_id=model_id,
            operation=operation,
            details=details,
            recoverable=True,
        )


class UpstreamUnavailable(UpstreamError):
    """Both the primary model and the fallback read model failed.

    Attributes:
        primary_error: Message of the primary model failure.
        fallback_error: Message of the fallback model failure.
    """

    def __init__(
        self,
        message: str,
        *,
        primary_error: Optional[str] = None,
        fallback_error: Optional[str] = None,
        model_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            model_id=model_id,
            operation="analyze_document",
            details=details,
            recoverable=False,
        )
        self.primary_error = primary_error
        self.fallback_error = fallback_error

        if primary_error:
            self.details["primary_error"] = primary_error
        if fallback_error:
            self.details["fallback_error"] = fallback_error


class FieldValidationRejected(TaxDocError):
    """A candidate value captured by a pattern failed the field validator.

    Raised by validators and caught by the cascade, which moves on to the
    next pattern. It never escapes a resolution call.

    Attributes:
        field: The canonical field being extracted.
        value: The rejected raw capture.
        constraint: The rule that was violated.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=True)
        self.field = field
        self.value = value
        self.constraint = constraint

        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = value
        if constraint:
            self.details["constraint"] = constraint


class ConfigurationError(TaxDocError):
    """Error raised when configuration is invalid or missing.

    Attributes:
        config_key: The configuration key that is problematic.
        expected: Description of the expected value or format.

    Example:
        >>> raise ConfigurationError(
        ...     "Missing Document Intelligence endpoint",
        ...     config_key="TAXDOC_DI_ENDPOINT",
        ...     expected="https://<resource>.cognitiveservices.azure.com/",
        ... )
        ConfigurationError: Missing Document Intelligence endpoint
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.config_key = config_key
        self.expected = expected

        if config_key:
            self.details["config_key"] = config_key
        if expected:
            self.details["expected"] = expected


__all__ = [
    "TaxDocError",
    "UpstreamError",
    "ModelNotFoundError",
    "UpstreamUnavailable",
    "FieldValidationRejected",
    "ConfigurationError",
]
