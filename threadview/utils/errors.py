"""Centralized error types and handling helpers."""

from enum import Enum
from typing import Any, Dict, Optional

from threadview.utils.logging import get_logger

_logger = None


def _get_logger():
    """Get logger with lazy initialisation."""
    global _logger
    if _logger is None:
        _logger = get_logger(__name__)
    return _logger


## Error Categories


class ErrorCategory(Enum):
    """Categories of errors for better handling."""

    NETWORK = "network"
    PROTOCOL = "protocol"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    FILE_SYSTEM = "file_system"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


## Custom Exceptions


class ThreadviewError(Exception):
    """Base exception for all threadview errors."""

    category = ErrorCategory.UNKNOWN
    user_message = "An error occurred"

    def __init__(
        self, message: str | None = None, details: Dict[str, Any] | None = None
    ):
        """Initialise ThreadviewError with optional message and details."""
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error details to a dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }


## Network Errors


class NetworkError(ThreadviewError):
    """Base exception for network-related errors."""

    category = ErrorCategory.NETWORK
    user_message = "A network error occurred"


class NetworkTimeoutError(NetworkError):
    """Exception for network timeout errors."""

    user_message = "The connection timed out"


## Protocol Errors


class ProtocolError(ThreadviewError):
    """Base exception for malformed or rejected JMAP exchanges."""

    category = ErrorCategory.PROTOCOL
    user_message = "The server sent an unexpected response"


class MethodError(ProtocolError):
    """A JMAP method call answered with an ``error`` response."""

    user_message = "The server rejected a request"

    def __init__(self, error_type: str, description: Optional[str] = None, method: str = ""):
        self.error_type = error_type
        details = {"type": error_type, "method": method}
        if description:
            details["description"] = description
        super().__init__(error_type, details)


class MailboxNotFoundError(ProtocolError):
    """A mailbox with a required role does not exist on the server."""

    user_message = "Mailbox not found"


## Authentication Errors


class AuthenticationError(ThreadviewError):
    """Base exception for authentication-related errors."""

    category = ErrorCategory.AUTHENTICATION
    user_message = "An authentication error occurred"


class UnauthorizedError(AuthenticationError):
    """The server refused the supplied credentials."""

    user_message = "Unauthorized"


## Validation Errors


class ValidationError(ThreadviewError):
    """Base exception for validation-related errors."""

    category = ErrorCategory.VALIDATION
    user_message = "Invalid input"


class UsageError(ValidationError):
    """Bad command line invocation."""

    user_message = "Invalid arguments"


## File System Errors


class FileSystemError(ThreadviewError):
    """Base exception for file system-related errors."""

    category = ErrorCategory.FILE_SYSTEM
    user_message = "A file system error occurred"


## Configuration Errors


class ConfigurationError(ThreadviewError):
    """Base exception for configuration-related errors."""

    category = ErrorCategory.CONFIGURATION
    user_message = "A configuration error occurred"


class MissingConfigError(ConfigurationError):
    """Exception for missing configuration settings."""

    user_message = "Missing configuration settings"


class InvalidConfigError(ConfigurationError):
    """Exception for invalid configuration settings."""

    user_message = "Invalid configuration settings"


# Errors after which no further request on the session can succeed.
FATAL_SESSION_ERRORS = (UnauthorizedError, MethodError)


## Error Handler


class ErrorHandler:
    """Centralized error handling and logging."""

    @staticmethod
    def handle(
        error: Exception, context: str = "", log_traceback: bool = True
    ) -> Dict[str, Any]:
        """Handle errors with logging and user-friendly message."""
        if isinstance(error, ThreadviewError):
            _get_logger().error(f"{context}: {error.message}", extra={"context": error.details})
            if log_traceback:
                _get_logger().exception(error)
            return error.to_dict()
        else:
            _get_logger().error(f"{context}: {str(error)}")
            if log_traceback:
                _get_logger().exception(error)
            return {
                "error_type": "UnknownError",
                "category": ErrorCategory.UNKNOWN.value,
                "message": str(error),
                "details": {"context": context},
            }


## Context Manager for Error Handling


class error_context:
    """Context manager that logs an exception and optionally swallows it."""

    def __init__(self, context: str = "", reraise: bool = True, log_traceback: bool = True):
        self.context = context
        self.reraise = reraise
        self.log_traceback = log_traceback
        self.error = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_tb):
        if exc_type is None:
            return False

        self.error = ErrorHandler.handle(exc_value, self.context, self.log_traceback)

        return not self.reraise


## Utility Functions


def format_error_message(error: Exception) -> str:
    """Format an error message for display."""
    if isinstance(error, ThreadviewError):
        return error.message
    else:
        return str(error) or "An unexpected error occurred - check logs for details."
