"""
Custom exceptions for agendakit.

This module defines the exception hierarchy shared by the store client,
the sync engine, the public reader and the CLI.

Exception Hierarchy:
    AgendaError (base)
    ├── ValidationError (required input missing before any network call)
    ├── FetchError (transport failure or non-success response)
    └── ConfirmationDeclined (destructive action not confirmed)

Example:
    >>> from agendakit.core.store.exceptions import FetchError
    >>> try:
    ...     raise FetchError("getEvent", "Event not found", event_id="ev-1")
    ... except FetchError as e:
    ...     print(f"{e.action} failed: {e}")
    ...     print(f"Context: {e.context}")
"""


class AgendaError(Exception):
    """
    Base exception for all agendakit errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        """
        Initialize an agenda error with message and context.

        Args:
            message: Human-readable error message
            **context: Additional context as keyword arguments
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class ValidationError(AgendaError):
    """
    Raised when a required field is missing or empty.

    Always raised before a request is issued, so a ValidationError
    guarantees that the store was not touched.

    Attributes:
        field: Name of the offending input field
    """

    def __init__(self, field: str, message: str, **context: object) -> None:
        super().__init__(message, field=field, **context)
        self.field = field


class FetchError(AgendaError):
    """
    Exception for failed calls to the agenda store.

    Covers transport errors (connection refused, timeouts), non-2xx
    responses, undecodable bodies, and bodies in which the script reports
    a failure of its own. The underlying httpx exception, when there is
    one, is preserved via ``__cause__``.

    Example:
        >>> import httpx
        >>> try:
        ...     raise httpx.ConnectError("Connection refused")
        ... except httpx.ConnectError as e:
        ...     raise FetchError("getEvents", "Failed to reach agenda store") from e
    """

    def __init__(self, action: str, message: str, **context: object) -> None:
        """
        Initialize a fetch error.

        Args:
            action: Store action that failed (e.g. "getEventDays")
            message: Human-readable error message
            **context: Additional context (status_code, event_id, etc.)
        """
        super().__init__(message, action=action, **context)
        self.action = action

    def __str__(self) -> str:
        """Return string representation with the action name."""
        return f"[{self.action}] {self.message}"


class ConfirmationDeclined(AgendaError):
    """Raised when the user declines a destructive action."""

    def __init__(self, action: str, target_id: str) -> None:
        super().__init__(f"{action} cancelled", action=action, target_id=target_id)
        self.action = action
        self.target_id = target_id


__all__ = [
    "AgendaError",
    "ValidationError",
    "FetchError",
    "ConfirmationDeclined",
]
