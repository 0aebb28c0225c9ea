"""Error classifier for determining retry behavior.

This module provides the ErrorClassifier class that decides whether the
cause of a failed remote create is worth retrying. The orchestrator uses
it to set ``CreationFailure.retryable`` so hosts can choose between a
retry-inducing and a terminal response.

Example:
    >>> from approval_core.errors.error_classifier import ErrorClassifier
    >>>
    >>> classifier = ErrorClassifier()
    >>> classifier.retryable(ConnectionError("reset by peer"))
    True
    >>> classifier.retryable(ValueError("bad form value"))
    False
"""

from __future__ import annotations

from . import (
    AmbiguousTypeResolutionError,
    ConfigurationError,
    InvalidHandlerError,
    PreProcessError,
    UnregisteredHandlerError,
    ValidationError,
)


class ErrorClassifier:
    """Classifies exceptions for retry behavior.

    Determines whether an exception should trigger a retry based on:
    1. The exception's own `retryable` attribute (if it has one)
    2. Known permanent error classes (never retry)
    3. Known retryable error classes (always retry)
    4. Default behavior (configurable)

    Unknown errors default to retryable so that a transient failure in a
    collaborator is not reported to the caller as final.
    """

    # Exceptions that are ALWAYS permanent (never retry)
    PERMANENT_ERROR_CLASSES: tuple[type[BaseException], ...] = (
        ValidationError,
        PreProcessError,
        UnregisteredHandlerError,
        AmbiguousTypeResolutionError,
        InvalidHandlerError,
        ConfigurationError,
        # Standard Python errors that indicate bad input/code
        ValueError,
        TypeError,
        KeyError,
        AttributeError,
        IndexError,
        AssertionError,
        NotImplementedError,
        PermissionError,
    )

    # Exceptions that are ALWAYS retryable
    RETRYABLE_ERROR_CLASSES: tuple[type[BaseException], ...] = (
        ConnectionError,
        TimeoutError,
        BlockingIOError,
        InterruptedError,
        OSError,
    )

    def __init__(self, *, default_retryable: bool = True) -> None:
        """Initialize the classifier.

        Args:
            default_retryable: Default behavior for unknown exceptions.
        """
        self._default_retryable = default_retryable

    def retryable(self, exception: BaseException) -> bool:
        """Determine if an exception should trigger a retry.

        Classification order:
        1. If exception has a boolean `retryable` attribute, use that
        2. Check against PERMANENT_ERROR_CLASSES (return False)
        3. Check against RETRYABLE_ERROR_CLASSES (return True)
        4. Return default_retryable

        Args:
            exception: The exception to classify

        Returns:
            True if the error should be retried, False otherwise
        """
        explicit = getattr(exception, "retryable", None)
        if isinstance(explicit, bool):
            return explicit

        # PermissionError is an OSError; permanent classes are checked first.
        if isinstance(exception, self.PERMANENT_ERROR_CLASSES):
            return False

        if isinstance(exception, self.RETRYABLE_ERROR_CLASSES):
            return True

        return self._default_retryable

    def permanent(self, exception: BaseException) -> bool:
        """Inverse of retryable()."""
        return not self.retryable(exception)


__all__ = ["ErrorClassifier"]
