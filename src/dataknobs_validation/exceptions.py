"""Custom exceptions for the validation package.

This module defines exception types for the validation package, built on
the common exception framework from dataknobs_common.

Validation failures themselves are data: they accumulate inside a
``Failure`` and are returned, never raised. The exceptions here cover the
few places where the algebra does raise:

- Programmer errors (``None`` or non-callable arguments, reading the first
  error of a ``Success``)
- The explicit bridge from accumulated errors to a raised fault
  (``Validation.if_present_throw``)
- Concurrent aggregation problems (a supplier raised, or the join timed out)
- Invalid configuration or serialized input

Example:
    ```python
    from dataknobs_common import DataknobsError
    from dataknobs_validation import of

    try:
        of("missing name", "bad email").raise_for_errors()
    except DataknobsError as e:
        logger.error(f"Error: {e}")
        if e.context:
            logger.error(f"Context: {e.context}")
    ```
"""

import builtins
from typing import Any, Iterable, Mapping

from dataknobs_common.exceptions import (
    ConfigurationError,
    DataknobsError,
    NotFoundError,
    OperationError,
    SerializationError,
    TimeoutError as BaseTimeoutError,
    ValidationError as BaseValidationError,
)


class InvalidArgumentError(DataknobsError, ValueError):
    """Raised when a combinator receives an unusable argument.

    Covers ``None`` mappers, predicates, actions, suppliers and "other"
    validations, non-callable suppliers, suppliers that return something
    other than a ``Validation``, and failures built from no errors. The
    check always happens before any caller code runs.

    Example:
        ```python
        raise InvalidArgumentError(
            "mapper is None",
            context={"operation": "map", "argument": "mapper"}
        )
        ```
    """

    pass


class EmptyValidationError(NotFoundError, LookupError):
    """Raised when the first error of a ``Success`` is requested.

    A ``Success`` holds no errors, so ``get()`` has no element to return.
    Use ``get_or_else`` or iterate when the validation may be a success.
    """

    def __init__(self, message: str = "Haven't any errors!") -> None:
        super().__init__(message, context={"operation": "get"})


class ValidationFailedError(BaseValidationError):
    """Default fault raised from a ``Failure`` by ``if_present_throw``.

    Attributes:
        errors: The full ordered tuple of accumulated errors.

    Example:
        ```python
        try:
            of("missing name", "bad email").raise_for_errors()
        except ValidationFailedError as e:
            e.errors
            # ('missing name', 'bad email')
        ```
    """

    def __init__(self, errors: Iterable[Any], message: str | None = None) -> None:
        self.errors = tuple(errors)
        if message is None:
            rendered = ", ".join(str(error) for error in self.errors)
            message = f"Validation failed with {len(self.errors)} error(s): {rendered}"
        super().__init__(
            message,
            context={"error_count": len(self.errors), "errors": list(self.errors)},
        )


class ParallelExecutionError(OperationError):
    """Raised when one or more suppliers of a parallel sequence raised.

    Every supplier is allowed to run to completion first; this error is
    raised only after the join, and carries every exception that occurred.

    Attributes:
        failures: Mapping from submission index to the raised exception.
    """

    def __init__(self, failures: Mapping[int, BaseException]) -> None:
        self.failures = dict(sorted(failures.items()))
        indexes = ", ".join(str(index) for index in self.failures)
        super().__init__(
            f"{len(self.failures)} supplier(s) raised during parallel sequence "
            f"(indexes: {indexes})",
            context={
                "indexes": list(self.failures),
                "exceptions": [repr(exc) for exc in self.failures.values()],
            },
        )


class ValidationTimeoutError(BaseTimeoutError, builtins.TimeoutError):
    """Raised when a parallel sequence does not complete within its timeout.

    Catchable as the common ``TimeoutError`` and as the builtin one.

    Example:
        ```python
        raise ValidationTimeoutError(
            "Parallel sequence timed out",
            context={"timeout_seconds": 5.0, "pending": 2}
        )
        ```
    """

    pass


# Use common errors directly (no validation-specific behavior needed)
TimeoutError = BaseTimeoutError


__all__ = [
    "DataknobsError",
    "InvalidArgumentError",
    "EmptyValidationError",
    "ValidationFailedError",
    "ParallelExecutionError",
    "ValidationTimeoutError",
    "ConfigurationError",
    "SerializationError",
    "TimeoutError",
]
