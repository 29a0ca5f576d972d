"""Validation with monadic combinators.

A ``Validation`` is either a ``Success`` (no errors) or a ``Failure`` (one or
more errors, in the order they were produced). Errors are plain values of
any type chosen by the caller; they are accumulated and returned, never
raised.

Three aggregation strategies are provided:

- ``sequence``: independent validations, every error from every input kept
- ``chain``: dependent validations, evaluation stops at the first failure
- ``par_sequence`` (see ``dataknobs_validation.concurrency``): independent
  validations computed concurrently, merged in submission order

Example:
    ```python
    from dataknobs_validation import chain, of, sequence, success

    def check_name(user):
        return success() if user.name else of("name is required")

    def check_email(user):
        return success() if "@" in user.email else of("email is invalid")

    # Collect every problem
    result = sequence(check_name(user), check_email(user))

    # Stop at the first problem
    result = chain(lambda: check_name(user), lambda: check_email(user))

    result.if_present(lambda errors: print(f"{len(errors)} problem(s)"))
    result.raise_for_errors()
    ```
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from functools import reduce
from typing import Any, Generic, TypeVar

from dataknobs_validation.exceptions import (
    EmptyValidationError,
    InvalidArgumentError,
    SerializationError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

E = TypeVar("E")
U = TypeVar("U")


class Validation(ABC, Generic[E]):
    """Result of a validation: either ``Success`` or ``Failure``.

    Values are immutable. Every combinator returns a new validation (or an
    existing immutable one) and never modifies its receiver.

    Attributes:
        errors: The full ordered tuple of errors. Empty for ``Success``.
    """

    errors: tuple[E, ...]

    @abstractmethod
    def is_empty(self) -> bool:
        """Return True if this validation holds no errors."""

    @abstractmethod
    def get(self) -> E:
        """Return the first error.

        Raises:
            EmptyValidationError: If called on a ``Success``
        """

    @property
    @abstractmethod
    def string_prefix(self) -> str:
        """Human-readable label for this kind of validation."""

    def non_empty(self) -> bool:
        """Return True if this validation holds at least one error."""
        return not self.is_empty()

    def __iter__(self) -> Iterator[E]:
        return iter(self.errors)

    def __str__(self) -> str:
        if self.is_empty():
            return self.string_prefix
        return f"{self.string_prefix}: {', '.join(str(e) for e in self.errors)}"

    # ------------------------------------------------------------------
    # Transformation
    # ------------------------------------------------------------------

    def map(self, mapper: Callable[[E], U]) -> Validation[U]:
        """Apply ``mapper`` to every error, keeping their order.

        The mapper is never called on a ``Success``.
        """
        _require_callable(mapper, "mapper", "map")
        if self.is_empty():
            return success()
        return of_all(mapper(error) for error in self.errors)

    def flat_map(self, mapper: Callable[[E], Validation[U]]) -> Validation[U]:
        """Expand every error into a validation and concatenate the results.

        Errors of each resulting validation are kept in order; a ``Success``
        contributes nothing. If every result is a ``Success``, so is the
        returned validation.

        Example:
            ```python
            of("a", "b").flat_map(lambda e: of(e, e.upper()))
            # Failure(errors=('a', 'A', 'b', 'B'))
            of("a").flat_map(lambda _: success())
            # Success()
            ```
        """
        _require_callable(mapper, "mapper", "flat_map")
        expanded: list[U] = []
        for error in self.errors:
            expanded.extend(_ensure_validation(mapper(error), "flat_map").errors)
        return of_all(expanded)

    def filter(self, predicate: Callable[[E], bool]) -> Validation[E]:
        """Keep only the errors matching ``predicate``; none left means Success."""
        _require_callable(predicate, "predicate", "filter")
        return of_all(error for error in self.errors if predicate(error))

    # ------------------------------------------------------------------
    # Side effects and terminal operations
    # ------------------------------------------------------------------

    def peek(self, action: Callable[[E], Any]) -> Validation[E]:
        """Call ``action`` once with the first error, then return self.

        Only the representative error from ``get()`` is passed, not every
        error. Use ``for_each`` to act on each error, or ``if_present`` to
        receive them all at once.
        """
        _require_callable(action, "action", "peek")
        if self.non_empty():
            action(self.get())
        return self

    def for_each(self, action: Callable[[E], Any]) -> None:
        """Call ``action`` once per error, in order."""
        _require_callable(action, "action", "for_each")
        for error in self.errors:
            action(error)

    def if_present(self, action: Callable[[tuple[E, ...]], Any]) -> None:
        """Call ``action`` once with the full error tuple if there are errors."""
        _require_callable(action, "action", "if_present")
        if self.non_empty():
            action(self.errors)

    def if_present_throw(
        self,
        exception_factory: Callable[[tuple[E, ...]], BaseException] | None = None,
    ) -> None:
        """Raise an exception built from the errors, if there are any.

        Args:
            exception_factory: Builds the exception from the full error tuple.
                Defaults to ``ValidationFailedError``.

        Raises:
            BaseException: Whatever ``exception_factory`` builds, on a Failure
            InvalidArgumentError: If the factory is not callable or does not
                return an exception
        """
        if exception_factory is None:
            exception_factory = ValidationFailedError
        _require_callable(exception_factory, "exception_factory", "if_present_throw")
        if self.is_empty():
            return

        exception = exception_factory(self.errors)
        if not isinstance(exception, BaseException):
            raise InvalidArgumentError(
                "exception_factory must return an exception, "
                f"got {type(exception).__name__}",
                context={"operation": "if_present_throw"},
            )
        logger.debug("Raising %s for %d error(s)", type(exception).__name__, len(self.errors))
        raise exception

    def raise_for_errors(self) -> None:
        """Raise ``ValidationFailedError`` if there are errors."""
        self.if_present_throw(ValidationFailedError)

    # ------------------------------------------------------------------
    # Combination
    # ------------------------------------------------------------------

    def combine(self, other: Validation[E]) -> Validation[E]:
        """Merge the errors of two validations, self's errors first.

        ``Success`` is an identity on both sides.

        Example:
            ```python
            of("a").combine(of("b"))
            # Failure(errors=('a', 'b'))
            success().combine(of("b"))
            # Failure(errors=('b',))
            ```
        """
        _ensure_validation(other, "combine", argument="other")
        if self.is_empty():
            return other
        if other.is_empty():
            return self
        return Failure(self.errors + other.errors)

    def or_else(self, supplier: Callable[[], Validation[E]]) -> Validation[E]:
        """Return self if it has errors, otherwise the supplier's result."""
        _require_callable(supplier, "supplier", "or_else")
        if self.is_empty():
            return _ensure_validation(supplier(), "or_else")
        return self

    def and_then(self, next_validator: Callable[[], Validation[E]]) -> Validation[E]:
        """Run ``next_validator`` only if this validation is a Success.

        A Failure is returned unchanged and the next validator is not called.
        """
        _require_callable(next_validator, "next_validator", "and_then")
        if self.is_empty():
            return sequence(self, _ensure_validation(next_validator(), "and_then"))
        return self

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def get_or_else(self, default: Any) -> Any:
        """Return the first error, or ``default`` on a Success."""
        return default if self.is_empty() else self.get()

    def contains(self, error: Any) -> bool:
        """Return True if ``error`` is one of the errors."""
        return error in self.errors

    def exists(self, predicate: Callable[[E], bool]) -> bool:
        """Return True if any error satisfies ``predicate``."""
        _require_callable(predicate, "predicate", "exists")
        return any(predicate(error) for error in self.errors)

    def for_all(self, predicate: Callable[[E], bool]) -> bool:
        """Return True if every error satisfies ``predicate`` (True for Success)."""
        _require_callable(predicate, "predicate", "for_all")
        return all(predicate(error) for error in self.errors)

    def to_list(self) -> list[E]:
        """Return a new list of the errors."""
        return list(self.errors)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self, serializer: Callable[[E], Any] | None = None) -> dict[str, Any]:
        """Convert to a dictionary.

        Args:
            serializer: Optional function converting each error to a
                serializable value (for example ``lambda e: e.name`` for enums)

        Returns:
            ``{"status": "success"}`` or ``{"status": "failure", "errors": [...]}``

        Raises:
            SerializationError: If the serializer fails
        """
        if self.is_empty():
            return {"status": "success"}
        if serializer is None:
            return {"status": "failure", "errors": list(self.errors)}
        try:
            return {"status": "failure", "errors": [serializer(e) for e in self.errors]}
        except Exception as e:
            raise SerializationError(
                f"Cannot serialize validation errors: {e}",
                context={"error_count": len(self.errors)},
            ) from e

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        deserializer: Callable[[Any], Any] | None = None,
    ) -> Validation[Any]:
        """Create a validation from the dictionary form produced by ``to_dict``.

        Args:
            data: Dictionary with a ``status`` key and, for failures, ``errors``
            deserializer: Optional function restoring each error value

        Raises:
            SerializationError: If the dictionary is malformed
        """
        if not isinstance(data, dict):
            raise SerializationError(
                f"Expected a dict, got {type(data).__name__}",
                context={"type": type(data).__name__},
            )

        status = data.get("status")
        if status == "success":
            return success()
        if status != "failure":
            raise SerializationError(
                f"Unknown validation status: {status!r}",
                context={"status": status},
            )

        errors = data.get("errors")
        if not isinstance(errors, list) or not errors:
            raise SerializationError(
                "A failure must carry a non-empty 'errors' list",
                context={"errors": errors},
            )
        if deserializer is not None:
            try:
                errors = [deserializer(e) for e in errors]
            except Exception as e:
                raise SerializationError(
                    f"Cannot deserialize validation errors: {e}",
                    context={"error_count": len(errors)},
                ) from e
        return Failure(tuple(errors))


@dataclass(frozen=True)
class Success(Validation[E]):
    """A validation with no errors.

    Stateless; ``success()`` hands out one shared instance, but any two
    ``Success`` values are equal.
    """

    @property
    def errors(self) -> tuple[E, ...]:  # type: ignore[override]
        return ()

    def is_empty(self) -> bool:
        return True

    def get(self) -> E:
        raise EmptyValidationError()

    @property
    def string_prefix(self) -> str:
        return "Success!"


@dataclass(frozen=True)
class Failure(Validation[E]):
    """A validation holding one or more errors in the order they occurred.

    The given errors are copied into a tuple. Duplicates are kept. A single
    string or bytes value is not a collection of errors; wrap it with
    ``failure(...)`` instead.

    Raises:
        InvalidArgumentError: If no errors are given, or ``errors`` is a
            string, bytes or not iterable
    """

    errors: tuple[E, ...]

    def __post_init__(self) -> None:
        errors = tuple(_error_collection(self.errors, "failure"))
        if not errors:
            raise InvalidArgumentError(
                "A failure requires at least one error; use of_all() to allow none",
                context={"operation": "failure"},
            )
        object.__setattr__(self, "errors", errors)

    def is_empty(self) -> bool:
        return False

    def get(self) -> E:
        return self.errors[0]

    @property
    def string_prefix(self) -> str:
        return f"List of {len(self.errors)} errors"


_SUCCESS: Success[Any] = Success()


# ----------------------------------------------------------------------
# Construction
# ----------------------------------------------------------------------


def success() -> Validation[Any]:
    """Return the validation with no errors."""
    return _SUCCESS


def of(first: E, *others: E) -> Validation[E]:
    """Create a Failure from one or more errors, in argument order."""
    return of_all((first, *others))


def of_all(errors: Iterable[E]) -> Validation[E]:
    """Create a validation from any iterable of errors.

    An empty iterable gives ``Success``; otherwise a ``Failure`` with the
    errors in iteration order.
    """
    collected = tuple(_error_collection(errors, "of_all"))
    if collected:
        return Failure(collected)
    return success()


def failure(first: E, *others: E) -> Validation[E]:
    """Create a Failure from one or more errors, in argument order."""
    return Failure((first, *others))


def failure_all(errors: Iterable[E]) -> Validation[E]:
    """Create a Failure from an iterable of errors.

    Unlike ``of_all`` this never produces a ``Success``. An empty iterable is
    rejected rather than turned into a Failure with no errors, so every
    Failure holds at least one error. Use ``of_all`` when the errors may be
    empty.

    Raises:
        InvalidArgumentError: If the iterable is empty, or is a string or bytes
    """
    return Failure(tuple(_error_collection(errors, "failure_all")))


# ----------------------------------------------------------------------
# Aggregation
# ----------------------------------------------------------------------


def sequence(*validations: Validation[E]) -> Validation[E]:
    """Combine validations left to right, keeping every error.

    Successes contribute nothing. No input is skipped after a failure.

    Example:
        ```python
        sequence(of("a"), success(), of("b"))
        # Failure(errors=('a', 'b'))
        ```
    """
    return sequence_all(validations)


def sequence_all(validations: Iterable[Validation[E]]) -> Validation[E]:
    """Iterable form of ``sequence``; accepts any iterable, including generators."""
    if validations is None:
        raise InvalidArgumentError(
            "validations is None",
            context={"operation": "sequence", "argument": "validations"},
        )
    items = list(validations)
    for validation in items:
        _ensure_validation(validation, "sequence", argument="validations")
    return reduce(Validation.combine, items, success())


def chain(*validators: Callable[[], Validation[E]]) -> Validation[E]:
    """Run validators in order, stopping at the first Failure.

    Later validators are never called once a Failure is produced, and the
    Failure is returned as is.

    Example:
        ```python
        chain(lambda: of("a"), expensive_check)
        # Failure(errors=('a',)); expensive_check is never called
        ```
    """
    return chain_all(validators)


def chain_all(validators: Iterable[Callable[[], Validation[E]]]) -> Validation[E]:
    """Iterable form of ``chain``."""
    if validators is None:
        raise InvalidArgumentError(
            "validators is None",
            context={"operation": "chain", "argument": "validators"},
        )
    items = list(validators)
    for validator in items:
        _require_callable(validator, "validator", "chain")

    result: Validation[E] = success()
    for position, validator in enumerate(items, start=1):
        result = result.and_then(validator)
        if result.non_empty():
            if position < len(items):
                logger.debug(
                    "Chain stopped at validator %d of %d with %d error(s)",
                    position, len(items), len(result.errors),
                )
            break
    return result


# ----------------------------------------------------------------------
# Argument checks
# ----------------------------------------------------------------------


def _require_callable(value: Any, argument: str, operation: str) -> None:
    if value is None:
        raise InvalidArgumentError(
            f"{argument} is None",
            context={"operation": operation, "argument": argument},
        )
    if not callable(value):
        raise InvalidArgumentError(
            f"{argument} must be callable, got {type(value).__name__}",
            context={"operation": operation, "argument": argument},
        )


def _ensure_validation(
    value: Any, operation: str, argument: str = "result"
) -> Validation[Any]:
    if not isinstance(value, Validation):
        raise InvalidArgumentError(
            f"{operation} expected a Validation for {argument}, "
            f"got {type(value).__name__}",
            context={"operation": operation, "argument": argument},
        )
    return value


def _error_collection(errors: Any, operation: str) -> Iterable[Any]:
    if errors is None:
        raise InvalidArgumentError(
            "errors is None", context={"operation": operation, "argument": "errors"}
        )
    if isinstance(errors, (str, bytes)) or not isinstance(errors, Iterable):
        raise InvalidArgumentError(
            f"{operation} expects a collection of errors, got {type(errors).__name__}; "
            "use failure(error) or of(error) to wrap a single error",
            context={"operation": operation, "argument": "errors"},
        )
    return errors
