"""Concurrent aggregation of independent validations.

``par_sequence`` submits each supplier to an executor, waits until every one
of them has finished, and then combines the results in submission order.
The merged errors are therefore the same as ``sequence`` would give for the
same results, whatever order the suppliers complete in.

Any ``concurrent.futures.Executor`` can be injected. Without one, a thread
pool is created for the call and shut down afterwards.

The asyncio variants follow the same rules inside an event loop:
coroutine functions are awaited directly and plain callables run in a worker
thread via ``asyncio.to_thread``.

Example:
    ```python
    from concurrent.futures import ThreadPoolExecutor
    from dataknobs_validation import par_sequence

    with ThreadPoolExecutor(max_workers=4) as pool:
        result = par_sequence(
            lambda: check_inventory(order),
            lambda: check_credit(order.customer),
            executor=pool,
        )

    # Async
    result = await async_par_sequence(check_inventory_async, check_credit_async)
    ```

Note:
    With no timeout (the default) a supplier that never returns blocks the
    aggregation forever. Set ``timeout`` or ``ParallelConfig.timeout`` to
    bound the wait.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Protocol, TypeVar, runtime_checkable

from dataknobs_validation.config import ParallelConfig, get_default_config
from dataknobs_validation.exceptions import (
    InvalidArgumentError,
    ParallelExecutionError,
    ValidationTimeoutError,
)
from dataknobs_validation.validation import (
    Validation,
    _ensure_validation,
    _require_callable,
    sequence_all,
    success,
)

logger = logging.getLogger(__name__)

E = TypeVar("E")


@runtime_checkable
class Executor(Protocol):
    """Scheduling capability used by ``par_sequence``.

    Anything that can run a zero-argument callable off the calling thread and
    hand back a ``concurrent.futures.Future`` for its result. Every
    ``concurrent.futures.Executor`` qualifies.
    """

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        """Schedule ``fn`` and return a future for its result."""
        ...


def par_sequence(
    *validators: Callable[[], Validation[E]],
    executor: Executor | None = None,
    timeout: float | None = None,
    config: ParallelConfig | None = None,
) -> Validation[E]:
    """Run validators concurrently and combine their results in argument order.

    Args:
        *validators: Zero-argument callables returning a ``Validation``
        executor: Executor to submit to. If None, a thread pool configured by
            ``config`` is created for this call.
        timeout: Seconds to wait for all validators. None falls back to
            ``config.timeout``; to wait indefinitely even when the default
            config sets a timeout, pass ``config=ParallelConfig()``.
        config: Settings to use instead of the process-wide default

    Returns:
        The combined validation, as ``sequence`` would give for the results

    Raises:
        InvalidArgumentError: If a validator is not callable or returns
            something other than a Validation
        ParallelExecutionError: If any validator raised
        ValidationTimeoutError: If the validators did not all finish in time
    """
    return par_sequence_all(validators, executor=executor, timeout=timeout, config=config)


def par_sequence_all(
    validators: Iterable[Callable[[], Validation[E]]],
    executor: Executor | None = None,
    timeout: float | None = None,
    config: ParallelConfig | None = None,
) -> Validation[E]:
    """Iterable form of ``par_sequence``."""
    items = _collect_validators(validators, "par_sequence")
    if executor is not None and not isinstance(executor, Executor):
        raise InvalidArgumentError(
            f"executor must provide submit(), got {type(executor).__name__}",
            context={"operation": "par_sequence", "argument": "executor"},
        )
    if not items:
        return success()

    config = config or get_default_config()
    if timeout is None:
        timeout = config.timeout

    owned = executor is None
    if owned:
        executor = ThreadPoolExecutor(
            max_workers=config.max_workers,
            thread_name_prefix=config.thread_name_prefix,
        )

    timed_out = False
    try:
        futures = [executor.submit(validator) for validator in items]
        logger.debug("Submitted %d validators for parallel sequence", len(futures))

        _, not_done = wait(futures, timeout=timeout)
        if not_done:
            timed_out = True
            raise ValidationTimeoutError(
                f"Parallel sequence timed out after {timeout}s "
                f"with {len(not_done)} of {len(futures)} validators pending",
                context={
                    "timeout_seconds": timeout,
                    "pending": len(not_done),
                    "submitted": len(futures),
                },
            )
    finally:
        if owned:
            executor.shutdown(wait=not timed_out)

    failures: dict[int, BaseException] = {}
    for index, future in enumerate(futures):
        exception = future.exception()
        if exception is not None:
            logger.warning("Validator %d raised during parallel sequence: %r", index, exception)
            failures[index] = exception
    if failures:
        raise ParallelExecutionError(failures) from next(iter(failures.values()))

    logger.debug("Joined %d validators, combining in submission order", len(futures))
    return sequence_all(
        _ensure_validation(future.result(), "par_sequence") for future in futures
    )


async def async_chain(
    *validators: Callable[[], Awaitable[Validation[E]] | Validation[E]],
) -> Validation[E]:
    """Await validators in order, stopping at the first Failure.

    Validators may be coroutine functions or plain callables; plain callables
    run on the event loop thread. Remaining validators are never called once
    a Failure is produced.
    """
    return await async_chain_all(validators)


async def async_chain_all(
    validators: Iterable[Callable[[], Awaitable[Validation[E]] | Validation[E]]],
) -> Validation[E]:
    """Iterable form of ``async_chain``."""
    items = _collect_validators(validators, "async_chain")

    result: Validation[E] = success()
    for position, validator in enumerate(items, start=1):
        outcome = validator()
        if inspect.isawaitable(outcome):
            outcome = await outcome
        result = _ensure_validation(outcome, "async_chain")
        if result.non_empty():
            if position < len(items):
                logger.debug(
                    "Async chain stopped at validator %d of %d with %d error(s)",
                    position, len(items), len(result.errors),
                )
            break
    return result


async def async_par_sequence(
    *validators: Callable[[], Awaitable[Validation[E]] | Validation[E]],
    timeout: float | None = None,
    config: ParallelConfig | None = None,
) -> Validation[E]:
    """Run validators concurrently on the event loop and combine in argument order.

    Coroutine functions are awaited concurrently; plain callables run in
    worker threads. A raising validator does not cancel its siblings. If the
    timeout expires, the pending validators are cancelled.

    Args:
        *validators: Coroutine functions or zero-argument callables returning
            a ``Validation``
        timeout: Seconds to wait for all validators. None falls back to
            ``config.timeout``, as in ``par_sequence``.
        config: Settings to use instead of the process-wide default. Only
            ``timeout`` applies; worker threads come from asyncio's default
            executor.

    Raises:
        InvalidArgumentError: If a validator is not callable or returns
            something other than a Validation
        ParallelExecutionError: If any validator raised
        ValidationTimeoutError: If the validators did not all finish in time
    """
    return await async_par_sequence_all(validators, timeout=timeout, config=config)


async def async_par_sequence_all(
    validators: Iterable[Callable[[], Awaitable[Validation[E]] | Validation[E]]],
    timeout: float | None = None,
    config: ParallelConfig | None = None,
) -> Validation[E]:
    """Iterable form of ``async_par_sequence``."""
    items = _collect_validators(validators, "async_par_sequence")
    if not items:
        return success()

    if timeout is None:
        timeout = (config or get_default_config()).timeout

    gathered = asyncio.gather(
        *(_run_validator(validator) for validator in items),
        return_exceptions=True,
    )
    try:
        outcomes = await asyncio.wait_for(gathered, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ValidationTimeoutError(
            f"Async parallel sequence timed out after {timeout}s",
            context={"timeout_seconds": timeout, "submitted": len(items)},
        ) from e

    failures = {
        index: outcome
        for index, outcome in enumerate(outcomes)
        if isinstance(outcome, BaseException)
    }
    if failures:
        for index, exception in failures.items():
            logger.warning(
                "Validator %d raised during async parallel sequence: %r", index, exception
            )
        raise ParallelExecutionError(failures) from next(iter(failures.values()))

    return sequence_all(
        _ensure_validation(outcome, "async_par_sequence") for outcome in outcomes
    )


async def _run_validator(validator: Callable[[], Any]) -> Any:
    if inspect.iscoroutinefunction(validator):
        return await validator()
    outcome = await asyncio.to_thread(validator)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return outcome


def _collect_validators(
    validators: Iterable[Callable[..., Any]] | None, operation: str
) -> list[Callable[..., Any]]:
    if validators is None:
        raise InvalidArgumentError(
            "validators is None",
            context={"operation": operation, "argument": "validators"},
        )
    items = list(validators)
    for validator in items:
        _require_callable(validator, "validator", operation)
    return items
