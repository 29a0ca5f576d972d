"""Composable validation results for dataknobs packages.

A ``Validation`` is either ``Success`` (no errors) or ``Failure`` (an ordered,
non-empty collection of errors). Validations compose with:

- **Transformation**: ``map``, ``flat_map``, ``filter``
- **Combination**: ``combine``, ``and_then``, ``or_else``
- **Aggregation**: ``sequence`` (keep every error), ``chain`` (stop at the
  first failure), ``par_sequence`` (run concurrently, merge in order)
- **Terminal actions**: ``peek``, ``for_each``, ``if_present``,
  ``if_present_throw``

Example:
    ```python
    from dataknobs_validation import chain, of, par_sequence, sequence, success

    # Accumulate independent checks
    result = sequence(of("name is required"), success(), of("email is invalid"))
    result.errors
    # ('name is required', 'email is invalid')

    # Fail fast on dependent checks
    result = chain(lambda: check_schema(doc), lambda: check_references(doc))

    # Run expensive independent checks concurrently
    result = par_sequence(lambda: check_remote(a), lambda: check_remote(b))

    # Bridge to exceptions at the boundary
    result.if_present_throw(lambda errors: ValueError("; ".join(errors)))
    ```
"""

from dataknobs_validation.concurrency import (
    Executor,
    async_chain,
    async_chain_all,
    async_par_sequence,
    async_par_sequence_all,
    par_sequence,
    par_sequence_all,
)
from dataknobs_validation.config import (
    ParallelConfig,
    get_default_config,
    set_default_config,
)
from dataknobs_validation.exceptions import (
    ConfigurationError,
    DataknobsError,
    EmptyValidationError,
    InvalidArgumentError,
    ParallelExecutionError,
    SerializationError,
    ValidationFailedError,
    ValidationTimeoutError,
)
from dataknobs_validation.validation import (
    Failure,
    Success,
    Validation,
    chain,
    chain_all,
    failure,
    failure_all,
    of,
    of_all,
    sequence,
    sequence_all,
    success,
)

__version__ = "1.0.0"

__all__ = [
    # Version
    "__version__",
    # Types
    "Validation",
    "Success",
    "Failure",
    # Construction
    "success",
    "of",
    "of_all",
    "failure",
    "failure_all",
    # Aggregation
    "sequence",
    "sequence_all",
    "chain",
    "chain_all",
    "par_sequence",
    "par_sequence_all",
    "async_chain",
    "async_chain_all",
    "async_par_sequence",
    "async_par_sequence_all",
    "Executor",
    # Configuration
    "ParallelConfig",
    "get_default_config",
    "set_default_config",
    # Exceptions
    "DataknobsError",
    "InvalidArgumentError",
    "EmptyValidationError",
    "ValidationFailedError",
    "ParallelExecutionError",
    "ValidationTimeoutError",
    "ConfigurationError",
    "SerializationError",
]
