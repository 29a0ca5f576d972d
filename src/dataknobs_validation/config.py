"""Configuration for concurrent validation aggregation.

Only ``par_sequence`` needs configuration: how many worker threads to use
when the caller does not inject an executor, and how long to wait for all
suppliers to finish. Settings can come from code, a dictionary, environment
variables, or a YAML/JSON file.

Example:
    ```python
    from dataknobs_validation.config import ParallelConfig, set_default_config

    # Explicit
    config = ParallelConfig(max_workers=4, timeout=10.0)

    # From environment (DATAKNOBS_VALIDATION_MAX_WORKERS, DATAKNOBS_VALIDATION_TIMEOUT)
    config = ParallelConfig.from_env()

    # From file
    config = ParallelConfig.load("config/validation.yaml")

    # Make it the process-wide default for par_sequence
    set_default_config(config)
    ```

File format (config/validation.yaml):
    ```yaml
    parallel:
      max_workers: 8
      timeout: 30
      thread_name_prefix: checks
    ```
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from dataknobs_validation.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

MAX_WORKERS_ENV = "DATAKNOBS_VALIDATION_MAX_WORKERS"
TIMEOUT_ENV = "DATAKNOBS_VALIDATION_TIMEOUT"


@dataclass(frozen=True)
class ParallelConfig:
    """Settings for ``par_sequence``.

    Attributes:
        max_workers: Worker count for the thread pool created when no executor
            is injected. ``None`` lets ``ThreadPoolExecutor`` pick its default.
        timeout: Seconds to wait for all suppliers to finish. ``None`` waits
            indefinitely, so a hung supplier blocks the whole aggregation.
        thread_name_prefix: Name prefix for threads of the created pool.
    """

    max_workers: int | None = None
    timeout: float | None = None
    thread_name_prefix: str = "dataknobs-validation"

    def __post_init__(self) -> None:
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError(
                f"max_workers must be at least 1, got {self.max_workers}",
                context={"max_workers": self.max_workers},
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(
                f"timeout must be positive, got {self.timeout}",
                context={"timeout": self.timeout},
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParallelConfig:
        """Create a ParallelConfig from a dictionary.

        Unknown keys are ignored. Numeric values may be given as strings.

        Args:
            data: Configuration dictionary

        Returns:
            ParallelConfig instance

        Raises:
            ConfigurationError: If a value cannot be converted
        """
        return cls(
            max_workers=_coerce(data.get("max_workers"), int, "max_workers"),
            timeout=_coerce(data.get("timeout"), float, "timeout"),
            thread_name_prefix=str(
                data.get("thread_name_prefix", "dataknobs-validation")
            ),
        )

    @classmethod
    def from_env(cls) -> ParallelConfig:
        """Create a ParallelConfig from environment variables.

        Reads ``DATAKNOBS_VALIDATION_MAX_WORKERS`` and
        ``DATAKNOBS_VALIDATION_TIMEOUT``; unset or empty variables keep the
        defaults.
        """
        data: dict[str, Any] = {}
        if max_workers := os.environ.get(MAX_WORKERS_ENV):
            data["max_workers"] = max_workers
        if timeout := os.environ.get(TIMEOUT_ENV):
            data["timeout"] = timeout
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: str | Path) -> ParallelConfig:
        """Load a ParallelConfig from a YAML or JSON file.

        Settings may be at the top level or under a ``parallel`` section.

        Args:
            path: Path to a ``.yaml``, ``.yml`` or ``.json`` file

        Returns:
            Loaded ParallelConfig instance

        Raises:
            ConfigurationError: If the file cannot be read or parsed
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                if path.suffix in [".yaml", ".yml"]:
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Failed to parse validation config {path}: {e}",
                context={"path": str(path)},
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read validation config {path}: {e}",
                context={"path": str(path)},
            ) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Validation config must be a dictionary: {path}",
                context={"path": str(path)},
            )

        section = data.get("parallel", data)
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"'parallel' section must be a dictionary: {path}",
                context={"path": str(path)},
            )
        logger.debug("Loaded parallel validation config from %s", path)
        return cls.from_dict(section)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary accepted by ``from_dict``."""
        return {
            "max_workers": self.max_workers,
            "timeout": self.timeout,
            "thread_name_prefix": self.thread_name_prefix,
        }


def _coerce(value: Any, kind: type, name: str) -> Any:
    if value is None or value == "":
        return None
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid value for {name}: {value!r}",
            context={"setting": name, "value": value},
        ) from e


_default_config: ParallelConfig | None = None
_default_lock = threading.Lock()


def get_default_config() -> ParallelConfig:
    """Return the process-wide default, reading the environment on first use."""
    global _default_config
    with _default_lock:
        if _default_config is None:
            _default_config = ParallelConfig.from_env()
            logger.debug("Initialized default parallel config: %s", _default_config)
        return _default_config


def set_default_config(config: ParallelConfig | None) -> None:
    """Replace the process-wide default.

    Passing ``None`` resets it, so the environment is read again on next use.
    """
    global _default_config
    with _default_lock:
        _default_config = config
