"""Centralized environment configuration management for quintry.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from src.config import EnvVar, get_environment
    >>>
    >>> # Get values with automatic type conversion
    >>> timeout = get_environment(EnvVar.QUINTRY_BUSY_TIMEOUT)  # Returns int
    >>> data_dir = get_environment(EnvVar.QUINTRY_DATA_DIR)  # Returns Path | None
    >>>
    >>> # Override at runtime
    >>> timeout = get_environment(EnvVar.QUINTRY_BUSY_TIMEOUT, override=1000)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, overload

from dotenv import load_dotenv

# Default application data directory name under the user's home
DEFAULT_DATA_DIR_NAME = ".quintry"

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "QUINTRY_DATA_DIR").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by quintry.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - storage: Data directory and database settings
        - logging: Log output configuration
    """

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    QUINTRY_DATA_DIR = EnvConfig(
        name="QUINTRY_DATA_DIR",
        default=None,  # Computed from home directory
        var_type=Path,
        description="Application data directory holding the history database",
        category="storage",
    )
    QUINTRY_DB_NAME = EnvConfig(
        name="QUINTRY_DB_NAME",
        default="quintry.db",
        var_type=str,
        description="History database file name inside the data directory",
        category="storage",
    )
    QUINTRY_BUSY_TIMEOUT = EnvConfig(
        name="QUINTRY_BUSY_TIMEOUT",
        default=5000,
        var_type=int,
        description="Milliseconds a write waits on a locked database",
        category="storage",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    QUINTRY_LOG_LEVEL = EnvConfig(
        name="QUINTRY_LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Log level name (DEBUG, INFO, WARNING, ERROR)",
        category="logging",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None:
        return default

    if var_type is str:
        return value

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is Path:
        return Path(value).expanduser() if value else default

    # Unknown type, return as-is
    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: Path) -> Path: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type (str, int, or Path).

    Example:
        >>> get_environment(EnvVar.QUINTRY_BUSY_TIMEOUT)
        5000
        >>> get_environment(EnvVar.QUINTRY_BUSY_TIMEOUT, override=1000)
        1000
    """
    config: EnvConfig = env_var.value

    if override is not None:
        return override

    raw_value = os.environ.get(config.name)
    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable.

    Args:
        env_var: Environment variable enum member.

    Returns:
        EnvConfig with name, default, type, and description.
    """
    return env_var.value


def load_env_file(path: Path | str | None = None) -> bool:
    """Load variables from a .env file into the process environment.

    Existing environment variables are not overwritten.

    Args:
        path: Explicit .env path. Searches upward from cwd if None.

    Returns:
        True if a file was found and loaded.
    """
    return load_dotenv(dotenv_path=path)


# =============================================================================
# Convenience Functions
# =============================================================================


def get_data_dir(override: Path | str | None = None) -> Path:
    """Get the application data directory.

    Resolution: override > QUINTRY_DATA_DIR > ~/.quintry
    """
    if override is not None:
        return Path(override)

    env_path = get_environment(EnvVar.QUINTRY_DATA_DIR)
    if env_path:
        return env_path

    return Path.home() / DEFAULT_DATA_DIR_NAME


def get_db_path(data_dir: Path | str | None = None) -> Path:
    """Get the history database path inside the data directory."""
    return get_data_dir(data_dir) / get_environment(EnvVar.QUINTRY_DB_NAME)


def get_busy_timeout_ms() -> int:
    """Get the SQLite busy timeout in milliseconds."""
    return get_environment(EnvVar.QUINTRY_BUSY_TIMEOUT)


def get_log_level() -> str:
    """Get the configured log level name, upper-cased."""
    return str(get_environment(EnvVar.QUINTRY_LOG_LEVEL)).upper()


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (storage, logging).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    "load_env_file",
    # Convenience functions
    "get_data_dir",
    "get_db_path",
    "get_busy_timeout_ms",
    "get_log_level",
    # Introspection
    "list_environment_variables",
]
