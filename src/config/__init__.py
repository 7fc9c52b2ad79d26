"""Centralized configuration management for quintry.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from src.config import EnvVar, get_environment
    >>>
    >>> # Get any environment variable with automatic type conversion
    >>> timeout = get_environment(EnvVar.QUINTRY_BUSY_TIMEOUT)  # Returns int: 5000
    >>> db_name = get_environment(EnvVar.QUINTRY_DB_NAME)  # Returns str
    >>>
    >>> # List available variables by category
    >>> for var in list_environment_variables("storage"):
    ...     info = get_environment_info(var)
    ...     print(f"{info.name}: {info.description}")

Environment Variable Categories:
    storage: Data directory, database file name and lock timeout
    logging: Log level
"""

from .lib import (
    # Core types
    EnvConfig,
    EnvVar,
    # Main interface
    get_busy_timeout_ms,
    get_data_dir,
    get_db_path,
    get_environment,
    get_environment_info,
    get_log_level,
    # Introspection
    list_environment_variables,
    load_env_file,
)

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
