"""Root pytest configuration and fixtures.

This module provides:
- Environment setup (loads .env)
- Isolation of the process-wide history manager between tests
"""

from __future__ import annotations

from typing import Generator

import pytest
from dotenv import load_dotenv

from src.history import close_history_manager

# Load environment variables from .env file
load_dotenv()


@pytest.fixture(autouse=True)
def _isolate_history_manager() -> Generator[None, None, None]:
    """Make sure no test leaks an open global history manager."""
    yield
    close_history_manager()
