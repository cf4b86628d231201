"""Root conftest.py for the bench-psu monorepo.

This provides shared pytest configuration across all packages and marks
tests that replace real collaborators with mocks or the emulator.
"""

from __future__ import annotations

import ast
import inspect
import sys
import textwrap
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.nodes import Item


# Add all package src directories to path for imports
PROJECT_ROOT = Path(__file__).parent
for pkg_dir in PROJECT_ROOT.glob("benchpsu-*/src"):
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))


def pytest_configure(config: Config) -> None:
    """Register custom markers.

    Args:
        config: pytest configuration object.
    """
    config.addinivalue_line(
        "markers",
        "uses_mock: Test replaces hardware with a mock or the emulator (auto-detected)",
    )
    config.addinivalue_line(
        "markers",
        "integration: Integration test requiring a real power supply",
    )
    config.addinivalue_line(
        "markers",
        "slow: Slow-running test",
    )


# Names whose use means the test is not talking to real hardware.
_MOCK_NAMES = frozenset({
    "MagicMock",
    "Mock",
    "AsyncMock",
    "patch",
    "create_autospec",
    "mocker",
    "make_emulator",
    "Bk196xEmulator",
    "_emulated_driver",
    "_run_main",
})


def _uses_mock(item: Item) -> bool:
    """Check whether a test function refers to a mock or the emulator.

    Args:
        item: pytest test item.

    Returns:
        True if the test source mentions one of the mock names.
    """
    obj = getattr(item, "obj", None)
    if obj is None:
        return False
    try:
        tree = ast.parse(textwrap.dedent(inspect.getsource(obj)))
    except (OSError, TypeError, SyntaxError):
        return False
    return any(
        isinstance(node, ast.Name) and node.id in _MOCK_NAMES for node in ast.walk(tree)
    )


def pytest_collection_modifyitems(config: Config, items: list[Item]) -> None:
    """Auto-detect and mark tests that use mocking.

    Args:
        config: pytest configuration object.
        items: List of collected test items.
    """
    for item in items:
        if item.get_closest_marker("uses_mock") is None and _uses_mock(item):
            item.add_marker(pytest.mark.uses_mock)


def pytest_report_header(config: Config) -> list[str]:
    """Add a line naming the suite to the pytest header."""
    return ["bench-psu monorepo test suite"]
