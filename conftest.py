"""Root conftest.py for the hwtest-gpib repository.

This provides shared pytest configuration across packages. Package fixtures
live in each package's ``tests/conftest.py``.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from _pytest.config import Config


# Add all package src directories to path for imports
PROJECT_ROOT = Path(__file__).parent
for pkg_dir in PROJECT_ROOT.glob("hwtest-*/src"):
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))


def pytest_configure(config: Config) -> None:
    """Register custom markers.

    Args:
        config: pytest configuration object.
    """
    config.addinivalue_line(
        "markers",
        "integration: Integration test requiring a real GPIB-LAN adapter",
    )
    config.addinivalue_line(
        "markers",
        "slow: Slow-running test",
    )


def pytest_report_header(config: Config) -> list[str]:
    """Add a suite banner to the pytest header.

    Args:
        config: pytest configuration object.

    Returns:
        List of header lines.
    """
    return ["hwtest-gpib test suite"]
