"""
Shared pytest configuration.
Markers are registered here and applied to tests based on their directory.
"""

import asyncio

import pytest


def pytest_configure(config):
    """Register custom pytest markers for test categorization."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test (<100ms, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (full controller, mock vehicle)"
    )
    config.addinivalue_line("markers", "property: mark test as property-based test (hypothesis)")
    config.addinivalue_line(
        "markers", "critical: mark test as critical (vehicle safety or shutdown behaviour)"
    )
    config.addinivalue_line("markers", "slow: mark test as slow (>1s execution time)")


def pytest_collection_modifyitems(config, items):
    """Add markers to test items based on their location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
            # Integration tests fly whole cycles with shortened timings
            item.add_marker(pytest.mark.timeout(10))
        elif "property" in path:
            item.add_marker(pytest.mark.property)


@pytest.fixture
def wait_until():
    """Poll a predicate on the event loop until it holds or a timeout expires."""

    async def _wait_until(predicate, timeout: float = 2.0, interval: float = 0.005):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError(f"Condition not met within {timeout}s")
            await asyncio.sleep(interval)

    return _wait_until
