"""Pytest fixtures shared across the widgetflow test suite."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

import pytest

from widgetflow.settings import get_settings


@pytest.fixture
def sales_rows() -> list[dict[str, object]]:
    """Return a small sales dataset as a REST source would deliver it."""

    return [
        {"month": "Jan", "region": "East", "amount": "120", "units": 3},
        {"month": "Jan", "region": "West", "amount": "80.5", "units": 2},
        {"month": "Feb", "region": "East", "amount": "200", "units": 5},
        {"month": "Feb", "region": "West", "amount": "n/a", "units": 1},
        {"month": "Mar", "region": "East", "amount": "150", "units": 4},
    ]


@pytest.fixture
def fresh_settings() -> Iterator[None]:
    """Clear cached settings before and after a test that changes them."""

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Enforce that every test has exactly one speed marker.

    - `unit`: pure, fast tests with no filesystem or environment access.
    - `integration`: tests touching settings files, the environment, or the
      full render pipeline.

    Each test must have exactly one of these markers.
    """

    invalid: list[str] = []
    for item in items:
        has_unit = item.get_closest_marker("unit") is not None
        has_integration = item.get_closest_marker("integration") is not None
        if has_unit == has_integration:
            markers = []
            if has_unit:
                markers.append("unit")
            if has_integration:
                markers.append("integration")
            invalid.append(f"{item.nodeid} (markers={markers or 'none'})")

    if invalid:
        joined = "\n".join(f"- {nodeid}" for nodeid in invalid)
        raise pytest.UsageError(
            "Each test must have exactly one speed marker: `@pytest.mark.unit` or "
            "`@pytest.mark.integration`.\n"
            f"Offending tests:\n{joined}"
        )
