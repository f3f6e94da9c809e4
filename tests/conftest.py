"""
Shared pytest fixtures and configuration for syncviews tests.

This module provides:
- Settings cache cleanup for test isolation
- Event spies that record every call they receive
- The two sample data sets used throughout the view tests

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments:

    def test_something(spy, example_source):
        example_source.on("add", spy)
        ...
"""

import copy
from collections.abc import Callable, Generator
from typing import Any

import pytest

from syncviews.collection import Collection
from syncviews.core.logging import configure_logging
from syncviews.core.settings import clear_settings_cache

configure_logging(level="DEBUG", json_format=False)


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark all tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if "scenario" not in markers:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache() -> Generator[None, None, None]:
    """Clear cached settings before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Spies
# =============================================================================


class Spy:
    """Callable that records the positional arguments of every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def __call__(self, *args: Any) -> None:
        self.calls.append(args)

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def called(self) -> bool:
        return bool(self.calls)

    @property
    def last_args(self) -> tuple[Any, ...]:
        return self.calls[-1]

    def reset(self) -> None:
        self.calls.clear()


@pytest.fixture
def spy() -> Spy:
    return Spy()


@pytest.fixture
def spy_factory() -> Callable[[], Spy]:
    """For tests that need several independent spies."""
    return Spy


# =============================================================================
# Sample data
# =============================================================================

TEST_ADDITION = {"id": 6, "x": 10, "a": 1}
TEST_REMOVAL = {"id": 3, "y": 3, "z": 8}
TEST_UPDATE = {"id": 1, "x": 2, "y": 5, "b": 9}

EXAMPLE_DATA = [
    {"id": 1, "x": 10, "y": 5},
    {"id": 2, "x": 10, "z": 8},
    TEST_REMOVAL,
    {"id": 4, "x": 2, "y": 3, "z": 4},
    {"id": 5, "a": 1, "b": 9},
]

BUTLERS = [
    {
        "id": 1,
        "name": "James",
        "details": {"county": "Bedfordshire", "flower": "rose", "yearsOfService": 26},
    },
    {
        "id": 2,
        "name": "Travis",
        "details": {"county": "Leicestershire", "flower": "lily", "yearsOfService": 15},
    },
    {
        "id": 3,
        "name": "Mortimer",
        "details": {"county": "Warwickshire", "flower": "tulip", "yearsOfService": 30},
    },
]


@pytest.fixture
def example_data() -> list[dict[str, Any]]:
    """Five records; only ids 1, 2 and 4 have an ``x`` attribute."""
    return copy.deepcopy(EXAMPLE_DATA)


@pytest.fixture
def example_source(example_data: list[dict[str, Any]]) -> Collection:
    source = Collection(example_data)
    assert len(source) == 5
    return source


@pytest.fixture
def butlers() -> list[dict[str, Any]]:
    """Three records, each with a nested ``details`` group."""
    return copy.deepcopy(BUTLERS)


@pytest.fixture
def butler_source(butlers: list[dict[str, Any]]) -> Collection:
    return Collection(butlers)


@pytest.fixture
def addition() -> dict[str, Any]:
    return dict(TEST_ADDITION)


@pytest.fixture
def removal() -> dict[str, Any]:
    return dict(TEST_REMOVAL)


@pytest.fixture
def update_patch() -> dict[str, Any]:
    return dict(TEST_UPDATE)
