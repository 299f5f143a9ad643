from __future__ import annotations

import pytest

from pyparfait.buckets import Buckets


def pytest_addoption(parser):
    """Add command line options for test categories."""
    parser.addoption(
        "--runslow", action="store_true", default=False, help="run slow tests"
    )


def pytest_collection_modifyitems(config, items):
    """Skip tests based on command line options."""
    # Skip slow tests unless --runslow option is given
    if not config.getoption("--runslow"):
        skip_slow = pytest.mark.skip(reason="need --runslow option to run")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)


@pytest.fixture
def seed():
    """Fixed seed for reproducible random streams."""
    return 42


@pytest.fixture
def linear_buckets():
    """Ten linear buckets over [0, 1000]."""
    return Buckets(n=10, min=0.0, max=1000.0)
