"""
Pytest configuration of the test suite.

Tests marked with ``skipped`` are sweeps over many flash inputs. They are collected
but only run when ``--run-skipped`` is given.

Credits: https://jwodder.github.io/kbits/posts/pytest-mark-off/ (Option 1).
"""

import pytest


def pytest_addoption(parser):
    """Flag to run the flash sweeps as well."""
    parser.addoption(
        "--run-skipped",
        action="store_true",
        default=False,
        help="Run tests marked with 'skipped', e.g. convergence sweeps of the flash",
    )


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--run-skipped"):
        skipper = pytest.mark.skip(reason="Sweep, only run when --run-skipped is given")
        for item in items:
            if "skipped" in item.keywords:
                item.add_marker(skipper)


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "skipped: Sweep over flash inputs, run only on demand."
    )
