import pytest

from ledgercore import logging as llog


def pytest_configure(config):
    # Register common markers used across the repo without requiring external plugins.
    config.addinivalue_line(
        "markers", "property: hypothesis-driven property test (deselect with -m 'not property')"
    )


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(config, items):
    """
    Tag hypothesis suites so quick runs can deselect them with `-m "not property"`.
    """
    prop = pytest.mark.property
    for item in items:
        if getattr(getattr(item, "obj", None), "is_hypothesis_test", False):
            item.add_marker(prop)


@pytest.fixture(autouse=True)
def _fresh_log_context():
    """Context-local log fields never leak between tests."""
    llog.clear_context()
    yield
    llog.clear_context()
