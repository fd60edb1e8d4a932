"""
CLI test fixtures.
"""

import logging

import pytest


@pytest.fixture(autouse=True)
def reset_package_logger():
    """The CLI installs handlers on the package logger; drop them after each test."""
    yield
    logger = logging.getLogger("vestledger")
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def state_file(tmp_path):
    return tmp_path / "deployments" / "local.json"
