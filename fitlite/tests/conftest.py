"""Unit tests configuration file."""

import os

import pytest

from fitlite.schema import load_registry

TESTS_DIR = os.path.dirname(os.path.realpath(__file__))


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def schema_path():
    """Path of the activity profile used across the tests."""
    return f"{TESTS_DIR}/schema/activity.fitschema"


@pytest.fixture
def registry(schema_path):
    return load_registry(schema_path)
