"""Unit tests configuration file."""

import pytest

from typemirror.generator import NamespaceMap, TypeVisitor


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def visitor_for():
    """Build a visitor over a namespace prefix mapping."""

    def make(prefixes=None, substitutions=None):
        return TypeVisitor(NamespaceMap(prefixes or {}), substitutions)

    return make
