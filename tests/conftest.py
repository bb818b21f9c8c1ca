"""Shared fixtures for the algae test suite."""

import pytest

from algae import RootRegistry
from tests.effects import Console, ConsoleHandler, Logger, LoggerHandler


@pytest.fixture
def registry() -> RootRegistry:
    return RootRegistry()


@pytest.fixture
def app_root(registry):
    return registry.declare("App", Console, Logger)


@pytest.fixture
def console() -> ConsoleHandler:
    return ConsoleHandler()


@pytest.fixture
def log() -> LoggerHandler:
    return LoggerHandler()
