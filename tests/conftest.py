"""Pytest configuration and shared fixtures for torrentdeck tests."""

from __future__ import annotations

import logging

import pytest


def pytest_configure(config):
    """Register all project markers to avoid warnings when ini isn't loaded."""
    markers = [
        ("asyncio", "marks tests as async (deselect with '-m \"not asyncio\"')"),
        ("unit", "marks tests as unit tests"),
        ("interface", "marks tests as interactive terminal tests"),
        ("engine", "marks tests as engine client tests"),
        ("config", "marks tests as configuration tests"),
        ("observability", "marks tests as logging tests"),
        ("cli", "marks tests as CLI tests"),
    ]
    for name, desc in markers:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path):
    """Keep user config files and TORRENTDECK_* variables out of tests."""
    import os

    for name in list(os.environ):
        if name.startswith("TORRENTDECK_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def reset_global_config():
    """Forget the global configuration manager after each test."""
    yield
    from torrentdeck.config.config import reset_config

    reset_config()


@pytest.fixture(autouse=True)
def cleanup_logging():
    """Clean up logging handlers after each test to prevent closed file errors."""
    yield
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    # setup_logging() detaches the package logger from root; undo it for caplog.
    package_logger = logging.getLogger("torrentdeck")
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
