"""PyTest configuration for pairpipe tests.

Every test runs against an empty configuration: no ~/.pairpipe.toml and no
PAIRPIPE_* environment variables, unless the test sets them itself.
"""

import os
import pytest
from pairpipe.registry import extension_registry
from pairpipe.util.config import reset_config


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point HOME at an empty directory and drop PAIRPIPE_* variables."""
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in list(os.environ.keys()):
        if key.startswith("PAIRPIPE_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield tmp_path
    reset_config()


@pytest.fixture
def clean_registry():
    """Snapshot the extension registry and restore it after the test."""
    saved = dict(extension_registry._registry)
    extension_registry.invalidate_cache()
    yield extension_registry
    extension_registry._registry.clear()
    extension_registry._registry.update(saved)
    extension_registry.invalidate_cache()


@pytest.fixture
def counting_source():
    """Factory for a source that records how many items have been pulled from it."""

    def _make(values):
        pulled = []

        def gen():
            for value in values:
                pulled.append(value)
                yield value
        return gen(), pulled

    return _make
