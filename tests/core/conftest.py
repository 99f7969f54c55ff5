"""
Shared fixtures for core module tests.

This module provides reusable pytest fixtures for testing the build pipeline,
including an entry-point file, an options factory, a mock toolchain, a fake
host runtime and a runtime cache that never touches the network.
"""

import pytest
from pathlib import Path
from unittest.mock import MagicMock

from adapters.sea_tools import MockSeaToolchain
from core.models import BuildOptions
from core.runtime_cache import CacheStore, RuntimeCache
from core.versions import VersionResolver
from models import Platform
from ui.progress_display import NoOpProgressDisplay


@pytest.fixture
def main_file(tmp_path):
    """A 10-byte JavaScript entry point."""
    path = tmp_path / "index.js"
    path.write_text("let a = 1;", encoding="utf-8")
    return path


@pytest.fixture
def temp_root(tmp_path):
    return tmp_path / "temp"


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "dist"


@pytest.fixture
def options_factory(main_file, temp_root, output_dir):
    """Factory for BuildOptions pointing at the temporary directories."""

    def _factory(**overrides):
        values = {
            "main": main_file,
            "output": "app",
            "platforms": (Platform.LINUX,),
            "temp_root": temp_root,
            "output_dir": output_dir,
        }
        values.update(overrides)
        return BuildOptions(**values)

    return _factory


@pytest.fixture
def toolchain():
    """Mock toolchain reporting a SEA-capable Node.js."""
    return MockSeaToolchain()


@pytest.fixture
def host_node(tmp_path):
    """Fake host node binary."""
    path = tmp_path / "host-bin" / "node"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"\x7fELF-host-node")
    path.chmod(0o755)
    return path


@pytest.fixture
def cache_store(tmp_path):
    return CacheStore(tmp_path / "cache")


@pytest.fixture
def fixed_resolver():
    """VersionResolver that never fetches the real index."""
    return VersionResolver(fetch_index=lambda: [{"version": "v20.18.0", "lts": "Iron"}])


@pytest.fixture
def seeded_cache(cache_store):
    """Place fake runtimes for every platform into the cache."""

    def _seed(version="20.18.0"):
        for platform in Platform:
            binary = cache_store.binary_path(platform, version)
            binary.parent.mkdir(parents=True, exist_ok=True)
            binary.write_bytes(f"runtime-{platform}".encode("utf-8"))
            binary.chmod(0o755)
        return cache_store

    return _seed


@pytest.fixture
def runtime_cache(cache_store, host_node, fixed_resolver):
    """RuntimeCache on a linux host whose downloader must never be called."""
    downloader = MagicMock(side_effect=AssertionError("unexpected download"))
    return RuntimeCache(
        cache_store,
        Platform.LINUX,
        host_node,
        resolver=fixed_resolver,
        downloader=downloader,
    )


@pytest.fixture
def progress_display():
    """Progress display for testing."""
    return NoOpProgressDisplay()


@pytest.fixture
def tracking_progress_display():
    """Progress display that tracks calls for testing."""
    mock = MagicMock()
    mock.calls = []

    # Track calls in format: (method_name, *args)
    def make_tracker(method_name):
        def tracker(*args, **kwargs):
            if method_name == "update":
                mock.calls.append((method_name, kwargs.get("description")))
            elif method_name == "complete":
                mock.calls.append((method_name, *args, kwargs.get("warning", False)))
            else:
                mock.calls.append((method_name, *args))

        return tracker

    mock.on_start = make_tracker("start")
    mock.on_update = make_tracker("update")
    mock.on_complete = make_tracker("complete")
    mock.on_fail = make_tracker("fail")
    mock.__enter__ = MagicMock(return_value=mock)
    mock.__exit__ = MagicMock(return_value=None)

    return mock
