"""
Shared pytest fixtures for diconf tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import os as _os
import pathlib as _pathlib
import textwrap as _textwrap
import typing as _typing
import unittest.mock as _mock

import pytest as _pytest

import diconf.adapters as adapters
import diconf.loader as loader
import diconf.processor as processor
import diconf.registry as registry
import diconf.settings as settings

# =============================================================================
# Environment Isolation
# =============================================================================

ENV_KEYS_TO_CLEAR = [
    "DICONF_DEPRECATIONS",
    "DICONF_DUMP_HEADER",
    "DICONF_DUMP_INDENT",
]

# Names treated as interfaces by the processor fixture
TEST_INTERFACES = frozenset({"App.MailerFactory", "App.LoggerFactory"})


@_pytest.fixture
def clean_env() -> dict[str, str]:
    """
    Return environment dict with diconf keys removed.

    Use with mock.patch.dict to isolate tests from the actual environment.
    """
    return {k: v for k, v in _os.environ.items() if k not in ENV_KEYS_TO_CLEAR}


@_pytest.fixture
def isolated_env(clean_env: dict[str, str]):
    """
    Context manager that isolates tests from environment variables.

    Usage:
        def test_something(isolated_env):
            with isolated_env:
                s = settings.Settings()
    """
    return _mock.patch.dict(_os.environ, clean_env, clear=True)


@_pytest.fixture
def clean_settings(isolated_env) -> settings.Settings:
    """Settings instance isolated from the environment."""
    with isolated_env:
        return settings.Settings()


# =============================================================================
# Pipeline Fixtures
# =============================================================================


@_pytest.fixture
def builder() -> registry.DefinitionRegistry:
    """Empty definition registry."""
    return registry.DefinitionRegistry()


@_pytest.fixture
def interface_exists() -> _typing.Callable[[str], bool]:
    """Interface predicate knowing only TEST_INTERFACES."""
    return lambda name: name in TEST_INTERFACES


@_pytest.fixture
def proc(
    builder: registry.DefinitionRegistry,
    clean_settings: settings.Settings,
    interface_exists: _typing.Callable[[str], bool],
) -> processor.Processor:
    """Processor over the ``builder`` fixture with default settings."""
    return processor.Processor(
        builder, settings=clean_settings, interface_exists=interface_exists
    )


@_pytest.fixture
def adapter(clean_settings: settings.Settings) -> adapters.YamlAdapter:
    """YAML adapter with default settings."""
    return adapters.YamlAdapter(clean_settings)


@_pytest.fixture
def config_loader(
    proc: processor.Processor,
    adapter: adapters.YamlAdapter,
) -> loader.ConfigLoader:
    """ConfigLoader wired to the ``proc`` and ``adapter`` fixtures."""
    return loader.ConfigLoader(proc, adapter)


@_pytest.fixture
def write_config(tmp_path: _pathlib.Path) -> _typing.Callable[[str, str], _pathlib.Path]:
    """
    Factory writing a dedented YAML document to a temporary file.

    Usage:
        def test_something(write_config):
            path = write_config("base.yaml", '''
                services:
                    mailer: App.Mailer
            ''')
    """

    def _write(name: str, content: str) -> _pathlib.Path:
        path = tmp_path / name
        path.write_text(_textwrap.dedent(content).lstrip(), encoding="utf-8")
        return path

    return _write
