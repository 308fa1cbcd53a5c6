"""
Multi-file configuration loading.

ConfigLoader drives the whole pipeline for a list of files:

1. Each file is decoded and resolved by the adapter
2. Every entry of its ``services`` section is normalized, so that short
   forms (``mailer: App.Mailer``) merge with full mappings
3. Files are merged in order, later files taking priority
4. The merged ``services`` section is registered by the Processor
"""

from __future__ import annotations

import logging as _logging
import pathlib as _pathlib
import typing as _typing

import diconf.adapters as adapters
import diconf.merge as merge
import diconf.normalizer as normalizer
import diconf.processor as diconf_processor

_logger = _logging.getLogger(__name__)

SERVICES_KEY = "services"


class ConfigLoader:
    """Loads, merges and registers configuration files."""

    def __init__(
        self,
        processor: diconf_processor.Processor,
        adapter: adapters.YamlAdapter | None = None,
    ) -> None:
        self._processor = processor
        self._adapter = adapter or adapters.YamlAdapter(processor.settings)

    def load_file(self, path: _pathlib.Path | str) -> dict[_typing.Any, _typing.Any]:
        """Load one file with its services normalized."""
        config = self._adapter.load(path)
        services = config.get(SERVICES_KEY)
        if isinstance(services, dict):
            config[SERVICES_KEY] = {
                name: definition if name == merge.OVERWRITE_KEY else self._normalize(definition)
                for name, definition in services.items()
            }
        elif isinstance(services, list):
            config[SERVICES_KEY] = [
                self._normalize(definition) for definition in services
            ]
        return config

    def _normalize(self, definition: _typing.Any) -> _typing.Any:
        normalized = self._processor.normalize_structure(definition)
        if normalizer.is_removal(normalized):
            # Removal replaces whatever earlier files defined
            return merge.OverwriteList(normalized)
        return normalized

    def load(self, *paths: _pathlib.Path | str) -> dict[_typing.Any, _typing.Any]:
        """
        Load and merge files.

        Args:
            paths: Files in ascending priority.

        Returns:
            The merged configuration.
        """
        merged: dict[_typing.Any, _typing.Any] = {}
        for path in paths:
            merged = self._processor.merge(merged, self.load_file(path))
        _logger.debug("Merged %d config files", len(paths))
        return merged

    def register(
        self,
        *paths: _pathlib.Path | str,
        namespace: str | None = None,
    ) -> dict[_typing.Any, _typing.Any]:
        """
        Load files and register their services.

        Args:
            paths: Files in ascending priority.
            namespace: Optional namespace applied to named services.

        Returns:
            The merged configuration.
        """
        config = self.load(*paths)
        services = config.get(SERVICES_KEY) or {}
        if namespace is not None and isinstance(services, dict):
            services = self._processor.apply_namespace(services, namespace)
        self._processor.load_definitions(services)
        return config
