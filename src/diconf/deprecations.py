"""
Delivery of deprecation notices.

Deprecated syntax never stops processing. Depending on the configured
mode, a notice is issued as a DiconfDeprecationWarning, written to the
log, or dropped.
"""

from __future__ import annotations

import logging as _logging
import typing as _typing
import warnings as _warnings

import diconf.settings as settings

_logger = _logging.getLogger(__name__)

Reporter = _typing.Callable[[str], None]


class DiconfDeprecationWarning(DeprecationWarning):
    """Warning category for deprecated configuration syntax."""


def report(message: str, mode: settings.DeprecationMode = "warn") -> None:
    """
    Report a deprecated construct.

    Args:
        message: Human readable description of the deprecated construct.
        mode: "warn" issues a warning, "log" logs it, "ignore" drops it.
    """
    if mode == "warn":
        _warnings.warn(message, DiconfDeprecationWarning, stacklevel=3)
    elif mode == "log":
        _logger.warning("Deprecated: %s", message)


def reporter_for(mode: settings.DeprecationMode) -> Reporter:
    """Return a one-argument reporter bound to a mode."""

    def _report(message: str) -> None:
        report(message, mode)

    return _report
