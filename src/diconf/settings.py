"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with DICONF_ prefix

Example:
  DICONF_DEPRECATIONS=log
  DICONF_DUMP_INDENT=2
"""

import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

DeprecationMode = _typing.Literal["warn", "log", "ignore"]

DEFAULT_DUMP_HEADER = "# generated by diconf"


class Settings(_pydantic_settings.BaseSettings):
    """
    Processing options for diconf.

    Settings only change how diagnostics are delivered and how documents
    are written back; they never change the normalized result.
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix="DICONF_",
        extra="ignore",
    )

    deprecations: DeprecationMode = "warn"
    """How deprecated syntax is reported: warnings.warn, a log record, or not at all."""

    dump_header: str = DEFAULT_DUMP_HEADER
    """Comment line written at the top of dumped documents."""

    dump_indent: int = _pydantic.Field(default=4, ge=2, le=9)
    """Indentation width for dumped documents."""

    @_pydantic.field_validator("dump_header")
    @classmethod
    def _header_is_comment(cls, value: str) -> str:
        """The header must stay a YAML comment so dumps load back."""
        if value and not all(line.startswith("#") for line in value.splitlines()):
            raise ValueError("dump_header lines must start with '#'")
        return value
