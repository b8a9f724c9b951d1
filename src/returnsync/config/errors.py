"""Errors raised while reading returnsync settings from the environment."""

from __future__ import annotations

from collections.abc import Iterable


class ConfigurationError(RuntimeError):
    """A setting is present but unusable, such as a non-numeric interval."""


class MissingConfigurationError(ConfigurationError):
    """Channel credentials or other required variables are absent or blank."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = tuple(sorted(names))
        super().__init__(f"Missing configuration for: {', '.join(self.names)}")
