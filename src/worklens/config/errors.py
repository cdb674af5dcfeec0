"""Errors raised while loading worklens settings and seed data."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationError(RuntimeError):
    """A worklens setting or seed file could not be used.

    The CLI maps this to exit status 2.
    """


class MissingConfigurationError(ConfigurationError):
    """One or more ``WORKLENS_*`` variables the command needs are unset."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = tuple(sorted(names))
        super().__init__(f"Set {', '.join(self.names)} in the environment or .env file")
