"""Rules for which script modules a manifest may add or remove."""

from __future__ import annotations

from collections.abc import Iterable

from .models import ALLOWED_MODULES, DEPRECATED_MODULES

__all__ = ["DependencyChangeError", "validate_changes", "is_allowed", "is_deprecated"]


class DependencyChangeError(ValueError):
    """A requested dependency change is not permitted."""


def is_allowed(module: str) -> bool:
    """Whether the module is on the whitelist of Script API modules."""
    return module in ALLOWED_MODULES


def is_deprecated(module: str) -> bool:
    """Whether the module is an explicitly forbidden legacy module."""
    return module in DEPRECATED_MODULES


def validate_changes(added: Iterable[str], removed: Iterable[str]) -> None:
    """Raise DependencyChangeError if any added or removed module is not permitted."""
    for module in added:
        if is_deprecated(module):
            raise DependencyChangeError(
                f'module "{module}" is deprecated and cannot be added. Use @minecraft/server instead.'
            )
        if not is_allowed(module):
            raise DependencyChangeError(
                f'module "{module}" is not an allowed Bedrock Script API module'
            )
    for module in removed:
        if is_deprecated(module):
            raise DependencyChangeError(
                f'module "{module}" is deprecated and cannot be referenced'
            )