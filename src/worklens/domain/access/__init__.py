"""Record-access resolution: alias registry, field matcher and identity resolver."""

from __future__ import annotations

from .matching import match_value, matches, matching_alias, normalize_token
from .registry import (
    NESTED_IDENTITY_KEYS,
    ROLE_BINDINGS,
    ROLES_BY_KIND,
    RoleBinding,
    binding_for,
    bindings_for_component,
    roles_for,
)
from .resolver import IdentityResolver, MatchVia, OwnershipMatch, deep_scan_contains, is_owned_by

__all__ = [
    "NESTED_IDENTITY_KEYS",
    "ROLES_BY_KIND",
    "ROLE_BINDINGS",
    "IdentityResolver",
    "MatchVia",
    "OwnershipMatch",
    "RoleBinding",
    "binding_for",
    "bindings_for_component",
    "deep_scan_contains",
    "is_owned_by",
    "match_value",
    "matches",
    "matching_alias",
    "normalize_token",
    "roles_for",
]
