# core/resolver.py

"""
Permission resolution.

Pure functions: they take already-fetched snapshots and return the derived
EffectivePermissionSet. No I/O, no caching, safe to call any number of times.

Coarse module keys follow the ceiling merge:

    super_admin, admin -> copy of the global flags, overrides ignored
    staff              -> copy of the global flags, then each stored override
                          applied only where the ceiling is open

Granular tab keys are assigned directly and default to deny; super_admin is
granted every tab.
"""

from typing import Dict, Iterable, Optional

from models.enums import OverrideState, Role
from models.permissions import (
    EffectivePermissionSet,
    GlobalFlagSet,
    GranularTabSet,
    OverrideSet,
)


def resolve_modules(
    role: Role,
    global_flags: GlobalFlagSet,
    overrides: Optional[OverrideSet] = None,
) -> Dict[str, bool]:
    ceiling = {key: value is True for key, value in global_flags.flags.items()}

    if role == Role.super_admin or role == Role.admin:
        return dict(ceiling)

    if role == Role.staff:
        effective = dict(ceiling)
        if overrides is None:
            return effective

        for key, state in overrides.overrides.items():
            if state == OverrideState.inherit:
                continue
            if ceiling.get(key) is True:
                effective[key] = state == OverrideState.allow
            else:
                # Closed (or unknown) ceiling always wins
                effective[key] = False
        return effective

    raise ValueError(f"Unhandled role: {role!r}")


def resolve_tabs(
    role: Role,
    tab_keys: Iterable[str],
    granular: Optional[GranularTabSet] = None,
) -> Dict[str, bool]:
    keys = list(tab_keys)

    if role == Role.super_admin:
        return {key: True for key in keys}

    if role == Role.admin or role == Role.staff:
        assigned = granular.tabs if granular is not None else {}
        return {key: assigned.get(key) is True for key in keys}

    raise ValueError(f"Unhandled role: {role!r}")


def resolve(
    role: Role,
    global_flags: GlobalFlagSet,
    overrides: Optional[OverrideSet] = None,
    granular: Optional[GranularTabSet] = None,
    tab_keys: Iterable[str] = (),
) -> EffectivePermissionSet:
    """Resolve(role, globalFlags, overrides) plus the granular tab half."""
    return EffectivePermissionSet(
        modules=resolve_modules(role, global_flags, overrides),
        tabs=resolve_tabs(role, tab_keys, granular),
    )


def closed_flags(keys: Iterable[str]) -> GlobalFlagSet:
    """Every key false. Used when the ceiling could not be fetched."""
    return GlobalFlagSet(flags={key: False for key in keys})
