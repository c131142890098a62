# core/delegation.py

"""
Delegation authority.

A grantor may never hand out a permission it does not itself effectively
hold. super_admin is unconditional; admin is limited to its own resolved
set; staff never grants. Some keys are never offered to staff targets at
all (see core.permissions.STAFF_DENIED_*).

The same checks back both the editor (which controls to show) and the save
path (which re-checks everything before anything is written).
"""

from typing import Dict, Iterable, List, Optional

from core.errors import InvalidGrantAttempt
from core.permissions import catalog_by_key, is_staff_denied
from core.roles import outranks
from models.enums import Role
from models.permissions import EffectivePermissionSet, ModuleDefinition


def can_grant(
    grantor_role: Role,
    grantor_effective: EffectivePermissionSet,
    definition: Optional[ModuleDefinition],
    target_role: Optional[Role] = None,
) -> bool:
    """
    CanGrant(grantor, moduleKey). Unknown keys are never grantable.

    With a target, the grantor must also outrank it and coarse keys are
    only offered for staff targets, matching what a save accepts.
    """
    if definition is None:
        return False

    if target_role is not None:
        if not outranks(grantor_role, target_role):
            return False
        if not definition.is_tab and target_role != Role.staff:
            return False

    if target_role == Role.staff and is_staff_denied(definition):
        return False

    if grantor_role == Role.super_admin:
        return True

    if grantor_role == Role.admin:
        if definition.is_tab:
            return grantor_effective.tab_enabled(definition.key)
        return grantor_effective.module_enabled(definition.key)

    if grantor_role == Role.staff:
        return False

    raise ValueError(f"Unhandled role: {grantor_role!r}")


def grantable_definitions(
    grantor_role: Role,
    grantor_effective: EffectivePermissionSet,
    catalog: Iterable[ModuleDefinition],
    target_role: Role,
    tabs: bool,
) -> List[ModuleDefinition]:
    """Catalog entries (one namespace) the grantor may show controls for."""
    return [
        entry
        for entry in catalog
        if entry.is_tab == tabs
        and can_grant(grantor_role, grantor_effective, entry, target_role)
    ]


def _violation(key: str, reason: str) -> dict:
    return {"key": key, "reason": reason}


def check_target(grantor_role: Role, target_role: Role, tabs: bool) -> None:
    if not outranks(grantor_role, target_role):
        raise InvalidGrantAttempt(
            f"A {grantor_role} cannot change permissions of a {target_role}"
        )

    if not tabs and target_role != Role.staff:
        raise InvalidGrantAttempt(
            "Module overrides only apply to staff accounts"
        )


def validate_changes(
    grantor_role: Role,
    grantor_effective: EffectivePermissionSet,
    catalog: Iterable[ModuleDefinition],
    target_role: Role,
    changes: Dict[str, object],
    tabs: bool,
) -> None:
    """
    Re-check every requested key before a save.

    Raises InvalidGrantAttempt listing all violations; returns None when the
    whole request may be committed.
    """
    check_target(grantor_role, target_role, tabs)

    by_key = catalog_by_key(catalog)
    violations = []

    for key in changes:
        definition = by_key.get(key)
        if definition is None:
            violations.append(_violation(key, "unknown module key"))
            continue

        if definition.is_tab != tabs:
            expected = "tab" if tabs else "module"
            violations.append(_violation(key, f"not a {expected} key"))
            continue

        if target_role == Role.staff and is_staff_denied(definition):
            violations.append(_violation(key, "not assignable to staff accounts"))
            continue

        if not can_grant(grantor_role, grantor_effective, definition, target_role):
            violations.append(_violation(key, "grantor does not hold this permission"))

    if violations:
        raise InvalidGrantAttempt(
            "Permission change rejected; nothing was saved", violations
        )
