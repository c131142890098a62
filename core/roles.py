# ============================================
# ROLE HIERARCHY
# ============================================
# super_admin > admin > staff
# Ranks only matter relative to each other.
# ============================================
from models.enums import Role


ROLE_RANK = {

    # =====================================================
    # SUPER ADMIN: owns the global ceiling
    # =====================================================
    Role.super_admin: 100,

    # =====================================================
    # ADMIN: inherits the ceiling, delegates to staff
    # =====================================================
    Role.admin: 50,

    # =====================================================
    # STAFF: ceiling narrowed by per-user overrides
    # =====================================================
    Role.staff: 10,
}


def rank(role: Role) -> int:
    return ROLE_RANK[Role(role)]


def outranks(actor: Role, target: Role) -> bool:
    """True when actor sits strictly above target."""
    return rank(actor) > rank(target)


def at_least(role: Role, minimum: Role) -> bool:
    return rank(role) >= rank(minimum)


def parse_role(raw) -> Role:
    """
    Map a stored role string onto the closed enum.
    Anything unrecognised falls back to the least privileged role.
    """
    try:
        return Role(str(raw))
    except ValueError:
        return Role.staff
