# app/core/roles.py
"""
Role tiers and access decisions.

Privilege is a single ranked table: supadmin > admin > resident.
Roles missing from the table (field_officer, partner, unknown strings,
no role at all) have no tier and are denied everywhere.

All functions here are pure; the auth guard feeds them the *effective*
role of a user, which is None for deactivated accounts.
"""
from enum import Enum, IntEnum

from app.models.user import ApplicationUser


class Role(str, Enum):
    """Values stored in users.role."""

    RESIDENT = "resident"
    ADMIN = "admin"
    SUPADMIN = "supadmin"
    # Reserved by the data layer; no tier until explicitly ranked.
    FIELD_OFFICER = "field_officer"
    PARTNER = "partner"


class Tier(IntEnum):
    RESIDENT = 1
    ADMIN = 2
    SUPADMIN = 3


TIER_BY_ROLE: dict[Role, Tier] = {
    Role.RESIDENT: Tier.RESIDENT,
    Role.ADMIN: Tier.ADMIN,
    Role.SUPADMIN: Tier.SUPADMIN,
}


def parse_role(value: str | Role | None) -> Role | None:
    """Role for a stored value, or None if absent/unrecognised."""
    if value is None:
        return None
    try:
        return Role(value)
    except ValueError:
        return None


def tier_rank(role: str | Role | None) -> Tier | None:
    return TIER_BY_ROLE.get(parse_role(role))


def has_tier(role: str | Role | None, required: Tier) -> bool:
    """True if `role` ranks at or above `required`."""
    rank = tier_rank(role)
    return rank is not None and rank >= required


def is_admin_tier(role: str | Role | None) -> bool:
    return has_tier(role, Tier.ADMIN)


def is_supadmin_tier(role: str | Role | None) -> bool:
    return has_tier(role, Tier.SUPADMIN)


def is_resident_tier(role: str | Role | None) -> bool:
    # exact match: admins are not "residents", they only pass resident-level checks
    return tier_rank(role) == Tier.RESIDENT


def has_no_tier(role: str | Role | None) -> bool:
    return tier_rank(role) is None


def effective_role(user: ApplicationUser | None) -> Role | None:
    """
    Role used for access decisions.

    Deactivated users have none, regardless of the stored role.
    """
    if user is None or not user.is_active:
        return None
    return parse_role(user.role)
