"""Access policy: who may do what.

Two pure functions hold every rule:

    can(role, policy)                  endpoint-level gate (policy table)
    check_order_write(role, order, fields)  field-level rules for edits

Roles:
    admin:     everything
    kitchen:   reads orders, moves them through preparation (``status`` only)
    caregiver: creates orders and edits them until the kitchen has prepared them

Everything not listed is denied, including unknown roles.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..models.meal_order import TERMINAL_STATUSES

_ALL = frozenset({"admin", "kitchen", "caregiver"})
_ADMIN = frozenset({"admin"})

POLICIES: dict[str, frozenset[str]] = {
    "meal.read": _ALL,
    "meal.create": frozenset({"admin", "caregiver"}),
    "meal.update": _ALL,
    "meal.delete": _ADMIN,
    "resident.read": _ALL,
    "resident.write": _ADMIN,
    "versions.read": _ADMIN,
    "archive.read": _ADMIN,
    "archive.run": _ADMIN,
    "audit.read": _ADMIN,
    "alert.read": frozenset({"admin", "kitchen"}),
    "alert.acknowledge": frozenset({"admin", "kitchen"}),
}


def can(role: str, policy: str) -> bool:
    """True when *role* is granted *policy*. Unknown policies deny."""
    return role in POLICIES.get(policy, frozenset())


def check_order_write(role: str, current_status: str, fields: Iterable[str]) -> Optional[str]:
    """Check an edit of an existing order.

    Returns None when allowed, otherwise the reason for the denial.
    *fields* are the snake_case fields the caller wants to change.
    """
    fields = set(fields)

    if role == "admin":
        return None

    if role == "kitchen":
        extra = fields - {"status"}
        if extra:
            return f"Kitchen staff may only change status (attempted: {', '.join(sorted(extra))})"
        return None

    if role == "caregiver":
        if current_status in TERMINAL_STATUSES:
            return f"Caregivers cannot modify orders that are already {current_status}"
        if "status" in fields:
            return "Caregivers cannot change order status"
        return None

    return f"Role '{role}' may not modify meal orders"
