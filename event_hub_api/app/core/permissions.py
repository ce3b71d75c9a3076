"""
Relationship-based authorization.

Endpoints grant access to a resource when the caller stands in one of
a few relationships to it: the ``owner`` of a record (e.g. the payer
of a payment), the ``organizer`` of the event the record belongs to,
or an ``admin``.  ``check_access`` is the single place where these
relationships are evaluated; services call it with the relationships
they accept and the ids that define them.
"""

from typing import Any, Dict, Optional


OWNER = "owner"
ORGANIZER = "organizer"
ADMIN = "admin"

RELATIONSHIPS = frozenset({OWNER, ORGANIZER, ADMIN})


def is_admin(current_user: Dict[str, Any]) -> bool:
    return current_user.get("role") == ADMIN


def has_relationship(
    current_user: Dict[str, Any],
    relationship: str,
    *,
    owner_id: Optional[int] = None,
    organizer_id: Optional[int] = None,
) -> bool:
    """Return True if the caller holds ``relationship`` to the resource."""
    if relationship not in RELATIONSHIPS:
        raise ValueError(f"Unknown relationship: {relationship}")
    user_id = current_user.get("user_id")
    if relationship == ADMIN:
        return is_admin(current_user)
    if user_id is None:
        return False
    if relationship == OWNER:
        return owner_id is not None and owner_id == user_id
    return organizer_id is not None and organizer_id == user_id


def check_access(
    current_user: Dict[str, Any],
    *relationships: str,
    owner_id: Optional[int] = None,
    organizer_id: Optional[int] = None,
) -> None:
    """Raise ``PermissionError`` unless the caller holds any of ``relationships``."""
    for relationship in relationships:
        if has_relationship(current_user, relationship, owner_id=owner_id, organizer_id=organizer_id):
            return
    raise PermissionError("Unauthorized")
