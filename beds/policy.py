"""
Single place where roles are mapped to lifecycle actions.

Every service calls :func:`require` (or :func:`is_allowed`) with the
acting user, the action name and, where ownership matters, the record
being acted on.
"""
from __future__ import annotations

from typing import Any, Optional

from beds.errors import ForbiddenError

ADMIN = 'admin'
BED_MANAGER = 'bed_manager'
WARD_STAFF = 'ward_staff'
ER_STAFF = 'er_staff'

MANAGER_ROLES = frozenset({ADMIN, BED_MANAGER})

# action -> roles allowed regardless of ownership
ROLE_MATRIX: dict[str, frozenset[str]] = {
    'request.create': frozenset({ER_STAFF, ADMIN}),
    'request.approve': MANAGER_ROLES,
    'request.deny': MANAGER_ROLES,
    'request.fulfill': frozenset({BED_MANAGER, WARD_STAFF, ADMIN}),
    'request.cancel': MANAGER_ROLES,
    'request.update': MANAGER_ROLES,
    'request.delete': frozenset({ADMIN}),
    'request.view': frozenset({ADMIN, BED_MANAGER, WARD_STAFF}),
    'bed.update': frozenset({ADMIN, BED_MANAGER, WARD_STAFF}),
    'transfer.request': frozenset({ADMIN, BED_MANAGER, WARD_STAFF}),
    'transfer.review': MANAGER_ROLES,
    'cleaning.manage': frozenset({ADMIN, BED_MANAGER, WARD_STAFF}),
    'settings.update': frozenset({ADMIN}),
    'capacity.sync': frozenset({ADMIN}),
}

# actions the record's creator may always perform on their own record
OWNER_ACTIONS = frozenset({'request.cancel', 'request.update', 'request.delete', 'request.view'})

MESSAGES = {
    'request.cancel': 'Can only cancel your own requests',
    'request.update': 'Can only update your own requests',
    'request.delete': 'Can only delete your own requests',
    'request.view': 'Access denied to this request',
}


def _owner_id(resource: Any) -> Optional[int]:
    return getattr(resource, 'created_by_id', None)


def is_allowed(actor, action: str, resource: Any = None) -> bool:
    if actor is None or not getattr(actor, 'is_authenticated', False):
        return False
    if action not in ROLE_MATRIX:
        return False
    if getattr(actor, 'role', None) in ROLE_MATRIX[action]:
        return True
    if action in OWNER_ACTIONS and resource is not None:
        owner = _owner_id(resource)
        return owner is not None and owner == actor.pk
    return False


def require(actor, action: str, resource: Any = None) -> None:
    if not is_allowed(actor, action, resource):
        raise ForbiddenError(MESSAGES.get(action, 'Insufficient permissions'))
