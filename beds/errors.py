"""
Lifecycle error taxonomy.

Services raise these; ``beds.exceptions.api_exception_handler`` turns
them into ``{"ok": false, "error": {"code", "message"}}`` responses.
Every message is meant for direct display.
"""
from __future__ import annotations


class LifecycleError(Exception):
    code = 'lifecycle_error'
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def as_dict(self) -> dict:
        return {'code': self.code, 'message': self.message}


class ValidationError(LifecycleError):
    """Missing or malformed input."""
    code = 'validation_error'
    status_code = 400


class NotFoundError(LifecycleError):
    code = 'not_found'
    status_code = 404


class ConflictError(LifecycleError):
    """Operation is not valid for the record's current state."""
    code = 'conflict'
    status_code = 409


class ForbiddenError(LifecycleError, PermissionError):
    """Actor may not perform this action on this particular record."""
    code = 'forbidden'
    status_code = 403


class InvalidTransitionError(LifecycleError):
    code = 'invalid_transition'
    status_code = 409

    def __init__(self, source: str, target: str, allowed):
        allowed = sorted(allowed)
        self.source = source
        self.target = target
        self.allowed = allowed
        super().__init__(
            f"Invalid state transition: cannot change from '{source}' to '{target}'. "
            f"Allowed transitions: {', '.join(allowed) or 'none'}"
        )


class NoCapacityError(LifecycleError):
    """No bed matches the criteria for a transfer or admission."""
    code = 'no_capacity'
    status_code = 409

    def __init__(self, message: str, alternatives: dict | None = None):
        super().__init__(message)
        self.alternatives = alternatives

    def as_dict(self) -> dict:
        data = super().as_dict()
        if self.alternatives is not None:
            data['alternatives'] = self.alternatives
        return data
