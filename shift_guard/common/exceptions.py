"""Exception hierarchy for NICU Shift Guard."""

from __future__ import annotations


class ShiftGuardError(Exception):
    """Base error for the service."""

    pass


class StoreError(ShiftGuardError):
    """Document store read/write failed."""

    def __init__(self, message: str, operation: str | None = None, path: str | None = None):
        self.operation = operation
        self.path = path
        super().__init__(message)


class DocumentNotFound(StoreError):
    """The addressed document does not exist."""

    pass


class CorrectiveActionError(ShiftGuardError):
    """The store refused a delete/restore issued by an enforcement handler.

    Fatal for the invocation; the trigger runtime owns retries.
    """

    def __init__(self, message: str, action: str, path: str):
        self.action = action
        self.path = path
        super().__init__(message)


class AuditWriteError(ShiftGuardError):
    """Appending to the audit trail failed after the corrective action was applied."""

    pass


class AuthenticationError(ShiftGuardError):
    """Caller identity could not be established."""

    pass


class CallableError(ShiftGuardError):
    """Structured error returned by remote-callable procedures.

    ``kind`` is one of: unauthenticated, invalid-argument, not-found, internal.
    ``message`` is safe to return to the caller; the cause stays in logs.
    """

    UNAUTHENTICATED = "unauthenticated"
    INVALID_ARGUMENT = "invalid-argument"
    NOT_FOUND = "not-found"
    INTERNAL = "internal"

    def __init__(self, kind: str, message: str):
        self.kind = kind
        self.message = message
        super().__init__(f"[{kind}] {message}")

    def to_payload(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}
