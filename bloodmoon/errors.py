"""Exceptions raised by the game core."""


class BloodmoonError(Exception):
    """Base class for all game errors."""


class ValidationRejection(BloodmoonError):
    """An illegal submission. Reported privately, never mutates state."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class CollaboratorFailure(BloodmoonError):
    """An AI or voice collaborator threw, timed out or returned junk."""


class InvariantViolation(BloodmoonError):
    """Core state is inconsistent. Indicates a bug, never caught."""


class SessionNotFound(BloodmoonError):
    """No session is registered under the given code."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Game {code} no longer exists.")
        self.code = code
