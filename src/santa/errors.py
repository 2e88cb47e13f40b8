"""Domain error taxonomy.

Services raise these; ``santa.middleware.error_handler`` renders them as
``{"detail": <message>, "code": <code>}`` with the class's HTTP status.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for every user-facing business-rule failure."""

    status_code: int = 400
    code: str = "error"
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# --- 400 ---


class ValidationFailed(DomainError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid input"


class InsufficientMembers(ValidationFailed):
    code = "insufficient_members"
    default_message = "Need at least 2 members to generate assignments"


class NotAMember(ValidationFailed):
    code = "not_a_member"
    default_message = "Both users must be members of this group"


# --- 401 / 403 / 404 ---


class Unauthenticated(DomainError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Not authenticated"


class Forbidden(DomainError):
    status_code = 403
    code = "forbidden"
    default_message = "You do not have permission to perform this action"


class NotFound(DomainError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class InvalidInviteCode(NotFound):
    code = "invalid_invite_code"
    default_message = "Invalid invite code"


# --- 409 ---


class Conflict(DomainError):
    status_code = 409
    code = "conflict"
    default_message = "Conflict"


class AlreadyMember(Conflict):
    code = "already_member"
    default_message = "Already a member of this group"


class AlreadyClaimed(Conflict):
    code = "already_claimed"
    default_message = "Item already claimed"


class SelfAssignment(Conflict):
    code = "self_assignment"
    default_message = "User cannot be assigned to themselves"


class SelfClaim(Conflict):
    code = "self_claim"
    default_message = "You cannot claim your own wishlist items"


class EmailTaken(Conflict):
    code = "email_taken"
    default_message = "Email already registered"
