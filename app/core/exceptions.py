"""Domain errors raised by the membership services.

All of them derive from ValueError so callers that only care about
"bad input vs. unexpected failure" can keep catching ValueError.
"""
from typing import Iterable, List, Optional


class MembershipError(ValueError):
    """Base class for expected, non-retryable membership failures."""


class ValidationError(MembershipError):
    """Client input is malformed or incomplete."""

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class MemberNotFoundError(MembershipError):
    def __init__(self, member_id):
        self.member_id = member_id
        super().__init__("Member not found")


class InvalidStatusError(MembershipError):
    def __init__(self, status, allowed: Iterable[str]):
        self.status = status
        self.allowed = list(allowed)
        super().__init__(f"Invalid status '{status}'. Allowed values: {', '.join(self.allowed)}")


class RoleConflictError(MembershipError):
    """A unique bureau role is already held by another member."""

    def __init__(self, role: str, holder_name: Optional[str] = None):
        self.role = role
        self.holder_name = holder_name
        if holder_name:
            message = f"Role '{role}' is already held by {holder_name}"
        else:
            message = f"Role '{role}' is already held by another member"
        super().__init__(message)


class EmailInUseError(MembershipError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already used by another member")


class NoChangesError(MembershipError):
    def __init__(self):
        super().__init__("No updates provided")


class DuplicateApplicationError(MembershipError):
    """An application already exists for this email."""


class ApplicationsClosedError(MembershipError):
    def __init__(self):
        super().__init__("Les adhésions sont actuellement fermées.")


class CsvImportError(MembershipError):
    """The CSV payload cannot be imported at all."""


class MissingColumnsError(CsvImportError):
    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


class EmptyImportError(CsvImportError):
    def __init__(self):
        super().__init__("CSV must contain a header row and at least one data row")
