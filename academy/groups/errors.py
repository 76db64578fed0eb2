"""
Errors defined by the group membership API.
"""

from academy.errors import AcademyError, ValidationFailure


class GroupMembershipError(AcademyError):
    """An error that occurs while reading or writing group membership."""


class GroupMembershipInternalError(GroupMembershipError):
    """An error internal to the membership API, such as a database failure."""


class GroupMembershipRequestError(GroupMembershipError, ValidationFailure):
    """The membership request itself was invalid."""
