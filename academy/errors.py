"""
Error kinds shared by every academy app.

Each app defines its own hierarchy in ``<app>/errors.py`` (the way the
workflow API does); the classes here are the cross-cutting kinds those
hierarchies mix in, so a caller can catch "any not-found error" without
knowing which app raised it.

Every error carries a ``user_message``: a human readable sentence that is
safe to show at the boundary. Log messages (the exception's ``str``) may
contain row ids; user messages never do.
"""

import copy


GENERIC_ERROR_MESSAGE = "요청을 처리하는 중 오류가 발생했습니다."


class AcademyError(Exception):
    """Base class for all errors raised by the academy APIs."""

    default_user_message = GENERIC_ERROR_MESSAGE

    def __init__(self, message=None, user_message=None):
        super().__init__(message or user_message or self.default_user_message)
        self.user_message = user_message or self.default_user_message


class PermissionDenied(AcademyError):
    """The acting user's role does not grant the requested action."""

    default_user_message = "해당 작업을 수행할 권한이 없습니다."


class InvalidStateError(AcademyError):
    """The requested change is not allowed in the entity's current state."""

    default_user_message = "현재 상태에서는 요청한 작업을 수행할 수 없습니다."


class ValidationFailure(AcademyError):
    """
    Submitted data failed validation.

    ``field_errors`` maps field names (or question ids) to messages so a
    client can highlight the offending field.
    """

    default_user_message = "입력한 내용을 확인해 주세요."

    def __init__(self, field_errors, message=None, user_message=None):
        super().__init__(message or repr(field_errors), user_message)
        self.field_errors = copy.deepcopy(field_errors)


class NotFoundError(AcademyError):
    """A referenced form, question, report or mapping does not exist."""

    default_user_message = "요청한 항목을 찾을 수 없습니다."


class DependencyFailure(AcademyError):
    """A side effect that a write depends on could not be completed."""

    default_user_message = "연관된 데이터를 저장하지 못해 작업을 중단했습니다."


def user_message(exc):
    """
    Resolve any exception to a message that is safe to show to a user.

    Args:
        exc (Exception): The error raised by an API call.

    Returns:
        str
    """
    if isinstance(exc, AcademyError):
        return exc.user_message
    return GENERIC_ERROR_MESSAGE
