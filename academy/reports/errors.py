"""
Errors defined by the report workflow API.
"""

from academy.errors import AcademyError, InvalidStateError, NotFoundError, ValidationFailure


class ReportError(AcademyError):
    """An error that occurs while moving a report through its stages."""


class ReportInternalError(ReportError):
    """An error internal to the report API, such as a database failure."""


class ReportRequestError(ReportError, ValidationFailure):
    """The request (target stage, reason, comment) was invalid."""


class ReportNotFoundError(ReportError, NotFoundError):
    """The referenced report does not exist."""

    default_user_message = "보고서를 찾을 수 없습니다."


class ReportStageError(ReportError, InvalidStateError):
    """The report's current stage does not allow the requested change."""

    default_user_message = "현재 단계에서는 처리할 수 없는 요청입니다."


class SupervisionError(AcademyError):
    """An error that occurs while assigning reviewers."""


class SupervisionInternalError(SupervisionError):
    """The supervision mapping could not be saved."""


class SupervisionRequestError(SupervisionError, ValidationFailure):
    """Neither a part-time teacher nor a teacher was given."""
