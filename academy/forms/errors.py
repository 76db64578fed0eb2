"""
Errors defined by the form API.
"""

from academy.errors import AcademyError, DependencyFailure, InvalidStateError, NotFoundError, ValidationFailure

FORM_SENT_MESSAGE = "이미 전송된 폼은 수정할 수 없습니다."


class FormError(AcademyError):
    """An error that occurs while creating, editing or sending a form."""


class FormInternalError(FormError):
    """An error internal to the form API, such as a database failure."""


class FormRequestError(FormError, ValidationFailure):
    """
    The submitted form, question or answer data is invalid.

    ``field_errors`` maps field names (for question configuration) or
    question ids (for answers) to messages.
    """


class FormNotFoundError(FormError, NotFoundError):
    """The referenced form or question does not exist."""

    default_user_message = "폼을 찾을 수 없습니다."


class FormStateError(FormError, InvalidStateError):
    """The form's status does not allow the requested change."""


class FormSentError(FormStateError):
    """
    The form has been sent, so its questions can no longer change.

    Every question mutation reports the same message.
    """

    default_user_message = FORM_SENT_MESSAGE


class ConceptTemplateError(FormError):
    """An error that occurs while working with concept templates."""


class ConceptTemplateNotFoundError(ConceptTemplateError, NotFoundError):
    """The referenced concept template does not exist."""

    default_user_message = "개념 템플릿을 찾을 수 없습니다."


class ConceptTemplateDependencyError(ConceptTemplateError, DependencyFailure):
    """A concept template an exam question depends on could not be created."""

    default_user_message = "시험 문항의 개념 템플릿을 생성하지 못했습니다."


class ConceptTemplateInUseError(ConceptTemplateError, InvalidStateError):
    """An exam question still uses the concept template."""

    default_user_message = "사용 중인 템플릿은 삭제할 수 없습니다."
