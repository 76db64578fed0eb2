"""
HTTP API for the academy workflow.

The views are thin: they read the acting user from the request, call the
app APIs, and return what those return.  Errors raised by the APIs are
turned into responses by ``exception_handler``.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.views import exception_handler as drf_exception_handler

from academy import membership
from academy.errors import (
    AcademyError,
    DependencyFailure,
    InvalidStateError,
    NotFoundError,
    PermissionDenied,
    ValidationFailure,
)
from academy.forms import api as forms_api
from academy.forms.editor import FormEditor
from academy.forms.errors import FormRequestError
from academy.forms.serializers import FormRequestSerializer, QuestionMoveSerializer
from academy.permissions import ACTIONS, ROLE, PermissionContext, require
from academy.reports import api as reports_api
from academy.reports import statistics
from academy.reports.serializers import StatisticsQuerySerializer

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

ERROR_STATUS_CODES = (
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (ValidationFailure, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DependencyFailure, status.HTTP_502_BAD_GATEWAY),
)


def exception_handler(exc, context):
    """
    Render academy errors as ``{"error": ..., "field_errors": {...}}``.

    Only the error's user message is rendered, never its log message.
    Anything else is left to REST framework.
    """
    if not isinstance(exc, AcademyError):
        return drf_exception_handler(exc, context)

    for kind, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, kind):
            break
    else:
        logger.error("Unhandled academy error: %s", exc)
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return Response(
        {'error': exc.user_message, 'field_errors': getattr(exc, 'field_errors', {})},
        status=status_code,
    )


def _user_id(request):
    return request.user.get_username()


def _require_in_group(request, group_id, action, context=None):
    role = membership.resolve_role(group_id, _user_id(request))
    require(role, action, context)
    return role


def _field_errors(errors):
    """Key the errors of a nested list field as ``field[index]``."""
    field_errors = {}
    for field, messages in errors.items():
        if isinstance(messages, list) and any(isinstance(item, dict) for item in messages):
            field_errors.update(
                (f"{field}[{index}]", item) for index, item in enumerate(messages) if item
            )
        else:
            field_errors[field] = messages
    return field_errors


def _validated(serializer_class, data):
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        raise ValidationFailure(_field_errors(serializer.errors))
    return serializer.validated_data


def _editor_from_data(data, group_id, user_id):
    editor = FormEditor(
        group_id=group_id,
        creator_id=user_id,
        title=data['title'],
        description=data['description'],
        time_teacher_id=data['time_teacher_id'],
        teacher_id=data['teacher_id'],
    )
    for index, question_data in enumerate(data['questions']):
        question = editor.add_question(question_data['question_type'])
        fields = dict(question_data['config'])
        fields.update(
            (name, question_data[name]) for name in ('question_text', 'is_required') if name in question_data
        )
        try:
            editor.update_question(question.order_index, **fields)
        except FormRequestError as ex:
            raise FormRequestError({f"questions[{index}]": ex.field_errors}) from ex
    return editor


class GroupFormsView(APIView):
    """
    GET: list the forms of a group.
    POST: create a form, with its questions.
    """

    def get(self, request, group_id):
        _require_in_group(request, group_id, ACTIONS.READ_FORM)
        return Response(forms_api.list_forms(group_id, status=request.query_params.get('status')))

    def post(self, request, group_id):
        user_id = _user_id(request)
        data = _validated(FormRequestSerializer, request.data)
        form = forms_api.save_form(_editor_from_data(data, group_id, user_id), user_id, draft=data['draft'])
        return Response(form, status=status.HTTP_201_CREATED)


class FormDetailView(APIView):
    """
    GET: a form with its questions.
    PATCH: change the title or description.
    DELETE: delete a form that has not been sent.
    """

    def get(self, request, form_id):
        form = forms_api.get_form_with_questions(form_id)
        _require_in_group(request, form['group_id'], ACTIONS.READ_FORM)
        return Response(form)

    def patch(self, request, form_id):
        return Response(forms_api.update_form_details(
            form_id, _user_id(request),
            title=request.data.get('title'),
            description=request.data.get('description'),
        ))

    def delete(self, request, form_id):
        forms_api.delete_form(form_id, _user_id(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class FormQuestionsView(APIView):
    """
    POST: append a question (``question_type``) to a form.
    """

    def post(self, request, form_id):
        question = forms_api.add_question(form_id, _user_id(request), request.data.get('question_type'))
        return Response(question, status=status.HTTP_201_CREATED)


class QuestionDetailView(APIView):
    """
    PATCH: change a question; config fields may be given at the top level
    or under ``config``.
    DELETE: remove a question.
    """

    def patch(self, request, form_id, question_id):
        fields = dict(request.data.items())
        config = fields.pop('config', None) or {}
        if not isinstance(config, dict):
            raise ValidationFailure({'config': "설정 형식이 올바르지 않습니다."})
        clashing = sorted(set(config) & set(fields))
        if clashing:
            raise ValidationFailure({name: "같은 항목이 두 번 주어졌습니다." for name in clashing})
        fields.update(config)
        return Response(forms_api.update_question(form_id, _user_id(request), question_id, **fields))

    def delete(self, request, form_id, question_id):
        forms_api.delete_question(form_id, _user_id(request), question_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class QuestionMoveView(APIView):

    def post(self, request, form_id):
        data = _validated(QuestionMoveSerializer, request.data)
        return Response(forms_api.move_question(form_id, _user_id(request), data['from_index'], data['to_index']))


class FormSendView(APIView):

    def post(self, request, form_id):
        return Response(forms_api.send_form(form_id, _user_id(request), request.data.get('targets', [])))


class FormDuplicateView(APIView):
    """
    POST: copy a form into a new draft.
    """

    def post(self, request, form_id):
        user_id = _user_id(request)
        editor = forms_api.duplicate_form(
            form_id, user_id, add_suffix=bool(request.data.get('add_suffix', True))
        )
        form = forms_api.save_form(editor, user_id, draft=True)
        return Response(form, status=status.HTTP_201_CREATED)


class FormResponseView(APIView):

    def post(self, request, form_id):
        response = forms_api.submit_response(form_id, _user_id(request), request.data.get('answers', {}))
        return Response(response, status=status.HTTP_201_CREATED)


class GroupConceptTemplatesView(APIView):
    """
    GET: the group's concept templates, optionally filtered by ``status``,
    ``name`` (contains) or ``creator_id``.
    POST: create a concept template.
    """

    def get(self, request, group_id):
        _require_in_group(request, group_id, ACTIONS.READ_FORM)
        return Response(forms_api.list_concept_templates(
            group_id,
            status=request.query_params.get('status'),
            name=request.query_params.get('name'),
            creator_id=request.query_params.get('creator_id'),
        ))

    def post(self, request, group_id):
        template = forms_api.create_concept_template(
            group_id, _user_id(request),
            name=request.data.get('name', ""),
            concept_count=request.data.get('concept_count'),
            items=request.data.get('items', []),
            status=request.data.get('status'),
        )
        return Response(template, status=status.HTTP_201_CREATED)


class ConceptTemplateDetailView(APIView):
    """
    GET: a concept template with its items.
    PATCH: change its name, concept count, status or (all of its) items.
    DELETE: delete a template no exam question uses.
    """

    def get(self, request, template_id):
        template = forms_api.get_concept_template(template_id)
        _require_in_group(request, template['group_id'], ACTIONS.READ_FORM)
        return Response(template)

    def patch(self, request, template_id):
        return Response(forms_api.update_concept_template(
            template_id, _user_id(request),
            name=request.data.get('name'),
            concept_count=request.data.get('concept_count'),
            status=request.data.get('status'),
            items=request.data.get('items'),
        ))

    def delete(self, request, template_id):
        forms_api.delete_concept_template(template_id, _user_id(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class ConceptTemplateDuplicateView(APIView):

    def post(self, request, template_id):
        template = forms_api.duplicate_concept_template(template_id, _user_id(request))
        return Response(template, status=status.HTTP_201_CREATED)


class GroupReportsView(APIView):
    """
    GET: the reports of a group, optionally in one ``stage``.
    """

    def get(self, request, group_id):
        _require_in_group(request, group_id, ACTIONS.VIEW_ALL_REPORTS)
        return Response(reports_api.list_reports_by_group(group_id, stage=request.query_params.get('stage')))


class MyReportsView(APIView):

    def get(self, request, group_id):
        _require_in_group(request, group_id, ACTIONS.READ_REPORT)
        return Response(reports_api.list_reports_for_student(_user_id(request), group_id=group_id))


class ReviewQueueView(APIView):
    """
    GET: the reports waiting for the acting reviewer.
    """

    def get(self, request, group_id):
        user_id = _user_id(request)
        role = _require_in_group(request, group_id, ACTIONS.READ_REPORT)
        if role == ROLE.part_time:
            return Response(reports_api.get_part_time_queue(user_id, group_id))
        return Response(reports_api.get_teacher_queue(user_id, group_id))


class ReportDetailView(APIView):

    def get(self, request, report_id):
        report = reports_api.get_report(report_id)
        _require_in_group(
            request, report['group_id'], ACTIONS.READ_REPORT,
            PermissionContext(user_id=_user_id(request), assigned_to=[report['student_id']]),
        )
        return Response(report)


class ReportHistoryView(APIView):

    def get(self, request, report_id):
        report = reports_api.get_report(report_id)
        _require_in_group(request, report['group_id'], ACTIONS.VIEW_ALL_REPORTS)
        return Response(reports_api.get_report_history(report_id))


class ReportCommentView(APIView):

    def post(self, request, report_id):
        return Response(reports_api.save_comment(report_id, _user_id(request), request.data.get('comment', "")))


class ReportCompleteView(APIView):

    def post(self, request, report_id):
        return Response(reports_api.complete_review(report_id, _user_id(request), request.data.get('comment')))


class ReportRejectView(APIView):

    def post(self, request, report_id):
        return Response(reports_api.reject_report(
            report_id, _user_id(request),
            request.data.get('reason', ""),
            request.data.get('target_stage'),
        ))


class ReportResetView(APIView):

    def post(self, request, report_id):
        return Response(reports_api.reset_report(report_id, _user_id(request), request.data.get('reason', "")))


class GroupStatisticsView(APIView):
    """
    GET: report counts per stage for a group, optionally narrowed to a
    ``form_id`` or ``class_name``, with the per-class breakdown.
    """

    def get(self, request, group_id):
        _require_in_group(request, group_id, ACTIONS.VIEW_ALL_STATISTICS)
        query = _validated(StatisticsQuerySerializer, request.query_params)
        return Response({
            'reports': statistics.get_report_statistics(
                group_id, form_id=query['form_id'], class_name=query['class_name'] or None,
            ),
            'classes': statistics.get_class_statistics(group_id),
        })


class FormStatisticsView(APIView):

    def get(self, request, form_id):
        form = forms_api.get_form_with_questions(form_id)
        _require_in_group(request, form['group_id'], ACTIONS.VIEW_STATISTICS)
        return Response(statistics.get_form_statistics(form_id))
