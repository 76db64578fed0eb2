"""
Public interface for forms: creating and editing them, sending them to
students, and collecting the students' answers.

Forms go ``draft -> save -> send`` and never back.  Once a form is sent
its questions are frozen; every question mutation is refused with the same
``FormSentError``.

Multi-step writes (a new form with its reviewers, its placeholder report,
its questions and the concept templates its exam questions need) run in a
single transaction: either all of it is stored, or none of it.
"""

import logging

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import ProtectedError
from django.utils.timezone import now

from academy import membership
from academy.errors import PermissionDenied
from academy.notifications import NOTIFICATION_TYPE, notify_on_commit
from academy.permissions import ACTIONS, ROLE, PermissionContext, require
from academy.reports import api as reports_api

from .editor import EditorQuestion, FormEditor, apply_question_fields, exam_copy_config
from .errors import (
    ConceptTemplateDependencyError,
    ConceptTemplateInUseError,
    ConceptTemplateNotFoundError,
    FormInternalError,
    FormNotFoundError,
    FormRequestError,
    FormSentError,
    FormStateError,
)
from .models import ConceptTemplate, ConceptTemplateItem, Form, FormResponse, FormTarget, Question
from .questions import (
    QUESTION_TYPE,
    as_concept_items,
    config_to_dict,
    default_config,
    validate_config,
    validate_response,
)
from .serializers import (
    ConceptTemplateSerializer,
    FormResponseSerializer,
    FormSerializer,
    FormSummarySerializer,
    QuestionSerializer,
)

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

DEFAULT_COPY_SUFFIX = " [복사본]"


def _get_form(form_id, lock=False):
    forms = Form.objects.select_for_update() if lock else Form.objects
    try:
        return forms.get(id=form_id)
    except Form.DoesNotExist as ex:
        raise FormNotFoundError(f"No form with id {form_id}") from ex


def _owner_context(form, user_id):
    return PermissionContext(owner_id=form.creator_id, user_id=user_id, group_id=form.group_id)


def _check_questions_editable(form):
    if form.is_sent:
        raise FormSentError(f"Form {form.id} has been sent")


def _renumber(form):
    """Rewrite the order of a form's questions as 0..n-1, keeping their order."""
    questions = list(form.questions.order_by('order_index', 'id'))
    for index, question in enumerate(questions):
        if question.order_index != index:
            question.order_index = index
            question.save(update_fields=['order_index'])
    return questions


# Concept templates


def _create_template(group_id, creator_id, name, concept_count, items, status):
    template = ConceptTemplate.objects.create(
        name=name,
        group_id=group_id,
        creator_id=creator_id,
        concept_count=concept_count,
        status=status,
    )
    _write_items(template, items)
    return template


def _write_items(template, items):
    ConceptTemplateItem.objects.bulk_create(
        ConceptTemplateItem(
            template=template,
            text=item.text,
            description=item.description,
            order_index=index,
        )
        for index, item in enumerate(items)
    )


def _resolve_exam_template(question_text, config, group_id, creator_id):
    """
    Make sure an exam question's concept template exists before the question
    is written.

    A question with new concept items gets a new, completed template and is
    switched over to use it.

    Returns:
        tuple (config, template): The config to store, and the template the
        question points at (or None).

    Raises:
        ConceptTemplateNotFoundError: The question uses a template that does
            not exist.
        ConceptTemplateDependencyError: The template could not be created.
    """
    if config.use_existing:
        try:
            template = ConceptTemplate.objects.get(id=config.concept_template_id)
        except ConceptTemplate.DoesNotExist as ex:
            raise ConceptTemplateNotFoundError(
                f"No concept template with id {config.concept_template_id}"
            ) from ex
        return config, template

    items = [item for item in config.concept_items if item.text.strip()]
    if not items:
        return config, None

    name = config.new_template_name or question_text or "시험 개념"
    try:
        with transaction.atomic():
            template = _create_template(
                group_id, creator_id, name, config.total_questions, items, ConceptTemplate.STATUS.completed
            )
    except DatabaseError as ex:
        msg = f"Could not create the concept template {name!r} for an exam question"
        logger.exception(msg)
        raise ConceptTemplateDependencyError(msg) from ex

    logger.info("Created concept template %s for an exam question", template.id)
    return config._replace(concept_template_id=template.id, use_existing=True), template


def _get_template(template_id, lock=False):
    templates = ConceptTemplate.objects.select_for_update() if lock else ConceptTemplate.objects
    try:
        return templates.get(id=template_id)
    except ConceptTemplate.DoesNotExist as ex:
        raise ConceptTemplateNotFoundError(f"No concept template with id {template_id}") from ex


def _template_field_errors(name=None, concept_count=None, status=None):
    field_errors = {}
    if name is not None and not name.strip():
        field_errors['name'] = "템플릿 이름을 입력해 주세요."
    if concept_count is not None and (not isinstance(concept_count, int) or concept_count < 1):
        field_errors['concept_count'] = "개념 수는 1 이상이어야 합니다."
    if status is not None and status not in ConceptTemplate.STATUS:
        field_errors['status'] = "알 수 없는 상태입니다."
    return field_errors


def create_concept_template(group_id, user_id, name, concept_count, items=(), status=None):
    """
    Create a concept template.

    Args:
        group_id (str): The group the template belongs to.
        user_id (str): Who is creating it.
        name (str): Display name.
        concept_count (int): How many exam questions the template covers.

    Keyword Arguments:
        items (list of ConceptItem or dict): The concepts, in order.
        status (str): One of ``ConceptTemplate.STATUS``; draft by default.

    Returns:
        dict: The serialized template.
    """
    require(membership.resolve_role(group_id, user_id), ACTIONS.CREATE_FORM, resource='form')

    status = status or ConceptTemplate.STATUS.draft
    field_errors = _template_field_errors(name or "", concept_count if concept_count is not None else 0, status)
    if field_errors:
        raise FormRequestError(field_errors)

    concept_items = [item for item in as_concept_items(items) if item.text.strip()]
    try:
        with transaction.atomic():
            template = _create_template(group_id, user_id, name, concept_count, concept_items, status)
    except DatabaseError as ex:
        msg = f"Could not create concept template {name!r} in group {group_id}"
        logger.exception(msg)
        raise FormInternalError(msg) from ex

    logger.info("Created concept template %s in group %s", template.id, group_id)
    return ConceptTemplateSerializer(template).data


def get_concept_template(template_id):
    return ConceptTemplateSerializer(_get_template(template_id)).data


def list_concept_templates(group_id, status=None, name=None, creator_id=None):
    """
    List a group's concept templates, newest first.

    Keyword Arguments:
        status (str): Only templates in this status.
        name (str): Only templates whose name contains this text.
        creator_id (str): Only templates created by this user.
    """
    templates = ConceptTemplate.objects.filter(group_id=group_id)
    if status is not None:
        templates = templates.filter(status=status)
    if name:
        templates = templates.filter(name__icontains=name)
    if creator_id:
        templates = templates.filter(creator_id=creator_id)
    return ConceptTemplateSerializer(templates, many=True).data


@transaction.atomic
def duplicate_concept_template(template_id, user_id):
    """
    Copy a concept template, with its items, as a new draft.

    Returns:
        dict: The serialized copy.
    """
    source = _get_template(template_id)
    require(membership.resolve_role(source.group_id, user_id), ACTIONS.CREATE_FORM, resource='form')

    copy = _create_template(
        source.group_id,
        user_id,
        f"{source.name}{getattr(settings, 'ACADEMY_FORM_COPY_SUFFIX', DEFAULT_COPY_SUFFIX)}",
        source.concept_count,
        list(source.items.order_by('order_index')),
        ConceptTemplate.STATUS.draft,
    )
    logger.info("Duplicated concept template %s as %s", source.id, copy.id)
    return ConceptTemplateSerializer(copy).data


def set_concept_template_status(template_id, user_id, status):
    template = _get_template(template_id)
    require(membership.resolve_role(template.group_id, user_id), ACTIONS.UPDATE_FORM, resource='form')
    if status not in ConceptTemplate.STATUS:
        raise FormRequestError({'status': "알 수 없는 상태입니다."})

    template.status = status
    template.save()
    logger.info("Concept template %s is now %s", template.id, status)
    return ConceptTemplateSerializer(template).data


def update_concept_template(template_id, user_id, name=None, concept_count=None, status=None, items=None):
    """
    Change a concept template.

    Only the given fields change.  Given ``items`` replace all of the
    template's items, numbered ``0..n-1`` in the given order.

    Raises:
        ConceptTemplateNotFoundError
        PermissionDenied
        FormRequestError: Blank name, bad concept count or unknown status.
    """
    try:
        with transaction.atomic():
            template = _get_template(template_id, lock=True)
            require(membership.resolve_role(template.group_id, user_id), ACTIONS.UPDATE_FORM, resource='form')

            field_errors = _template_field_errors(name, concept_count, status)
            if field_errors:
                raise FormRequestError(field_errors)

            if name is not None:
                template.name = name
            if concept_count is not None:
                template.concept_count = concept_count
            if status is not None:
                template.status = status
            template.save()

            if items is not None:
                template.items.all().delete()
                _write_items(template, [item for item in as_concept_items(items) if item.text.strip()])
    except DatabaseError as ex:
        msg = f"Could not update concept template {template_id}"
        logger.exception(msg)
        raise FormInternalError(msg) from ex

    logger.info("Updated concept template %s", template.id)
    return ConceptTemplateSerializer(template).data


def delete_concept_template(template_id, user_id):
    """
    Delete a concept template and its items.

    Only its creator (or an admin) may delete a template, and only while no
    exam question uses it.

    Raises:
        ConceptTemplateNotFoundError
        PermissionDenied
        ConceptTemplateInUseError
    """
    try:
        with transaction.atomic():
            template = _get_template(template_id, lock=True)
            role = membership.resolve_role(template.group_id, user_id)
            require(role, ACTIONS.UPDATE_FORM, resource='form')
            if role != ROLE.admin and template.creator_id != user_id:
                raise PermissionDenied(
                    f"{user_id} did not create concept template {template.id}",
                    user_message="템플릿을 삭제할 권한이 없습니다.",
                )
            if template.questions.exists():
                raise ConceptTemplateInUseError(f"Concept template {template.id} is used by exam questions")
            template.delete()
    except ProtectedError as ex:
        raise ConceptTemplateInUseError(f"Concept template {template_id} is used by exam questions") from ex

    logger.info("Deleted concept template %s", template_id)


# Forms


def _validate_editor(editor):
    """
    Check the form details and every question's config.

    Returns:
        list of config namedtuples, one per question.
    """
    field_errors = {}
    if not editor.title or not editor.title.strip():
        field_errors['title'] = "폼 제목을 입력해 주세요."

    configs = []
    for question in editor.questions:
        try:
            configs.append(validate_config(question.question_type, question.config))
        except FormRequestError as ex:
            field_errors[f"questions[{question.order_index}]"] = ex.field_errors
            configs.append(question.config)

    if field_errors:
        raise FormRequestError(field_errors)
    return configs


def _write_questions(form, editor, configs):
    """
    Store the editor's questions as the form's questions.

    Questions that the editor no longer has are deleted; the rest are
    updated or created in editor order.
    """
    kept_ids = [question.id for question in editor.questions if not question.is_new]
    form.questions.exclude(id__in=kept_ids).delete()
    existing = {question.id: question for question in form.questions.all()}

    for question, config in zip(editor.questions, configs):
        template = None
        if question.question_type == QUESTION_TYPE.exam:
            config, template = _resolve_exam_template(
                question.question_text, config, form.group_id, editor.creator_id
            )

        row = existing.get(question.id) or Question(form=form)
        row.order_index = question.order_index
        row.question_type = question.question_type
        row.question_text = question.question_text
        row.is_required = question.is_required
        row.config = config_to_dict(config)
        row.concept_template = template
        row.save()

        question.id = row.id
        question.config = config


def save_form(editor, user_id, draft=False):
    """
    Store a form being edited, creating it if it is new.

    A new form gets its reviewers' supervision mapping and the placeholder
    report the first recipient will claim.

    Args:
        editor (FormEditor): The form and its questions.
        user_id (str): Who is saving.

    Keyword Arguments:
        draft (bool): Keep a new form as a draft instead of marking it saved.
            A form that was saved before stays saved.

    Returns:
        dict: The serialized form.  The editor is updated with the ids of the
        form and of its questions.

    Raises:
        PermissionDenied: The user may not create or edit forms in the group.
        FormSentError: The form has been sent.
        FormRequestError: The title or a question config is invalid.
        ConceptTemplateDependencyError: An exam question's concept template
            could not be created.  Nothing is saved.
    """
    role = membership.resolve_role(editor.group_id, user_id)
    if editor.form_id is None:
        require(role, ACTIONS.CREATE_FORM, resource='form')
    configs = _validate_editor(editor)

    try:
        with transaction.atomic():
            if editor.form_id is None:
                form = Form.objects.create(
                    title=editor.title,
                    description=editor.description,
                    group_id=editor.group_id,
                    creator_id=user_id,
                    time_teacher_id=editor.time_teacher_id,
                    teacher_id=editor.teacher_id,
                    status=Form.STATUS.draft if draft else Form.STATUS.save,
                )
                reports_api.create_skeleton_report(form)
                created = True
            else:
                form = _get_form(editor.form_id, lock=True)
                require(role, ACTIONS.UPDATE_FORM, _owner_context(form, user_id), resource='form')
                _check_questions_editable(form)
                form.title = editor.title
                form.description = editor.description
                form.time_teacher_id = editor.time_teacher_id
                form.teacher_id = editor.teacher_id
                if not draft:
                    form.status = Form.STATUS.save
                form.save()
                reports_api.refresh_supervision(form, performed_by=user_id)
                created = False

            _write_questions(form, editor, configs)
    except DatabaseError as ex:
        msg = f"Could not save form {editor.form_id or editor.title!r} in group {editor.group_id}"
        logger.exception(msg)
        raise FormInternalError(msg) from ex

    editor.form_id = form.id
    editor.status = form.status
    logger.info(
        "%s form %s (%s) with %s questions",
        "Created" if created else "Saved", form.id, form.status, len(editor.questions)
    )
    return FormSerializer(form).data


def load_editor(form_id):
    """Load a persisted form into a ``FormEditor``."""
    return FormEditor.from_form(_get_form(form_id))


def duplicate_form(form_id, user_id, add_suffix=True):
    """
    Start a new form as a copy of an existing one (sent or not).

    Nothing is stored until the returned editor is saved.  The copy is a
    draft whose questions are all new; exam questions carry their concept
    items, so saving the copy creates templates of its own.

    Returns:
        FormEditor
    """
    source = _get_form(form_id)
    role = membership.resolve_role(source.group_id, user_id)
    require(role, ACTIONS.CREATE_FORM, resource='form')

    source_editor = FormEditor.from_form(source)
    editor = source_editor.duplicate(
        add_suffix=add_suffix,
        suffix=getattr(settings, 'ACADEMY_FORM_COPY_SUFFIX', DEFAULT_COPY_SUFFIX),
    )
    editor.creator_id = user_id

    templates = {
        question.id: question.concept_template
        for question in source.questions.select_related('concept_template')
    }
    for original, question in zip(source_editor.questions, editor.questions):
        if question.question_type == QUESTION_TYPE.exam:
            question.config = exam_copy_config(question.config, templates.get(original.id))

    logger.info("Duplicated form %s for user %s", source.id, user_id)
    return editor


def get_form_with_questions(form_id):
    """
    Retrieve a form with its questions in order, and its recipients.

    Raises:
        FormNotFoundError
    """
    return FormSerializer(_get_form(form_id)).data


def list_forms(group_id, status=None):
    forms = Form.objects.filter(group_id=group_id)
    if status is not None:
        forms = forms.filter(status=status)
    return FormSummarySerializer(forms, many=True).data


def update_form_details(form_id, user_id, title=None, description=None):
    """
    Change a form's title or description.  Allowed whatever the status, as
    neither is part of the form's questions.
    """
    with transaction.atomic():
        form = _get_form(form_id, lock=True)
        role = membership.resolve_role(form.group_id, user_id)
        require(role, ACTIONS.UPDATE_FORM, _owner_context(form, user_id), resource='form')

        if title is not None:
            if not title.strip():
                raise FormRequestError({'title': "폼 제목을 입력해 주세요."})
            form.title = title
        if description is not None:
            form.description = description
        form.save()

    logger.info("Updated details of form %s", form.id)
    return FormSerializer(form).data


def delete_form(form_id, user_id):
    """
    Delete a form that has not been sent, with its questions and reports.

    Raises:
        FormStateError: The form has been sent.
    """
    with transaction.atomic():
        form = _get_form(form_id, lock=True)
        role = membership.resolve_role(form.group_id, user_id)
        require(role, ACTIONS.DELETE_FORM, _owner_context(form, user_id), resource='form')
        if form.is_sent:
            raise FormStateError(
                f"Form {form.id} has been sent", user_message="전송된 폼은 삭제할 수 없습니다."
            )
        form.delete()

    logger.info("Deleted form %s", form_id)


# Question mutations on a stored form


def _mutable_form(form_id, user_id):
    form = _get_form(form_id, lock=True)
    role = membership.resolve_role(form.group_id, user_id)
    require(role, ACTIONS.UPDATE_FORM, _owner_context(form, user_id), resource='form')
    _check_questions_editable(form)
    return form


def _get_question(form, question_id):
    try:
        return form.questions.get(id=question_id)
    except Question.DoesNotExist as ex:
        raise FormNotFoundError(
            f"No question {question_id} in form {form.id}", user_message="질문을 찾을 수 없습니다."
        ) from ex


@transaction.atomic
def add_question(form_id, user_id, question_type):
    """
    Append a question with its type's defaults to a stored form.

    Raises:
        FormSentError: The form has been sent.
        FormRequestError: Unknown question type.
    """
    form = _mutable_form(form_id, user_id)
    config = default_config(question_type)
    question = Question.objects.create(
        form=form,
        order_index=form.questions.count(),
        question_type=question_type,
        config=config_to_dict(config),
    )
    logger.info("Added %s question %s to form %s", question_type, question.id, form.id)
    return QuestionSerializer(question).data


@transaction.atomic
def update_question(form_id, user_id, question_id, **fields):
    """
    Change a question of a stored form.

    Takes the same keywords as ``FormEditor.update_question``.
    """
    form = _mutable_form(form_id, user_id)
    row = _get_question(form, question_id)

    question = EditorQuestion(
        row.question_type,
        config=row.payload,
        question_text=row.question_text,
        is_required=row.is_required,
    )
    apply_question_fields(question, fields)

    config, template = question.config, None
    if question.question_type == QUESTION_TYPE.exam:
        config, template = _resolve_exam_template(
            question.question_text, config, form.group_id, user_id
        )

    row.question_type = question.question_type
    row.question_text = question.question_text
    row.is_required = question.is_required
    row.config = config_to_dict(config)
    row.concept_template = template
    row.save()
    logger.info("Updated question %s of form %s", row.id, form.id)
    return QuestionSerializer(row).data


@transaction.atomic
def delete_question(form_id, user_id, question_id):
    form = _mutable_form(form_id, user_id)
    _get_question(form, question_id).delete()
    _renumber(form)
    logger.info("Deleted question %s of form %s", question_id, form.id)


@transaction.atomic
def move_question(form_id, user_id, from_index, to_index):
    """
    Move a stored form's question to a new position.

    Returns:
        list of dict: The form's questions in their new order.
    """
    form = _mutable_form(form_id, user_id)
    questions = _renumber(form)
    for index in (from_index, to_index):
        if not 0 <= index < len(questions):
            raise FormNotFoundError(
                f"No question at index {index} in form {form.id}", user_message="질문을 찾을 수 없습니다."
            )

    questions.insert(to_index, questions.pop(from_index))
    for index, question in enumerate(questions):
        if question.order_index != index:
            question.order_index = index
            question.save(update_fields=['order_index'])

    logger.info("Moved question %s of form %s to %s", from_index, form.id, to_index)
    return QuestionSerializer(questions, many=True).data


# Sending and answering


def _resolve_recipients(targets):
    """
    Expand send targets into the ids of the students who receive the form.

    Args:
        targets (list of dict): ``{'target_type': 'class' | 'individual',
            'target_id': ...}``

    Returns:
        tuple (recipient ids in first-seen order, normalized targets)
    """
    recipients, normalized = [], []
    for target in targets:
        target_type, target_id = target.get('target_type'), str(target.get('target_id') or "")
        if target_type not in FormTarget.TARGET_TYPE or not target_id:
            raise FormRequestError({'targets': "받는 대상이 올바르지 않습니다."})
        normalized.append((target_type, target_id))

        if target_type == FormTarget.TARGET_TYPE.class_:
            user_ids = membership.get_class_member_ids(target_id, role=ROLE.student)
        else:
            user_ids = [target_id]
        recipients.extend(user_id for user_id in user_ids if user_id not in recipients)
    return recipients, normalized


def send_form(form_id, user_id, targets):
    """
    Send a saved form to students, which freezes its questions.

    Every recipient gets a report and a notification.

    Args:
        form_id (int): A stored form.
        user_id (str): Who is sending.
        targets (list of dict): Classes and individual students to send to.

    Returns:
        dict: The serialized form.

    Raises:
        FormNotFoundError: The form has not been stored.
        FormSentError: The form has already been sent.
        FormRequestError: No recipients, no questions, or an invalid
            question config.
    """
    with transaction.atomic():
        form = _get_form(form_id, lock=True)
        role = membership.resolve_role(form.group_id, user_id)
        require(role, ACTIONS.SEND_FORM, resource='form')
        _check_questions_editable(form)

        if not form.questions.exists():
            raise FormRequestError({'questions': "질문을 하나 이상 추가해 주세요."})
        _validate_editor(FormEditor.from_form(form))

        recipients, normalized = _resolve_recipients(targets or [])
        if not recipients:
            raise FormRequestError({'targets': "받는 사람을 한 명 이상 선택해 주세요."})

        for target_type, target_id in normalized:
            FormTarget.objects.get_or_create(form=form, target_type=target_type, target_id=target_id)
        reports_api.create_recipient_reports(form, recipients, performed_by=user_id)

        form.status = Form.STATUS.send
        form.sent_at = now()
        form.save()

        notify_on_commit(recipients, NOTIFICATION_TYPE.form_assigned, {
            'form_id': form.id,
            'form_title': form.title,
            'group_id': form.group_id,
        })

    logger.info("Sent form %s to %s recipients", form.id, len(recipients))
    return FormSerializer(form).data


def submit_response(form_id, student_id, answers):
    """
    Store a student's answers to a sent form and complete their stage of
    the report.

    Args:
        form_id (int): A sent form.
        student_id (str): The answering student, who must be a recipient.
        answers (dict): Answers keyed by question id.

    Returns:
        dict: The serialized response.

    Raises:
        FormStateError: The form has not been sent.
        PermissionDenied: The student did not receive the form.
        FormRequestError: Some answers are invalid; ``field_errors`` is keyed
            by question id.
    """
    form = _get_form(form_id)
    if not form.is_sent:
        raise FormStateError(
            f"Form {form.id} has not been sent", user_message="아직 전송되지 않은 폼입니다."
        )

    role = membership.resolve_role(form.group_id, student_id)
    recipients = list(form.reports.exclude(student_id="").values_list('student_id', flat=True))
    require(
        role, ACTIONS.RESPOND_FORM,
        PermissionContext(user_id=student_id, group_id=form.group_id, assigned_to=recipients),
        resource='form',
    )
    report = reports_api.get_report_for_student(form.id, student_id)
    if report is None:
        raise FormRequestError({'student_id': "이 폼을 받은 학생이 아닙니다."})

    answers = {str(key): value for key, value in (answers or {}).items()}
    questions = {str(question.id): question for question in form.questions.all()}
    field_errors = {
        key: "알 수 없는 질문입니다." for key in answers if key not in questions
    }
    for key, question in questions.items():
        is_valid, msg = validate_response(
            question.question_type, question.payload, answers.get(key), required=question.is_required
        )
        if not is_valid:
            field_errors[key] = msg
    if field_errors:
        raise FormRequestError(field_errors)

    try:
        with transaction.atomic():
            response, __ = FormResponse.objects.update_or_create(
                form=form, student_id=student_id,
                defaults={'answers': answers, 'submitted_at': now()},
            )
            reports_api.complete_student_stage(report.id, response)
    except DatabaseError as ex:
        msg = f"Could not store the response of {student_id} to form {form.id}"
        logger.exception(msg)
        raise FormInternalError(msg) from ex

    logger.info("Stored response %s of student %s to form %s", response.id, student_id, form.id)
    return FormResponseSerializer(response).data
