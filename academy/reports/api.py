"""
Public interface for the staged report workflow.

Every stage transition locks the report row, writes all of the stage fields
together, appends a ``ReportHistory`` row, and queues notifications to go
out once the transaction commits.  A notification that fails to send never
affects the transition.
"""

import logging

from django.db import DatabaseError, IntegrityError, transaction
from django.utils.timezone import now

from academy import membership
from academy.errors import PermissionDenied
from academy.notifications import NOTIFICATION_TYPE, notify_on_commit
from academy.permissions import ACTIONS, ROLE, STAGE, STAGE_ACCESS, can_access_report_stage, require

from .errors import (
    ReportInternalError,
    ReportNotFoundError,
    ReportRequestError,
    ReportStageError,
    SupervisionInternalError,
    SupervisionRequestError,
)
from .models import Report, ReportHistory, SupervisionMapping, stage_position
from .serializers import ReportHistorySerializer, ReportSerializer, SupervisionMappingSerializer

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

REVIEW_ACTIONS = {
    STAGE.stage_1: ACTIONS.UPDATE_STAGE1,
    STAGE.stage_2: ACTIONS.UPDATE_STAGE2,
}


def assign_supervision(group_id, time_teacher_id=None, teacher_id=None):
    """
    Find or create the supervision mapping for a pair of reviewers.

    Args:
        group_id (str): The group the reviewers belong to.

    Keyword Arguments:
        time_teacher_id (str): The part-time teacher, if any.
        teacher_id (str): The teacher, if any.

    Returns:
        SupervisionMapping

    Raises:
        SupervisionRequestError: Neither reviewer was given.  Callers with
            nobody to assign should skip the call.
        SupervisionInternalError: The mapping could not be saved.
    """
    if not time_teacher_id and not teacher_id:
        raise SupervisionRequestError({
            'time_teacher_id': "시간강사나 선생님 중 한 명은 지정해야 합니다.",
            'teacher_id': "시간강사나 선생님 중 한 명은 지정해야 합니다.",
        })

    lookup = {
        'group_id': group_id,
        'time_teacher_id': time_teacher_id or "",
        'teacher_id': teacher_id or "",
    }
    try:
        try:
            with transaction.atomic():
                mapping, created = SupervisionMapping.objects.get_or_create(**lookup)
        except IntegrityError:
            # Someone else inserted the same mapping between our read and write.
            mapping, created = SupervisionMapping.objects.get(**lookup), False
    except DatabaseError as ex:
        msg = f"Could not assign supervision {lookup}"
        logger.exception(msg)
        raise SupervisionInternalError(msg) from ex

    if created:
        logger.info("Created supervision mapping %s for group %s", mapping.id, group_id)
    return mapping


def _resolve_supervision(form):
    if not form.time_teacher_id and not form.teacher_id:
        return None
    return assign_supervision(form.group_id, form.time_teacher_id, form.teacher_id)


def create_skeleton_report(form):
    """
    Create the report that accompanies a new form.

    The report has no student yet; the first recipient claims it when the
    form is sent.  Call this inside the transaction that creates the form.
    """
    supervision = _resolve_supervision(form)
    report = Report.objects.create(
        form=form,
        supervision=supervision,
        time_teacher_id=form.time_teacher_id,
        teacher_id=form.teacher_id,
    )
    ReportHistory.log(report, ReportHistory.ACTION.created, form.creator_id, to_stage=report.stage)
    logger.info("Created report %s for form %s", report.id, form.id)
    return report


def refresh_supervision(form, performed_by=""):
    """
    Point the reports of a form that nobody has started at the form's
    current reviewers.
    """
    supervision = _resolve_supervision(form)
    reports = Report.objects.select_for_update().filter(form=form, stage=STAGE.stage_0)
    for report in reports:
        if (report.time_teacher_id, report.teacher_id) == (form.time_teacher_id, form.teacher_id):
            continue
        report.supervision = supervision
        report.time_teacher_id = form.time_teacher_id
        report.teacher_id = form.teacher_id
        report.save()
        ReportHistory.log(
            report, ReportHistory.ACTION.supervision_changed, performed_by,
            time_teacher_id=form.time_teacher_id, teacher_id=form.teacher_id,
        )
        logger.info("Changed reviewers of report %s", report.id)


def create_recipient_reports(form, student_ids, performed_by=""):
    """
    Give every recipient of a form a report.

    The form's unassigned report goes to the first recipient who does not
    already have one; the others get copies of it.  Call this inside the
    transaction that sends the form.

    Returns:
        list of Report, one per new recipient
    """
    existing = set(form.reports.exclude(student_id="").values_list('student_id', flat=True))
    skeleton = form.reports.select_for_update().filter(student_id="").first()
    supervision = skeleton.supervision if skeleton else _resolve_supervision(form)

    created = []
    for student_id in student_ids:
        if student_id in existing:
            continue
        details = {
            'student_id': student_id,
            'student_name': membership.get_member_name(form.group_id, student_id),
            'class_name': membership.get_class_name(form.group_id, student_id),
        }
        if skeleton is not None:
            report, skeleton = skeleton, None
            for field, value in details.items():
                setattr(report, field, value)
            report.save()
        else:
            report = Report.objects.create(
                form=form,
                supervision=supervision,
                time_teacher_id=form.time_teacher_id,
                teacher_id=form.teacher_id,
                **details
            )
        ReportHistory.log(report, ReportHistory.ACTION.assigned, performed_by, student_id=student_id)
        existing.add(student_id)
        created.append(report)

    logger.info("Assigned %s reports of form %s", len(created), form.id)
    return created


def _get_locked(report_id):
    try:
        return Report.objects.select_for_update().select_related('form').get(id=report_id)
    except Report.DoesNotExist as ex:
        raise ReportNotFoundError(f"No report with id {report_id}") from ex


def _check_stage_access(report, user_id, access):
    """
    Resolve the acting user's role and check they may read, write or review
    the report in its current stage.

    Part-time teachers and teachers only work on the reports that name them
    as reviewers; reports without a named reviewer are open to the role.
    """
    role = membership.resolve_role(report.form.group_id, user_id)
    if not can_access_report_stage(role, report.stage, access):
        logger.info("Denied %s on report %s in %s to %s", access, report.id, report.stage, user_id)
        raise PermissionDenied(
            f"Role {role} may not {access} report {report.id} in {report.stage}",
            user_message="현재 단계의 보고서를 처리할 권한이 없습니다.",
        )
    if role == ROLE.part_time and report.time_teacher_id and report.time_teacher_id != user_id:
        raise PermissionDenied(
            f"Report {report.id} is supervised by another part-time teacher",
            user_message="담당한 보고서만 처리할 수 있습니다.",
        )
    if role == ROLE.teacher and report.teacher_id and report.teacher_id != user_id:
        raise PermissionDenied(
            f"Report {report.id} is supervised by another teacher",
            user_message="담당한 보고서만 처리할 수 있습니다.",
        )
    return role


def _save(report):
    try:
        report.save()
    except DatabaseError as ex:
        msg = f"Could not save report {report.id}"
        logger.exception(msg)
        raise ReportInternalError(msg) from ex


def _notification_payload(report, **extra):
    payload = {
        'report_id': report.id,
        'form_id': report.form_id,
        'form_title': report.form.title,
        'stage': report.stage,
    }
    payload.update(extra)
    return payload


@transaction.atomic
def complete_student_stage(report_id, form_response):
    """
    Record that the student answered the form, moving the report to the
    part-time teacher.

    Args:
        report_id (int): The student's report.
        form_response (FormResponse): The answers the student submitted.

    Returns:
        dict: The serialized report.

    Raises:
        ReportNotFoundError
        ReportStageError: The report is past the student's stage.
    """
    report = _get_locked(report_id)
    if report.stage != STAGE.stage_0:
        raise ReportStageError(f"Report {report.id} is in {report.stage}, not {STAGE.stage_0}")

    report.form_response = form_response
    report.student_completed_at = now()
    report.stage = STAGE.stage_1
    report.clear_rejection()
    _save(report)

    ReportHistory.log(
        report, ReportHistory.ACTION.student_completed, report.student_id,
        from_stage=STAGE.stage_0, to_stage=STAGE.stage_1,
    )
    logger.info("Report %s moved from %s to %s", report.id, STAGE.stage_0, STAGE.stage_1)
    notify_on_commit(
        [report.time_teacher_id], NOTIFICATION_TYPE.report_stage_changed,
        _notification_payload(report, student_name=report.student_name),
    )
    return ReportSerializer(report).data


@transaction.atomic
def save_comment(report_id, user_id, comment):
    """
    Save the reviewer's comment for the current stage, without completing it.

    Raises:
        PermissionDenied: The user may not write in the report's stage.
        ReportStageError: The stage has no comment to write.
    """
    report = _get_locked(report_id)
    role = _check_stage_access(report, user_id, STAGE_ACCESS.write)
    field = Report.STAGE_COMMENT_FIELDS.get(report.stage)
    if field is None:
        raise ReportStageError(f"Report {report.id} in {report.stage} takes no comment")
    require(role, REVIEW_ACTIONS[report.stage], resource='report')

    setattr(report, field, comment or "")
    _save(report)
    ReportHistory.log(
        report, ReportHistory.ACTION.comment_saved, user_id,
        from_stage=report.stage, to_stage=report.stage,
    )
    logger.info("Saved %s of report %s", field, report.id)
    return ReportSerializer(report).data


@transaction.atomic
def complete_review(report_id, user_id, comment=None):
    """
    Complete the current review stage.

    ``stage_1`` moves on to the teacher; ``stage_2`` completes the report.
    A comment, if given, is saved with the completion.

    Raises:
        PermissionDenied: The user may not write in the report's stage.
        ReportStageError: The report is not under review, or the part-time
            review has not been completed.
    """
    report = _get_locked(report_id)
    from_stage = report.stage
    if from_stage not in REVIEW_ACTIONS:
        raise ReportStageError(f"Report {report.id} in {from_stage} is not under review")

    role = _check_stage_access(report, user_id, STAGE_ACCESS.write)
    action = REVIEW_ACTIONS[from_stage] if from_stage == STAGE.stage_1 else ACTIONS.FINALIZE_REPORT
    require(role, action, resource='report')

    if comment is not None:
        setattr(report, Report.STAGE_COMMENT_FIELDS[from_stage], comment)

    timestamp = now()
    if from_stage == STAGE.stage_1:
        report.time_teacher_completed_at = timestamp
        report.stage = STAGE.stage_2
        recipients, notification_type = [report.teacher_id], NOTIFICATION_TYPE.report_stage_changed
    else:
        if report.time_teacher_completed_at is None:
            raise ReportStageError(
                f"Report {report.id} has no completed part-time review",
                user_message="시간강사 검토가 완료되지 않은 보고서입니다.",
            )
        report.teacher_completed_at = timestamp
        report.stage = STAGE.completed
        recipients, notification_type = [report.student_id, report.time_teacher_id], NOTIFICATION_TYPE.report_ready

    report.clear_rejection()
    _save(report)
    ReportHistory.log(
        report, ReportHistory.ACTION.review_completed, user_id,
        from_stage=from_stage, to_stage=report.stage,
    )
    logger.info("Report %s moved from %s to %s", report.id, from_stage, report.stage)
    notify_on_commit(recipients, notification_type, _notification_payload(report))
    return ReportSerializer(report).data


@transaction.atomic
def reject_report(report_id, user_id, reason, target_stage):
    """
    Send a report back to an earlier stage.

    The rejecting reviewer picks the stage the report returns to.  Every
    stage from that one onward loses its completion timestamp, and the
    owner of the target stage is notified so they can redo their part.

    Args:
        report_id (int): The report under review.
        user_id (str): The reviewer.
        reason (str): Why the report is rejected.  Shown to the owner.
        target_stage (str): A stage strictly before the current one.

    Raises:
        PermissionDenied: The user may not review the report's stage.
        ReportStageError: The report is not under review.
        ReportRequestError: Missing reason or invalid target stage.
    """
    report = _get_locked(report_id)
    from_stage = report.stage
    if from_stage not in REVIEW_ACTIONS:
        raise ReportStageError(f"Report {report.id} in {from_stage} cannot be rejected")

    _check_stage_access(report, user_id, STAGE_ACCESS.review)

    if not reason or not reason.strip():
        raise ReportRequestError({'reason': "반려 사유를 입력해 주세요."})
    if target_stage not in Report.STAGE_COMPLETION_FIELDS or \
            stage_position(target_stage) >= stage_position(from_stage):
        raise ReportRequestError({'target_stage': "현재 단계보다 이전 단계로만 되돌릴 수 있습니다."})

    for stage, field in Report.STAGE_COMPLETION_FIELDS.items():
        if stage_position(stage) >= stage_position(target_stage):
            setattr(report, field, None)

    report.rejected_at = now()
    report.rejected_by = user_id
    report.rejection_reason = reason
    report.stage = target_stage
    _save(report)

    ReportHistory.log(
        report, ReportHistory.ACTION.rejected, user_id,
        from_stage=from_stage, to_stage=target_stage, reason=reason,
    )
    logger.info("Report %s rejected from %s to %s", report.id, from_stage, target_stage)

    notification_type = (
        NOTIFICATION_TYPE.form_rejected if target_stage == STAGE.stage_0
        else NOTIFICATION_TYPE.report_rejected
    )
    notify_on_commit(
        [report.stage_owner_id(target_stage)], notification_type,
        _notification_payload(report, reason=reason),
    )
    return ReportSerializer(report).data


@transaction.atomic
def reset_report(report_id, user_id, reason=""):
    """
    Return a report to the student's stage, discarding all review work.

    Only admins and teachers may reset a report.

    Raises:
        PermissionDenied
        ReportStageError: The report is already in ``stage_0``.
    """
    report = _get_locked(report_id)
    role = membership.resolve_role(report.form.group_id, user_id)
    require(role, ACTIONS.UPDATE_REPORT, resource='report')

    from_stage = report.stage
    if from_stage == STAGE.stage_0:
        raise ReportStageError(f"Report {report.id} is already in {STAGE.stage_0}")

    for field in Report.STAGE_COMPLETION_FIELDS.values():
        setattr(report, field, None)
    for field in Report.STAGE_COMMENT_FIELDS.values():
        setattr(report, field, "")
    report.clear_rejection()
    report.stage = STAGE.stage_0
    _save(report)

    ReportHistory.log(
        report, ReportHistory.ACTION.reset, user_id,
        from_stage=from_stage, to_stage=STAGE.stage_0, reason=reason,
    )
    logger.info("Report %s reset from %s", report.id, from_stage)
    notify_on_commit(
        [report.student_id], NOTIFICATION_TYPE.form_rejected,
        _notification_payload(report, reason=reason),
    )
    return ReportSerializer(report).data


def _get_report_model(report_id):
    try:
        return Report.objects.select_related('form').get(id=report_id)
    except Report.DoesNotExist as ex:
        raise ReportNotFoundError(f"No report with id {report_id}") from ex


def get_report(report_id):
    """
    Retrieve a report.

    Returns:
        dict: The serialized report.

    Raises:
        ReportNotFoundError
    """
    return ReportSerializer(_get_report_model(report_id)).data


def get_report_for_student(form_id, student_id):
    """
    Retrieve the report a form's recipient works on, or None if the form
    was not sent to them.
    """
    return Report.objects.filter(form_id=form_id, student_id=student_id).first()


def _assigned_reports(group_id):
    return Report.objects.filter(form__group_id=group_id).exclude(student_id="").select_related('form')


def list_reports_by_group(group_id, stage=None):
    """
    List the reports of every form sent in a group, newest first.

    Keyword Arguments:
        stage (str): Only list reports in this stage.
    """
    reports = _assigned_reports(group_id)
    if stage is not None:
        reports = reports.filter(stage=stage)
    return ReportSerializer(reports, many=True).data


def list_reports_for_student(student_id, group_id=None):
    reports = Report.objects.filter(student_id=student_id).select_related('form')
    if group_id is not None:
        reports = reports.filter(form__group_id=group_id)
    return ReportSerializer(reports, many=True).data


def get_part_time_queue(user_id, group_id):
    """Reports waiting for a part-time teacher's review, oldest first."""
    reports = _assigned_reports(group_id).filter(
        stage=STAGE.stage_1, time_teacher_id=user_id
    ).order_by('stage_changed', 'id')
    return ReportSerializer(reports, many=True).data


def get_teacher_queue(user_id, group_id):
    """Reports waiting for a teacher's review, oldest first."""
    reports = _assigned_reports(group_id).filter(
        stage=STAGE.stage_2, teacher_id=user_id
    ).order_by('stage_changed', 'id')
    return ReportSerializer(reports, many=True).data


def get_report_history(report_id):
    report = _get_report_model(report_id)
    return ReportHistorySerializer(report.history.all(), many=True).data


def get_supervision(supervision_id):
    try:
        mapping = SupervisionMapping.objects.get(id=supervision_id)
    except SupervisionMapping.DoesNotExist as ex:
        raise ReportNotFoundError(
            f"No supervision mapping with id {supervision_id}",
            user_message="검토자 배정을 찾을 수 없습니다.",
        ) from ex
    return SupervisionMappingSerializer(mapping).data
