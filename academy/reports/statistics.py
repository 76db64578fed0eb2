"""
Completion statistics over reports.

Only reports that have been handed to a student count; the placeholder
report a form gets before it is sent does not.
"""

import logging

from django.db.models import Count, Q

from academy.permissions import STAGE

from .errors import ReportNotFoundError
from .models import Report

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name


def completion_rate(total, completed):
    """
    Percentage of completed reports, rounded half up to a whole number.

    Returns 0 when there are no reports at all.

    Examples:
        >>> completion_rate(3, 2)
        67
        >>> completion_rate(0, 0)
        0
    """
    if not total:
        return 0
    return int(completed * 100 / total + 0.5)


def _stage_counts(reports):
    counts = reports.aggregate(
        total=Count('id'),
        rejected=Count('id', filter=Q(rejected_at__isnull=False)),
        **{stage: Count('id', filter=Q(stage=stage)) for stage, __ in STAGE}
    )
    counts['completion_rate'] = completion_rate(counts['total'], counts[STAGE.completed])
    return counts


def _assigned_reports():
    return Report.objects.exclude(student_id="")


def get_report_statistics(group_id, form_id=None, class_name=None):
    """
    Count a group's reports by stage.

    Keyword Arguments:
        form_id (int): Only count reports of this form.
        class_name (str): Only count reports of students in this class.

    Returns:
        dict with keys ``total``, ``rejected``, one per stage, and
        ``completion_rate``.
    """
    reports = _assigned_reports().filter(form__group_id=group_id)
    if form_id is not None:
        reports = reports.filter(form_id=form_id)
    if class_name is not None:
        reports = reports.filter(class_name=class_name)
    return _stage_counts(reports)


def get_form_statistics(form_id):
    """
    Summarize how far the recipients of a form have got.

    Returns:
        dict: ``total_assigned``, ``not_started`` (still answering),
        ``in_progress`` (under review), ``completed``, ``completion_rate``.

    Raises:
        ReportNotFoundError: The form has no reports at all.
    """
    if not Report.objects.filter(form_id=form_id).exists():
        raise ReportNotFoundError(
            f"No reports for form {form_id}", user_message="폼을 찾을 수 없습니다."
        )

    counts = _stage_counts(_assigned_reports().filter(form_id=form_id))
    return {
        'form_id': form_id,
        'total_assigned': counts['total'],
        'not_started': counts[STAGE.stage_0],
        'in_progress': counts[STAGE.stage_1] + counts[STAGE.stage_2],
        'completed': counts[STAGE.completed],
        'rejected': counts['rejected'],
        'completion_rate': counts['completion_rate'],
    }


def get_class_statistics(group_id):
    """
    Completion per class in a group, ordered by class name.

    Students in no class are grouped under an empty class name.
    """
    rows = _assigned_reports().filter(form__group_id=group_id).values('class_name').annotate(
        total=Count('id'),
        completed=Count('id', filter=Q(stage=STAGE.completed)),
    ).order_by('class_name')
    return [
        {
            'class_name': row['class_name'],
            'total': row['total'],
            'completed': row['completed'],
            'completion_rate': completion_rate(row['total'], row['completed']),
        }
        for row in rows
    ]
