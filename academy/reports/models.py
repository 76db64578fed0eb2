"""
Django models for the staged report workflow.

Every student a form is sent to gets a report.  The report moves through
the stages in ``academy.permissions.STAGE``:

    stage_0     the student answers the form
    stage_1     the part-time teacher comments and completes
    stage_2     the teacher comments and completes
    completed   read only

A reviewer may send a report back to an earlier stage.  All the stage fields
of a report are written together, in a single transaction, by
``academy.reports.api``.

NOTE: We've switched to migrations, so if you make any edits to this file, you
need to then generate a matching migration for it using:

    ./manage.py makemigrations reports

"""

import logging

from django.db import models
from django.utils.timezone import now

from model_utils import Choices
from model_utils.fields import MonitorField
from model_utils.models import TimeStampedModel

from academy.forms.models import Form, FormResponse
from academy.permissions import STAGE

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

STAGE_ORDER = [value for value, __ in STAGE]


def stage_position(stage):
    """Position of a stage in the workflow, ``stage_0`` first."""
    return STAGE_ORDER.index(stage)


class SupervisionMapping(TimeStampedModel):
    """
    A pairing of the part-time teacher and the teacher who review reports.

    Either reviewer may be absent; absent reviewers are stored as empty
    strings so the unique constraint covers one-sided pairings too.
    """
    group_id = models.CharField(max_length=64, db_index=True)
    time_teacher_id = models.CharField(max_length=64, blank=True, default="")
    teacher_id = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        app_label = "reports"
        unique_together = ("group_id", "time_teacher_id", "teacher_id")

    def __repr__(self):
        return (
            f"SupervisionMapping(group_id={self.group_id!r}, "
            f"time_teacher_id={self.time_teacher_id!r}, teacher_id={self.teacher_id!r})"
        )


class Report(TimeStampedModel):
    """
    One student's progress through a form's review stages.

    A report is created along with its form, before anyone receives it
    (``student_id`` is empty).  When the form is sent, the first recipient
    claims that report and every other recipient gets a copy.
    """
    form = models.ForeignKey(Form, related_name="reports", on_delete=models.CASCADE)
    form_response = models.ForeignKey(
        FormResponse, related_name="reports", null=True, blank=True, on_delete=models.SET_NULL
    )
    student_id = models.CharField(max_length=64, blank=True, db_index=True)
    student_name = models.CharField(max_length=100, blank=True)
    class_name = models.CharField(max_length=100, blank=True, db_index=True)

    stage = models.CharField(max_length=20, choices=STAGE, default=STAGE.stage_0, db_index=True)
    stage_changed = MonitorField(monitor='stage')

    supervision = models.ForeignKey(
        SupervisionMapping, related_name="reports", null=True, blank=True, on_delete=models.SET_NULL
    )
    time_teacher_id = models.CharField(max_length=64, blank=True, db_index=True)
    teacher_id = models.CharField(max_length=64, blank=True, db_index=True)

    time_teacher_comment = models.TextField(blank=True)
    teacher_comment = models.TextField(blank=True)

    student_completed_at = models.DateTimeField(null=True, default=None)
    time_teacher_completed_at = models.DateTimeField(null=True, default=None)
    teacher_completed_at = models.DateTimeField(null=True, default=None)

    rejected_at = models.DateTimeField(null=True, default=None)
    rejected_by = models.CharField(max_length=64, blank=True)
    rejection_reason = models.TextField(blank=True)

    # Completion timestamp and comment written in each stage.
    STAGE_COMPLETION_FIELDS = {
        STAGE.stage_0: 'student_completed_at',
        STAGE.stage_1: 'time_teacher_completed_at',
        STAGE.stage_2: 'teacher_completed_at',
    }
    STAGE_COMMENT_FIELDS = {
        STAGE.stage_1: 'time_teacher_comment',
        STAGE.stage_2: 'teacher_comment',
    }

    class Meta:
        app_label = "reports"
        unique_together = ("form", "student_id")
        ordering = ["-created", "-id"]

    def __repr__(self):
        return f"Report(id={self.id!r}, form_id={self.form_id!r}, student_id={self.student_id!r}, stage={self.stage!r})"

    @property
    def is_assigned(self):
        return bool(self.student_id)

    @property
    def is_rejected(self):
        return self.rejected_at is not None

    def stage_owner_id(self, stage=None):
        """The user who does the work of a stage (the current one by default)."""
        stage = stage or self.stage
        return {
            STAGE.stage_0: self.student_id,
            STAGE.stage_1: self.time_teacher_id,
            STAGE.stage_2: self.teacher_id,
        }.get(stage, "")

    def clear_rejection(self):
        self.rejected_at = None
        self.rejected_by = ""
        self.rejection_reason = ""


class ReportHistory(models.Model):
    """
    Log of what happened to a report.  Rows are only ever appended.
    """
    ACTION = Choices(
        ('created', 'created', '생성'),
        ('assigned', 'assigned', '배정'),
        ('supervision_changed', 'supervision_changed', '검토자 변경'),
        ('student_completed', 'student_completed', '응답 완료'),
        ('comment_saved', 'comment_saved', '코멘트 저장'),
        ('review_completed', 'review_completed', '검토 완료'),
        ('rejected', 'rejected', '반려'),
        ('reset', 'reset', '초기화'),
    )

    report = models.ForeignKey(Report, related_name="history", on_delete=models.CASCADE)
    action = models.CharField(max_length=32, choices=ACTION)
    performed_by = models.CharField(max_length=64, blank=True)
    from_stage = models.CharField(max_length=20, choices=STAGE, blank=True)
    to_stage = models.CharField(max_length=20, choices=STAGE, blank=True)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=now, db_index=True)

    class Meta:
        app_label = "reports"
        ordering = ["created_at", "id"]

    @classmethod
    def log(cls, report, action, performed_by="", from_stage="", to_stage="", **details):
        return cls.objects.create(
            report=report,
            action=action,
            performed_by=performed_by or "",
            from_stage=from_stage or "",
            to_stage=to_stage or "",
            details=details,
        )
