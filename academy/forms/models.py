"""
Django models for forms, their questions, and the concept templates that
exam questions are graded against.

A form moves through ``draft -> save -> send``.  Once sent its questions
are frozen; the API layer refuses every question mutation on a sent form.

NOTE: We've switched to migrations, so if you make any edits to this file, you
need to then generate a matching migration for it using:

    ./manage.py makemigrations academy_forms

"""

import logging

from django.db import models
from django.utils.timezone import now

from model_utils import Choices
from model_utils.fields import MonitorField, StatusField
from model_utils.models import StatusModel, TimeStampedModel

from .questions import QUESTION_TYPE, config_from_dict

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name


class ConceptTemplate(TimeStampedModel, StatusModel):
    """
    A numbered list of concepts that an exam's questions map onto.

    Respondents mark the exam question numbers they got wrong; the template
    tells reviewers which concept each number covers.
    """
    STATUS = Choices(
        ('draft', 'draft', '작성 중'),
        ('completed', 'completed', '완료'),
    )

    name = models.CharField(max_length=255)
    group_id = models.CharField(max_length=64, db_index=True)
    creator_id = models.CharField(max_length=64)
    concept_count = models.PositiveIntegerField(default=0)

    class Meta:
        app_label = "academy_forms"
        ordering = ["-created", "-id"]

    def __str__(self):
        return self.name


class ConceptTemplateItem(models.Model):
    template = models.ForeignKey(ConceptTemplate, related_name="items", on_delete=models.CASCADE)
    text = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    order_index = models.PositiveIntegerField()

    class Meta:
        app_label = "academy_forms"
        ordering = ["template", "order_index"]


class Form(TimeStampedModel):
    """
    A questionnaire created by a teacher and sent to students.

    ``time_teacher_id`` and ``teacher_id`` name who reviews the reports this
    form produces, in the first and second review stage respectively.
    """
    STATUS = Choices(
        ('draft', 'draft', '임시저장'),
        ('save', 'save', '저장됨'),
        ('send', 'send', '전송됨'),
    )

    # StatusModel would add a query manager per status, and one would be
    # named ``save``.
    status = StatusField()
    status_changed = MonitorField(monitor='status')

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    group_id = models.CharField(max_length=64, db_index=True)
    creator_id = models.CharField(max_length=64)
    time_teacher_id = models.CharField(max_length=64, blank=True)
    teacher_id = models.CharField(max_length=64, blank=True)
    sent_at = models.DateTimeField(null=True, default=None)

    class Meta:
        app_label = "academy_forms"
        ordering = ["-created", "-id"]

    def __str__(self):
        return self.title

    @property
    def is_sent(self):
        return self.status == self.STATUS.send


class Question(models.Model):
    """
    A single question of a form.

    ``config`` holds exactly the payload of ``question_type``; use
    ``payload`` to read it as the variant's namedtuple.
    """
    form = models.ForeignKey(Form, related_name="questions", on_delete=models.CASCADE)
    order_index = models.PositiveIntegerField()
    question_type = models.CharField(max_length=20, choices=QUESTION_TYPE)
    question_text = models.TextField(blank=True)
    is_required = models.BooleanField(default=False)
    config = models.JSONField(default=dict)
    concept_template = models.ForeignKey(
        ConceptTemplate, related_name="questions", null=True, blank=True, on_delete=models.PROTECT
    )

    class Meta:
        app_label = "academy_forms"
        ordering = ["form", "order_index"]

    def __repr__(self):
        return (
            f"Question(form_id={self.form_id!r}, order_index={self.order_index!r}, "
            f"question_type={self.question_type!r})"
        )

    @property
    def payload(self):
        return config_from_dict(self.question_type, self.config)


class FormTarget(models.Model):
    """A recipient of a sent form: a whole class, or one user."""
    TARGET_TYPE = Choices(
        ('class', 'class_', '반'),
        ('individual', 'individual', '개인'),
    )

    form = models.ForeignKey(Form, related_name="targets", on_delete=models.CASCADE)
    target_type = models.CharField(max_length=20, choices=TARGET_TYPE)
    target_id = models.CharField(max_length=64)
    created_at = models.DateTimeField(default=now)

    class Meta:
        app_label = "academy_forms"
        unique_together = ("form", "target_type", "target_id")
        ordering = ["form", "id"]


class FormResponse(TimeStampedModel):
    """
    A student's answers to a form, keyed by question id.

    A student has at most one response per form; answering again (after the
    report was sent back to them) replaces it.
    """
    form = models.ForeignKey(Form, related_name="responses", on_delete=models.CASCADE)
    student_id = models.CharField(max_length=64, db_index=True)
    answers = models.JSONField(default=dict)
    submitted_at = models.DateTimeField(default=now)

    class Meta:
        app_label = "academy_forms"
        unique_together = ("form", "student_id")
        ordering = ["-submitted_at", "-id"]
