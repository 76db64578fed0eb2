"""
Tests for the form API: saving, sending and answering forms.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import ddt
from django.db import DatabaseError
from django.test.utils import override_settings
from freezegun import freeze_time
from pytest import raises

from academy.errors import DependencyFailure, InvalidStateError, PermissionDenied
from academy.forms import api as forms_api
from academy.forms.editor import FormEditor
from academy.forms.errors import (
    FORM_SENT_MESSAGE,
    ConceptTemplateDependencyError,
    ConceptTemplateInUseError,
    ConceptTemplateNotFoundError,
    FormNotFoundError,
    FormRequestError,
    FormSentError,
    FormStateError,
)
from academy.forms.models import ConceptTemplate, ConceptTemplateItem, Form, FormResponse, FormTarget, Question
from academy.forms.questions import QUESTION_TYPE
from academy.forms.test.factories import ConceptTemplateFactory, ConceptTemplateItemFactory
from academy.groups import api as groups_api
from academy.permissions import ROLE, STAGE
from academy.reports.errors import ReportStageError
from academy.reports.models import Report, ReportHistory, SupervisionMapping
from academy.test_utils import (
    ADMIN,
    GROUP_ID,
    OTHER_PART_TIMER,
    OUTSIDER,
    PART_TIMER,
    RECORDING_BACKEND,
    SENT_NOTIFICATIONS,
    STUDENTS,
    TEACHER,
    AcademyTestCase,
)


class FormApiTestCase(AcademyTestCase):
    """ Builds and sends the form most tests start from. """

    def _editor(self, **kwargs):
        editor = FormEditor(
            GROUP_ID, TEACHER,
            title=kwargs.pop('title', "주간 점검"),
            time_teacher_id=kwargs.pop('time_teacher_id', PART_TIMER),
            teacher_id=kwargs.pop('teacher_id', TEACHER),
            **kwargs
        )
        editor.add_question(QUESTION_TYPE.rating)
        editor.update_question(0, question_text="이번 주 수업 만족도", is_required=True)
        editor.add_question(QUESTION_TYPE.choice)
        editor.update_question(1, question_text="가장 어려웠던 단원", options=["분수", "소수"], allow_other=True)
        return editor

    def _save(self, **kwargs):
        return forms_api.save_form(self._editor(**kwargs), TEACHER)

    def _send(self, form_id, targets=None):
        if targets is None:
            targets = [{'target_type': 'class', 'target_id': self.class_1.id}]
        return forms_api.send_form(form_id, TEACHER, targets)

    def _questions(self, form_id):
        return forms_api.get_form_with_questions(form_id)['questions']


class TestSaveForm(FormApiTestCase):

    def test_save_new_form(self):
        editor = self._editor()
        form = forms_api.save_form(editor, TEACHER)

        self.assertEqual(form['status'], Form.STATUS.save)
        self.assertEqual(form['creator_id'], TEACHER)
        self.assertEqual(editor.form_id, form['id'])
        self.assertEqual(
            [(question['order_index'], question['question_type']) for question in form['questions']],
            [(0, QUESTION_TYPE.rating), (1, QUESTION_TYPE.choice)],
        )
        self.assertEqual(form['questions'][1]['config']['options'], ["분수", "소수"])
        self.assertEqual([question.id for question in editor.questions], [q['id'] for q in form['questions']])

    def test_new_form_gets_unassigned_report(self):
        form = self._save()

        report = Report.objects.get(form_id=form['id'])
        self.assertEqual(report.student_id, "")
        self.assertEqual(report.stage, STAGE.stage_0)
        self.assertEqual(
            (report.supervision.time_teacher_id, report.supervision.teacher_id), (PART_TIMER, TEACHER)
        )
        self.assertEqual(report.history.get().action, ReportHistory.ACTION.created)

    def test_new_form_without_reviewers(self):
        form = self._save(time_teacher_id="", teacher_id="")
        self.assertIsNone(Report.objects.get(form_id=form['id']).supervision)
        self.assertFalse(SupervisionMapping.objects.exists())

    def test_save_draft(self):
        editor = self._editor()
        form = forms_api.save_form(editor, TEACHER, draft=True)
        self.assertEqual(form['status'], Form.STATUS.draft)

        form = forms_api.save_form(editor, TEACHER)
        self.assertEqual(form['status'], Form.STATUS.save)

        # Saved forms do not go back to draft
        form = forms_api.save_form(editor, TEACHER, draft=True)
        self.assertEqual(form['status'], Form.STATUS.save)

    def test_title_is_required(self):
        with raises(FormRequestError) as excinfo:
            self._save(title="  ")
        self.assertIn('title', excinfo.value.field_errors)
        self.assertFalse(Form.objects.exists())

    def test_invalid_question_config(self):
        editor = self._editor()
        editor.add_question(QUESTION_TYPE.choice)

        with raises(FormRequestError) as excinfo:
            forms_api.save_form(editor, TEACHER)
        self.assertEqual(list(excinfo.value.field_errors), ['questions[2]'])
        self.assertIn('options', excinfo.value.field_errors['questions[2]'])
        self.assertFalse(Form.objects.exists())

    def test_only_staff_create_forms(self):
        for user_id in (STUDENTS[0], PART_TIMER, OUTSIDER):
            with raises(PermissionDenied):
                forms_api.save_form(self._editor(), user_id)
        self.assertFalse(Form.objects.exists())

    def test_save_existing_form(self):
        form = self._save()
        editor = forms_api.load_editor(form['id'])
        editor.title = "수정한 제목"
        editor.add_question(QUESTION_TYPE.text)
        editor.update_question(2, question_text="하고 싶은 말")
        editor.move_question(2, 0)
        editor.delete_question(2)

        saved = forms_api.save_form(editor, TEACHER)

        self.assertEqual(saved['title'], "수정한 제목")
        self.assertEqual(
            [(question['order_index'], question['question_type']) for question in saved['questions']],
            [(0, QUESTION_TYPE.text), (1, QUESTION_TYPE.rating)],
        )
        self.assertEqual(saved['questions'][1]['id'], form['questions'][0]['id'])
        self.assertFalse(Question.objects.filter(id=form['questions'][1]['id']).exists())

    def test_changing_reviewers(self):
        form = self._save()
        editor = forms_api.load_editor(form['id'])
        editor.time_teacher_id = OTHER_PART_TIMER

        forms_api.save_form(editor, TEACHER)

        report = Report.objects.get(form_id=form['id'])
        self.assertEqual(report.time_teacher_id, OTHER_PART_TIMER)
        self.assertEqual(report.supervision.time_teacher_id, OTHER_PART_TIMER)
        self.assertEqual(report.history.last().action, ReportHistory.ACTION.supervision_changed)

    def test_same_reviewers_share_a_mapping(self):
        self._save()
        self._save(title="두 번째 폼")
        self.assertEqual(SupervisionMapping.objects.count(), 1)

    @patch.object(Question, 'save')
    def test_database_error(self, mock_save):
        mock_save.side_effect = DatabaseError("KABOOM!")
        with raises(forms_api.FormInternalError):
            self._save()
        self.assertFalse(Form.objects.exists())


class TestExamTemplates(FormApiTestCase):
    """ Exam questions and the concept templates they depend on. """

    def _exam_editor(self, **config):
        editor = self._editor()
        editor.add_question(QUESTION_TYPE.exam)
        editor.update_question(2, question_text="3단원 평가", **config)
        return editor

    def test_new_concept_items_create_a_template(self):
        editor = self._exam_editor(
            total_questions=2, new_template_name="분수 개념", concept_items=["통분", "약분", "  "]
        )
        form = forms_api.save_form(editor, TEACHER)

        config = form['questions'][2]['config']
        template = ConceptTemplate.objects.get()
        self.assertTrue(config['use_existing'])
        self.assertEqual(config['concept_template_id'], template.id)
        self.assertEqual(form['questions'][2]['concept_template'], template.id)
        self.assertEqual(template.name, "분수 개념")
        self.assertEqual(template.status, ConceptTemplate.STATUS.completed)
        self.assertEqual(template.concept_count, 2)
        self.assertEqual([item.text for item in template.items.all()], ["통분", "약분"])
        # The editor now points at the template as well
        self.assertTrue(editor.questions[2].config.use_existing)

    def test_template_name_falls_back_to_question_text(self):
        forms_api.save_form(self._exam_editor(concept_items=["통분"]), TEACHER)
        self.assertEqual(ConceptTemplate.objects.get().name, "3단원 평가")

    def test_blank_concept_items(self):
        form = forms_api.save_form(self._exam_editor(concept_items=["", " "]), TEACHER)

        self.assertFalse(ConceptTemplate.objects.exists())
        self.assertFalse(form['questions'][2]['config']['use_existing'])
        self.assertIsNone(form['questions'][2]['concept_template'])

    def test_existing_template(self):
        template = ConceptTemplateFactory()
        form = forms_api.save_form(
            self._exam_editor(use_existing=True, concept_template_id=template.id), TEACHER
        )
        self.assertEqual(form['questions'][2]['concept_template'], template.id)
        self.assertEqual(ConceptTemplate.objects.count(), 1)

    def test_missing_template(self):
        with raises(ConceptTemplateNotFoundError):
            forms_api.save_form(self._exam_editor(use_existing=True, concept_template_id=999), TEACHER)
        self.assertFalse(Form.objects.exists())

    @patch('academy.forms.api._create_template')
    def test_template_failure_saves_nothing(self, mock_create):
        mock_create.side_effect = DatabaseError("KABOOM!")

        with raises(ConceptTemplateDependencyError) as excinfo:
            forms_api.save_form(self._exam_editor(concept_items=["통분"]), TEACHER)

        self.assertIsInstance(excinfo.value, DependencyFailure)
        self.assertFalse(Form.objects.exists())
        self.assertFalse(Question.objects.exists())
        self.assertFalse(Report.objects.exists())

    def test_update_stored_question_to_exam(self):
        form = self._save()
        question_id = form['questions'][0]['id']

        question = forms_api.update_question(
            form['id'], TEACHER, question_id,
            question_type=QUESTION_TYPE.exam, concept_items=[{'text': "통분", 'description': "분모 맞추기"}],
        )

        template = ConceptTemplate.objects.get()
        self.assertEqual(question['concept_template'], template.id)
        self.assertEqual(question['config']['concept_template_id'], template.id)
        self.assertEqual(template.items.get().description, "분모 맞추기")


class TestStoredQuestions(FormApiTestCase):
    """ Changing the questions of a stored form one at a time. """

    def setUp(self):
        super().setUp()
        self.form = self._save()

    def _order(self):
        return [question['order_index'] for question in self._questions(self.form['id'])]

    def test_add_question(self):
        question = forms_api.add_question(self.form['id'], TEACHER, QUESTION_TYPE.text)
        self.assertEqual(question['order_index'], 2)
        self.assertEqual(question['config'], {'subtype': 'text', 'max_length': 100})

    def test_add_unknown_question_type(self):
        with raises(FormRequestError):
            forms_api.add_question(self.form['id'], TEACHER, 'essay')
        self.assertEqual(self._order(), [0, 1])

    def test_update_question(self):
        question_id = self.form['questions'][1]['id']
        question = forms_api.update_question(
            self.form['id'], TEACHER, question_id, question_text="새 질문", multiple=True
        )
        self.assertEqual(question['question_text'], "새 질문")
        self.assertTrue(question['config']['multiple'])
        self.assertEqual(question['config']['options'], ["분수", "소수"])

    def test_update_missing_question(self):
        with raises(FormNotFoundError):
            forms_api.update_question(self.form['id'], TEACHER, 999, question_text="?")

    def test_delete_and_move_keep_order_dense(self):
        form_id = self.form['id']
        for __ in range(3):
            forms_api.add_question(form_id, TEACHER, QUESTION_TYPE.text)

        forms_api.delete_question(form_id, TEACHER, self.form['questions'][0]['id'])
        self.assertEqual(self._order(), [0, 1, 2, 3])

        before = [question['id'] for question in self._questions(form_id)]
        moved = forms_api.move_question(form_id, TEACHER, 0, 3)
        self.assertEqual([question['id'] for question in moved], before[1:] + before[:1])
        self.assertEqual(self._order(), [0, 1, 2, 3])

        forms_api.move_question(form_id, TEACHER, 3, 0)
        self.assertEqual([question['id'] for question in self._questions(form_id)], before)

    def test_move_out_of_range(self):
        with raises(FormNotFoundError):
            forms_api.move_question(self.form['id'], TEACHER, 0, 5)

    def test_part_time_cannot_edit(self):
        with raises(PermissionDenied):
            forms_api.add_question(self.form['id'], PART_TIMER, QUESTION_TYPE.text)

    def test_missing_form(self):
        with raises(FormNotFoundError):
            forms_api.add_question(999, TEACHER, QUESTION_TYPE.text)


class TestSentFormIsFrozen(FormApiTestCase):

    def setUp(self):
        super().setUp()
        self.form = self._save()
        self._send(self.form['id'])

    def test_question_changes_are_refused(self):
        form_id = self.form['id']
        question_id = self.form['questions'][0]['id']
        before = self._questions(form_id)

        for call in (
            lambda: forms_api.add_question(form_id, TEACHER, QUESTION_TYPE.text),
            lambda: forms_api.update_question(form_id, TEACHER, question_id, question_text="바꿈"),
            lambda: forms_api.delete_question(form_id, TEACHER, question_id),
            lambda: forms_api.move_question(form_id, TEACHER, 0, 1),
        ):
            with raises(FormSentError) as excinfo:
                call()
            self.assertIsInstance(excinfo.value, InvalidStateError)
            self.assertEqual(excinfo.value.user_message, FORM_SENT_MESSAGE)

        self.assertEqual(self._questions(form_id), before)

    def test_saving_a_sent_form_is_refused(self):
        editor = forms_api.load_editor(self.form['id'])
        self.assertTrue(editor.is_sent)

        with raises(FormSentError):
            editor.update_question(0, question_text="바꿈")
        with raises(FormSentError):
            forms_api.save_form(editor, TEACHER)

    def test_sending_twice(self):
        with raises(FormSentError):
            self._send(self.form['id'])

    def test_details_can_still_change(self):
        form = forms_api.update_form_details(self.form['id'], TEACHER, title="새 제목", description="설명")
        self.assertEqual((form['title'], form['description']), ("새 제목", "설명"))
        self.assertEqual(form['status'], Form.STATUS.send)

    def test_sent_form_cannot_be_deleted(self):
        with raises(FormStateError):
            forms_api.delete_form(self.form['id'], ADMIN)
        self.assertTrue(Form.objects.filter(id=self.form['id']).exists())


@override_settings(ACADEMY_NOTIFICATION_BACKEND=RECORDING_BACKEND)
class TestSendForm(FormApiTestCase):

    @freeze_time("2026-03-02 09:00:00")
    def test_send_to_class_and_student(self):
        form = self._save()
        targets = [
            {'target_type': 'class', 'target_id': self.class_1.id},
            {'target_type': 'individual', 'target_id': STUDENTS[2]},
            {'target_type': 'individual', 'target_id': STUDENTS[0]},
        ]

        with self.captureOnCommitCallbacks(execute=True):
            sent = forms_api.send_form(form['id'], TEACHER, targets)

        self.assertEqual(sent['status'], Form.STATUS.send)
        self.assertEqual(Form.objects.get(id=form['id']).sent_at, datetime(2026, 3, 2, 9, tzinfo=timezone.utc))
        self.assertEqual(FormTarget.objects.filter(form_id=form['id']).count(), 3)

        reports = Report.objects.filter(form_id=form['id']).order_by('student_id')
        self.assertEqual(
            [(report.student_id, report.student_name, report.class_name) for report in reports],
            [(STUDENTS[0], "학생1", "1반"), (STUDENTS[1], "학생2", "1반"), (STUDENTS[2], "학생3", "2반")],
        )
        self.assertTrue(all(report.time_teacher_id == PART_TIMER for report in reports))
        self.assertEqual(len({report.supervision_id for report in reports}), 1)

        self.assertEqual(
            sorted(user_id for user_id, __, __ in SENT_NOTIFICATIONS), list(STUDENTS)
        )
        __, notification_type, payload = SENT_NOTIFICATIONS[0]
        self.assertEqual(notification_type, 'form_assigned')
        self.assertEqual(payload['form_id'], form['id'])

    def test_first_recipient_claims_unassigned_report(self):
        form = self._save()
        unassigned = Report.objects.get(form_id=form['id'])

        self._send(form['id'])

        self.assertEqual(Report.objects.get(id=unassigned.id).student_id, STUDENTS[0])
        self.assertEqual(Report.objects.filter(form_id=form['id'], student_id="").count(), 0)

    def test_form_without_questions(self):
        editor = FormEditor(GROUP_ID, TEACHER, title="빈 폼")
        form = forms_api.save_form(editor, TEACHER)

        with raises(FormRequestError) as excinfo:
            self._send(form['id'])
        self.assertIn('questions', excinfo.value.field_errors)

    def test_nobody_to_send_to(self):
        form = self._save()
        empty_class = groups_api.create_class(GROUP_ID, "3반")

        for targets in ([], [{'target_type': 'class', 'target_id': empty_class.id}]):
            with raises(FormRequestError) as excinfo:
                self._send(form['id'], targets)
            self.assertIn('targets', excinfo.value.field_errors)
        self.assertEqual(Form.objects.get(id=form['id']).status, Form.STATUS.save)

    def test_invalid_target(self):
        form = self._save()
        with raises(FormRequestError):
            self._send(form['id'], [{'target_type': 'school', 'target_id': "1"}])
        self.assertFalse(FormTarget.objects.exists())

    def test_only_teachers_send(self):
        form = self._save()
        with raises(PermissionDenied):
            forms_api.send_form(form['id'], PART_TIMER, [{'target_type': 'individual', 'target_id': STUDENTS[0]}])
        self.assertEqual(SENT_NOTIFICATIONS, [])

    def test_send_missing_form(self):
        with raises(FormNotFoundError):
            self._send(999)


@override_settings(ACADEMY_NOTIFICATION_BACKEND=RECORDING_BACKEND)
class TestSubmitResponse(FormApiTestCase):

    def setUp(self):
        super().setUp()
        self.form = self._save()
        self._send(self.form['id'])
        self.rating_id, self.choice_id = [str(question['id']) for question in self.form['questions']]

    def test_submit(self):
        with self.captureOnCommitCallbacks(execute=True):
            response = forms_api.submit_response(
                self.form['id'], STUDENTS[0], {self.rating_id: 4, self.choice_id: "기타"}
            )

        self.assertEqual(response['answers'], {self.rating_id: 4, self.choice_id: "기타"})
        report = Report.objects.get(form_id=self.form['id'], student_id=STUDENTS[0])
        self.assertEqual(report.stage, STAGE.stage_1)
        self.assertEqual(report.form_response_id, response['id'])
        self.assertIsNotNone(report.student_completed_at)
        self.assertEqual(SENT_NOTIFICATIONS[0][:2], (PART_TIMER, 'report_stage_changed'))

    def test_invalid_answers(self):
        with raises(FormRequestError) as excinfo:
            forms_api.submit_response(self.form['id'], STUDENTS[0], {self.choice_id: "국어", "999": 1})

        self.assertEqual(set(excinfo.value.field_errors), {self.rating_id, self.choice_id, "999"})
        self.assertFalse(FormResponse.objects.exists())
        self.assertEqual(Report.objects.get(student_id=STUDENTS[0]).stage, STAGE.stage_0)

    def test_student_who_did_not_receive_the_form(self):
        with raises(PermissionDenied):
            forms_api.submit_response(self.form['id'], STUDENTS[2], {self.rating_id: 4})
        with raises(PermissionDenied):
            forms_api.submit_response(self.form['id'], OUTSIDER, {self.rating_id: 4})

    def test_form_not_sent(self):
        form = self._save(title="아직 안 보냄")
        with raises(FormStateError):
            forms_api.submit_response(form['id'], STUDENTS[0], {})

    def test_resubmitting_under_review(self):
        forms_api.submit_response(self.form['id'], STUDENTS[0], {self.rating_id: 4})

        with raises(ReportStageError):
            forms_api.submit_response(self.form['id'], STUDENTS[0], {self.rating_id: 1})
        self.assertEqual(FormResponse.objects.get().answers, {self.rating_id: 4})


class TestDuplicateForm(FormApiTestCase):

    def test_duplicate_sent_form(self):
        template = ConceptTemplateFactory(name="분수 개념")
        ConceptTemplateItemFactory(template=template, text="통분", order_index=0)
        ConceptTemplateItemFactory(template=template, text="약분", order_index=1)
        editor = self._editor()
        editor.add_question(QUESTION_TYPE.exam)
        editor.update_question(2, use_existing=True, concept_template_id=template.id)
        source = forms_api.save_form(editor, TEACHER)
        self._send(source['id'])

        copy = forms_api.duplicate_form(source['id'], TEACHER)

        self.assertEqual(copy.title, "주간 점검 [복사본]")
        self.assertFalse(copy.is_sent)
        self.assertIsNone(copy.form_id)
        exam = copy.questions[2].config
        self.assertFalse(exam.use_existing)
        self.assertEqual([item.text for item in exam.concept_items], ["통분", "약분"])

        saved = forms_api.save_form(copy, TEACHER, draft=True)
        self.assertEqual(saved['status'], Form.STATUS.draft)
        self.assertNotEqual(saved['questions'][2]['concept_template'], template.id)
        self.assertEqual(ConceptTemplate.objects.count(), 2)
        self.assertEqual(
            [question['id'] for question in self._questions(source['id'])],
            [question['id'] for question in source['questions']],
        )

    def test_template_without_items_is_kept(self):
        template = ConceptTemplateFactory(name="빈 템플릿")
        editor = self._editor()
        editor.add_question(QUESTION_TYPE.exam)
        editor.update_question(2, use_existing=True, concept_template_id=template.id)
        source = forms_api.save_form(editor, TEACHER)

        copy = forms_api.duplicate_form(source['id'], TEACHER)
        exam = copy.questions[2].config
        self.assertTrue(exam.use_existing)
        self.assertEqual(exam.concept_template_id, template.id)

        saved = forms_api.save_form(copy, TEACHER)
        self.assertEqual(saved['questions'][2]['concept_template'], template.id)
        self.assertEqual(ConceptTemplate.objects.count(), 1)

    def test_copies_are_independent(self):
        source = self._save()
        copy = forms_api.save_form(forms_api.duplicate_form(source['id'], TEACHER, add_suffix=False), TEACHER)
        self.assertEqual(copy['title'], source['title'])

        forms_api.update_question(copy['id'], TEACHER, copy['questions'][1]['id'], options=["바뀜"])
        self.assertEqual(self._questions(source['id'])[1]['config']['options'], ["분수", "소수"])

    def test_students_cannot_duplicate(self):
        source = self._save()
        with raises(PermissionDenied):
            forms_api.duplicate_form(source['id'], STUDENTS[0])


class TestFormDetails(FormApiTestCase):

    def test_list_forms(self):
        first = self._save(title="첫 번째")
        second = self._save(title="두 번째")
        self._send(first['id'])

        forms = forms_api.list_forms(GROUP_ID)
        self.assertEqual({form['id'] for form in forms}, {first['id'], second['id']})
        self.assertEqual(forms[0]['question_count'], 2)
        self.assertEqual(
            [form['id'] for form in forms_api.list_forms(GROUP_ID, status=Form.STATUS.send)], [first['id']]
        )
        self.assertEqual(forms_api.list_forms("academy-2"), [])

    def test_get_missing_form(self):
        with raises(FormNotFoundError):
            forms_api.get_form_with_questions(999)

    def test_blank_title(self):
        form = self._save()
        with raises(FormRequestError):
            forms_api.update_form_details(form['id'], TEACHER, title="")

    def test_delete_form(self):
        form = self._save()
        with raises(PermissionDenied):
            forms_api.delete_form(form['id'], TEACHER)

        forms_api.delete_form(form['id'], ADMIN)
        self.assertFalse(Form.objects.exists())
        self.assertFalse(Report.objects.exists())


@ddt.ddt
class TestConceptTemplates(FormApiTestCase):

    def test_create_template(self):
        template = forms_api.create_concept_template(
            GROUP_ID, TEACHER, "분수 개념", 3, items=["통분", {'text': "약분", 'description': "나누기"}, ""]
        )
        self.assertEqual(template['status'], ConceptTemplate.STATUS.draft)
        self.assertEqual(
            [(item['text'], item['order_index']) for item in template['items']], [("통분", 0), ("약분", 1)]
        )
        self.assertEqual(forms_api.get_concept_template(template['id']), template)

    @ddt.data(
        ("", 3, None, 'name'),
        ("개념", 0, None, 'concept_count'),
        ("개념", "3", None, 'concept_count'),
        ("개념", 3, 'archived', 'status'),
    )
    @ddt.unpack
    def test_invalid_template(self, name, concept_count, status, field):
        with raises(FormRequestError) as excinfo:
            forms_api.create_concept_template(GROUP_ID, TEACHER, name, concept_count, status=status)
        self.assertIn(field, excinfo.value.field_errors)

    def test_students_cannot_create_templates(self):
        with raises(PermissionDenied):
            forms_api.create_concept_template(GROUP_ID, STUDENTS[0], "개념", 3)

    def test_list_and_status(self):
        draft = forms_api.create_concept_template(GROUP_ID, TEACHER, "초안", 1)
        done = forms_api.create_concept_template(
            GROUP_ID, TEACHER, "완성", 1, status=ConceptTemplate.STATUS.completed
        )
        self.assertEqual(
            [template['id'] for template in forms_api.list_concept_templates(GROUP_ID, status='completed')],
            [done['id']],
        )

        forms_api.set_concept_template_status(draft['id'], TEACHER, ConceptTemplate.STATUS.completed)
        self.assertEqual(len(forms_api.list_concept_templates(GROUP_ID, status='completed')), 2)

        with raises(FormRequestError):
            forms_api.set_concept_template_status(draft['id'], TEACHER, 'archived')

    def test_duplicate_template(self):
        source = forms_api.create_concept_template(
            GROUP_ID, TEACHER, "분수 개념", 2, items=["통분", "약분"], status=ConceptTemplate.STATUS.completed
        )
        copy = forms_api.duplicate_concept_template(source['id'], ADMIN)

        self.assertNotEqual(copy['id'], source['id'])
        self.assertEqual(copy['name'], "분수 개념 [복사본]")
        self.assertEqual(copy['status'], ConceptTemplate.STATUS.draft)
        self.assertEqual(copy['creator_id'], ADMIN)
        self.assertEqual([item['text'] for item in copy['items']], ["통분", "약분"])

    def test_update_template(self):
        template = forms_api.create_concept_template(GROUP_ID, TEACHER, "분수 개념", 2, items=["통분", "약분"])

        updated = forms_api.update_concept_template(
            template['id'], TEACHER, name="분수와 소수", concept_count=3,
            items=["통분", "", {'text': "소수 변환", 'description': "분모 10"}],
        )

        self.assertEqual(updated['name'], "분수와 소수")
        self.assertEqual(updated['concept_count'], 3)
        self.assertEqual(updated['status'], ConceptTemplate.STATUS.draft)
        self.assertEqual(
            [(item['text'], item['description'], item['order_index']) for item in updated['items']],
            [("통분", "", 0), ("소수 변환", "분모 10", 1)],
        )
        self.assertEqual(ConceptTemplateItem.objects.filter(template_id=template['id']).count(), 2)

    def test_update_keeps_what_is_not_given(self):
        template = forms_api.create_concept_template(GROUP_ID, TEACHER, "분수 개념", 2, items=["통분", "약분"])
        updated = forms_api.update_concept_template(
            template['id'], ADMIN, status=ConceptTemplate.STATUS.completed
        )
        self.assertEqual(updated['status'], ConceptTemplate.STATUS.completed)
        self.assertEqual((updated['name'], updated['concept_count']), ("분수 개념", 2))
        self.assertEqual([item['text'] for item in updated['items']], ["통분", "약분"])

    @ddt.data(
        ({'name': "  "}, 'name'),
        ({'concept_count': 0}, 'concept_count'),
        ({'status': 'archived'}, 'status'),
    )
    @ddt.unpack
    def test_invalid_update(self, fields, field):
        template = forms_api.create_concept_template(GROUP_ID, TEACHER, "분수 개념", 2, items=["통분"])
        with raises(FormRequestError) as excinfo:
            forms_api.update_concept_template(template['id'], TEACHER, items=[], **fields)

        self.assertIn(field, excinfo.value.field_errors)
        self.assertEqual(forms_api.get_concept_template(template['id']), template)

    def test_students_cannot_update_templates(self):
        template = forms_api.create_concept_template(GROUP_ID, TEACHER, "분수 개념", 2)
        with raises(PermissionDenied):
            forms_api.update_concept_template(template['id'], STUDENTS[0], name="몰래")

    def test_delete_template(self):
        template = forms_api.create_concept_template(GROUP_ID, TEACHER, "분수 개념", 2, items=["통분", "약분"])
        forms_api.delete_concept_template(template['id'], TEACHER)

        with raises(ConceptTemplateNotFoundError):
            forms_api.get_concept_template(template['id'])
        self.assertFalse(ConceptTemplateItem.objects.exists())

    def test_only_creator_or_admin_deletes(self):
        groups_api.add_member(GROUP_ID, "teacher-2", ROLE.teacher, name="최선생")
        template = forms_api.create_concept_template(GROUP_ID, TEACHER, "분수 개념", 2)

        for user_id in ("teacher-2", PART_TIMER, STUDENTS[0]):
            with raises(PermissionDenied):
                forms_api.delete_concept_template(template['id'], user_id)
        self.assertTrue(ConceptTemplate.objects.filter(id=template['id']).exists())

        forms_api.delete_concept_template(template['id'], ADMIN)
        self.assertFalse(ConceptTemplate.objects.filter(id=template['id']).exists())

    def test_template_in_use_is_kept(self):
        template = forms_api.create_concept_template(
            GROUP_ID, TEACHER, "분수 개념", 2, items=["통분", "약분"], status=ConceptTemplate.STATUS.completed
        )
        editor = self._editor()
        editor.add_question(QUESTION_TYPE.exam)
        editor.update_question(2, use_existing=True, concept_template_id=template['id'])
        forms_api.save_form(editor, TEACHER)

        with raises(ConceptTemplateInUseError) as excinfo:
            forms_api.delete_concept_template(template['id'], TEACHER)

        self.assertIsInstance(excinfo.value, InvalidStateError)
        self.assertEqual(excinfo.value.user_message, "사용 중인 템플릿은 삭제할 수 없습니다.")
        self.assertTrue(ConceptTemplate.objects.filter(id=template['id']).exists())

    def test_search_templates(self):
        fractions = forms_api.create_concept_template(GROUP_ID, TEACHER, "분수 개념", 2)
        decimals = forms_api.create_concept_template(GROUP_ID, ADMIN, "소수 개념", 2)

        def found(**conditions):
            return {template['id'] for template in forms_api.list_concept_templates(GROUP_ID, **conditions)}

        self.assertEqual(found(name="분수"), {fractions['id']})
        self.assertEqual(found(name="개념"), {fractions['id'], decimals['id']})
        self.assertEqual(found(creator_id=ADMIN), {decimals['id']})
        self.assertEqual(found(name="분수", creator_id=ADMIN), set())

    def test_missing_template(self):
        for call in (
            lambda: forms_api.get_concept_template(999),
            lambda: forms_api.duplicate_concept_template(999, TEACHER),
            lambda: forms_api.set_concept_template_status(999, TEACHER, 'draft'),
            lambda: forms_api.update_concept_template(999, TEACHER, name="개념"),
            lambda: forms_api.delete_concept_template(999, TEACHER),
        ):
            with raises(ConceptTemplateNotFoundError):
                call()


class TestRoles(FormApiTestCase):

    def test_part_timer_in_class_is_not_a_recipient(self):
        form = self._save()
        self._send(form['id'])
        # part-time-1 sits in 1반 but only students receive the form
        self.assertFalse(Report.objects.filter(student_id=PART_TIMER).exists())
        self.assertEqual(groups_api.get_role(GROUP_ID, PART_TIMER), ROLE.part_time)
