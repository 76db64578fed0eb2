"""
In-memory editing of a form before it is saved.

The editor holds the form's details and an ordered list of questions, and
is the only place questions are built or changed before ``api.save_form``
persists them.  It keeps two things true after every change:

* question ``order_index`` values are exactly ``0..n-1``, in list order;
* the ``expanded`` pointer (the question open for editing) still points at
  the same question, or is cleared if that question was removed.
"""

import logging

from .errors import FormNotFoundError, FormRequestError, FormSentError
from .models import Form
from .questions import QUESTION_TYPE, ConceptItem, default_config, replace_config

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

QUESTION_FIELDS = ('question_type', 'question_text', 'is_required')


class EditorQuestion:
    """A question being edited.  ``id`` is None until the question is saved."""

    def __init__(self, question_type, config=None, question_text="", is_required=False,
                 order_index=0, question_id=None):
        self.id = question_id
        self.question_type = question_type
        self.config = config if config is not None else default_config(question_type)
        self.question_text = question_text
        self.is_required = is_required
        self.order_index = order_index

    def __repr__(self):
        return (
            f"EditorQuestion(id={self.id!r}, order_index={self.order_index!r}, "
            f"question_type={self.question_type!r}, config={self.config!r})"
        )

    @property
    def is_new(self):
        return self.id is None


class FormEditor:
    """
    A form being created or edited.

    Args:
        group_id (str): The group the form belongs to.
        creator_id (str): Who is writing the form.

    Keyword Arguments:
        title (str), description (str): Form details.
        time_teacher_id (str), teacher_id (str): The reviewers of the
            reports this form produces.
        form_id (int): Set once the form is persisted.
        status (str): One of ``Form.STATUS``.
    """

    def __init__(self, group_id, creator_id, title="", description="", time_teacher_id="",
                 teacher_id="", form_id=None, status=Form.STATUS.draft, questions=None):
        self.group_id = group_id
        self.creator_id = creator_id
        self.title = title
        self.description = description
        self.time_teacher_id = time_teacher_id or ""
        self.teacher_id = teacher_id or ""
        self.form_id = form_id
        self.status = status
        self.questions = list(questions or [])
        self.expanded = None
        self._renumber()

    @classmethod
    def from_form(cls, form):
        """Load a persisted form, with its questions, into an editor."""
        return cls(
            group_id=form.group_id,
            creator_id=form.creator_id,
            title=form.title,
            description=form.description,
            time_teacher_id=form.time_teacher_id,
            teacher_id=form.teacher_id,
            form_id=form.id,
            status=form.status,
            questions=[
                EditorQuestion(
                    question.question_type,
                    config=question.payload,
                    question_text=question.question_text,
                    is_required=question.is_required,
                    order_index=question.order_index,
                    question_id=question.id,
                )
                for question in form.questions.order_by('order_index')
            ],
        )

    @property
    def is_sent(self):
        return self.status == Form.STATUS.send

    def _check_editable(self):
        if self.is_sent:
            raise FormSentError(f"Form {self.form_id} has been sent")

    def _get(self, index):
        if not 0 <= index < len(self.questions):
            raise FormNotFoundError(
                f"No question at index {index} (form has {len(self.questions)})",
                user_message="질문을 찾을 수 없습니다.",
            )
        return self.questions[index]

    def _renumber(self):
        for index, question in enumerate(self.questions):
            question.order_index = index

    def add_question(self, question_type):
        """
        Append a question of the given type, with that type's defaults.

        The new question becomes the expanded one.

        Returns:
            EditorQuestion
        """
        self._check_editable()
        question = EditorQuestion(question_type, order_index=len(self.questions))
        self.questions.append(question)
        self.expanded = question.order_index
        return question

    def update_question(self, index, **fields):
        """
        Change a question.

        ``question_type``, ``question_text`` and ``is_required`` update the
        question itself; any other keyword is a config field of the
        question's (new) type.  Changing the type resets the config to the
        new type's defaults before the config fields are applied.

        Raises:
            FormSentError: The form has been sent.
            FormNotFoundError: No question at ``index``.
            FormRequestError: A config field does not belong to the type.
        """
        self._check_editable()
        question = self._get(index)
        apply_question_fields(question, fields)
        return question

    def delete_question(self, index):
        self._check_editable()
        self._get(index)
        del self.questions[index]
        self._renumber()

        if self.expanded == index:
            self.expanded = None
        elif self.expanded is not None and self.expanded > index:
            self.expanded -= 1

    def move_question(self, from_index, to_index):
        """
        Move a question to a new position, shifting the ones in between.

        Moving it back to ``from_index`` restores the previous order.
        """
        self._check_editable()
        self._get(from_index)
        self._get(to_index)
        if from_index == to_index:
            return

        moved = self.questions.pop(from_index)
        self.questions.insert(to_index, moved)
        self._renumber()

        if self.expanded is not None:
            self.expanded = _follow_move(self.expanded, from_index, to_index)

    def duplicate(self, add_suffix=True, suffix=" [복사본]"):
        """
        Return an unsaved copy of this editor.

        The copy is a draft with no ids.  Question configs are copied as
        they are; exam questions that should build a template of their own
        go through ``exam_copy_config`` first.
        """
        copy = FormEditor(
            group_id=self.group_id,
            creator_id=self.creator_id,
            title=f"{self.title}{suffix}" if add_suffix else self.title,
            description=self.description,
            time_teacher_id=self.time_teacher_id,
            teacher_id=self.teacher_id,
        )
        for question in self.questions:
            copy.questions.append(EditorQuestion(
                question.question_type,
                config=question.config,
                question_text=question.question_text,
                is_required=question.is_required,
            ))
        copy._renumber()  # pylint: disable=protected-access
        return copy


def _follow_move(pointer, from_index, to_index):
    if pointer == from_index:
        return to_index
    if from_index < pointer <= to_index:
        return pointer - 1
    if to_index <= pointer < from_index:
        return pointer + 1
    return pointer


def apply_question_fields(question, fields):
    """
    Apply ``update_question`` keywords to an ``EditorQuestion``.

    The question is only changed once every keyword has been accepted.
    """
    fields = dict(fields)
    new_type = fields.pop('question_type', question.question_type)
    if new_type not in QUESTION_TYPE:
        raise FormRequestError({'question_type': f"지원하지 않는 질문 유형입니다: {new_type}"})

    config = question.config if new_type == question.question_type else default_config(new_type)
    question_text = fields.pop('question_text', question.question_text)
    is_required = bool(fields.pop('is_required', question.is_required))
    if fields:
        config = replace_config(config, **fields)

    question.question_type = new_type
    question.config = config
    question.question_text = question_text
    question.is_required = is_required


def exam_copy_config(config, template):
    """
    The config a copied exam question gets, so it builds its own template.

    A template without items has nothing to copy; the copy keeps using it.

    Args:
        config (ExamConfig): The source question's config.
        template (ConceptTemplate): The template the source points at, if any.
    """
    if template is None:
        return config
    items = tuple(
        ConceptItem(text=item.text, description=item.description)
        for item in template.items.order_by('order_index')
    )
    if not items:
        return config._replace(use_existing=True, concept_template_id=template.id)
    return config._replace(
        use_existing=False,
        concept_template_id=None,
        new_template_name=template.name,
        concept_items=items,
    )
