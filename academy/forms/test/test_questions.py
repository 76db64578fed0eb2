"""
Tests for question configs and answer validation.
"""

import ddt
from django.test import SimpleTestCase
from django.test.utils import override_settings
from pytest import raises

from academy.forms.errors import FormRequestError
from academy.forms.questions import (
    OTHER_OPTION,
    QUESTION_TYPE,
    REQUIRED_MESSAGE,
    ChoiceConfig,
    ConceptItem,
    ExamConfig,
    RatingConfig,
    TextConfig,
    config_from_dict,
    config_to_dict,
    default_config,
    replace_config,
    validate_config,
    validate_response,
)


class TestConfigs(SimpleTestCase):

    def test_defaults(self):
        self.assertEqual(default_config(QUESTION_TYPE.text), TextConfig('text', 100))
        self.assertEqual(default_config(QUESTION_TYPE.rating), RatingConfig(rating_max=5, rating_step=1))
        self.assertEqual(default_config(QUESTION_TYPE.choice).options, ("",))
        self.assertEqual(
            default_config(QUESTION_TYPE.exam),
            ExamConfig(10, False, None, "", ()),
        )

    @override_settings(ACADEMY_TEXT_MAX_LENGTH_DEFAULT=500, ACADEMY_EXAM_TOTAL_QUESTIONS_DEFAULT=20)
    def test_defaults_from_settings(self):
        self.assertEqual(default_config(QUESTION_TYPE.text).max_length, 500)
        self.assertEqual(default_config(QUESTION_TYPE.exam).total_questions, 20)

    def test_unknown_type(self):
        with raises(FormRequestError) as excinfo:
            default_config('essay')
        self.assertIn('question_type', excinfo.value.field_errors)

    def test_replace_config(self):
        config = replace_config(default_config(QUESTION_TYPE.choice), options=["사과", "배"], multiple=True)
        self.assertEqual(config, ChoiceConfig(("사과", "배"), True, False))

    def test_replace_config_rejects_other_variants_fields(self):
        with raises(FormRequestError) as excinfo:
            replace_config(default_config(QUESTION_TYPE.text), rating_max=5)
        self.assertEqual(list(excinfo.value.field_errors), ['rating_max'])

    def test_concept_items_are_coerced(self):
        config = replace_config(
            default_config(QUESTION_TYPE.exam),
            concept_items=["분수", {'text': "소수", 'description': "소수점"}],
        )
        self.assertEqual(config.concept_items, (ConceptItem("분수", ""), ConceptItem("소수", "소수점")))

    def test_stored_form(self):
        config = ExamConfig(5, False, None, "단원평가", (ConceptItem("분수", ""),))
        data = config_to_dict(config)

        self.assertEqual(data['concept_items'], [{'text': "분수", 'description': ""}])
        self.assertEqual(config_from_dict(QUESTION_TYPE.exam, data), config)

    def test_stored_form_drops_foreign_fields(self):
        config = config_from_dict(QUESTION_TYPE.rating, {'rating_max': 7, 'options': ["a"]})
        self.assertEqual(config, RatingConfig(7, 1))


@ddt.ddt
class TestValidateConfig(SimpleTestCase):

    def test_valid_configs(self):
        self.assertEqual(validate_config(QUESTION_TYPE.rating, RatingConfig(10, 2)), RatingConfig(10, 2))
        self.assertEqual(
            validate_config(QUESTION_TYPE.choice, {'options': ["예", "아니오"], 'multiple': False, 'allow_other': True}),
            ChoiceConfig(("예", "아니오"), False, True),
        )

    @ddt.data(
        (QUESTION_TYPE.rating, RatingConfig(2, 1), 'rating_max'),
        (QUESTION_TYPE.rating, RatingConfig(11, 1), 'rating_max'),
        (QUESTION_TYPE.rating, RatingConfig(5, 0), 'rating_step'),
        (QUESTION_TYPE.rating, RatingConfig(5, 6), 'rating_step'),
        (QUESTION_TYPE.text, TextConfig('text', 0), 'max_length'),
        (QUESTION_TYPE.text, TextConfig('markdown', 100), 'subtype'),
        (QUESTION_TYPE.choice, ChoiceConfig(("",), False, False), 'options'),
        (QUESTION_TYPE.choice, ChoiceConfig((), False, False), 'options'),
        (QUESTION_TYPE.choice, ChoiceConfig(("예", "예"), False, False), 'options'),
        (QUESTION_TYPE.exam, ExamConfig(0, False, None, "", ()), 'total_questions'),
        (QUESTION_TYPE.exam, ExamConfig(10, True, None, "", ()), 'concept_template_id'),
    )
    @ddt.unpack
    def test_invalid_configs(self, question_type, config, field):
        with raises(FormRequestError) as excinfo:
            validate_config(question_type, config)
        self.assertIn(field, excinfo.value.field_errors)


@ddt.ddt
class TestValidateResponse(SimpleTestCase):

    @ddt.data(
        (QUESTION_TYPE.text, TextConfig('text', 5), "안녕", True),
        (QUESTION_TYPE.text, TextConfig('text', 5), "안녕하세요요", False),
        (QUESTION_TYPE.text, TextConfig('textarea', 5), 3, False),
        (QUESTION_TYPE.rating, RatingConfig(5, 1), 0, True),
        (QUESTION_TYPE.rating, RatingConfig(5, 1), 5, True),
        (QUESTION_TYPE.rating, RatingConfig(5, 1), 6, False),
        (QUESTION_TYPE.rating, RatingConfig(5, 1), -1, False),
        (QUESTION_TYPE.rating, RatingConfig(5, 1), True, False),
        (QUESTION_TYPE.rating, RatingConfig(10, 2), 4, True),
        (QUESTION_TYPE.rating, RatingConfig(10, 2), 3, False),
        (QUESTION_TYPE.choice, ChoiceConfig(("a", "b"), False, False), "a", True),
        (QUESTION_TYPE.choice, ChoiceConfig(("a", "b"), False, False), "c", False),
        (QUESTION_TYPE.choice, ChoiceConfig(("a", "b"), False, False), ["a", "b"], False),
        (QUESTION_TYPE.choice, ChoiceConfig(("a", "b"), True, False), ["a", "b"], True),
        (QUESTION_TYPE.choice, ChoiceConfig(("a", "b"), True, False), ["a", "a"], False),
        (QUESTION_TYPE.choice, ChoiceConfig(("a", "b"), False, False), OTHER_OPTION, False),
        (QUESTION_TYPE.choice, ChoiceConfig(("a", "b"), False, True), OTHER_OPTION, True),
        (QUESTION_TYPE.choice, ChoiceConfig(("a", "b"), True, True), ["a", {'other': "직접 입력"}], True),
        (QUESTION_TYPE.exam, ExamConfig(10, False, None, "", ()), 3, True),
        (QUESTION_TYPE.exam, ExamConfig(10, False, None, "", ()), [1, {'answer': 10}], True),
        (QUESTION_TYPE.exam, ExamConfig(10, False, None, "", ()), 11, False),
        (QUESTION_TYPE.exam, ExamConfig(10, False, None, "", ()), 0, False),
        (QUESTION_TYPE.exam, ExamConfig(10, False, None, "", ()), "3", False),
    )
    @ddt.unpack
    def test_validate_response(self, question_type, config, value, expected):
        is_valid, msg = validate_response(question_type, config, value)
        self.assertEqual(is_valid, expected)
        self.assertEqual(bool(msg), not expected)

    @ddt.data(None, "", [], {})
    def test_empty_answers(self, value):
        config = default_config(QUESTION_TYPE.choice)
        self.assertEqual(validate_response(QUESTION_TYPE.choice, config, value), (True, ''))
        self.assertEqual(
            validate_response(QUESTION_TYPE.choice, config, value, required=True),
            (False, REQUIRED_MESSAGE),
        )
