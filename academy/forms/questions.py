"""
The question type system.

A question is one of four variants.  Each variant has its own configuration
payload, a namedtuple, and a question only ever carries the payload of its
current variant: changing the type replaces the payload with the new
variant's defaults.

Payloads are stored as plain dicts (``config_to_dict``) in the question's
JSON column and read back with ``config_from_dict``.
"""

from collections import namedtuple
from numbers import Number
from types import MappingProxyType

from django.conf import settings

from model_utils import Choices

from .errors import FormRequestError

QUESTION_TYPE = Choices(
    ('text', 'text', '텍스트'),
    ('rating', 'rating', '별점'),
    ('choice', 'choice', '선택형'),
    ('exam', 'exam', '시험'),
)

# Single-line vs. multi-line input.  Only the presentation differs.
TEXT_SUBTYPE = Choices('text', 'textarea')

RATING_MAX_RANGE = (3, 10)
RATING_STEP_RANGE = (1, 5)

# The synthetic choice a respondent picks to type their own answer.
OTHER_OPTION = "기타"

TextConfig = namedtuple('TextConfig', ['subtype', 'max_length'])
RatingConfig = namedtuple('RatingConfig', ['rating_max', 'rating_step'])
ChoiceConfig = namedtuple('ChoiceConfig', ['options', 'multiple', 'allow_other'])
ExamConfig = namedtuple(
    'ExamConfig',
    ['total_questions', 'use_existing', 'concept_template_id', 'new_template_name', 'concept_items']
)
ConceptItem = namedtuple('ConceptItem', ['text', 'description'])

CONFIG_TYPES = MappingProxyType({
    QUESTION_TYPE.text: TextConfig,
    QUESTION_TYPE.rating: RatingConfig,
    QUESTION_TYPE.choice: ChoiceConfig,
    QUESTION_TYPE.exam: ExamConfig,
})

REQUIRED_MESSAGE = "필수 항목입니다."


def _check_type(question_type):
    if question_type not in CONFIG_TYPES:
        raise FormRequestError({'question_type': f"지원하지 않는 질문 유형입니다: {question_type}"})


def default_config(question_type):
    """
    Return the configuration a new question of the given type starts with.

    Raises:
        FormRequestError: Unknown question type.
    """
    _check_type(question_type)
    if question_type == QUESTION_TYPE.text:
        return TextConfig(
            subtype=TEXT_SUBTYPE.text,
            max_length=getattr(settings, 'ACADEMY_TEXT_MAX_LENGTH_DEFAULT', 100),
        )
    if question_type == QUESTION_TYPE.rating:
        return RatingConfig(rating_max=5, rating_step=1)
    if question_type == QUESTION_TYPE.choice:
        return ChoiceConfig(options=("",), multiple=False, allow_other=False)
    return ExamConfig(
        total_questions=getattr(settings, 'ACADEMY_EXAM_TOTAL_QUESTIONS_DEFAULT', 10),
        use_existing=False,
        concept_template_id=None,
        new_template_name="",
        concept_items=(),
    )


def _as_concept_item(item):
    if isinstance(item, ConceptItem):
        return item
    if isinstance(item, str):
        return ConceptItem(text=item, description="")
    if hasattr(item, 'text'):
        return ConceptItem(text=item.text, description=getattr(item, 'description', ""))
    return ConceptItem(text=item.get('text', ""), description=item.get('description', ""))


def as_concept_items(items):
    """
    Coerce strings, dicts or objects with ``text`` and ``description`` into
    a tuple of ``ConceptItem``.
    """
    return tuple(_as_concept_item(item) for item in items)


def replace_config(config, **fields):
    """
    Return a copy of ``config`` with some of its fields replaced.

    Raises:
        FormRequestError: A field does not belong to the config's variant.
    """
    unknown = sorted(set(fields) - set(config._fields))
    if unknown:
        raise FormRequestError({
            name: f"{type(config).__name__}에 없는 설정입니다." for name in unknown
        })
    if 'options' in fields:
        fields['options'] = tuple(fields['options'])
    if 'concept_items' in fields:
        fields['concept_items'] = as_concept_items(fields['concept_items'])
    return config._replace(**fields)


def config_to_dict(config):
    """Serialize a config namedtuple to JSON-compatible data."""
    data = config._asdict()
    if isinstance(config, ChoiceConfig):
        data['options'] = list(config.options)
    elif isinstance(config, ExamConfig):
        data['concept_items'] = [dict(item._asdict()) for item in config.concept_items]
    return dict(data)


def config_from_dict(question_type, data):
    """
    Build the config namedtuple of a variant from stored data.

    Missing fields take the variant's defaults and fields belonging to other
    variants are dropped.
    """
    config = default_config(question_type)
    data = data or {}
    fields = {name: data[name] for name in config._fields if name in data}
    return replace_config(config, **fields)


def validate_config(question_type, config):
    """
    Check a question's configuration before it is saved.

    Args:
        question_type (str): One of ``QUESTION_TYPE``.
        config (namedtuple or dict): The variant payload.

    Returns:
        The validated config namedtuple.

    Raises:
        FormRequestError: ``field_errors`` holds one list of messages per
            offending config field.
    """
    # Imported here to avoid a circular import with the serializers.
    from .serializers import CONFIG_SERIALIZERS

    _check_type(question_type)
    if not isinstance(config, dict):
        config = config_to_dict(config)

    serializer = CONFIG_SERIALIZERS[question_type](data=config)
    if not serializer.is_valid():
        raise FormRequestError(serializer.errors)
    return config_from_dict(question_type, serializer.validated_data)


def _is_empty(value):
    return value is None or value == "" or value == [] or value == {}


def _is_number(value):
    return isinstance(value, Number) and not isinstance(value, bool)


def _validate_text(config, value):
    if not isinstance(value, str):
        return False, "텍스트를 입력해 주세요."
    if len(value) > config.max_length:
        return False, f"{config.max_length}자 이내로 입력해 주세요."
    return True, ''


def _validate_rating(config, value):
    if not _is_number(value):
        return False, "점수를 선택해 주세요."
    if value < 0 or value > config.rating_max:
        return False, f"0점에서 {config.rating_max}점 사이로 선택해 주세요."
    if value % config.rating_step:
        return False, f"{config.rating_step}점 단위로 선택해 주세요."
    return True, ''


def _validate_choice(config, value):
    selected = value if isinstance(value, list) else [value]
    if not config.multiple and len(selected) != 1:
        return False, "하나만 선택해 주세요."

    for item in selected:
        if isinstance(item, dict) and set(item) == {'other'}:
            item = OTHER_OPTION
        if config.allow_other and item == OTHER_OPTION:
            continue
        if not isinstance(item, str) or item not in config.options:
            return False, "선택할 수 없는 항목입니다."

    if len(set(str(item) for item in selected)) != len(selected):
        return False, "같은 항목을 여러 번 선택할 수 없습니다."
    return True, ''


def _validate_exam(config, value):
    answers = value if isinstance(value, list) else [value]
    for answer in answers:
        if isinstance(answer, dict):
            answer = answer.get('answer')
        if not isinstance(answer, int) or isinstance(answer, bool):
            return False, "문항 번호를 선택해 주세요."
        if answer < 1 or answer > config.total_questions:
            return False, f"1번에서 {config.total_questions}번 사이의 문항을 선택해 주세요."
    return True, ''


RESPONSE_VALIDATORS = MappingProxyType({
    QUESTION_TYPE.text: _validate_text,
    QUESTION_TYPE.rating: _validate_rating,
    QUESTION_TYPE.choice: _validate_choice,
    QUESTION_TYPE.exam: _validate_exam,
})


def validate_response(question_type, config, value, required=False):
    """
    Validate a respondent's answer to a single question.

    Args:
        question_type (str): One of ``QUESTION_TYPE``.
        config (namedtuple): The question's variant payload.
        value: The submitted answer.

    Keyword Arguments:
        required (bool): Whether the question must be answered.

    Returns:
        tuple (is_valid, msg) where
            is_valid is a boolean indicating whether the answer is acceptable
            and msg describes the problem found.

    Examples:
        >>> validate_response('rating', RatingConfig(5, 1), 3)
        (True, '')
    """
    _check_type(question_type)
    if _is_empty(value):
        if required:
            return False, REQUIRED_MESSAGE
        return True, ''
    return RESPONSE_VALIDATORS[question_type](config, value)
