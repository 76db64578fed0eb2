"""
Serializers are created to ensure models do not have to be accessed outside the
scope of the form APIs.

The ``*ConfigSerializer`` classes validate one question variant's
configuration each; errors come back per field.
"""

from types import MappingProxyType

from rest_framework import serializers

from .editor import QUESTION_FIELDS
from .models import ConceptTemplate, ConceptTemplateItem, Form, FormResponse, FormTarget, Question
from .questions import QUESTION_TYPE, RATING_MAX_RANGE, RATING_STEP_RANGE, TEXT_SUBTYPE, config_to_dict


class TextConfigSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    subtype = serializers.ChoiceField(choices=TEXT_SUBTYPE)
    max_length = serializers.IntegerField(min_value=1)


class RatingConfigSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    rating_max = serializers.IntegerField(min_value=RATING_MAX_RANGE[0], max_value=RATING_MAX_RANGE[1])
    rating_step = serializers.IntegerField(min_value=RATING_STEP_RANGE[0], max_value=RATING_STEP_RANGE[1])


class ChoiceConfigSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    """
    Choice questions need at least one option, and none of them may be blank
    once the form is saved.
    """
    options = serializers.ListField(
        child=serializers.CharField(allow_blank=True, trim_whitespace=False), min_length=1
    )
    multiple = serializers.BooleanField()
    allow_other = serializers.BooleanField()

    def validate_options(self, value):
        if any(not option.strip() for option in value):
            raise serializers.ValidationError("빈 선택지가 있습니다.")
        if len(set(value)) != len(value):
            raise serializers.ValidationError("선택지가 중복되었습니다.")
        return value


class ConceptItemSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    text = serializers.CharField(allow_blank=True, max_length=255)
    description = serializers.CharField(allow_blank=True, required=False, default="")


class ExamConfigSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    total_questions = serializers.IntegerField(min_value=1)
    use_existing = serializers.BooleanField()
    concept_template_id = serializers.IntegerField(allow_null=True, required=False, default=None)
    new_template_name = serializers.CharField(allow_blank=True, required=False, default="", max_length=255)
    concept_items = ConceptItemSerializer(many=True, required=False, default=list)

    def validate(self, attrs):
        if attrs['use_existing'] and attrs.get('concept_template_id') is None:
            raise serializers.ValidationError({'concept_template_id': "사용할 개념 템플릿을 선택해 주세요."})
        return attrs


CONFIG_SERIALIZERS = MappingProxyType({
    QUESTION_TYPE.text: TextConfigSerializer,
    QUESTION_TYPE.rating: RatingConfigSerializer,
    QUESTION_TYPE.choice: ChoiceConfigSerializer,
    QUESTION_TYPE.exam: ExamConfigSerializer,
})


class QuestionSerializer(serializers.ModelSerializer):
    """
    Serialize a `Question` model.

    ``config`` is re-read through the variant's defaults so consumers always
    see a complete payload.
    """
    config = serializers.SerializerMethodField()

    def get_config(self, obj):
        return config_to_dict(obj.payload)

    class Meta:
        model = Question
        fields = (
            'id',
            'order_index',
            'question_type',
            'question_text',
            'is_required',
            'config',
            'concept_template',
        )


class FormTargetSerializer(serializers.ModelSerializer):
    class Meta:
        model = FormTarget
        fields = ('target_type', 'target_id')


class FormSerializer(serializers.ModelSerializer):
    """
    Serialize a `Form` model, along with its questions in order.
    """
    questions = QuestionSerializer(many=True, read_only=True)
    targets = FormTargetSerializer(many=True, read_only=True)

    class Meta:
        model = Form
        fields = (
            'id',
            'title',
            'description',
            'group_id',
            'creator_id',
            'status',
            'time_teacher_id',
            'teacher_id',
            'sent_at',
            'created',
            'modified',
            'questions',
            'targets',
        )


class FormSummarySerializer(serializers.ModelSerializer):
    """Serialize a `Form` without its questions, for listings."""
    question_count = serializers.SerializerMethodField()

    def get_question_count(self, obj):
        return obj.questions.count()

    class Meta:
        model = Form
        fields = (
            'id',
            'title',
            'description',
            'group_id',
            'creator_id',
            'status',
            'sent_at',
            'created',
            'question_count',
        )


class ConceptTemplateItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ConceptTemplateItem
        fields = ('text', 'description', 'order_index')


class ConceptTemplateSerializer(serializers.ModelSerializer):
    """
    Serialize a `ConceptTemplate` model, along with its items in order.
    """
    items = ConceptTemplateItemSerializer(many=True, read_only=True)

    class Meta:
        model = ConceptTemplate
        fields = (
            'id',
            'name',
            'group_id',
            'creator_id',
            'concept_count',
            'status',
            'created',
            'items',
        )


class FormResponseSerializer(serializers.ModelSerializer):
    class Meta:
        model = FormResponse
        fields = ('id', 'form', 'student_id', 'answers', 'submitted_at')


class QuestionRequestSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    """
    A question as a client sends it with a new form; ``config`` holds the
    config fields of ``question_type``.
    """
    question_type = serializers.ChoiceField(choices=QUESTION_TYPE)
    question_text = serializers.CharField(required=False, allow_blank=True)
    is_required = serializers.BooleanField(required=False)
    config = serializers.DictField(required=False, allow_null=True, default=dict)

    def validate_config(self, value):
        clashing = sorted(set(value or {}) & set(QUESTION_FIELDS))
        if clashing:
            raise serializers.ValidationError(f"설정에 넣을 수 없는 항목입니다: {', '.join(clashing)}")
        return value or {}


class FormRequestSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    title = serializers.CharField(required=False, allow_blank=True, default="")
    description = serializers.CharField(required=False, allow_blank=True, default="")
    time_teacher_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    teacher_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    draft = serializers.BooleanField(required=False, default=False)
    questions = QuestionRequestSerializer(many=True, required=False, default=list)


class QuestionMoveSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    from_index = serializers.IntegerField()
    to_index = serializers.IntegerField()
