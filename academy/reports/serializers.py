"""
Serializers are created to ensure models do not have to be accessed outside the
scope of the report APIs.
"""


from rest_framework import serializers

from .models import Report, ReportHistory, SupervisionMapping


class ReportSerializer(serializers.ModelSerializer):
    """
    Serialize a `Report` model.
    """
    form_title = serializers.CharField(source='form.title', read_only=True)
    group_id = serializers.CharField(source='form.group_id', read_only=True)
    is_rejected = serializers.ReadOnlyField()

    class Meta:
        model = Report
        fields = (
            'id',
            'form',
            'form_title',
            'group_id',
            'form_response',
            'student_id',
            'student_name',
            'class_name',
            'stage',
            'stage_changed',
            'supervision',
            'time_teacher_id',
            'teacher_id',
            'time_teacher_comment',
            'teacher_comment',
            'student_completed_at',
            'time_teacher_completed_at',
            'teacher_completed_at',
            'rejected_at',
            'rejected_by',
            'rejection_reason',
            'created',
            'modified',

            # Computed
            'is_rejected',
        )


class ReportHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ReportHistory
        fields = ('action', 'performed_by', 'from_stage', 'to_stage', 'details', 'created_at')


class SupervisionMappingSerializer(serializers.ModelSerializer):
    class Meta:
        model = SupervisionMapping
        fields = ('id', 'group_id', 'time_teacher_id', 'teacher_id', 'created')


class StatisticsQuerySerializer(serializers.Serializer):  # pylint: disable=abstract-method
    """Query parameters narrowing the group statistics."""
    form_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    class_name = serializers.CharField(required=False, allow_blank=True, default="")
