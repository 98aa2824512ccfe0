# services/learning-service/src/apps/core/api/serializers/enrollment_serializers.py
"""
Enrollment Serializers

Serializers for enrollment-related API endpoints.
"""

from rest_framework import serializers

from ...models import Enrollment, EnrollmentType


class EnrollmentSerializer(serializers.ModelSerializer):
    """Serializer for enrollment responses."""

    course_id = serializers.UUIDField(read_only=True)
    course_title = serializers.CharField(source='course.title', read_only=True)
    module_ids = serializers.SerializerMethodField()

    class Meta:
        model = Enrollment
        fields = [
            'id',
            'user_id',
            'course_id',
            'course_title',
            'enrollment_type',
            'module_ids',
            'enrolled_at',
        ]

    def get_module_ids(self, obj):
        return [str(m.module_id) for m in obj.enrolled_modules.all()]


class EnrollmentGrantSerializer(serializers.Serializer):
    """Serializer for granting access after a purchase."""

    user_id = serializers.UUIDField()
    course_id = serializers.UUIDField()
    enrollment_type = serializers.ChoiceField(choices=EnrollmentType.choices)
    module_ids = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        default=list
    )

    def validate(self, data):
        if data['enrollment_type'] == EnrollmentType.MODULE and not data['module_ids']:
            raise serializers.ValidationError({
                'module_ids': 'At least one module is required for a module enrollment'
            })
        return data


class EnrollmentRevokeSerializer(serializers.Serializer):
    """Serializer for revoking access after a refund."""

    user_id = serializers.UUIDField()
    course_id = serializers.UUIDField()
    module_ids = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        allow_empty=False
    )
