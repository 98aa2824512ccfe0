# services/learning-service/src/apps/core/api/serializers/course_serializers.py
"""
Course Serializers

Serializers for module authoring endpoints.
"""

from rest_framework import serializers

from ...models import Module


class ModuleSerializer(serializers.ModelSerializer):
    """Serializer for module responses."""

    course_id = serializers.UUIDField(read_only=True)
    prerequisites = serializers.SerializerMethodField()
    dependencies = serializers.SerializerMethodField()

    class Meta:
        model = Module
        fields = [
            'id',
            'course_id',
            'title',
            'description',
            'order',
            'is_accessible',
            'image_key',
            'prerequisites',
            'dependencies',
            'created_at',
            'updated_at',
        ]

    def get_prerequisites(self, obj):
        return [str(p.id) for p in obj.prerequisites.all().order_by('order')]

    def get_dependencies(self, obj):
        return [
            {'module_id': module_id, 'required_completion': required}
            for module_id, required in obj.get_required_completions().items()
        ]


class DependencySerializer(serializers.Serializer):
    """Completion bar for one prerequisite."""

    module_id = serializers.UUIDField()
    required_completion = serializers.FloatField()


class ModuleCreateSerializer(serializers.Serializer):
    """Serializer for creating modules."""

    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    order = serializers.IntegerField(min_value=0)
    is_accessible = serializers.BooleanField(required=False, default=True)
    image_key = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    prerequisites = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        default=list
    )
    dependencies = DependencySerializer(many=True, required=False, default=list)


class ModuleUpdateSerializer(serializers.Serializer):
    """Serializer for partial module updates."""

    title = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    order = serializers.IntegerField(min_value=0, required=False)
    is_accessible = serializers.BooleanField(required=False)
    image_key = serializers.CharField(max_length=500, required=False, allow_blank=True)
    prerequisites = serializers.ListField(child=serializers.UUIDField(), required=False)
    dependencies = DependencySerializer(many=True, required=False)


class PrerequisitesSerializer(serializers.Serializer):
    """Serializer for replacing a module's prerequisites."""

    prerequisites = serializers.ListField(child=serializers.UUIDField(), allow_empty=True)
    dependencies = DependencySerializer(many=True, required=False, default=list)


class ModuleOrderSerializer(serializers.Serializer):
    module_id = serializers.UUIDField()
    order = serializers.IntegerField(min_value=0)


class ModuleReorderSerializer(serializers.Serializer):
    """Serializer for reordering modules."""

    orders = ModuleOrderSerializer(many=True, allow_empty=False)


class LessonTimeSerializer(serializers.Serializer):
    """Seconds spent on a lesson since the last report."""

    seconds = serializers.IntegerField(min_value=0)
