# services/learning-service/src/apps/core/tests/test_module_service.py
"""
Module Service Tests

Tests for module authoring, deletion and reordering.
"""

import pytest
from unittest.mock import patch
from uuid import uuid4

from apps.core.models import Enrollment, EnrollmentType, Lesson, Module
from apps.core.services import InvalidRequestError, ModuleService, NotFoundError


@pytest.mark.django_db
class TestCreateModule:
    """Tests for create_module."""

    def test_create(self, course):
        module = ModuleService.create_module(course.id, 'Cells', 1, description='Cell structure')

        assert module.course_id == course.id
        assert module.description == 'Cell structure'

    def test_duplicate_order(self, course, module):
        with pytest.raises(InvalidRequestError) as exc_info:
            ModuleService.create_module(course.id, 'Duplicate', module.order)

        assert exc_info.value.message == "A module with this order number already exists"

    def test_unknown_course(self):
        with pytest.raises(NotFoundError):
            ModuleService.create_module(uuid4(), 'Orphan', 1)


@pytest.mark.django_db
class TestUpdateModule:
    """Tests for update_module."""

    def test_update_fields(self, course, module):
        updated = ModuleService.update_module(course.id, module.id, title='Renamed', is_accessible=False)

        assert updated.title == 'Renamed'
        assert updated.is_accessible is False

    def test_order_collision(self, course, make_module):
        make_module(1)
        second = make_module(2)

        with pytest.raises(InvalidRequestError):
            ModuleService.update_module(course.id, second.id, order=1)

    def test_replace_prerequisites(self, course, make_module):
        first = make_module(1)
        second = make_module(2)
        third = make_module(3)
        third.prerequisites.add(first)

        ModuleService.update_module(course.id, third.id, prerequisites=[str(second.id)])

        assert list(third.prerequisites.all()) == [second]

    def test_replacing_image_discards_old_file(self, course, make_module, django_capture_on_commit_callbacks):
        module = make_module(1, image_key='modules/old.png')

        with patch('apps.core.services.media.default_storage') as storage:
            with django_capture_on_commit_callbacks(execute=True):
                ModuleService.update_module(course.id, module.id, image_key='modules/new.png')

        storage.delete.assert_called_once_with('modules/old.png')


@pytest.mark.django_db
class TestDeleteModule:
    """Tests for delete_module."""

    def test_hard_delete_shifts_later_modules(self, course, make_module):
        first = make_module(1)
        second = make_module(2)
        third = make_module(3)

        result = ModuleService.delete_module(course.id, first.id)

        assert result['soft_deleted'] is False
        assert not Module.objects.include_deleted().filter(pk=first.pk).exists()
        assert [m.order for m in Module.objects.filter(pk__in=[second.pk, third.pk]).order_by('order')] == [1, 2]

    def test_soft_delete_with_learners(self, course, module, lesson, learner_id):
        Enrollment.objects.create(user_id=learner_id, course=course, enrollment_type=EnrollmentType.FULL)

        result = ModuleService.delete_module(course.id, module.id, deleted_by=str(uuid4()))

        assert result['soft_deleted'] is True
        assert not Module.objects.filter(pk=module.pk).exists()
        assert Module.objects.include_deleted().get(pk=module.pk).is_deleted is True
        assert Lesson.objects.include_deleted().get(pk=lesson.pk).is_deleted is True

    def test_deleted_module_leaves_prerequisite_lists(self, course, make_module):
        first = make_module(1)
        second = make_module(2)
        second.prerequisites.add(first)

        ModuleService.delete_module(course.id, first.id)

        assert second.prerequisites.count() == 0

    def test_order_reusable_after_soft_delete(self, course, module, learner_id):
        Enrollment.objects.create(user_id=learner_id, course=course, enrollment_type=EnrollmentType.FULL)
        ModuleService.delete_module(course.id, module.id)

        replacement = ModuleService.create_module(course.id, 'Replacement', module.order)

        assert replacement.order == module.order


@pytest.mark.django_db
class TestReorderModules:
    """Tests for reorder_modules."""

    def test_swap(self, course, make_module):
        first = make_module(1)
        second = make_module(2)

        modules = ModuleService.reorder_modules(course.id, [
            {'module_id': first.id, 'order': 2},
            {'module_id': second.id, 'order': 1},
        ])

        assert [m.id for m in modules] == [second.id, first.id]

    def test_duplicate_orders_rejected(self, course, make_module):
        first = make_module(1)
        second = make_module(2)

        with pytest.raises(InvalidRequestError):
            ModuleService.reorder_modules(course.id, [
                {'module_id': first.id, 'order': 3},
                {'module_id': second.id, 'order': 3},
            ])

    def test_collision_with_untouched_module(self, course, make_module):
        first = make_module(1)
        make_module(2)

        with pytest.raises(InvalidRequestError):
            ModuleService.reorder_modules(course.id, [{'module_id': first.id, 'order': 2}])

    def test_unknown_module(self, course, module):
        with pytest.raises(NotFoundError):
            ModuleService.reorder_modules(course.id, [{'module_id': uuid4(), 'order': 5}])
