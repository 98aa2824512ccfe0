# services/learning-service/src/apps/core/tests/test_dependency_graph.py
"""
Dependency Graph Tests

Tests for prerequisite cycle detection and validation.
"""

import pytest
from uuid import uuid4

from apps.core.models import Module, ModuleDependency
from apps.core.services import (
    CircularPrerequisiteError,
    DependencyGraphService,
    InvalidRequestError,
    ModuleService,
    find_cycle,
)


class TestFindCycle:
    """Tests for the graph walk."""

    def test_empty_candidates(self):
        assert find_cycle({'a': {'b'}}, [], exclude='a') is False

    def test_acyclic_chain(self):
        graph = {'b': {'a'}, 'c': {'b'}}
        assert find_cycle(graph, ['c'], exclude='d') is False

    def test_self_reference(self):
        assert find_cycle({}, ['x'], exclude='x') is True

    def test_reaches_edited_module(self):
        # x requires nothing yet; a -> b -> x would close a loop through x
        graph = {'a': {'b'}, 'b': {'x'}}
        assert find_cycle(graph, ['a'], exclude='x') is True

    def test_stored_cycle_is_detected(self):
        graph = {'a': {'b'}, 'b': {'a'}}
        assert find_cycle(graph, ['a'], exclude=None) is True

    def test_diamond_is_not_a_cycle(self):
        graph = {'top': {'left', 'right'}, 'left': {'base'}, 'right': {'base'}}
        assert find_cycle(graph, ['top', 'left'], exclude='new') is False

    def test_long_chain_does_not_recurse(self):
        graph = {str(i): {str(i - 1)} for i in range(1, 5000)}
        assert find_cycle(graph, ['4999'], exclude='new') is False
        assert find_cycle(graph, ['4999'], exclude='0') is True


@pytest.mark.django_db
class TestDependencyGraphService:
    """Tests for DependencyGraphService."""

    def test_load_graph_skips_deleted_modules(self, course, make_module):
        first = make_module(1)
        second = make_module(2)
        third = make_module(3)
        second.prerequisites.add(first)
        third.prerequisites.add(second)

        second.soft_delete()

        graph = DependencyGraphService.load_graph(course.id)
        assert dict(graph) == {}

    def test_has_cycle_for_new_module(self, course, make_module):
        first = make_module(1)
        second = make_module(2)
        second.prerequisites.add(first)

        assert DependencyGraphService.has_cycle([second.id], course.id) is False

    def test_has_cycle_for_edited_module(self, course, make_module):
        first = make_module(1)
        second = make_module(2)
        second.prerequisites.add(first)

        assert DependencyGraphService.has_cycle([second.id], course.id, first.id) is True

    def test_validate_rejects_self_reference(self, course, module):
        with pytest.raises(CircularPrerequisiteError) as exc_info:
            DependencyGraphService.validate_prerequisites(
                course.id, [module.id], module_id=module.id
            )

        assert exc_info.value.message == "A module cannot be its own prerequisite"

    def test_validate_rejects_unknown_prerequisite(self, course, module):
        with pytest.raises(InvalidRequestError) as exc_info:
            DependencyGraphService.validate_prerequisites(course.id, [module.id, uuid4()])

        assert exc_info.value.message == "One or more prerequisites are invalid"

    def test_validate_rejects_module_of_other_course(self, course, module):
        from apps.core.models import Course

        other_course = Course.objects.create(title='Other', created_by=uuid4())
        foreign = Module.objects.create(course=other_course, title='Foreign', order=1)

        with pytest.raises(InvalidRequestError):
            DependencyGraphService.validate_prerequisites(course.id, [foreign.id])

    def test_validate_rejects_bar_for_unlisted_module(self, course, make_module):
        first = make_module(1)
        second = make_module(2)

        with pytest.raises(InvalidRequestError):
            DependencyGraphService.validate_prerequisites(
                course.id,
                [first.id],
                [{'module_id': str(second.id), 'required_completion': 50}],
            )

    def test_validate_rejects_bar_out_of_range(self, course, module):
        with pytest.raises(InvalidRequestError):
            DependencyGraphService.validate_prerequisites(
                course.id,
                [module.id],
                [{'module_id': str(module.id), 'required_completion': 120}],
            )

    def test_validate_returns_modules(self, course, make_module):
        first = make_module(1)
        second = make_module(2)

        modules = DependencyGraphService.validate_prerequisites(course.id, [first.id, second.id, first.id])

        assert {m.id for m in modules} == {first.id, second.id}


@pytest.mark.django_db
class TestPrerequisiteCycles:
    """Cycles rejected through module authoring."""

    def test_three_module_cycle_rejected(self, course, make_module):
        a = make_module(1, 'A')
        b = ModuleService.create_module(course.id, 'B', 2, prerequisites=[a.id])
        c = ModuleService.create_module(course.id, 'C', 3, prerequisites=[b.id])

        with pytest.raises(CircularPrerequisiteError):
            ModuleService.set_prerequisites(course.id, a.id, [c.id])

        a.refresh_from_db()
        assert a.prerequisites.count() == 0

    def test_completion_bar_is_stored(self, course, make_module):
        a = make_module(1, 'A')
        b = ModuleService.create_module(
            course.id,
            'B',
            2,
            prerequisites=[a.id],
            dependencies=[{'module_id': str(a.id), 'required_completion': 60}],
        )

        assert b.get_required_completion(a.id) == 60.0
        assert ModuleDependency.objects.filter(module=b, required_module=a).exists()

    def test_prerequisite_without_bar_requires_full_completion(self, course, make_module):
        a = make_module(1, 'A')
        b = ModuleService.create_module(course.id, 'B', 2, prerequisites=[a.id])

        assert b.get_required_completion(a.id) == 100.0
