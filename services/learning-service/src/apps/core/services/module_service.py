# services/learning-service/src/apps/core/services/module_service.py
"""
Module Service

Module authoring operations that touch the prerequisite graph or module
ordering. Every prerequisite change is validated against the course graph
before it is written.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from django.db.models import F, Max

from ..models import Course, Lesson, Module, ModuleDependency
from .dependency_graph import DependencyGraphService
from .enrollment_service import EnrollmentService
from .exceptions import InvalidRequestError, NotFoundError
from .media import discard_after_commit
from .unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('title', 'description', 'order', 'is_accessible', 'image_key')


class ModuleService:
    """Service for module authoring."""

    @staticmethod
    def _get_course(course_id: str) -> Course:
        course = Course.objects.filter(id=course_id).first()
        if not course:
            raise NotFoundError('course', course_id)
        return course

    @staticmethod
    def _get_module(course_id: str, module_id: str, lock: bool = False) -> Module:
        queryset = Module.objects.filter(id=module_id, course_id=course_id)
        if lock:
            queryset = queryset.select_for_update()
        module = queryset.first()
        if not module:
            raise NotFoundError('module', module_id)
        return module

    @staticmethod
    def _check_order_free(course_id: str, order: int, module_id: Optional[str] = None) -> None:
        clash = Module.objects.filter(course_id=course_id, order=order)
        if module_id:
            clash = clash.exclude(id=module_id)
        if clash.exists():
            raise InvalidRequestError(
                "A module with this order number already exists",
                field='order',
                details={'order': order}
            )

    @staticmethod
    @unit_of_work
    def create_module(
        course_id: str,
        title: str,
        order: int,
        prerequisites: Iterable[str] = (),
        dependencies: Iterable[Dict[str, Any]] = (),
        **kwargs
    ) -> Module:
        """
        Create a module with validated prerequisites.

        Args:
            course_id: Course ID
            title: Module title
            order: Position in the course, unique among active modules
            prerequisites: Module ids this module requires
            dependencies: [{'module_id', 'required_completion'}] bars
            **kwargs: description, is_accessible, image_key

        Returns:
            Created module
        """
        course = ModuleService._get_course(course_id)
        ModuleService._check_order_free(course.id, order)

        dependencies = list(dependencies)
        required = DependencyGraphService.validate_prerequisites(
            course.id, prerequisites, dependencies
        )

        module = Module.objects.create(
            course=course,
            title=title,
            order=order,
            **{k: v for k, v in kwargs.items() if k in UPDATABLE_FIELDS}
        )
        DependencyGraphService.apply_prerequisites(module, required, dependencies)

        logger.info(f"Created module {module.id} in course {course.id} with {len(required)} prerequisites")
        return module

    @staticmethod
    @unit_of_work
    def update_module(course_id: str, module_id: str, **changes) -> Module:
        """
        Update module fields and, when given, its prerequisites.

        Replacing `image_key` removes the previous file after commit.

        Returns:
            Updated module
        """
        module = ModuleService._get_module(course_id, module_id, lock=True)

        if 'order' in changes and changes['order'] != module.order:
            ModuleService._check_order_free(course_id, changes['order'], module.id)

        if 'prerequisites' in changes or 'dependencies' in changes:
            ModuleService._replace_prerequisites(
                module,
                changes.get('prerequisites'),
                changes.get('dependencies'),
            )

        old_image = module.image_key
        update_fields = []
        for field in UPDATABLE_FIELDS:
            if field in changes:
                setattr(module, field, changes[field])
                update_fields.append(field)

        if update_fields:
            module.save(update_fields=update_fields + ['updated_at'])

        if 'image_key' in changes and old_image and old_image != module.image_key:
            discard_after_commit(old_image)

        logger.info(f"Updated module {module.id}: {', '.join(update_fields) or 'prerequisites'}")
        return module

    @staticmethod
    def _replace_prerequisites(
        module: Module,
        prerequisites: Optional[Iterable[str]],
        dependencies: Optional[Iterable[Dict[str, Any]]],
    ) -> None:
        if prerequisites is None:
            prerequisites = [str(p) for p in module.prerequisites.values_list('id', flat=True)]
        if dependencies is None:
            dependencies = [
                {'module_id': str(d.required_module_id), 'required_completion': d.required_completion}
                for d in module.dependencies.all()
                if str(d.required_module_id) in {str(p) for p in prerequisites}
            ]
        dependencies = list(dependencies)

        required = DependencyGraphService.validate_prerequisites(
            module.course_id, prerequisites, dependencies, module_id=module.id
        )
        DependencyGraphService.apply_prerequisites(module, required, dependencies)

    @staticmethod
    @unit_of_work
    def set_prerequisites(
        course_id: str,
        module_id: str,
        prerequisites: Iterable[str],
        dependencies: Iterable[Dict[str, Any]] = (),
    ) -> Module:
        """
        Replace a module's prerequisites and completion bars.

        Raises:
            InvalidRequestError: Unknown prerequisite or bad bar
            CircularPrerequisiteError: The change would create a cycle
        """
        module = ModuleService._get_module(course_id, module_id, lock=True)
        ModuleService._replace_prerequisites(module, list(prerequisites), list(dependencies))
        logger.info(f"Replaced prerequisites of module {module.id}")
        return module

    @staticmethod
    @unit_of_work
    def delete_module(course_id: str, module_id: str, deleted_by: str = None) -> Dict[str, Any]:
        """
        Delete a module.

        Modules that learners hold access to are soft deleted together with
        their lessons; others are removed and later modules move up one
        place. Either way the module disappears from every prerequisite
        list.

        Returns:
            Dict with module_id and soft_deleted flag
        """
        module = ModuleService._get_module(course_id, module_id, lock=True)

        module.required_by.clear()
        ModuleDependency.objects.filter(required_module=module).delete()

        soft = EnrollmentService.has_learners(module)
        if soft:
            for lesson in Lesson.objects.filter(module=module):
                lesson.soft_delete(deleted_by=deleted_by)
            module.soft_delete(deleted_by=deleted_by)
        else:
            order = module.order
            module.delete()
            for later in Module.objects.filter(course_id=course_id, order__gt=order).order_by('order'):
                Module.objects.filter(pk=later.pk).update(order=F('order') - 1)
            discard_after_commit(module.image_key)

        logger.info(f"Deleted module {module_id} from course {course_id} (soft={soft})")
        return {'module_id': str(module_id), 'soft_deleted': soft}

    @staticmethod
    @unit_of_work
    def reorder_modules(course_id: str, orders: List[Dict[str, Any]]) -> List[Module]:
        """
        Assign new positions to modules.

        Args:
            course_id: Course ID
            orders: [{'module_id', 'order'}] entries

        Returns:
            Modules of the course in their new order
        """
        ModuleService._get_course(course_id)

        new_orders = [int(entry['order']) for entry in orders]
        if len(new_orders) != len(set(new_orders)):
            raise InvalidRequestError("Duplicate order numbers are not allowed", field='orders')

        module_ids = [str(entry['module_id']) for entry in orders]
        modules = {
            str(m.id): m
            for m in Module.objects.select_for_update().filter(course_id=course_id, id__in=module_ids)
        }
        missing = [m for m in module_ids if m not in modules]
        if missing:
            raise NotFoundError('module', missing[0])

        untouched = Module.objects.filter(course_id=course_id).exclude(id__in=module_ids)
        if untouched.filter(order__in=new_orders).exists():
            raise InvalidRequestError(
                "Order numbers collide with modules not being reordered",
                field='orders'
            )

        # Park on free positions first so the unique order constraint holds
        top = Module.objects.include_deleted().filter(course_id=course_id).aggregate(
            top=Max('order')
        )['top'] or 0
        parking = max(top, max(new_orders, default=0)) + 1
        for offset, module_id in enumerate(module_ids):
            Module.objects.filter(pk=module_id).update(order=parking + offset)
        for entry in orders:
            Module.objects.filter(pk=entry['module_id']).update(order=int(entry['order']))

        logger.info(f"Reordered {len(orders)} modules in course {course_id}")
        return list(Module.objects.filter(course_id=course_id).order_by('order'))
