# services/learning-service/src/apps/core/services/dependency_graph.py
"""
Dependency Graph

Cycle detection over the prerequisite edges of one course. Edges point from
a module to the modules it requires.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Set

from ..models import Module, ModuleDependency
from .exceptions import CircularPrerequisiteError, InvalidRequestError

logger = logging.getLogger(__name__)


def find_cycle(
    graph: Mapping[str, Iterable[str]],
    candidates: Iterable[str],
    exclude: Optional[str] = None,
) -> bool:
    """
    Return True if giving `exclude` the prerequisites `candidates` closes a cycle.

    Walks depth first from each candidate along the stored edges in `graph`.
    Reaching `exclude` (the module being edited) or a node still on the walk
    stack means a cycle. The walk is iterative so long chains do not hit the
    recursion limit.
    """
    visited: Set[str] = set()
    on_stack: Set[str] = set()

    for start in candidates:
        if exclude is not None and start == exclude:
            return True
        if start in visited:
            continue

        visited.add(start)
        on_stack.add(start)
        stack = [(start, iter(graph.get(start, ())))]

        while stack:
            node, edges = stack[-1]
            advanced = False
            for nxt in edges:
                if exclude is not None and nxt == exclude:
                    return True
                if nxt in on_stack:
                    return True
                if nxt not in visited:
                    visited.add(nxt)
                    on_stack.add(nxt)
                    stack.append((nxt, iter(graph.get(nxt, ()))))
                    advanced = True
                    break
            if not advanced:
                on_stack.discard(node)
                stack.pop()

    return False


class DependencyGraphService:
    """Loads a course's prerequisite graph and validates changes to it."""

    @staticmethod
    def load_graph(course_id: str) -> Dict[str, Set[str]]:
        """Stored prerequisite edges between the course's active modules."""
        through = Module.prerequisites.through
        rows = through.objects.filter(
            from_module__course_id=course_id,
            from_module__is_deleted=False,
            to_module__is_deleted=False,
        ).values_list('from_module_id', 'to_module_id')

        graph: Dict[str, Set[str]] = defaultdict(set)
        for from_id, to_id in rows:
            graph[str(from_id)].add(str(to_id))
        return graph

    @staticmethod
    def has_cycle(
        candidate_prerequisites: Iterable[str],
        course_id: str,
        exclude_module_id: Optional[str] = None,
    ) -> bool:
        """
        Check whether the candidate prerequisites would create a cycle.

        Args:
            candidate_prerequisites: Proposed prerequisite module ids
            course_id: Course whose graph is checked
            exclude_module_id: Module being edited, if it already exists

        Returns:
            True if a cycle would be created
        """
        candidates = [str(c) for c in candidate_prerequisites]
        exclude = str(exclude_module_id) if exclude_module_id else None
        graph = DependencyGraphService.load_graph(course_id)
        return find_cycle(graph, candidates, exclude)

    @staticmethod
    def validate_prerequisites(
        course_id: str,
        prerequisites: Iterable[str],
        dependencies: Iterable[Dict] = (),
        module_id: Optional[str] = None,
    ) -> List[Module]:
        """
        Validate a proposed prerequisite list and its completion bars.

        Args:
            course_id: Course the module belongs to
            prerequisites: Proposed prerequisite module ids
            dependencies: [{'module_id', 'required_completion'}] entries
            module_id: Module being edited (None on create)

        Returns:
            The prerequisite modules

        Raises:
            InvalidRequestError: Unknown prerequisite or bad dependency entry
            CircularPrerequisiteError: Self reference or cycle
        """
        prerequisite_ids = list(dict.fromkeys(str(p) for p in prerequisites))

        if module_id and str(module_id) in prerequisite_ids:
            raise CircularPrerequisiteError(
                module_id=module_id,
                prerequisites=prerequisite_ids,
                message="A module cannot be its own prerequisite"
            )

        modules = list(Module.objects.filter(course_id=course_id, id__in=prerequisite_ids))
        if len(modules) != len(prerequisite_ids):
            raise InvalidRequestError(
                "One or more prerequisites are invalid",
                field='prerequisites',
                details={'prerequisites': prerequisite_ids}
            )

        for entry in dependencies:
            required = str(entry.get('module_id'))
            if required not in prerequisite_ids:
                raise InvalidRequestError(
                    "Dependencies may only refine listed prerequisites",
                    field='dependencies',
                    details={'module_id': required}
                )
            completion = entry.get('required_completion', 100)
            if completion is None or not 0 <= float(completion) <= 100:
                raise InvalidRequestError(
                    "Required completion must be between 0 and 100",
                    field='dependencies',
                    details={'module_id': required, 'required_completion': completion}
                )

        if DependencyGraphService.has_cycle(prerequisite_ids, course_id, module_id):
            logger.info(f"Rejected circular prerequisites for module {module_id} in course {course_id}")
            raise CircularPrerequisiteError(module_id=module_id, prerequisites=prerequisite_ids)

        return modules

    @staticmethod
    def apply_prerequisites(
        module: Module,
        prerequisites: List[Module],
        dependencies: Iterable[Dict] = (),
    ) -> None:
        """Replace a module's prerequisite edges and completion bars."""
        module.prerequisites.set(prerequisites)
        ModuleDependency.objects.filter(module=module).delete()
        ModuleDependency.objects.bulk_create([
            ModuleDependency(
                module=module,
                required_module_id=entry['module_id'],
                required_completion=float(entry.get('required_completion', 100)),
            )
            for entry in dependencies
        ])
