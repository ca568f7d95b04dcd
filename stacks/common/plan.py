"""
Provisioning plan compiled from a synthesized CloudFormation template.

The plan is the dependency graph between logical resources. Edges come from
``Ref``, ``Fn::GetAtt``, ``Fn::Sub`` references and ``DependsOn``. Resources
in the same wave have no dependency on each other and may be realized in any
order or in parallel by the apply engine.

``apply_plan`` walks the waves against an ``ApplyEngine`` and stops at the
first failure, leaving everything realized so far in place. Passing the
realized IDs of a previous run makes re-applying after an abort safe.
"""

import logging
import re
from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, Set, Tuple

from .exceptions import ResolutionError, ValidationError

logger = logging.getLogger(__name__)

_SUB_REFERENCE = re.compile(r'\$\{([A-Za-z0-9]+)(?:\.[A-Za-z0-9.]+)?\}')


@dataclass(frozen=True)
class PlanNode:
    """One logical resource of the plan."""
    logical_id: str
    resource_type: str
    properties: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    depends_on: Tuple[str, ...] = ()


@dataclass
class ApplyReport:
    """
    Outcome of one apply run.

    Attributes:
        realized: Logical IDs realized, in realization order (includes skipped
            IDs that were already realized before this run)
        failed: Logical ID of the resource that failed, if any
        error: The error reported for the failed resource
    """
    realized: List[str] = field(default_factory=list)
    failed: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.failed is None


class ApplyEngine(Protocol):
    """The external provisioning engine. Idempotent per resource."""

    def realize(self, node: PlanNode) -> None:
        """Create or update the resource. Raise ResolutionError on failure."""
        ...


class ResourcePlan:
    """Dependency graph over the resources of one stack template."""

    def __init__(self, nodes: Dict[str, PlanNode]) -> None:
        self.nodes = nodes
        self._validate()

    @classmethod
    def from_template(cls, template: Dict[str, Any]) -> "ResourcePlan":
        """
        Compile a plan from a CloudFormation template dictionary.

        References to parameters, pseudo parameters or conditions are not
        resources and are ignored.

        Args:
            template: Template as returned by ``Template.to_json()``
        """
        resources = template.get("Resources") or {}
        nodes: Dict[str, PlanNode] = {}

        for logical_id, resource in resources.items():
            references = _collect_references(resource.get("Properties") or {})
            references.update(_depends_on(resource))
            # Condition/metadata only references, and self references, are not edges
            dependencies = sorted(ref for ref in references if ref in resources and ref != logical_id)
            nodes[logical_id] = PlanNode(
                logical_id=logical_id,
                resource_type=resource.get("Type", "Unknown"),
                properties=resource.get("Properties") or {},
                depends_on=tuple(dependencies),
            )

        logger.debug(f"Compiled plan with {len(nodes)} resources")
        return cls(nodes)

    def _sorter(self) -> TopologicalSorter:
        sorter = TopologicalSorter()
        for logical_id in sorted(self.nodes):
            sorter.add(logical_id, *self.nodes[logical_id].depends_on)
        return sorter

    def _validate(self) -> None:
        for node in self.nodes.values():
            missing = [dep for dep in node.depends_on if dep not in self.nodes]
            if missing:
                raise ValidationError(
                    f"Resource {node.logical_id} depends on unknown resources: {missing}",
                    parameter_name="depends_on",
                    provided_value=", ".join(missing)
                )
        try:
            self._sorter().prepare()
        except CycleError as e:
            raise ValidationError(
                f"Dependency cycle between resources: {e.args[1]}",
                parameter_name="plan",
                provided_value=str(e.args[1])
            )

    def waves(self) -> Iterator[List[str]]:
        """Yield groups of logical IDs whose dependencies are all realized."""
        sorter = self._sorter()
        sorter.prepare()
        while sorter.is_active():
            ready = sorted(sorter.get_ready())
            yield ready
            sorter.done(*ready)

    def order(self) -> List[str]:
        """Deterministic topological order of all resources."""
        return [logical_id for wave in self.waves() for logical_id in wave]

    def of_type(self, resource_type: str) -> List[PlanNode]:
        return [node for node in self.nodes.values() if node.resource_type == resource_type]

    def dependencies_of(self, logical_id: str) -> Set[str]:
        """All transitive dependencies of a resource."""
        seen: Set[str] = set()
        pending = list(self.nodes[logical_id].depends_on)
        while pending:
            current = pending.pop()
            if current not in seen:
                seen.add(current)
                pending.extend(self.nodes[current].depends_on)
        return seen

    def depends_on(self, logical_id: str, dependency_id: str) -> bool:
        return dependency_id in self.dependencies_of(logical_id)

    def __len__(self) -> int:
        return len(self.nodes)


def apply_plan(plan: ResourcePlan,
               engine: ApplyEngine,
               already_realized: Iterable[str] = ()) -> ApplyReport:
    """
    Realize every resource of the plan in dependency order.

    Resources in ``already_realized`` are skipped. The walk halts at the first
    resource the engine fails to realize; resources realized before it are
    left intact and listed in the report.

    Args:
        plan: Compiled resource plan
        engine: The apply engine
        already_realized: Logical IDs realized by an earlier, aborted run

    Returns:
        ApplyReport describing what was realized and what failed
    """
    report = ApplyReport()
    done = set(already_realized)

    for wave in plan.waves():
        for logical_id in wave:
            if logical_id in done:
                report.realized.append(logical_id)
                continue

            node = plan.nodes[logical_id]
            try:
                engine.realize(node)
            except ResolutionError as e:
                logger.warning(f"Apply halted at {logical_id} ({node.resource_type}): {e.message}")
                report.failed = logical_id
                report.error = e
                return report

            done.add(logical_id)
            report.realized.append(logical_id)

    logger.info(f"Applied {len(report.realized)} resources")
    return report


def _collect_references(value: Any) -> Set[str]:
    """Collect logical IDs referenced anywhere inside a property value."""
    found: Set[str] = set()

    if isinstance(value, dict):
        for key, inner in value.items():
            if key == "Ref" and isinstance(inner, str):
                found.add(inner)
            elif key == "Fn::GetAtt":
                if isinstance(inner, list) and inner:
                    found.add(inner[0])
                elif isinstance(inner, str):
                    found.add(inner.split(".")[0])
            elif key == "Fn::Sub":
                template = inner[0] if isinstance(inner, list) else inner
                if isinstance(template, str):
                    found.update(_SUB_REFERENCE.findall(template))
                if isinstance(inner, list) and len(inner) > 1:
                    found.update(_collect_references(inner[1]))
            else:
                found.update(_collect_references(inner))
    elif isinstance(value, list):
        for item in value:
            found.update(_collect_references(item))

    return found


def _depends_on(resource: Dict[str, Any]) -> Set[str]:
    depends = resource.get("DependsOn") or []
    if isinstance(depends, str):
        return {depends}
    return set(depends)
