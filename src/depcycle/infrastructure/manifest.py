"""Wiring manifest — YAML description of components and how they are wired.

The manifest is the reference component model provider and, through
:class:`ManifestSink`, the reference mutation sink. A minimal document::

    components:
      - name: OrderService
        dependencies:
          - target: PaymentService
            kind: field
            field: paymentService
            operations: [charge]
        operations:
          placeOrder:
            fields: [paymentService]
            calls: [validate]
          validate: {}
      - name: PaymentService
        dependencies:
          - {target: OrderService, kind: constructor, field: orderService}

Dependencies marked ``lazy`` are resolved on first use, so they are left
out of the initialization-time graph.
"""

from __future__ import annotations

import logging
from io import StringIO
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from depcycle.domain.errors import ManifestError
from depcycle.domain.graph import DependencyGraph, Edge
from depcycle.domain.ports import MutationRequest
from depcycle.domain.types import InjectionKind, MutationKind

logger = logging.getLogger(__name__)


def _new_yaml() -> YAML:
    """Fresh YAML instance per call; ruamel's YAML object keeps emitter state."""
    y = YAML()
    y.default_flow_style = False
    y.indent(mapping=2, sequence=4, offset=2)
    return y


def _lower_first(name: str) -> str:
    simple = name.rsplit(".", 1)[-1]
    return simple[:1].lower() + simple[1:]


def mutator_name(dependency: DependencySpec) -> str:
    """Setter name a converted dependency would expose (``setPaymentService``)."""
    base = dependency.field or _lower_first(dependency.target)
    return "set" + base[:1].upper() + base[1:]


# ---------------------------------------------------------------------------
# Document models
# ---------------------------------------------------------------------------


class DependencySpec(BaseModel):
    """One declared dependency of a component."""

    target: str
    kind: InjectionKind = InjectionKind.FIELD
    field: str | None = None
    operations: list[str] = Field(default_factory=list)
    lazy: bool = False
    declared_type: str | None = None

    @property
    def effective_type(self) -> str:
        return self.declared_type or self.target


class OperationSpec(BaseModel):
    """An operation (method) of a component and what its body touches."""

    calls: list[str] = Field(default_factory=list)
    fields: list[str] = Field(default_factory=list)
    uses: list[str] = Field(default_factory=list)


class ComponentSpec(BaseModel):
    """One component definition."""

    name: str
    abstract: bool = False
    proxyable: bool = True
    implements: list[str] = Field(default_factory=list)
    mutators: list[str] = Field(default_factory=list)
    dependencies: list[DependencySpec] = Field(default_factory=list)
    operations: dict[str, OperationSpec] = Field(default_factory=dict)

    def find_dependency(self, target: str, kind: InjectionKind) -> DependencySpec | None:
        for dep in self.dependencies:
            if dep.target == target and dep.kind == kind:
                return dep
        return None


class WiringManifest(BaseModel):
    """The component model: definitions plus the provider queries over them."""

    components: list[ComponentSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_names(self) -> WiringManifest:
        seen: set[str] = set()
        for comp in self.components:
            if comp.name in seen:
                msg = f"Duplicate component definition: {comp.name}"
                raise ValueError(msg)
            seen.add(comp.name)
        return self

    # ------------------------------------------------------------------
    # Loading and saving
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WiringManifest:
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ManifestError(f"Invalid manifest: {exc}") from exc

    @classmethod
    def load(cls, path: Path) -> WiringManifest:
        """Read and validate a YAML manifest from *path*."""
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ManifestError(f"Cannot read manifest {path}: {exc}") from exc
        try:
            data = YAML(typ="safe").load(raw)
        except YAMLError as exc:
            raise ManifestError(f"Invalid YAML in {path}: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ManifestError(f"Manifest {path} must be a mapping")
        return cls.from_dict(data)

    def dump(self) -> str:
        """Render the manifest as YAML, omitting defaulted keys."""
        buf = StringIO()
        _new_yaml().dump(self.model_dump(mode="json", exclude_defaults=True), buf)
        return buf.getvalue()

    def save(self, path: Path) -> None:
        path.write_text(self.dump(), encoding="utf-8")

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, name: str) -> ComponentSpec | None:
        for comp in self.components:
            if comp.name == name:
                return comp
        return None

    def dependency_for(self, edge: Edge) -> DependencySpec | None:
        comp = self.get(edge.source)
        if comp is None:
            return None
        return comp.find_dependency(edge.target, edge.kind)

    # ------------------------------------------------------------------
    # ComponentModel protocol
    # ------------------------------------------------------------------

    def build_graph(self) -> DependencyGraph:
        """Build the initialization-time graph; lazy dependencies are left out.

        Raises:
            UnknownNodeError: If a dependency targets an undefined component.
        """
        graph = DependencyGraph()
        for comp in self.components:
            graph.add_node(comp.name)
        for comp in self.components:
            for dep in comp.dependencies:
                if dep.lazy:
                    continue
                graph.add_edge(Edge(comp.name, dep.target, dep.kind, origin=dep.field))
        logger.debug("Built graph from manifest: %r", graph)
        return graph

    def component_exists(self, name: str) -> bool:
        return self.get(name) is not None

    def is_deferrable(self, edge: Edge) -> bool:
        dep = self.dependency_for(edge)
        declared = self.get(dep.effective_type if dep else edge.target)
        if declared is None:
            return False
        return declared.abstract or declared.proxyable

    def is_abstract(self, edge: Edge) -> bool:
        dep = self.dependency_for(edge)
        declared = self.get(dep.effective_type if dep else edge.target)
        return declared is not None and declared.abstract

    def has_conflicting_mutator(self, edge: Edge) -> bool:
        """Whether converting *edge* would clash with an existing setter or mutator."""
        comp = self.get(edge.source)
        dep = self.dependency_for(edge)
        if comp is None or dep is None:
            return False
        if comp.find_dependency(edge.target, InjectionKind.SETTER) is not None:
            return True
        return mutator_name(dep) in comp.mutators

    def invoked_operations(self, edge: Edge) -> frozenset[str]:
        dep = self.dependency_for(edge)
        return frozenset(dep.operations) if dep else frozenset()

    def operations_using(self, component: str, dependency: str) -> frozenset[str]:
        comp = self.get(component)
        if comp is None:
            return frozenset()
        handles = {d.field for d in comp.dependencies if d.target == dependency and d.field}
        return frozenset(
            name
            for name, op in comp.operations.items()
            if dependency in op.uses or handles.intersection(op.fields)
        )

    def local_calls(self, component: str, operation: str) -> frozenset[str]:
        comp = self.get(component)
        if comp is None or operation not in comp.operations:
            return frozenset()
        return frozenset(c for c in comp.operations[operation].calls if c in comp.operations)

    def fields_used(self, component: str, operation: str) -> frozenset[str]:
        comp = self.get(component)
        if comp is None or operation not in comp.operations:
            return frozenset()
        return frozenset(comp.operations[operation].fields)


# ---------------------------------------------------------------------------
# Mutation sink
# ---------------------------------------------------------------------------


class ManifestSink:
    """Realizes mutation requests on an in-memory :class:`WiringManifest`.

    Every handler validates its preconditions before touching the
    document, so a rejected request leaves the manifest unchanged.
    """

    def __init__(self, manifest: WiringManifest) -> None:
        self._manifest = manifest
        self.applied: list[MutationRequest] = []

    def submit(self, request: MutationRequest) -> bool:
        match request.kind:
            case MutationKind.DEFER:
                ok = self._defer(request)
            case MutationKind.CONVERT:
                ok = self._convert(request)
            case MutationKind.EXTRACT_INTERFACE:
                ok = self._extract_interface(request)
            case MutationKind.EXTRACT_MEDIATOR:
                ok = self._extract_mediator(request)
        if ok:
            self.applied.append(request)
        else:
            logger.debug("Rejected %s on %s", request.kind, request.component)
        return ok

    def _defer(self, request: MutationRequest) -> bool:
        if request.edge is None:
            return False
        dep = self._manifest.dependency_for(request.edge)
        if dep is None or dep.kind not in (InjectionKind.FIELD, InjectionKind.SETTER):
            return False
        dep.lazy = True
        return True

    def _convert(self, request: MutationRequest) -> bool:
        edge = request.edge
        if edge is None:
            return False
        comp = self._manifest.get(edge.source)
        dep = self._manifest.dependency_for(edge)
        if comp is None or dep is None or dep.kind is not InjectionKind.CONSTRUCTOR:
            return False
        if comp.find_dependency(edge.target, InjectionKind.SETTER) is not None:
            return False
        setter = mutator_name(dep)
        if setter in comp.mutators:
            return False
        dep.kind = InjectionKind.SETTER
        comp.mutators.append(setter)
        return True

    def _extract_interface(self, request: MutationRequest) -> bool:
        edge = request.edge
        interface = request.detail.get("interface")
        if edge is None or not interface or self._manifest.get(interface) is not None:
            return False
        target = self._manifest.get(edge.target)
        dep = self._manifest.dependency_for(edge)
        if target is None or dep is None:
            return False
        operations = list(request.detail.get("operations", []))
        self._manifest.components.append(
            ComponentSpec(
                name=interface,
                abstract=True,
                operations={op: OperationSpec() for op in operations},
            )
        )
        target.implements.append(interface)
        dep.declared_type = interface
        return True

    def _extract_mediator(self, request: MutationRequest) -> bool:
        mediator_name = request.component
        hoisted: list[dict[str, Any]] = list(request.detail.get("hoisted", []))
        if not hoisted or self._manifest.get(mediator_name) is not None:
            return False
        members = {item["component"]: self._manifest.get(item["component"]) for item in hoisted}
        if any(comp is None for comp in members.values()):
            return False
        names = [op for item in hoisted for op in item["operations"]]
        if len(names) != len(set(names)):
            return False

        mediator = ComponentSpec(name=mediator_name)
        mediator_field = _lower_first(mediator_name)

        for item in hoisted:
            comp = members[item["component"]]
            assert comp is not None
            dependency = item["dependency"]

            for op_name in item["operations"]:
                op = comp.operations.pop(op_name, None)
                if op is not None:
                    mediator.operations[op_name] = op

            # The member stops holding the dependency directly ...
            comp.dependencies = [d for d in comp.dependencies if d.target != dependency]
            # ... and reaches the hoisted operations through the mediator.
            if comp.find_dependency(mediator_name, InjectionKind.FIELD) is None:
                comp.dependencies.append(
                    DependencySpec(target=mediator_name, kind=InjectionKind.FIELD, field=mediator_field)
                )

            for reference in (item["component"], dependency):
                if mediator.find_dependency(reference, InjectionKind.FIELD) is None:
                    mediator.dependencies.append(
                        DependencySpec(
                            target=reference,
                            kind=InjectionKind.FIELD,
                            field=_lower_first(reference),
                            lazy=True,
                        )
                    )

        self._manifest.components.append(mediator)
        return True
