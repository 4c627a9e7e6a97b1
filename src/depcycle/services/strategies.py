"""Resolution strategies — four ways to eliminate one dependency edge.

Strategies never discover or re-check cycles. Each one inspects a single
edge (and, for mediator extraction, its enclosing cycle), decides whether
its technique applies, and asks the mutation sink to realize the change.

INVARIANT: ``apply(edge, dry_run=True)`` runs exactly the same checks as
a real application and reports the same outcome tag, but never touches
the sink and never records modified components.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from depcycle.domain.ports import MutationRequest
from depcycle.domain.types import InjectionKind, MutationKind, StrategyKind
from depcycle.services.contracts import StrategyResult

if TYPE_CHECKING:
    from depcycle.domain.cycles import Cycle
    from depcycle.domain.graph import Edge
    from depcycle.domain.ports import ComponentModel, MutationSink

logger = logging.getLogger(__name__)


@dataclass
class _Plan:
    """Mutation requests a strategy wants to submit, plus what they touch."""

    requests: list[MutationRequest]
    components: set[str]
    effect: dict[str, Any] = field(default_factory=dict)


def _simple(name: str) -> str:
    return name.rsplit(".", 1)[-1]


class ResolutionStrategy:
    """Base class: shared dry-run handling and modified-component bookkeeping.

    Subclasses implement :meth:`_plan`, returning either a finished
    StrategyResult (skip/fail verdict) or a :class:`_Plan` to submit.
    """

    kind: ClassVar[StrategyKind]

    def __init__(self, model: ComponentModel, sink: MutationSink) -> None:
        self._model = model
        self._sink = sink
        self.modified: set[str] = set()

    def apply(self, edge: Edge, *, dry_run: bool = False, cycle: Cycle | None = None) -> StrategyResult:
        verdict = self._plan(edge, cycle)
        if isinstance(verdict, StrategyResult):
            logger.debug("%s %s on %s: %s", self.kind, verdict.outcome, edge, verdict.reason)
            return verdict

        if dry_run:
            return StrategyResult.applied(self.kind, {**verdict.effect, "dry_run": True})

        for request in verdict.requests:
            if not self._sink.submit(request):
                logger.warning("Mutation sink rejected %s for %s", request.kind, request.component)
                return StrategyResult.failed(
                    self.kind,
                    f"Mutation sink rejected '{request.kind}' on '{request.component}'",
                )

        self.modified.update(verdict.components)
        logger.info("%s applied on %s", self.kind, edge)
        return StrategyResult.applied(self.kind, verdict.effect)

    def _plan(self, edge: Edge, cycle: Cycle | None) -> StrategyResult | _Plan:
        raise NotImplementedError

    def _skip(self, reason: str) -> StrategyResult:
        return StrategyResult.skipped(self.kind, reason)

    def _fail(self, reason: str) -> StrategyResult:
        return StrategyResult.failed(self.kind, reason)


class DeferredResolutionStrategy(ResolutionStrategy):
    """Mark a field/setter dependency as lazily resolved.

    Breaks the cycle at initialization time without changing the static
    shape of the graph. Constructor and factory-method dependencies are
    resolved before any deferral can intervene, so they are skipped.
    """

    kind = StrategyKind.DEFER

    def _plan(self, edge: Edge, cycle: Cycle | None) -> StrategyResult | _Plan:
        if edge.kind not in (InjectionKind.FIELD, InjectionKind.SETTER):
            return self._skip(f"{edge.kind} dependencies are resolved before deferral applies")
        if not self._model.is_deferrable(edge):
            return self._skip(f"'{edge.target}' cannot be proxied; extract an interface first")
        request = MutationRequest(
            MutationKind.DEFER, edge.source, edge, detail={"origin": edge.origin}
        )
        return _Plan([request], {edge.source}, effect={"deferred": edge.origin or edge.target})


class InjectionKindConversionStrategy(ResolutionStrategy):
    """Turn a constructor dependency into an equivalent setter dependency.

    The converted edge can then be deferred on a later pass.
    """

    kind = StrategyKind.CONVERT

    def _plan(self, edge: Edge, cycle: Cycle | None) -> StrategyResult | _Plan:
        if edge.kind is not InjectionKind.CONSTRUCTOR:
            return self._skip(f"only constructor dependencies can be converted, not {edge.kind}")
        if self._model.has_conflicting_mutator(edge):
            return self._fail(
                f"'{edge.source}' already exposes a conflicting mutator or setter for '{edge.target}'"
            )
        request = MutationRequest(
            MutationKind.CONVERT,
            edge.source,
            edge,
            detail={"origin": edge.origin, "to": InjectionKind.SETTER.value},
        )
        return _Plan(
            [request],
            {edge.source},
            effect={"from": edge.kind.value, "to": InjectionKind.SETTER.value},
        )


class InterfaceExtractionStrategy(ResolutionStrategy):
    """Introduce an abstraction over the operations the source actually uses.

    The edge is repointed to the new abstraction. This leaves the cycle in
    place but lets a later pass defer a dependency whose concrete type
    could not be proxied.

    Every injection kind qualifies except factory methods. A factory-method
    edge can never be deferred, so an abstraction would not help it; it is
    skipped so that mediator extraction, next in the automatic order, gets
    the edge instead of this strategy failing or applying a no-op fix.
    """

    kind = StrategyKind.EXTRACT_INTERFACE

    suffix: ClassVar[str] = "Contract"

    def _plan(self, edge: Edge, cycle: Cycle | None) -> StrategyResult | _Plan:
        if edge.kind is InjectionKind.FACTORY_METHOD:
            return self._skip("factory-method dependencies cannot be deferred after extraction")
        if self._model.is_abstract(edge):
            return self._skip(f"'{edge.source}' already depends on an abstraction")

        operations = self._model.invoked_operations(edge)
        if not operations:
            return self._fail(f"No operations of '{edge.target}' used by '{edge.source}' were found")

        interface = f"{edge.target}{self.suffix}"
        if self._model.component_exists(interface):
            return self._fail(f"Component '{interface}' already exists")

        ops = sorted(operations)
        request = MutationRequest(
            MutationKind.EXTRACT_INTERFACE,
            edge.target,
            edge,
            detail={"interface": interface, "operations": ops},
        )
        return _Plan(
            [request],
            {edge.source, edge.target, interface},
            effect={"interface": interface, "operations": ops},
        )


class MethodExtractionStrategy(ResolutionStrategy):
    """Hoist the coupled operations of a whole cycle into a mediator component.

    For every hop ``A -> B`` of the cycle, the operations of A that use B
    (plus the local helpers they transitively call, and the fields those
    touch) move into one new ``<Names>Operations`` component. Members then
    depend on the mediator one-directionally and the cycle disappears.
    Fails when two members would hoist operations with the same name.
    """

    kind = StrategyKind.EXTRACT_MEDIATOR

    suffix: ClassVar[str] = "Operations"

    def _plan(self, edge: Edge, cycle: Cycle | None) -> StrategyResult | _Plan:
        if cycle is None:
            return self._skip("mediator extraction needs the enclosing cycle")

        hoisted: list[dict[str, Any]] = []
        for hop in cycle.edges:
            if hop.is_self_loop:
                continue
            seeds = self._model.operations_using(hop.source, hop.target)
            if not seeds:
                continue
            operations = self._collect_helpers(hop.source, seeds)
            fields: set[str] = set()
            for op in operations:
                fields |= self._model.fields_used(hop.source, op)
            hoisted.append(
                {
                    "component": hop.source,
                    "dependency": hop.target,
                    "operations": sorted(operations),
                    "fields": sorted(fields),
                }
            )

        if not hoisted:
            return self._fail(f"No coupled operations found in cycle {cycle.format()}")

        owners: dict[str, str] = {}
        for item in hoisted:
            for op in item["operations"]:
                owner = owners.setdefault(op, item["component"])
                if owner != item["component"]:
                    return self._fail(
                        f"Operation '{op}' is hoisted from both '{owner}' and '{item['component']}'"
                    )

        mediator = "".join(_simple(n) for n in cycle.nodes) + self.suffix
        if self._model.component_exists(mediator):
            return self._fail(f"Component '{mediator}' already exists")

        request = MutationRequest(
            MutationKind.EXTRACT_MEDIATOR,
            mediator,
            edge,
            detail={"members": list(cycle.nodes), "hoisted": hoisted},
        )
        return _Plan(
            [request],
            {*cycle.nodes, mediator},
            effect={"mediator": mediator, "hoisted": hoisted},
        )

    def _collect_helpers(self, component: str, seeds: frozenset[str]) -> set[str]:
        """Close *seeds* over the local operations they call."""
        collected = set(seeds)
        pending = sorted(seeds)
        while pending:
            current = pending.pop()
            for callee in self._model.local_calls(component, current):
                if callee not in collected:
                    collected.add(callee)
                    pending.append(callee)
        return collected


def build_strategy(kind: StrategyKind, model: ComponentModel, sink: MutationSink) -> ResolutionStrategy:
    """Instantiate the strategy for *kind*."""
    match kind:
        case StrategyKind.DEFER:
            return DeferredResolutionStrategy(model, sink)
        case StrategyKind.CONVERT:
            return InjectionKindConversionStrategy(model, sink)
        case StrategyKind.EXTRACT_INTERFACE:
            return InterfaceExtractionStrategy(model, sink)
        case StrategyKind.EXTRACT_MEDIATOR:
            return MethodExtractionStrategy(model, sink)
