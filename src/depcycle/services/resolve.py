"""ResolveService — the detect → select → fix pipeline.

Three operations share one linear pipeline::

    START → GRAPH_ACCEPTED → SCC_COMPUTED → CYCLES_ENUMERATED
          → EDGES_SELECTED → STRATEGIES_DISPATCHED → DONE

``detect()`` stops after enumeration, ``plan()`` after selection, and
``resolve()`` runs the whole thing for up to ``max_passes`` passes, each
on a freshly rebuilt graph, followed by an optional verification run.

INVARIANT: Only graph construction can make an operation fail. Truncated
enumeration, failed strategies and cycles that survive verification are
accumulated as issues in the report and mirrored into warnings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from depcycle.domain.cycles import Cycle, EnumerationResult, enumerate_cycles
from depcycle.domain.errors import UnknownNodeError
from depcycle.domain.graph import DependencyGraph, Edge
from depcycle.domain.scc import find_cyclic_components
from depcycle.domain.selection import recommend_fix, reverse_edges, select_edges
from depcycle.domain.types import AUTO_STRATEGY_ORDER, Outcome, PipelineStage, StrategyKind
from depcycle.services.base import BaseService
from depcycle.services.contracts import (
    DetectResultData,
    PlanResultData,
    ResolveResultData,
    StrategyResult,
    dump_validated,
)
from depcycle.services.result import ServiceResult
from depcycle.services.strategies import ResolutionStrategy, build_strategy
from depcycle.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

AUTO = "auto"
MAX_PASSES = 10


@dataclass
class _Analysis:
    """Everything one detection pass learned about a graph."""

    graph: DependencyGraph
    components: list[frozenset[str]]
    enumeration: EnumerationResult
    selected: list[Edge] = field(default_factory=list)
    stage: PipelineStage = PipelineStage.CYCLES_ENUMERATED

    @property
    def cycles(self) -> tuple[Cycle, ...]:
        return self.enumeration.cycles

    def cycle_containing(self, edge: Edge) -> Cycle | None:
        for cycle in self.enumeration.cycles:
            if edge in cycle:
                return cycle
        return None


def _edge_payload(edge: Edge) -> dict[str, Any]:
    return {
        "source": edge.source,
        "target": edge.target,
        "kind": edge.kind.value,
        "origin": None if edge.origin is None else str(edge.origin),
    }


def _selected_payload(edge: Edge) -> dict[str, Any]:
    return {**_edge_payload(edge), "recommendation": recommend_fix(edge)}


def _enter(stage: PipelineStage) -> PipelineStage:
    logger.debug("Pipeline stage: %s", stage)
    return stage


def _issue(code: str, message: str, **detail: Any) -> dict[str, Any]:
    return {"code": code, "message": message, "detail": detail}


class ResolveService(BaseService):
    """Detects dependency cycles and dispatches resolution strategies."""

    # ------------------------------------------------------------------
    # Shared pipeline stages
    # ------------------------------------------------------------------

    def _accept_graph(self, *, rebuild: bool = False) -> DependencyGraph:
        """Fetch the graph from the provider. Raises UnknownNodeError."""
        if rebuild:
            self._workspace.graph.invalidate()
        with trace_span("graph_accepted") as span:
            graph = self._workspace.graph.graph
            if span:
                span.annotate(nodes=len(graph), edges=len(graph.edges()))
        return graph

    def _analyze(self, graph: DependencyGraph, *, select: bool = True) -> _Analysis:
        analysis_cfg = self._workspace.settings.analysis

        with trace_span("scc_computed") as span:
            components = find_cyclic_components(graph)
            _enter(PipelineStage.SCC_COMPUTED)
            if span:
                span.annotate(components=len(components))

        with trace_span("cycles_enumerated") as span:
            enumeration = enumerate_cycles(graph, components, limit=analysis_cfg.max_cycles)
            _enter(PipelineStage.CYCLES_ENUMERATED)
            if span:
                span.annotate(cycles=len(enumeration), truncated=enumeration.truncated)

        analysis = _Analysis(graph, components, enumeration)
        if select:
            with trace_span("edges_selected") as span:
                analysis.selected = select_edges(enumeration.cycles, priority=analysis_cfg.kind_priority)
                analysis.stage = _enter(PipelineStage.EDGES_SELECTED)
                if span:
                    span.annotate(selected=len(analysis.selected))

        logger.debug(
            "Analyzed graph: %d cyclic component(s), %d cycle(s), %d selected edge(s)",
            len(components),
            len(enumeration),
            len(analysis.selected),
        )
        return analysis

    @staticmethod
    def _detect_data(analysis: _Analysis) -> dict[str, Any]:
        return {
            "nodes": len(analysis.graph),
            "edges": len(analysis.graph.edges()),
            "components": [sorted(c) for c in analysis.components],
            "count": len(analysis.cycles),
            "cycles": [c.to_dict() for c in analysis.cycles],
            "truncated": analysis.enumeration.truncated,
        }

    @staticmethod
    def _truncation_warning(enumeration: EnumerationResult) -> str:
        return (
            f"Cycle enumeration stopped at {enumeration.limit} cycle(s); "
            "the selected edges may not hit every cycle"
        )

    @staticmethod
    def _unknown_node(op: str, exc: UnknownNodeError) -> ServiceResult:
        return ServiceResult.failure(
            op,
            "UNKNOWN_NODE",
            str(exc),
            node=exc.node,
            source=exc.source,
            target=exc.target,
        )

    # ------------------------------------------------------------------
    # detect — SCCs and elementary cycles
    # ------------------------------------------------------------------

    @traced
    def detect(self) -> ServiceResult:
        """Find every elementary dependency cycle in the current graph."""
        try:
            graph = self._accept_graph()
        except UnknownNodeError as exc:
            return self._unknown_node("detect", exc)

        analysis = self._analyze(graph, select=False)
        warnings: list[str] = []
        if analysis.enumeration.truncated:
            warnings.append(self._truncation_warning(analysis.enumeration))

        return ServiceResult(
            ok=True,
            op="detect",
            data=dump_validated(DetectResultData, self._detect_data(analysis)),
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # plan — which edges to break, and how
    # ------------------------------------------------------------------

    @traced
    def plan(self) -> ServiceResult:
        """Detect cycles and select a feedback edge set, without fixing anything."""
        try:
            graph = self._accept_graph()
        except UnknownNodeError as exc:
            return self._unknown_node("plan", exc)

        analysis = self._analyze(graph)
        warnings: list[str] = []
        if analysis.enumeration.truncated:
            warnings.append(self._truncation_warning(analysis.enumeration))

        data = {
            **self._detect_data(analysis),
            "selected": [_selected_payload(e) for e in analysis.selected],
        }
        return ServiceResult(
            ok=True,
            op="plan",
            data=dump_validated(PlanResultData, data),
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # resolve — full pipeline with bounded passes
    # ------------------------------------------------------------------

    @traced
    def resolve(
        self,
        *,
        strategy: str | None = None,
        dry_run: bool | None = None,
        verify: bool | None = None,
        max_passes: int | None = None,
    ) -> ServiceResult:
        """Break every detected cycle the strategies can handle.

        Arguments left as None fall back to the ``[resolve]`` settings.

        Args:
            strategy: ``"auto"`` for the preference order, or one strategy name.
            dry_run: Report what would be applied without mutating anything.
            verify: Rebuild the graph afterwards and report surviving cycles.
            max_passes: Upper bound on detect → fix passes, capped at MAX_PASSES.
        """
        cfg = self._workspace.settings.resolve
        strategy = strategy or cfg.strategy
        dry_run = cfg.dry_run if dry_run is None else dry_run
        verify = cfg.verify if verify is None else verify
        max_passes = min(MAX_PASSES, max(1, cfg.max_passes if max_passes is None else max_passes))

        if strategy == AUTO:
            order = AUTO_STRATEGY_ORDER
        else:
            try:
                order = (StrategyKind(strategy),)
            except ValueError:
                return ServiceResult.failure(
                    "resolve",
                    "INVALID_STRATEGY",
                    f"Unknown strategy '{strategy}'",
                    choices=[AUTO, *(k.value for k in StrategyKind)],
                )

        strategies = {
            kind: build_strategy(kind, self._workspace.manifest, self._workspace.sink)
            for kind in order
        }

        stage = PipelineStage.START
        selected_total: list[Edge] = []
        resolutions: list[dict[str, Any]] = []
        issues: list[dict[str, Any]] = []
        truncated = False
        passes = 0

        try:
            for pass_number in range(1, max_passes + 1):
                graph = self._accept_graph(rebuild=pass_number > 1)
                stage = _enter(PipelineStage.GRAPH_ACCEPTED)
                analysis = self._analyze(graph)
                stage = analysis.stage
                passes = pass_number

                if analysis.enumeration.truncated:
                    truncated = True
                    issues.append(
                        _issue(
                            "ENUMERATION_TRUNCATED",
                            self._truncation_warning(analysis.enumeration),
                            limit=analysis.enumeration.limit,
                            pass_number=pass_number,
                        )
                    )
                if not analysis.cycles:
                    logger.info("Pass %d: no cycles left", pass_number)
                    break

                schedule = list(analysis.selected)
                if self._workspace.settings.analysis.include_reverse_edges:
                    schedule.extend(reverse_edges(analysis.selected, graph))
                selected_total.extend(e for e in schedule if e not in selected_total)

                applied_this_pass = 0
                with trace_span("strategies_dispatched") as span:
                    for edge in schedule:
                        attempts = self._dispatch(
                            edge, strategies, dry_run=dry_run, cycle=analysis.cycle_containing(edge)
                        )
                        final = attempts[-1]
                        if final.outcome is Outcome.APPLIED:
                            applied_this_pass += 1
                        elif final.outcome is Outcome.FAILED:
                            issues.append(
                                _issue(
                                    "STRATEGY_FAILED",
                                    f"{final.strategy} failed on {edge}: {final.reason}",
                                    edge=str(edge),
                                    strategy=final.strategy.value,
                                )
                            )
                        resolutions.append(
                            {
                                "edge": _edge_payload(edge),
                                "result": final.to_dict(),
                                "attempts": [a.to_dict() for a in attempts],
                                "pass_number": pass_number,
                            }
                        )
                    if span:
                        span.annotate(pass_number=pass_number, edges=len(schedule), applied=applied_this_pass)
                stage = _enter(PipelineStage.STRATEGIES_DISPATCHED)

                # Nothing changed, so another pass would see the same graph.
                if dry_run or applied_this_pass == 0:
                    break

            remaining: list[Cycle] = []
            verified = False
            if verify and not dry_run:
                with trace_span("verify") as span:
                    check = self._analyze(self._accept_graph(rebuild=True), select=False)
                    if span:
                        span.annotate(remaining=len(check.cycles))
                verified = True
                remaining = list(check.cycles)
                if check.enumeration.truncated:
                    truncated = True
                    issues.append(
                        _issue(
                            "ENUMERATION_TRUNCATED",
                            self._truncation_warning(check.enumeration),
                            limit=check.enumeration.limit,
                            pass_number=None,
                        )
                    )
                for cycle in remaining:
                    issues.append(
                        _issue(
                            "UNRESOLVED_CYCLE",
                            f"Cycle still closes: {cycle.format()}",
                            nodes=list(cycle.nodes),
                        )
                    )
        except UnknownNodeError as exc:
            return self._unknown_node("resolve", exc)

        stage = _enter(PipelineStage.DONE)
        modified: set[str] = set()
        for strat in strategies.values():
            modified |= strat.modified

        outcomes = [r["result"]["outcome"] for r in resolutions]
        data = {
            "stage": stage.value,
            "dry_run": dry_run,
            "strategy": strategy,
            "passes": passes,
            "truncated": truncated,
            "selected": [_selected_payload(e) for e in selected_total],
            "resolutions": resolutions,
            "applied": outcomes.count(Outcome.APPLIED.value),
            "skipped": outcomes.count(Outcome.SKIPPED.value),
            "failed": outcomes.count(Outcome.FAILED.value),
            "modified": sorted(modified),
            "verified": verified,
            "remaining": [c.to_dict() for c in remaining],
            "issues": issues,
        }
        for issue in issues:
            logger.warning("%s: %s", issue["code"], issue["message"])

        return ServiceResult(
            ok=True,
            op="resolve",
            data=dump_validated(ResolveResultData, data),
            warnings=[issue["message"] for issue in issues],
        )

    @staticmethod
    def _dispatch(
        edge: Edge,
        strategies: dict[StrategyKind, ResolutionStrategy],
        *,
        dry_run: bool,
        cycle: Cycle | None,
    ) -> list[StrategyResult]:
        """Try strategies in order until one does not skip the edge."""
        attempts: list[StrategyResult] = []
        for strategy in strategies.values():
            result = strategy.apply(edge, dry_run=dry_run, cycle=cycle)
            attempts.append(result)
            if result.outcome is not Outcome.SKIPPED:
                break
        logger.debug("Edge %s -> %s", edge, attempts[-1].outcome)
        return attempts
