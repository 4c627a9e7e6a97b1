"""Classification enums shared by the algorithms and the strategy layer.

InjectionKind is the tag that drives both edge-selection tie-breaks and
strategy eligibility. StrategyKind and MutationKind are closed sets: the
orchestrator dispatches over them with ``match``.
"""

from __future__ import annotations

from enum import StrEnum


class InjectionKind(StrEnum):
    """How a dependency edge was established."""

    FIELD = "field"
    SETTER = "setter"
    CONSTRUCTOR = "constructor"
    FACTORY_METHOD = "factory_method"


# Easiest to eliminate structurally first.
DEFAULT_KIND_PRIORITY: tuple[InjectionKind, ...] = (
    InjectionKind.FIELD,
    InjectionKind.SETTER,
    InjectionKind.CONSTRUCTOR,
    InjectionKind.FACTORY_METHOD,
)


class StrategyKind(StrEnum):
    """The four resolution strategies, in automatic preference order."""

    DEFER = "defer"
    CONVERT = "convert"
    EXTRACT_INTERFACE = "extract_interface"
    EXTRACT_MEDIATOR = "extract_mediator"


AUTO_STRATEGY_ORDER: tuple[StrategyKind, ...] = (
    StrategyKind.DEFER,
    StrategyKind.CONVERT,
    StrategyKind.EXTRACT_INTERFACE,
    StrategyKind.EXTRACT_MEDIATOR,
)


class MutationKind(StrEnum):
    """Structural change requested from the mutation sink."""

    DEFER = "defer"
    CONVERT = "convert"
    EXTRACT_INTERFACE = "extract_interface"
    EXTRACT_MEDIATOR = "extract_mediator"


class Outcome(StrEnum):
    """Tag of a StrategyResult."""

    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


class PipelineStage(StrEnum):
    """Linear orchestrator stages."""

    START = "start"
    GRAPH_ACCEPTED = "graph_accepted"
    SCC_COMPUTED = "scc_computed"
    CYCLES_ENUMERATED = "cycles_enumerated"
    EDGES_SELECTED = "edges_selected"
    STRATEGIES_DISPATCHED = "strategies_dispatched"
    DONE = "done"


def normalize_priority(kinds: list[InjectionKind] | tuple[InjectionKind, ...]) -> tuple[InjectionKind, ...]:
    """Return a complete priority tuple: *kinds* first, missing kinds appended.

    Raises ValueError on duplicates.

    Examples:
        >>> normalize_priority([InjectionKind.CONSTRUCTOR])[0]
        <InjectionKind.CONSTRUCTOR: 'constructor'>
    """
    seen: list[InjectionKind] = []
    for kind in kinds:
        kind = InjectionKind(kind)
        if kind in seen:
            msg = f"Duplicate injection kind in priority: {kind}"
            raise ValueError(msg)
        seen.append(kind)
    for kind in DEFAULT_KIND_PRIORITY:
        if kind not in seen:
            seen.append(kind)
    return tuple(seen)
