"""
Graph definition for workflow runs.

A graph is an immutable set of named stages connected by edges:

  source → target                         (unconditional)
  source → router(state) → {label: target} (conditional)

END is the terminal marker. A stage may fan out to several unconditional
targets; a conditional edge always selects exactly one target.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from aurix.engine.errors import SchemaError
from aurix.engine.state import StateSchema
from aurix.logger import get_logger

logger = get_logger(__name__)

END = "__end__"

Patch = Optional[Mapping[str, Any]]
StageFunction = Callable[[Dict[str, Any]], Union[Patch, Awaitable[Patch]]]
Router = Callable[[Mapping[str, Any]], str]


@dataclass(frozen=True)
class Stage:
    """
    A named unit of work.

    Attributes:
        name: unique stage name
        func: sync or async callable taking the state and returning a patch
        reads: fields the stage reads (documentation only)
        writes: fields the stage writes (documentation only)
        fatal: a fault from this stage halts the run
        timeout: optional deadline in seconds; expiry is a fatal fault
        precedence: merge order under fan-out (lower first); defaults to declaration order
    """
    name: str
    func: StageFunction
    reads: Tuple[str, ...] = ()
    writes: Tuple[str, ...] = ()
    fatal: bool = False
    timeout: Optional[float] = None
    precedence: Optional[int] = None
    description: str = ""


@dataclass(frozen=True)
class Edge:
    """Unconditional edge."""
    source: str
    target: str


@dataclass(frozen=True)
class ConditionalEdge:
    """
    Conditional edge. The router is a pure function of the merged state
    returning one label from ``targets``; ``default`` catches any other label.
    """
    source: str
    router: Router
    targets: Mapping[str, str]
    default: Optional[str] = None

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(self.targets)

    def all_targets(self) -> List[str]:
        targets = list(self.targets.values())
        if self.default is not None:
            targets.append(self.default)
        return targets


AnyEdge = Union[Edge, ConditionalEdge]


@dataclass(frozen=True)
class GraphDefinition:
    """Validated, immutable workflow graph. Build with ``define_graph``."""
    name: str
    schema: StateSchema
    stages: Mapping[str, Stage]
    entry: str
    edges: Mapping[str, Tuple[Edge, ...]] = field(default_factory=dict)
    routers: Mapping[str, ConditionalEdge] = field(default_factory=dict)
    order: Mapping[str, int] = field(default_factory=dict)
    max_iterations: Optional[int] = None

    def stage(self, name: str) -> Stage:
        return self.stages[name]

    def outgoing(self, name: str) -> Union[ConditionalEdge, Tuple[Edge, ...]]:
        """Conditional edge for ``name`` if it has one, else its plain edges."""
        if name in self.routers:
            return self.routers[name]
        return self.edges.get(name, ())

    def precedence_key(self, name: str) -> Tuple[int, int]:
        stage = self.stages[name]
        declared = self.order[name]
        return (stage.precedence if stage.precedence is not None else declared, declared)

    def describe(self) -> Dict[str, Any]:
        """Plain-data view of the topology for logging and inspection."""
        return {
            "name": self.name,
            "entry": self.entry,
            "stages": list(self.stages),
            "edges": {
                source: [edge.target for edge in edges] for source, edges in self.edges.items()
            },
            "conditional": {
                source: dict(edge.targets, **({"*": edge.default} if edge.default else {}))
                for source, edge in self.routers.items()
            },
        }


def define_graph(
    schema: StateSchema,
    stages: Sequence[Stage],
    edges: Sequence[AnyEdge],
    entry: str,
    name: str = "workflow",
    max_iterations: Optional[int] = None,
) -> GraphDefinition:
    """
    Validate and freeze a workflow graph.

    Raises:
        SchemaError: duplicate stage names, missing/undeclared entry, edges
            referencing undeclared stages, a source mixing conditional and
            plain edges, or a schema without an APPEND error field.
    """
    schema.validate()

    stage_map: Dict[str, Stage] = {}
    order: Dict[str, int] = {}
    for index, stage in enumerate(stages):
        if stage.name == END:
            raise SchemaError(f"'{END}' is reserved for the terminal marker")
        if stage.name in stage_map:
            raise SchemaError(f"Duplicate stage name: '{stage.name}'")
        stage_map[stage.name] = stage
        order[stage.name] = index

    if not entry:
        raise SchemaError(f"Graph '{name}' has no entry stage")
    if entry not in stage_map:
        raise SchemaError(f"Entry stage '{entry}' is not declared")

    def check_target(source: str, target: str) -> None:
        if target != END and target not in stage_map:
            raise SchemaError(f"Edge {source} → {target} references undeclared stage '{target}'")

    plain: Dict[str, List[Edge]] = {}
    routers: Dict[str, ConditionalEdge] = {}
    for edge in edges:
        if edge.source not in stage_map:
            raise SchemaError(f"Edge source '{edge.source}' is not a declared stage")

        if isinstance(edge, ConditionalEdge):
            if edge.source in routers:
                raise SchemaError(f"Stage '{edge.source}' has more than one conditional edge")
            if not edge.targets:
                raise SchemaError(f"Conditional edge from '{edge.source}' declares no labels")
            for target in edge.all_targets():
                check_target(edge.source, target)
            routers[edge.source] = edge
        else:
            check_target(edge.source, edge.target)
            existing = plain.setdefault(edge.source, [])
            if edge not in existing:
                existing.append(edge)

    mixed = set(plain) & set(routers)
    if mixed:
        raise SchemaError(
            f"Stages mix conditional and unconditional edges: {', '.join(sorted(mixed))}"
        )

    graph = GraphDefinition(
        name=name,
        schema=schema,
        stages=stage_map,
        entry=entry,
        edges={source: tuple(items) for source, items in plain.items()},
        routers=routers,
        order=order,
        max_iterations=max_iterations,
    )

    unreachable = set(stage_map) - _reachable(graph)
    if unreachable:
        logger.warning("Graph '%s' has unreachable stages: %s", name, ", ".join(sorted(unreachable)))

    return graph


def _reachable(graph: GraphDefinition) -> set:
    seen = set()
    pending = [graph.entry]
    while pending:
        current = pending.pop()
        if current in seen or current == END:
            continue
        seen.add(current)
        outgoing = graph.outgoing(current)
        if isinstance(outgoing, ConditionalEdge):
            pending.extend(outgoing.all_targets())
        else:
            pending.extend(edge.target for edge in outgoing)
    return seen
