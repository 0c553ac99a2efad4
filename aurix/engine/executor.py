"""
Workflow executor.

Runs a GraphDefinition as a sequence of supersteps:

1. The frontier starts at the entry stage.
2. Every stage in the frontier runs concurrently on its own copy of the
   pre-step state. The step is a barrier: nothing downstream starts until
   all of them finish (or one reports a fatal fault).
3. Patches merge in the graph's precedence order, never completion order,
   so fan-out runs are deterministic.
4. Outgoing edges of every stage in the step are resolved against the
   post-merge state. Targets are de-duplicated (a fan-in stage runs once)
   and become the next frontier.
5. The run ends when no targets remain, i.e. every branch reached END or a
   sink stage.

Stage failures are data: they are appended to the schema's error field and
the run carries on, unless the stage or the fault is fatal.
"""

import asyncio
import copy
import inspect
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from aurix.engine.errors import ExecutionLimitExceeded, RoutingError, StageFault
from aurix.engine.graph import END, ConditionalEdge, GraphDefinition, Stage
from aurix.engine.state import StateSchema
from aurix.logger import get_logger
from aurix.settings import settings

logger = get_logger(__name__)


@dataclass
class FinalState:
    """
    Result of a workflow run.

    ``completed`` means the run reached its terminal state without a fatal
    fault; non-fatal faults may still be present in ``errors``.
    """
    values: Dict[str, Any]
    error_field: str = "errors"
    faults: List[StageFault] = field(default_factory=list)
    trace: List[List[str]] = field(default_factory=list)
    halted_by: Optional[StageFault] = None

    @property
    def halted(self) -> bool:
        return self.halted_by is not None

    @property
    def completed(self) -> bool:
        return not self.halted

    @property
    def errors(self) -> List[Any]:
        return list(self.values.get(self.error_field) or [])

    @property
    def ok(self) -> bool:
        return self.completed and not self.errors

    @property
    def iterations(self) -> int:
        return len(self.trace)

    @property
    def executed(self) -> List[str]:
        return [name for step in self.trace for name in step]

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.values)


@dataclass
class _Outcome:
    stage: str
    patch: Optional[Mapping[str, Any]] = None
    fault: Optional[StageFault] = None
    fatal: bool = False


class Executor:
    """
    Drives a graph from its entry stage to termination.

    Args:
        max_iterations: superstep cap used when the graph sets none
    """

    def __init__(self, max_iterations: Optional[int] = None):
        self.max_iterations = settings.MAX_ITERATIONS if max_iterations is None else max_iterations

    async def run(self, graph: GraphDefinition, initial_state: Optional[Mapping[str, Any]] = None) -> FinalState:
        schema = graph.schema
        state = schema.normalize(initial_state)
        written = schema.initially_written(initial_state)
        limit = self.max_iterations if graph.max_iterations is None else graph.max_iterations

        result = FinalState(values=state, error_field=schema.error_field)
        frontier: List[str] = [graph.entry]

        logger.info("Workflow '%s' started at '%s'", graph.name, graph.entry)

        while frontier:
            if len(result.trace) >= limit:
                logger.error("Workflow '%s' exceeded %d iterations", graph.name, limit)
                raise ExecutionLimitExceeded(limit, result.trace)

            result.trace.append(list(frontier))
            outcomes = await self._run_step(graph, frontier, state)

            fatal = next((outcome for outcome in outcomes if outcome.fatal), None)
            if fatal is not None:
                # The step's other patches are discarded; only the fault survives
                result.faults.append(fatal.fault)
                schema.merge(state, {schema.error_field: [fatal.fault.to_record()]}, written)
                result.halted_by = fatal.fault
                logger.error("Workflow '%s' halted by fatal fault in '%s': %s",
                             graph.name, fatal.stage, fatal.fault.message)
                return result

            for outcome in outcomes:
                if outcome.fault is not None:
                    result.faults.append(outcome.fault)
                    schema.merge(state, {schema.error_field: [outcome.fault.to_record()]}, written)
                    logger.warning("Stage '%s' fault recorded: %s", outcome.stage, outcome.fault.message)
                elif outcome.patch:
                    schema.merge(state, outcome.patch, written)

            frontier = self._successors(graph, [outcome.stage for outcome in outcomes], state)

        logger.info("Workflow '%s' finished after %d step(s) with %d error(s)",
                    graph.name, len(result.trace), len(result.errors))
        return result

    # =========================================================================
    # STEP EXECUTION
    # =========================================================================
    async def _run_step(self, graph: GraphDefinition, frontier: Sequence[str], state: Dict[str, Any]) -> List[_Outcome]:
        """Run one superstep. Outcomes come back in precedence order."""
        ordered = sorted(frontier, key=graph.precedence_key)

        if len(ordered) == 1:
            stage = graph.stage(ordered[0])
            return [await self._invoke(stage, copy.deepcopy(state), graph.schema)]

        logger.debug("Fan-out: %s", ", ".join(ordered))
        tasks = {
            name: asyncio.create_task(self._invoke(graph.stage(name), copy.deepcopy(state), graph.schema))
            for name in ordered
        }
        pending = set(tasks.values())
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                if any(task.result().fatal for task in done):
                    break
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        outcomes = []
        for name in ordered:
            task = tasks[name]
            if task.cancelled():
                continue
            outcomes.append(task.result())
        return outcomes

    async def _invoke(self, stage: Stage, snapshot: Dict[str, Any], schema: StateSchema) -> _Outcome:
        logger.debug("Stage '%s' started", stage.name)
        try:
            if stage.timeout is not None:
                call = asyncio.ensure_future(self._call(stage, snapshot))
                try:
                    done, _ = await asyncio.wait({call}, timeout=stage.timeout)
                finally:
                    if not call.done():
                        call.cancel()
                if not done:
                    await asyncio.gather(call, return_exceptions=True)
                    fault = StageFault(f"deadline of {stage.timeout}s exceeded", stage=stage.name, fatal=True)
                    return _Outcome(stage.name, fault=fault, fatal=True)
                # A TimeoutError raised by the stage itself is an ordinary fault
                result = call.result()
            else:
                result = await self._call(stage, snapshot)
        except StageFault as fault:
            if fault.stage is None:
                fault.stage = stage.name
            return _Outcome(stage.name, fault=fault, fatal=stage.fatal or fault.fatal)
        except Exception as exc:
            fault = StageFault(f"{type(exc).__name__}: {exc}", stage=stage.name)
            fault.__cause__ = exc
            return _Outcome(stage.name, fault=fault, fatal=stage.fatal)

        if result is None:
            result = {}
        if not isinstance(result, Mapping):
            fault = StageFault(f"returned {type(result).__name__} instead of a state patch", stage=stage.name)
            return _Outcome(stage.name, fault=fault, fatal=stage.fatal)

        unknown = schema.undeclared(result)
        if unknown:
            fault = StageFault(f"wrote undeclared fields: {', '.join(sorted(unknown))}", stage=stage.name)
            return _Outcome(stage.name, fault=fault, fatal=stage.fatal)

        logger.debug("Stage '%s' finished with fields: %s", stage.name, ", ".join(result) or "-")
        return _Outcome(stage.name, patch=dict(result))

    @staticmethod
    async def _call(stage: Stage, snapshot: Dict[str, Any]) -> Any:
        if inspect.iscoroutinefunction(stage.func):
            return await stage.func(snapshot)
        result = await asyncio.to_thread(stage.func, snapshot)
        if inspect.isawaitable(result):
            result = await result
        return result

    # =========================================================================
    # ROUTING
    # =========================================================================
    def _successors(self, graph: GraphDefinition, executed: Sequence[str], state: Dict[str, Any]) -> List[str]:
        view = MappingProxyType(state)
        frontier: List[str] = []
        for name in executed:
            outgoing = graph.outgoing(name)
            if isinstance(outgoing, ConditionalEdge):
                targets = [self._route(outgoing, view)]
            else:
                targets = [edge.target for edge in outgoing]
            for target in targets:
                if target != END and target not in frontier:
                    frontier.append(target)
        return frontier

    @staticmethod
    def _route(edge: ConditionalEdge, view: Mapping[str, Any]) -> str:
        try:
            label = edge.router(view)
        except Exception as exc:
            raise RoutingError(edge.source, None, f"Router for '{edge.source}' failed: {exc}") from exc

        if label in edge.targets:
            target = edge.targets[label]
        elif edge.default is not None:
            target = edge.default
        else:
            raise RoutingError(edge.source, label)

        logger.info("Route %s --[%s]--> %s", edge.source, label, target)
        return target


async def run(graph: GraphDefinition, initial_state: Optional[Mapping[str, Any]] = None,
              max_iterations: Optional[int] = None) -> FinalState:
    """Run ``graph`` once with a fresh executor."""
    return await Executor(max_iterations=max_iterations).run(graph, initial_state)
