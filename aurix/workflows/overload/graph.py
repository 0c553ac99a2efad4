"""
Overload analysis graph.

fetch_data → calculate_index ─(analyze)→ analyze_history → generate_summary → END
                             └(end)────→ END
"""

from datetime import datetime
from typing import Any, Mapping, Optional, Union

from aurix.engine import END, ConditionalEdge, Edge, Executor, FinalState, GraphDefinition, Stage, define_graph
from aurix.logger import get_logger
from aurix.overload.schemas import OverloadMetrics, TaskData
from aurix.utils.validation import validate_record
from aurix.workflows.overload.stages import OverloadStages
from aurix.workflows.overload.state import OVERLOAD_SCHEMA

logger = get_logger(__name__)


def route_after_calculate(state: Mapping[str, Any]) -> str:
    return "analyze" if state.get("overload_index") is not None else "end"


def build_overload_graph(stages: OverloadStages, max_iterations: Optional[int] = None) -> GraphDefinition:
    return define_graph(
        schema=OVERLOAD_SCHEMA,
        stages=[
            Stage(
                "fetch_data", stages.fetch_data,
                reads=("metrics", "task_data"), writes=("task_data", "messages"),
                description="Load the cached task snapshot unless metrics were supplied",
            ),
            Stage(
                "calculate_index", stages.calculate_index,
                reads=("metrics", "task_data", "as_of"), writes=("overload_index", "messages", "warnings"),
                description="Compute the overload index and append it to history",
            ),
            Stage(
                "analyze_history", stages.analyze_history,
                writes=("historical_data", "messages"),
                description="Read the history window",
            ),
            Stage(
                "generate_summary", stages.generate_summary,
                reads=("overload_index", "historical_data", "task_data"), writes=("summary", "messages"),
                description="Build the daily summary",
            ),
        ],
        edges=[
            Edge("fetch_data", "calculate_index"),
            ConditionalEdge(
                "calculate_index",
                route_after_calculate,
                {"analyze": "analyze_history", "end": END},
            ),
            Edge("analyze_history", "generate_summary"),
            Edge("generate_summary", END),
        ],
        entry="fetch_data",
        name="overload",
        max_iterations=max_iterations,
    )


async def run_overload_analysis(
    context,
    metrics: Union[OverloadMetrics, Mapping[str, Any], None] = None,
    task_data: Union[TaskData, Mapping[str, Any], None] = None,
    as_of: Optional[datetime] = None,
) -> FinalState:
    """
    Run one overload analysis against the collaborators held by ``context``.

    The run has no side effects beyond the history append; publishing and
    notifications are applied by ``aurix.handlers``.

    Raises:
        ValidationError: supplied metrics or task data are malformed
    """
    stages = OverloadStages(
        calculator=context.calculator,
        history=context.history,
        task_provider=context.task_provider,
        window_days=context.config.HISTORY_WINDOW_DAYS,
    )
    graph = build_overload_graph(stages)
    initial = {
        "as_of": as_of,
        "metrics": validate_record(OverloadMetrics, metrics, "overload metrics") if metrics is not None else None,
        "task_data": validate_record(TaskData, task_data, "task data") if task_data is not None else None,
        "messages": ["Starting overload analysis..."],
    }
    result = await Executor(context.config.MAX_ITERATIONS).run(graph, initial)
    logger.info("Overload analysis finished: %s", result["overload_index"].value if result["overload_index"] else "no index")
    return result
