"""
State carried through the overload workflow.
"""

from aurix.engine import append, build_schema, replace

OVERLOAD_SCHEMA = build_schema(
    name="overload",
    # Inputs
    as_of=replace(description="Moment the analysis is for; defaults to now"),
    metrics=replace(description="OverloadMetrics supplied by the caller; skips the task fetch"),
    task_data=replace(description="Validated TaskData snapshot from the task provider"),
    # Results
    overload_index=replace(description="OverloadIndex computed for as_of"),
    historical_data=replace(default=[], description="Stored indices inside the history window"),
    summary=replace(description="DailySummary"),
    # Run log
    messages=append(description="Progress notes, one per stage"),
    warnings=append(),
    errors=append(),
)
