"""
State carried through the document workflow.

``final_document`` is first-write-wins: once assembly (or its fallback)
produced a document, no later patch can overwrite it. Per-stage durations
are appended to ``stage_timings`` rather than raced into one counter.
"""

from aurix.engine import append, build_schema, first_write_wins, replace

DOCUMENT_SCHEMA = build_schema(
    name="document",
    # Inputs
    session_id=replace(),
    transcript=replace(default=""),
    config=replace(description="DocumentConfig"),
    # Collaborator probes
    llm_available=replace(default=False),
    diagrams_available=replace(default=False),
    # Intermediate results
    segments=replace(default=[]),
    analysis=replace(description="ContentAnalysis"),
    document_sections=replace(default=[]),
    diagrams=replace(default=[]),
    # Outputs
    final_document=first_write_wins(),
    cognitive_load_index=replace(description="θ score, 0-100"),
    cognitive_metrics=replace(description="CognitiveLoadMetrics"),
    # Run log
    stage_timings=append(),
    warnings=append(),
    errors=append(),
)


def processing_time_ms(state) -> float:
    return sum(timing.milliseconds for timing in state.get("stage_timings") or [])
