from aurix.workflows.overload.graph import build_overload_graph, run_overload_analysis
from aurix.workflows.overload.state import OVERLOAD_SCHEMA

__all__ = ["OVERLOAD_SCHEMA", "build_overload_graph", "run_overload_analysis"]
