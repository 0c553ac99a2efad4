"""
Graph-based workflow engine.

Routes a shared state through a graph of async stages with per-field merge
policies, conditional routing and fan-out/fan-in barriers.
"""

from aurix.engine.errors import (
    ExecutionLimitExceeded,
    InsufficientDataError,
    RoutingError,
    SchemaError,
    StageFault,
    ValidationError,
    WorkflowError,
)
from aurix.engine.executor import Executor, FinalState, run
from aurix.engine.graph import END, ConditionalEdge, Edge, GraphDefinition, Stage, define_graph
from aurix.engine.state import CLEAR, MergePolicy, StateField, StateSchema, append, build_schema, first_write_wins, replace

__all__ = [
    "CLEAR",
    "END",
    "ConditionalEdge",
    "Edge",
    "ExecutionLimitExceeded",
    "Executor",
    "FinalState",
    "GraphDefinition",
    "InsufficientDataError",
    "MergePolicy",
    "RoutingError",
    "SchemaError",
    "Stage",
    "StageFault",
    "StateField",
    "StateSchema",
    "ValidationError",
    "WorkflowError",
    "append",
    "build_schema",
    "define_graph",
    "first_write_wins",
    "replace",
    "run",
]
