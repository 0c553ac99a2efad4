"""
Engine error taxonomy.

Configuration and topology errors (SchemaError, RoutingError,
ExecutionLimitExceeded) are raised to the caller. StageFault and its
subclasses are recorded into the run's state as data unless fatal.
"""

from typing import Optional


class WorkflowError(Exception):
    """Base class for every error raised by the workflow engine."""


class SchemaError(WorkflowError):
    """Graph or state schema misconfiguration."""


class RoutingError(WorkflowError):
    """A conditional edge could not resolve a target."""

    def __init__(self, source: str, label: Optional[str], message: str = ""):
        self.source = source
        self.label = label
        super().__init__(message or f"No route from '{source}' for label {label!r}")


class ExecutionLimitExceeded(WorkflowError):
    """The run did not reach a terminal state within the iteration cap."""

    def __init__(self, limit: int, trace: Optional[list] = None):
        self.limit = limit
        self.trace = trace or []
        super().__init__(f"Max iterations ({limit}) exceeded")


class ValidationError(WorkflowError):
    """A collaborator payload did not match its declared record shape."""

    def __init__(self, record: str, detail: str):
        self.record = record
        self.detail = detail
        super().__init__(f"Invalid {record}: {detail}")


class StageFault(WorkflowError):
    """
    A failure reported by a stage.

    Non-fatal by default: the executor records it into the error field and
    continues down the graph. A fatal fault halts the run.
    """

    def __init__(self, message: str, stage: Optional[str] = None, fatal: bool = False):
        self.message = message
        self.stage = stage
        self.fatal = fatal
        super().__init__(message)

    def to_record(self) -> str:
        """Render the fault as an entry for the error field."""
        if self.stage:
            return f"{self.stage}: {self.message}"
        return self.message


class InsufficientDataError(StageFault):
    """Upstream data required by a stage is missing."""
