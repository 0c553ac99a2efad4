"""
State schema for workflow graphs.

A schema maps every state field to a merge policy. Stages return partial
patches; the schema decides how each patched field combines with the
running state:

- REPLACE: the new value overwrites the old one
- APPEND: sequence values are concatenated onto the existing list
- FIRST_WRITE_WINS: the first written value sticks until cleared with CLEAR
"""

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Set

from aurix.engine.errors import SchemaError


class MergePolicy(Enum):
    REPLACE = "replace"
    APPEND = "append"
    FIRST_WRITE_WINS = "first_write_wins"


class _Clear:
    """Sentinel that resets a first-write-wins field to its default."""

    def __repr__(self) -> str:
        return "CLEAR"


CLEAR = _Clear()


@dataclass(frozen=True)
class StateField:
    """Declaration of a single state field."""
    policy: MergePolicy = MergePolicy.REPLACE
    default: Any = None
    default_factory: Optional[Callable[[], Any]] = None
    description: str = ""

    def make_default(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        if self.policy is MergePolicy.APPEND and self.default is None:
            return []
        return copy.deepcopy(self.default)


def replace(default: Any = None, description: str = "") -> StateField:
    return StateField(MergePolicy.REPLACE, default=default, description=description)


def append(description: str = "") -> StateField:
    return StateField(MergePolicy.APPEND, default_factory=list, description=description)


def first_write_wins(default: Any = None, description: str = "") -> StateField:
    return StateField(MergePolicy.FIRST_WRITE_WINS, default=default, description=description)


@dataclass(frozen=True)
class StateSchema:
    """
    Shape of the shared workflow state.

    Args:
        fields: field name -> StateField declaration
        error_field: name of the APPEND field that collects stage faults
    """
    fields: Mapping[str, StateField]
    error_field: str = "errors"
    name: str = "state"

    def __post_init__(self):
        # Freeze the declaration so policies cannot change under a graph
        object.__setattr__(self, "fields", dict(self.fields))

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def policy(self, name: str) -> MergePolicy:
        return self.fields[name].policy

    def validate(self) -> None:
        """Check the schema can carry stage faults."""
        spec = self.fields.get(self.error_field)
        if spec is None:
            raise SchemaError(f"Schema '{self.name}' does not declare error field '{self.error_field}'")
        if spec.policy is not MergePolicy.APPEND:
            raise SchemaError(
                f"Error field '{self.error_field}' must use the APPEND policy, not {spec.policy.value}"
            )

    def undeclared(self, keys: Iterable[str]) -> list:
        return [key for key in keys if key not in self.fields]

    def normalize(self, initial: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Build a full state from caller-supplied values.

        Absent declared fields receive their defaults. Undeclared keys are a
        configuration error.
        """
        initial = dict(initial or {})
        unknown = self.undeclared(initial)
        if unknown:
            raise SchemaError(f"Initial state has undeclared fields: {', '.join(sorted(unknown))}")

        state: Dict[str, Any] = {}
        for name, spec in self.fields.items():
            if name in initial and initial[name] is not None:
                value = initial[name]
                if spec.policy is MergePolicy.APPEND:
                    value = list(value) if isinstance(value, (list, tuple)) else [value]
                state[name] = copy.deepcopy(value)
            else:
                state[name] = spec.make_default()
        return state

    def initially_written(self, initial: Optional[Mapping[str, Any]]) -> Set[str]:
        """First-write-wins fields that the caller already set."""
        initial = initial or {}
        return {
            name for name, spec in self.fields.items()
            if spec.policy is MergePolicy.FIRST_WRITE_WINS and initial.get(name) is not None
        }

    def merge(self, state: Dict[str, Any], patch: Mapping[str, Any], written: Set[str]) -> Dict[str, Any]:
        """
        Merge a patch into state field by field.

        Mutates and returns ``state``; ``written`` tracks which first-write-wins
        fields are already set for the current run. Callers check for
        undeclared keys before merging.
        """
        for name, value in patch.items():
            spec = self.fields[name]

            if spec.policy is MergePolicy.REPLACE:
                state[name] = value

            elif spec.policy is MergePolicy.APPEND:
                if value is None:
                    continue
                current = state.get(name)
                if current is None:
                    current = []
                if isinstance(value, (list, tuple)):
                    state[name] = list(current) + list(value)
                else:
                    state[name] = list(current) + [value]

            elif spec.policy is MergePolicy.FIRST_WRITE_WINS:
                if value is CLEAR:
                    state[name] = spec.make_default()
                    written.discard(name)
                elif name not in written and value is not None:
                    state[name] = value
                    written.add(name)

        return state


def build_schema(name: str = "state", error_field: str = "errors", **fields: StateField) -> StateSchema:
    """Convenience constructor: ``build_schema(errors=append(), count=replace(0))``."""
    return StateSchema(fields=fields, error_field=error_field, name=name)
