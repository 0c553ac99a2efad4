"""
Boundary validation for collaborator payloads.

Untyped data from external collaborators is validated into pydantic
records before it enters a workflow state.
"""

from typing import Any, Type, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from aurix.engine.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class CamelModel(BaseModel):
    """Record with snake_case fields that also accepts and emits camelCase names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def validate_record(model: Type[ModelT], payload: Any, record: str = "") -> ModelT:
    """
    Validate ``payload`` into ``model``.

    Raises:
        ValidationError: payload shape does not match the record
    """
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ValidationError(record or model.__name__, problems) from exc
