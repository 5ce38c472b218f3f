"""Field validation shared by create and update paths."""

from typing import Any, Dict, Iterable, Mapping, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from tasktimer.errors import ValidationError

M = TypeVar("M", bound=BaseModel)


TITLE_REQUIRED = "Title is required."
TARGET_TIME_NEGATIVE = "Target time cannot be negative."
ELAPSED_TIME_NEGATIVE = "Elapsed time cannot be negative."
NAME_REQUIRED = "Category name is required."

_REQUIRED_MESSAGES = {"title": TITLE_REQUIRED, "name": NAME_REQUIRED}


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_task(data: Mapping[str, Any], partial: bool = False) -> Dict[str, str]:
    """Validate task fields (snake_case keys).

    Args:
        data: Field values to check
        partial: When True, ``title`` is only checked if present

    Returns:
        Map of camelCase field name to message; empty when valid
    """
    errors: Dict[str, str] = {}

    if not partial or "title" in data:
        if _blank(data.get("title")):
            errors["title"] = TITLE_REQUIRED

    target_time = data.get("target_time")
    if target_time is not None and target_time < 0:
        errors["targetTime"] = TARGET_TIME_NEGATIVE

    elapsed_time = data.get("elapsed_time")
    if elapsed_time is not None and elapsed_time < 0:
        errors["elapsedTime"] = ELAPSED_TIME_NEGATIVE

    return errors


def validate_category(data: Mapping[str, Any], partial: bool = False) -> Dict[str, str]:
    """Validate category fields (snake_case keys)."""
    errors: Dict[str, str] = {}
    if not partial or "name" in data:
        if _blank(data.get("name")):
            errors["name"] = NAME_REQUIRED
    return errors


def errors_from_pydantic(exc: PydanticValidationError) -> Dict[str, str]:
    """Flatten a pydantic error into the field -> message shape."""
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc: Iterable = err.get("loc") or ("body",)
        field = str(next(iter(loc)))
        field = to_camel(field) if "_" in field else field
        if err.get("type") == "extra_forbidden":
            message = "Unknown field."
        elif err.get("type") == "missing":
            message = _REQUIRED_MESSAGES.get(field, "Field required.")
        else:
            message = err.get("msg", "Invalid value.")
        errors.setdefault(field, message)
    return errors


def parse_payload(model_cls: Type[M], data: Union[M, Mapping[str, Any]]) -> M:
    """Coerce a mapping into ``model_cls``, raising our ValidationError on failure."""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(errors_from_pydantic(e)) from e
