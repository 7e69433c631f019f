import collections.abc
import inspect
import types
from typing import Any, Literal, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel, validate_call

from common.models import BaseCommand

NoneType = type(None)
UNION_TYPES = (Union, types.UnionType)


def _is_optional(annotation: Any) -> bool:
    if get_origin(annotation) in UNION_TYPES:
        return any(arg is NoneType for arg in get_args(annotation))
    return False


def annotation_to_schema(annotation: Any) -> dict[str, Any]:
    """Map a parameter annotation to a JSON schema fragment."""
    origin = get_origin(annotation)

    if origin is None:
        if annotation is str:
            return {"type": "string"}
        if annotation is bool:
            return {"type": "boolean"}
        if annotation is int:
            return {"type": "integer"}
        if annotation is float:
            return {"type": "number"}
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            return annotation.model_json_schema()
        if annotation is Any:
            return {}
        return {"type": "string"}

    if origin in (list, tuple, set, collections.abc.Sequence):
        item_args = get_args(annotation)
        items_schema = annotation_to_schema(item_args[0]) if item_args else {}
        return {"type": "array", "items": items_schema}
    if origin is Literal:
        literal_args = list(get_args(annotation))
        schema: dict[str, Any] = {"enum": literal_args}
        if literal_args and all(isinstance(arg, str) for arg in literal_args):
            schema["type"] = "string"
        return schema
    if origin in UNION_TYPES:
        union_args = [arg for arg in get_args(annotation) if arg is not NoneType]
        if len(union_args) == 1:
            return annotation_to_schema(union_args[0])
        return {"anyOf": [annotation_to_schema(arg) for arg in union_args]}
    return {}


def Command(func: Any) -> BaseCommand:
    """Decorator to expose a function as a named explorer command.

    Arguments are validated (and coerced from JSON types) by pydantic when
    the command is invoked.
    """
    signature = inspect.signature(func)
    type_hints = get_type_hints(func)

    properties: dict[str, Any] = {}
    required: list[str] = []

    for name, param in signature.parameters.items():
        annotation = type_hints.get(name, Any)
        param_schema = annotation_to_schema(annotation)

        if param.default is not inspect.Parameter.empty:
            param_schema.setdefault("default", param.default)
        elif not _is_optional(annotation):
            required.append(name)

        properties[name] = param_schema

    params_schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "additionalProperties": False,
    }
    if required:
        params_schema["required"] = required

    return BaseCommand(
        command_name=func.__name__,
        description=inspect.getdoc(func) or "No description provided.",
        command_params=params_schema,
        func=validate_call(func),
    )
