"""JSON Schema validation utilities."""

from typing import Any, Mapping

from jsonschema import Draft7Validator

from shared.models import ParameterSchema


# Discovery formats carried as strings on the wire but commonly passed as numbers
NUMERIC_STRING_FORMATS = {"int64", "uint64", "double", "float", "google-duration"}


def validate_schema(data: Any, schema: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate data against a JSON Schema.

    Args:
        data: The data to validate
        schema: JSON Schema to validate against

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    if not schema:
        return True, []

    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))

    if not errors:
        return True, []

    error_messages = [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]

    return False, error_messages


def parameter_to_json_schema(param: ParameterSchema) -> dict[str, Any]:
    """Translate one discovery parameter definition into a JSON Schema."""
    type_mapping = {
        "integer": "integer",
        "number": "number",
        "boolean": "boolean",
        "object": "object",
        "array": "array",
    }

    item_schema: dict[str, Any] = {}
    if param.type == "string":
        if param.format in NUMERIC_STRING_FORMATS:
            item_schema["type"] = ["string", "integer", "number"]
        else:
            item_schema["type"] = "string"
    elif param.type in type_mapping:
        item_schema["type"] = type_mapping[param.type]

    if param.enum:
        item_schema["enum"] = list(param.enum)

    if param.repeated:
        # A repeated parameter accepts one value or a list of values
        return {"anyOf": [item_schema, {"type": "array", "items": item_schema}]}

    return item_schema


def create_parameters_schema(
    parameters: Mapping[str, ParameterSchema],
    global_parameters: Mapping[str, ParameterSchema] | None = None
) -> dict[str, Any]:
    """
    Create a JSON Schema for a method's call parameters.

    Method parameters take precedence over global parameters of the same
    name. ``None`` values are always accepted so callers can leave optional
    parameters unset. Required parameters are checked by the request
    executor, not here.

    Args:
        parameters: Method parameter definitions
        global_parameters: Document-wide parameter definitions

    Returns:
        JSON Schema dictionary
    """
    merged = {**(global_parameters or {}), **parameters}
    properties = {}

    for name, param in merged.items():
        param_schema = parameter_to_json_schema(param)
        if param_schema:
            properties[name] = {"anyOf": [{"type": "null"}, param_schema]}

    return {
        "type": "object",
        "properties": properties,
        "additionalProperties": True,
    }
