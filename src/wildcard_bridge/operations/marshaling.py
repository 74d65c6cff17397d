"""Conversion of loosely-typed agent arguments into typed request params.

Each operation declares its request shape as a list of FieldSpec. Arguments
are copied field by field according to the declared type:

- ``string``/``boolean``: copied only when the value has the declared type.
- ``integer``: ints, and floats with an integral value (JSON decoders hand
  back ``2.0`` for ``2``). ``bool`` is never an integer.
- ``number``: ints and floats, never ``bool``.
- ``string_array``: non-string elements are dropped.
- ``string_map``: entries with non-string keys or values are dropped.
- ``object``/``object_array``: converted recursively; non-object elements of
  an array are dropped.

A present value of the wrong type is skipped and the field left unset. The
skip is recorded on the request so callers can log it. Required fields are
checked after conversion, so a required field holding a wrong-typed value is
reported as missing.

``metadata`` and ``expand`` are reserved: they are accumulated separately
for operations that accept them rather than declared per operation.
"""

from typing import Any

from wildcard_bridge.operations.errors import ArgumentShapeInvalid
from wildcard_bridge.operations.types import FieldSpec, OperationDefinition, OperationRequest

METADATA_FIELD = "metadata"
EXPAND_FIELD = "expand"

_MISSING = object()


def _convert_scalar(spec: FieldSpec, value: Any) -> Any:
    if spec.type == "string":
        return value if isinstance(value, str) else _MISSING
    if spec.type == "boolean":
        return value if isinstance(value, bool) else _MISSING
    if isinstance(value, bool):
        return _MISSING
    if spec.type == "integer":
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return _MISSING
    if spec.type == "number":
        return value if isinstance(value, (int, float)) else _MISSING
    raise ValueError(f"Not a scalar field type: {spec.type}")


def _convert_fields(
    specs: list[FieldSpec],
    source: dict[str, Any],
    prefix: str,
    skipped: list[str],
    missing: list[str],
) -> dict[str, Any]:
    """Convert the declared fields of one object level."""
    converted: dict[str, Any] = {}
    for spec in specs:
        dotted = f"{prefix}{spec.name}"
        if spec.name not in source or source[spec.name] is None:
            if spec.required:
                missing.append(dotted)
            continue

        value = _convert_value(spec, source[spec.name], dotted, skipped, missing)
        if value is _MISSING:
            skipped.append(dotted)
            if spec.required:
                missing.append(dotted)
            continue
        converted[spec.name] = value
    return converted


def _convert_value(
    spec: FieldSpec,
    value: Any,
    dotted: str,
    skipped: list[str],
    missing: list[str],
) -> Any:
    if spec.type == "string_array":
        if not isinstance(value, list):
            return _MISSING
        return [item for item in value if isinstance(item, str)]

    if spec.type == "string_map":
        if not isinstance(value, dict):
            return _MISSING
        return {k: v for k, v in value.items() if isinstance(k, str) and isinstance(v, str)}

    if spec.type == "object":
        if not isinstance(value, dict):
            return _MISSING
        return _convert_fields(spec.fields, value, f"{dotted}.", skipped, missing)

    if spec.type == "object_array":
        if not isinstance(value, list):
            return _MISSING
        items = []
        for index, item in enumerate(value):
            if not isinstance(item, dict):
                skipped.append(f"{dotted}[{index}]")
                continue
            items.append(
                _convert_fields(spec.fields, item, f"{dotted}[{index}].", skipped, missing)
            )
        return items

    return _convert_scalar(spec, value)


def _accumulate_metadata(value: Any, skipped: list[str]) -> dict[str, str] | None:
    if not isinstance(value, dict):
        skipped.append(METADATA_FIELD)
        return None
    metadata: dict[str, str] = {}
    for key, item in value.items():
        if isinstance(key, str) and isinstance(item, str):
            metadata[key] = item
        else:
            skipped.append(f"{METADATA_FIELD}.{key}")
    return metadata


def _accumulate_expand(value: Any, skipped: list[str]) -> list[str] | None:
    if not isinstance(value, list):
        skipped.append(EXPAND_FIELD)
        return None
    return [path for path in value if isinstance(path, str)]


def marshal_arguments(
    definition: OperationDefinition, arguments: dict[str, Any]
) -> OperationRequest:
    """Build a typed request for an operation from generic arguments.

    Args:
        definition: Operation whose declared fields drive the conversion.
        arguments: Key-value arguments from the agent's action request.

    Returns:
        OperationRequest with positional IDs, request params, and the
        dotted paths of skipped values and unknown argument names.

    Raises:
        ArgumentShapeInvalid: If a required field is absent or unusable
            after conversion.
    """
    skipped: list[str] = []
    missing: list[str] = []

    path_specs = [spec for spec in definition.fields if spec.path]
    param_specs = [spec for spec in definition.fields if not spec.path]

    path_args = _convert_fields(path_specs, arguments, "", skipped, missing)
    params = _convert_fields(param_specs, arguments, "", skipped, missing)

    if missing:
        raise ArgumentShapeInvalid(definition.operation_id, missing)

    declared = {spec.name for spec in definition.fields}
    reserved: set[str] = set()

    if definition.accepts_metadata:
        reserved.add(METADATA_FIELD)
        if arguments.get(METADATA_FIELD) is not None:
            metadata = _accumulate_metadata(arguments[METADATA_FIELD], skipped)
            if metadata:
                params[METADATA_FIELD] = metadata

    if definition.accepts_expand:
        reserved.add(EXPAND_FIELD)
        if arguments.get(EXPAND_FIELD) is not None:
            expand = _accumulate_expand(arguments[EXPAND_FIELD], skipped)
            if expand:
                params[EXPAND_FIELD] = expand

    unknown = sorted(key for key in arguments if key not in declared and key not in reserved)

    return OperationRequest(path_args=path_args, params=params, skipped=skipped, unknown=unknown)
