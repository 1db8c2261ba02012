"""
Declared application state.

An application describes its state as a StateModel subclass: one annotated
field per value, in order, each with a default. That class is the schema.
Patches coming from the CLI or from the network are checked against it with
strict type matching and applied all-or-nothing.
"""

import types
from typing import Any, Dict, Mapping, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from navi.errors import StateValidationError

_TRUE_WORDS = {"true", "1", "yes", "on"}
_FALSE_WORDS = {"false", "0", "no", "off"}
_NULL_WORDS = {"null", "none"}


class StateModel(BaseModel):
	"""Base class for an application's state schema."""

	model_config = ConfigDict(strict=True, extra="forbid")


def _unwrap_optional(annotation) -> tuple[Any, bool]:
	"""Returns (inner type, optional) for `X | None` / `Optional[X]`."""
	if get_origin(annotation) in (Union, types.UnionType):
		args = [a for a in get_args(annotation) if a is not type(None)]
		optional = len(args) < len(get_args(annotation))
		if len(args) == 1:
			return args[0], optional
		return annotation, optional
	return annotation, False


def _type_name(annotation) -> str:
	return getattr(annotation, "__name__", None) or str(annotation)


def describe_schema(model: type[StateModel]) -> Dict[str, Dict[str, Any]]:
	"""Field name -> {type, optional, read_only}, in schema order."""
	schema = {}
	for name, info in model.model_fields.items():
		kind, optional = _unwrap_optional(info.annotation)
		schema[name] = {
		    "type": _type_name(kind),
		    "optional": optional,
		    "read_only": bool(info.frozen),
		}
	for name, info in model.model_computed_fields.items():
		kind, optional = _unwrap_optional(info.return_type)
		schema[name] = {
		    "type": _type_name(kind),
		    "optional": optional,
		    "read_only": True,
		}
	return schema


def read_state(state: StateModel) -> Dict[str, Any]:
	"""Current value of every declared and computed field, JSON-ready."""
	return state.model_dump(mode="json")


def validate_patch(state: StateModel, patch: Mapping[str, Any]) -> Dict[str, Any]:
	"""
    Checks a patch against the schema of `state`.

    Returns the validated entries. Raises StateValidationError naming the
    first field that is unknown, read-only, or of the wrong type.
    """
	if not isinstance(patch, Mapping):
		raise StateValidationError("Patch must be a JSON object")

	model = type(state)
	for key in patch:
		info = model.model_fields.get(key)
		if info is None:
			raise StateValidationError(f"Unknown field '{key}'", field=key)
		if info.frozen:
			raise StateValidationError(f"Field '{key}' is read-only", field=key)

	current = {name: getattr(state, name) for name in model.model_fields}
	try:
		validated = model.model_validate({**current, **patch})
	except PydanticValidationError as e:
		first = e.errors()[0]
		loc = first.get("loc") or ()
		field = str(loc[0]) if loc else None
		label = field or model.__name__
		raise StateValidationError(f"Invalid value for '{label}': {first['msg']}",
		                           field=field) from e

	return {key: getattr(validated, key) for key in patch}


def apply_patch(state: StateModel, patch: Mapping[str, Any]) -> Dict[str, Any]:
	"""Validates the whole patch, then assigns it. Returns what was applied."""
	validated = validate_patch(state, patch)
	for key, value in validated.items():
		setattr(state, key, value)
	return validated


def state_delta(current: Mapping[str, Any],
                patch: Mapping[str, Any]) -> Dict[str, Any]:
	"""Entries of `patch` that would actually change `current`."""
	delta = {}
	for key, value in patch.items():
		if key not in current:
			delta[key] = value
		elif type(current[key]) is not type(value) or current[key] != value:
			delta[key] = value
	return delta


def coerce_cli_value(model: type[StateModel], key: str, raw: Any) -> Any:
	"""
    Parses a command-line string into the declared type of `key`.

    Anything that cannot be parsed is returned unchanged so validation can
    report it against the field.
    """
	info = model.model_fields.get(key)
	if info is None or not isinstance(raw, str):
		return raw

	kind, optional = _unwrap_optional(info.annotation)
	lowered = raw.strip().lower()
	if optional and lowered in _NULL_WORDS:
		return None
	if kind is bool:
		if lowered in _TRUE_WORDS:
			return True
		if lowered in _FALSE_WORDS:
			return False
		return raw
	if kind in (int, float):
		try:
			return kind(raw)
		except ValueError:
			return raw
	return raw
