"""Tests for the declared state: schema description, reads, patches."""

import pytest

from navi.errors import StateValidationError
from navi.state import (apply_patch, coerce_cli_value, describe_schema,
                        read_state, state_delta, validate_patch)

from conftest import SampleState


def test_describe_schema_lists_fields_in_declared_order() -> None:
	"""Declared fields come first in order, then computed ones."""
	schema = describe_schema(SampleState)

	assert list(schema) == [
	    "port", "message", "count", "ratio", "enabled", "note", "shout"
	]
	assert schema["count"] == {"type": "int", "optional": False, "read_only": False}
	assert schema["note"] == {"type": "str", "optional": True, "read_only": False}
	assert schema["port"]["read_only"] is True
	assert schema["shout"]["read_only"] is True


def test_read_state_includes_computed_fields_read_at_call_time() -> None:
	state = SampleState()

	assert read_state(state) == {
	    "port": 3005,
	    "message": "initial",
	    "count": 0,
	    "ratio": 0.5,
	    "enabled": False,
	    "note": None,
	    "shout": "INITIAL",
	}

	state.message = "hello"
	assert read_state(state)["shout"] == "HELLO"


def test_apply_patch_changes_only_patched_fields() -> None:
	state = SampleState()
	before = read_state(state)

	applied = apply_patch(state, {"message": "updated", "count": 3})

	after = read_state(state)
	assert applied == {"message": "updated", "count": 3}
	assert after["message"] == "updated"
	assert after["count"] == 3
	for key in ("port", "ratio", "enabled", "note"):
		assert after[key] == before[key]


@pytest.mark.parametrize(
    "patch, field",
    [
        ({"message": "changed", "count": "3"}, "count"),
        ({"message": "changed", "count": True}, "count"),
        ({"message": "changed", "enabled": 1}, "enabled"),
        ({"message": "changed", "ratio": "0.9"}, "ratio"),
        ({"message": "changed", "missing": 1}, "missing"),
        ({"message": "changed", "port": 9999}, "port"),
        ({"message": "changed", "shout": "LOUD"}, "shout"),
    ],
)
def test_invalid_patch_is_rejected_whole(patch: dict, field: str) -> None:
	"""One bad entry rejects the patch and leaves every field untouched."""
	state = SampleState()
	before = read_state(state)

	with pytest.raises(StateValidationError) as excinfo:
		apply_patch(state, patch)

	assert excinfo.value.field == field
	assert field in str(excinfo.value)
	assert read_state(state) == before


def test_non_mapping_patch_is_rejected() -> None:
	with pytest.raises(StateValidationError, match="JSON object"):
		validate_patch(SampleState(), ["message", "x"])


def test_optional_field_accepts_none() -> None:
	state = SampleState(note="draft")

	apply_patch(state, {"note": None})

	assert state.note is None


def test_state_delta_keeps_only_changed_values() -> None:
	current = read_state(SampleState())

	delta = state_delta(current, {"count": 0, "message": "new", "enabled": 0})

	# 0 == False in Python, but a different type is still a change
	assert delta == {"message": "new", "enabled": 0}


@pytest.mark.parametrize(
    "key, raw, expected",
    [
        ("count", "5", 5),
        ("ratio", "0.25", 0.25),
        ("enabled", "yes", True),
        ("enabled", "OFF", False),
        ("note", "null", None),
        ("message", "null", "null"),
        ("message", "hello world", "hello world"),
        ("count", "abc", "abc"),
        ("enabled", "maybe", "maybe"),
        ("unknown", "5", "5"),
    ],
)
def test_coerce_cli_value_parses_declared_type(key: str, raw: str,
                                               expected) -> None:
	assert coerce_cli_value(SampleState, key, raw) == expected


def test_unparseable_cli_value_is_reported_by_validation() -> None:
	state = SampleState()
	value = coerce_cli_value(SampleState, "count", "abc")

	with pytest.raises(StateValidationError) as excinfo:
		apply_patch(state, {"count": value})

	assert excinfo.value.field == "count"
	assert state.count == 0
