"""Tests for the static flow validator."""

from __future__ import annotations

import pytest

from rpaworker.compiler.validator import ValidationError, ensure_valid, validate_steps

from conftest import step


class TestValidPrograms:
    def test_flat_primitives(self, registry):
        assert validate_steps([step("a"), step("b", "navigate", url="https://a.test")], registry) == []

    def test_loop_with_items(self, registry):
        assert validate_steps([step("l", "loop", children=[step("c")], items="rows")], registry) == []

    def test_loop_with_count(self, registry):
        assert validate_steps([step("l", "loop", children=[step("c")], count=3)], registry) == []

    def test_condition_with_both_branches(self, registry):
        s = step(
            "c", "condition",
            children=[step("t")], else_children=[step("e")],
            variable="x", operator=">=", value=1,
        )
        assert validate_steps([s], registry) == []

    def test_condition_without_operator(self, registry):
        s = step("c", "condition", children=[step("t")], variable="x", value=1)
        assert validate_steps([s], registry) == []

    def test_condition_with_templated_operator(self, registry):
        s = step("c", "condition", children=[step("t")], variable="x", operator="{{op}}", value=1)
        assert validate_steps([s], registry) == []


class TestInvalidPrograms:
    def test_unknown_action(self, registry):
        errors = validate_steps([step("a", "teleport")], registry)
        assert errors == ["Step 'a': unknown action type 'teleport'."]

    def test_empty_action_type(self, registry):
        errors = validate_steps([step("a", "")], registry)
        assert "missing actionType" in errors[0]

    def test_empty_id(self, registry):
        errors = validate_steps([step("", "noop")], registry)
        assert errors == ["Step with empty id."]

    def test_loop_without_mode(self, registry):
        errors = validate_steps([step("l", "loop", children=[step("c")])], registry)
        assert "requires either 'items' or 'count'" in errors[0]

    def test_loop_items_must_be_name(self, registry):
        errors = validate_steps([step("l", "loop", items=[1, 2])], registry)
        assert "must name a variable" in errors[0]

    def test_loop_rejects_else_children(self, registry):
        errors = validate_steps([step("l", "loop", else_children=[step("e")], count=1)], registry)
        assert any("elseChildren" in e for e in errors)

    def test_condition_requires_variable(self, registry):
        errors = validate_steps([step("c", "condition", operator="==", value=1)], registry)
        assert any("requires 'variable'" in e for e in errors)

    def test_condition_operator_checked(self, registry):
        errors = validate_steps([step("c", "condition", variable="x", operator="~=", value=1)], registry)
        assert any("'~=' is not supported" in e for e in errors)

    @pytest.mark.parametrize("op", [["=="], {"op": "=="}, 3])
    def test_condition_non_string_operator(self, registry, op):
        errors = validate_steps([step("c", "condition", variable="x", operator=op, value=1)], registry)
        assert any("is not supported" in e for e in errors)

    def test_condition_non_string_variable(self, registry):
        errors = validate_steps([step("c", "condition", variable=["x"], operator="==")], registry)
        assert any("requires 'variable'" in e for e in errors)

    def test_primitive_cannot_nest(self, registry):
        errors = validate_steps([step("a", "noop", children=[step("b")])], registry)
        assert any("cannot have nested steps" in e for e in errors)

    def test_errors_found_at_depth(self, registry):
        tree = step(
            "outer", "loop", count=1,
            children=[step("inner", "condition", variable="x", operator="==",
                           else_children=[step("deep", "teleport")])],
        )
        errors = validate_steps([tree], registry)
        assert errors == ["Step 'deep': unknown action type 'teleport'."]

    def test_all_errors_collected(self, registry):
        errors = validate_steps([step("a", "teleport"), step("b", "warp")], registry)
        assert len(errors) == 2


class TestEnsureValid:
    def test_raises_with_error_list(self, registry):
        with pytest.raises(ValidationError) as exc_info:
            ensure_valid([step("a", "teleport")], registry)
        assert exc_info.value.errors == ["Step 'a': unknown action type 'teleport'."]

    def test_valid_returns_none(self, registry):
        assert ensure_valid([step("a")], registry) is None
