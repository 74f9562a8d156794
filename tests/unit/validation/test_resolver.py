"""Tests for scenario rule resolution."""

import pytest

from modelvalidate.exceptions import RuleDeclarationError
from modelvalidate.validation.resolver import filter_rules, normalize_fields, resolve_rules

DECLARATION = {
    "id": [["integer"], ["required", {"scenario": ["update"]}]],
    "name": [["string"], ["required"]],
    "slug": [["required", {"scenario": ["insert"]}]],
    "position": [["integer"]],
}


class TestResolveRules:
    """Test resolve_rules."""

    def test_unrestricted_rules_apply_everywhere(self):
        """Test that rules without scenarios are always active."""
        for scenario in ("insert", "update", "anything"):
            effective = resolve_rules(DECLARATION, scenario)
            assert effective["name"] == ["string", "required"]
            assert effective["position"] == ["integer"]

    def test_restricted_rules(self):
        """Test scenario-restricted rules."""
        assert resolve_rules(DECLARATION, "update")["id"] == ["integer", "required"]
        assert resolve_rules(DECLARATION, "insert")["id"] == ["integer"]

    def test_fields_without_active_rules_are_omitted(self):
        """Test that no field maps to an empty rule list."""
        assert "slug" not in resolve_rules(DECLARATION, "update")
        assert resolve_rules(DECLARATION, "insert")["slug"] == ["required"]

    def test_declaration_order_preserved(self):
        """Test field and rule ordering."""
        assert list(resolve_rules(DECLARATION, "insert")) == ["id", "name", "slug", "position"]

    def test_field_filter(self):
        """Test restricting the result to requested fields."""
        assert resolve_rules(DECLARATION, "insert", "name") == {"name": ["string", "required"]}
        assert resolve_rules(DECLARATION, "insert", ["position", "missing"]) == {"position": ["integer"]}

    def test_empty_field_filter_means_all(self):
        """Test that an empty filter keeps every field."""
        assert resolve_rules(DECLARATION, "insert", []) == resolve_rules(DECLARATION, "insert")

    def test_empty_declaration(self):
        """Test that nothing resolves from an empty declaration."""
        assert resolve_rules({}, "insert") == {}

    def test_shorthand_forms(self):
        """Test the accepted spec shorthands side by side."""
        declaration = {
            "a": "required",
            "b": {"type": "integer"},
            "c": [("required", ["update"]), {"rule": "max:5", "scenario": "update"}],
            "d": ["string", "max:10"],
        }

        assert resolve_rules(declaration, "update") == {
            "a": ["required"],
            "b": [{"type": "integer"}],
            "c": ["required", "max:5"],
            "d": ["string", "max:10"],
        }
        assert "c" not in resolve_rules(declaration, "insert")

    def test_invalid_declaration(self):
        """Test that a malformed spec raises."""
        with pytest.raises(RuleDeclarationError):
            resolve_rules({"name": [42]}, "insert")

        with pytest.raises(RuleDeclarationError):
            resolve_rules({"name": 42}, "insert")


class TestFilterRules:
    """Test filter_rules and normalize_fields."""

    def test_filter_drops_emptied_fields(self):
        """Test that fields losing every rule disappear."""
        effective = {"name": ["string", "required"], "position": ["integer"]}
        filtered = filter_rules(effective, lambda rule: rule == "required")
        assert filtered == {"name": ["required"]}

    def test_normalize_fields(self):
        """Test field argument normalization."""
        assert normalize_fields(None) == []
        assert normalize_fields("name") == ["name"]
        assert normalize_fields(("a", "b")) == ["a", "b"]
