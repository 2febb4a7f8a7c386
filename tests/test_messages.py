"""Tests for junction.validation.messages — templates and placeholders."""

from junction.validation.messages import FALLBACK, TEMPLATES, label, render, replacements, resolve_template
from junction.validation.rules import RuleName


class TestRender:
    def test_named_placeholders(self) -> None:
        assert render("The :attribute must be :min.", {"attribute": "age", "min": "18"}) == "The age must be 18."

    def test_positional_placeholders(self) -> None:
        assert render(":0 then :1", {"0": "a", "1": "b"}) == "a then b"

    def test_unknown_placeholders_left_alone(self) -> None:
        assert render("Costs :price", {}) == "Costs :price"


class TestReplacements:
    def test_between(self) -> None:
        values = replacements("age", 5, ("18", "65"))
        assert values["min"] == "18"
        assert values["max"] == "65"
        assert values["attribute"] == "age"
        assert values["value"] == "5"

    def test_other_uses_label(self) -> None:
        values = replacements("password", "x", ("old_password",), {"old_password": "current password"})
        assert values["other"] == "current password"

    def test_values_and_rest(self) -> None:
        values = replacements("status", None, ("type", "a", "b"))
        assert values["values"] == "type, a, b"
        assert values["rest"] == "a, b"
        assert values["value"] == ""


class TestLabel:
    def test_underscores_become_spaces(self) -> None:
        assert label("first_name") == "first name"

    def test_custom_attribute(self) -> None:
        assert label("dob", {"dob": "date of birth"}) == "date of birth"


class TestResolveTemplate:
    def test_default_template(self) -> None:
        assert resolve_template("name", "required") == TEMPLATES[RuleName.REQUIRED]

    def test_field_specific_first(self) -> None:
        messages = {"name.required": "A", "required": "B"}
        assert resolve_template("name", "required", messages) == "A"

    def test_rule_wide_second(self) -> None:
        assert resolve_template("name", "required", {"required": "B", "email.required": "C"}) == "B"

    def test_fallback_for_unknown_rule(self) -> None:
        assert resolve_template("name", "shiny") == FALLBACK

    def test_every_rule_has_a_template_except_nullable(self) -> None:
        assert set(RuleName) - set(TEMPLATES) == {RuleName.NULLABLE}
