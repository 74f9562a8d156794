"""Models for rule declarations and scenario-restricted rule specs."""

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from modelvalidate.exceptions import RuleDeclarationError

# A rule expression is either a string ("integer", "max:255") or a mapping
# holding a JSON-schema fragment.
RuleExpression = Any

# Field name -> ordered rule specs, in any of the forms RuleSpec.coerce accepts.
RuleTable = Mapping[str, Any]


class RuleSpec(BaseModel):
    """A rule expression and the scenarios it is restricted to.

    ``scenarios`` of ``None`` means the rule applies in every scenario.
    """
    rule: RuleExpression
    scenarios: frozenset[str] | None = Field(alias="scenario", default=None)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("rule")
    @classmethod
    def validate_rule(cls, v):
        if isinstance(v, str):
            if not v.strip():
                raise ValueError("rule expression must not be empty")
            return v.strip()
        if isinstance(v, Mapping):
            return dict(v)
        raise ValueError(f"rule expression must be a string or a mapping, got: {type(v).__name__}")

    @field_validator("scenarios", mode="before")
    @classmethod
    def validate_scenarios(cls, v):
        if isinstance(v, str):
            return [v]
        return v

    def applies_to(self, scenario: str) -> bool:
        """Check whether this spec is active for ``scenario``."""
        return self.scenarios is None or scenario in self.scenarios

    @classmethod
    def coerce(cls, value: Any) -> "RuleSpec":
        """Build a spec from any of the accepted declaration shorthands.

        Accepted forms::

            "integer"
            {"type": "integer"}                       # JSON-schema fragment
            {"rule": "required", "scenarios": ["update"]}
            ("required", ["update"])
            ["required", {"scenario": ["update"]}]
        """
        if isinstance(value, RuleSpec):
            return value

        try:
            if isinstance(value, str):
                return cls(rule=value)

            if isinstance(value, Mapping):
                if "rule" in value:
                    return cls.model_validate(dict(value))
                return cls(rule=value)

            if isinstance(value, (list, tuple)):
                if not value or len(value) > 2:
                    raise RuleDeclarationError(
                        f"rule spec must hold a rule and optional scenarios, got: {value!r}"
                    )
                if len(value) == 1:
                    return cls(rule=value[0])

                rule, options = value
                if isinstance(options, Mapping):
                    options = options.get("scenario", options.get("scenarios"))
                return cls(rule=rule, scenarios=options)

        except ValidationError as e:
            raise RuleDeclarationError(f"Invalid rule spec {value!r}: {e}") from e

        raise RuleDeclarationError(f"Unsupported rule spec: {value!r}")


def normalize_rule_table(table: RuleTable) -> dict[str, list[RuleSpec]]:
    """Convert a rule declaration into ``{field: [RuleSpec, ...]}``.

    A field may map to a single spec shorthand instead of a list.
    """
    normalized: dict[str, list[RuleSpec]] = {}

    for field, specs in table.items():
        if isinstance(specs, (str, Mapping, RuleSpec)):
            specs = [specs]
        elif not isinstance(specs, Sequence):
            raise RuleDeclarationError(f"Rules for field {field!r} must be a sequence")

        normalized[field] = [RuleSpec.coerce(spec) for spec in specs]

    return normalized
