"""Rule execution backed by jsonschema.

Each rule expression is compiled into a JSON-schema fragment and checked with
``Draft202012Validator`` against a single field value. Named rules follow the
Laravel vocabulary (``required``, ``integer``, ``max:255``, ...); mapping
expressions are used verbatim as schemas.
"""

import enum
import json
import logging
import re
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Protocol, runtime_checkable

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError, best_match

from modelvalidate.config import EngineConfig
from modelvalidate.exceptions import RuleDeclarationError, UnknownRuleError

logger = logging.getLogger(__name__)


@runtime_checkable
class RuleEngine(Protocol):
    """Executes effective rules against field values."""

    def run(self, data: Mapping[str, Any], rules: Mapping[str, list[Any]]) -> dict[str, list[str]]:
        """Return failing fields mapped to their messages; empty on success."""
        ...


BLANK_SCHEMA = {
    "anyOf": [
        {"type": "null"},
        {"type": "string", "pattern": r"^\s*$"},
        {"type": "array", "maxItems": 0},
        {"type": "object", "maxProperties": 0},
    ]
}

REQUIRED_SCHEMA = {"not": BLANK_SCHEMA}

IMPLICIT_RULES = {"required", "required_with", "required_without", "required_if", "required_unless"}

TYPE_SCHEMAS: dict[str, dict | None] = {
    "nullable": None,
    "string": {"type": "string"},
    "integer": {"type": "integer"},
    "numeric": {"type": "number"},
    "boolean": {"type": "boolean"},
    "array": {"type": "array"},
    "object": {"type": "object"},
    "email": {"type": "string", "format": "email"},
    "date": {"type": "string", "format": "date"},
    "date_time": {"type": "string", "format": "date-time"},
    "uuid": {"type": "string", "format": "uuid"},
    "url": {"type": "string", "format": "uri"},
    "accepted": {"enum": [True, 1, "1", "yes", "on", "true"]},
}

DEFAULT_MESSAGES = {
    "required": "The {attribute} field is required.",
    "required_with": "The {attribute} field is required when {values} is present.",
    "required_without": "The {attribute} field is required when {values} is not present.",
    "required_if": "The {attribute} field is required when {other} is {value}.",
    "required_unless": "The {attribute} field is required unless {other} is in {values}.",
    "string": "The {attribute} must be a string.",
    "integer": "The {attribute} must be an integer.",
    "numeric": "The {attribute} must be a number.",
    "boolean": "The {attribute} field must be true or false.",
    "array": "The {attribute} must be an array.",
    "object": "The {attribute} must be an object.",
    "email": "The {attribute} must be a valid email address.",
    "date": "The {attribute} is not a valid date.",
    "date_time": "The {attribute} is not a valid date and time.",
    "uuid": "The {attribute} must be a valid UUID.",
    "url": "The {attribute} format is invalid.",
    "accepted": "The {attribute} must be accepted.",
    "min": "The {attribute} must be at least {min}.",
    "max": "The {attribute} may not be greater than {max}.",
    "between": "The {attribute} must be between {min} and {max}.",
    "in": "The selected {attribute} is invalid.",
    "not_in": "The selected {attribute} is invalid.",
    "regex": "The {attribute} format is invalid.",
    "schema": "The {attribute} is invalid: {detail}",
}


@dataclass
class CompiledRule:
    """A rule expression turned into a schema plus message parameters."""
    name: str
    schema: dict | None
    args: tuple[str, ...] = ()
    params: dict[str, str] = field(default_factory=dict)

    @property
    def implicit(self) -> bool:
        return self.name in IMPLICIT_RULES


class _SafeParams(dict):
    def __missing__(self, key):
        return "{" + key + "}"


def _number(raw: str) -> int | float:
    try:
        return int(raw)
    except ValueError:
        try:
            return float(raw)
        except ValueError:
            raise RuleDeclarationError(f"Expected a number, got: {raw!r}") from None


def _size_schema(keyword: str, bound: int | float) -> dict:
    if keyword == "min":
        return {"minimum": bound, "minLength": bound, "minItems": bound, "minProperties": bound}
    return {"maximum": bound, "maxLength": bound, "maxItems": bound, "maxProperties": bound}


def _choices(args: tuple[str, ...]) -> list:
    choices: list[Any] = []
    for arg in args:
        choices.append(arg)
        try:
            choices.append(_number(arg))
        except RuleDeclarationError:
            pass
    return choices


def _to_json_value(value: Any) -> Any:
    """Convert common ORM attribute types into JSON-schema friendly values."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (tuple, set, frozenset)):
        return list(value)
    return value


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _stringify(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class JsonSchemaRuleEngine:
    """Rule engine evaluating each rule as a JSON-schema fragment."""

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()
        self._custom: dict[str, tuple[dict, str | None]] = {}
        self._compiled: dict[str, CompiledRule] = {}
        self._validators: dict[str, Draft202012Validator] = {}
        self._blank = Draft202012Validator(BLANK_SCHEMA)

    def extend(self, name: str, schema: dict, message: str | None = None) -> None:
        """Register a named rule backed by ``schema``."""
        self._check_schema(schema)
        self._custom[name] = (schema, message)
        self._compiled = {
            expression: compiled
            for expression, compiled in self._compiled.items()
            if expression.partition(":")[0].strip() != name
        }
        logger.debug(f"Registered custom rule: {name}")

    def compile(self, expression: Any) -> CompiledRule:
        """Compile a rule expression, caching string expressions."""
        if isinstance(expression, Mapping):
            schema = dict(expression)
            self._check_schema(schema)
            return CompiledRule("schema", schema)

        if not isinstance(expression, str):
            raise UnknownRuleError(expression)

        compiled = self._compiled.get(expression)
        if compiled is None:
            compiled = self._compile_string(expression)
            self._compiled[expression] = compiled
        return compiled

    def _compile_string(self, expression: str) -> CompiledRule:
        name, _, raw_args = expression.partition(":")
        name = name.strip()

        if name == "regex":
            pattern = raw_args
            if len(pattern) > 1 and pattern.startswith("/") and pattern.endswith("/"):
                pattern = pattern[1:-1]
            try:
                re.compile(pattern)
            except re.error as e:
                raise RuleDeclarationError(f"Invalid regex rule {expression!r}: {e}") from e
            return CompiledRule(name, {"type": "string", "pattern": pattern}, (pattern,))

        args = tuple(arg.strip() for arg in raw_args.split(",")) if raw_args else ()

        if name in self._custom:
            schema, _ = self._custom[name]
            return CompiledRule(name, schema, args)

        if name in TYPE_SCHEMAS:
            return CompiledRule(name, TYPE_SCHEMAS[name], args)

        if name in IMPLICIT_RULES:
            return self._compile_implicit(expression, name, args)

        if name in ("min", "max"):
            if len(args) != 1:
                raise RuleDeclarationError(f"Rule {expression!r} takes exactly one argument")
            return CompiledRule(name, _size_schema(name, _number(args[0])), args, {name: args[0]})

        if name == "between":
            if len(args) != 2:
                raise RuleDeclarationError(f"Rule {expression!r} takes exactly two arguments")
            schema = {**_size_schema("min", _number(args[0])), **_size_schema("max", _number(args[1]))}
            return CompiledRule(name, schema, args, {"min": args[0], "max": args[1]})

        if name == "in":
            return CompiledRule(name, {"enum": _choices(args)}, args)

        if name == "not_in":
            return CompiledRule(name, {"not": {"enum": _choices(args)}}, args)

        raise UnknownRuleError(expression)

    def _compile_implicit(self, expression: str, name: str, args: tuple[str, ...]) -> CompiledRule:
        if name == "required":
            return CompiledRule(name, REQUIRED_SCHEMA)

        if not args:
            raise RuleDeclarationError(f"Rule {expression!r} needs at least one argument")

        if name in ("required_with", "required_without"):
            return CompiledRule(name, REQUIRED_SCHEMA, args, {"values": " / ".join(args)})

        if len(args) < 2:
            raise RuleDeclarationError(f"Rule {expression!r} needs a field and at least one value")
        return CompiledRule(
            name,
            REQUIRED_SCHEMA,
            args,
            {"other": args[0], "value": args[1], "values": ", ".join(args[1:])},
        )

    def _check_schema(self, schema: dict) -> None:
        try:
            Draft202012Validator.check_schema(schema)
        except SchemaError as e:
            raise RuleDeclarationError(f"Invalid schema rule: {e.message}") from e

    def _validator(self, rule: CompiledRule) -> Draft202012Validator:
        key = json.dumps(rule.schema, sort_keys=True, default=str)
        validator = self._validators.get(key)
        if validator is None:
            format_checker = Draft202012Validator.FORMAT_CHECKER if self.config.format_checks else None
            validator = Draft202012Validator(rule.schema, format_checker=format_checker)
            self._validators[key] = validator
        return validator

    def _applies(self, rule: CompiledRule, data: Mapping[str, Any]) -> bool:
        """Check the condition of a conditional implicit rule."""
        if rule.name == "required":
            return True
        if rule.name == "required_with":
            return any(not self._blank.is_valid(_to_json_value(data.get(other))) for other in rule.args)
        if rule.name == "required_without":
            return any(self._blank.is_valid(_to_json_value(data.get(other))) for other in rule.args)

        other, *values = rule.args
        matches = _stringify(data.get(other)) in values
        return matches if rule.name == "required_if" else not matches

    def _message(self, field_name: str, rule: CompiledRule, detail: str = "") -> str:
        template = self.config.messages.get(rule.name)
        if template is None and rule.name in self._custom:
            template = self._custom[rule.name][1]
        if template is None:
            template = DEFAULT_MESSAGES.get(rule.name, "The {attribute} is invalid.")

        attribute = self.config.attributes.get(field_name, field_name.replace("_", " "))
        params = _SafeParams(attribute=attribute, detail=detail, **rule.params)
        return template.format_map(params)

    def run(self, data: Mapping[str, Any], rules: Mapping[str, list[Any]]) -> dict[str, list[str]]:
        """Validate ``data`` against ``rules``.

        Blank values (``None`` or whitespace-only strings) are only checked by
        implicit ``required*`` rules. A failing implicit rule ends the checks
        for that field.
        """
        failures: dict[str, list[str]] = {}

        for field_name, expressions in rules.items():
            compiled = [self.compile(expression) for expression in expressions]
            value = _to_json_value(data.get(field_name))
            messages = []

            for rule in compiled:
                if rule.schema is None:
                    continue
                if rule.implicit:
                    if not self._applies(rule, data):
                        continue
                elif _is_blank(value):
                    continue

                error = best_match(self._validator(rule).iter_errors(value))
                if error is None:
                    continue

                messages.append(self._message(field_name, rule, error.message))
                if rule.implicit:
                    break

            if messages:
                failures[field_name] = messages

        if failures:
            logger.debug(f"Rule engine reported failures for: {', '.join(failures)}")
        return failures
