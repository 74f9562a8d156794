"""Core validation framework for modelvalidate.

The ``Validator`` drives one validation pass over a record: lifecycle hooks,
scenario resolution, relation traversal, rule resolution and rule execution.
Rule failures never raise; they land in the record's error bag and
``validate`` returns ``False``.
"""

import logging
import re
from collections.abc import Iterable
from typing import Any

from modelvalidate.config import ModelValidateConfig, create_default_config
from modelvalidate.exceptions import ModelValidationError
from modelvalidate.validation.contracts import Validatable
from modelvalidate.validation.engine import JsonSchemaRuleEngine, RuleEngine
from modelvalidate.validation.errors import ErrorBag
from modelvalidate.validation.hooks import HookEvent, HookRegistry, default_registry, is_veto
from modelvalidate.validation.resolver import EffectiveRules, filter_rules, resolve_rules
from modelvalidate.validation.traversal import RelationTraversal, TraversalContext

logger = logging.getLogger(__name__)

_REQUIRED_RULE = re.compile(r"^required")


def _is_required_rule(rule: Any) -> bool:
    return isinstance(rule, str) and bool(_REQUIRED_RULE.match(rule))


class Validator:
    """Scenario-aware validator for records providing the Validatable capability."""

    def __init__(
        self,
        engine: RuleEngine | None = None,
        hooks: HookRegistry | None = None,
        config: ModelValidateConfig | None = None,
    ):
        self.config = config or create_default_config()
        self.engine = engine or JsonSchemaRuleEngine(self.config.engine)
        self.hooks = hooks if hooks is not None else default_registry
        self.traversal = RelationTraversal(self.config.relations, self._validate_related)

    def validate(self, record: Validatable, fields: str | Iterable[str] | None = None) -> bool:
        """Validate ``record`` and, through its loaded relations, related records.

        Args:
            record: Record to validate
            fields: Optional subset of fields whose rules should run

        Returns:
            True if the record ends the pass without errors
        """
        return self._validate(record, TraversalContext(), fields)

    def validate_or_raise(self, record: Validatable, fields: str | Iterable[str] | None = None) -> None:
        """Validate ``record`` and raise ``ModelValidationError`` on failure."""
        if not self.validate(record, fields):
            raise ModelValidationError(ErrorBag(record.validation_state.error_bag()))

    def _validate(
        self,
        record: Validatable,
        context: TraversalContext,
        fields: str | Iterable[str] | None = None,
    ) -> bool:
        record_name = type(record).__name__

        if is_veto(self.hooks.fire(HookEvent.VALIDATING, record)):
            logger.debug(f"Validation of {record_name} vetoed by a validating listener")
            return False

        state = record.validation_state
        state.errors = ErrorBag()

        scenario = self.resolve_scenario(record)
        logger.debug(f"Validating {record_name} in scenario '{scenario}'")

        # Relations first: traversal may backfill foreign keys the record's own rules check.
        if self.config.relations.enabled and state.relations_enabled:
            context.ancestors.add(id(record))
            try:
                self.traversal.traverse(record, context)
            finally:
                context.ancestors.discard(id(record))

        rules = self.scenario_rules(record, fields, scenario)
        if rules:
            data = {field: record.get_attribute(field) for field in rules}
            failures = self.engine.run(data, rules)
            if failures:
                state.error_bag().merge(failures)

        self.hooks.fire(HookEvent.VALIDATED, record)

        valid = not self.has_errors(record)
        logger.debug(f"{record_name} validation {'passed' if valid else 'failed'}")
        return valid

    def _validate_related(self, record: Validatable, context: TraversalContext) -> bool:
        """Validate a related record with its class's own validator, if it pins one."""
        validator = getattr(type(record), "validator", None)
        if not isinstance(validator, Validator):
            validator = self
        return validator._validate(record, context)

    def has_errors(self, record: Validatable) -> bool:
        errors = record.validation_state.errors
        return errors is not None and not errors.is_empty()

    def resolve_default_scenario(self, record: Validatable) -> str:
        """Default scenario: update for persisted records, insert otherwise."""
        scenarios = self.config.scenarios
        return scenarios.update if record.is_persisted() else scenarios.insert

    def resolve_scenario(self, record: Validatable) -> str:
        """The explicitly set scenario, or the default one when unset."""
        return record.validation_state.scenario or self.resolve_default_scenario(record)

    def scenario_rules(
        self,
        record: Validatable,
        fields: str | Iterable[str] | None = None,
        scenario: str | None = None,
    ) -> EffectiveRules:
        """Effective rules of ``record`` for ``scenario`` (default: the active one)."""
        return resolve_rules(
            record.get_validation_rules(),
            scenario or self.resolve_scenario(record),
            fields,
        )

    def is_required(self, record: Validatable, field: str) -> bool:
        """Check whether ``field`` is required in the record's active scenario.

        Only the field's ``required*`` rules are run, against the record's
        attributes with the field itself left out.
        """
        rules = filter_rules(self.scenario_rules(record, [field]), _is_required_rule)
        if not rules:
            return False

        data = record.get_attributes()
        data.pop(field, None)
        return field in self.engine.run(data, rules)


_default_validator: Validator | None = None


def get_default_validator() -> Validator:
    """Shared validator used by records that were not given one."""
    global _default_validator
    if _default_validator is None:
        _default_validator = Validator()
    return _default_validator


def set_default_validator(validator: Validator) -> None:
    global _default_validator
    _default_validator = validator


def reset_default_validator() -> None:
    global _default_validator
    _default_validator = None


def validate(record: Validatable, fields: str | Iterable[str] | None = None) -> bool:
    """Validate ``record`` with the default validator."""
    return get_default_validator().validate(record, fields)
