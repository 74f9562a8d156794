"""Scenario rule resolution.

Turns a record's rule declaration into the flat per-field rule lists that are
active for one scenario.
"""

from collections.abc import Callable, Iterable

from modelvalidate.models.rules import RuleExpression, RuleTable, normalize_rule_table

EffectiveRules = dict[str, list[RuleExpression]]


def normalize_fields(fields: str | Iterable[str] | None) -> list[str]:
    """Accept a single field name, an iterable of names or nothing."""
    if fields is None:
        return []
    if isinstance(fields, str):
        return [fields]
    return list(fields)


def resolve_rules(
    declaration: RuleTable,
    scenario: str,
    fields: str | Iterable[str] | None = None,
) -> EffectiveRules:
    """Compute the effective rules of ``declaration`` for ``scenario``.

    Args:
        declaration: Field name to rule specs
        scenario: Active scenario name
        fields: Optional subset of fields to keep

    Returns:
        Field name to rule expressions, in declaration order. Fields without
        any spec active in ``scenario`` are left out; an empty result means
        there is nothing to validate.
    """
    requested = normalize_fields(fields)
    table = normalize_rule_table(declaration)

    if requested:
        wanted = set(requested)
        table = {field: specs for field, specs in table.items() if field in wanted}

    effective: EffectiveRules = {}
    for field, specs in table.items():
        rules = [spec.rule for spec in specs if spec.applies_to(scenario)]
        if rules:
            effective[field] = rules

    return effective


def filter_rules(
    effective: EffectiveRules,
    predicate: Callable[[RuleExpression], bool],
) -> EffectiveRules:
    """Keep only the expressions matching ``predicate``, dropping emptied fields."""
    filtered: EffectiveRules = {}
    for field, rules in effective.items():
        kept = [rule for rule in rules if predicate(rule)]
        if kept:
            filtered[field] = kept
    return filtered
