"""Data models for rule declarations and relation descriptors."""

from modelvalidate.models.relations import LoadedRelation, RelationDescriptor, RelationKind
from modelvalidate.models.rules import RuleExpression, RuleSpec, RuleTable, normalize_rule_table

__all__ = [
    "RuleSpec",
    "RuleExpression",
    "RuleTable",
    "normalize_rule_table",
    "RelationKind",
    "RelationDescriptor",
    "LoadedRelation",
]
