"""Validation layer for modelvalidate records.

Resolves scenario rules, runs them through a rule engine, walks loaded
relations and aggregates every message into the record's error bag.
"""

from .contracts import Validatable, ValidationState, is_validatable
from .engine import JsonSchemaRuleEngine, RuleEngine
from .errors import ErrorBag
from .framework import (
    Validator,
    get_default_validator,
    reset_default_validator,
    set_default_validator,
    validate,
)
from .hooks import HookEvent, HookRegistry, default_registry
from .resolver import filter_rules, resolve_rules
from .traversal import RelationTraversal, TraversalContext

__all__ = [
    "Validatable",
    "ValidationState",
    "is_validatable",
    "JsonSchemaRuleEngine",
    "RuleEngine",
    "ErrorBag",
    "Validator",
    "get_default_validator",
    "set_default_validator",
    "reset_default_validator",
    "validate",
    "HookEvent",
    "HookRegistry",
    "default_registry",
    "resolve_rules",
    "filter_rules",
    "RelationTraversal",
    "TraversalContext",
]
