"""Capability contract a record must satisfy to take part in validation."""

from collections.abc import Collection
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from modelvalidate.models.relations import LoadedRelation
from modelvalidate.models.rules import RuleTable
from modelvalidate.validation.errors import ErrorBag


@dataclass
class ValidationState:
    """Per-record validation state.

    ``validate_relations`` is either a boolean or the names of the only
    relations traversal may follow.
    """
    scenario: str | None = None
    errors: ErrorBag | None = None
    validate_relations: bool | Collection[str] = True

    def error_bag(self) -> ErrorBag:
        """The record's bag, created on first use."""
        if self.errors is None:
            self.errors = ErrorBag()
        return self.errors

    def follows(self, relation_name: str) -> bool:
        if isinstance(self.validate_relations, bool):
            return self.validate_relations
        return relation_name in self.validate_relations

    @property
    def relations_enabled(self) -> bool:
        if isinstance(self.validate_relations, bool):
            return self.validate_relations
        return len(self.validate_relations) > 0


@runtime_checkable
class Validatable(Protocol):
    """Structural interface of a validatable record."""

    validation_state: ValidationState

    def get_validation_rules(self) -> RuleTable:
        ...

    def get_attribute(self, name: str) -> Any:
        ...

    def get_attributes(self) -> dict[str, Any]:
        ...

    def set_attribute(self, name: str, value: Any) -> None:
        ...

    def is_persisted(self) -> bool:
        ...

    def get_key_name(self) -> str:
        ...

    def get_key(self) -> Any:
        ...

    def get_loaded_relations(self) -> list[LoadedRelation]:
        ...


def is_validatable(obj: Any) -> bool:
    """Probe whether ``obj`` provides the validation capability."""
    return not isinstance(obj, type) and isinstance(obj, Validatable)
