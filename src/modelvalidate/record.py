"""Record-level validation API and an in-memory record implementation."""

from collections.abc import Collection, Iterable, Mapping
from typing import Any, ClassVar

from modelvalidate.models.relations import LoadedRelation, RelationDescriptor, RelationKind
from modelvalidate.models.rules import RuleTable
from modelvalidate.validation.contracts import ValidationState
from modelvalidate.validation.errors import ErrorBag
from modelvalidate.validation.framework import Validator, get_default_validator
from modelvalidate.validation.hooks import HookCallback, HookEvent
from modelvalidate.validation.resolver import EffectiveRules


class ValidatesAttributes:
    """Validation helpers for record classes.

    Subclasses provide the rest of the ``Validatable`` capability (attribute
    access, keys, loaded relations) and declare their rules in
    ``get_validation_rules``. Every operation delegates to a ``Validator``:
    the class attribute ``validator`` when set, the shared default otherwise.
    """

    # Left unannotated so ORM declarative scanning ignores them.
    validator = None
    validate_relations = True

    def get_validation_rules(self) -> RuleTable:
        """Rules of this record, e.g. ``{"name": ["required", "string"]}``."""
        raise NotImplementedError(f"{type(self).__name__} must define get_validation_rules()")

    @property
    def validation_state(self) -> ValidationState:
        state = getattr(self, "_validation_state", None)
        if state is None:
            state = ValidationState(validate_relations=type(self).validate_relations)
            self._validation_state = state
        return state

    @classmethod
    def get_validator(cls) -> Validator:
        return cls.validator or get_default_validator()

    def validate(self, fields: str | Iterable[str] | None = None) -> bool:
        return self.get_validator().validate(self, fields)

    def validate_or_raise(self, fields: str | Iterable[str] | None = None) -> None:
        self.get_validator().validate_or_raise(self, fields)

    @classmethod
    def validating(cls, callback: HookCallback) -> HookCallback:
        """Register a listener called before each validation of this class.

        Returning ``False`` from the listener cancels the validation.
        """
        return cls.get_validator().hooks.listen(HookEvent.VALIDATING, cls, callback)

    @classmethod
    def validated(cls, callback: HookCallback) -> HookCallback:
        """Register a listener called after each validation of this class."""
        return cls.get_validator().hooks.listen(HookEvent.VALIDATED, cls, callback)

    # Scenarios

    def get_scenario(self) -> str | None:
        return self.validation_state.scenario

    def set_scenario(self, scenario: str | None):
        self.validation_state.scenario = scenario
        return self

    def is_scenario(self, name: str | None) -> bool:
        return (self.validation_state.scenario or "") == (name or "")

    def reset_scenario(self):
        self.validation_state.scenario = ""
        return self

    def resolve_default_scenario(self) -> str:
        return self.get_validator().resolve_default_scenario(self)

    def scenario_rules(
        self,
        fields: str | Iterable[str] | None = None,
        scenario: str | None = None,
    ) -> EffectiveRules:
        return self.get_validator().scenario_rules(self, fields, scenario)

    def is_required(self, field: str) -> bool:
        return self.get_validator().is_required(self, field)

    def set_validate_relations(self, value: bool | Collection[str]):
        self.validation_state.validate_relations = value
        return self

    # Errors

    def get_errors(self) -> ErrorBag:
        errors = self.validation_state.errors
        return errors if errors is not None else ErrorBag()

    def set_errors(self, errors: ErrorBag | Mapping[str, Any]) -> None:
        """Merge ``errors`` into the current bag, or adopt them when there is none."""
        state = self.validation_state
        if state.errors is None:
            state.errors = errors if isinstance(errors, ErrorBag) else ErrorBag(errors)
        else:
            state.errors.merge(errors)

    def add_error(self, key: str, message: str | Iterable[str]) -> None:
        self.validation_state.error_bag().add(key, message)

    def flush_errors(self) -> None:
        self.validation_state.errors = ErrorBag()

    def has_errors(self) -> bool:
        return self.get_validator().has_errors(self)

    def attribute_errors(self, attribute: str) -> list[str]:
        return self.get_errors().get(attribute)

    def attribute_has_errors(self, attribute: str) -> bool:
        return self.get_errors().has(attribute)

    def remove_attribute_errors(self, attribute: str) -> None:
        self.validation_state.error_bag().remove(attribute)


def belongs_to(foreign_key: str, owner_key: str = "id", related: type | None = None) -> RelationDescriptor:
    """This record holds ``foreign_key`` pointing at the related record's ``owner_key``."""
    return RelationDescriptor(RelationKind.TO_ONE_OWNING, foreign_key, owner_key, related)


def has_one(foreign_key: str, local_key: str | None = None, related: type | None = None) -> RelationDescriptor:
    """The related record holds ``foreign_key`` pointing at this record."""
    return RelationDescriptor(RelationKind.TO_ONE_OWNED, foreign_key, local_key, related)


def has_many(foreign_key: str, local_key: str | None = None, related: type | None = None) -> RelationDescriptor:
    """Each related record holds ``foreign_key`` pointing at this record."""
    return RelationDescriptor(RelationKind.TO_MANY_OWNED, foreign_key, local_key, related)


def belongs_to_many(related: type | None = None) -> RelationDescriptor:
    """Related records are linked through a join table."""
    return RelationDescriptor(RelationKind.TO_MANY_THROUGH_JOIN, related=related)


class Record(ValidatesAttributes):
    """In-memory record with attributes, a persisted flag and loaded relations.

    Relations are declared on the class::

        class Post(Record):
            relations = {"author": belongs_to("author_id")}

            def get_validation_rules(self):
                return {"author_id": ["required", "integer"]}
    """

    key_name: ClassVar[str] = "id"
    relations: ClassVar[dict[str, RelationDescriptor]] = {}

    def __init__(self, attributes: Mapping[str, Any] | None = None, *, exists: bool = False, **values: Any):
        self._attributes: dict[str, Any] = {**(attributes or {}), **values}
        self._loaded: dict[str, Any] = {}
        self._relation_descriptors = dict(type(self).relations)
        self.exists = exists

    # Attributes

    def get_attribute(self, name: str) -> Any:
        return self._attributes.get(name)

    def get_attributes(self) -> dict[str, Any]:
        return dict(self._attributes)

    def set_attribute(self, name: str, value: Any) -> None:
        self._attributes[name] = value

    def fill(self, values: Mapping[str, Any]):
        self._attributes.update(values)
        return self

    def __getitem__(self, name: str) -> Any:
        return self.get_attribute(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set_attribute(name, value)

    def is_persisted(self) -> bool:
        return self.exists

    def get_key_name(self) -> str:
        return self.key_name

    def get_key(self) -> Any:
        return self.get_attribute(self.key_name)

    # Relations

    def define_relation(self, name: str, descriptor: RelationDescriptor):
        """Declare a relation on this instance only."""
        self._relation_descriptors[name] = descriptor
        return self

    def relation_descriptor(self, name: str) -> RelationDescriptor:
        try:
            return self._relation_descriptors[name]
        except KeyError:
            raise KeyError(f"{type(self).__name__} has no relation named '{name}'") from None

    def set_relation(self, name: str, value: Any):
        """Mark relation ``name`` as loaded with ``value`` (a record, records or None)."""
        descriptor = self.relation_descriptor(name)
        if isinstance(value, Mapping) and descriptor.kind.is_to_many:
            value = list(value.values())
        elif value is not None and descriptor.kind.is_to_many:
            value = list(value)
        self._loaded[name] = value
        return self

    def unset_relation(self, name: str):
        self._loaded.pop(name, None)
        return self

    def get_relation(self, name: str) -> Any:
        return self._loaded.get(name)

    def relation_loaded(self, name: str) -> bool:
        return name in self._loaded

    def get_loaded_relations(self) -> list[LoadedRelation]:
        return [
            LoadedRelation(name, self.relation_descriptor(name), target)
            for name, target in self._loaded.items()
        ]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._attributes!r}, exists={self.exists})"
