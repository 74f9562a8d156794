"""Validation capability for SQLAlchemy declarative models.

Mix ``SQLAlchemyValidatable`` into a mapped class and define
``get_validation_rules``. Relations are described from the mapper and only
those already present in the instance state are considered loaded, so a
validation pass never emits a lazy load.
"""

import logging
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.orm import Mapper, RelationshipDirection, RelationshipProperty

from modelvalidate.models.relations import LoadedRelation, RelationDescriptor, RelationKind
from modelvalidate.record import ValidatesAttributes

logger = logging.getLogger(__name__)


def _column_attribute(mapper: Mapper, column: Any) -> str:
    return mapper.get_property_by_column(column).key


def describe_relationship(parent: Mapper, relationship: RelationshipProperty) -> RelationDescriptor:
    """Classify a SQLAlchemy relationship for relation traversal."""
    direction = relationship.direction
    related = relationship.mapper.class_

    if direction is RelationshipDirection.MANYTOMANY or relationship.secondary is not None:
        return RelationDescriptor(RelationKind.TO_MANY_THROUGH_JOIN, related=related)

    local, remote = relationship.local_remote_pairs[0]

    if direction is RelationshipDirection.MANYTOONE:
        return RelationDescriptor(
            RelationKind.TO_ONE_OWNING,
            foreign_key=_column_attribute(parent, local),
            owner_key=_column_attribute(relationship.mapper, remote),
            related=related,
        )

    kind = RelationKind.TO_MANY_OWNED if relationship.uselist else RelationKind.TO_ONE_OWNED
    return RelationDescriptor(
        kind,
        foreign_key=_column_attribute(relationship.mapper, remote),
        owner_key=_column_attribute(parent, local),
        related=related,
    )


class SQLAlchemyValidatable(ValidatesAttributes):
    """Validation capability backed by SQLAlchemy instance state."""

    def get_attribute(self, name: str) -> Any:
        return getattr(self, name, None)

    def get_attributes(self) -> dict[str, Any]:
        mapper = inspect(type(self))
        return {attr.key: getattr(self, attr.key) for attr in mapper.column_attrs}

    def set_attribute(self, name: str, value: Any) -> None:
        setattr(self, name, value)

    def is_persisted(self) -> bool:
        return inspect(self).has_identity

    def get_key_name(self) -> str:
        mapper = inspect(type(self))
        return _column_attribute(mapper, mapper.primary_key[0])

    def get_key(self) -> Any:
        return self.get_attribute(self.get_key_name())

    def get_loaded_relations(self) -> list[LoadedRelation]:
        state = inspect(self)
        loaded = []

        for relationship in state.mapper.relationships:
            if relationship.key not in state.dict:
                continue
            descriptor = describe_relationship(state.mapper, relationship)
            loaded.append(LoadedRelation(relationship.key, descriptor, state.dict[relationship.key]))

        return loaded
