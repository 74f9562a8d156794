"""Relation classification used by the traversal engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class RelationKind(str, Enum):
    """How a related record is attached to its parent."""
    TO_ONE_OWNING = "to_one_owning"          # parent holds the foreign key (belongs to)
    TO_ONE_OWNED = "to_one_owned"            # child holds the foreign key (has one)
    TO_MANY_OWNED = "to_many_owned"          # children hold the foreign key (has many)
    TO_MANY_THROUGH_JOIN = "to_many_through_join"  # join table (belongs to many)

    @property
    def is_to_many(self) -> bool:
        return self in (RelationKind.TO_MANY_OWNED, RelationKind.TO_MANY_THROUGH_JOIN)

    @property
    def child_holds_key(self) -> bool:
        return self in (RelationKind.TO_ONE_OWNED, RelationKind.TO_MANY_OWNED)


@dataclass(frozen=True)
class RelationDescriptor:
    """Static description of a relation.

    ``foreign_key`` names the attribute holding the reference: on the parent
    for owning relations, on the child for owned ones. ``owner_key`` names
    the referenced attribute: on the child for owning relations, on the
    parent for owned ones, where it defaults to the parent's primary key.
    """
    kind: RelationKind
    foreign_key: str | None = None
    owner_key: str | None = None
    related: type | None = None

    def __post_init__(self):
        kind = RelationKind(self.kind)
        object.__setattr__(self, "kind", kind)

        if kind is RelationKind.TO_ONE_OWNING and not (self.foreign_key and self.owner_key):
            raise ValueError("to-one-owning relations need foreign_key and owner_key")
        if kind.child_holds_key and not self.foreign_key:
            raise ValueError(f"{kind.value} relations need a foreign_key")


@dataclass
class LoadedRelation:
    """A relation whose target objects are already materialized."""
    name: str
    descriptor: RelationDescriptor
    target: Any

    @property
    def kind(self) -> RelationKind:
        return self.descriptor.kind
