"""Recursive validation of already loaded related records.

Only relations that are materialized on the record are followed; traversal
never triggers a load. Child failures are re-keyed into the parent's error
bag under ``relation.field`` or ``relation[index].field``.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from modelvalidate.config import RelationsConfig
from modelvalidate.models.relations import LoadedRelation, RelationKind
from modelvalidate.validation.contracts import Validatable, is_validatable

logger = logging.getLogger(__name__)


@dataclass
class TraversalContext:
    """State shared by one top-level validation call.

    ``ancestors`` holds the ids of the records on the current path from the
    root, so only a record reached again through its own descendants is
    treated as a cycle.
    """
    ancestors: set[int] = field(default_factory=set)
    depth: int = 0

    def enter(self) -> "TraversalContext":
        return TraversalContext(self.ancestors, self.depth + 1)


# Validates a child record within the given context and returns success.
ChildValidator = Callable[[Validatable, TraversalContext], bool]


def _is_unset(value: Any) -> bool:
    return value is None or value == ""


class RelationTraversal:
    """Validates loaded relations and folds their errors into the parent."""

    def __init__(self, config: RelationsConfig, validate_child: ChildValidator):
        self.config = config
        self.validate_child = validate_child

    def traverse(self, record: Validatable, context: TraversalContext) -> None:
        """Validate every loaded relation of ``record``."""
        if self.config.max_depth is not None and context.depth >= self.config.max_depth:
            logger.debug(f"Max relation depth {self.config.max_depth} reached, not descending")
            return

        state = record.validation_state

        for relation in record.get_loaded_relations():
            if not state.follows(relation.name):
                logger.debug(f"Relation {relation.name} not in the validated relations, skipping")
                continue

            target = relation.target
            if target is None:
                continue

            if relation.kind.is_to_many:
                # Keyed collections hold their records as values.
                items = target.values() if isinstance(target, Mapping) else target
                for index, item in enumerate(items):
                    self._visit(record, relation, item, f"{relation.name}[{index}]", context)
            else:
                self._visit(record, relation, target, relation.name, context)

    def _visit(
        self,
        record: Validatable,
        relation: LoadedRelation,
        child: Any,
        path: str,
        context: TraversalContext,
    ) -> None:
        if not is_validatable(child):
            logger.debug(f"Related object at {path} is not validatable, skipping")
            return

        if relation.kind.child_holds_key:
            self._backfill_child_key(record, relation, child)

        if self.config.guard_cycles and id(child) in context.ancestors:
            logger.debug(f"Related record at {path} is an ancestor, not validating it again")
        elif not self.validate_child(child, context.enter()):
            self._fold_errors(record, child, path)

        if relation.kind is RelationKind.TO_ONE_OWNING:
            self._backfill_parent_key(record, relation, child)

    def _fold_errors(self, record: Validatable, child: Validatable, path: str) -> None:
        bag = record.validation_state.error_bag()
        separator = self.config.key_separator

        for field_name, messages in child.validation_state.error_bag().messages().items():
            bag.add(f"{path}{separator}{field_name}", messages)

    def _backfill_parent_key(self, record: Validatable, relation: LoadedRelation, child: Validatable) -> None:
        """Point the parent's foreign key at the child, or at the unresolved sentinel."""
        descriptor = relation.descriptor

        if child.is_persisted() and not _is_unset(child.get_key()):
            value = child.get_attribute(descriptor.owner_key)
        else:
            value = self.config.unresolved_key

        record.set_attribute(descriptor.foreign_key, value)
        logger.debug(f"Set {descriptor.foreign_key}={value!r} from relation {relation.name}")

    def _backfill_child_key(self, record: Validatable, relation: LoadedRelation, child: Validatable) -> None:
        """Fill an unset child foreign key from the parent's key."""
        descriptor = relation.descriptor
        if not _is_unset(child.get_attribute(descriptor.foreign_key)):
            return

        owner_key = descriptor.owner_key or record.get_key_name()
        value = record.get_attribute(owner_key)
        if _is_unset(value):
            value = self.config.unresolved_key

        child.set_attribute(descriptor.foreign_key, value)
        logger.debug(f"Backfilled {relation.name}.{descriptor.foreign_key}={value!r}")
