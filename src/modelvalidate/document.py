"""JSON documents describing record graphs.

A document carries a record's rules, attributes and loaded relations, so a
graph can be validated without a database::

    {
      "rules": {"author_id": ["required", "integer"]},
      "attributes": {"title": "Hello"},
      "relations": {
        "author": {
          "kind": "to_one_owning",
          "foreignKey": "author_id",
          "ownerKey": "id",
          "record": {"rules": {"name": ["required"]}, "attributes": {}}
        }
      }
    }
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from modelvalidate.exceptions import DocumentError
from modelvalidate.models.relations import RelationDescriptor, RelationKind
from modelvalidate.models.rules import RuleTable, normalize_rule_table
from modelvalidate.record import Record

logger = logging.getLogger(__name__)


class RelationDocument(BaseModel):
    """A loaded relation inside a record document."""
    kind: RelationKind
    foreign_key: str | None = Field(alias="foreignKey", default=None)
    owner_key: str | None = Field(alias="ownerKey", default=None)
    record: "RecordDocument | None" = None
    records: list["RecordDocument"] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_targets(self):
        if self.kind.is_to_many and self.record is not None:
            raise ValueError(f"{self.kind.value} relations take 'records', not 'record'")
        if not self.kind.is_to_many and self.records:
            raise ValueError(f"{self.kind.value} relations take 'record', not 'records'")
        self.descriptor()  # raises when the keys the kind needs are missing
        return self

    def descriptor(self) -> RelationDescriptor:
        return RelationDescriptor(self.kind, self.foreign_key, self.owner_key)

    model_config = ConfigDict(populate_by_name=True)


class RecordDocument(BaseModel):
    """A record, its rules and its loaded relations."""
    rules: dict[str, Any] = Field(default_factory=dict)
    attributes: dict[str, Any] = Field(default_factory=dict)
    exists: bool = False
    key_name: str = Field(alias="keyName", default="id")
    scenario: str | None = None
    validate_relations: bool | list[str] = Field(alias="validateRelations", default=True)
    relations: dict[str, RelationDocument] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


RelationDocument.model_rebuild()


class DocumentRecord(Record):
    """Record whose rules and relations come from a document."""

    def __init__(self, rules: RuleTable, attributes: dict[str, Any] | None = None, *,
                 exists: bool = False, key_name: str = "id"):
        super().__init__(attributes, exists=exists)
        self._rules = normalize_rule_table(rules)
        self.key_name = key_name

    def get_validation_rules(self) -> RuleTable:
        return self._rules


def build_record(document: RecordDocument) -> DocumentRecord:
    """Materialize ``document`` and its nested relations as records."""
    record = DocumentRecord(
        document.rules,
        document.attributes,
        exists=document.exists,
        key_name=document.key_name,
    )
    record.set_scenario(document.scenario)
    record.set_validate_relations(document.validate_relations)

    for name, relation in document.relations.items():
        record.define_relation(name, relation.descriptor())
        if relation.kind.is_to_many:
            record.set_relation(name, [build_record(child) for child in relation.records])
        else:
            record.set_relation(name, build_record(relation.record) if relation.record else None)

    return record


def load_document(path: str | Path) -> RecordDocument:
    """Read a record document from a JSON file.

    Raises:
        DocumentError: If the file is missing, not JSON or not a record document
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise DocumentError(f"Document not found: {path}") from e
    except json.JSONDecodeError as e:
        raise DocumentError(f"Invalid JSON in document {path}: {e}") from e

    try:
        document = RecordDocument.model_validate(data)
    except ValidationError as e:
        raise DocumentError(f"Invalid record document {path}: {e}") from e

    logger.debug(f"Loaded record document from {path}")
    return document
