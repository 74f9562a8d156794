"""Exception hierarchy for modelvalidate.

Ordinary rule failures are never raised: they are collected into the record's
error bag. The exceptions below cover malformed declarations, broken
collaborators and the opt-in raising entry point.
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from modelvalidate.validation.errors import ErrorBag


class ModelValidateError(Exception):
    """Base class for every modelvalidate exception."""


class RuleDeclarationError(ModelValidateError, ValueError):
    """A rule declaration could not be interpreted."""


class UnknownRuleError(ModelValidateError, LookupError):
    """The rule engine was asked to run a rule it does not know."""

    def __init__(self, rule: Any):
        self.rule = rule
        super().__init__(f"Unknown validation rule: {rule!r}")


class DocumentError(ModelValidateError):
    """A record document could not be loaded."""


class ModelValidationError(ModelValidateError):
    """Raised by ``validate_or_raise`` when a record fails validation."""

    def __init__(self, errors: "ErrorBag | Mapping[str, Sequence[str]]"):
        # Imported here: the validation package imports this module.
        from modelvalidate.validation.errors import ErrorBag

        self.errors = errors if isinstance(errors, ErrorBag) else ErrorBag(errors)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        segments = []
        for field, messages in self.errors.messages().items():
            segments.append(f"{field}: {'; '.join(messages)}")
        return "; ".join(segments) or "Validation failed"
