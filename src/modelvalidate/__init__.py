"""modelvalidate - Scenario-aware validation for ORM records.

Records declare rules per field, optionally restricted to scenarios such as
"insert" or "update". Validation resolves the rules active for the record's
scenario, validates already loaded related records and collects every
message into the record's error bag.
"""

__version__ = "0.1.0"
__author__ = "rpapub"
__email__ = "contact@rpapub.dev"
__description__ = "Scenario-aware validation for ORM records and their loaded relations"

from modelvalidate.config import UNRESOLVED_KEY, ModelValidateConfig, load_config
from modelvalidate.exceptions import ModelValidationError
from modelvalidate.models import RelationDescriptor, RelationKind, RuleSpec
from modelvalidate.record import Record, ValidatesAttributes, belongs_to, belongs_to_many, has_many, has_one
from modelvalidate.validation import ErrorBag, HookEvent, HookRegistry, Validatable, Validator, validate

__all__ = [
    "__version__",
    "__author__",
    "__email__",
    "__description__",
    "UNRESOLVED_KEY",
    "ModelValidateConfig",
    "load_config",
    "ModelValidationError",
    "RelationDescriptor",
    "RelationKind",
    "RuleSpec",
    "Record",
    "ValidatesAttributes",
    "belongs_to",
    "has_one",
    "has_many",
    "belongs_to_many",
    "ErrorBag",
    "HookEvent",
    "HookRegistry",
    "Validatable",
    "Validator",
    "validate",
]
