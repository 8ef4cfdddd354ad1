"""tradebook.validation — validator chain, context and result accumulator."""

from tradebook.validation.context import BOOKING_OPERATIONS as BOOKING_OPERATIONS
from tradebook.validation.context import OperationType as OperationType
from tradebook.validation.context import ValidationContext as ValidationContext
from tradebook.validation.context import ValidationResult as ValidationResult
from tradebook.validation.validators import DEFAULT_VALIDATORS as DEFAULT_VALIDATORS
from tradebook.validation.validators import DateRulesValidator as DateRulesValidator
from tradebook.validation.validators import EntityStatusValidator as EntityStatusValidator
from tradebook.validation.validators import LegConsistencyValidator as LegConsistencyValidator
from tradebook.validation.validators import Validator as Validator
from tradebook.validation.validators import run_validators as run_validators
