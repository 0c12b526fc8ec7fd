from .errors import Error, Errors
from .exceptions import (
    ConfigurationError,
    ModelError,
    RecordInvalid,
    RecordNotSaved,
    StrictValidationFailed,
    UnknownValidator,
)
from .record import (
    Record,
    after_validation,
    before_validation,
    validates,
    validates_with,
    validation,
)
from .validators import EachValidator, Validator, register_validator

__all__ = [
    "Error",
    "Errors",
    "ConfigurationError",
    "ModelError",
    "RecordInvalid",
    "RecordNotSaved",
    "StrictValidationFailed",
    "UnknownValidator",
    "Record",
    "after_validation",
    "before_validation",
    "validates",
    "validates_with",
    "validation",
    "EachValidator",
    "Validator",
    "register_validator",
]
