"""
Validator composed of fields and rules
"""
import logging
from typing import Any, Callable, List, Optional, Sequence

from dbmodel.validation.errors import Error, ErrorsStorage, FieldError

logger = logging.getLogger(__name__)


class Rule:
    """Single check, valid when callback(*data, *arguments) equals expect"""

    CRITICAL = 1
    SILENT = 2

    def __init__(self, callback: Callable[..., Any], error: Optional[str] = None, flag: int = 0,
                 expect: Any = True, arguments: Sequence[Any] = (), with_context: bool = False):
        self.callback = callback
        self.error = error or f"Rule check failed at {getattr(callback, '__name__', callback)}"
        self.flag = flag
        self.expect = expect
        self.arguments = list(arguments)
        self.with_context = with_context
        self.context = None
        self.errors = ErrorsStorage()
        self.valid = None

    def set_context(self, context: Any) -> "Rule":
        self.context = context
        return self

    def validate(self, *data) -> "Rule":
        self.errors.clear_errors()
        arguments = list(data) + self.arguments
        if self.with_context:
            arguments.insert(0, self.context)

        self.valid = self.callback(*arguments) == self.expect
        if not self.valid and not self.flag & self.SILENT:
            self.errors.add_error(Error(self.error))
        return self

    def is_valid(self) -> bool:
        return bool(self.valid)

    def has_critical_error(self) -> bool:
        return self.valid is False and bool(self.flag & self.CRITICAL)


class Field:
    """Named field checked against a list of rules"""

    def __init__(self, name: str, rules: Optional[List[Rule]] = None, mandatory: bool = True,
                 error: Optional[str] = None):
        for rule in rules or []:
            if not isinstance(rule, Rule):
                raise TypeError("Field rule must be a Rule object")
        self.name = name
        self.rules = list(rules or [])
        self.mandatory = mandatory
        self.error = error or f"Field {name} is mandatory"
        self.context = None
        self.errors = ErrorsStorage()
        self.valid = None
        self.critical = False

    def __str__(self) -> str:
        return self.name

    def set_context(self, context: Any) -> "Field":
        self.context = context
        return self

    def add_mandatory_error(self) -> "Field":
        self.errors.add_error(FieldError(self.name, self.error))
        self.valid = False
        return self

    def validate(self, *data) -> "Field":
        self.errors.clear_errors()
        self.valid = True
        self.critical = False

        if not self.mandatory and all(item == '' for item in data):
            return self

        for rule in self.rules:
            rule.set_context(self.context)
            if not rule.validate(*data).is_valid():
                self.valid = False
                for error in rule.errors.get_errors():
                    self.errors.add_error(FieldError(self.name, error.message, error.data))
                if rule.has_critical_error():
                    self.critical = True
                    break
        return self

    def is_valid(self) -> bool:
        return bool(self.valid)

    def has_critical_error(self) -> bool:
        return self.critical


def _is_blank(values: Sequence[Any]) -> bool:
    for value in values:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return False
        if isinstance(value, (list, tuple, dict)):
            if not _is_blank(list(value.values()) if isinstance(value, dict) else value):
                return False
        elif value:
            return False
    return True


class Validator:
    """
    Runs fields and nested validators over the data of an operation.

    Field values are looked up by name in every mapping passed to validate().
    A missing or blank mandatory field yields its mandatory error, a critical
    failure stops the remaining checks.
    """

    def __init__(self, *validators):
        self.validators = list(validators)
        self.context = None
        self.errors = ErrorsStorage()
        self.valid = None

    def add_validator(self, *validators) -> "Validator":
        self.validators.extend(validators)
        return self

    def set_context(self, context: Any) -> "Validator":
        self.context = context
        return self

    def validate(self, *data) -> "Validator":
        self.errors.clear_errors()
        if not data:
            self.errors.add_error('No data provided')
            self.valid = False
            return self

        self.valid = True
        for validator in self.validators:
            validator.set_context(self.context)
            if isinstance(validator, Field):
                values = [item[validator.name] for item in data
                          if isinstance(item, dict) and validator.name in item]
                if _is_blank(values):
                    if validator.mandatory:
                        validator.errors.clear_errors()
                        validator.add_mandatory_error()
                    else:
                        validator.valid = True
                else:
                    validator.validate(*values)
            else:
                validator.validate(*data)

            if not validator.is_valid():
                self.valid = False
                self.errors.merge(validator.errors)
                if validator.has_critical_error():
                    logger.debug(f"Validation stopped by critical error in {validator}")
                    break

        self.valid = self.valid and not self.errors.has_errors()
        return self

    def is_valid(self) -> bool:
        return bool(self.valid)

    def has_critical_error(self) -> bool:
        return any(
            not validator.is_valid() and validator.has_critical_error()
            for validator in self.validators
        )

    def get_errors(self) -> ErrorsStorage:
        return self.errors
