"""
Errors collected during validation and their response payload
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass
class Error:
    """General error not tied to a field"""
    message: str
    ref: Optional[str] = None
    data: Any = None
    type: str = field(default='general', init=False)

    def __str__(self) -> str:
        return self.message

    def set_ref(self, ref: str) -> "Error":
        self.ref = ref
        return self


class FieldError(Error):
    """Error of a single form field, ref holds the field name"""

    def __init__(self, field_name: str, message: str, data: Any = None):
        super().__init__(message, field_name, data)
        self.type = 'field'


class ErrorsStorage:
    """Ordered collection of errors"""

    def __init__(self):
        self._errors: List[Error] = []

    def add_error(self, error) -> "ErrorsStorage":
        """Add an Error, or a plain message as a general error"""
        if not isinstance(error, Error):
            error = Error(str(error))
        self._errors.append(error)
        return self

    def has_errors(self) -> bool:
        return bool(self._errors)

    def clear_errors(self) -> "ErrorsStorage":
        self._errors = []
        return self

    def merge(self, other: "ErrorsStorage") -> "ErrorsStorage":
        self._errors.extend(other.get_errors())
        return self

    def get_errors(self, type: Optional[str] = None) -> List[Error]:
        if type is None:
            return list(self._errors)
        return [error for error in self._errors if error.type == type]

    def to_dict(self) -> Dict[str, Any]:
        """Group errors as {"global": [messages], "form": {field: message}}"""
        result = {'global': [], 'form': {}}
        for error in self._errors:
            if error.type == 'field' and error.ref:
                result['form'].setdefault(error.ref, error.message)
            else:
                result['global'].append(error.message)
        return result


class ErrorDetails(BaseModel):
    """Errors section of an error response"""
    model_config = ConfigDict(populate_by_name=True)

    global_errors: List[str] = Field(default_factory=list, alias='global')
    form: Dict[str, str] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Payload returned to clients when validation fails"""
    success: bool = False
    error: ErrorDetails

    @classmethod
    def from_errors(cls, errors: ErrorsStorage) -> "ErrorResponse":
        return cls(error=ErrorDetails(**errors.to_dict()))

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
