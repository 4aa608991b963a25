"""
Common rule callbacks
"""
import re
from typing import Any

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$')


def is_not_empty(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip() != ''
    return value is not None and value != [] and value != {}


def is_int(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and value.strip().lstrip('-').isdigit()


def is_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value))


def is_alphabetic(value: Any) -> bool:
    return isinstance(value, str) and value.replace(' ', '').isalpha()


def min_length(value: Any, length: int) -> bool:
    return len(str(value)) >= length


def max_length(value: Any, length: int) -> bool:
    return len(str(value)) <= length
