"""
Snippetbox: Form Validation Primitives
======================================

What:  Pure predicate functions over primitive values, plus an accumulator of
       per-field and non-field error messages.
How:   Handlers run `form.check_field(predicate(...), "field", "message")` for
       every rule, then re-render with status 422 when `form.valid()` is False.

Example:
    v = Validator()
    v.check_field(not_blank(title), "title", "This field cannot be blank")
    v.check_field(max_chars(title, 100), "title", "This field cannot be more than 100 characters long")
    if not v.valid():
        ...
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Pattern

# Shape check only; whether the mailbox exists is not our concern.
EMAIL_RX: Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


@dataclass
class Validator:
    """
    Accumulates validation failures for one form submission.

    Attributes:
        field_errors:     field name → messages, in the order rules ran
        non_field_errors: messages not tied to a single field (e.g. bad login)
    """

    field_errors: Dict[str, List[str]] = field(default_factory=dict)
    non_field_errors: List[str] = field(default_factory=list)

    def valid(self) -> bool:
        return not self.field_errors and not self.non_field_errors

    def add_field_error(self, key: str, message: str) -> None:
        self.field_errors.setdefault(key, []).append(message)

    def add_non_field_error(self, message: str) -> None:
        self.non_field_errors.append(message)

    def check_field(self, ok: bool, key: str, message: str) -> None:
        """Record `message` under `key` only when `ok` is False."""
        if not ok:
            self.add_field_error(key, message)


def not_blank(value: str) -> bool:
    return value.strip() != ""


def max_chars(value: str, n: int) -> bool:
    # len() counts code points, so "é" is one character like in the browser
    return len(value) <= n


def min_chars(value: str, n: int) -> bool:
    return len(value) >= n


def max_bytes(value: str, n: int) -> bool:
    # bcrypt only accepts the first 72 bytes of UTF-8 input
    return len(value.encode("utf-8")) <= n


def matches(value: str, rx: Pattern[str]) -> bool:
    return rx.match(value) is not None


def permitted_value(value: Any, *permitted: Any) -> bool:
    return value in permitted
