"""
Declarative Request Validation

Field rules are declared next to each route and evaluated against the raw
JSON payload before the handler runs. All rules are checked and every
invalid field is reported, so a client gets the complete list in one
response. A field carries the error of the first rule it fails.

Field paths use dots and may contain a ``*`` wildcard to address every
element of an array::

    rules = [
        IsArray("items", "Items are required", min_length=1),
        NotEmpty("items.*.menuItem", "Menu item id is required"),
        NumberRange("items.*.quantity", "Quantity must be at least 1", min=1, integer=True),
        NotEmpty("address", "Address is required", when=field_equals("type", "livraison")),
    ]
    errors = validate(rules, payload)

Usage in a route:

    @router.post("")
    async def create(body: ItemCreate = Depends(validated_body(ITEM_RULES, ItemCreate))):
        ...
"""

import json
import math
import re
from typing import Any, Callable, Iterable, Optional, Sequence, Type, TypeVar

from email_validator import EmailNotValidError, validate_email
from fastapi import Request
from pydantic import BaseModel, ValidationError as PydanticValidationError

from restomatch.core.errors import FieldError, ValidationFailed, errors_from_pydantic

SchemaT = TypeVar("SchemaT", bound=BaseModel)

Condition = Callable[[dict], bool]

_MISSING = object()


# =============================================================================
# PATH RESOLUTION
# =============================================================================

def _resolve(payload: Any, path: str) -> list[tuple[str, Any]]:
    """
    Expand a field path against the payload.

    Returns (concrete_path, value) pairs; value is ``_MISSING`` when the
    field is absent. A wildcard over a missing or non-list value yields
    nothing, the rule on the array itself reports that case.
    """
    found = [("", payload)]
    for part in path.split("."):
        expanded = []
        for prefix, current in found:
            if part == "*":
                if isinstance(current, list):
                    for index, element in enumerate(current):
                        expanded.append((f"{prefix}.{index}" if prefix else str(index), element))
                continue
            key = f"{prefix}.{part}" if prefix else part
            if isinstance(current, dict) and part in current:
                expanded.append((key, current[part]))
            else:
                expanded.append((key, _MISSING))
        found = expanded
    return found


def field_equals(field: str, expected: Any) -> Condition:
    """Condition that holds when another field of the payload has a given value."""
    def condition(payload: dict) -> bool:
        return isinstance(payload, dict) and payload.get(field) == expected
    return condition


# =============================================================================
# RULES
# =============================================================================

class FieldRule:
    """
    Base class for a single field check.

    Args:
        field: Dotted path, ``*`` expands over arrays
        message: Error message reported on failure
        optional: Skip the check when the field is absent or null
        when: Only apply the rule when this condition holds for the payload
    """

    default_message = "Invalid value"

    def __init__(
        self,
        field: str,
        message: Optional[str] = None,
        optional: bool = False,
        when: Optional[Condition] = None,
    ):
        self.field = field
        self.message = message or self.default_message
        self.optional = optional
        self.when = when

    def check(self, value: Any) -> bool:
        raise NotImplementedError

    def evaluate(self, payload: dict) -> list[FieldError]:
        if self.when is not None and not self.when(payload):
            return []

        errors = []
        for path, value in _resolve(payload, self.field):
            if value is _MISSING or value is None:
                if self.optional:
                    continue
                errors.append(FieldError(field=path, msg=self.message, value=None))
                continue
            if not self.check(value):
                errors.append(FieldError(field=path, msg=self.message, value=_reportable(value)))
        return errors

    def __repr__(self):
        return f"<{type(self).__name__} {self.field}>"


class NotEmpty(FieldRule):
    default_message = "This field is required"

    def check(self, value: Any) -> bool:
        if isinstance(value, str):
            return bool(value.strip())
        if isinstance(value, (list, dict)):
            return bool(value)
        return True


class MinLength(FieldRule):
    def __init__(self, field: str, length: int, message: Optional[str] = None, **kwargs):
        super().__init__(field, message, **kwargs)
        self.length = length

    def check(self, value: Any) -> bool:
        return isinstance(value, str) and len(value) >= self.length


class MaxLength(FieldRule):
    default_message = "Value is too long"

    def __init__(self, field: str, length: int, message: Optional[str] = None, **kwargs):
        super().__init__(field, message, **kwargs)
        self.length = length

    def check(self, value: Any) -> bool:
        return not isinstance(value, str) or len(value) <= self.length


class Matches(FieldRule):
    """String matching a regular expression in full."""

    default_message = "Invalid format"

    def __init__(self, field: str, pattern: str, message: Optional[str] = None, **kwargs):
        super().__init__(field, message, **kwargs)
        self.pattern = re.compile(pattern)

    def check(self, value: Any) -> bool:
        return isinstance(value, str) and self.pattern.fullmatch(value) is not None


class IsEmail(FieldRule):
    default_message = "Invalid email"

    def check(self, value: Any) -> bool:
        if not isinstance(value, str):
            return False
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            return False
        return True


class NumberRange(FieldRule):
    """
    Numeric check with optional bounds.

    Numeric strings are accepted the way form-encoded clients send them.
    Booleans are not numbers here.
    """

    default_message = "Invalid number"

    def __init__(
        self,
        field: str,
        message: Optional[str] = None,
        min: Optional[float] = None,
        max: Optional[float] = None,
        integer: bool = False,
        exclusive_min: bool = False,
        **kwargs,
    ):
        super().__init__(field, message, **kwargs)
        self.min = min
        self.max = max
        self.integer = integer
        self.exclusive_min = exclusive_min

    def check(self, value: Any) -> bool:
        number = _as_number(value)
        if number is None:
            return False
        if self.integer and not float(number).is_integer():
            return False
        if self.min is not None:
            if self.exclusive_min and number <= self.min:
                return False
            if number < self.min:
                return False
        if self.max is not None and number > self.max:
            return False
        return True


class OneOf(FieldRule):
    default_message = "Value is not allowed"

    def __init__(self, field: str, choices: Iterable[Any], message: Optional[str] = None, **kwargs):
        super().__init__(field, message, **kwargs)
        self.choices = [getattr(choice, "value", choice) for choice in choices]

    def check(self, value: Any) -> bool:
        return value in self.choices


class IsArray(FieldRule):
    default_message = "Must be a list"

    def __init__(self, field: str, message: Optional[str] = None, min_length: int = 0, **kwargs):
        super().__init__(field, message, **kwargs)
        self.min_length = min_length

    def check(self, value: Any) -> bool:
        return isinstance(value, list) and len(value) >= self.min_length


class IsBoolean(FieldRule):
    default_message = "Must be true or false"

    def check(self, value: Any) -> bool:
        return isinstance(value, bool)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _reportable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)):
        return value
    return None


# =============================================================================
# ENTRY POINTS
# =============================================================================

def validate(rules: Sequence[FieldRule], payload: Any) -> list[FieldError]:
    """
    Evaluate every rule against the same payload snapshot.

    Returns:
        One error per invalid field, empty when the payload is valid
    """
    if not isinstance(payload, dict):
        return [FieldError(field="body", msg="Request body must be a JSON object")]

    errors: list[FieldError] = []
    for rule in rules:
        errors = merge_errors(errors, rule.evaluate(payload))
    return errors


def validated_body(rules: Sequence[FieldRule], schema: Type[SchemaT]) -> Callable:
    """
    Build a FastAPI dependency that validates and parses the JSON body.

    Both the rules and the pydantic schema run on every request, and their
    failures are reported together in one ValidationFailed (400). A field
    flagged by a rule keeps the rule's message.
    """

    async def dependency(request: Request) -> SchemaT:
        raw = await request.body()
        try:
            payload = json.loads(raw) if raw else {}
        except ValueError:
            raise ValidationFailed([FieldError(field="body", msg="Malformed JSON body")])

        errors = validate(rules, payload)
        if not isinstance(payload, dict):
            raise ValidationFailed(errors)

        try:
            parsed = schema.model_validate(payload)
        except PydanticValidationError as e:
            errors = merge_errors(errors, errors_from_pydantic(e.errors()))
            parsed = None

        if errors:
            raise ValidationFailed(errors)
        return parsed

    return dependency


def merge_errors(primary: list[FieldError], extra: list[FieldError]) -> list[FieldError]:
    """Append ``extra`` errors for fields ``primary`` does not already report."""
    merged = list(primary)
    seen = {error.field for error in primary}
    for error in extra:
        if error.field not in seen:
            seen.add(error.field)
            merged.append(error)
    return merged
