"""
Condition & Validation Evaluator

Pure functions over a ValueStore answering "is this field visible?"
and "does this field's value satisfy its rules?".
"""

import logging
from collections.abc import Mapping
from datetime import date
from typing import Any, List, Optional

from .types import Condition, FieldDefinition, Template
from .values import ValueStore

logger = logging.getLogger(__name__)

_ABSENT = object()


def is_number(value: Any) -> bool:
    """int/float but never bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def scalars_equal(a: Any, b: Any) -> bool:
    """
    Type-appropriate equality: str/str, bool/bool, number/number.

    Mixed types (including True vs 1) are never equal.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return False


def evaluate_condition(cond: Condition, store: ValueStore) -> bool:
    """Evaluate a visibleIf/requiredIf condition. Absent field => False."""
    value = store.lookup(cond.field, _ABSENT)
    if value is _ABSENT:
        return False

    if cond.includes is not None:
        return isinstance(value, list) and cond.includes in value

    if cond.equals is None:
        return False
    return scalars_equal(value, cond.equals)


def is_visible(field: FieldDefinition, store: ValueStore) -> bool:
    """Hidden fields are never visible; otherwise visibleIf decides."""
    if field.hidden:
        return False
    if field.visible_if is None:
        return True
    return evaluate_condition(field.visible_if, store)


def is_required(field: FieldDefinition, store: ValueStore) -> bool:
    if field.required:
        return True
    if field.required_if is not None:
        return evaluate_condition(field.required_if, store)
    return False


def is_empty(value: Any) -> bool:
    """
    Blank strings, empty lists/dicts and None are empty.

    0 and False are values, not blanks.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, Mapping)):
        return len(value) == 0
    return False


def values_equal(a: Any, b: Any) -> bool:
    """
    Equality used by notEqualField.

    Objects compare by their `id` key; primitives compare directly.
    Absent values never compare equal.
    """
    if a is None or b is None:
        return False
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        a_id, b_id = a.get('id'), b.get('id')
        if a_id is None or b_id is None:
            return False
        return a_id == b_id
    return scalars_equal(a, b)


def parse_calendar_date(value: Any) -> Optional[date]:
    """
    Parse an ISO calendar date, ignoring any time-of-day suffix.

    Examples:
        "2025-10-02"           -> date(2025, 10, 2)
        "2025-10-02T09:30:00Z" -> date(2025, 10, 2)
    """
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()[:10]
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def validate_field(field: FieldDefinition, store: ValueStore) -> List[str]:
    """
    Validate a single field. Invisible fields never produce errors.

    Returns:
        List of human-readable error messages (empty if valid)
    """
    if not is_visible(field, store):
        return []

    errors = []
    value = store.lookup(field.id)

    if is_required(field, store) and is_empty(value):
        errors.append(f"{field.label} is required.")

    rule = field.validate
    if rule is None:
        return errors

    if rule.not_equal_field:
        other = store.lookup(rule.not_equal_field)
        if values_equal(value, other):
            errors.append(rule.message or f"{field.label} must differ from {rule.not_equal_field}")

    if rule.gte_field:
        a_str = value if isinstance(value, str) else ''
        b_str = store.lookup(rule.gte_field)
        b_str = b_str if isinstance(b_str, str) else ''
        if a_str.strip() and b_str.strip():
            a, b = parse_calendar_date(a_str), parse_calendar_date(b_str)
            if a is None or b is None or a < b:
                errors.append(rule.message or f"{field.label} must be on/after {rule.gte_field}")

    return errors


def validate(template: Template, store: ValueStore) -> List[str]:
    """Validate every field of a template, accumulating messages in field order."""
    errors = []
    for field in template.fields:
        errors.extend(validate_field(field, store))
    if errors:
        logger.debug(f"Template {template.id} failed validation with {len(errors)} error(s)")
    return errors
