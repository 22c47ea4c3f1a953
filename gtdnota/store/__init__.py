"""Entity store and the validation rules that guard it."""

from .store import EntityStore
from .validation import (
    check_date_format,
    check_kind_change,
    check_not_referenced,
    check_recurrence_config,
    check_reference,
    find_referrer,
    parse_recurrence_pattern,
    parse_status,
)

__all__ = [
    "EntityStore",
    "check_date_format",
    "check_kind_change",
    "check_not_referenced",
    "check_recurrence_config",
    "check_reference",
    "find_referrer",
    "parse_recurrence_pattern",
    "parse_status",
]
