"""Naming helpers for generated code."""

import re

_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_snake_case(name: str) -> str:
    """Convert CamelCase to snake_case: ``UserId`` -> ``user_id``."""
    return _BOUNDARY.sub("_", name).lower()


def to_constant_name(name: str) -> str:
    """Convert a type name to a module constant: ``UserId`` -> ``USER_ID``."""
    return to_snake_case(name).upper()
