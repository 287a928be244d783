"""
Coercion helpers for raw frontmatter values.

Frontmatter arrives type-erased (YAML scalars, lists and mappings). These
helpers read one value and return it in the expected shape, or ``None`` when
the value has the wrong shape. They never raise.

Templatable fields accept either a literal or a GitHub Actions expression
(``${{ ... }}``) that is evaluated when the job runs. They are stored as
strings so both forms fit one field.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

# ASCII digits only; str.isdigit() also accepts superscripts like "²"
INTEGER_PATTERN = re.compile(r"-?[0-9]+")


def is_expression(value: Any) -> bool:
    """Check whether a value is a ``${{ ... }}`` expression string."""
    return isinstance(value, str) and value.startswith("${{") and value.endswith("}}")


def string_value(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def string_list(value: Any) -> list[str] | None:
    """Read a list keeping only its string items.

    Returns ``None`` when the value is not a list, so "not provided" stays
    distinguishable from an empty list.
    """
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def string_map(value: Any) -> dict[str, str] | None:
    if not isinstance(value, Mapping):
        return None
    return {str(k): v for k, v in value.items() if isinstance(v, str)}


def bool_value(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def int_value(value: Any) -> int | None:
    """Read an integer, accepting finite floats as YAML sometimes produces them."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


def participants(value: Any) -> list[str] | None:
    """Read assignees/reviewers given either as one name or a list of names."""
    if isinstance(value, str):
        return [value]
    return string_list(value)


def templatable_int(value: Any) -> str | None:
    """Normalize a templatable integer to its string form.

    Numbers and digit strings become their decimal string; expression strings
    are kept as-is; anything else (free-form strings included) is rejected.
    """
    if is_expression(value):
        return value
    if isinstance(value, str) and INTEGER_PATTERN.fullmatch(value):
        return str(int(value))
    number = int_value(value)
    if number is None:
        return None
    return str(number)


def templatable_bool(value: Any) -> str | None:
    """Normalize a templatable boolean to ``"true"``, ``"false"`` or an expression."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value in ("true", "false"):
        return value
    if is_expression(value):
        return value
    return None


def literal_int(value: str | None) -> int | None:
    """Return the integer held by a templatable int, or None for expressions."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def templatable_int_json(value: str | None) -> int | str | None:
    """Render a templatable int for a JSON handler payload.

    Literal numbers are emitted as JSON numbers when positive (zero means
    "no limit" and is omitted); expressions are emitted as strings.
    """
    if value is None:
        return None
    number = literal_int(value)
    if number is None:
        return value
    return number if number > 0 else None


def templatable_bool_json(value: str | None) -> bool | str | None:
    if value is None:
        return None
    if value == "true":
        return True
    if value == "false":
        return False
    return value


def templatable_int_frontmatter(value: str | None) -> int | str | None:
    """Render a templatable int back into the shape an author would write."""
    number = literal_int(value)
    return number if number is not None else value
