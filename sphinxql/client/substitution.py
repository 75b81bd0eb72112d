"""Client-side placeholder substitution.

SphinxQL has no server-side prepared statements, so bound values are
formatted, escaped and inlined into the statement text::

    >>> substitute("SELECT * FROM idx WHERE tag = :tag", {":tag": "some-tag"}, escape=str)
    "SELECT * FROM idx WHERE tag = 'some-tag'"
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

type Parameters = Mapping[str, Any]


def format_number(value: int | float) -> str:
    """Render a number the way SphinxQL parses it, whatever the locale.

    Integers are rendered exactly, so 64-bit document ids survive.

    >>> format_number(3.0), format_number(3.14), format_number(42)
    ('3', '3.14', '42')
    """
    if isinstance(value, int):
        return str(int(value))

    text = "%.12f" % value
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_value(value: Any, escape: Callable[[str], str]) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, (int, float)):
        return format_number(value)
    return f"'{escape(str(value))}'"


def substitute(statement: str, parameters: Parameters | None, escape: Callable[[str], str]) -> str:
    """Replace every placeholder token with its formatted value.

    Replacement is a single left-to-right pass where longer tokens win
    (``:id_list`` is not split as ``:id`` + ``_list``), and inserted values
    are never scanned again. Tokens absent from the statement are ignored;
    tokens in the statement without a value stay as they are.
    """
    if not parameters:
        return statement

    replacements = {token: format_value(value, escape) for token, value in parameters.items() if token}
    if not replacements:
        return statement

    pattern = re.compile("|".join(re.escape(token) for token in sorted(replacements, key=len, reverse=True)))
    return pattern.sub(lambda match: replacements[match.group(0)], statement)
