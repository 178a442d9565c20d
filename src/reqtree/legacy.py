"""
Conversion between canonical requirement numbers and the legacy display column.

The legacy column concatenates every component without parentheses
(``9b(2)`` -> ``9b2``). It is a one-way, best-effort export: when an option
letter is followed by more than one component, indexes are written before
letters, so ``6A(a)(1)`` and ``6A(1)(a)`` both become ``6A1a`` and only the
first reads back unchanged. Never prefer a legacy value over a canonical one
for the same row.
"""

from typing import Optional, Union

from .identifier import FormatStyle, Identifier, format_identifier, parse_identifier, try_parse


def to_legacy_display(value: Union[Identifier, str]) -> str:
    """
    Render a requirement number for the legacy display column.

    Strings that do not parse are returned unchanged.

    Examples:
        6A(a)(1) -> 6A1a
        9b(2)    -> 9b2
        1a       -> 1a
    """
    if isinstance(value, Identifier):
        return format_identifier(value, FormatStyle.LEGACY_CONCATENATED)
    identifier = try_parse(value)
    if identifier is None:
        return value
    return format_identifier(identifier, FormatStyle.LEGACY_CONCATENATED)


def from_legacy_display(display: str) -> Identifier:
    """
    Read a legacy display value.

    Examples:
        6A1a -> 6Aa(1), equal to 6A(a)(1)
        9b2  -> 9b(2)
        6A1  -> 6A(1)

    Raises:
        MalformedIdentifierError: if the value is not a known legacy shape.
    """
    return parse_identifier(display)


def normalize_requirement_number(value: Optional[str]) -> str:
    """
    Return the canonical spelling of a requirement number in either encoding.

    Unparseable values come back stripped but otherwise untouched, so callers
    can keep them as raw labels.
    """
    if not value:
        return ""
    identifier = try_parse(value)
    if identifier is None:
        return value.strip()
    return format_identifier(identifier)
