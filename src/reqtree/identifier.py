"""
Requirement number grammar and parser.

A requirement number names one position in a badge outline, e.g. ``6A(a)(1)``:

- ``6``    base number (top-level requirement)
- ``A``    optional option letter (Option A / Option B branches)
- ``(a)``  sub-components, outermost first; each is a lowercase letter or a
           positive index, written bare (``1a``) or parenthesized (``9b(2)``)
- ``_2``   optional disambiguation ordinal added by positional dedup

Two encodings are accepted. The canonical (parenthesized) one is the grammar
above. The legacy concatenated one only ever held three shapes: ``1a``,
``9b2`` and ``6A1`` / ``6A1a``.
"""

import dataclasses
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

from .errors import MalformedIdentifierError

OPTION_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

_CANONICAL_RE = re.compile(
    r"^(?P<base>\d+)"
    r"(?P<option>[A-Z])?"
    r"(?P<components>(?:[a-z]|\((?:\d+|[A-Za-z])\))*)"
    r"(?:_(?P<ordinal>\d+))?$"
)
_COMPONENT_RE = re.compile(r"(?P<bare>[a-z])|\((?P<token>\d+|[A-Za-z])\)")

# Legacy: 9b2 (letter then index)
_LEGACY_LETTER_INDEX_RE = re.compile(
    r"^(?P<base>\d+)(?P<letter>[a-z])(?P<index>\d+)(?:_(?P<ordinal>\d+))?$"
)
# Legacy: 6A1, 6A1a (index rendered before the letter it belongs under)
_LEGACY_OPTION_RE = re.compile(
    r"^(?P<base>\d+)(?P<option>[A-Z])(?P<index>\d+)(?P<letter>[a-z])?(?:_(?P<ordinal>\d+))?$"
)


class FormatStyle(Enum):
    """Output encodings for an Identifier."""

    CANONICAL_PARENTHESIZED = "canonical"
    LEGACY_CONCATENATED = "legacy"


@dataclass(frozen=True)
class Letter:
    """Lettered sub-component such as the ``a`` in ``1a`` or ``6A(a)``."""

    char: str
    parenthesized: bool = field(default=False, compare=False)

    @property
    def token(self) -> str:
        return self.char


@dataclass(frozen=True)
class Index:
    """Numbered sub-component such as the ``(2)`` in ``9b(2)``."""

    number: int
    parenthesized: bool = field(default=True, compare=False)

    @property
    def token(self) -> str:
        return str(self.number)


Component = Union[Letter, Index]


@dataclass(frozen=True)
class Identifier:
    """
    Parsed requirement number.

    Equality and hashing are structural: the ``parenthesized`` flag of each
    component and the ``raw`` provenance string are ignored, so ``1a`` and
    ``1(a)`` compare equal.
    """

    base_number: int
    option_letter: Optional[str] = None
    components: Tuple[Component, ...] = ()
    ordinal: Optional[int] = None
    raw: str = field(default="", compare=False)

    @property
    def is_option_variant(self) -> bool:
        return self.option_letter is not None

    @property
    def nesting_depth(self) -> int:
        if self.option_letter is None and not self.components:
            return 0
        return (1 if self.option_letter is not None else 0) + len(self.components)

    @property
    def is_top_level(self) -> bool:
        return self.nesting_depth == 0

    def parent_identifier(self) -> Optional["Identifier"]:
        """
        Structural parent: drop the last component, or the option letter when
        no component is left. Assumes no intermediate level is missing.
        """
        if self.components:
            return Identifier(self.base_number, self.option_letter, self.components[:-1])
        if self.option_letter is not None:
            return Identifier(self.base_number)
        return None

    def with_option_letter(self, letter: Optional[str]) -> "Identifier":
        return dataclasses.replace(self, option_letter=letter)

    def with_components(self, components: Tuple[Component, ...]) -> "Identifier":
        return dataclasses.replace(self, components=tuple(components))

    def with_ordinal(self, ordinal: Optional[int]) -> "Identifier":
        return dataclasses.replace(self, ordinal=ordinal)

    def without_ordinal(self) -> "Identifier":
        return dataclasses.replace(self, ordinal=None)

    def __str__(self) -> str:
        return format_identifier(self)


def _clean(raw: str) -> str:
    text = (raw or "").strip()
    if text.endswith("."):
        text = text[:-1].rstrip()
    return text


def _positive(value: str, raw: str, what: str) -> int:
    number = int(value)
    if number < 1:
        raise MalformedIdentifierError(raw, f"{what} must be positive")
    return number


def _ordinal(match: "re.Match", raw: str) -> Optional[int]:
    value = match.group("ordinal")
    if value is None:
        return None
    return _positive(value, raw, "disambiguation suffix")


def _parse_canonical(match: "re.Match", raw: str) -> Identifier:
    components = []
    for part in _COMPONENT_RE.finditer(match.group("components")):
        if part.group("bare"):
            components.append(Letter(part.group("bare"), parenthesized=False))
            continue
        token = part.group("token")
        if token.isdigit():
            components.append(Index(_positive(token, raw, "index"), parenthesized=True))
        else:
            components.append(Letter(token.lower(), parenthesized=True))

    return Identifier(
        base_number=_positive(match.group("base"), raw, "base number"),
        option_letter=match.group("option"),
        components=tuple(components),
        ordinal=_ordinal(match, raw),
        raw=raw,
    )


def _parse_legacy(raw: str, text: str) -> Optional[Identifier]:
    match = _LEGACY_LETTER_INDEX_RE.match(text)
    if match:
        return Identifier(
            base_number=_positive(match.group("base"), raw, "base number"),
            components=(
                Letter(match.group("letter")),
                Index(_positive(match.group("index"), raw, "index"), parenthesized=False),
            ),
            ordinal=_ordinal(match, raw),
            raw=raw,
        )

    match = _LEGACY_OPTION_RE.match(text)
    if match:
        index = Index(_positive(match.group("index"), raw, "index"), parenthesized=False)
        letter = match.group("letter")
        components = (Letter(letter), index) if letter else (index,)
        return Identifier(
            base_number=_positive(match.group("base"), raw, "base number"),
            option_letter=match.group("option"),
            components=components,
            ordinal=_ordinal(match, raw),
            raw=raw,
        )

    return None


def parse_identifier(raw: str) -> Identifier:
    """
    Parse a requirement number in canonical or legacy form.

    Raises:
        MalformedIdentifierError: if the label matches neither grammar.
    """
    text = _clean(raw)
    if not text:
        raise MalformedIdentifierError(raw or "", "empty label")

    match = _CANONICAL_RE.match(text)
    if match:
        return _parse_canonical(match, raw)

    identifier = _parse_legacy(raw, text)
    if identifier is None:
        raise MalformedIdentifierError(raw)
    return identifier


def try_parse(raw: Optional[str]) -> Optional[Identifier]:
    """Parse ``raw``, returning None instead of raising."""
    if raw is None:
        return None
    try:
        return parse_identifier(raw)
    except MalformedIdentifierError:
        return None


def _canonical_component(component: Component) -> str:
    if isinstance(component, Index) or component.parenthesized:
        return f"({component.token})"
    return component.token


def _legacy_components(identifier: Identifier) -> str:
    components = list(identifier.components)
    if identifier.option_letter is not None and len(components) > 1:
        # Index-then-letter; the order between them cannot be recovered.
        components = (
            [c for c in components if isinstance(c, Index)]
            + [c for c in components if isinstance(c, Letter)]
        )
    return "".join(c.token for c in components)


def format_identifier(
    identifier: Identifier,
    style: FormatStyle = FormatStyle.CANONICAL_PARENTHESIZED,
) -> str:
    """Render an Identifier in the requested encoding."""
    head = f"{identifier.base_number}{identifier.option_letter or ''}"

    if style is FormatStyle.LEGACY_CONCATENATED:
        body = _legacy_components(identifier)
    else:
        body = "".join(_canonical_component(c) for c in identifier.components)

    suffix = f"_{identifier.ordinal}" if identifier.ordinal is not None else ""
    return f"{head}{body}{suffix}"
