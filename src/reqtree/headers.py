"""
Header detection from requirement descriptions.

The engine never looks at description text. Loaders use these helpers to
fill in ``has_checkbox`` when the scraper did not record it.
"""

import re
from typing import Optional

HEADER_PHRASES = [
    "do the following",
    "discuss the following",
    "complete the following",
    "explain the following",
    "describe the following",
    "demonstrate the following",
    "do all of the following",
    "do each of the following",
    "answer the following",
    "identify the following",
    "do one of the following",
    "do two of the following",
    "do three of the following",
    "choose one of the following",
    "choose two of the following",
]

OPTION_HEADER_RE = re.compile(r"^\s*option\s+([A-Z])\b", re.IGNORECASE)


def find_header_phrase(description: Optional[str]) -> Optional[str]:
    """Return the first header phrase found in the description."""
    text = (description or "").lower()
    for phrase in HEADER_PHRASES:
        if phrase in text:
            return phrase
    return None


def option_header_letter(description: Optional[str]) -> Optional[str]:
    """'Option B—Dairying. Do ALL of the following:' -> 'B'"""
    match = OPTION_HEADER_RE.match(description or "")
    return match.group(1).upper() if match else None


def looks_like_header(description: Optional[str]) -> bool:
    return bool(find_header_phrase(description) or option_header_letter(description))


def option_header_description(letter: str) -> str:
    return f"Option {letter}"
