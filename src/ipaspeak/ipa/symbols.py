"""Permitted IPA symbol set.

Symbols are checked after NFD decomposition, so precomposed letters such as
``ẽ`` arrive here as a base letter followed by a combining diacritic.
"""

import unicodedata

# Inclusive code point ranges accepted wholesale
SYMBOL_RANGES: tuple[tuple[int, int], ...] = (
    (0x0061, 0x007A),  # a-z
    (0x0041, 0x005A),  # A-Z, lowercased during canonicalization
    (0x0250, 0x02AF),  # IPA Extensions
    (0x02B0, 0x02FF),  # Spacing Modifier Letters: stress, length, tone letters
    (0x0300, 0x036F),  # Combining Diacritical Marks, tie bars included
    (0x1D00, 0x1DBF),  # Phonetic Extensions and superscripts
    (0x1DC0, 0x1DFF),  # Combining Diacritical Marks Supplement
)

# Individual letters from other blocks used by the IPA chart
EXTRA_LETTERS = frozenset(
    "æðøħŋœβθχ"
    "ǀǁǂǃ"  # clicks
    "ⁿ"
    "ꜛꜜ"  # upstep, downstep
    "↗↘"  # global rise, global fall
)

# Word, syllable and prosodic group boundaries
BOUNDARIES = frozenset(".|‖‿-")

# Wrap a transcription: /phonemic/ or [phonetic]
DELIMITERS = frozenset("/[]")

# Optional segments, e.g. /ˈwɪn(d)zər/; dropped, contents kept
OPTIONAL_MARKS = frozenset("()")

# ASCII stand-ins mapped onto their IPA symbols
ALIASES: dict[str, str] = {
    "'": "ˈ",
    ":": "ː",
    "g": "ɡ",
}


def is_whitespace(char: str) -> bool:
    """Return True for plain whitespace; control characters do not count."""
    return char in " \t\n\r" or unicodedata.category(char) == "Zs"


def is_permitted(char: str) -> bool:
    """Return True if ``char`` may appear in raw IPA input."""
    if (
        char in EXTRA_LETTERS
        or char in BOUNDARIES
        or char in DELIMITERS
        or char in OPTIONAL_MARKS
        or char in ALIASES
    ):
        return True
    if is_whitespace(char):
        return True
    codepoint = ord(char)
    return any(low <= codepoint <= high for low, high in SYMBOL_RANGES)
