"""Validation and canonicalization of raw IPA input.

The normalized key is the cache identity: inputs that differ only in
surrounding whitespace, enclosing delimiters, ASCII letter case, Unicode
composition or ASCII stand-ins for IPA symbols produce the same key.
"""

import unicodedata
from dataclasses import dataclass

from ..tts.errors import EmptyInputError, InputTooLongError, InvalidSymbolError
from .languages import DEFAULT_LANGUAGE, resolve_language
from .symbols import ALIASES, DELIMITERS, OPTIONAL_MARKS, is_permitted, is_whitespace

DEFAULT_MAX_LENGTH = 50


@dataclass(frozen=True)
class NormalizedKey:
    """Canonical IPA string plus the language it should be spoken in.

    Args:
        ipa: Canonical IPA transcription (NFD, no delimiters, single spaces)
        language: Language code, e.g. "en-US"
    """

    ipa: str
    language: str

    @property
    def cache_key(self) -> str:
        """Identity of this key in the audio cache."""
        return f"{self.language}:{self.ipa}"


def normalize(
    raw_text: str | None,
    language: str | None = None,
    max_length: int = DEFAULT_MAX_LENGTH,
    default_language: str = DEFAULT_LANGUAGE,
) -> NormalizedKey:
    """Validate raw IPA text and reduce it to a canonical key.

    Symbol validation runs over the whole input before any other step, so an
    unsupported character is always reported, even next to other problems.

    Args:
        raw_text: IPA as extracted from the page, e.g. "/ˈkæt/"
        language: Language name or code (None uses the default language)
        max_length: Maximum number of code points in the canonical IPA
        default_language: Language used when ``language`` is empty

    Returns:
        NormalizedKey for the input

    Raises:
        InvalidSymbolError: If a character is outside the permitted set.
            ``position`` and ``char`` refer to the input as received.
        EmptyInputError: If nothing remains after trimming
        InputTooLongError: If the canonical IPA exceeds ``max_length``
        UnsupportedLanguageError: If the language is unknown
    """
    raw_text = raw_text or ""
    text, origins = _decompose(raw_text)

    for index, char in enumerate(text):
        if not is_permitted(char):
            raise InvalidSymbolError(origins[index], raw_text[origins[index]])

    start, end = _strip_bounds(text)

    # Delimiters are only meaningful around the transcription
    for index in range(start, end):
        if text[index] in DELIMITERS:
            raise InvalidSymbolError(origins[index], raw_text[origins[index]])

    ipa = unicodedata.normalize("NFD", _canonicalize(text[start:end]))
    if not ipa:
        raise EmptyInputError()
    if len(ipa) > max_length:
        raise InputTooLongError(len(ipa), max_length)

    return NormalizedKey(
        ipa=ipa, language=resolve_language(language, default=default_language)
    )


def _decompose(raw_text: str) -> tuple[str, list[int]]:
    """Decompose ``raw_text`` character by character.

    Returns the decomposed text and, for each of its code points, the index
    of the raw character it came from. Canonical ordering of combining marks
    is applied later to the canonical IPA.
    """
    parts = []
    origins = []
    for position, char in enumerate(raw_text):
        decomposed = unicodedata.normalize("NFD", char)
        parts.append(decomposed)
        origins.extend([position] * len(decomposed))
    return "".join(parts), origins


def _strip_bounds(text: str) -> tuple[int, int]:
    """Return the slice bounds of ``text`` without surrounding whitespace or delimiters."""
    start, end = 0, len(text)
    while start < end and (is_whitespace(text[start]) or text[start] in DELIMITERS):
        start += 1
    while end > start and (is_whitespace(text[end - 1]) or text[end - 1] in DELIMITERS):
        end -= 1
    return start, end


def _canonicalize(text: str) -> str:
    chars = []
    for char in text:
        if char in OPTIONAL_MARKS:
            continue
        if "A" <= char <= "Z":
            char = char.lower()
        chars.append(ALIASES.get(char, char))
    return " ".join("".join(chars).split())
