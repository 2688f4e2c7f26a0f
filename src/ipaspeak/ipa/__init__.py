"""IPA handling: normalization into cache keys and provider markup."""

from .languages import LANGUAGE_TO_CODE, language_prefix, resolve_language
from .markup import MISAKI, SSML, MarkupPayload, build_markup
from .normalizer import NormalizedKey, normalize

__all__ = [
    "LANGUAGE_TO_CODE",
    "MISAKI",
    "SSML",
    "MarkupPayload",
    "NormalizedKey",
    "build_markup",
    "language_prefix",
    "normalize",
    "resolve_language",
]
