"""Phoneme markup for synthesis providers.

Each provider speaks one markup dialect:

- ``ssml``: SSML phoneme tags, ``<phoneme alphabet="ipa" ph="kæt"></phoneme>``
- ``misaki``: Kokoro/misaki inline phonemes, ``[cat](/kæt/)``
"""

import html
from dataclasses import dataclass

from ..tts.errors import ProviderConstraintError
from .normalizer import NormalizedKey

SSML = "ssml"
MISAKI = "misaki"

# Characters misaki's inline syntax gives meaning to; they cannot be escaped
MISAKI_RESERVED = frozenset("[]()/")


@dataclass(frozen=True)
class MarkupPayload:
    """Provider-ready markup built from a normalized key.

    Args:
        text: Markup text sent to the provider
        dialect: Markup dialect name
        key: Key the markup was built from
    """

    text: str
    dialect: str
    key: NormalizedKey


def build_markup(
    key: NormalizedKey,
    dialect: str = SSML,
    max_ipa_length: int | None = None,
    fallback_text: str = "",
) -> MarkupPayload:
    """Wrap a normalized key in the provider's phoneme markup.

    Args:
        key: Normalized IPA key
        dialect: Markup dialect the provider accepts
        max_ipa_length: Provider limit on IPA length (None for no limit)
        fallback_text: Literal text carried alongside the phonemes

    Returns:
        MarkupPayload ready for the provider

    Raises:
        ProviderConstraintError: If the provider cannot accept the key as is
        ValueError: If the dialect is unknown
    """
    if dialect not in _BUILDERS:
        raise ValueError(f"Unknown markup dialect: {dialect}")

    if max_ipa_length is not None and len(key.ipa) > max_ipa_length:
        raise ProviderConstraintError(
            f"IPA length {len(key.ipa)} exceeds the provider limit of {max_ipa_length}",
            dialect,
        )

    return MarkupPayload(
        text=_BUILDERS[dialect](key.ipa, fallback_text), dialect=dialect, key=key
    )


def _build_ssml(ipa: str, fallback_text: str) -> str:
    ph = html.escape(ipa, quote=True)
    literal = html.escape(fallback_text, quote=True)
    return f'<phoneme alphabet="ipa" ph="{ph}">{literal}</phoneme>'


def _build_misaki(ipa: str, fallback_text: str) -> str:
    word = fallback_text or ipa
    for part in (ipa, word):
        reserved = sorted(set(part) & MISAKI_RESERVED)
        if reserved:
            raise ProviderConstraintError(
                f"Characters {''.join(reserved)!r} cannot be expressed in misaki markup",
                MISAKI,
            )
    return f"[{word}](/{ipa}/)"


_BUILDERS = {SSML: _build_ssml, MISAKI: _build_misaki}
