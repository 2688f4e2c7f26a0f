"""Language names used by Wikipedia IPA keys, mapped to language codes."""

from ..tts.errors import UnsupportedLanguageError

DEFAULT_LANGUAGE = "English"

# Wikipedia "Help:IPA/<language>" page name -> language code
LANGUAGE_TO_CODE: dict[str, str] = {
    "Arabic": "arb",
    "Catalan": "ca-ES",
    "Mandarin": "cmn-CN",
    "Welsh": "cy-GB",
    "Danish": "da-DK",
    "Standard German": "de-AT",
    "English": "en-US",
    "Spanish": "es-ES",
    "French": "fr-CA",
    "Hindi and Urdu": "hi-IN",
    "Icelandic": "is-IS",
    "Italian": "it-IT",
    "Japanese": "ja-JP",
    "Korean": "ko-KR",
    "Norwegian": "nb-NO",
    "Dutch": "nl-NL",
    "Polish": "pl-PL",
    "Portuguese": "pt-BR",
    "Romanian": "ro-RO",
    "Russian": "ru-RU",
    "Swedish": "sv-SE",
    "Turkish": "tr-TR",
}

_BY_NAME = {name.casefold(): code for name, code in LANGUAGE_TO_CODE.items()}
_BY_CODE = {code.casefold(): code for code in LANGUAGE_TO_CODE.values()}


def resolve_language(language: str | None, default: str = DEFAULT_LANGUAGE) -> str:
    """Resolve a language name or code to its canonical language code.

    Args:
        language: Language name ("French"), language code ("fr-CA"), or None
        default: Language name used when ``language`` is empty

    Returns:
        Canonical language code

    Raises:
        UnsupportedLanguageError: If the language is not known
    """
    name = (language or "").strip() or default
    folded = name.casefold()
    if folded in _BY_NAME:
        return _BY_NAME[folded]
    if folded in _BY_CODE:
        return _BY_CODE[folded]
    raise UnsupportedLanguageError(name)


def language_prefix(code: str) -> str:
    """Return the generic two-letter prefix of a language code ("en-US" -> "en")."""
    return code[:2].lower()
