"""Unit tests for IPA normalization into cache keys."""

import sys
import unicodedata
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from ipaspeak.ipa.normalizer import NormalizedKey, normalize
from ipaspeak.tts.errors import (
    EmptyInputError,
    InputTooLongError,
    InvalidSymbolError,
    NormalizationError,
    UnsupportedLanguageError,
)


class TestNormalizeCanonicalForm:
    """Test that equivalent spellings collapse onto one key."""

    def test_strips_phonemic_slashes(self) -> None:
        """Test /kæt/ normalizes to the bare transcription."""
        key = normalize("/kæt/")

        assert key == NormalizedKey(ipa="kæt", language="en-US")

    def test_strips_phonetic_brackets(self) -> None:
        """Test [kʰæt] loses its brackets."""
        assert normalize("[kʰæt]").ipa == "kʰæt"

    def test_surrounding_whitespace_and_delimiters_do_not_matter(self) -> None:
        """Test whitespace around and between delimiters is trimmed."""
        assert normalize("  / kæt /  ").ipa == normalize("kæt").ipa

    def test_interior_whitespace_collapses_to_single_space(self) -> None:
        """Test runs of whitespace inside the transcription become one space."""
        assert normalize("/ðə \t  kæt/").ipa == "ðə kæt"

    def test_ascii_letters_are_lowercased(self) -> None:
        """Test ASCII letter case does not change the key."""
        assert normalize("/KAT/").ipa == normalize("/kat/").ipa

    def test_ascii_stand_ins_map_to_ipa_symbols(self) -> None:
        """Test apostrophe, colon and Latin g map to stress, length and script g."""
        key = normalize("/'gɑ:/")

        assert key.ipa == "ˈɡɑː"
        assert key == normalize("/ˈɡɑː/")

    def test_optional_segment_parentheses_are_dropped(self) -> None:
        """Test parentheses are removed but their contents kept."""
        assert normalize("/ˈwɪn(d)zər/").ipa == "ˈwɪndzər"

    def test_precomposed_and_decomposed_forms_match(self) -> None:
        """Test NFC and NFD spellings of a nasal vowel produce the same key."""
        composed = unicodedata.normalize("NFC", "/bõ/")
        decomposed = unicodedata.normalize("NFD", "/bõ/")
        assert composed != decomposed

        assert normalize(composed) == normalize(decomposed)
        assert normalize(composed).ipa == unicodedata.normalize("NFD", "bõ")

    def test_normalize_is_deterministic(self) -> None:
        """Test repeated calls return equal keys."""
        assert normalize("/ˈkæt/") == normalize("/ˈkæt/")

    def test_normalize_is_idempotent(self) -> None:
        """Test normalizing a canonical IPA string leaves it unchanged."""
        for raw in ["/ˈkæt/", "[ðə  KAT]", "/'gɑ:(t)/", "bõ"]:
            once = normalize(raw)
            assert normalize(once.ipa) == once

    def test_cache_key_includes_language(self) -> None:
        """Test the same IPA in two languages gives different cache keys."""
        english = normalize("/pɛ/", language="English")
        french = normalize("/pɛ/", language="French")

        assert english.cache_key == "en-US:pɛ"
        assert french.cache_key == "fr-CA:pɛ"


class TestNormalizeErrors:
    """Test rejected inputs and the errors they produce."""

    def test_empty_input_raises_empty_error(self) -> None:
        """Test an empty string is rejected with EMPTY_INPUT."""
        with pytest.raises(EmptyInputError) as exc_info:
            normalize("")

        assert exc_info.value.code == "EMPTY_INPUT"

    @pytest.mark.parametrize("raw", [None, "   ", "//", "[ ]", "/()/"])
    def test_input_with_nothing_left_raises_empty_error(self, raw) -> None:
        """Test inputs that trim down to nothing are empty."""
        with pytest.raises(EmptyInputError):
            normalize(raw)

    def test_control_character_reports_position_and_char(self) -> None:
        """Test an unsupported control character is named with its position."""
        with pytest.raises(InvalidSymbolError) as exc_info:
            normalize("/kæ\x07t/")

        error = exc_info.value
        assert error.position == 3
        assert error.char == "\x07"
        assert error.details() == {
            "code": "INVALID_SYMBOL",
            "position": 3,
            "char": "\x07",
            "codepoint": "U+0007",
        }

    def test_position_counts_characters_as_received(self) -> None:
        """Test a precomposed letter before the bad character does not shift the position."""
        with pytest.raises(InvalidSymbolError) as exc_info:
            normalize(unicodedata.normalize("NFC", "é\x07"))

        assert exc_info.value.position == 1
        assert exc_info.value.char == "\x07"

    def test_rejected_char_is_the_one_sent(self) -> None:
        """Test a character with a singleton decomposition is reported as sent."""
        with pytest.raises(InvalidSymbolError) as exc_info:
            normalize("k\u2126")

        assert exc_info.value.position == 1
        assert exc_info.value.char == "\u2126"

    def test_interior_delimiter_position_after_precomposed_letter(self) -> None:
        """Test delimiter positions also refer to the received text."""
        with pytest.raises(InvalidSymbolError) as exc_info:
            normalize(unicodedata.normalize("NFC", "/bõ/ /e/"))

        assert exc_info.value.char == "/"
        assert exc_info.value.position == 3

    def test_digits_are_rejected(self) -> None:
        """Test characters outside the IPA set are rejected."""
        with pytest.raises(InvalidSymbolError) as exc_info:
            normalize("kæt1")

        assert exc_info.value.position == 3

    def test_interior_delimiter_is_rejected(self) -> None:
        """Test a slash inside the transcription is an invalid symbol."""
        with pytest.raises(InvalidSymbolError) as exc_info:
            normalize("/kæt/ /dɒɡ/")

        assert exc_info.value.char == "/"
        assert exc_info.value.position == 4

    def test_invalid_symbol_wins_over_empty(self) -> None:
        """Test symbol validation runs before the empty check."""
        with pytest.raises(InvalidSymbolError):
            normalize("\x00")

    def test_too_long_input_raises_with_lengths(self) -> None:
        """Test inputs longer than max_length are rejected after canonicalization."""
        with pytest.raises(InputTooLongError) as exc_info:
            normalize("/" + "a" * 11 + "/", max_length=10)

        assert exc_info.value.length == 11
        assert exc_info.value.max_length == 10
        assert exc_info.value.code == "TOO_LONG"

    def test_length_is_counted_after_trimming(self) -> None:
        """Test delimiters and surrounding whitespace do not count toward the limit."""
        key = normalize("  /" + "a" * 10 + "/  ", max_length=10)

        assert len(key.ipa) == 10

    def test_default_max_length_is_fifty(self) -> None:
        """Test the default limit accepts 50 symbols and rejects 51."""
        normalize("a" * 50)
        with pytest.raises(InputTooLongError):
            normalize("a" * 51)

    def test_unknown_language_raises(self) -> None:
        """Test an unknown language is rejected."""
        with pytest.raises(UnsupportedLanguageError) as exc_info:
            normalize("/kæt/", language="Klingon")

        assert exc_info.value.language == "Klingon"

    def test_all_errors_are_normalization_errors(self) -> None:
        """Test the handler can catch every input failure as NormalizationError."""
        for raw in ["", "\x07", "a" * 51]:
            with pytest.raises(NormalizationError):
                normalize(raw)
