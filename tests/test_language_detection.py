"""Unit tests for LanguageDetector."""
import pytest

from config.keywords import get_keyword_tables
from utils.language_detection import LanguageDetector


class TestLanguageDetector:

    @pytest.fixture
    def detector(self):
        return LanguageDetector()

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_blank_input_is_default_language(self, detector, text):
        assert detector.detect(text) == "english"

    @pytest.mark.parametrize("language,low,high", get_keyword_tables().script_ranges)
    def test_any_character_of_a_script_decides(self, detector, language, low, high):
        char = chr(ord(low) + 5)
        assert detector.detect(char * 3) == language
        assert detector.detect(f"hello my deposit {char}") == language

    def test_devanagari(self, detector):
        assert detector.detect("मेरा पैसा नहीं आया") == "hindi"

    def test_telugu(self, detector):
        assert detector.detect("నా డబ్బు రాలేదు") == "telugu"

    def test_script_order_first_match_wins(self, detector):
        # Hindi is checked before Telugu
        assert detector.detect("నా జమ जमा") == "hindi"

    def test_romanized_hindi_needs_two_words(self, detector):
        assert detector.detect("mera paisa nahi aaya") == "hindi"
        assert detector.detect("kya") == "english"
        assert detector.detect("hello kya") == "english"

    def test_romanized_words_match_whole_words_only(self, detector):
        # "kabab" contains "kab", "hair" contains "hai"
        assert detector.detect("kabab and hair") == "english"

    def test_romanized_telugu(self, detector):
        assert detector.detect("naaku dabbulu raledu") == "telugu"

    def test_romanized_is_case_insensitive(self, detector):
        assert detector.detect("MERA PAISA") == "hindi"

    def test_latin_text_is_default_language(self, detector):
        assert detector.detect("where is my money") == "english"
        assert detector.detect("xyz") == "english"

    def test_every_message_detected_independently(self, detector):
        assert detector.detect("जमा") == "hindi"
        assert detector.detect("deposit") == "english"